from __future__ import annotations

PREAMBLE = """\
import sys as _sys

from bridge.runtime.context import ExecutionContext
from bridge.runtime.framing import LineTrackingStream as _LineTrackingStream

_sys.stdout = _LineTrackingStream(_sys.stdout)

SI = ExecutionContext.from_environment()


def sql(query):
    return SI.sql(query)


def forge_plotly(fig):
    return SI.plot(fig)

"""

FINALIZE = "\n\nSI.finalize()\n"


def assemble_script_unit(script: str) -> str:
    """Wrap a user script verbatim between the context preamble and the finalize call."""
    return PREAMBLE + script + FINALIZE
