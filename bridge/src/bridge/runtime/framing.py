"""Tagged-line side channel multiplexed onto a run's stdout.

An artifact is written as one line, ``<TAG>:<json>`` with TAG one of ``CHART``
or ``SCHEMA``. The decoder also accepts the older ``__CHART_JSON__:`` and
``__SCHEMA_JSON__:`` prefixes. Everything else on the stream is an ordinary
log line. `decode_stream` is pure so it can be tested
without spawning anything.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO

import numpy as np


class SideChannelTag(str, Enum):
    CHART = "CHART"
    SCHEMA = "SCHEMA"

    @property
    def prefix(self) -> str:
        return f"{self.value}:"

    @property
    def legacy_prefix(self) -> str:
        return f"__{self.value}_JSON__:"


@dataclass(frozen=True, slots=True)
class DecodedStream:
    logs: tuple[str, ...] = ()
    artifacts: Mapping[SideChannelTag, Any] = field(default_factory=dict)
    # Tags whose payload failed to parse; their lines were still removed from logs
    dropped: tuple[SideChannelTag, ...] = ()

    def artifact(self, tag: SideChannelTag) -> Any | None:
        return self.artifacts.get(tag)


def encode_artifact(tag: SideChannelTag, payload: Any) -> str:
    """Encode one artifact as a single line (no trailing newline)."""
    return tag.prefix + json.dumps(payload, default=_json_default, separators=(",", ":"))


def emit_artifact(tag: SideChannelTag, payload: Any, stream: TextIO | None = None) -> None:
    out = stream if stream is not None else sys.stdout
    line = encode_artifact(tag, payload) + "\n"
    if not getattr(out, "at_line_start", True):
        line = "\n" + line
    out.write(line)
    out.flush()


class LineTrackingStream:
    """
    Text stream proxy that remembers whether the last write ended a line.

    `emit_artifact` uses it to start an artifact on a fresh line even when the
    script left a partial line (`print(..., end="")`) on stdout.
    """

    def __init__(self, wrapped: TextIO) -> None:
        self._wrapped = wrapped
        self.at_line_start = True

    def write(self, text: str) -> int:
        if text:
            self.at_line_start = text.endswith("\n")
        return self._wrapped.write(text)

    def flush(self) -> None:
        self._wrapped.flush()

    def __getattr__(self, name: str) -> Any:
        return getattr(self._wrapped, name)


def decode_stream(output: str | Iterable[str]) -> DecodedStream:
    lines = _split_lines(output) if isinstance(output, str) else output
    logs: list[str] = []
    artifacts: dict[SideChannelTag, Any] = {}
    dropped: list[SideChannelTag] = []

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        tag, payload = _match_tag(line)
        if tag is None:
            logs.append(line)
            continue
        try:
            artifacts[tag] = json.loads(payload)
        except ValueError:
            dropped.append(tag)

    return DecodedStream(logs=tuple(logs), artifacts=artifacts, dropped=tuple(dropped))


def _split_lines(output: str) -> list[str]:
    # Only "\n" ends a line; other Unicode separators belong to the printed text.
    lines = output.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _match_tag(line: str) -> tuple[SideChannelTag | None, str]:
    for tag in SideChannelTag:
        for prefix in (tag.prefix, tag.legacy_prefix):
            if line.startswith(prefix):
                return tag, line[len(prefix) :]
    return None, ""


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, "isoformat"):
        # pandas.Timestamp and friends
        return value.isoformat()
    return str(value)
