"""Code that runs inside a script's subprocess, plus the helpers that prepare it."""

from bridge.runtime.framing import (
    DecodedStream,
    LineTrackingStream,
    SideChannelTag,
    decode_stream,
    encode_artifact,
)
from bridge.runtime.scratch import list_script_units, resolve_scratch_root, write_script_unit
from bridge.runtime.unit import assemble_script_unit

__all__ = [
    "DecodedStream",
    "LineTrackingStream",
    "SideChannelTag",
    "assemble_script_unit",
    "decode_stream",
    "encode_artifact",
    "list_script_units",
    "resolve_scratch_root",
    "write_script_unit",
]
