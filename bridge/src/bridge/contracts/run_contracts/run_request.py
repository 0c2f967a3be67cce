from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

ExecutionMode = Literal["SCHEMA", "EXECUTION"]
EXECUTION_MODES: tuple[ExecutionMode, ...] = ("SCHEMA", "EXECUTION")


@dataclass(frozen=True, slots=True)
class RunRequest:
    """
    Public run request contract.

    One request is consumed by exactly one subprocess invocation.
    """

    script: str
    data_source: str
    mode: ExecutionMode = "EXECUTION"

    # Values injected into the script's parameter accessors (EXECUTION mode)
    params: Mapping[str, Any] = field(default_factory=dict)

    # Optional caller-side correlation id, echoed into logs
    request_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def short_name(self) -> str:
        """Human-friendly identifier for logs."""
        suffix = f":{self.request_id}" if self.request_id else ""
        return f"{self.mode.lower()}{suffix}"
