from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from bridge.contracts.params import ParameterSpec, dump_parameter_schema
from bridge.contracts.run_contracts.run_request import ExecutionMode

RunStatus = Literal["ok", "failed"]
ErrorKind = Literal["launch_failure", "script_failure", "timeout", "internal_error"]


@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Public run outcome contract.

    Keep this stable: callers should not depend on orchestrator internals.
    """

    run_id: str
    status: RunStatus
    mode: ExecutionMode

    started_at_utc: str
    ended_at_utc: str
    duration_s: float

    logs: Sequence[str] = field(default_factory=tuple)
    chart: Any | None = None
    # Only ever set for SCHEMA runs
    schema: Mapping[str, ParameterSpec] | None = None

    error_kind: ErrorKind | None = None
    raw_stderr: str = ""
    exit_code: int | None = None

    # Human-readable message for quick debugging
    message: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def to_payload(self) -> dict[str, Any]:
        """Render the `{logs, chart, schema, error}` shape handed back to callers."""
        payload: dict[str, Any] = {
            "logs": list(self.logs),
            "chart": self.chart,
            "schema": dump_parameter_schema(self.schema) if self.schema is not None else None,
            "error": self.failed,
        }
        if self.error_kind is not None:
            payload["error_kind"] = self.error_kind
        return payload
