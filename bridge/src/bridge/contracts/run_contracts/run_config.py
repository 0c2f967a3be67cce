from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bridge.contracts.run_contracts.run_request import ExecutionMode


class RunConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data_source: str = Field(min_length=1)
    mode: ExecutionMode = "EXECUTION"
    script: str | None = None
    script_path: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    request_id: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("params", mode="before")
    @classmethod
    def _coerce_params_dict(cls, value: Any) -> dict[str, Any]:
        if value is None:
            return {}
        if isinstance(value, dict):
            return value
        raise ValueError("params must be a mapping")

    @model_validator(mode="after")
    def _validate_script_source(self) -> RunConfig:
        if (self.script is None) == (self.script_path is None):
            raise ValueError("exactly one of script or script_path must be set")
        return self
