from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

SliderDType = Literal["int", "float"]


class _ParameterBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str = Field(min_length=1)
    label: str


class TextParameter(_ParameterBase):
    kind: Literal["text"] = "text"
    default: Any = None


class SliderParameter(_ParameterBase):
    kind: Literal["slider"] = "slider"
    min: int | float
    max: int | float
    step: int | float
    default: int | float
    dtype: SliderDType


class SelectParameter(_ParameterBase):
    kind: Literal["select"] = "select"
    options: list[Any] = Field(default_factory=list)
    default: Any = None


ParameterSpec = Annotated[
    TextParameter | SliderParameter | SelectParameter,
    Field(discriminator="kind"),
]

_SCHEMA_ADAPTER: TypeAdapter[dict[str, ParameterSpec]] = TypeAdapter(dict[str, ParameterSpec])


def parse_parameter_schema(payload: Any) -> dict[str, ParameterSpec]:
    """Validate a decoded schema artifact; raises pydantic.ValidationError."""
    return _SCHEMA_ADAPTER.validate_python(payload)


def dump_parameter_schema(schema: Mapping[str, ParameterSpec]) -> dict[str, dict[str, Any]]:
    return {key: spec.model_dump(mode="python") for key, spec in schema.items()}
