from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np

from bridge.contracts.params import (
    ParameterSpec,
    SelectParameter,
    SliderDType,
    SliderParameter,
    TextParameter,
)

if TYPE_CHECKING:
    import pandas as pd

MAX_DISCOVERED_OPTIONS = 50

_LOGGER = logging.getLogger("notebook_bridge.params")


@runtime_checkable
class ParameterResolver(Protocol):
    """
    Parameter accessors available to a script as ``SI.params``.

    One implementation is picked per run: `DeclaringResolver` for SCHEMA runs,
    `ValueResolver` for EXECUTION runs.
    """

    def get(self, key: str, default: Any = None) -> Any: ...

    def slider(
        self,
        key: str,
        label: str | None = None,
        min: int | float = 0,
        max: int | float = 100,
        step: int | float = 1,
        default: int | float | None = None,
        dtype: SliderDType | None = None,
    ) -> int | float: ...

    def select(
        self,
        key: str,
        label: str | None = None,
        options: Sequence[Any] | None = None,
        discovery_query: str | None = None,
        default: Any = None,
    ) -> Any: ...


def resolve_slider_dtype(
    min: Any, max: Any, step: Any, default: Any, dtype: SliderDType | None = None
) -> SliderDType:
    if dtype is not None:
        if dtype not in ("int", "float"):
            raise ValueError(f"slider dtype must be 'int' or 'float', got {dtype!r}")
        return dtype
    if all(_is_integral(value) for value in (min, max, step, default)):
        return "int"
    return "float"


def coerce_slider_value(value: Any, dtype: SliderDType, default: int | float) -> int | float:
    """Coerce an injected value; anything unparseable degrades to `default`."""
    try:
        if dtype == "int":
            return int(float(value))
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _is_integral(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _as_slider_number(value: Any, dtype: SliderDType) -> Any:
    """Plain Python number in the resolved dtype; numpy scalars are unwrapped."""
    if isinstance(value, np.generic):
        value = value.item()
    if dtype == "float" and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if dtype == "int" and isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class DeclaringResolver:
    """SCHEMA-mode resolver: records every declaration and returns declared defaults."""

    def __init__(self, *, discover: Callable[[str], pd.DataFrame] | None = None) -> None:
        self._discover = discover
        self._declarations: dict[str, ParameterSpec] = {}

    @property
    def declarations(self) -> dict[str, ParameterSpec]:
        return dict(self._declarations)

    def get(self, key: str, default: Any = None) -> Any:
        self._declare(TextParameter(key=key, label=key, default=default))
        return default

    def slider(
        self,
        key: str,
        label: str | None = None,
        min: int | float = 0,
        max: int | float = 100,
        step: int | float = 1,
        default: int | float | None = None,
        dtype: SliderDType | None = None,
    ) -> int | float:
        if default is None:
            default = min
        resolved = resolve_slider_dtype(min, max, step, default, dtype)
        min, max, step, default = (
            _as_slider_number(value, resolved) for value in (min, max, step, default)
        )
        self._declare(
            SliderParameter(
                key=key,
                label=label or key,
                min=min,
                max=max,
                step=step,
                default=default,
                dtype=resolved,
            )
        )
        return default

    def select(
        self,
        key: str,
        label: str | None = None,
        options: Sequence[Any] | None = None,
        discovery_query: str | None = None,
        default: Any = None,
    ) -> Any:
        final_options = list(options or [])
        if not final_options and discovery_query:
            final_options = self._discover_options(discovery_query)
        if default is None and final_options:
            default = final_options[0]
        self._declare(
            SelectParameter(key=key, label=label or key, options=final_options, default=default)
        )
        return default

    def _declare(self, spec: ParameterSpec) -> None:
        # Redeclaring a key replaces it but keeps its original position.
        self._declarations[spec.key] = spec

    def _discover_options(self, query: str) -> list[Any]:
        if self._discover is None:
            return []
        try:
            frame = self._discover(query)
            if frame.empty:
                return []
            return frame.iloc[:, 0].unique().tolist()[:MAX_DISCOVERED_OPTIONS]
        except Exception:
            _LOGGER.debug("Option discovery failed for query %r", query, exc_info=True)
            return []


class ValueResolver:
    """EXECUTION-mode resolver: reads injected values, never records declarations."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def slider(
        self,
        key: str,
        label: str | None = None,
        min: int | float = 0,
        max: int | float = 100,
        step: int | float = 1,
        default: int | float | None = None,
        dtype: SliderDType | None = None,
    ) -> int | float:
        if default is None:
            default = min
        resolved = resolve_slider_dtype(min, max, step, default, dtype)
        default = _as_slider_number(default, resolved)
        return coerce_slider_value(self._values.get(key, default), resolved, default)

    def select(
        self,
        key: str,
        label: str | None = None,
        options: Sequence[Any] | None = None,
        discovery_query: str | None = None,
        default: Any = None,
    ) -> Any:
        if default is None and options:
            default = list(options)[0]
        return self._values.get(key, default)
