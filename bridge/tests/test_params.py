from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from bridge.contracts import SelectParameter, SliderParameter, TextParameter
from bridge.runtime.params import (
    MAX_DISCOVERED_OPTIONS,
    DeclaringResolver,
    ParameterResolver,
    ValueResolver,
    coerce_slider_value,
    resolve_slider_dtype,
)


def test_slider_dtype_integral_bounds_resolve_to_int():
    assert resolve_slider_dtype(0, 10, 1, 0) == "int"


def test_slider_dtype_fractional_step_resolves_to_float():
    assert resolve_slider_dtype(0, 1, 0.1, 0) == "float"


def test_slider_dtype_explicit_type_wins():
    assert resolve_slider_dtype(0, 10, 1, 0, dtype="float") == "float"


def test_slider_dtype_rejects_unknown_explicit_type():
    with pytest.raises(ValueError):
        resolve_slider_dtype(0, 10, 1, 0, dtype="decimal")


def test_coerce_slider_value_falls_back_to_default():
    assert coerce_slider_value("abc", "int", 5) == 5
    assert coerce_slider_value(None, "float", 0.5) == 0.5
    assert coerce_slider_value("7.9", "int", 5) == 7
    assert coerce_slider_value("7", "float", 5.0) == 7.0


def test_both_resolvers_satisfy_protocol():
    assert isinstance(DeclaringResolver(), ParameterResolver)
    assert isinstance(ValueResolver({}), ParameterResolver)


def test_declaring_resolver_records_declared_defaults():
    resolver = DeclaringResolver()

    assert resolver.get("title", "Sales") == "Sales"
    assert resolver.slider("limit", "Row limit", min=0, max=10, step=1, default=3) == 3
    assert resolver.slider("ratio", min=0, max=1, step=0.1) == 0

    declarations = resolver.declarations
    assert list(declarations) == ["title", "limit", "ratio"]
    assert declarations["title"] == TextParameter(key="title", label="title", default="Sales")
    limit = declarations["limit"]
    assert isinstance(limit, SliderParameter)
    assert (limit.label, limit.min, limit.max, limit.step, limit.default, limit.dtype) == (
        "Row limit",
        0,
        10,
        1,
        3,
        "int",
    )
    assert declarations["ratio"].dtype == "float"
    assert declarations["ratio"].label == "ratio"


def test_declaring_resolver_last_declaration_wins():
    resolver = DeclaringResolver()

    resolver.get("k", "first")
    resolver.slider("other", default=1)
    resolver.select("k", options=["a", "b"])

    declarations = resolver.declarations
    assert list(declarations) == ["k", "other"]
    assert isinstance(declarations["k"], SelectParameter)
    assert declarations["k"].default == "a"


def test_declaring_select_discovers_first_column_distinct_values():
    queries: list[str] = []

    def discover(sql: str) -> pd.DataFrame:
        queries.append(sql)
        return pd.DataFrame({"region": ["East", "West", "East"], "n": [1, 2, 3]})

    resolver = DeclaringResolver(discover=discover)

    default = resolver.select("region", discovery_query="SELECT region, n FROM sales")

    assert default == "East"
    spec = resolver.declarations["region"]
    assert spec.options == ["East", "West"]
    assert spec.default == "East"
    assert queries == ["SELECT region, n FROM sales"]


def test_declaring_select_caps_discovered_options():
    resolver = DeclaringResolver(discover=lambda sql: pd.DataFrame({"v": list(range(120))}))

    resolver.select("v", discovery_query="SELECT v FROM t")

    assert resolver.declarations["v"].options == list(range(MAX_DISCOVERED_OPTIONS))


def test_declaring_select_prefers_static_options_over_discovery():
    def discover(sql: str) -> pd.DataFrame:
        raise AssertionError("discovery should not run")

    resolver = DeclaringResolver(discover=discover)

    resolver.select("c", options=["x", "y"], discovery_query="SELECT 1", default="y")

    assert resolver.declarations["c"].options == ["x", "y"]
    assert resolver.declarations["c"].default == "y"


def test_declaring_select_discovery_failure_yields_empty_options():
    def discover(sql: str) -> pd.DataFrame:
        raise RuntimeError("table missing")

    resolver = DeclaringResolver(discover=discover)

    assert resolver.select("c", discovery_query="SELECT c FROM missing") is None
    assert resolver.declarations["c"].options == []
    assert resolver.declarations["c"].default is None


def test_declaring_select_empty_discovery_result():
    resolver = DeclaringResolver(discover=lambda sql: pd.DataFrame({"c": []}))

    resolver.select("c", discovery_query="SELECT c FROM t")

    assert resolver.declarations["c"].options == []


def test_value_resolver_reads_injected_values():
    resolver = ValueResolver({"title": "Q3", "limit": "8", "region": "West"})

    assert resolver.get("title", "Sales") == "Q3"
    assert resolver.get("missing", "fallback") == "fallback"
    assert resolver.slider("limit", min=0, max=10, step=1, default=3) == 8
    assert resolver.select("region", options=["East", "West"]) == "West"
    assert resolver.select("segment", options=["A", "B"]) == "A"


def test_value_resolver_slider_bad_value_returns_declared_default():
    resolver = ValueResolver({"limit": "not-a-number"})

    assert resolver.slider("limit", min=0, max=10, step=1, default=5) == 5


def test_value_resolver_slider_float_type():
    resolver = ValueResolver({"ratio": "0.25", "count": "3"})

    assert resolver.slider("ratio", min=0, max=1, step=0.05, default=0.5) == 0.25
    assert resolver.slider("count", min=0, max=10, step=1, default=0, dtype="float") == 3.0
    assert isinstance(resolver.slider("count", min=0, max=10, step=1, default=0), int)


def test_value_resolver_never_runs_discovery_queries():
    resolver = ValueResolver({})

    assert resolver.select("region", discovery_query="SELECT region FROM sales") is None


def test_declaring_resolver_publishes_numpy_bounds_as_plain_ints():
    frame = pd.DataFrame({"n": [1, 10]})
    resolver = DeclaringResolver()

    value = resolver.slider(
        "n", min=frame["n"].min(), max=frame["n"].max(), step=1, default=np.int64(3)
    )

    spec = resolver.declarations["n"]
    assert spec.dtype == "int"
    assert (spec.min, spec.max, spec.step, spec.default) == (1, 10, 1, 3)
    assert all(type(v) is int for v in (spec.min, spec.max, spec.step, spec.default, value))


def test_declaring_resolver_publishes_float_slider_in_float():
    resolver = DeclaringResolver()

    resolver.slider("ratio", min=np.int64(0), max=1, step=np.float64(0.25), default=0)

    spec = resolver.declarations["ratio"]
    assert spec.dtype == "float"
    assert all(type(v) is float for v in (spec.min, spec.max, spec.step, spec.default))


def test_value_resolver_numpy_default_is_plain_python():
    resolver = ValueResolver({"n": "oops"})

    value = resolver.slider("n", min=np.int64(0), max=np.int64(9), step=1, default=np.int64(4))

    assert value == 4
    assert type(value) is int
