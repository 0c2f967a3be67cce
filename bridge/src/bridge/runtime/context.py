from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping
from typing import Any, TextIO

import pandas as pd

from bridge.contracts.data_source import DataSource
from bridge.contracts.params import dump_parameter_schema
from bridge.contracts.run_contracts.run_request import ExecutionMode
from bridge.runtime.charts import serialize_figure
from bridge.runtime.framing import SideChannelTag, emit_artifact
from bridge.runtime.params import DeclaringResolver, ParameterResolver, ValueResolver

ENV_EXEC_MODE = "BRIDGE_EXEC_MODE"
ENV_PARAMS = "BRIDGE_PARAMS"
ENV_DATA_SOURCE_URL = "BRIDGE_DATA_SOURCE_URL"


class ExecutionContext:
    """
    The object a script sees as ``SI``.

    Built once per run inside the subprocess. The parameter resolver is chosen
    from the mode at construction time and never changes.
    """

    def __init__(
        self,
        *,
        mode: ExecutionMode,
        data_source: DataSource | None = None,
        params: Mapping[str, Any] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.mode = mode
        self._data_source = data_source
        self._stream = stream
        self._finalized = False
        self.params: ParameterResolver
        if mode == "SCHEMA":
            self.params = DeclaringResolver(discover=self._discover)
        else:
            self.params = ValueResolver(params)

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> ExecutionContext:
        env = os.environ if environ is None else environ
        mode: ExecutionMode = "SCHEMA" if env.get(ENV_EXEC_MODE) == "SCHEMA" else "EXECUTION"

        try:
            params = json.loads(env.get(ENV_PARAMS) or "{}")
        except ValueError:
            params = {}
        if not isinstance(params, dict):
            params = {}

        data_source: DataSource | None = None
        url = env.get(ENV_DATA_SOURCE_URL)
        if url:
            try:
                from sqlalchemy import create_engine

                from bridge.sql.datasource import SqlAlchemyDataSource

                data_source = SqlAlchemyDataSource(url, engine=create_engine(url))
            except Exception as exc:
                print(f"Bridge Setup Error: {exc}", file=sys.stderr)
                data_source = None

        return cls(mode=mode, data_source=data_source, params=params)

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def query(self, sql: str) -> pd.DataFrame:
        """Run a query; failures are logged to the run output and yield an empty frame."""
        if self._data_source is None:
            print("SQL Error: no data source configured", file=self.stream)
            return pd.DataFrame()
        try:
            return self._data_source.read_frame(sql)
        except Exception as exc:
            print(f"SQL Error: {exc}", file=self.stream)
            return pd.DataFrame()

    sql = query

    def emit_chart(self, fig: Any) -> None:
        if self.mode != "EXECUTION":
            return
        emit_artifact(SideChannelTag.CHART, serialize_figure(fig), self.stream)

    plot = emit_chart

    def finalize(self) -> None:
        if self._finalized:
            return
        self._finalized = True
        if self.mode == "SCHEMA" and isinstance(self.params, DeclaringResolver):
            schema = dump_parameter_schema(self.params.declarations)
            emit_artifact(SideChannelTag.SCHEMA, schema, self.stream)

    def _discover(self, sql: str) -> pd.DataFrame:
        if self._data_source is None:
            raise RuntimeError("no data source configured")
        return self._data_source.read_frame(sql)
