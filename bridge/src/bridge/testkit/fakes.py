from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import pandas as pd

from bridge.contracts.sql_results import StatementBatchResult


@dataclass(frozen=True, slots=True)
class QueryCall:
    """Record of a data source call for assertions in tests."""

    name: str
    sql: str


class FakeDataSource:
    """
    In-memory DataSource for unit tests.

    Queries are matched by exact SQL text; anything unknown raises.
    """

    def __init__(
        self,
        *,
        frames: Mapping[str, pd.DataFrame] | None = None,
        batches: Mapping[str, StatementBatchResult] | None = None,
    ) -> None:
        self._frames = dict(frames or {})
        self._batches = dict(batches or {})
        self._calls: list[QueryCall] = []

    @property
    def calls(self) -> list[QueryCall]:
        """Return the recorded calls in order."""
        return list(self._calls)

    def read_frame(self, sql: str) -> pd.DataFrame:
        self._calls.append(QueryCall(name="read_frame", sql=sql))
        if sql not in self._frames:
            raise RuntimeError(f"no such table for query: {sql}")
        return self._frames[sql].copy()

    def execute_batch(self, sql: str) -> StatementBatchResult:
        self._calls.append(QueryCall(name="execute_batch", sql=sql))
        if sql not in self._batches:
            raise RuntimeError(f"unexpected batch: {sql}")
        return self._batches[sql]
