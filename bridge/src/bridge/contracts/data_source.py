from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from bridge.contracts.sql_results import StatementBatchResult

if TYPE_CHECKING:
    import pandas as pd


@runtime_checkable
class DataSource(Protocol):
    """
    Facade contract for the relational store a run talks to.
    """

    def read_frame(self, sql: str) -> pd.DataFrame:
        """Run a single row-producing query and return it as a DataFrame."""
        ...

    def execute_batch(self, sql: str) -> StatementBatchResult:
        """Run one or more statements and return every outcome in order."""
        ...
