from __future__ import annotations

from typing import Any

import pandas as pd
import sqlparse
from sqlalchemy import create_engine
from sqlalchemy.engine import CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

from bridge.contracts.sql_results import (
    MutationOutcome,
    RowSetOutcome,
    StatementBatchResult,
    StatementOutcome,
)


class QueryExecutionError(RuntimeError):
    pass


def split_statements(sql: str) -> list[str]:
    """Split a batch into individual statements, dropping empty ones."""
    statements = []
    for statement in sqlparse.split(sql or ""):
        stripped = statement.strip().rstrip(";").strip()
        if stripped:
            statements.append(stripped)
    return statements


class SqlAlchemyDataSource:
    """
    SQLAlchemy-backed implementation of the DataSource facade.

    The engine is created lazily so constructing a data source never touches
    the network.
    """

    def __init__(self, url: str, *, engine: Engine | None = None) -> None:
        self._url = url
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self._url)
        return self._engine

    def read_frame(self, sql: str) -> pd.DataFrame:
        with self.engine.connect() as conn:
            return pd.read_sql_query(sql, conn)

    def execute_batch(self, sql: str) -> StatementBatchResult:
        statements = split_statements(sql)
        outcomes: list[StatementOutcome] = []
        try:
            with self.engine.begin() as conn:
                for statement in statements:
                    result = conn.exec_driver_sql(statement)
                    outcomes.append(_to_outcome(result))
        except SQLAlchemyError as exc:
            raise QueryExecutionError(str(getattr(exc, "orig", None) or exc)) from exc
        return StatementBatchResult(outcomes=tuple(outcomes))

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> SqlAlchemyDataSource:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()


def _to_outcome(result: CursorResult[Any]) -> StatementOutcome:
    if result.returns_rows:
        fields = tuple(result.keys())
        rows = tuple(dict(row._mapping) for row in result)
        return RowSetOutcome(rows=rows, fields=fields)
    return MutationOutcome(
        affected_rows=max(result.rowcount, 0),
        insert_id=_last_insert_id(result),
    )


def _last_insert_id(result: CursorResult[Any]) -> int | None:
    try:
        value = result.lastrowid
    except (AttributeError, NotImplementedError, SQLAlchemyError):
        # Not every dialect exposes it.
        return None
    return int(value) if value else None
