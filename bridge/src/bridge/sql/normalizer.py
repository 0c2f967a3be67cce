"""Collapse a batch of statement outcomes into the one table a caller shows.

Only the last statement of a batch is visible; earlier statements are treated
as setup executed for effect.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from bridge.contracts.sql_results import (
    MutationOutcome,
    RowSetOutcome,
    StatementBatchResult,
    StatementOutcome,
    VisibleResult,
)

MUTATION_COLUMNS = ("status", "message", "affected_rows", "insert_id", "warning_count")
DEFAULT_MUTATION_MESSAGE = "Query executed successfully"


@dataclass(frozen=True, slots=True)
class RowSet:
    columns: tuple[str, ...]
    rows: Sequence[Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class Mutation:
    outcome: MutationOutcome


@dataclass(frozen=True, slots=True)
class Empty:
    pass


Classified = RowSet | Mutation | Empty

BatchInput = StatementBatchResult | Sequence[StatementOutcome] | StatementOutcome | None


def classify_outcome(outcome: StatementOutcome | None) -> Classified:
    if isinstance(outcome, MutationOutcome):
        return Mutation(outcome)
    if isinstance(outcome, RowSetOutcome):
        if outcome.fields is not None:
            return RowSet(columns=_distinct(outcome.fields), rows=outcome.rows)
        if outcome.rows:
            return RowSet(columns=_distinct(outcome.rows[0].keys()), rows=outcome.rows)
    return Empty()


def normalize_sql_batch(raw: BatchInput) -> VisibleResult:
    """Select the last statement's outcome and render it as a VisibleResult."""
    shape = classify_outcome(_last_outcome(raw))

    if isinstance(shape, Mutation):
        outcome = shape.outcome
        row = {
            "status": "Success",
            "message": outcome.info_message or DEFAULT_MUTATION_MESSAGE,
            "affected_rows": outcome.affected_rows,
            "insert_id": outcome.insert_id,
            "warning_count": outcome.warning_count,
        }
        return VisibleResult(columns=MUTATION_COLUMNS, rows=(row,))

    if isinstance(shape, RowSet):
        columns = shape.columns
        rows = tuple({column: row.get(column) for column in columns} for row in shape.rows)
        return VisibleResult(columns=columns, rows=rows)

    return VisibleResult()


def _last_outcome(raw: BatchInput) -> StatementOutcome | None:
    if raw is None:
        return None
    if isinstance(raw, (RowSetOutcome, MutationOutcome)):
        return raw
    outcomes = raw.outcomes if isinstance(raw, StatementBatchResult) else raw
    if not outcomes:
        return None
    return outcomes[-1]


def _distinct(names: Any) -> tuple[str, ...]:
    return tuple(dict.fromkeys(str(name) for name in names))
