from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class RowSetOutcome:
    """Outcome of a row-producing statement."""

    rows: Sequence[Mapping[str, Any]] = field(default_factory=tuple)
    # Declared field names from the driver; None when no metadata was returned
    fields: Sequence[str] | None = None


@dataclass(frozen=True, slots=True)
class MutationOutcome:
    """Outcome of a statement that reports an affected-row count instead of rows."""

    affected_rows: int
    insert_id: int | None = None
    info_message: str | None = None
    warning_count: int = 0


StatementOutcome = RowSetOutcome | MutationOutcome


@dataclass(frozen=True, slots=True)
class StatementBatchResult:
    """Raw outcomes of a batch, in statement order."""

    outcomes: Sequence[StatementOutcome] = field(default_factory=tuple)

    @property
    def is_multi(self) -> bool:
        return len(self.outcomes) > 1


@dataclass(frozen=True, slots=True)
class VisibleResult:
    """
    The single table shown for a batch.

    Every row carries exactly `columns`, in that order.
    """

    columns: tuple[str, ...] = ()
    rows: tuple[dict[str, Any], ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {"rows": [dict(row) for row in self.rows], "columns": list(self.columns)}
