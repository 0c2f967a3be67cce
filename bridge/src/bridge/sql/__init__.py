"""SQL execution and result normalization."""

from .datasource import QueryExecutionError, SqlAlchemyDataSource, split_statements
from .normalizer import classify_outcome, normalize_sql_batch

__all__ = [
    "QueryExecutionError",
    "SqlAlchemyDataSource",
    "classify_outcome",
    "normalize_sql_batch",
    "split_statements",
]
