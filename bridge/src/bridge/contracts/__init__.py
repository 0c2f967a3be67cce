from .data_source import DataSource
from .params import (
    ParameterSpec,
    SelectParameter,
    SliderDType,
    SliderParameter,
    TextParameter,
    dump_parameter_schema,
    parse_parameter_schema,
)
from .run_contracts import (
    EXECUTION_MODES,
    ErrorKind,
    ExecutionMode,
    RunConfig,
    RunRequest,
    RunResult,
    RunStatus,
)
from .settings import BridgeSettings, DatabaseConfig
from .sql_results import (
    MutationOutcome,
    RowSetOutcome,
    StatementBatchResult,
    StatementOutcome,
    VisibleResult,
)

__all__ = [
    "BridgeSettings",
    "DataSource",
    "DatabaseConfig",
    "EXECUTION_MODES",
    "ErrorKind",
    "ExecutionMode",
    "MutationOutcome",
    "ParameterSpec",
    "RowSetOutcome",
    "RunConfig",
    "RunRequest",
    "RunResult",
    "RunStatus",
    "SelectParameter",
    "SliderDType",
    "SliderParameter",
    "StatementBatchResult",
    "StatementOutcome",
    "TextParameter",
    "VisibleResult",
    "dump_parameter_schema",
    "parse_parameter_schema",
]
