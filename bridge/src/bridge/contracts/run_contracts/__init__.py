from .run_config import RunConfig
from .run_request import EXECUTION_MODES, ExecutionMode, RunRequest
from .run_result import ErrorKind, RunResult, RunStatus

__all__ = [
    "EXECUTION_MODES",
    "ErrorKind",
    "ExecutionMode",
    "RunConfig",
    "RunRequest",
    "RunResult",
    "RunStatus",
]
