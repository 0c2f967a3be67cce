from .lifecycle import CompletionLatch, InvalidTransitionError, RunLifecycle, RunState
from .process import (
    ProcessOrchestrator,
    RunRequestValidationError,
    build_child_env,
    validate_request,
)

__all__ = [
    "CompletionLatch",
    "InvalidTransitionError",
    "ProcessOrchestrator",
    "RunLifecycle",
    "RunRequestValidationError",
    "RunState",
    "build_child_env",
    "validate_request",
]
