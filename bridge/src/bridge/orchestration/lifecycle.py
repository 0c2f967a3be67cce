from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum

from bridge.contracts.run_contracts.run_result import RunResult


class RunState(str, Enum):
    BUILDING = "building"
    LAUNCHING = "launching"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({RunState.COMPLETED, RunState.FAILED})

_ALLOWED_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.BUILDING: frozenset({RunState.LAUNCHING, RunState.FAILED}),
    RunState.LAUNCHING: frozenset({RunState.RUNNING, RunState.FAILED}),
    RunState.RUNNING: frozenset({RunState.DRAINING, RunState.FAILED}),
    RunState.DRAINING: frozenset({RunState.COMPLETED, RunState.FAILED}),
    RunState.COMPLETED: frozenset(),
    RunState.FAILED: frozenset(),
}

TransitionObserver = Callable[[str, RunState], None]

_LOGGER = logging.getLogger("notebook_bridge.run")


class InvalidTransitionError(RuntimeError):
    pass


class CompletionLatch:
    """
    Holds the single result of a run.

    The first delivery wins; later deliveries are refused so racing completion
    signals can never produce a second response.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._result: RunResult | None = None

    @property
    def is_set(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> RunResult:
        if self._result is None:
            raise RuntimeError("Run result has not been delivered.")
        return self._result

    def deliver(self, result: RunResult) -> bool:
        with self._lock:
            if self._result is not None:
                return False
            self._result = result
            return True


class RunLifecycle:
    """Per-run state machine; one instance per run, never shared."""

    def __init__(
        self,
        run_id: str,
        *,
        logger: logging.Logger | None = None,
        observer: TransitionObserver | None = None,
    ) -> None:
        self.run_id = run_id
        self.state = RunState.BUILDING
        self.history: list[RunState] = [RunState.BUILDING]
        self.latch = CompletionLatch()
        self._logger = logger or _LOGGER
        self._observer = observer
        self._notify(RunState.BUILDING)

    def advance(self, target: RunState) -> None:
        self._check(target)
        self._logger.debug("Run %s: %s -> %s", self.run_id, self.state.value, target.value)
        self.state = target
        self.history.append(target)
        self._notify(target)

    def complete(self, result: RunResult) -> bool:
        """Move to the terminal state matching `result` and deliver it once."""
        target = RunState.FAILED if result.failed else RunState.COMPLETED
        if self.state in TERMINAL_STATES:
            self._logger.warning("Suppressed duplicate completion for run %s", self.run_id)
            return False
        self._check(target)
        if not self.latch.deliver(result):
            self._logger.warning("Suppressed duplicate completion for run %s", self.run_id)
            return False
        self.advance(target)
        return True

    def _check(self, target: RunState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Run {self.run_id}: cannot move from {self.state.value} to {target.value}"
            )

    def _notify(self, state: RunState) -> None:
        if self._observer is not None:
            self._observer(self.run_id, state)
