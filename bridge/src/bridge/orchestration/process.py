from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

import bridge
from bridge.configuration import resolve_data_source_url
from bridge.contracts import (
    EXECUTION_MODES,
    BridgeSettings,
    ErrorKind,
    RunRequest,
    RunResult,
    parse_parameter_schema,
)
from bridge.orchestration.lifecycle import RunLifecycle, RunState, TransitionObserver
from bridge.runtime.context import ENV_DATA_SOURCE_URL, ENV_EXEC_MODE, ENV_PARAMS
from bridge.runtime.framing import DecodedStream, SideChannelTag, decode_stream
from bridge.runtime.scratch import resolve_scratch_root, write_script_unit
from bridge.runtime.unit import assemble_script_unit

Launcher = Callable[..., subprocess.Popen]

_LOGGER = logging.getLogger("notebook_bridge.run")
_SCRATCH_LOGGER = logging.getLogger("notebook_bridge.scratch")


class RunRequestValidationError(ValueError):
    pass


def validate_request(request: RunRequest) -> None:
    errors: list[str] = []

    if not isinstance(request.script, str):
        errors.append("script must be a string")

    if not isinstance(request.data_source, str) or not request.data_source.strip():
        errors.append("data_source must be a non-empty string")

    if request.mode not in EXECUTION_MODES:
        errors.append(f"mode must be one of {', '.join(EXECUTION_MODES)}, got {request.mode!r}")

    if any(not isinstance(key, str) for key in request.params):
        errors.append("params keys must be strings")
    else:
        try:
            json.dumps(dict(request.params))
        except (TypeError, ValueError) as exc:
            errors.append(f"params must be JSON-serializable: {exc}")

    if errors:
        raise RunRequestValidationError("; ".join(errors))


class ProcessOrchestrator:
    """
    Runs one script per request in a fresh interpreter.

    The orchestrator itself holds only configuration; everything that belongs
    to a single run lives in that run's `RunLifecycle`.
    """

    def __init__(
        self,
        *,
        settings: BridgeSettings | None = None,
        launcher: Launcher | None = None,
        observer: TransitionObserver | None = None,
    ) -> None:
        self._settings = settings or BridgeSettings()
        self._launcher = launcher or subprocess.Popen
        self._observer = observer

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    @property
    def python_executable(self) -> str:
        return self._settings.python_executable or sys.executable

    def run(self, request: RunRequest) -> RunResult:
        validate_request(request)

        run_id = _new_run_id()
        lifecycle = RunLifecycle(run_id, observer=self._observer)
        started = datetime.now(UTC)
        _LOGGER.debug("Starting %s run %s", request.short_name(), run_id)

        unit_path: Path | None = None
        try:
            scratch_root = resolve_scratch_root(self._settings.scratch_root)
            unit_path = write_script_unit(
                assemble_script_unit(request.script), run_id, scratch_root=scratch_root
            )
            self._execute(request, lifecycle, unit_path=unit_path, started=started)
        except Exception as exc:
            _LOGGER.warning("Run %s failed before completion", run_id, exc_info=True)
            error_kind: ErrorKind = (
                "launch_failure" if lifecycle.state == RunState.BUILDING else "internal_error"
            )
            lifecycle.complete(
                _failed_result(
                    run_id,
                    request,
                    started,
                    error_kind=error_kind,
                    logs=[f"Run failed: {exc}"],
                    message=f"Run failed: {exc}",
                )
            )
        finally:
            _remove_unit_best_effort(unit_path, run_id)

        return lifecycle.latch.result

    def _execute(
        self,
        request: RunRequest,
        lifecycle: RunLifecycle,
        *,
        unit_path: Path,
        started: datetime,
    ) -> None:
        run_id = lifecycle.run_id
        python = self.python_executable
        env = build_child_env(
            request,
            data_source_url=resolve_data_source_url(request.data_source, self._settings),
        )

        lifecycle.advance(RunState.LAUNCHING)
        try:
            process = self._launcher(
                [python, str(unit_path)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            _LOGGER.warning("Failed to start interpreter %s for run %s: %s", python, run_id, exc)
            lifecycle.complete(
                _failed_result(
                    run_id,
                    request,
                    started,
                    error_kind="launch_failure",
                    logs=[f"Failed to start Python interpreter: {exc}", f"Command used: {python}"],
                    message=f"Failed to start Python interpreter: {exc}",
                )
            )
            return

        lifecycle.advance(RunState.RUNNING)
        timeout_s = self._settings.timeout_s
        timed_out = False
        try:
            stdout, stderr = process.communicate(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            timed_out = True
            process.kill()
            stdout, stderr = process.communicate()
        finally:
            if process.returncode is None:
                process.kill()
                process.wait()

        lifecycle.advance(RunState.DRAINING)
        stdout = stdout or ""
        stderr = stderr or ""
        decoded = decode_stream(stdout)
        for tag in decoded.dropped:
            _LOGGER.warning("Dropped malformed %s artifact from run %s", tag.name, run_id)
        exit_code = process.returncode

        if timed_out:
            notice = f"Execution timed out after {timeout_s:g}s"
            result = _failed_result(
                run_id,
                request,
                started,
                error_kind="timeout",
                logs=[*decoded.logs, *stderr.splitlines(), notice],
                raw_stderr=stderr,
                exit_code=exit_code,
                message=notice,
            )
        elif exit_code != 0:
            if self._settings.debug:
                _LOGGER.warning(
                    "Run %s exited with code %s\nStderr: %s", run_id, exit_code, stderr
                )
            result = _failed_result(
                run_id,
                request,
                started,
                error_kind="script_failure",
                logs=[*decoded.logs, *stderr.splitlines()],
                raw_stderr=stderr,
                exit_code=exit_code,
                message=f"Script exited with code {exit_code}",
            )
        else:
            result = _completed_result(run_id, request, started, decoded, raw_stderr=stderr)

        lifecycle.complete(result)


def build_child_env(
    request: RunRequest,
    *,
    data_source_url: str,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment handed only to this run's subprocess."""
    env = dict(os.environ if base_env is None else base_env)
    env[ENV_EXEC_MODE] = request.mode
    env[ENV_PARAMS] = json.dumps(dict(request.params))
    env[ENV_DATA_SOURCE_URL] = data_source_url
    env["MPLBACKEND"] = "Agg"
    env["PYTHONUNBUFFERED"] = "1"
    env["PYTHONIOENCODING"] = "utf-8"

    package_root = str(Path(bridge.__file__).resolve().parent.parent)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = os.pathsep.join([package_root, existing]) if existing else package_root
    return env


def _completed_result(
    run_id: str,
    request: RunRequest,
    started: datetime,
    decoded: DecodedStream,
    *,
    raw_stderr: str,
) -> RunResult:
    chart: Any | None = None
    schema = None
    if request.mode == "EXECUTION":
        chart = decoded.artifact(SideChannelTag.CHART)
    else:
        raw_schema = decoded.artifact(SideChannelTag.SCHEMA)
        if raw_schema is not None:
            try:
                schema = parse_parameter_schema(raw_schema)
            except ValidationError:
                _LOGGER.warning("Dropped invalid schema artifact from run %s", run_id, exc_info=True)

    ended = datetime.now(UTC)
    return RunResult(
        run_id=run_id,
        status="ok",
        mode=request.mode,
        started_at_utc=started.isoformat(),
        ended_at_utc=ended.isoformat(),
        duration_s=(ended - started).total_seconds(),
        logs=decoded.logs,
        chart=chart,
        schema=schema,
        raw_stderr=raw_stderr,
        exit_code=0,
    )


def _failed_result(
    run_id: str,
    request: RunRequest,
    started: datetime,
    *,
    error_kind: ErrorKind,
    logs: Sequence[str],
    message: str,
    raw_stderr: str = "",
    exit_code: int | None = None,
) -> RunResult:
    ended = datetime.now(UTC)
    return RunResult(
        run_id=run_id,
        status="failed",
        mode=request.mode,
        started_at_utc=started.isoformat(),
        ended_at_utc=ended.isoformat(),
        duration_s=(ended - started).total_seconds(),
        logs=tuple(logs),
        error_kind=error_kind,
        raw_stderr=raw_stderr,
        exit_code=exit_code,
        message=message,
    )


def _remove_unit_best_effort(unit_path: Path | None, run_id: str) -> None:
    if unit_path is None:
        return
    try:
        unit_path.unlink(missing_ok=True)
    except OSError:
        _SCRATCH_LOGGER.warning(
            "Failed to remove script unit for %s",
            run_id,
            exc_info=True,
        )


def _new_run_id() -> str:
    return f"run-{datetime.now(UTC).strftime('%Y%m%dT%H%M%S')}-{uuid.uuid4().hex[:8]}"
