from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from bridge.configuration import (
    load_run_config,
    load_settings,
    read_script,
    resolve_data_source_url,
)
from bridge.contracts import (
    BridgeSettings,
    ExecutionMode,
    RunRequest,
    RunResult,
    VisibleResult,
)
from bridge.orchestration import ProcessOrchestrator
from bridge.sql import SqlAlchemyDataSource, normalize_sql_batch


def run_script(
    script: str,
    data_source: str,
    mode: ExecutionMode = "EXECUTION",
    params: Mapping[str, Any] | None = None,
    *,
    settings: BridgeSettings | None = None,
    orchestrator: ProcessOrchestrator | None = None,
    request_id: str | None = None,
) -> RunResult:
    """Run a script once, in SCHEMA or EXECUTION mode, and return its single result."""
    request = RunRequest(
        script=script,
        data_source=data_source,
        mode=mode,
        params=dict(params or {}),
        request_id=request_id,
    )
    runner = orchestrator or ProcessOrchestrator(settings=settings or load_settings())
    return runner.run(request)


def run_from_yaml(
    run_yaml: str | Path,
    *,
    settings: BridgeSettings | None = None,
    orchestrator: ProcessOrchestrator | None = None,
) -> RunResult:
    config = load_run_config(run_yaml)
    script = read_script(config, base_dir=Path(run_yaml).parent)
    return run_script(
        script,
        config.data_source,
        config.mode,
        config.params,
        settings=settings,
        orchestrator=orchestrator,
        request_id=config.request_id,
    )


def execute_user_query(
    sql: str,
    data_source: str,
    *,
    settings: BridgeSettings | None = None,
) -> VisibleResult:
    """Execute a statement batch and return the table for its last statement."""
    url = resolve_data_source_url(data_source, settings or load_settings())
    with SqlAlchemyDataSource(url) as source:
        return normalize_sql_batch(source.execute_batch(sql))


__all__ = [
    "execute_user_query",
    "normalize_sql_batch",
    "run_from_yaml",
    "run_script",
]
