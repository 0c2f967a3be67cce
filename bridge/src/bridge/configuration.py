from __future__ import annotations

import os
import re
from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from bridge.contracts import BridgeSettings, RunConfig

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(ValueError):
    pass


def load_yaml(path: str | Path) -> dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ConfigError(f"YAML root must be a mapping: {path}")
    return payload


def load_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> BridgeSettings:
    """Build settings from environment defaults, overlaid with an optional YAML file."""
    env = os.environ if environ is None else environ
    payload = settings_from_env(env)
    if path is not None:
        payload = deep_merge(payload, resolve_env_vars(load_yaml(path), environ=env))
    try:
        return BridgeSettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error("settings", exc)) from exc


def settings_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    payload: dict[str, Any] = {"database": {}}
    if env.get("BRIDGE_PYTHON"):
        payload["python_executable"] = env["BRIDGE_PYTHON"]
    if env.get("BRIDGE_TIMEOUT_S"):
        payload["timeout_s"] = env["BRIDGE_TIMEOUT_S"]
    if env.get("BRIDGE_SCRATCH_ROOT"):
        payload["scratch_root"] = env["BRIDGE_SCRATCH_ROOT"]
    if env.get("SI_DEBUG_MODE"):
        payload["debug"] = env["SI_DEBUG_MODE"].strip().lower() != "false"

    database = payload["database"]
    for env_key, field_name in (
        ("MYSQL_IP", "host"),
        ("MYSQL_PORT", "port"),
        ("MYSQL_USER", "user"),
        ("MYSQL_PASSWORD", "password"),
    ):
        if env.get(env_key) is not None:
            database[field_name] = env[env_key]
    return payload


def load_run_config(path: str | Path) -> RunConfig:
    payload = resolve_env_vars(load_yaml(path))
    try:
        config = RunConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error("run", exc)) from exc
    if config.script_path is not None:
        script_path = Path(config.script_path)
        if not script_path.is_absolute():
            script_path = Path(path).parent / script_path
        if not script_path.is_file():
            raise ConfigError(f"run.script_path: file not found: {script_path}")
    return config


def read_script(config: RunConfig, *, base_dir: str | Path | None = None) -> str:
    if config.script is not None:
        return config.script
    script_path = Path(config.script_path or "")
    if not script_path.is_absolute() and base_dir is not None:
        script_path = Path(base_dir) / script_path
    return script_path.read_text(encoding="utf-8")


def resolve_data_source_url(handle: str, settings: BridgeSettings) -> str:
    """A handle with a scheme is already a URL; anything else names a database."""
    if "://" in handle:
        return handle
    return settings.database.url_for(handle)


def resolve_env_vars(payload: Any, *, environ: Mapping[str, str] | None = None) -> Any:
    env = os.environ if environ is None else environ
    return _resolve_env_vars(payload, path="$", env=env)


def _resolve_env_vars(payload: Any, *, path: str, env: Mapping[str, str]) -> Any:
    if isinstance(payload, Mapping):
        return {
            str(key): _resolve_env_vars(value, path=f"{path}.{key}", env=env)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [
            _resolve_env_vars(value, path=f"{path}[{index}]", env=env)
            for index, value in enumerate(payload)
        ]
    if isinstance(payload, str):
        return _substitute_env(payload, path=path, env=env)
    return payload


def _substitute_env(value: str, *, path: str, env: Mapping[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        env_value = env.get(key)
        if env_value is None:
            raise ConfigError(f"Missing environment variable '{key}' at {path}")
        return env_value

    return _ENV_VAR_PATTERN.sub(replace, value)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _format_validation_error(prefix: str, exc: ValidationError) -> str:
    details: list[str] = []
    for error in exc.errors(include_url=False):
        where = ".".join([prefix, *(str(part) for part in error["loc"])])
        details.append(f"{where}: {error['msg']}")
    return "; ".join(details)
