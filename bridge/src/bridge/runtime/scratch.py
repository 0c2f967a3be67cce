from __future__ import annotations

import os
import tempfile
from pathlib import Path

_ENV_SCRATCH_ROOT = "BRIDGE_SCRATCH_ROOT"
_TEMP_SCRATCH_DIRNAME = "notebook-bridge-scratch"
_UNIT_PREFIX = "nb_exec_"


def resolve_scratch_root(preferred: str | Path | None = None) -> Path:
    """Resolve a writable directory for per-run script units and ensure it exists."""
    candidates: list[Path] = []

    if preferred:
        candidates.append(Path(preferred).expanduser())

    env_value = os.environ.get(_ENV_SCRATCH_ROOT)
    if env_value:
        candidates.append(Path(env_value).expanduser())

    candidates.append(Path(tempfile.gettempdir()) / _TEMP_SCRATCH_DIRNAME)

    for candidate in candidates:
        if _ensure_writable_dir(candidate):
            return candidate

    raise RuntimeError("Unable to resolve a writable scratch directory.")


def write_script_unit(source: str, run_id: str, *, scratch_root: Path | None = None) -> Path:
    """Write an assembled unit to a file no concurrent run can share."""
    root = scratch_root if scratch_root is not None else resolve_scratch_root()
    fd, name = tempfile.mkstemp(prefix=f"{_UNIT_PREFIX}{run_id}_", suffix=".py", dir=root)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(source)
    return Path(name)


def list_script_units(run_id: str, *, scratch_root: Path) -> list[Path]:
    return sorted(scratch_root.glob(f"{_UNIT_PREFIX}{run_id}_*.py"))


def _ensure_writable_dir(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False

    return _validate_writable(path)


def _validate_writable(path: Path) -> bool:
    test_file = path / ".write_test"
    try:
        with test_file.open("w", encoding="utf-8") as handle:
            handle.write("ok")
        test_file.unlink(missing_ok=True)
        return True
    except OSError:
        return False
