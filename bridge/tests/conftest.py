from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

from bridge.contracts import BridgeSettings


@pytest.fixture
def sales_db(tmp_path: Path) -> str:
    """SQLite database with a small `sales` table; returns its URL."""
    url = f"sqlite:///{tmp_path / 'sales.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE sales (region TEXT, amount REAL)"))
        conn.execute(
            text("INSERT INTO sales (region, amount) VALUES (:region, :amount)"),
            [
                {"region": "East", "amount": 10.0},
                {"region": "West", "amount": 4.5},
                {"region": "East", "amount": 2.5},
            ],
        )
    engine.dispose()
    return url


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def settings(scratch_root: Path) -> BridgeSettings:
    return BridgeSettings(scratch_root=str(scratch_root), timeout_s=60)
