"""Pytest configuration for test isolation.

Every test gets its own SQLite file for the local transaction cache and the
preferences table, so stored rows and the saved USD rate never leak between
tests. Environment variables the settings layer reads are cleared as well;
tests that need them set them explicitly.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Make sure the workspace package dirs are on sys.path so `smart_finance` and `db` import.
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import dispose_engines, init_schema  # noqa: E402

_ENV_VARS = (
    "OPENAI_API_KEY",
    "SMART_FINANCE_MODEL",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_TABLE",
    "TELEGRAM_BOT_TOKEN",
    "MONOBANK_API_URL",
    "MONOBANK_TOKEN",
    "SMART_FINANCE_TIMEZONE",
    "SMART_FINANCE_DEFAULT_RATE",
    "SMART_FINANCE_BANK_FALLBACK_RATE",
    "SMART_FINANCE_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the app at a per-test SQLite database and yield its URL."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    url = f"sqlite+pysqlite:///{os.fspath(tmp_path / 'smart_finance.db')}"
    monkeypatch.setenv("SMART_FINANCE_DATABASE_URL", url)
    init_schema(database_url=url)
    yield url
    dispose_engines()
