"""Pytest configuration for test isolation.

Every test that touches the database gets its own file-backed SQLite DB under
``tmp_path``. The engine in ``db.client`` is process-wide and refuses to
rebind to a different URL, so it is reset after each test.

Settings are read from the environment by the CLI; the ``HIBISCUS_*`` and
related keys are cleared so a developer's shell or ``.env`` cannot leak in.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import get_session, reset_engine
from hibiscus_recon.settings import ENV_KEYS, HibiscusSettings
from sqlalchemy.orm import Session

from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for key in (*ENV_KEYS.values(), "DATABASE_URL"):
        monkeypatch.delenv(key, raising=False)
    yield
    reset_engine()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "recon.db")


@pytest.fixture
def session(db_url: str) -> Iterator[Session]:
    s = get_session(database_url=db_url)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def settings() -> HibiscusSettings:
    return HibiscusSettings(sales_invoice_match_regex=(r"(4802[0-9]{8})",))
