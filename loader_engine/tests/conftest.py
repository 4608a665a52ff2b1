"""Shared fixtures for loader_engine tests.

Database-facing tests run against a file-backed SQLite database so that
commits and rollbacks behave as they would on a server.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from loader_engine.config import LoaderSettings
from sqlalchemy import Engine, create_engine, text


@pytest.fixture()
def loader_settings() -> LoaderSettings:
    """Settings suited to SQLite: tiny batches and unthrottled progress."""
    return LoaderSettings(
        _env_file=None,  # type: ignore[call-arg]
        batch_size=2,
        progress_interval=0.0,
    )


@pytest.fixture()
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    """Engine on a fresh database holding a ``people`` table."""
    engine = create_engine(f"sqlite:///{tmp_path / 'target.db'}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE people (name TEXT NOT NULL, age INTEGER)"))
    yield engine
    engine.dispose()


@pytest.fixture()
def write_sql(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes SQL text to a file and returns its path."""

    def _write(content: str, name: str = "dump.sql") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def people_names(sqlite_engine: Engine) -> Callable[[], list[str]]:
    """Return a helper listing ``people.name`` in insertion order."""

    def _names() -> list[str]:
        with sqlite_engine.connect() as conn:
            return [row[0] for row in conn.execute(text("SELECT name FROM people ORDER BY rowid"))]

    return _names
