"""CLI tests for the sqlloader commands.

Covers:
- count: statement counting and unreadable files
- rewrite: column removal to stdout and to a file, structural failures
- load: end-to-end load into SQLite, error exit codes, settings validation
- _ensure_password: prompting only when no credential is available
"""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from loader_cli.app import _ensure_password, app
from loader_engine.config import LoaderSettings
from sqlalchemy import create_engine, text
from typer.testing import CliRunner

runner = CliRunner()

# Variables the tests control explicitly; None removes them for the run.
BASE_ENV = {
    "SQLLOADER_DATABASE_URL": None,
    "SQLLOADER_PASSWORD": None,
    "SQLLOADER_PING_SQL": None,
}

DUMP = """-- exported by a dump tool
INSERT INTO people (WCSID, name) VALUES (1, 'ann');
UPDATE people SET name = name WHERE 1 = 0;
INSERT INTO people (WCSID, name) VALUES (2, 'bob; jr');
INSERT INTO people (name, WCSID) VALUES ('cat', 3);
"""


@pytest.fixture()
def dump_file(tmp_path: Path) -> Path:
    path = tmp_path / "dump.sql"
    path.write_text(DUMP, encoding="utf-8")
    return path


@pytest.fixture()
def sqlite_url(tmp_path: Path) -> str:
    """URL of a database with a ``people (name)`` table."""
    url = f"sqlite:///{tmp_path / 'target.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE people (name TEXT NOT NULL)"))
    engine.dispose()
    return url


def _names(url: str) -> list[str]:
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return [row[0] for row in conn.execute(text("SELECT name FROM people ORDER BY rowid"))]
    finally:
        engine.dispose()


# ---------------------------------------------------------------------------
# count
# ---------------------------------------------------------------------------


class TestCountCommand:
    def test_counts_inserts(self, dump_file: Path) -> None:
        result = runner.invoke(app, ["count", str(dump_file)], env=BASE_ENV)
        assert result.exit_code == 0, result.output
        assert "3 INSERT statement(s)" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["count", str(tmp_path / "nope.sql")], env=BASE_ENV)
        assert result.exit_code == 3

    def test_unknown_charset(self, dump_file: Path) -> None:
        result = runner.invoke(app, ["count", str(dump_file), "--charset", "klingon"], env=BASE_ENV)
        assert result.exit_code == 2
        assert "Unknown charset" in result.output


# ---------------------------------------------------------------------------
# rewrite
# ---------------------------------------------------------------------------


class TestRewriteCommand:
    def test_rewrite_to_file(self, dump_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "clean.sql"
        result = runner.invoke(
            app,
            ["rewrite", str(dump_file), "--column", "wcsid", "--output", str(out)],
            env=BASE_ENV,
        )
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8") == (
            "INSERT INTO people (name) VALUES ('ann');\n"
            "UPDATE people SET name = name WHERE 1 = 0;\n"
            "INSERT INTO people (name) VALUES ('bob; jr');\n"
            "INSERT INTO people (name) VALUES ('cat');\n"
        )

    def test_rewrite_to_stdout_promotes_dates(self, tmp_path: Path) -> None:
        path = tmp_path / "dates.sql"
        path.write_text("INSERT INTO t (a) VALUES (DATE '2025-08-29 10:30:00');", encoding="utf-8")
        result = runner.invoke(app, ["rewrite", str(path), "-c", "WCSID"], env=BASE_ENV)
        assert result.exit_code == 0, result.output
        assert "INSERT INTO t (a) VALUES (TIMESTAMP '2025-08-29 10:30:00');" in result.output

    def test_structural_error_exits_1(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.sql"
        path.write_text("INSERT INTO t VALUES (1, 2);", encoding="utf-8")
        result = runner.invoke(app, ["rewrite", str(path), "-c", "WCSID"], env=BASE_ENV)
        assert result.exit_code == 1
        assert "No column list" in result.output

    def test_failed_rewrite_leaves_no_output_file(self, tmp_path: Path) -> None:
        path = tmp_path / "mixed.sql"
        path.write_text(
            "INSERT INTO t (WCSID, a) VALUES (1, 'x');\nINSERT INTO t VALUES (2, 'y');",
            encoding="utf-8",
        )
        out = tmp_path / "clean.sql"
        result = runner.invoke(
            app,
            ["rewrite", str(path), "-c", "WCSID", "--output", str(out)],
            env=BASE_ENV,
        )
        assert result.exit_code == 1
        assert "Cannot rewrite statement 2" in result.output
        assert sorted(p.name for p in tmp_path.iterdir()) == ["mixed.sql"]

    def test_failed_rewrite_keeps_existing_output(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.sql"
        path.write_text("INSERT INTO t VALUES (1, 2);", encoding="utf-8")
        out = tmp_path / "clean.sql"
        out.write_text("-- previous run\n", encoding="utf-8")
        result = runner.invoke(
            app,
            ["rewrite", str(path), "-c", "WCSID", "--output", str(out)],
            env=BASE_ENV,
        )
        assert result.exit_code == 1
        assert out.read_text(encoding="utf-8") == "-- previous run\n"
        assert not (tmp_path / "clean.sql.partial").exists()

    def test_column_is_required(self, dump_file: Path) -> None:
        result = runner.invoke(app, ["rewrite", str(dump_file)], env=BASE_ENV)
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# load
# ---------------------------------------------------------------------------


class TestLoadCommand:
    def test_load_with_pk_removal(self, dump_file: Path, sqlite_url: str) -> None:
        result = runner.invoke(
            app,
            ["load", str(dump_file), "--url", sqlite_url, "--ignore-pk", "--batch-size", "2"],
            env=BASE_ENV,
        )
        assert result.exit_code == 0, result.output
        assert "Load complete" in result.output
        assert _names(sqlite_url) == ["ann", "bob; jr", "cat"]

    def test_stop_on_error_exits_1(self, dump_file: Path, sqlite_url: str) -> None:
        # Without --ignore-pk the WCSID column does not exist in the table.
        result = runner.invoke(app, ["load", str(dump_file), "--url", sqlite_url], env=BASE_ENV)
        assert result.exit_code == 1
        assert "Load aborted" in result.output

    def test_continue_on_error_reports_failures(self, dump_file: Path, sqlite_url: str) -> None:
        result = runner.invoke(
            app,
            ["load", str(dump_file), "--url", sqlite_url, "--continue-on-error"],
            env=BASE_ENV,
        )
        assert result.exit_code == 0, result.output
        assert "Failed" in result.output
        assert _names(sqlite_url) == []

    def test_failed_connectivity_check_exits_1(self, dump_file: Path, sqlite_url: str) -> None:
        env = {**BASE_ENV, "SQLLOADER_PING_SQL": "SELECT 1 FROM DUAL"}
        result = runner.invoke(app, ["load", str(dump_file), "--url", sqlite_url], env=env)
        assert result.exit_code == 1
        assert "Load failed" in result.output

    def test_default_connectivity_check_on_sqlite(self, dump_file: Path, sqlite_url: str) -> None:
        result = runner.invoke(app, ["load", str(dump_file), "--url", sqlite_url, "--ignore-pk"], env=BASE_ENV)
        assert result.exit_code == 0, result.output
        assert _names(sqlite_url) == ["ann", "bob; jr", "cat"]

    def test_missing_url_exits_2(self, dump_file: Path) -> None:
        result = runner.invoke(app, ["load", str(dump_file)], env=BASE_ENV)
        assert result.exit_code == 2
        assert "No database URL" in result.output

    def test_url_from_environment(self, dump_file: Path, sqlite_url: str) -> None:
        env = {**BASE_ENV, "SQLLOADER_DATABASE_URL": sqlite_url, "SQLLOADER_IGNORE_PK": "true"}
        result = runner.invoke(app, ["load", str(dump_file)], env=env)
        assert result.exit_code == 0, result.output
        assert len(_names(sqlite_url)) == 3

    def test_invalid_batch_size_exits_2(self, dump_file: Path, sqlite_url: str) -> None:
        result = runner.invoke(
            app,
            ["load", str(dump_file), "--url", sqlite_url, "--batch-size", "0"],
            env=BASE_ENV,
        )
        assert result.exit_code == 2
        assert "batch_size" in result.output

    def test_unreadable_file_exits_3(self, tmp_path: Path, sqlite_url: str) -> None:
        result = runner.invoke(
            app,
            ["load", str(tmp_path / "missing.sql"), "--url", sqlite_url],
            env=BASE_ENV,
        )
        assert result.exit_code == 3


# ---------------------------------------------------------------------------
# _ensure_password
# ---------------------------------------------------------------------------


class TestEnsurePassword:
    def _settings(self, url: str, password: str | None = None) -> LoaderSettings:
        return LoaderSettings(_env_file=None, database_url=url, password=password)  # type: ignore[call-arg]

    def test_prompts_when_no_password(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typer, "prompt", lambda *args, **kwargs: "typed")
        settings = _ensure_password(self._settings("oracle+oracledb://scott@db:1521/?service_name=XE"))
        assert settings.password is not None
        assert settings.password.get_secret_value() == "typed"

    def test_url_password_is_enough(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typer, "prompt", pytest.fail)
        settings = self._settings("oracle+oracledb://scott:tiger@db:1521/?service_name=XE")
        assert _ensure_password(settings) is settings

    def test_sqlite_never_prompts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(typer, "prompt", pytest.fail)
        settings = self._settings("sqlite:///local.db")
        assert _ensure_password(settings) is settings

    def test_invalid_url_exits_2(self) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            _ensure_password(self._settings("not a url"))
        assert exc_info.value.exit_code == 2
