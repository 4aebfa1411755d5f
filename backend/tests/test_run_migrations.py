from __future__ import annotations

import types
from pathlib import Path

import pytest

from ladderwork.config import get_settings
from scripts import run_migrations as runner


def test_build_config_prefers_explicit_url() -> None:
    config = runner.build_config(str(runner.BACKEND_ROOT / "alembic.ini"), "sqlite://")
    assert config.get_main_option("sqlalchemy.url") == "sqlite://"
    assert config.get_main_option("script_location").endswith("alembic")


def test_build_config_reads_settings(monkeypatch) -> None:
    monkeypatch.setenv("LADDERWORK_DATABASE_URL", "sqlite:///from-env.db")
    get_settings.cache_clear()
    try:
        config = runner.build_config(str(runner.BACKEND_ROOT / "alembic.ini"))
    finally:
        get_settings.cache_clear()
    assert config.get_main_option("sqlalchemy.url") == "sqlite:///from-env.db"


def test_wait_for_database_succeeds_with_sqlite(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'ready.sqlite'}"
    assert runner.wait_for_database(url, timeout=2, poll_interval=0.1) == 1


def test_wait_for_database_times_out(monkeypatch) -> None:
    class DummyEngine:
        def connect(self) -> types.SimpleNamespace:
            raise runner.OperationalError("SELECT 1", {}, Exception("boom"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: DummyEngine())
    with pytest.raises(RuntimeError, match="did not become ready"):
        runner.wait_for_database("postgresql://example", timeout=0, poll_interval=0)


def test_run_migrations_invokes_upgrade(monkeypatch) -> None:
    config = runner.build_config(str(runner.BACKEND_ROOT / "alembic.ini"), "sqlite://")
    recorded: dict[str, object] = {}

    def fake_wait(url: str, *, timeout: int, poll_interval: float) -> int:
        recorded["wait"] = (url, timeout, poll_interval)
        return 1

    def fake_upgrade(cfg, revision: str) -> None:
        recorded["revision"] = revision
        recorded["script_location"] = cfg.get_main_option("script_location")

    monkeypatch.setattr(runner, "wait_for_database", fake_wait)
    monkeypatch.setattr(runner.command, "upgrade", fake_upgrade)

    runner.run_migrations("head", timeout=5, poll_interval=0.1, config=config)

    assert recorded["revision"] == "head"
    assert recorded["wait"] == ("sqlite://", 5, 0.1)
    assert str(recorded["script_location"]).endswith("alembic")


def test_migration_upgrade_creates_tables(tmp_path: Path) -> None:
    from sqlalchemy import create_engine, inspect

    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    config = runner.build_config(str(runner.BACKEND_ROOT / "alembic.ini"), url)
    runner.command.upgrade(config, "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"children", "ladders", "milestone_progress", "practice_sessions", "day_logs"} <= tables
    assert {"week_plans", "daily_plans", "card_progress"} <= tables
