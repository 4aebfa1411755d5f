"""Bring the progress store schema up to date before the API starts.

Waits for the database to answer a trivial query, then runs ``alembic upgrade``.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ladderwork.config import get_settings
from ladderwork.logging_config import configure_logging

LOGGER = logging.getLogger("ladderwork.migrations")
BACKEND_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_TIMEOUT = int(os.getenv("LADDERWORK_MIGRATION_TIMEOUT", "60"))
DEFAULT_POLL_INTERVAL = float(os.getenv("LADDERWORK_MIGRATION_POLL_INTERVAL", "2"))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upgrade the Ladderwork database schema.")
    parser.add_argument("--revision", default="head", help="Target revision (default: head).")
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds to wait for the database (default: {DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between readiness probes (default: {DEFAULT_POLL_INTERVAL}).",
    )
    parser.add_argument(
        "--config",
        default=str(BACKEND_ROOT / "alembic.ini"),
        help="Path to alembic.ini.",
    )
    return parser.parse_args(argv)


def build_config(config_path: str, database_url: Optional[str] = None) -> Config:
    """Alembic config pointed at ``backend/alembic`` and the configured database."""
    config = Config(config_path)
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    url = database_url or config.get_main_option("sqlalchemy.url") or get_settings().database_url
    if not url:
        raise RuntimeError("LADDERWORK_DATABASE_URL must be set before running migrations.")
    config.set_main_option("sqlalchemy.url", url)
    return config


def wait_for_database(database_url: str, *, timeout: int, poll_interval: float) -> int:
    """Probe with ``SELECT 1`` until it succeeds; returns the number of attempts."""
    deadline = time.monotonic() + timeout
    engine = create_engine(database_url, pool_pre_ping=True)
    attempts = 0
    last_error: Optional[Exception] = None
    try:
        while True:
            attempts += 1
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                LOGGER.info("Database reachable after %d attempt(s).", attempts)
                return attempts
            except OperationalError as exc:
                last_error = exc
                LOGGER.warning("Database not ready (attempt %d): %s", attempts, exc)
            except SQLAlchemyError as exc:
                raise RuntimeError("Database readiness probe failed.") from exc
            if time.monotonic() + poll_interval >= deadline:
                break
            time.sleep(poll_interval)
    finally:
        engine.dispose()
    raise RuntimeError(f"Database did not become ready within {timeout}s.") from last_error


def run_migrations(
    revision: str,
    *,
    timeout: int,
    poll_interval: float,
    config: Optional[Config] = None,
) -> None:
    config = config or build_config(str(BACKEND_ROOT / "alembic.ini"))
    database_url = config.get_main_option("sqlalchemy.url")
    LOGGER.info("Upgrading schema to %s", revision)
    wait_for_database(database_url, timeout=timeout, poll_interval=poll_interval)
    command.upgrade(config, revision)
    LOGGER.info("Schema is at %s.", revision)


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging()
    args = parse_args(argv)
    try:
        run_migrations(
            args.revision,
            timeout=args.timeout,
            poll_interval=args.poll_interval,
            config=build_config(args.config),
        )
    except Exception:  # noqa: BLE001
        LOGGER.exception("Migration run failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
