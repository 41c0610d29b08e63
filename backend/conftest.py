"""Root conftest: load test environment variables, configure structlog, and provide a SQLite store."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog
from dotenv import load_dotenv

from shared.db.connection import Database
from shared.db.game_store import SqliteGameStore
from shared.logging import _render_records

if TYPE_CHECKING:
    from collections.abc import Iterator

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Route structlog through stdlib logging so caplog works in tests.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _render_records,
        structlog.processors.StackInfoRenderer(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent context leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqliteGameStore]:
    """Empty game store backed by a fresh database file."""
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteGameStore(db)
    db.close()
