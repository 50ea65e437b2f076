"""Lifecycle — startup brings up logging and the database manager, shutdown clears it."""

import logging

import pytest

from sqlcaller import lifecycle
from sqlcaller.config import Settings
from sqlcaller.infrastructure import database


@pytest.fixture
def clean_process_state(monkeypatch):
    handlers = list(logging.root.handlers)
    level = logging.root.level
    monkeypatch.setattr(database, "db_manager", None)
    yield
    database.close_db()
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


def test_startup_and_shutdown(clean_process_state):
    settings = Settings(database_url="sqlite://", log_level="WARNING", log_format="text")
    manager = lifecycle.startup(settings)
    assert database.get_db_manager() is manager
    assert manager.connection().select_value("select 1") == 1
    assert logging.root.level == logging.WARNING

    lifecycle.shutdown()
    assert database.db_manager is None


def test_repeated_startup_installs_one_handler(clean_process_state):
    settings = Settings(database_url="sqlite://", log_level="WARNING", log_format="json")
    before = len(logging.root.handlers)
    lifecycle.startup(settings)
    lifecycle.startup(settings)
    assert len(logging.root.handlers) == before + 1
    lifecycle.shutdown()
