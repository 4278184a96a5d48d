"""Tests for renoquote.core.logging."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from renoquote.config import AppConfig, DBConfig, get_config, reset_config
from renoquote.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_level_and_json_format_come_from_config(capsys):
    configure_logging(AppConfig(log_level="debug", log_format="json"))

    logging.getLogger("renoquote.quotes").debug("Quote %s updated", "QT-2025-0001")

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert logging.getLogger().level == logging.DEBUG
    assert line["event"] == "Quote QT-2025-0001 updated"
    assert line["level"] == "debug"
    assert line["logger"] == "renoquote.quotes"


def test_json_keeps_korean_text(capsys):
    configure_logging(AppConfig(log_format="json"))

    logging.getLogger("renoquote").info("견적 요청 접수")

    assert "견적 요청 접수" in capsys.readouterr().out


def test_text_format_is_not_json(capsys):
    configure_logging(AppConfig(log_level="WARNING", log_format="text"))

    logging.getLogger("renoquote").info("hidden")
    logging.getLogger("renoquote").warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out
    assert not out.lstrip().startswith("{")


def test_sql_echo_follows_db_config():
    configure_logging(AppConfig(db=DBConfig(url="sqlite+aiosqlite://", echo=True)))
    assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

    configure_logging(AppConfig())
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_defaults_to_loaded_config(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    reset_config()

    configure_logging()

    assert get_config().log_level == "ERROR"
    assert logging.getLogger().level == logging.ERROR
