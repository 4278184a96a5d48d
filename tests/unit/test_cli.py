"""Tests for the RenoQuote CLI."""

from __future__ import annotations

import asyncio
from unittest.mock import patch
from uuid import uuid4

import pytest
from typer.testing import CliRunner

from factories import make_extracted_item, make_quote
from renoquote.cli import app
from renoquote.store import MemoryRecordStore

runner = CliRunner()


@pytest.fixture
def cli_store():
    store = MemoryRecordStore()
    with patch("renoquote.cli.create_record_store", return_value=store):
        yield store


def test_promote_prints_outcomes(cli_store):
    item = asyncio.run(make_extracted_item(cli_store))

    result = runner.invoke(app, ["promote", str(item["id"]), str(uuid4())])

    assert result.exit_code == 0
    assert "1 of 2 items promoted" in result.output
    assert len(asyncio.run(cli_store.fetch_many("material_prices"))) == 1


def test_verify_unknown_item_exits_with_error(cli_store):
    result = runner.invoke(app, ["verify", str(uuid4())])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_snapshot_and_versions(cli_store):
    quote = asyncio.run(make_quote(cli_store, items=2))

    saved = runner.invoke(app, ["snapshot-quote", str(quote["id"]), "--reason", "초안"])
    listed = runner.invoke(app, ["versions", str(quote["id"])])

    assert saved.exit_code == 0
    assert "QT-2025-0001-v1" in saved.output
    assert listed.exit_code == 0
    assert "Quote Versions" in listed.output


def test_init_requires_database_url():
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 1
    assert "DATABASE_URL" in result.output
