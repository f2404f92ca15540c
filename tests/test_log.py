"""Tests for log level selection and per-account event context."""

from __future__ import annotations

import json
import logging

import pytest

from drorg.lib.log import LEVEL_ENV, account_context, configure_logging, get_logger, resolve_level
from tests.mocks import MockDriveService


@pytest.fixture
def json_logs(monkeypatch):
    monkeypatch.setenv(LEVEL_ENV, "info")
    configure_logging(json_logs=True)
    yield
    monkeypatch.delenv(LEVEL_ENV)
    configure_logging()


def _events(err: str) -> list[dict]:
    return [json.loads(line) for line in err.splitlines() if line.strip()]


@pytest.mark.parametrize(
    ("env", "verbose", "expected"),
    [
        (None, False, logging.WARNING),
        (None, True, logging.DEBUG),
        ("info", False, logging.INFO),
        (" Error ", False, logging.ERROR),
        ("error", True, logging.DEBUG),
        ("chatty", False, logging.WARNING),
    ],
)
def test_resolve_level(monkeypatch, env, verbose, expected) -> None:
    if env is not None:
        monkeypatch.setenv(LEVEL_ENV, env)

    assert resolve_level(verbose) == expected


def test_account_context_tags_events(json_logs, capsys) -> None:
    logger = get_logger("drorg.test")

    with account_context("alice@example.com"):
        logger.info("sync.start")
    logger.info("after")

    inside, outside = _events(capsys.readouterr().err)
    assert inside["event"] == "sync.start"
    assert inside["account"] == "alice@example.com"
    assert inside["level"] == "info"
    assert "account" not in outside


def test_level_filters_events(json_logs, capsys) -> None:
    logger = get_logger("drorg.test")

    logger.debug("hidden")
    logger.info("shown")

    assert [event["event"] for event in _events(capsys.readouterr().err)] == ["shown"]


def test_sync_pass_events_carry_account(json_logs, capsys, make_engine, login_account) -> None:
    account, data = login_account(change_page_token="tok-1")
    service = MockDriveService(email=account.email)
    service.change_pages["tok-1"] = {"changes": [], "newStartPageToken": "tok-2"}
    engine = make_engine({account.id: service})

    engine.sync_account(account, data)

    events = {event["event"]: event for event in _events(capsys.readouterr().err)}
    assert events["sync.start"]["account"] == account.email
    assert events["sync.done"]["account"] == account.email
