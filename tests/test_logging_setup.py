import logging

from ledger.logging_setup import _parse_level, get_logger


def test_parse_level():
    assert _parse_level("debug") == logging.DEBUG
    assert _parse_level(" WARNING ") == logging.WARNING
    assert _parse_level("15") == 15
    assert _parse_level(logging.ERROR) == logging.ERROR
    assert _parse_level("nonsense") == logging.INFO


def test_parse_level_from_environment(monkeypatch):
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "error")
    assert _parse_level(None) == logging.ERROR
    monkeypatch.delenv("LEDGER_LOG_LEVEL")
    assert _parse_level(None) == logging.INFO


def test_module_loggers_live_under_package():
    logger = get_logger("ledger.store")
    assert logger.name == "ledger.store"
    assert logger.parent.name == "ledger"
    assert logging.getLogger("ledger").handlers
