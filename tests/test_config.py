"""
Tests for environment configuration.
"""

import logging

import pytest

from config import DEFAULT_LOG_FORMAT, load_config, setup_logging


def test_defaults():
    cfg = load_config(env={})
    assert cfg.db_path == "focus_logger.db"
    assert cfg.log_level == "INFO"
    assert cfg.log_format == DEFAULT_LOG_FORMAT


def test_env_values():
    cfg = load_config(env={"FOCUS_DB_PATH": "/tmp/x.db", "FOCUS_LOG_LEVEL": "debug"})
    assert cfg.db_path == "/tmp/x.db"
    assert cfg.log_level == "DEBUG"


def test_overrides_win_and_none_is_ignored():
    cfg = load_config(env={"FOCUS_DB_PATH": "/tmp/x.db"}, db_path=None, log_level="warning")
    assert cfg.db_path == "/tmp/x.db"
    assert cfg.log_level == "WARNING"


def test_invalid_values_are_reported_together():
    with pytest.raises(ValueError) as exc:
        load_config(env={"FOCUS_DB_PATH": "", "FOCUS_LOG_LEVEL": "loud"})
    msg = str(exc.value)
    assert "FOCUS_DB_PATH" in msg
    assert "FOCUS_LOG_LEVEL" in msg


def test_setup_logging_returns_app_logger():
    logger = setup_logging(load_config(env={}))
    assert isinstance(logger, logging.Logger)
    assert logger.name == "focus_logger"
