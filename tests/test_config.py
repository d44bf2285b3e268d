"""
Tests for configuration loading (countdownhour/config.py).
"""

from __future__ import annotations

import json
import logging

import pytest

import countdownhour.config as config_mod
from countdownhour.config import Config
from countdownhour.log import setup_logging


@pytest.fixture()
def config_file(tmp_path, monkeypatch):
    fake = tmp_path / "config.json"
    monkeypatch.setattr(config_mod, "_CONFIG_FILE", fake)
    monkeypatch.setenv("CDH_DATA_DIR", str(tmp_path / "data"))
    return fake


def test_defaults_without_overrides(config_file):
    cfg = Config.load()
    assert cfg.api_port == 8765
    assert cfg.todo_pool_capacity == 50
    assert cfg.todo_selection_capacity == 5
    assert cfg.chime_enabled is True
    assert cfg.store_path == cfg.data_dir / "pomodoro_data.json"


def test_file_overrides(config_file):
    config_file.write_text(json.dumps({"api_port": 9000, "not_a_field": 1}))
    cfg = Config.load()
    assert cfg.api_port == 9000
    assert not hasattr(cfg, "not_a_field")


def test_env_overrides_are_coerced(config_file, monkeypatch):
    monkeypatch.setenv("CDH_TICK_INTERVAL_MS", "250")
    monkeypatch.setenv("CDH_CHIME_ENABLED", "false")
    monkeypatch.setenv("CDH_LOG_LEVEL", "DEBUG")
    cfg = Config.load()
    assert cfg.tick_interval_ms == 250
    assert cfg.chime_enabled is False
    assert cfg.log_level == "DEBUG"


def test_env_beats_file(config_file, monkeypatch):
    config_file.write_text(json.dumps({"api_port": 9000}))
    monkeypatch.setenv("CDH_API_PORT", "9100")
    assert Config.load().api_port == 9100


def test_data_dir_from_env(config_file, tmp_path):
    assert Config.load().data_dir == tmp_path / "data"


def test_setup_logging_is_idempotent():
    logger = setup_logging("debug")
    try:
        setup_logging("debug")
        assert logger.name == "countdownhour"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
