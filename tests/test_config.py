"""Tests for environment-driven settings."""

from pathlib import Path

from tictactouch.config import DEFAULT_DATA_FILE, Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.data_file == DEFAULT_DATA_FILE
    assert settings.think_delay == 0.5
    assert settings.tiered_ai is False
    assert settings.log_level == "INFO"


def test_overrides():
    settings = Settings.from_env(
        {
            "TICTACTOUCH_HOST": "127.0.0.1",
            "TICTACTOUCH_PORT": "9001",
            "TICTACTOUCH_DATA_FILE": "/tmp/ttt.json",
            "TICTACTOUCH_THINK_DELAY": "0.25",
            "TICTACTOUCH_TIERED_AI": "yes",
            "TICTACTOUCH_LOG_LEVEL": "debug",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.data_file == Path("/tmp/ttt.json")
    assert settings.think_delay == 0.25
    assert settings.tiered_ai is True
    assert settings.log_level == "DEBUG"


def test_empty_data_file_means_memory_only():
    assert Settings.from_env({"TICTACTOUCH_DATA_FILE": ""}).data_file is None


def test_bad_numbers_fall_back():
    settings = Settings.from_env(
        {"TICTACTOUCH_PORT": "http", "TICTACTOUCH_THINK_DELAY": "-3"}
    )
    assert settings.port == 8000
    assert settings.think_delay == 0.0


def test_unknown_log_level_falls_back():
    assert Settings.from_env({"TICTACTOUCH_LOG_LEVEL": "loud"}).log_level == "INFO"
