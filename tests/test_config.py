"""Tests for settings and logging setup."""

import logging
from pathlib import Path

import pytest

from taskflow.config import Settings
from taskflow.logging_setup import setup_logging


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TASKFLOW_APP_NAME", "TASKFLOW_LOG_LEVEL", "TASKFLOW_LOG_DIR", "TASKFLOW_CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.app_name == "taskflow"
    assert settings.log_level == "INFO"
    assert settings.log_dir is None
    assert settings.cors_origins == ["http://localhost:3000"]


def test_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKFLOW_APP_NAME", "tasks")
    monkeypatch.setenv("TASKFLOW_LOG_LEVEL", "debug")
    monkeypatch.setenv("TASKFLOW_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("TASKFLOW_CORS_ORIGINS", "http://a.test, http://b.test")

    settings = Settings.from_env()

    assert settings.app_name == "tasks"
    assert settings.log_level == "DEBUG"
    assert settings.log_dir == tmp_path
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging("INFO", tmp_path)
        logging.getLogger("taskflow.test").info("hello")
        for handler in root.handlers:
            handler.flush()

        assert "hello" in (tmp_path / "taskflow.log").read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved[0]:
            root.addHandler(handler)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
