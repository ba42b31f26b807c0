"""Tests for logging configuration."""

import logging
import os
from io import StringIO
from pathlib import Path

import pytest

from ariadna.logging import _cleanup_old_logs, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ARIADNA_LOG_LEVEL", raising=False)
    monkeypatch.delenv("ARIADNA_DEBUG", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for level resolution."""

    def test_quiet_by_default(self) -> None:
        stream = StringIO()
        configure_logging(stream=stream)
        logging.getLogger("ariadna.test").info("hidden")
        logging.getLogger("ariadna.test").warning("shown")
        assert stream.getvalue() == "ariadna.test: shown\n"

    def test_debug_flag(self) -> None:
        configure_logging(debug=True, stream=StringIO())
        assert logging.getLogger().level == logging.DEBUG

    def test_env_level_wins_over_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARIADNA_LOG_LEVEL", "error")
        configure_logging(debug=True, stream=StringIO())
        assert logging.getLogger().level == logging.ERROR

    def test_env_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARIADNA_DEBUG", "1")
        configure_logging(stream=StringIO())
        assert logging.getLogger().level == logging.DEBUG

    def test_explicit_level(self) -> None:
        configure_logging(level="INFO", stream=StringIO())
        assert logging.getLogger().level == logging.INFO


class TestSessionLogs:
    """Tests for session log rotation."""

    def test_keeps_most_recent(self, tmp_path: Path) -> None:
        for i in range(4):
            log = tmp_path / f"session_{i}.log"
            log.write_text("")
            mtime = 1_700_000_000 + i
            os.utime(log, (mtime, mtime))

        _cleanup_old_logs(tmp_path, max_sessions=2)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["session_2.log", "session_3.log"]
