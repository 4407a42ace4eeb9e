"""Tests for logging setup."""
import logging

from rich.console import Console
from rich.logging import RichHandler

from havn.logging_config import configure_logging


def _rich_handlers(logger: logging.Logger) -> list:
    return [h for h in logger.handlers if isinstance(h, RichHandler)]


class TestConfigureLogging:
    def test_explicit_level(self, monkeypatch):
        monkeypatch.delenv("HAVN_LOG_LEVEL", raising=False)
        logger = configure_logging("debug")
        assert logger.level == logging.DEBUG
        assert len(_rich_handlers(logger)) == 1

    def test_env_level_beats_fallback(self, monkeypatch):
        monkeypatch.setenv("HAVN_LOG_LEVEL", "ERROR")
        logger = configure_logging(fallback="DEBUG")
        assert logger.level == logging.ERROR

    def test_fallback_used_without_env(self, monkeypatch):
        monkeypatch.delenv("HAVN_LOG_LEVEL", raising=False)
        assert configure_logging(fallback="info").level == logging.INFO

    def test_default_is_warning(self, monkeypatch):
        monkeypatch.delenv("HAVN_LOG_LEVEL", raising=False)
        assert configure_logging().level == logging.WARNING

    def test_unknown_level_falls_back_to_warning(self, monkeypatch):
        monkeypatch.delenv("HAVN_LOG_LEVEL", raising=False)
        assert configure_logging("chatty").level == logging.WARNING

    def test_repeated_calls_do_not_stack_handlers(self, monkeypatch):
        monkeypatch.delenv("HAVN_LOG_LEVEL", raising=False)
        configure_logging()
        logger = configure_logging()
        assert len(_rich_handlers(logger)) == 1

    def test_messages_reach_console(self, monkeypatch):
        monkeypatch.delenv("HAVN_LOG_LEVEL", raising=False)
        console = Console(record=True, width=120)
        configure_logging("warning", console=console)
        logging.getLogger("havn.reconcile").warning("Skipping entry abc")
        assert "Skipping entry abc" in console.export_text()
