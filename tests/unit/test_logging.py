"""Unit tests for logging setup."""

import logging
import logging.handlers

import pytest
import structlog

from dockhand.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def restore_structlog():
    """Keep structlog and root handlers untouched by each test."""
    config = structlog.get_config()
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    structlog.configure(**config)
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_renderer(self, monkeypatch):
        monkeypatch.setattr(logging_utils.settings, "log_format", "json")
        monkeypatch.setattr(logging_utils.settings, "log_file", None)

        logging_utils.setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging_utils.add_service_context in processors

    def test_console_renderer(self, monkeypatch):
        monkeypatch.setattr(logging_utils.settings, "log_format", "console")
        monkeypatch.setattr(logging_utils.settings, "log_file", None)

        logging_utils.setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_third_party_loggers_quieted(self, monkeypatch):
        monkeypatch.setattr(logging_utils.settings, "log_file", None)

        logging_utils.setup_logging()

        assert logging.getLogger("docker").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_file_logging(self, monkeypatch, tmp_path):
        """Test that a rotating file handler is attached when a file is set."""
        log_file = tmp_path / "logs" / "dockhand.log"
        monkeypatch.setattr(logging_utils.settings, "log_file", str(log_file))

        logging_utils.setup_file_logging()

        assert log_file.parent.is_dir()
        handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert any(h.baseFilename == str(log_file) for h in handlers)


class TestServiceContext:
    def test_adds_service_and_version(self):
        from dockhand import __version__

        event = logging_utils.add_service_context(None, "info", {"event": "hello"})

        assert event["service"] == "dockhand"
        assert event["version"] == __version__


class TestPublicSurface:
    def test_utils_exports(self):
        """Test that only the logging entry point is exported alongside stream helpers."""
        import dockhand.utils

        assert dockhand.utils.__all__ == ["setup_logging", "StreamSettlement", "pump_stream", "tee_to"]
