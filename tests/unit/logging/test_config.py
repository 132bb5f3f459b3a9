"""Unit tests for logging configuration and the JSON formatter."""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from muxmaster.config.models import LoggingConfig
from muxmaster.logging import file_context
from muxmaster.logging.config import configure_logging
from muxmaster.logging.handlers import JSONFormatter


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Save and restore root logger state between tests."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


class TestConfigureLogging:
    """Tests for configure_logging()."""

    @pytest.mark.parametrize(
        "name,level",
        [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("WARNING", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_levels(self, name: str, level: int) -> None:
        """Should map level names onto the root logger."""
        configure_logging(LoggingConfig(level=name))
        assert logging.getLogger().level == level

    def test_stderr_only_by_default(self) -> None:
        """Should log to stderr when no file is configured."""
        configure_logging(LoggingConfig())

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert not isinstance(handlers[0], RotatingFileHandler)

    def test_file_handler(self, tmp_path: Path) -> None:
        """Should add a rotating file handler and create parent directories."""
        log_file = tmp_path / "logs" / "muxmaster.log"
        configure_logging(LoggingConfig(file=log_file, max_bytes=4096, backup_count=2))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        handler = handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 4096
        assert handler.backupCount == 2
        assert log_file.parent.is_dir()

    def test_file_and_stderr(self, tmp_path: Path) -> None:
        configure_logging(
            LoggingConfig(file=tmp_path / "run.log", include_stderr=True)
        )
        assert len(logging.getLogger().handlers) == 2

    def test_unwritable_file_falls_back_to_stderr(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Should warn and keep stderr logging when the file cannot be opened."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        configure_logging(LoggingConfig(file=blocker / "run.log"))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert not isinstance(handlers[0], RotatingFileHandler)
        assert "Could not open log file" in capsys.readouterr().err

    def test_text_format_carries_file_tag(self, tmp_path: Path) -> None:
        """Should prefix records with the batch position of the current file."""
        log_file = tmp_path / "run.log"
        configure_logging(LoggingConfig(file=log_file))

        with file_context(3, 120, "/media/in/show.mkv"):
            logging.getLogger("muxmaster.test").info("Encoding")
        logging.getLogger("muxmaster.test").info("Done")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        assert "[F003/120] muxmaster.test - INFO - Encoding" in lines[0]
        assert "[F" not in lines[1]

    def test_json_format(self, tmp_path: Path) -> None:
        log_file = tmp_path / "run.json"
        configure_logging(LoggingConfig(file=log_file, format="json"))

        with file_context(1, 2, "/media/in/a.mkv"):
            logging.getLogger("muxmaster.test").warning(
                "Retry %d", 1, extra={"retry_action": "fix timestamps"}
            )
        for handler in logging.getLogger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().splitlines()[0])
        assert entry["message"] == "Retry 1"
        assert entry["level"] == "WARNING"
        assert entry["context"]["file_index"] == 1
        assert entry["context"]["file_path"] == "/media/in/a.mkv"
        assert entry["context"]["retry_action"] == "fix timestamps"


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def _record(self, **extra: object) -> logging.LogRecord:
        record = logging.LogRecord(
            name="muxmaster.pipeline",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Processed %s",
            args=("a.mkv",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_basic_fields(self) -> None:
        entry = json.loads(JSONFormatter().format(self._record()))

        assert entry["message"] == "Processed a.mkv"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "muxmaster.pipeline"
        assert entry["timestamp"].endswith("+00:00")
        assert "context" not in entry
        assert "exception" not in entry

    def test_context_skips_none_and_text_tag(self) -> None:
        """Should drop None values and the text-only file tag."""
        record = self._record(file_index=None, file_tag="[F001] ", quality=21)
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"] == {"quality": 21}

    def test_non_serializable_values(self) -> None:
        record = self._record(path=Path("/media/a.mkv"))
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"]["path"] == "/media/a.mkv"

    def test_exception(self) -> None:
        try:
            raise RuntimeError("probe exploded")
        except RuntimeError:
            record = self._record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: probe exploded" in entry["exception"]
