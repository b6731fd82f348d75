"""logging_config モジュールのテスト"""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from syllascan.logging_config import SERVICE_NAME, CloudLoggingFormatter, setup_logging


def _make_record(message: str = "test message", level: int = logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="syllascan.services.batch_pipeline",
        level=level,
        pathname="batch_pipeline.py",
        lineno=42,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


class TestCloudLoggingFormatter:
    @pytest.mark.parametrize(
        ("level", "severity"),
        [
            (logging.DEBUG, "DEBUG"),
            (logging.INFO, "INFO"),
            (logging.WARNING, "WARNING"),
            (logging.ERROR, "ERROR"),
            (logging.CRITICAL, "CRITICAL"),
        ],
    )
    def test_severity(self, level, severity):
        parsed = json.loads(CloudLoggingFormatter().format(_make_record(level=level)))
        assert parsed["severity"] == severity

    def test_structured_fields(self):
        parsed = json.loads(CloudLoggingFormatter().format(_make_record("Extracted 3 events")))

        assert parsed["message"] == "Extracted 3 events"
        assert parsed["logger"] == "syllascan.services.batch_pipeline"
        assert parsed["serviceContext"] == {"service": SERVICE_NAME}
        assert parsed["logging.googleapis.com/sourceLocation"]["line"] == 42
        assert "timestamp" in parsed
        assert "exception" not in parsed

    def test_exception_info_included(self):
        try:
            raise ValueError("PDF has no pages")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(CloudLoggingFormatter().format(_make_record(exc_info=exc_info)))

        assert "ValueError" in parsed["exception"]
        assert "PDF has no pages" in parsed["exception"]

    def test_extra_fields_are_merged(self):
        record = _make_record()
        record.extra_fields = {"uid": "user-1", "files": 2}

        parsed = json.loads(CloudLoggingFormatter().format(record))

        assert parsed["uid"] == "user-1"
        assert parsed["files"] == 2

    def test_non_ascii_message(self):
        output = CloudLoggingFormatter().format(_make_record("シラバスを処理しました"))
        assert "シラバスを処理しました" in output


class TestSetupLogging:
    def test_json_formatter_on_cloud_run(self):
        with patch.dict("os.environ", {"K_SERVICE": "syllascan-api"}, clear=False):
            setup_logging()

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, CloudLoggingFormatter)

    def test_text_formatter_locally(self, monkeypatch):
        monkeypatch.delenv("K_SERVICE", raising=False)
        monkeypatch.delenv("CLOUD_RUN_JOB", raising=False)

        setup_logging()

        assert not isinstance(logging.getLogger().handlers[0].formatter, CloudLoggingFormatter)

    def test_log_level_respected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        setup_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_handlers_not_duplicated(self):
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_library_loggers_are_quieted(self):
        setup_logging()

        assert logging.getLogger("httpx").level == logging.WARNING
