"""ロギング設定モジュール

Cloud Run ではJSON形式（Cloud Logging 構造化ログ）、ローカルではテキスト形式で出力する。

使い方:
    from syllascan.logging_config import setup_logging
    setup_logging()

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL) デフォルト: INFO
    K_SERVICE / CLOUD_RUN_JOB: Cloud Run 環境判定（自動設定される）
"""

import json
import logging
import os

SERVICE_NAME = "syllascan"

# 外部ライブラリのリクエスト単位のログは WARNING 以上のみ
_QUIET_LOGGERS = (
    "googleapiclient.discovery_cache",
    "httpx",
    "openai",
    "urllib3",
)

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_SEVERITIES = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class CloudLoggingFormatter(logging.Formatter):
    """Cloud Logging 構造化ログ用の JSON フォーマッタ

    `severity` でログレベル、`logging.googleapis.com/sourceLocation` で
    出力元が Cloud Logging 上に表示される。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "severity": record.levelname if record.levelname in _SEVERITIES else "DEFAULT",
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "serviceContext": {"service": SERVICE_NAME},
            "logging.googleapis.com/sourceLocation": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        # logger.info(..., extra={"extra_fields": {"uid": ...}})
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)
        return json.dumps(entry, ensure_ascii=False, default=str)


def is_cloud_run() -> bool:
    return bool(os.getenv("K_SERVICE") or os.getenv("CLOUD_RUN_JOB"))


def setup_logging() -> None:
    """ルートロガーを初期化する（複数回呼んでもハンドラは1つ）"""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    handler = logging.StreamHandler()
    if is_cloud_run():
        handler.setFormatter(CloudLoggingFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
