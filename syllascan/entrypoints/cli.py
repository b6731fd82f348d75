#!/usr/bin/env python3
"""CLI Entrypoint - ローカルファイルからイベントを抽出

使い方:
    python -m syllascan.entrypoints.cli syllabus.pdf schedule.png
    python -m syllascan.entrypoints.cli syllabus.pdf --output events.json

環境変数:
    LOG_LEVEL: ログレベル (DEBUG, INFO, WARNING, ERROR) デフォルト: INFO
    EXTRACTOR_PROVIDER / PROJECT_ID / OPENAI_API_KEY: 抽出プロバイダ設定
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path

from syllascan.config import AppConfig
from syllascan.domain.models import BatchResult, UploadedFile
from syllascan.entrypoints.factory import create_pipeline
from syllascan.logging_config import setup_logging


def _read_files(paths: list[str]) -> list[UploadedFile]:
    files = []
    for path in paths:
        p = Path(path)
        mime_type, _ = mimetypes.guess_type(p.name)
        files.append(
            UploadedFile(
                filename=p.name,
                mime_type=mime_type or "application/octet-stream",
                content=p.read_bytes(),
            )
        )
    return files


def _to_payload(result: BatchResult) -> dict:
    return {
        "events": [e.to_dict() for e in result.events],
        "count": len(result.events),
        "errors": [e.to_dict() for e in result.errors],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syllascan",
        description="Extract calendar events from syllabus PDFs and images",
    )
    parser.add_argument("files", nargs="+", help="PDF or image files")
    parser.add_argument("-o", "--output", help="write JSON to this path instead of stdout")
    return parser


def main(argv: list[str] | None = None):
    """メインエントリーポイント"""
    args = build_parser().parse_args(argv)

    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        files = _read_files(args.files)
        pipeline = create_pipeline(AppConfig.from_env())
        result = pipeline.run(files)

        output = json.dumps(_to_payload(result), ensure_ascii=False, indent=2)
        if args.output:
            Path(args.output).write_text(output, encoding="utf-8")
            logger.info("Wrote %d events to %s", len(result.events), args.output)
        else:
            print(output)

        # エラーがあったファイルがあれば終了コード1
        if result.errors:
            logger.warning("%d file(s) had errors", len(result.errors))
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    except OSError as e:
        logger.error("Failed to read input: %s", e)
        sys.exit(1)

    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
