"""BatchPipeline - 複数ファイルからのイベント抽出ワークフロー

Ports（ABC）にのみ依存し、推論サービス・PDFライブラリの実装詳細からは独立。
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from syllascan.domain.errors import ExtractionError
from syllascan.domain.models import (
    BatchResult,
    CandidateEvent,
    Event,
    FileError,
    UploadedFile,
)
from syllascan.domain.ports import EventExtractor
from syllascan.services.document_normalizer import DocumentNormalizer
from syllascan.services.event_normalizer import deduplicate_events, normalize_event

logger = logging.getLogger(__name__)


class BatchPipeline:
    """
    アップロードされたファイル群からイベントを抽出する。

    処理フロー（ファイルごとに逐次）:
    1. 画像へ正規化（PDF は1ページ目をラスタライズ）
    2. Vision LLM でイベント候補を抽出
    3. 候補を正規化し、抽出元ファイル情報を付与
    全ファイル処理後に重複を除去する。1ファイルの失敗は他のファイルに影響しない。
    """

    def __init__(
        self,
        normalizer: DocumentNormalizer,
        extractor: EventExtractor,
        event_normalizer: Callable[[CandidateEvent], Event] = normalize_event,
    ) -> None:
        """
        Args:
            normalizer: ファイル → 画像変換
            extractor: 画像 → 候補イベント抽出（Gemini / OpenAI 等）
            event_normalizer: 候補イベント → Event 変換
        """
        self._normalizer = normalizer
        self._extractor = extractor
        self._normalize_event = event_normalizer

    def run(self, files: list[UploadedFile]) -> BatchResult:
        """
        全ファイルを処理する。

        Returns:
            BatchResult: 重複除去済みイベント（出現順）とファイル単位のエラー
        """
        logger.info("Extracting events from %d files", len(files))

        events: list[Event] = []
        errors: list[FileError] = []
        for file in files:
            try:
                file_events = self._process_single(file)
            except ExtractionError as e:
                logger.warning("Extraction failed for %s: %s", file.filename, e)
                errors.append(
                    FileError(file=file.filename, error=str(e), requires_key=e.requires_key)
                )
            except Exception as e:
                logger.exception("Error processing %s: %s", file.filename, e)
                errors.append(FileError(file=file.filename, error=str(e)))
            else:
                events.extend(file_events)

        unique = deduplicate_events(events)
        logger.info(
            "Extraction complete: %d events (%d duplicates removed), %d file errors",
            len(unique),
            len(events) - len(unique),
            len(errors),
        )
        return BatchResult(events=unique, errors=errors)

    def _process_single(self, file: UploadedFile) -> list[Event]:
        logger.info("--- Processing: %s (%s) ---", file.filename, file.mime_type)

        image = self._normalizer.normalize(file)
        candidates = self._extractor.extract(image)
        logger.info("%s: %d candidate events", file.filename, len(candidates))

        return [
            self._normalize_event(candidate).with_source(file.filename, file.mime_type)
            for candidate in candidates
        ]
