"""処理履歴の生成・記録"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from syllascan.domain.models import (
    CalendarWriteResult,
    Event,
    HistoryStatus,
    ProcessingHistoryRecord,
)
from syllascan.domain.ports import HistoryRepository

logger = logging.getLogger(__name__)

MANUAL_SOURCE = "manual"


def _status(inserted: int, failed: int) -> HistoryStatus:
    if failed == 0:
        return HistoryStatus.SUCCESS
    if inserted == 0:
        return HistoryStatus.FAILED
    return HistoryStatus.PARTIAL


def build_history_records(
    user_id: str,
    result: CalendarWriteResult,
    now: datetime | None = None,
) -> list[ProcessingHistoryRecord]:
    """
    登録結果から抽出元ファイルごとの履歴を生成する。

    抽出元のないイベント（手動追加）は "manual" にまとめる。
    eventCount は登録に成功した件数。
    """
    processed_at = (now or datetime.now(timezone.utc)).isoformat()

    # source_file -> (file_type, inserted, failed)。出現順を保持
    groups: dict[str, list] = {}

    def group(event: Event) -> list:
        key = event.source_file or MANUAL_SOURCE
        if key not in groups:
            groups[key] = [event.source_file_type or "", 0, 0]
        return groups[key]

    for inserted in result.inserted:
        group(inserted.event)[1] += 1
    for failure in result.failures:
        group(failure.event)[2] += 1

    return [
        ProcessingHistoryRecord(
            user_id=user_id,
            file_name=file_name,
            file_type=file_type,
            event_count=inserted,
            status=_status(inserted, failed),
            processed_at=processed_at,
        )
        for file_name, (file_type, inserted, failed) in groups.items()
    ]


class HistoryRecorder:
    """カレンダー登録結果を処理履歴として保存する"""

    def __init__(self, repository: HistoryRepository) -> None:
        self._repository = repository

    def record(self, user_id: str, result: CalendarWriteResult) -> list[str]:
        """
        履歴を保存する。保存失敗はログに記録するのみで、登録結果には影響させない。

        Returns:
            list[str]: 保存できた履歴ID
        """
        ids: list[str] = []
        for record in build_history_records(user_id, result):
            try:
                ids.append(self._repository.add(record))
            except Exception as e:
                logger.error("Failed to record processing history for %s: %s", record.file_name, e)
        logger.info("Recorded %d processing history entries for user %s", len(ids), user_id)
        return ids
