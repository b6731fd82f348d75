"""処理履歴の生成・記録のテスト"""

from datetime import datetime, timezone

from syllascan.domain.models import (
    BatchState,
    CalendarWriteResult,
    Event,
    HistoryStatus,
    InsertedEvent,
    InsertFailure,
)
from syllascan.services.history import HistoryRecorder, build_history_records

_NOW = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)


def _event(id_: str, source: str = "syllabus.pdf") -> Event:
    return Event(
        id=id_,
        title=f"Event {id_}",
        start_date="2024-09-10",
        source_file=source,
        source_file_type="application/pdf" if source else "",
    )


class TestBuildHistoryRecords:
    def test_one_record_per_source_file(self):
        result = CalendarWriteResult(
            inserted=[
                InsertedEvent(_event("1"), "g1"),
                InsertedEvent(_event("2"), "g2"),
                InsertedEvent(_event("3", "week2.png"), "g3"),
            ],
            failures=[InsertFailure(_event("4", "week2.png"), "quota")],
            state=BatchState.PARTIALLY_SUCCEEDED,
        )

        records = build_history_records("uid-1", result, now=_NOW)

        assert [(r.file_name, r.status, r.event_count) for r in records] == [
            ("syllabus.pdf", HistoryStatus.SUCCESS, 2),
            ("week2.png", HistoryStatus.PARTIAL, 1),
        ]
        assert records[0].processed_at == "2024-09-01T12:00:00+00:00"
        assert records[0].user_id == "uid-1"

    def test_all_failed_file_is_failed(self):
        result = CalendarWriteResult(failures=[InsertFailure(_event("1"), "error")])

        records = build_history_records("uid-1", result, now=_NOW)

        assert records[0].status == HistoryStatus.FAILED
        assert records[0].event_count == 0

    def test_events_without_source_grouped_as_manual(self):
        result = CalendarWriteResult(inserted=[InsertedEvent(_event("1", ""), "g1")])

        records = build_history_records("uid-1", result, now=_NOW)

        assert records[0].file_name == "manual"


class TestHistoryRecorder:
    def test_records_each_file(self, mock_history_repo):
        result = CalendarWriteResult(
            inserted=[
                InsertedEvent(_event("1"), "g1"),
                InsertedEvent(_event("2", "b.png"), "g2"),
            ]
        )

        ids = HistoryRecorder(mock_history_repo).record("uid-1", result)

        assert ids == ["history-id", "history-id"]
        assert mock_history_repo.add.call_count == 2

    def test_write_failure_is_logged_only(self, mock_history_repo, caplog):
        """履歴の保存失敗は例外にしない"""
        mock_history_repo.add.side_effect = RuntimeError("firestore down")
        result = CalendarWriteResult(inserted=[InsertedEvent(_event("1"), "g1")])

        ids = HistoryRecorder(mock_history_repo).record("uid-1", result)

        assert ids == []
        assert "firestore down" in caplog.text
