"""event_normalizer のテスト"""

import pytest

from syllascan.domain.models import CandidateEvent, Event, EventType
from syllascan.services.event_normalizer import (
    UNNAMED_EVENT_TITLE,
    classify_event_type,
    deduplicate_events,
    normalize_date,
    normalize_event,
    normalize_time,
)


def _fixed_id() -> str:
    return "fixed-id"


class TestNormalizeEvent:
    """normalize_event の単体テスト"""

    def test_timed_event_composes_iso_datetimes(self):
        """日付 + 時刻から startDate / endDate を組み立てる"""
        candidate = CandidateEvent(
            title="Midterm Exam", date="2024-09-10", start_time="14:30", end_time="16:00"
        )

        event = normalize_event(candidate, id_factory=_fixed_id)

        assert event.start_date == "2024-09-10T14:30:00"
        assert event.end_date == "2024-09-10T16:00:00"
        assert event.is_all_day is False
        assert event.type == EventType.EXAM
        assert event.id == "fixed-id"

    def test_all_day_when_no_times(self):
        """時刻がなければ終日イベント"""
        event = normalize_event(CandidateEvent(title="Essay due", date="2024-10-01"))

        assert event.is_all_day is True
        assert event.start_date == "2024-10-01"
        assert event.end_date == "2024-10-01"
        assert event.type == EventType.ASSIGNMENT

    def test_missing_title_defaults(self):
        """タイトル欠落・空白のみは Unnamed Event"""
        assert normalize_event(CandidateEvent(title="   ", date="2024-10-01")).title == UNNAMED_EVENT_TITLE
        assert normalize_event(CandidateEvent(date="2024-10-01")).title == UNNAMED_EVENT_TITLE

    def test_invalid_times_are_cleared(self):
        """不正な時刻は破棄され、終日イベント扱いになる"""
        event = normalize_event(
            CandidateEvent(title="Lecture", date="2024-09-10", start_time="2pm", end_time="25:00")
        )

        assert event.start_time == ""
        assert event.end_time == ""
        assert event.is_all_day is True

    def test_single_digit_hour_is_zero_padded(self):
        """9:05 は 09:05 として扱う"""
        event = normalize_event(CandidateEvent(title="Lecture", date="2024-09-10", start_time="9:05"))

        assert event.start_time == "09:05"
        assert event.start_date == "2024-09-10T09:05:00"
        assert event.end_date == event.start_date

    def test_start_date_used_when_date_missing(self):
        """date がなければ startDate を使う"""
        event = normalize_event(CandidateEvent(title="Quiz 1", start_date="September 12, 2024"))

        assert event.date == "2024-09-12"

    def test_unparseable_date_kept_as_is(self):
        """解析できない日付はそのまま"""
        event = normalize_event(CandidateEvent(title="Lecture", date="Week 1"))

        assert event.date == "Week 1"

    def test_explicit_all_day_flag_wins(self):
        """isAllDay が明示されていれば時刻があっても終日"""
        event = normalize_event(
            CandidateEvent(title="Field trip", date="2024-09-10", start_time="09:00", all_day=True)
        )

        assert event.is_all_day is True
        assert event.start_date == "2024-09-10"

    def test_supplied_type_is_kept(self):
        """LLM が返した有効な type はキーワード判定より優先"""
        event = normalize_event(CandidateEvent(title="Week 3 session", date="2024-09-10", type="Exam"))

        assert event.type == EventType.EXAM

    @pytest.mark.parametrize("supplied", [None, "", "lecture"])
    def test_unknown_type_falls_back_to_keywords(self, supplied):
        """type がない・未知の値ならキーワードで判定"""
        event = normalize_event(
            CandidateEvent(title="Read", description="Chapter 4", date="2024-09-10", type=supplied)
        )

        assert event.type == EventType.READING

    def test_idempotent_except_id(self, sample_candidate):
        """同じ候補を2回正規化しても id 以外は同一"""
        first = normalize_event(sample_candidate)
        second = normalize_event(sample_candidate)

        assert first.id != second.id
        assert first.to_dict() | {"id": ""} == second.to_dict() | {"id": ""}


class TestClassifyEventType:
    """classify_event_type の単体テスト"""

    @pytest.mark.parametrize(
        ("title", "description", "expected"),
        [
            ("Midterm Exam", "", EventType.EXAM),
            ("Pop quiz", "", EventType.EXAM),
            ("Essay due", "", EventType.ASSIGNMENT),
            ("Lab report", "Report due at midnight", EventType.ASSIGNMENT),
            ("Week 3", "Discuss Chapter 4, pp. 50-65", EventType.READING),
            ("Seminar discussion", "", EventType.DISCUSSION),
            ("Week 5", "We will discuss the case study", EventType.DISCUSSION),
            ("Lecture 2", "Intro to thermodynamics", EventType.CLASS),
            ("Lecture 3", "Starts at 2 p.m.", EventType.CLASS),
        ],
    )
    def test_classification(self, title, description, expected):
        assert classify_event_type(title, description) == expected


class TestNormalizeHelpers:
    def test_normalize_date_formats_iso(self):
        assert normalize_date("Sept 10, 2024") == "2024-09-10"
        assert normalize_date("") == ""

    def test_normalize_time(self):
        assert normalize_time("14:30") == "14:30"
        assert normalize_time("7:00") == "07:00"
        assert normalize_time("14:30:00") == ""
        assert normalize_time(None) == ""


class TestDeduplicateEvents:
    """deduplicate_events の単体テスト"""

    def _event(self, id_: str, title: str, date: str, description: str = "") -> Event:
        return Event(id=id_, title=title, date=date, start_date=date, description=description)

    def test_first_occurrence_wins_and_order_preserved(self):
        events = [
            self._event("1", "Quiz 1", "2024-09-12"),
            self._event("2", "Lecture", "2024-09-10"),
            self._event("3", "Quiz 1", "2024-09-12"),
        ]

        unique = deduplicate_events(events)

        assert [e.id for e in unique] == ["1", "2"]

    def test_different_description_is_not_duplicate(self):
        events = [
            self._event("1", "Quiz 1", "2024-09-12", "A"),
            self._event("2", "Quiz 1", "2024-09-12", "B"),
        ]

        assert len(deduplicate_events(events)) == 2

    def test_fixed_point(self):
        """重複除去を2回適用しても結果は変わらない"""
        events = [
            self._event("1", "A", "2024-09-01"),
            self._event("2", "A", "2024-09-01"),
            self._event("3", "B", "2024-09-02"),
        ]

        once = deduplicate_events(events)
        assert deduplicate_events(once) == once
