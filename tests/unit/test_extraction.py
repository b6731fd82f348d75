"""LLM レスポンスパースのテスト"""

import logging

from syllascan.services.extraction import parse_candidate_events


class TestParseCandidateEvents:
    """parse_candidate_events の単体テスト"""

    def test_plain_json_array(self):
        content = '[{"title": "Quiz 1", "date": "2024-09-12"}]'

        events = parse_candidate_events(content)

        assert len(events) == 1
        assert events[0].title == "Quiz 1"
        assert events[0].date == "2024-09-12"

    def test_array_embedded_in_prose(self):
        """前後に説明文があっても配列部分を取り出す"""
        content = (
            "Here are the events I found:\n"
            '[{"title": "Essay due", "date": "2024-10-01", "startTime": "09:00"}]\n'
            "Let me know if you need anything else."
        )

        events = parse_candidate_events(content)

        assert [e.title for e in events] == ["Essay due"]
        assert events[0].start_time == "09:00"

    def test_markdown_fenced_json(self):
        content = '```json\n[{"title": "Lecture", "date": "2024-09-10"}]\n```'

        events = parse_candidate_events(content)

        assert [e.title for e in events] == ["Lecture"]

    def test_fenced_empty_array(self):
        """コードブロック内の空配列は「イベントなし」"""
        assert parse_candidate_events("```json\n[]\n```") == []

    def test_events_object_is_accepted(self):
        content = '{"events": [{"title": "Final", "date": "2024-12-15"}]}'

        assert [e.title for e in parse_candidate_events(content)] == ["Final"]

    def test_empty_response_yields_no_events(self):
        assert parse_candidate_events("") == []
        assert parse_candidate_events(None) == []

    def test_unparseable_response_logs_raw_content(self, caplog):
        """全パースに失敗したら空リスト + WARNING に生レスポンス"""
        with caplog.at_level(logging.WARNING):
            events = parse_candidate_events("I could not find any events, sorry!")

        assert events == []
        assert "I could not find any events, sorry!" in caplog.text

    def test_non_object_items_are_skipped(self):
        """配列内の文字列・数値等は候補イベントにしない"""
        content = '["Midterm on Oct 3", {"title": "Final", "date": "2024-12-10"}, 42, null]'

        events = parse_candidate_events(content)

        assert [e.title for e in events] == ["Final"]

    def test_array_of_strings_yields_no_events(self):
        assert parse_candidate_events('["Midterm on Oct 3", "Final Dec 10"]') == []

    def test_non_string_fields_are_ignored(self):
        """文字列以外の値は None として扱う（数値は文字列化）"""
        content = '[{"title": ["x"], "date": 20240910, "isAllDay": true}]'

        event = parse_candidate_events(content)[0]

        assert event.title is None
        assert event.date == "20240910"
        assert event.all_day is True
