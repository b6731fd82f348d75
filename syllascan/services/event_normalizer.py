"""CandidateEvent → Event の正規化と種別判定"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable

from dateutil import parser as date_parser

from syllascan.domain.models import CandidateEvent, Event, EventType

logger = logging.getLogger(__name__)

UNNAMED_EVENT_TITLE = "Unnamed Event"

_TIME = re.compile(r"^(\d{1,2}):(\d{2})$")

# 判定は上から順に評価し、最初に一致したものを採用する
_EXAM_KEYWORDS = re.compile(r"exam|test|quiz|final", re.IGNORECASE)
_ASSIGNMENT_KEYWORDS = re.compile(r"assignment|due|submit|paper|essay", re.IGNORECASE)
_DUE = re.compile(r"due", re.IGNORECASE)
_PAGE_REFERENCE = re.compile(r"\bpp?\.\s*\d+|chapter|page", re.IGNORECASE)
_DISCUSSION_KEYWORDS = re.compile(r"discuss", re.IGNORECASE)


def classify_event_type(title: str, description: str) -> EventType:
    """
    タイトル・説明文のキーワードからイベント種別を判定する。

    exam → assignment → reading（説明文のページ参照）→ discussion → class の順。
    "Discuss Chapter 4, pp. 50-65" のような説明文は reading になる。
    """
    if _EXAM_KEYWORDS.search(title):
        return EventType.EXAM
    if _ASSIGNMENT_KEYWORDS.search(title) or _DUE.search(description):
        return EventType.ASSIGNMENT
    if _PAGE_REFERENCE.search(description):
        return EventType.READING
    if _DISCUSSION_KEYWORDS.search(title) or _DISCUSSION_KEYWORDS.search(description):
        return EventType.DISCUSSION
    return EventType.CLASS


def normalize_date(value: str) -> str:
    """日付を YYYY-MM-DD に揃える。解析できなければ入力のまま返す"""
    value = value.strip()
    if not value:
        return ""
    try:
        return date_parser.parse(value).date().isoformat()
    except (ValueError, OverflowError):
        logger.debug("Unparseable date kept as-is: %s", value)
        return value


def normalize_time(value: str | None) -> str:
    """HH:MM（24時間）として妥当なら 0 埋めして返す。不正値は空文字"""
    if not value:
        return ""
    match = _TIME.match(value.strip())
    if not match:
        return ""
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return ""
    return f"{hour:02d}:{minute:02d}"


def _compose(date: str, time: str) -> str:
    if not date:
        return ""
    return f"{date}T{time}:00"


def normalize_event(
    candidate: CandidateEvent,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> Event:
    """
    候補イベントを正規化する。

    同じ候補に対して2回実行しても id 以外は同一の結果になる。

    Args:
        candidate: LLM が返した未検証のイベント
        id_factory: イベントID生成関数（テスト用に差し替え可能）

    Returns:
        Event: type は LLM の値が有効ならそれを使い、なければキーワードで判定。
               source 情報は空文字
    """
    title = (candidate.title or "").strip() or UNNAMED_EVENT_TITLE
    description = (candidate.description or "").strip()
    date = normalize_date(candidate.date or candidate.start_date or "")
    start_time = normalize_time(candidate.start_time)
    end_time = normalize_time(candidate.end_time)

    is_all_day = bool(candidate.all_day) or (not start_time and not end_time)

    if is_all_day:
        start_date = date
        end_date = date
    else:
        start_date = _compose(date, start_time or end_time)
        end_date = _compose(date, end_time) if end_time else start_date

    return Event(
        id=id_factory(),
        title=title,
        description=description,
        date=date,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        is_all_day=is_all_day,
        location=(candidate.location or "").strip(),
        type=EventType.parse(candidate.type) or classify_event_type(title, description),
    )


def deduplicate_events(events: list[Event]) -> list[Event]:
    """
    (title, date, description) が同じイベントを除去する。

    最初に出現したものを残し、順序は保持する。
    """
    seen: set[str] = set()
    unique: list[Event] = []
    for event in events:
        key = f"{event.title}_{event.date}_{event.description}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique
