"""抽出プロンプトと LLM レスポンスのパース

Vision LLM の出力は制御できないため、以下の順にパースを試みる。

1. レスポンス全体を JSON としてパース
2. 最上位の JSON 配列部分を正規表現で切り出してパース
3. Markdown のコードブロックを除去してパース

全て失敗した場合は例外にせず空リストを返し、生レスポンスをログに残す。
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from syllascan.domain.models import CandidateEvent

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """
Extract all calendar events from this document image.
Look for dates, times, deadlines, assignments, exams, readings, discussions, holidays,
and any other scheduled events.

For each event, provide the following fields:
- title: The name or title of the event (required)
- description: A brief description of the event, if available
- date: The date of the event in YYYY-MM-DD format (required)
- startTime: Start time in 24-hour format HH:MM, if available
- endTime: End time in 24-hour format HH:MM, if available
- location: The location of the event, if available
- type: One of exam, assignment, discussion, reading, class, if discernible

Format your response as a valid JSON array of event objects.
Use ISO dates. Infer dates from context when they are not explicit
(for example "next Monday" must be converted to an actual date).
If you see relative dates like "Week 1" or "Day 3", use the rest of the document
to determine the actual date.

Be thorough and extract ALL events mentioned in the document, even if some information is missing.
If the image does not contain any events, return an empty array.
"""

_JSON_ARRAY = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)
_CODE_FENCE = re.compile(r"```(?:json)?\n?([\s\S]*?)\n?```")


def _as_event_list(data: Any) -> list | None:
    """パース結果をイベント配列として解釈する。{"events": [...]} 形式も許容"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("events"), list):
        return data["events"]
    return None


def _loads(text: str) -> list | None:
    try:
        return _as_event_list(json.loads(text))
    except json.JSONDecodeError:
        return None


def parse_direct(content: str) -> list | None:
    return _loads(content.strip())


def parse_array_substring(content: str) -> list | None:
    match = _JSON_ARRAY.search(content)
    if not match:
        return None
    return _loads(match.group(0))


def parse_code_fenced(content: str) -> list | None:
    return _loads(_CODE_FENCE.sub(r"\1", content).strip())


def _to_candidates(items: list) -> list[CandidateEvent]:
    candidates = []
    for item in items:
        # 文字列等のオブジェクト以外の要素はイベントとして扱わない
        if not isinstance(item, dict):
            logger.debug("Skipping non-object item in model response: %r", item)
            continue
        candidates.append(CandidateEvent.from_raw(item))
    return candidates


PARSE_STRATEGIES: tuple[Callable[[str], list | None], ...] = (
    parse_direct,
    parse_array_substring,
    parse_code_fenced,
)


def parse_candidate_events(content: str | None) -> list[CandidateEvent]:
    """
    LLM の応答テキストを CandidateEvent のリストに変換する。

    Args:
        content: LLM の生レスポンス（None / 空文字は「イベントなし」）

    Returns:
        list[CandidateEvent]: パースできなかった場合は空リスト
    """
    if not content or not content.strip():
        logger.info("Empty model response, no events")
        return []

    for strategy in PARSE_STRATEGIES:
        items = strategy(content)
        if items is not None:
            logger.debug("Model response parsed by %s: %d items", strategy.__name__, len(items))
            return _to_candidates(items)

    logger.warning("Failed to parse model response as JSON. Raw response: %s", content)
    return []
