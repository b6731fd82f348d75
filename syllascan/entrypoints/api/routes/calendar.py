"""カレンダー API ルート

POST /api/calendar          → 200 { success, message, eventIds }
GET  /api/calendar/list     → 200 { calendars }
GET  /api/calendar/primary  → 200 { calendarId, summary }
GET  /api/calendar/events   → 200 { events }

認証は Google のアクセストークン（Bearer ヘッダー or Cookie）。
アクセストークンを再発行した場合は access_token Cookie を更新する。
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from syllascan.config import AppConfig
from syllascan.domain.errors import (
    AuthExpiredError,
    CalendarInsertError,
    ConfigurationError,
)
from syllascan.domain.models import CalendarWriteResult, Event
from syllascan.domain.ports import HistoryRepository
from syllascan.entrypoints.api.deps import (
    ACCESS_TOKEN_COOKIE,
    AuthInfo,
    CalendarTokens,
    get_calendar_tokens,
    get_calendar_writer,
    get_config,
    get_optional_history_repo,
    get_optional_auth_info,
)
from syllascan.services.calendar_writer import PRIMARY_CALENDAR_ID, CalendarWriter
from syllascan.services.history import HistoryRecorder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/calendar", tags=["calendar"])

_ACCESS_TOKEN_MAX_AGE = 3600
_DEFAULT_EVENTS_WINDOW = timedelta(days=30)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _respond(
    content: dict, refreshed_token: str | None, config: AppConfig, status_code: int = 200
) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    if refreshed_token:
        response.set_cookie(
            ACCESS_TOKEN_COOKIE,
            refreshed_token,
            max_age=_ACCESS_TOKEN_MAX_AGE,
            httponly=True,
            samesite="lax",
            secure=not config.local_mode,
        )
    return response


def _auth_expired() -> JSONResponse:
    return _error(
        status.HTTP_401_UNAUTHORIZED,
        "Authentication expired. Please sign in with Google again.",
    )


def _config_error(e: ConfigurationError) -> JSONResponse:
    logger.error("Calendar is not configured: %s", e)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Server configuration error", details=str(e)
    )


def _parse_events(payload: object) -> list[Event] | None:
    if not isinstance(payload, dict):
        return None
    raw_events = payload.get("events")
    if not isinstance(raw_events, list) or not raw_events:
        return None
    if not all(isinstance(e, dict) for e in raw_events):
        return None
    return [Event.from_dict(e) for e in raw_events]


def _record_history(
    auth: AuthInfo | None,
    history_repo: HistoryRepository | None,
    result: CalendarWriteResult | None,
) -> None:
    if auth is None or history_repo is None or result is None:
        return
    HistoryRecorder(history_repo).record(auth.uid, result)


@router.post("")
async def add_events(
    request: Request,
    tokens: CalendarTokens = Depends(get_calendar_tokens),
    writer: CalendarWriter = Depends(get_calendar_writer),
    config: AppConfig = Depends(get_config),
    auth: AuthInfo | None = Depends(get_optional_auth_info),
    history_repo: HistoryRepository | None = Depends(get_optional_history_repo),
) -> JSONResponse:
    """確認済みイベントをユーザーのカレンダーに登録する"""
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")

    events = _parse_events(payload)
    if events is None:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid events data")

    try:
        result = await run_in_threadpool(
            writer.write, events, tokens.access_token, tokens.refresh_token
        )
    except AuthExpiredError as e:
        logger.warning("Calendar insert rejected: %s", e)
        return _auth_expired()
    except ConfigurationError as e:
        return _config_error(e)
    except CalendarInsertError as e:
        await run_in_threadpool(_record_history, auth, history_repo, e.result)
        return _respond(
            {"error": "Failed to add events to calendar", "details": e.reasons},
            e.result.refreshed_access_token if e.result else None,
            config,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    await run_in_threadpool(_record_history, auth, history_repo, result)

    message = f"Successfully added {len(result.inserted)} events to your calendar"
    if result.failures:
        message += f" ({len(result.failures)} failed)"
    return _respond(
        {"success": True, "message": message, "eventIds": result.event_ids},
        result.refreshed_access_token,
        config,
    )


@router.get("/list")
async def list_calendars(
    tokens: CalendarTokens = Depends(get_calendar_tokens),
    writer: CalendarWriter = Depends(get_calendar_writer),
    config: AppConfig = Depends(get_config),
) -> JSONResponse:
    """ユーザーのカレンダー一覧"""
    try:
        calendars, refreshed = await run_in_threadpool(
            writer.call,
            lambda gateway: gateway.list_calendars(),
            tokens.access_token,
            tokens.refresh_token,
        )
    except AuthExpiredError:
        return _auth_expired()
    except ConfigurationError as e:
        return _config_error(e)
    return _respond({"calendars": calendars}, refreshed, config)


@router.get("/primary")
async def get_primary_calendar(
    tokens: CalendarTokens = Depends(get_calendar_tokens),
    writer: CalendarWriter = Depends(get_calendar_writer),
    config: AppConfig = Depends(get_config),
) -> JSONResponse:
    """プライマリカレンダーの ID と名前"""
    try:
        calendar, refreshed = await run_in_threadpool(
            writer.call,
            lambda gateway: gateway.get_calendar(PRIMARY_CALENDAR_ID),
            tokens.access_token,
            tokens.refresh_token,
        )
    except AuthExpiredError:
        return _auth_expired()
    except ConfigurationError as e:
        return _config_error(e)
    return _respond(
        {"calendarId": calendar.get("id", ""), "summary": calendar.get("summary", "")},
        refreshed,
        config,
    )


def _to_event_summary(item: dict) -> dict:
    start = item.get("start", {})
    end = item.get("end", {})
    return {
        "id": item.get("id", ""),
        "title": item.get("summary", ""),
        "description": item.get("description", ""),
        "startDate": start.get("dateTime") or start.get("date", ""),
        "endDate": end.get("dateTime") or end.get("date", ""),
        "location": item.get("location", ""),
        "isAllDay": "date" in start and "dateTime" not in start,
        "htmlLink": item.get("htmlLink", ""),
    }


@router.get("/events")
async def list_calendar_events(
    calendar_id: str = Query(PRIMARY_CALENDAR_ID, alias="calendarId"),
    time_min: str | None = Query(None, alias="timeMin"),
    time_max: str | None = Query(None, alias="timeMax"),
    tokens: CalendarTokens = Depends(get_calendar_tokens),
    writer: CalendarWriter = Depends(get_calendar_writer),
    config: AppConfig = Depends(get_config),
) -> JSONResponse:
    """期間内のイベント（デフォルト: 現在から1ヶ月）"""
    now = datetime.now(timezone.utc)
    time_min = time_min or now.isoformat()
    time_max = time_max or (now + _DEFAULT_EVENTS_WINDOW).isoformat()

    try:
        items, refreshed = await run_in_threadpool(
            writer.call,
            lambda gateway: gateway.list_events(calendar_id, time_min, time_max),
            tokens.access_token,
            tokens.refresh_token,
        )
    except AuthExpiredError:
        return _auth_expired()
    except ConfigurationError as e:
        return _config_error(e)
    return _respond({"events": [_to_event_summary(i) for i in items]}, refreshed, config)
