"""CalendarWriter - 確認済みイベントのカレンダー一括登録

アクセストークン期限切れ時はリフレッシュトークンで1回だけ再発行し、
未登録分を再試行する。
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import date, timedelta
from typing import TypeVar

from syllascan.domain.errors import AuthExpiredError, CalendarInsertError
from syllascan.domain.models import (
    BatchState,
    CalendarWriteResult,
    Event,
    InsertedEvent,
    InsertFailure,
)
from syllascan.domain.ports import CalendarGateway, TokenRefresher

logger = logging.getLogger(__name__)

MAX_AUTH_RETRIES = 1
PRIMARY_CALENDAR_ID = "primary"

T = TypeVar("T")


def _exclusive_end_date(value: str) -> str:
    """終日イベントの終了日（Calendar API では翌日を指定する）"""
    try:
        return (date.fromisoformat(value) + timedelta(days=1)).isoformat()
    except ValueError:
        return value


def build_event_body(event: Event, timezone: str | None = None) -> dict:
    """
    Event から Calendar API の events.insert ボディを構築。

    Args:
        event: 登録するイベント（title / start_date は検証済み）
        timezone: 時刻指定イベントのタイムゾーン（例: America/Chicago）

    Returns:
        dict: summary / description / location / start / end
    """
    end_date = event.end_date or event.start_date

    if event.is_all_day:
        start_day = event.start_date.split("T")[0]
        end_day = end_date.split("T")[0]
        start_body = {"date": start_day}
        end_body = {"date": _exclusive_end_date(max(start_day, end_day))}
    else:
        start_body = {"dateTime": event.start_date}
        end_body = {"dateTime": end_date}
        if timezone:
            start_body["timeZone"] = timezone
            end_body["timeZone"] = timezone

    return {
        "summary": event.title,
        "description": event.description,
        "location": event.location,
        "start": start_body,
        "end": end_body,
    }


def _validation_error(event: Event) -> str | None:
    if not event.title:
        return "Event missing title"
    if not event.start_date:
        return f"Event missing start date: {event.title}"
    return None


class CalendarWriter:
    """
    イベントをユーザーのカレンダーへ登録する。

    各イベントは独立して登録し、1件の失敗でバッチを中断しない。
    認証エラーのみバッチ全体に波及し、リフレッシュ後に未登録分から再開する。
    """

    def __init__(
        self,
        gateway_factory: Callable[[str], CalendarGateway],
        token_refresher: TokenRefresher,
        calendar_id: str = PRIMARY_CALENDAR_ID,
        timezone: str | None = None,
    ) -> None:
        """
        Args:
            gateway_factory: アクセストークン → CalendarGateway
            token_refresher: リフレッシュトークンによる再発行
            calendar_id: 登録先カレンダー（デフォルト: primary）
            timezone: 時刻指定イベントのタイムゾーン
        """
        self._gateway_factory = gateway_factory
        self._refresher = token_refresher
        self._calendar_id = calendar_id
        self._timezone = timezone

    def write(
        self,
        events: list[Event],
        access_token: str,
        refresh_token: str | None = None,
    ) -> CalendarWriteResult:
        """
        イベントを登録する。

        Returns:
            CalendarWriteResult: 成功（SUCCEEDED）または一部成功（PARTIALLY_SUCCEEDED）

        Raises:
            AuthExpiredError: リフレッシュトークンなし、または再試行後も認証エラー
            CalendarInsertError: 1件も登録できなかった
        """
        result = CalendarWriteResult(state=BatchState.INSERTING)
        pending = deque(events)

        self._with_auth_retry(
            lambda gateway: self._insert_pending(gateway, pending, result),
            access_token,
            refresh_token,
            result,
        )

        if result.failures and not result.inserted:
            result.state = BatchState.FAILED
            logger.error("All %d calendar inserts failed", len(result.failures))
            raise CalendarInsertError([f.reason for f in result.failures], result=result)

        if result.failures:
            result.state = BatchState.PARTIALLY_SUCCEEDED
            logger.warning(
                "Calendar insert partially succeeded: %d inserted, %d failed",
                len(result.inserted),
                len(result.failures),
            )
        else:
            result.state = BatchState.SUCCEEDED
            logger.info("Inserted %d events into calendar", len(result.inserted))
        return result

    def call(
        self,
        operation: Callable[[CalendarGateway], T],
        access_token: str,
        refresh_token: str | None = None,
    ) -> tuple[T, str | None]:
        """
        カレンダー読み取り系の呼び出しを同じ再試行ポリシーで実行する。

        Returns:
            (結果, リフレッシュ後のアクセストークン or None)
        """
        result = CalendarWriteResult(state=BatchState.INSERTING)
        value = self._with_auth_retry(operation, access_token, refresh_token, result)
        return value, result.refreshed_access_token

    def _with_auth_retry(
        self,
        operation: Callable[[CalendarGateway], T],
        access_token: str,
        refresh_token: str | None,
        result: CalendarWriteResult,
    ) -> T:
        token = access_token
        retries = 0
        while True:
            try:
                return operation(self._gateway_factory(token))
            except AuthExpiredError:
                if not refresh_token or retries >= MAX_AUTH_RETRIES:
                    result.state = BatchState.FAILED
                    logger.warning("Calendar authentication failed, not retrying")
                    raise
                retries += 1
                result.state = BatchState.REFRESHING_TOKEN
                logger.info("Access token rejected, refreshing (retry %d/%d)", retries, MAX_AUTH_RETRIES)
                token = self._refresher.refresh(refresh_token)
                result.refreshed_access_token = token
                result.state = BatchState.INSERTING

    def _insert_pending(
        self,
        gateway: CalendarGateway,
        pending: deque[Event],
        result: CalendarWriteResult,
    ) -> None:
        # 認証エラー時は該当イベントを pending の先頭に残したまま抜ける
        while pending:
            event = pending[0]
            error = _validation_error(event)
            if error:
                logger.warning("Skipping event: %s", error)
                result.failures.append(InsertFailure(event=event, reason=error))
                pending.popleft()
                continue

            try:
                event_id = gateway.insert_event(
                    self._calendar_id, build_event_body(event, self._timezone)
                )
            except AuthExpiredError:
                raise
            except Exception as e:
                logger.warning("Failed to insert event %s: %s", event.title, e)
                result.failures.append(
                    InsertFailure(event=event, reason=f"Error adding event {event.title}: {e}")
                )
            else:
                logger.debug("Inserted event %s -> %s", event.title, event_id)
                result.inserted.append(InsertedEvent(event=event, calendar_event_id=event_id))
            pending.popleft()
