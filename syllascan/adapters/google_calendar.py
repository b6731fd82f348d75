"""Google Calendar Gateway Adapter

CalendarGateway ABCの実装。1インスタンスが1つのアクセストークンに対応する。
認証エラー（401 / invalid_grant）は AuthExpiredError に変換し、
呼び出し側がリフレッシュ→再試行を判断する。
"""

import logging

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from syllascan.domain.errors import AuthExpiredError, CalendarApiError
from syllascan.domain.ports import CalendarGateway

logger = logging.getLogger(__name__)


def is_auth_error(e: Exception) -> bool:
    """プロバイダがアクセストークンを拒否したか"""
    if isinstance(e, RefreshError):
        return True
    if isinstance(e, HttpError) and e.resp is not None and e.resp.status == 401:
        return True
    return "invalid_grant" in str(e)


def _translate(e: Exception) -> Exception:
    if is_auth_error(e):
        return AuthExpiredError(f"Google Calendar authentication failed: {e}")
    return CalendarApiError(f"Google Calendar API error: {e}")


class GoogleCalendarGateway(CalendarGateway):
    """Google Calendar API v3 を使ったカレンダー操作"""

    def __init__(self, access_token: str) -> None:
        """
        Args:
            access_token: ユーザーの OAuth アクセストークン
        """
        if not access_token:
            raise AuthExpiredError("access token is required")

        credentials = Credentials(token=access_token)
        self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)

    def insert_event(self, calendar_id: str, body: dict) -> str:
        try:
            created = (
                self._service.events().insert(calendarId=calendar_id, body=body).execute()
            )
        except (HttpError, RefreshError) as e:
            raise _translate(e) from e

        event_id: str = created.get("id", "")
        logger.info("Created calendar event: %s (%s)", body.get("summary"), event_id)
        return event_id

    def list_calendars(self) -> list[dict]:
        try:
            response = self._service.calendarList().list().execute()
        except (HttpError, RefreshError) as e:
            raise _translate(e) from e
        return response.get("items", [])

    def get_calendar(self, calendar_id: str) -> dict:
        try:
            return self._service.calendars().get(calendarId=calendar_id).execute()
        except (HttpError, RefreshError) as e:
            raise _translate(e) from e

    def list_events(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        max_results: int = 100,
    ) -> list[dict]:
        try:
            response = (
                self._service.events()
                .list(
                    calendarId=calendar_id,
                    timeMin=time_min,
                    timeMax=time_max,
                    maxResults=max_results,
                    singleEvents=True,
                    orderBy="startTime",
                )
                .execute()
            )
        except (HttpError, RefreshError) as e:
            raise _translate(e) from e
        return response.get("items", [])
