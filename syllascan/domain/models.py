"""ドメインモデル - 外部依存なしのデータ構造"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class EventType(Enum):
    """イベントの種別"""

    EXAM = "exam"
    ASSIGNMENT = "assignment"
    DISCUSSION = "discussion"
    READING = "reading"
    CLASS = "class"

    @classmethod
    def parse(cls, value: Any) -> EventType | None:
        """文字列から EventType を解決。未知の値は None"""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class UploadedFile:
    """アップロードされたファイル（リクエスト単位で破棄される）"""

    filename: str  # 例: "syllabus.pdf"
    mime_type: str  # 例: "application/pdf", "image/png"
    content: bytes


@dataclass(frozen=True)
class NormalizedImage:
    """抽出用に正規化されたラスター画像"""

    base64_data: str
    mime_type: str  # PDF 由来は常に "image/jpeg"


def _optional_str(value: Any) -> str | None:
    """LLM 出力の値を Optional[str] として読む（暗黙の型変換はしない）"""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


@dataclass(frozen=True)
class CandidateEvent:
    """
    推論サービスが返した未検証のイベント。

    全フィールドが欠落・不正の可能性がある。正規化前に Event として扱ってはならない。
    """

    title: str | None = None
    description: str | None = None
    date: str | None = None
    start_date: str | None = None  # "startDate" キー（date の代替）
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    type: str | None = None
    all_day: bool | None = None  # "isAllDay" / "allDay" が bool の場合のみ

    @classmethod
    def from_raw(cls, raw: Any) -> CandidateEvent:
        """JSON 由来の dict から CandidateEvent を構築。dict 以外は空の候補"""
        if not isinstance(raw, dict):
            return cls()

        all_day = raw.get("isAllDay", raw.get("allDay"))
        return cls(
            title=_optional_str(raw.get("title")),
            description=_optional_str(raw.get("description")),
            date=_optional_str(raw.get("date")),
            start_date=_optional_str(raw.get("startDate")),
            start_time=_optional_str(raw.get("startTime")),
            end_time=_optional_str(raw.get("endTime")),
            location=_optional_str(raw.get("location")),
            type=_optional_str(raw.get("type")),
            all_day=all_day if isinstance(all_day, bool) else None,
        )


@dataclass(frozen=True)
class Event:
    """正規化済みイベント（カレンダー登録の単位）"""

    id: str
    title: str
    description: str = ""
    date: str = ""  # YYYY-MM-DD or 解析不能なら入力のまま
    start_date: str = ""  # "2024-09-10" or "2024-09-10T14:30:00"
    end_date: str = ""
    start_time: str = ""  # HH:MM（24時間）
    end_time: str = ""
    is_all_day: bool = True
    location: str = ""
    type: EventType = EventType.CLASS
    source_file: str = ""  # 例: "syllabus.pdf"
    source_file_type: str = ""  # 例: "application/pdf"

    def with_source(self, filename: str, mime_type: str) -> Event:
        """抽出元ファイル情報を付与したコピーを返す"""
        return replace(self, source_file=filename, source_file_type=mime_type)

    def to_dict(self) -> dict:
        """API レスポンス用の camelCase 辞書"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "isAllDay": self.is_all_day,
            "location": self.location,
            "type": self.type.value,
            "sourceFile": self.source_file,
            "sourceFileType": self.source_file_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Event:
        """
        ユーザー確認・編集後のイベント（camelCase）から Event を復元。

        title / startDate の必須チェックはカレンダー登録時に行うため、
        ここでは欠落値を空文字のまま保持する。
        """

        def text(key: str) -> str:
            return _optional_str(data.get(key)) or ""

        start_date = text("startDate")
        all_day = data.get("isAllDay")
        if not isinstance(all_day, bool):
            # 明示されていなければ時刻成分の有無で判断
            all_day = "T" not in start_date
        return cls(
            id=text("id"),
            title=text("title").strip(),
            description=text("description"),
            date=text("date"),
            start_date=start_date,
            end_date=text("endDate"),
            start_time=text("startTime"),
            end_time=text("endTime"),
            is_all_day=all_day,
            location=text("location"),
            type=EventType.parse(data.get("type")) or EventType.CLASS,
            source_file=text("sourceFile"),
            source_file_type=text("sourceFileType"),
        )


@dataclass(frozen=True)
class FileError:
    """ファイル単位の処理エラー（バッチ全体は中断しない）"""

    file: str
    error: str
    requires_key: bool = False

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"file": self.file, "error": self.error}
        if self.requires_key:
            data["requiresKey"] = True
        return data


@dataclass(frozen=True)
class BatchResult:
    """複数ファイル抽出の結果"""

    events: list[Event] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)

    @property
    def requires_key(self) -> bool:
        return any(e.requires_key for e in self.errors)


class BatchState(Enum):
    """カレンダー登録バッチの状態"""

    PENDING = "pending"
    INSERTING = "inserting"
    REFRESHING_TOKEN = "refreshing_token"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partially_succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InsertedEvent:
    """カレンダー登録に成功したイベント"""

    event: Event
    calendar_event_id: str


@dataclass(frozen=True)
class InsertFailure:
    """カレンダー登録に失敗（またはスキップ）したイベント"""

    event: Event
    reason: str


@dataclass
class CalendarWriteResult:
    """カレンダー登録バッチの結果"""

    inserted: list[InsertedEvent] = field(default_factory=list)
    failures: list[InsertFailure] = field(default_factory=list)
    state: BatchState = BatchState.PENDING
    refreshed_access_token: str | None = None  # リフレッシュした場合のみ

    @property
    def event_ids(self) -> list[str]:
        return [i.calendar_event_id for i in self.inserted]


class HistoryStatus(Enum):
    """処理履歴のステータス"""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessingHistoryRecord:
    """処理履歴（Firestore processingHistory に永続化）"""

    user_id: str  # Firebase Auth UID
    file_name: str
    file_type: str
    event_count: int
    status: HistoryStatus
    processed_at: str  # ISO8601 (UTC)
    id: str = ""  # Firestore ドキュメントID

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "eventCount": self.event_count,
            "status": self.status.value,
            "processedAt": self.processed_at,
        }


@dataclass(frozen=True)
class ApiUsage:
    """ユーザー単位の推論サービス利用状況（Firestore apiUsage）"""

    user_id: str
    usage_count: int = 0
    custom_api_key: str | None = None

    @property
    def has_custom_key(self) -> bool:
        return bool(self.custom_api_key)
