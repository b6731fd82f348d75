"""Ports - サービスのインターフェース定義（ABC）

各Port（抽象基底クラス）は外部サービスとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。

ABC は実装漏れがインスタンス化時に即座に検出されるため、
テストでは MagicMock(spec=Port) でシグネチャを保ったモックを作る。
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from syllascan.domain.models import (
    ApiUsage,
    CandidateEvent,
    NormalizedImage,
    ProcessingHistoryRecord,
)


class PageRenderer(ABC):
    """PDF のラスタライズ（PyMuPDF等）"""

    @abstractmethod
    def render_first_page(
        self, data: bytes, scale: float, jpeg_quality: int
    ) -> bytes:
        """1ページ目を JPEG バイト列として返す"""
        pass


class EventExtractor(ABC):
    """画像からのイベント抽出（Gemini / OpenAI 等の Vision LLM）"""

    @abstractmethod
    def extract(self, image: NormalizedImage) -> list[CandidateEvent]:
        """画像1枚から候補イベントを抽出。イベントなし・解析不能は空リスト"""
        pass


class CalendarGateway(ABC):
    """カレンダープロバイダ（Google Calendar等）。1インスタンス = 1アクセストークン"""

    @abstractmethod
    def insert_event(self, calendar_id: str, body: dict) -> str:
        """イベントを1件登録し、作成されたイベントIDを返す"""
        pass

    @abstractmethod
    def list_calendars(self) -> list[dict]:
        """ユーザーのカレンダー一覧を返す"""
        pass

    @abstractmethod
    def get_calendar(self, calendar_id: str) -> dict:
        """カレンダー情報（id, summary 等）を返す"""
        pass

    @abstractmethod
    def list_events(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        max_results: int = 100,
    ) -> list[dict]:
        """期間内のイベントを開始時刻順で返す"""
        pass


class TokenRefresher(ABC):
    """OAuth2 リフレッシュトークンによるアクセストークン再発行"""

    @abstractmethod
    def refresh(self, refresh_token: str) -> str:
        """新しいアクセストークンを返す"""
        pass


class HistoryRepository(ABC):
    """処理履歴の永続化（Firestore等）"""

    @abstractmethod
    def add(self, record: ProcessingHistoryRecord) -> str:
        """履歴を追加し、生成されたIDを返す"""
        pass

    @abstractmethod
    def list_for_user(
        self, user_id: str, limit: int = 20
    ) -> list[ProcessingHistoryRecord]:
        """ユーザーの履歴を新しい順で返す"""
        pass

    @abstractmethod
    def get(self, record_id: str) -> ProcessingHistoryRecord | None:
        """履歴を取得。存在しない場合は None"""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """履歴を削除"""
        pass


class UsageRepository(ABC):
    """利用回数・個人APIキーの永続化（Firestore等）"""

    @abstractmethod
    def get_usage(self, user_id: str) -> ApiUsage:
        """利用状況を返す。未作成なら usage_count=0"""
        pass

    @abstractmethod
    def increment_usage(self, user_id: str, email: str) -> int:
        """利用回数をトランザクションで +1 し、更新後の値を返す"""
        pass

    @abstractmethod
    def save_custom_api_key(self, user_id: str, email: str, api_key: str) -> None:
        """個人APIキーを保存（マージ）"""
        pass
