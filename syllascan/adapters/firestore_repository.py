"""Firestore Repository Adapter

HistoryRepository と UsageRepository の Firestore 実装。

Firestore コレクション構造:
  processingHistory/{historyId}   ← カレンダー登録の処理履歴（userId で検索）
  apiUsage/{uid}                  ← 利用回数・個人APIキー
"""

from __future__ import annotations

import logging

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from syllascan.domain.models import ApiUsage, HistoryStatus, ProcessingHistoryRecord
from syllascan.domain.ports import HistoryRepository, UsageRepository

logger = logging.getLogger(__name__)

_HISTORY = "processingHistory"
_API_USAGE = "apiUsage"


class FirestoreHistoryRepository(HistoryRepository):
    """processingHistory コレクションの Firestore 実装"""

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def add(self, record: ProcessingHistoryRecord) -> str:
        """履歴を追加。自動生成IDを返す"""
        ref = self._db.collection(_HISTORY).document()
        ref.set(self._record_to_dict(record))
        logger.info(
            "Added processing history: uid=%s, id=%s, file=%s",
            record.user_id,
            ref.id,
            record.file_name,
        )
        return ref.id

    def list_for_user(self, user_id: str, limit: int = 20) -> list[ProcessingHistoryRecord]:
        """ユーザーの履歴を新しい順で取得。コレクション未作成なら空リスト"""
        try:
            snaps = (
                self._db.collection(_HISTORY)
                .where("userId", "==", user_id)
                .order_by("processedAt", direction=firestore.Query.DESCENDING)
                .limit(limit)
                .stream()
            )
            return [self._dict_to_record(snap.id, snap.to_dict()) for snap in snaps]
        except NotFound:
            logger.info("processingHistory collection not found, returning empty history")
            return []

    def get(self, record_id: str) -> ProcessingHistoryRecord | None:
        """履歴を取得。存在しない場合は None を返す"""
        snap = self._db.collection(_HISTORY).document(record_id).get()
        if not snap.exists:
            return None
        return self._dict_to_record(snap.id, snap.to_dict())

    def delete(self, record_id: str) -> None:
        self._db.collection(_HISTORY).document(record_id).delete()
        logger.info("Deleted processing history: id=%s", record_id)

    @staticmethod
    def _record_to_dict(record: ProcessingHistoryRecord) -> dict:
        data = record.to_dict()
        data.pop("id")
        return data

    @staticmethod
    def _dict_to_record(record_id: str, data: dict) -> ProcessingHistoryRecord:
        try:
            status = HistoryStatus(data.get("status", "success"))
        except ValueError:
            logger.warning("Invalid history status: %s, using failed", data.get("status"))
            status = HistoryStatus.FAILED
        return ProcessingHistoryRecord(
            id=record_id,
            user_id=data.get("userId", ""),
            file_name=data.get("fileName", ""),
            file_type=data.get("fileType", ""),
            event_count=int(data.get("eventCount", 0)),
            status=status,
            processed_at=str(data.get("processedAt", "")),
        )


@firestore.transactional
def _increment_in_transaction(
    transaction: firestore.Transaction,
    ref: firestore.DocumentReference,
    user_id: str,
    email: str,
) -> int:
    snap = ref.get(transaction=transaction)
    if snap.exists:
        count = int((snap.to_dict() or {}).get("usageCount", 0)) + 1
        transaction.update(
            ref,
            {"usageCount": count, "lastUsed": firestore.SERVER_TIMESTAMP},
        )
    else:
        count = 1
        transaction.set(
            ref,
            {
                "userId": user_id,
                "email": email,
                "usageCount": count,
                "lastUsed": firestore.SERVER_TIMESTAMP,
                "createdAt": firestore.SERVER_TIMESTAMP,
            },
        )
    return count


class FirestoreUsageRepository(UsageRepository):
    """apiUsage コレクションの Firestore 実装"""

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def get_usage(self, user_id: str) -> ApiUsage:
        snap = self._db.collection(_API_USAGE).document(user_id).get()
        if not snap.exists:
            return ApiUsage(user_id=user_id)
        data = snap.to_dict() or {}
        return ApiUsage(
            user_id=user_id,
            usage_count=int(data.get("usageCount", 0)),
            custom_api_key=data.get("customApiKey") or None,
        )

    def increment_usage(self, user_id: str, email: str) -> int:
        """読み取り→更新をトランザクション内で行い、同時リクエストでの取りこぼしを防ぐ"""
        ref = self._db.collection(_API_USAGE).document(user_id)
        count = _increment_in_transaction(self._db.transaction(), ref, user_id, email)
        logger.info("Incremented API usage: uid=%s, count=%d", user_id, count)
        return count

    def save_custom_api_key(self, user_id: str, email: str, api_key: str) -> None:
        self._db.collection(_API_USAGE).document(user_id).set(
            {
                "userId": user_id,
                "email": email,
                "customApiKey": api_key,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
            merge=True,
        )
        logger.info("Saved custom API key: uid=%s", user_id)
