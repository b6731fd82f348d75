"""処理履歴 API ルート

GET    /api/history       → 200 { records }
DELETE /api/history/{id}  → 200 { success, message } / 403 / 404
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from syllascan.domain.ports import HistoryRepository
from syllascan.entrypoints.api.deps import AuthInfo, get_auth_info, get_history_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/history", tags=["history"])

_HISTORY_LIMIT = 20


@router.get("")
def list_history(
    auth: AuthInfo = Depends(get_auth_info),
    history_repo: HistoryRepository = Depends(get_history_repo),
) -> dict:
    """ユーザーの処理履歴（新しい順）"""
    records = history_repo.list_for_user(auth.uid, limit=_HISTORY_LIMIT)
    return {"records": [r.to_dict() for r in records]}


@router.delete("/{record_id}")
def delete_history(
    record_id: str,
    auth: AuthInfo = Depends(get_auth_info),
    history_repo: HistoryRepository = Depends(get_history_repo),
) -> JSONResponse:
    """処理履歴を1件削除する（本人の履歴のみ）"""
    record = history_repo.get(record_id)
    if record is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "History record not found"},
        )
    if record.user_id != auth.uid:
        logger.warning("History delete denied: uid=%s, id=%s", auth.uid, record_id)
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": "Not allowed to delete this record"},
        )

    history_repo.delete(record_id)
    return JSONResponse(content={"success": True, "message": "History record deleted"})
