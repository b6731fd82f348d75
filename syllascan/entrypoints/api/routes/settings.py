"""ユーザー設定 API ルート

GET  /api/settings/usage    → { usageCount, hasCustomKey, freeLimit }
POST /api/settings/api-key  → 個人 OpenAI APIキーを検証して保存
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from syllascan.adapters.openai_vision import verify_openai_api_key
from syllascan.config import AppConfig
from syllascan.domain.ports import UsageRepository
from syllascan.entrypoints.api.deps import AuthInfo, get_auth_info, get_config, get_usage_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/settings", tags=["settings"])

_OPENAI_KEY_PREFIX = "sk-"


class UsageResponse(BaseModel):
    usageCount: int
    hasCustomKey: bool
    freeLimit: int


class ApiKeyRequest(BaseModel):
    apiKey: str | None = None


@router.get("/usage", response_model=UsageResponse)
def get_usage(
    auth: AuthInfo = Depends(get_auth_info),
    usage_repo: UsageRepository = Depends(get_usage_repo),
    config: AppConfig = Depends(get_config),
) -> UsageResponse:
    """利用回数と個人キーの登録状況を返す"""
    usage = usage_repo.get_usage(auth.uid)
    return UsageResponse(
        usageCount=usage.usage_count,
        hasCustomKey=usage.has_custom_key,
        freeLimit=config.free_usage_limit,
    )


@router.post("/api-key")
def save_api_key(
    body: ApiKeyRequest,
    auth: AuthInfo = Depends(get_auth_info),
    usage_repo: UsageRepository = Depends(get_usage_repo),
) -> JSONResponse:
    """個人APIキーを検証して保存する"""
    api_key = (body.apiKey or "").strip()
    if not api_key.startswith(_OPENAI_KEY_PREFIX):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid API key format"},
        )

    if not verify_openai_api_key(api_key):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid API key. Please check and try again."},
        )

    usage_repo.save_custom_api_key(auth.uid, auth.email, api_key)
    logger.info("API key updated: uid=%s", auth.uid)
    return JSONResponse(content={"success": True, "message": "API key saved successfully"})
