"""FastAPI 依存性注入

Firebase Auth JWT 検証、カレンダー用 OAuth トークンの解決、
Firestore リポジトリ・サービスの生成を担当する。
各ルートは Depends() でこのモジュールの関数を呼び出す。テストでは
app.dependency_overrides で差し替える。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import firebase_admin
import firebase_admin.auth as fb_auth
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import credentials as fb_creds
from google.cloud import firestore
from starlette.concurrency import run_in_threadpool

from syllascan.adapters.firestore_repository import (
    FirestoreHistoryRepository,
    FirestoreUsageRepository,
)
from syllascan.config import AppConfig
from syllascan.domain.ports import HistoryRepository, UsageRepository
from syllascan.entrypoints.factory import create_calendar_writer, create_pipeline
from syllascan.services.batch_pipeline import BatchPipeline
from syllascan.services.calendar_writer import CalendarWriter

logger = logging.getLogger(__name__)

FIREBASE_TOKEN_HEADER = "X-Firebase-Token"
ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"


# ── アプリケーションリソース ────────────────────────────────────────────────────


class AppResources:
    """
    プロセス内で共有する設定と外部クライアント。

    起動時に app.state.resources に格納される。Firestore クライアントは
    最初に必要になった時点で生成する。
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._firestore_client: firestore.Client | None = None
        self._firebase_app: firebase_admin.App | None = None

    @property
    def firestore_client(self) -> firestore.Client:
        if self._firestore_client is None:
            self._firestore_client = firestore.Client(project=self.config.project_id or None)
            logger.info("Firestore client initialized")
        return self._firestore_client

    def firebase_app(self) -> firebase_admin.App:
        if self._firebase_app is None:
            try:
                # 既に初期化済み
                self._firebase_app = firebase_admin.get_app()
            except ValueError:
                project_id = self.config.project_id
                self._firebase_app = firebase_admin.initialize_app(
                    fb_creds.ApplicationDefault(),
                    options={"projectId": project_id} if project_id else {},
                )
                logger.info("Firebase Admin initialized project=%s", project_id)
        return self._firebase_app


def get_resources(request: Request) -> AppResources:
    return request.app.state.resources


def get_config(resources: AppResources = Depends(get_resources)) -> AppConfig:
    return resources.config


# ── 認証 ────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthInfo:
    """Firebase Auth JWT から取得した認証情報"""

    uid: str
    email: str
    display_name: str


_bearer = HTTPBearer()
_optional_bearer = HTTPBearer(auto_error=False)


def _verify_firebase_token(resources: AppResources, id_token: str) -> AuthInfo:
    resources.firebase_app()
    decoded = fb_auth.verify_id_token(id_token)
    return AuthInfo(
        uid=decoded["uid"],
        email=decoded.get("email", ""),
        display_name=decoded.get("name", ""),
    )


async def get_auth_info(
    creds: HTTPAuthorizationCredentials = Depends(_bearer),
    resources: AppResources = Depends(get_resources),
) -> AuthInfo:
    """
    Authorization: Bearer <id_token> ヘッダーを検証して AuthInfo を返す。

    Raises:
        HTTPException(401): トークンが無効な場合
    """
    try:
        return await run_in_threadpool(_verify_firebase_token, resources, creds.credentials)
    except Exception as e:
        logger.warning("Invalid Firebase ID token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase ID token",
        ) from e


async def get_optional_auth_info(
    request: Request,
    resources: AppResources = Depends(get_resources),
) -> AuthInfo | None:
    """
    X-Firebase-Token ヘッダーからユーザーを識別する（任意）。

    カレンダー API では Authorization ヘッダーを Google のアクセストークンに使うため、
    履歴記録用のユーザー識別は別ヘッダーで受け取る。無効なトークンは未ログイン扱い。
    """
    id_token = request.headers.get(FIREBASE_TOKEN_HEADER)
    if not id_token:
        return None
    try:
        return await run_in_threadpool(_verify_firebase_token, resources, id_token)
    except Exception as e:
        logger.warning("Ignoring invalid %s header: %s", FIREBASE_TOKEN_HEADER, e)
        return None


# ── カレンダー用 OAuth トークン ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CalendarTokens:
    """Google Calendar API 用の OAuth トークン"""

    access_token: str
    refresh_token: str | None


async def get_calendar_tokens(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_optional_bearer),
) -> CalendarTokens:
    """
    Authorization: Bearer ヘッダー、なければ access_token Cookie からアクセストークンを取得。
    リフレッシュトークンは refresh_token Cookie から取得する。

    Raises:
        HTTPException(401): アクセストークンがない場合
    """
    access_token = creds.credentials if creds else request.cookies.get(ACCESS_TOKEN_COOKIE)
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE) or None

    if not access_token:
        # アクセストークンが失効済みでもリフレッシュトークンがあれば再発行を試みる
        if refresh_token:
            return CalendarTokens(access_token="", refresh_token=refresh_token)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated with Google",
        )
    return CalendarTokens(access_token=access_token, refresh_token=refresh_token)


# ── リポジトリ・サービス依存 ───────────────────────────────────────────────────


def get_history_repo(resources: AppResources = Depends(get_resources)) -> HistoryRepository:
    """HistoryRepository を返す依存関数"""
    return FirestoreHistoryRepository(resources.firestore_client)


def get_usage_repo(resources: AppResources = Depends(get_resources)) -> UsageRepository:
    """UsageRepository を返す依存関数"""
    return FirestoreUsageRepository(resources.firestore_client)


def get_pipeline_factory(
    config: AppConfig = Depends(get_config),
) -> Callable[[str | None], BatchPipeline]:
    """APIキー（None ならサーバーのデフォルト）→ BatchPipeline を返す依存関数"""

    def factory(api_key: str | None) -> BatchPipeline:
        return create_pipeline(config, api_key=api_key)

    return factory


def get_calendar_writer(config: AppConfig = Depends(get_config)) -> CalendarWriter:
    """CalendarWriter を返す依存関数"""
    return create_calendar_writer(config)


def get_optional_history_repo(
    auth: AuthInfo | None = Depends(get_optional_auth_info),
    resources: AppResources = Depends(get_resources),
) -> HistoryRepository | None:
    """ユーザーを識別できた場合のみ HistoryRepository を返す依存関数"""
    if auth is None:
        return None
    return FirestoreHistoryRepository(resources.firestore_client)
