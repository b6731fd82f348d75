"""FastAPI アプリケーション

SyllaScan バックエンド API。シラバス等の PDF・画像からイベントを抽出し、
Google Calendar に登録する。

エンドポイント一覧:
  POST   /api/extract-events
  POST   /api/calendar
  GET    /api/calendar/list
  GET    /api/calendar/primary
  GET    /api/calendar/events
  GET    /api/history
  DELETE /api/history/{id}
  GET    /api/settings/usage
  POST   /api/settings/api-key
  GET    /health               ← 認証不要
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from syllascan.config import AppConfig
from syllascan.entrypoints.api.deps import FIREBASE_TOKEN_HEADER, AppResources
from syllascan.entrypoints.api.routes import calendar, extract, history, settings
from syllascan.logging_config import setup_logging

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    FastAPI アプリを生成する。

    Args:
        config: アプリケーション設定（Noneの場合は環境変数から読み込み）
    """
    config = config or AppConfig.from_env()

    app = FastAPI(
        title="SyllaScan API",
        description="シラバスからカレンダーイベントを抽出・登録するバックエンド API",
        version="1.0.0",
    )
    app.state.resources = AppResources(config)

    # ── グローバル例外ミドルウェア ──────────────────────────────────────────
    # add_middleware は後から登録したものが外側になる。
    # CORSMiddleware より先に登録し、500 レスポンスにも CORS ヘッダーを付与する。
    @app.middleware("http")
    async def _catch_unhandled_exceptions(
        request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception: %s %s - %s",
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    # ── CORS ────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", FIREBASE_TOKEN_HEADER],
    )

    # ── ルーター登録 ─────────────────────────────────────────────────────────
    _PREFIX = "/api"

    app.include_router(extract.router, prefix=_PREFIX)
    app.include_router(calendar.router, prefix=_PREFIX)
    app.include_router(history.router, prefix=_PREFIX)
    app.include_router(settings.router, prefix=_PREFIX)

    @app.get("/health")
    async def health() -> dict:
        """ヘルスチェックエンドポイント（Cloud Run の起動確認用）"""
        return {"status": "ok"}

    logger.info(
        "SyllaScan API created: provider=%s, local_mode=%s",
        config.extractor_provider,
        config.local_mode,
    )
    return app


app = create_app()
