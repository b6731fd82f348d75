"""設定管理 - 環境変数の型安全な読み込み

設定の欠落でプロセス全体を落とさず、必要とするエンドポイントだけが
ConfigurationError を返す。
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

_DEFAULT_CORS_ORIGIN = "http://localhost:3000"


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""

    project_id: str = ""
    vertex_ai_location: str = "us-central1"
    gemini_model: str = "gemini-2.5-flash"
    extractor_provider: str = "gemini"  # "gemini" | "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    calendar_timezone: str = "America/Chicago"
    free_usage_limit: int = 5
    max_upload_files: int = 10
    max_upload_size_bytes: int = 10 * 1024 * 1024
    cors_origins: tuple[str, ...] = (_DEFAULT_CORS_ORIGIN,)
    local_mode: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む（欠落値はデフォルトのまま）"""
        load_dotenv()

        extra_origins = tuple(
            o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()
        )

        return cls(
            project_id=os.getenv("PROJECT_ID", ""),
            vertex_ai_location=os.getenv("VERTEX_AI_LOCATION", "us-central1"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            extractor_provider=os.getenv("EXTRACTOR_PROVIDER", "gemini").lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET", ""),
            google_redirect_uri=os.getenv("GOOGLE_REDIRECT_URI", ""),
            calendar_timezone=os.getenv("CALENDAR_TIMEZONE", "America/Chicago"),
            free_usage_limit=_int_env("FREE_USAGE_LIMIT", 5),
            max_upload_files=_int_env("MAX_UPLOAD_FILES", 10),
            max_upload_size_bytes=_int_env("MAX_UPLOAD_SIZE_MB", 10) * 1024 * 1024,
            cors_origins=extra_origins or (_DEFAULT_CORS_ORIGIN,),
            local_mode=bool(os.getenv("LOCAL_MODE")),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
