"""Factory - 依存性注入の組み立て

Adapter と Service を組み立てる。API・CLI の両方から使用する。
"""

import logging

import openai
import vertexai
from vertexai.generative_models import GenerativeModel

from syllascan.adapters.gemini import GeminiEventExtractor
from syllascan.adapters.google_calendar import GoogleCalendarGateway
from syllascan.adapters.google_oauth import GoogleTokenRefresher
from syllascan.adapters.openai_vision import OpenAIEventExtractor
from syllascan.adapters.pdf_renderer import PyMuPdfRenderer
from syllascan.config import AppConfig
from syllascan.domain.errors import ConfigurationError
from syllascan.domain.ports import EventExtractor
from syllascan.services.batch_pipeline import BatchPipeline
from syllascan.services.calendar_writer import CalendarWriter
from syllascan.services.document_normalizer import DocumentNormalizer

logger = logging.getLogger(__name__)


def create_extractor(config: AppConfig, api_key: str | None = None) -> EventExtractor:
    """
    EventExtractor を生成する。

    ユーザーの個人APIキーが渡された場合は常に OpenAI を使用し、
    それ以外は EXTRACTOR_PROVIDER（gemini / openai）に従う。

    Raises:
        ConfigurationError: 選択したプロバイダの設定が不足している場合
    """
    if api_key:
        logger.info("Using OpenAI extractor with user API key")
        return OpenAIEventExtractor(openai.OpenAI(api_key=api_key), model=config.openai_model)

    if config.extractor_provider == "openai":
        if not config.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY must be set when EXTRACTOR_PROVIDER=openai")
        return OpenAIEventExtractor(
            openai.OpenAI(api_key=config.openai_api_key), model=config.openai_model
        )

    if config.extractor_provider != "gemini":
        raise ConfigurationError(f"Unknown EXTRACTOR_PROVIDER: {config.extractor_provider}")
    if not config.project_id:
        raise ConfigurationError("PROJECT_ID must be set for the Gemini extractor")

    vertexai.init(project=config.project_id, location=config.vertex_ai_location)
    model = GenerativeModel(config.gemini_model)
    logger.info("Using Gemini extractor: model=%s", config.gemini_model)
    return GeminiEventExtractor(model=model)


def create_pipeline(config: AppConfig, api_key: str | None = None) -> BatchPipeline:
    """BatchPipeline を生成（全依存を組み立て）"""
    return BatchPipeline(
        normalizer=DocumentNormalizer(PyMuPdfRenderer()),
        extractor=create_extractor(config, api_key=api_key),
    )


def create_calendar_writer(config: AppConfig) -> CalendarWriter:
    """
    CalendarWriter を生成する。

    OAuth クライアント情報の不足はリフレッシュが必要になった時点で
    ConfigurationError になる。
    """
    return CalendarWriter(
        gateway_factory=GoogleCalendarGateway,
        token_refresher=GoogleTokenRefresher(
            client_id=config.google_client_id,
            client_secret=config.google_client_secret,
        ),
        timezone=config.calendar_timezone,
    )
