"""OpenAI Vision Event Extractor Adapter

EventExtractor ABCの実装。ユーザーの個人APIキー利用時、
または EXTRACTOR_PROVIDER=openai の場合に使用する。
"""

import logging

import openai

from syllascan.domain.errors import (
    BadRequestError,
    ExtractionError,
    InvalidCredentialError,
    RateLimitedError,
)
from syllascan.domain.models import CandidateEvent, NormalizedImage
from syllascan.domain.ports import EventExtractor
from syllascan.services.extraction import EXTRACTION_PROMPT, parse_candidate_events

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 4096


def _map_api_error(e: openai.APIError) -> ExtractionError:
    if isinstance(e, openai.RateLimitError):
        return RateLimitedError(f"OpenAI rate limit exceeded: {e}")
    if isinstance(e, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return InvalidCredentialError(f"OpenAI API key rejected: {e}")
    if isinstance(e, openai.BadRequestError):
        return BadRequestError(f"OpenAI rejected the request: {e}")
    return ExtractionError(f"OpenAI request failed: {e}")


class OpenAIEventExtractor(EventExtractor):
    """OpenAI Chat Completions（画像入力）を使ったイベント抽出"""

    def __init__(self, client: openai.OpenAI, model: str = "gpt-4o") -> None:
        """
        Args:
            client: APIキー設定済みの OpenAI クライアント
            model: モデル名（例: gpt-4o）
        """
        if client is None:
            raise ValueError("client is required")

        self._client = client
        self._model = model

    def extract(self, image: NormalizedImage) -> list[CandidateEvent]:
        data_url = f"data:{image.mime_type};base64,{image.base64_data}"
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                max_tokens=MAX_OUTPUT_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": EXTRACTION_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
            )
        except openai.APIError as e:
            logger.warning("OpenAI API error: %s", e)
            raise _map_api_error(e) from e

        if response.usage:
            logger.info(
                "OpenAI token usage: input=%d, output=%d, total=%d",
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
                response.usage.total_tokens,
            )

        if not response.choices:
            return []
        return parse_candidate_events(response.choices[0].message.content)


def verify_openai_api_key(api_key: str) -> bool:
    """
    APIキーが有効かをモデル一覧の取得で確認する。

    Returns:
        bool: 有効なら True（認証エラー・通信エラーは False）
    """
    try:
        openai.OpenAI(api_key=api_key).models.list()
    except openai.APIError as e:
        logger.info("OpenAI API key verification failed: %s", e)
        return False
    return True
