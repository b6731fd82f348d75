"""Gemini Event Extractor Adapter

EventExtractor ABCの実装。

vertexai.init() はコンストラクタから分離されており、
呼び出し側（factory等）が事前に初期化した GenerativeModel を渡す。
"""

import base64
import logging

import vertexai.preview.generative_models as generative_models
from google.api_core import exceptions as google_exceptions
from vertexai.generative_models import GenerativeModel, Part

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


def _map_api_error(e: google_exceptions.GoogleAPICallError) -> ExtractionError:
    if isinstance(e, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return RateLimitedError(f"Gemini rate limit exceeded: {e.message}")
    if isinstance(e, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
        return InvalidCredentialError(f"Gemini credentials rejected: {e.message}")
    if isinstance(e, (google_exceptions.InvalidArgument, google_exceptions.BadRequest)):
        return BadRequestError(f"Gemini rejected the request: {e.message}")
    return ExtractionError(f"Gemini request failed: {e.message}")


class GeminiEventExtractor(EventExtractor):
    """
    Gemini を使った画像からのイベント抽出。

    初期化済みの GenerativeModel を受け取るため、テスト時はモックに差し替えられる。
    """

    def __init__(self, model: GenerativeModel) -> None:
        """
        Args:
            model: 初期化済みの GenerativeModel インスタンス。
                   呼び出し側で vertexai.init() を実行してから渡すこと。
        """
        if model is None:
            raise ValueError("model is required")

        self._model = model

    def extract(self, image: NormalizedImage) -> list[CandidateEvent]:
        """
        画像からイベント候補を抽出する。

        Raises:
            RateLimitedError / InvalidCredentialError / BadRequestError / ExtractionError
        """
        image_part = Part.from_data(
            data=base64.b64decode(image.base64_data), mime_type=image.mime_type
        )

        generation_config = {
            "max_output_tokens": 8192,
            "temperature": 0.2,
            "top_p": 0.95,
            "response_mime_type": "application/json",
        }

        HarmCategory = generative_models.HarmCategory
        HarmBlock = generative_models.HarmBlockThreshold
        safety_settings = {
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlock.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlock.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlock.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlock.BLOCK_MEDIUM_AND_ABOVE,
        }

        try:
            response = self._model.generate_content(
                [image_part, EXTRACTION_PROMPT],
                generation_config=generation_config,
                safety_settings=safety_settings,
                stream=False,
            )
        except google_exceptions.GoogleAPICallError as e:
            logger.warning("Gemini API error: %s", e)
            raise _map_api_error(e) from e

        # トークン使用量をログに記録
        usage = getattr(response, "usage_metadata", None)
        if usage:
            logger.info(
                "Gemini token usage: input=%d, output=%d, total=%d",
                usage.prompt_token_count,
                usage.candidates_token_count,
                usage.total_token_count,
            )

        try:
            text = response.text
        except ValueError:
            # 安全フィルタ等で候補が空の場合 .text は ValueError
            logger.warning("Gemini returned no text candidates")
            return []

        return parse_candidate_events(text)
