"""DocumentNormalizer - アップロードファイルを抽出用の画像1枚に変換する

- image/*: 元のバイト列をそのまま base64 化
- application/pdf: 1ページ目のみを 1.5 倍・JPEG 品質 95 でラスタライズ
- それ以外: UnsupportedFileTypeError
"""

from __future__ import annotations

import base64
import logging

from syllascan.domain.errors import UnsupportedFileTypeError
from syllascan.domain.models import NormalizedImage, UploadedFile
from syllascan.domain.ports import PageRenderer

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PDF_RENDER_SCALE = 1.5
PDF_JPEG_QUALITY = 95


class DocumentNormalizer:
    """アップロードファイル → NormalizedImage の変換"""

    def __init__(self, renderer: PageRenderer) -> None:
        """
        Args:
            renderer: PDF ラスタライザ（PyMuPdfRenderer 等）
        """
        self._renderer = renderer

    def normalize(self, file: UploadedFile) -> NormalizedImage:
        """
        ファイルを base64 画像に変換する。

        Raises:
            UnsupportedFileTypeError: 画像・PDF 以外
            RenderingFailureError: PDF のラスタライズに失敗
        """
        mime_type = (file.mime_type or "").lower()

        if mime_type.startswith("image/"):
            logger.debug("Image file %s passed through (%d bytes)", file.filename, len(file.content))
            return NormalizedImage(
                base64_data=base64.b64encode(file.content).decode("ascii"),
                mime_type=mime_type,
            )

        if mime_type == PDF_MIME_TYPE:
            jpeg = self._renderer.render_first_page(
                file.content, scale=PDF_RENDER_SCALE, jpeg_quality=PDF_JPEG_QUALITY
            )
            logger.info(
                "Rendered first page of %s: %d bytes -> %d bytes JPEG",
                file.filename,
                len(file.content),
                len(jpeg),
            )
            return NormalizedImage(
                base64_data=base64.b64encode(jpeg).decode("ascii"),
                mime_type="image/jpeg",
            )

        raise UnsupportedFileTypeError(file.mime_type)
