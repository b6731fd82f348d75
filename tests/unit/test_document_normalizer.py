"""DocumentNormalizer のテスト"""

import base64

import pytest

from syllascan.domain.errors import RenderingFailureError, UnsupportedFileTypeError
from syllascan.domain.models import UploadedFile
from syllascan.services.document_normalizer import (
    PDF_JPEG_QUALITY,
    PDF_RENDER_SCALE,
    DocumentNormalizer,
)


class TestDocumentNormalizer:
    def test_image_passes_through(self, mock_renderer, sample_image_file):
        """画像はそのまま base64 化される"""
        image = DocumentNormalizer(mock_renderer).normalize(sample_image_file)

        assert image.mime_type == "image/png"
        assert base64.b64decode(image.base64_data) == sample_image_file.content
        mock_renderer.render_first_page.assert_not_called()

    def test_pdf_first_page_rendered_as_jpeg(self, mock_renderer, sample_pdf_file):
        """PDF は1ページ目を JPEG にラスタライズ"""
        image = DocumentNormalizer(mock_renderer).normalize(sample_pdf_file)

        assert image.mime_type == "image/jpeg"
        assert base64.b64decode(image.base64_data) == b"\xff\xd8jpeg"
        mock_renderer.render_first_page.assert_called_once_with(
            sample_pdf_file.content, scale=PDF_RENDER_SCALE, jpeg_quality=PDF_JPEG_QUALITY
        )

    def test_unsupported_type_raises(self, mock_renderer):
        file = UploadedFile(filename="notes.txt", mime_type="text/plain", content=b"hello")

        with pytest.raises(UnsupportedFileTypeError, match="text/plain"):
            DocumentNormalizer(mock_renderer).normalize(file)

    def test_rendering_failure_propagates(self, mock_renderer, sample_pdf_file):
        mock_renderer.render_first_page.side_effect = RenderingFailureError("PDF has no pages")

        with pytest.raises(RenderingFailureError):
            DocumentNormalizer(mock_renderer).normalize(sample_pdf_file)
