"""PyMuPDF Page Renderer Adapter

PageRenderer ABCの実装。PDF の1ページ目を JPEG に変換する。
"""

import io
import logging

import pymupdf
from PIL import Image

from syllascan.domain.errors import RenderingFailureError
from syllascan.domain.ports import PageRenderer

logger = logging.getLogger(__name__)


class PyMuPdfRenderer(PageRenderer):
    """PyMuPDF でラスタライズし、Pillow で JPEG エンコードする"""

    def render_first_page(self, data: bytes, scale: float, jpeg_quality: int) -> bytes:
        """
        Raises:
            RenderingFailureError: PDF が開けない・0ページ・描画失敗
        """
        try:
            doc = pymupdf.open(stream=data, filetype="pdf")
        except Exception as e:
            raise RenderingFailureError(f"Failed to open PDF: {e}") from e

        try:
            if doc.page_count == 0:
                raise RenderingFailureError("PDF has no pages")

            page = doc.load_page(0)
            pix = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)
            image = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)

            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=jpeg_quality)
            logger.debug("Rendered PDF page 1 at %.1fx: %dx%d", scale, pix.width, pix.height)
            return buffer.getvalue()
        except RenderingFailureError:
            raise
        except Exception as e:
            raise RenderingFailureError(f"Failed to render PDF: {e}") from e
        finally:
            doc.close()
