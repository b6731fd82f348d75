"""Services layer - ビジネスロジック"""

from syllascan.services.batch_pipeline import BatchPipeline
from syllascan.services.calendar_writer import CalendarWriter
from syllascan.services.document_normalizer import DocumentNormalizer
from syllascan.services.history import HistoryRecorder

__all__ = [
    "BatchPipeline",
    "CalendarWriter",
    "DocumentNormalizer",
    "HistoryRecorder",
]
