"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from syllascan.domain.errors import (
    ApiKeyRequiredError,
    AuthExpiredError,
    BadRequestError,
    CalendarApiError,
    CalendarInsertError,
    ConfigurationError,
    ExtractionError,
    InvalidCredentialError,
    RateLimitedError,
    RenderingFailureError,
    SyllaScanError,
    UnsupportedFileTypeError,
)
from syllascan.domain.models import (
    ApiUsage,
    BatchResult,
    BatchState,
    CalendarWriteResult,
    CandidateEvent,
    Event,
    EventType,
    FileError,
    HistoryStatus,
    InsertedEvent,
    InsertFailure,
    NormalizedImage,
    ProcessingHistoryRecord,
    UploadedFile,
)
from syllascan.domain.ports import (
    CalendarGateway,
    EventExtractor,
    HistoryRepository,
    PageRenderer,
    TokenRefresher,
    UsageRepository,
)

__all__ = [
    # Models
    "UploadedFile",
    "NormalizedImage",
    "CandidateEvent",
    "Event",
    "EventType",
    "FileError",
    "BatchResult",
    "BatchState",
    "InsertedEvent",
    "InsertFailure",
    "CalendarWriteResult",
    "HistoryStatus",
    "ProcessingHistoryRecord",
    "ApiUsage",
    # Errors
    "SyllaScanError",
    "ConfigurationError",
    "UnsupportedFileTypeError",
    "RenderingFailureError",
    "ExtractionError",
    "RateLimitedError",
    "InvalidCredentialError",
    "BadRequestError",
    "ApiKeyRequiredError",
    "AuthExpiredError",
    "CalendarApiError",
    "CalendarInsertError",
    # Ports
    "PageRenderer",
    "EventExtractor",
    "CalendarGateway",
    "TokenRefresher",
    "HistoryRepository",
    "UsageRepository",
]
