"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- MagicMock(spec=ABC) でABCのメソッドシグネチャを保持
"""

from unittest.mock import MagicMock

import pytest

from syllascan.domain.models import (
    ApiUsage,
    CandidateEvent,
    Event,
    EventType,
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


# ========== サンプルデータ ==========


@pytest.fixture
def sample_pdf_file() -> UploadedFile:
    """サンプル PDF アップロード"""
    return UploadedFile(filename="syllabus.pdf", mime_type="application/pdf", content=b"%PDF-1.4 fake")


@pytest.fixture
def sample_image_file() -> UploadedFile:
    """サンプル画像アップロード"""
    return UploadedFile(filename="schedule.png", mime_type="image/png", content=b"\x89PNG fake")


@pytest.fixture
def sample_candidate() -> CandidateEvent:
    """サンプル候補イベント（時刻指定）"""
    return CandidateEvent(
        title="Midterm Exam",
        description="Covers chapters 1-5",
        date="2024-09-10",
        start_time="14:30",
        end_time="16:00",
        location="Room 101",
    )


@pytest.fixture
def sample_timed_event() -> Event:
    """サンプル正規化済みイベント（時刻指定）"""
    return Event(
        id="evt-1",
        title="Midterm Exam",
        description="Covers chapters 1-5",
        date="2024-09-10",
        start_date="2024-09-10T14:30:00",
        end_date="2024-09-10T16:00:00",
        start_time="14:30",
        end_time="16:00",
        is_all_day=False,
        location="Room 101",
        type=EventType.EXAM,
        source_file="syllabus.pdf",
        source_file_type="application/pdf",
    )


@pytest.fixture
def sample_all_day_event() -> Event:
    """サンプル正規化済みイベント（終日）"""
    return Event(
        id="evt-2",
        title="Essay due",
        description="",
        date="2024-10-01",
        start_date="2024-10-01",
        end_date="2024-10-01",
        is_all_day=True,
        type=EventType.ASSIGNMENT,
        source_file="syllabus.pdf",
        source_file_type="application/pdf",
    )


# ========== モック ==========


@pytest.fixture
def mock_renderer() -> MagicMock:
    """PageRenderer のモック"""
    renderer = MagicMock(spec=PageRenderer)
    renderer.render_first_page.return_value = b"\xff\xd8jpeg"
    return renderer


@pytest.fixture
def mock_extractor(sample_candidate) -> MagicMock:
    """EventExtractor のモック"""
    extractor = MagicMock(spec=EventExtractor)
    extractor.extract.return_value = [sample_candidate]
    return extractor


@pytest.fixture
def mock_gateway() -> MagicMock:
    """CalendarGateway のモック"""
    gateway = MagicMock(spec=CalendarGateway)
    gateway.insert_event.side_effect = lambda calendar_id, body: f"gcal-{body['summary']}"
    return gateway


@pytest.fixture
def mock_refresher() -> MagicMock:
    """TokenRefresher のモック"""
    refresher = MagicMock(spec=TokenRefresher)
    refresher.refresh.return_value = "new-access-token"
    return refresher


@pytest.fixture
def mock_history_repo() -> MagicMock:
    """HistoryRepository のモック"""
    repo = MagicMock(spec=HistoryRepository)
    repo.add.return_value = "history-id"
    repo.list_for_user.return_value = []
    return repo


@pytest.fixture
def mock_usage_repo() -> MagicMock:
    """UsageRepository のモック（無料枠未使用・個人キーなし）"""
    repo = MagicMock(spec=UsageRepository)
    repo.get_usage.return_value = ApiUsage(user_id="test-user-uid")
    repo.increment_usage.return_value = 1
    return repo
