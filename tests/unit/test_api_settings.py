"""FastAPI ユーザー設定 API のユニットテスト

OpenAI へのキー検証は monkeypatch で差し替える。
"""

import pytest
from fastapi.testclient import TestClient

from syllascan.config import AppConfig
from syllascan.domain.models import ApiUsage
from syllascan.entrypoints.api.app import app
from syllascan.entrypoints.api.deps import (
    AuthInfo,
    get_auth_info,
    get_config,
    get_usage_repo,
)
from syllascan.entrypoints.api.routes import settings as settings_route

_UID = "test-user-uid"
_AUTH = AuthInfo(uid=_UID, email="student@example.com", display_name="Student")


@pytest.fixture
def client(mock_usage_repo):
    app.dependency_overrides[get_auth_info] = lambda: _AUTH
    app.dependency_overrides[get_usage_repo] = lambda: mock_usage_repo
    app.dependency_overrides[get_config] = lambda: AppConfig(free_usage_limit=5)

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestUsage:
    def test_returns_usage(self, client, mock_usage_repo):
        mock_usage_repo.get_usage.return_value = ApiUsage(
            user_id=_UID, usage_count=3, custom_api_key="sk-abc"
        )

        response = client.get("/api/settings/usage")

        assert response.status_code == 200
        assert response.json() == {"usageCount": 3, "hasCustomKey": True, "freeLimit": 5}

    def test_new_user(self, client):
        assert client.get("/api/settings/usage").json() == {
            "usageCount": 0,
            "hasCustomKey": False,
            "freeLimit": 5,
        }


class TestSaveApiKey:
    def test_saves_verified_key(self, client, mock_usage_repo, monkeypatch):
        monkeypatch.setattr(settings_route, "verify_openai_api_key", lambda key: True)

        response = client.post("/api/settings/api-key", json={"apiKey": " sk-valid "})

        assert response.status_code == 200
        assert response.json()["success"] is True
        mock_usage_repo.save_custom_api_key.assert_called_once_with(
            _UID, "student@example.com", "sk-valid"
        )

    @pytest.mark.parametrize("body", [{}, {"apiKey": ""}, {"apiKey": "not-a-key"}])
    def test_bad_format_returns_400(self, client, mock_usage_repo, monkeypatch, body):
        verify_calls = []
        monkeypatch.setattr(settings_route, "verify_openai_api_key", verify_calls.append)

        response = client.post("/api/settings/api-key", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid API key format"}
        assert verify_calls == []
        mock_usage_repo.save_custom_api_key.assert_not_called()

    def test_rejected_key_returns_400(self, client, mock_usage_repo, monkeypatch):
        monkeypatch.setattr(settings_route, "verify_openai_api_key", lambda key: False)

        response = client.post("/api/settings/api-key", json={"apiKey": "sk-invalid"})

        assert response.status_code == 400
        mock_usage_repo.save_custom_api_key.assert_not_called()
