"""Google OAuth Token Refresher Adapter

TokenRefresher ABCの実装。
"""

import logging

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from syllascan.domain.errors import AuthExpiredError, ConfigurationError
from syllascan.domain.ports import TokenRefresher

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleTokenRefresher(TokenRefresher):
    """リフレッシュトークンから新しいアクセストークンを取得する"""

    def __init__(self, client_id: str, client_secret: str) -> None:
        self._client_id = client_id
        self._client_secret = client_secret

    def refresh(self, refresh_token: str) -> str:
        """
        Raises:
            ConfigurationError: OAuth クライアント情報が未設定
            AuthExpiredError: リフレッシュトークンが無効（invalid_grant 等）
        """
        if not self._client_id or not self._client_secret:
            raise ConfigurationError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set")

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self._client_id,
            client_secret=self._client_secret,
        )
        try:
            creds.refresh(Request())
        except RefreshError as e:
            logger.warning("Failed to refresh access token: %s", e)
            raise AuthExpiredError(f"Failed to refresh access token: {e}") from e

        logger.info("Access token refreshed")
        return creds.token
