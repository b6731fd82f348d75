"""ドメイン固有の例外クラス"""


class SyllaScanError(Exception):
    """SyllaScan の基底例外"""

    pass


class ConfigurationError(SyllaScanError):
    """必須設定（OAuth クライアント・APIキー等）の不足"""

    pass


class UnsupportedFileTypeError(SyllaScanError):
    """画像・PDF 以外の MIME タイプ（ファイル単位でスキップ）"""

    def __init__(self, mime_type: str) -> None:
        super().__init__(f"Unsupported file type: {mime_type or 'unknown'}")
        self.mime_type = mime_type


class RenderingFailureError(SyllaScanError):
    """PDF → 画像変換の失敗（破損ファイル・0ページ等）"""

    pass


class ExtractionError(SyllaScanError):
    """
    推論サービスによるイベント抽出の失敗。

    requires_key が True の場合、呼び出し側はユーザー個人の
    APIキー入力を促すことができる。
    """

    default_requires_key = False

    def __init__(self, message: str, requires_key: bool | None = None) -> None:
        super().__init__(message)
        self.requires_key = (
            self.default_requires_key if requires_key is None else requires_key
        )


class RateLimitedError(ExtractionError):
    """推論サービスのレート制限・クォータ超過"""

    default_requires_key = True


class InvalidCredentialError(ExtractionError):
    """推論サービスの認証情報が無効"""

    default_requires_key = True


class BadRequestError(ExtractionError):
    """推論サービスが不正なリクエストとして拒否"""

    pass


class ApiKeyRequiredError(SyllaScanError):
    """無料枠を使い切り、個人APIキーも未登録"""

    requires_key = True


class AuthExpiredError(SyllaScanError):
    """カレンダー/OAuth プロバイダがアクセストークンを拒否（401 / invalid_grant）"""

    pass


class CalendarApiError(SyllaScanError):
    """認証以外のカレンダー API 呼び出しエラー"""

    pass


class CalendarInsertError(SyllaScanError):
    """カレンダー登録が1件も成功しなかった（全件失敗）"""

    def __init__(self, reasons: list[str], result=None) -> None:
        super().__init__(f"Failed to add events to calendar: {'; '.join(reasons)}")
        self.reasons = list(reasons)
        self.result = result  # CalendarWriteResult（履歴記録用）
