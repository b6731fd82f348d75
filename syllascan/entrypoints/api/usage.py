"""無料枠と個人APIキーの解決ヘルパー

抽出リクエストごとに、ユーザーの個人APIキー → サーバーのデフォルト（無料枠内）
の順で使用するキーを決める。無料枠を使い切り、個人キーもない場合は拒否する。
"""

from __future__ import annotations

import logging

from syllascan.domain.errors import ApiKeyRequiredError
from syllascan.domain.ports import UsageRepository

logger = logging.getLogger(__name__)


def resolve_api_key(
    usage_repo: UsageRepository,
    user_id: str,
    free_limit: int,
) -> str | None:
    """
    抽出に使用するAPIキーを決める。

    Args:
        usage_repo: 利用状況リポジトリ
        user_id: Firebase Auth UID
        free_limit: デフォルトキーで処理できるリクエスト数

    Returns:
        個人APIキー。None の場合はサーバーのデフォルトを使用する
        （呼び出し元は処理後に record_default_usage() を呼ぶこと）

    Raises:
        ApiKeyRequiredError: 無料枠を使い切り、個人キーも未登録
    """
    usage = usage_repo.get_usage(user_id)
    if usage.custom_api_key:
        return usage.custom_api_key

    if usage.usage_count < free_limit:
        logger.info(
            "Using default API key: uid=%s, usage=%d/%d", user_id, usage.usage_count, free_limit
        )
        return None

    logger.info("Free usage exhausted: uid=%s, usage=%d", user_id, usage.usage_count)
    raise ApiKeyRequiredError(
        "Free usage limit reached. Please add your own OpenAI API key in settings."
    )


def record_default_usage(usage_repo: UsageRepository, user_id: str, email: str) -> None:
    """デフォルトキーでの抽出1回分を記録する。記録失敗はレスポンスに影響させない"""
    try:
        usage_repo.increment_usage(user_id, email)
    except Exception as e:
        logger.error("Failed to increment API usage: uid=%s - %s", user_id, e)
