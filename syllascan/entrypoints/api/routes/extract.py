"""イベント抽出 API ルート

POST /api/extract-events  → 200 { events, count, errors? } / { message, errors? }
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from syllascan.config import AppConfig
from syllascan.domain.errors import ApiKeyRequiredError, ConfigurationError
from syllascan.domain.models import UploadedFile
from syllascan.domain.ports import UsageRepository
from syllascan.entrypoints.api.deps import (
    AuthInfo,
    get_auth_info,
    get_config,
    get_pipeline_factory,
    get_usage_repo,
)
from syllascan.entrypoints.api.usage import record_default_usage, resolve_api_key
from syllascan.services.batch_pipeline import BatchPipeline

logger = logging.getLogger(__name__)
router = APIRouter(tags=["extract"])

_FILE_FIELD_PREFIX = "file"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/extract-events")
async def extract_events(
    request: Request,
    auth: AuthInfo = Depends(get_auth_info),
    config: AppConfig = Depends(get_config),
    usage_repo: UsageRepository = Depends(get_usage_repo),
    pipeline_factory: Callable[[str | None], BatchPipeline] = Depends(get_pipeline_factory),
) -> JSONResponse:
    """
    アップロードされた PDF・画像からイベントを抽出する。

    フォームのキーが "file" で始まるフィールドをファイルとして扱う。
    """
    form = await request.form()
    uploads = [
        value
        for key, value in form.multi_items()
        if key.startswith(_FILE_FIELD_PREFIX) and isinstance(value, StarletteUploadFile)
    ]

    if not uploads:
        return _error(status.HTTP_400_BAD_REQUEST, "No files uploaded")
    if len(uploads) > config.max_upload_files:
        return _error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            f"Too many files. Maximum is {config.max_upload_files}",
        )

    files: list[UploadedFile] = []
    for upload in uploads:
        content = await upload.read()
        if len(content) > config.max_upload_size_bytes:
            return _error(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                f"File {upload.filename} exceeds the maximum size of "
                f"{config.max_upload_size_bytes // (1024 * 1024)}MB",
            )
        files.append(
            UploadedFile(
                filename=upload.filename or "upload",
                mime_type=upload.content_type or "",
                content=content,
            )
        )

    try:
        api_key = await run_in_threadpool(
            resolve_api_key, usage_repo, auth.uid, config.free_usage_limit
        )
    except ApiKeyRequiredError as e:
        return _error(status.HTTP_403_FORBIDDEN, str(e), requiresKey=True)

    try:
        pipeline = pipeline_factory(api_key)
    except ConfigurationError as e:
        logger.error("Extractor is not configured: %s", e)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Server configuration error", details=str(e)
        )

    logger.info("Extract request: uid=%s, files=%d", auth.uid, len(files))
    result = await run_in_threadpool(pipeline.run, files)

    if api_key is None:
        await run_in_threadpool(record_default_usage, usage_repo, auth.uid, auth.email)

    errors = [e.to_dict() for e in result.errors]
    if not result.events:
        content: dict = {"message": "No events found in the uploaded files"}
        if errors:
            content["errors"] = errors
        return JSONResponse(content=content)

    content = {"events": [e.to_dict() for e in result.events], "count": len(result.events)}
    if errors:
        content["errors"] = errors
    return JSONResponse(content=content)
