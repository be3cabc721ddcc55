"""Daily digest API endpoints."""

from fastapi import APIRouter, Header, Query, Request, status
from fastapi.responses import JSONResponse

from vortex.config import get_config
from vortex.core.datetime_utils import utc_now
from vortex.core.logging import get_logger
from vortex.core.rate_limit import limiter
from vortex.dependencies import (
    AppSettings,
    Config,
    ContentProvider,
    DigestStore,
    NotificationDispatcher,
    Orchestrator,
)
from vortex.schemas.common import ApiResponse, PaginatedResponse, Pagination
from vortex.schemas.digest import (
    DIGEST_LANGUAGES,
    DIGEST_TOPICS,
    DigestHistoryRecord,
    DigestOptions,
    DigestResult,
    DigestRunResult,
    DigestSettingsRecord,
    DigestSettingsUpdate,
    ManualDigestRequest,
    PushTokenRequest,
    TriggerResult,
)
from vortex.services.digest_scheduler import build_preview
from vortex.services.digest_settings import (
    get_or_create_settings,
    register_push_token,
    save_settings,
)
from vortex.services.grounding import GeminiGroundingProvider

logger = get_logger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.get("/options", response_model=ApiResponse[DigestOptions])
async def get_options() -> ApiResponse[DigestOptions]:
    """List the topics and languages a user can choose from."""
    return ApiResponse(
        data=DigestOptions.model_validate({"topics": DIGEST_TOPICS, "languages": DIGEST_LANGUAGES})
    )


@router.get("/settings/{user_id}", response_model=ApiResponse[DigestSettingsRecord])
async def get_settings(user_id: str, store: DigestStore) -> ApiResponse[DigestSettingsRecord]:
    """
    Get a user's digest settings.

    Users without saved settings get the defaults, which are persisted.
    """
    settings = await get_or_create_settings(store, user_id)
    return ApiResponse(data=settings)


@router.post("/settings", response_model=ApiResponse[DigestSettingsRecord])
async def update_settings(
    update: DigestSettingsUpdate,
    store: DigestStore,
) -> ApiResponse[DigestSettingsRecord]:
    """
    Save digest settings.

    Only the fields present in the body change. The UTC trigger hour is
    recomputed from the resulting schedule time and timezone.
    """
    settings = await save_settings(store, update)
    return ApiResponse(data=settings)


@router.post("/push-token", response_model=ApiResponse[None])
async def update_push_token(body: PushTokenRequest, store: DigestStore) -> ApiResponse[None]:
    """Register the device push token used for digest notifications."""
    await register_push_token(store, body.user_id, body.push_token)
    return ApiResponse(message="Push token registered")


@router.get(
    "/history/{user_id}",
    response_model=PaginatedResponse[list[DigestHistoryRecord]],
)
async def list_history(
    user_id: str,
    store: DigestStore,
    config: Config,
    limit: int | None = Query(default=None, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> PaginatedResponse[list[DigestHistoryRecord]]:
    """List a user's past digests, newest first."""
    limit = limit or config.digest.history_page_size
    history = await store.list_history(user_id, limit=limit, offset=offset)
    total = await store.count_history(user_id)

    return PaginatedResponse(
        data=history,
        pagination=Pagination(total=total, limit=limit, offset=offset),
    )


@router.get(
    "/history/{user_id}/{digest_id}",
    response_model=ApiResponse[DigestHistoryRecord],
)
async def get_history_detail(
    user_id: str,
    digest_id: str,
    store: DigestStore,
) -> ApiResponse[DigestHistoryRecord] | JSONResponse:
    """Get one digest and mark it as read on first fetch."""
    digest = await store.mark_history_read(user_id, digest_id, utc_now())
    if digest is None:
        return _error(status.HTTP_404_NOT_FOUND, "Digest not found")

    return ApiResponse(data=digest)


@router.post("/test", response_model=ApiResponse[DigestResult])
@limiter.limit(lambda: get_config().digest.test_rate_limit)
async def generate_test_digest(
    request: Request,
    body: ManualDigestRequest,
    store: DigestStore,
    provider: ContentProvider,
    dispatcher: NotificationDispatcher,
) -> ApiResponse[DigestResult]:
    """
    Generate a digest on demand, bypassing the schedule.

    With a userId the digest is saved to that user's history and, if the
    user has a push token, announced with one notification.
    """
    logger.bind(topics=body.topics, language=body.language).info("test_digest_requested")

    result = await provider.generate_digest(body.topics, body.language, body.custom_prompt)

    if body.user_id:
        saved = await store.save_history(
            DigestHistoryRecord(
                user_id=body.user_id,
                title=result.title,
                content=result.content,
                topics=body.topics,
                language=body.language,
                sources=result.sources,
                sent_at=utc_now(),
            )
        )
        logger.bind(user_id=body.user_id, digest_id=saved.id).info("test_digest_saved")

        settings = await store.get_settings(body.user_id)
        if settings and settings.has_push_token:
            ticket = await dispatcher.send_digest_notification(
                settings.push_token,
                saved.id,
                result.title,
                build_preview(result.content, get_config().digest.preview_fallback),
            )
            if not ticket.ok:
                logger.bind(user_id=body.user_id, error=ticket.message).warning(
                    "test_digest_notification_failed"
                )

    return ApiResponse(data=result)


@router.get("/test-grounding", response_model=ApiResponse[str])
async def test_grounding(provider: ContentProvider) -> ApiResponse[str] | JSONResponse:
    """Check the grounding connection with a short fixed question."""
    if not isinstance(provider, GeminiGroundingProvider):
        return _error(status.HTTP_501_NOT_IMPLEMENTED, "Provider does not support probing")

    text = await provider.probe()
    return ApiResponse(data=text)


@router.post("/trigger/{user_id}", response_model=ApiResponse[TriggerResult])
async def trigger_user(user_id: str, orchestrator: Orchestrator) -> ApiResponse[TriggerResult]:
    """Run the digest pipeline for one user now, regardless of schedule."""
    delivered = await orchestrator.trigger_for_user(user_id)
    return ApiResponse(data=TriggerResult(delivered=delivered))


@router.get("/cron", response_model=ApiResponse[DigestRunResult])
async def run_cron(
    orchestrator: Orchestrator,
    settings: AppSettings,
    authorization: str | None = Header(default=None),
) -> ApiResponse[DigestRunResult] | JSONResponse:
    """
    Hourly trigger for the platform cron.

    A bearer token not matching CRON_SECRET is logged; the request is only
    rejected when CRON_SECRET_STRICT is set.
    """
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        logger.bind(strict=settings.cron_secret_strict).warning("cron_unauthorized")
        if settings.cron_secret_strict:
            return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    current_hour = utc_now().hour
    logger.bind(utc_hour=current_hour).info("cron_triggered")

    try:
        result = await orchestrator.run_for_hour(current_hour)
    except Exception as e:
        logger.bind(utc_hour=current_hour, error=str(e)).error("cron_failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return ApiResponse(
        message=f"Scheduler completed for UTC hour {current_hour}",
        data=result,
    )
