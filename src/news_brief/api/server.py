from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, Response

from ..config import resolve_rewrite_credential
from ..core.news_service import HeadlineService, build_default_service, isoformat_utc
from ..logging_config import get_logger


app = FastAPI(
    title="News Brief API",
    description="Cached business headlines with AI translation and commentary",
    version="1.0.0",
)
logger = get_logger("api.server")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}

_service: HeadlineService | None = None


def get_news_service() -> HeadlineService:
    """Return the process-wide HeadlineService, creating it on first use."""

    global _service
    if _service is None:
        _service = build_default_service()
        credential = resolve_rewrite_credential(_service.config)
        logger.info(
            "news_service_created",
            rewrite_provider=credential.provider if credential else None,
            rewrite_key_source=credential.source if credential else None,
            max_daily=_service.store.max_daily,
            ttl_minutes=_service.config.cache_ttl_minutes,
        )
    return _service


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.options("/api/news")
def news_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@app.get("/api/news")
def get_news(service: HeadlineService = Depends(get_news_service)) -> JSONResponse:
    """Return the current headline batch.

    Always answers 200; failures are reported in the body with
    `success: false` and a fallback news list.
    """

    try:
        envelope = service.get_news()
    except Exception as exc:
        logger.exception("news_endpoint_error", error=str(exc))
        envelope = service.failure_envelope(str(exc))

    logger.info(
        "news_response",
        success=envelope.success,
        from_cache=envelope.from_cache,
        items=len(envelope.news),
    )
    return JSONResponse(content=envelope.to_response(), headers=CORS_HEADERS)


@app.get("/api/news/status")
def news_status(service: HeadlineService = Depends(get_news_service)) -> JSONResponse:
    """Cache and quota snapshot for operators."""

    now = service.now()
    entry = service.store.get_entry()
    quota = service.store.quota_state(now)
    credential = resolve_rewrite_credential(service.config)
    body = {
        "cached": entry is not None,
        "capturedAt": isoformat_utc(entry.captured_at) if entry else None,
        "itemCount": len(entry.items) if entry else 0,
        "dailyRequests": quota.count,
        "maxDailyRequests": service.store.max_daily,
        "rewriteKeySource": credential.source if credential else None,
    }
    return JSONResponse(content=body, headers=CORS_HEADERS)
