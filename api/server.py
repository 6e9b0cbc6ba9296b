"""FastAPI server for FitCheckr Virtual Try-On.

Endpoints:
- /api/try-on: person photo + clothing photo (base64) -> composited image
- /api/subscribe: email signups
- /api/admin: secret-protected subscriber view and CSV export
"""

import hmac
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from fitcheckr import __version__
from fitcheckr.config import AppConfig, load_config
from fitcheckr.errors import ProviderError, StorageError, ValidationError
from fitcheckr.models import TryOnStatus
from fitcheckr.services import GeminiProvider, SubscriptionService, TryOnRelay
from fitcheckr.storage import build_subscriber_store

logger = logging.getLogger(__name__)


app = FastAPI(
    title="FitCheckr API",
    description="Virtual try-on powered by Gemini image generation",
    version=__version__,
)

# Enable CORS for the web client and browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class TryOnBody(BaseModel):
    """Request body for try-on generation."""
    userImage: str | None = None  # Base64, data URL prefix tolerated
    articleImages: list[str] | None = None  # Only the first one is used


class SubscribeBody(BaseModel):
    email: str | None = None


class AdminBody(BaseModel):
    secret: str | None = None
    action: str | None = None


# Initialized on first request
_config: AppConfig | None = None
_relay: TryOnRelay | None = None
_subscriptions: SubscriptionService | None = None


def get_config() -> AppConfig:
    """Get or load the application config."""
    global _config
    if _config is None:
        _config = load_config()
        logging.basicConfig(
            level=_config.log_level.upper(),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    return _config


def get_relay() -> TryOnRelay:
    """Get or create the relay instance."""
    global _relay
    if _relay is None:
        config = get_config()
        _relay = TryOnRelay(GeminiProvider(config.gemini_api_key), model=config.gemini_model)
    return _relay


def get_subscription_service() -> SubscriptionService:
    """Get or create the subscription service."""
    global _subscriptions
    if _subscriptions is None:
        _subscriptions = SubscriptionService(build_subscriber_store(get_config()))
    return _subscriptions


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Invalid request body", str(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return error_response(500, "Internal server error", str(exc))


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "FitCheckr Virtual Try-On API", "version": __version__}


@app.get("/health")
async def health():
    """Detailed health check."""
    config = get_config()
    provider_ok = bool(config.gemini_api_key)
    return {
        "status": "ok" if provider_ok else "degraded",
        "provider": "configured" if provider_ok else "missing api key",
        "model": config.gemini_model,
        "storage": config.storage.backend,
    }


@app.post("/api/try-on")
async def try_on(body: TryOnBody):
    """Generate a virtual try-on image.

    Returns:
        200 ``{success, base64, analysis?}``, 422 ``{success: false, message}``
        when the model answered without an image, or ``{error, details?}``
    """
    if not body.userImage or not body.articleImages or not body.articleImages[0]:
        return error_response(400, "Missing userImage or articleImages")

    try:
        result = await get_relay().try_on(body.userImage, body.articleImages[0])
    except ValidationError as exc:
        return error_response(400, "Invalid image data", str(exc))
    except ProviderError as exc:
        return error_response(exc.status_code, exc.user_message, exc.details or None)
    except Exception as exc:
        logger.exception("Try-on failed")
        return error_response(500, "Failed to generate try-on image", str(exc))

    if result.status is TryOnStatus.NO_IMAGE:
        return JSONResponse(status_code=422, content={"success": False, "message": result.message})

    content = {"success": True, "base64": result.image_payload}
    if result.message:
        content["analysis"] = result.message
    return content


@app.post("/api/subscribe")
async def subscribe(body: SubscribeBody):
    """Add an email address to the subscriber list (idempotent)."""
    service = get_subscription_service()
    try:
        result = await service.subscribe(body.email)
    except ValidationError as exc:
        return error_response(400, str(exc))
    except StorageError as exc:
        logger.error("Subscription storage failed: %s", exc)
        return error_response(500, "Failed to save email subscription", str(exc))

    return {"message": result.message, "totalSubscribers": result.total_subscribers}


@app.get("/api/subscribe")
async def subscriber_count():
    """Number of subscribers, without the addresses."""
    service = get_subscription_service()
    try:
        total = await service.count()
    except StorageError as exc:
        return error_response(500, "Failed to get subscribers", str(exc))
    return {
        "totalSubscribers": total,
        "message": f"Total subscribers: {total}",
        "storageType": service.storage_type,
    }


def _authorized(secret: str | None) -> bool:
    expected = get_config().admin_secret
    if not expected or secret is None:
        return False
    return hmac.compare_digest(secret.encode("utf-8"), expected.encode("utf-8"))


@app.get("/api/admin")
async def admin_view(secret: str | None = Query(default=None)):
    """Full subscriber list as JSON."""
    if not _authorized(secret):
        return error_response(401, "Unauthorized")

    service = get_subscription_service()
    try:
        emails = await service.list()
    except StorageError as exc:
        return error_response(500, "Failed to get subscriber data", str(exc))
    return {
        "totalSubscribers": len(emails),
        "emails": emails,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storageType": service.storage_type,
    }


@app.post("/api/admin")
async def admin_action(body: AdminBody):
    """Admin actions; ``export`` returns the list as CSV."""
    if not _authorized(body.secret):
        return error_response(401, "Unauthorized")
    if body.action != "export":
        return error_response(400, "Invalid action")

    try:
        csv_text = await get_subscription_service().export_csv()
    except StorageError as exc:
        return error_response(500, "Failed to process admin action", str(exc))
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="fitcheckr-subscribers.csv"'},
    )


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(app, host=config.server.host, port=config.server.port)
