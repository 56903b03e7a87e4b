"""API endpoints for the notification relay."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from labnotify import __version__
from labnotify.api.dependencies import (
    get_command_interpreter,
    get_notification_dispatcher,
    get_settings,
    get_telegram_client,
)
from labnotify.clients.telegram import TelegramClient
from labnotify.config import Settings
from labnotify.exceptions import DataStoreError, PatientNotFoundError
from labnotify.models.health import HealthResponse
from labnotify.models.notification import NotificationRequest, NotificationResponse
from labnotify.models.telegram import (
    BotInfoResponse,
    ProviderFailure,
    TelegramUpdate,
    WebhookInfoResponse,
    WebhookRegistrationRequest,
    WebhookRegistrationResponse,
)
from labnotify.services.commands import ChatCommandInterpreter
from labnotify.services.notifications import NotificationDispatcher
from labnotify.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/telegram/webhook", response_class=PlainTextResponse, tags=["Telegram"])
async def telegram_webhook(
    request: Request,
    interpreter: ChatCommandInterpreter = Depends(get_command_interpreter),
) -> PlainTextResponse:
    """Receive a Telegram update and run the chat command it carries.

    Answers 200 even when the command itself failed, so Telegram doesn't
    keep redelivering the update. Only an unreadable envelope gets a 500.
    """
    try:
        update = TelegramUpdate.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.error(f"Invalid Telegram update: {e}")
        return PlainTextResponse("Error", status_code=500)

    try:
        await interpreter.handle_update(update)
    except Exception as e:
        logger.error(f"Unhandled error processing update {update.update_id}: {e}", exc_info=True)

    return PlainTextResponse("OK")


@router.post("/notifications/send", response_model=NotificationResponse, tags=["Notifications"])
async def send_notification(
    request: NotificationRequest,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationResponse | JSONResponse:
    """Record a notification and deliver it to the patient's Telegram chat.

    Business outcomes (patient not connected, Telegram rejected the message)
    come back as 200 with ``success: false``.
    """
    try:
        result = await dispatcher.dispatch(request)
    except PatientNotFoundError as e:
        logger.warning(f"Dispatch requested for unknown patient {e.patient_id}")
        return _error_response(404, str(e))
    except DataStoreError as e:
        logger.error(f"Dispatch to patient {request.patient_id} failed: {e}", exc_info=True)
        return _error_response(500, "Failed to create notification record")

    return result.to_response()


@router.get("/telegram/bot", response_model=BotInfoResponse, tags=["Telegram"])
async def bot_info(telegram: TelegramClient = Depends(get_telegram_client)) -> BotInfoResponse:
    """Check the bot token by fetching the bot's identity."""
    result = await telegram.get_me()
    if isinstance(result, ProviderFailure):
        raise HTTPException(status_code=502, detail=result.description)
    return BotInfoResponse.model_validate(result.result)


@router.post("/telegram/webhook/register", response_model=WebhookRegistrationResponse, tags=["Telegram"])
async def register_webhook(
    body: WebhookRegistrationRequest,
    settings: Settings = Depends(get_settings),
    telegram: TelegramClient = Depends(get_telegram_client),
) -> WebhookRegistrationResponse:
    """Register the webhook URL with Telegram.

    Uses the URL in the request body, falling back to TELEGRAM_WEBHOOK_URL.
    """
    url = body.url or settings.telegram_webhook_url
    if not url:
        raise HTTPException(status_code=400, detail="No webhook URL given or configured")
    if not url.startswith("https://"):
        raise HTTPException(status_code=400, detail="Telegram requires an HTTPS webhook URL")

    result = await telegram.set_webhook(url)
    if isinstance(result, ProviderFailure):
        logger.error(f"Webhook registration failed: {result.description}")
        return WebhookRegistrationResponse(success=False, url=url, description=result.description)

    logger.info(f"Webhook registered at {url}")
    return WebhookRegistrationResponse(success=True, url=url)


@router.get("/telegram/webhook/info", response_model=WebhookInfoResponse, tags=["Telegram"])
async def webhook_info(telegram: TelegramClient = Depends(get_telegram_client)) -> WebhookInfoResponse:
    """Show the webhook Telegram currently delivers updates to."""
    result = await telegram.get_webhook_info()
    if isinstance(result, ProviderFailure):
        raise HTTPException(status_code=502, detail=result.description)
    return WebhookInfoResponse.model_validate(result.result)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
        data_store=settings.data_store,
    )


def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=NotificationResponse(success=False, error=error).model_dump(),
    )
