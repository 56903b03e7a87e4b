"""Request-scoped dependencies for the API endpoints.

Clients are opened per request and closed when the response is sent; the
only state kept on the application is the settings object and, in
``memory`` mode, the in-memory record store.
"""

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request

from labnotify.clients.supabase import SupabaseClient
from labnotify.clients.telegram import TelegramClient
from labnotify.config import Settings
from labnotify.exceptions import ConfigurationError
from labnotify.services.commands import ChatCommandInterpreter
from labnotify.services.connections import ConnectionManager
from labnotify.services.directory import PatientDirectory
from labnotify.services.notifications import NotificationDispatcher
from labnotify.services.store import DataStore, InMemoryDataStore, SupabaseDataStore
from labnotify.utils.logging import get_logger

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


async def get_data_store(request: Request, settings: Settings = Depends(get_settings)) -> AsyncIterator[DataStore]:
    """Record store for the current request."""
    if settings.data_store == "memory":
        if getattr(request.app.state, "memory_store", None) is None:
            logger.info("Creating in-memory data store with demo patients")
            request.app.state.memory_store = InMemoryDataStore()
        yield request.app.state.memory_store
        return

    try:
        url, key = settings.require_supabase()
    except ConfigurationError as e:
        logger.error(f"Data store not configured: {e}")
        raise HTTPException(status_code=500, detail="Data store is not configured") from e

    async with SupabaseClient(url, key, timeout=settings.http_timeout) as client:
        yield SupabaseDataStore(client)


async def get_telegram_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[TelegramClient]:
    """Telegram client for the current request."""
    try:
        token = settings.require_telegram()
    except ConfigurationError as e:
        logger.error(f"Telegram not configured: {e}")
        raise HTTPException(status_code=500, detail="Telegram bot is not configured") from e

    async with TelegramClient(token, api_base=settings.telegram_api_base, timeout=settings.http_timeout) as client:
        yield client


def get_command_interpreter(
    settings: Settings = Depends(get_settings),
    store: DataStore = Depends(get_data_store),
    telegram: TelegramClient = Depends(get_telegram_client),
) -> ChatCommandInterpreter:
    """Chat command interpreter wired to this request's clients."""
    return ChatCommandInterpreter(
        directory=PatientDirectory(store),
        connections=ConnectionManager(store),
        telegram=telegram,
        hospital_name=settings.hospital_name,
        hospital_contact=settings.hospital_contact,
        country_code=settings.country_code,
        normalize_start_phone=settings.normalize_start_phone,
    )


def get_notification_dispatcher(
    settings: Settings = Depends(get_settings),
    store: DataStore = Depends(get_data_store),
    telegram: TelegramClient = Depends(get_telegram_client),
) -> NotificationDispatcher:
    """Notification dispatcher wired to this request's clients."""
    return NotificationDispatcher(
        store=store,
        telegram=telegram,
        hospital_name=settings.hospital_name,
        hospital_contact=settings.hospital_contact,
        country_code=settings.country_code,
    )
