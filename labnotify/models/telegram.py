"""Telegram Bot API data models."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    """Sender of a Telegram message."""

    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: str | None = None
    username: str | None = None


class TelegramChat(BaseModel):
    """Chat a Telegram message was posted in."""

    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = "private"


class TelegramMessage(BaseModel):
    """Inbound Telegram message."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: TelegramChat
    date: int = 0
    text: str | None = None


class TelegramUpdate(BaseModel):
    """Update envelope POSTed to the webhook."""

    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: TelegramMessage | None = None


@dataclass
class ProviderSuccess:
    """Bot API call that returned ``ok: true``."""

    result: Any

    ok = True


@dataclass
class ProviderFailure:
    """Bot API call that failed, either in transport or with ``ok: false``."""

    description: str
    error_code: int | None = None

    ok = False


ProviderResult = ProviderSuccess | ProviderFailure


class BotInfoResponse(BaseModel):
    """Response model for the bot identity endpoint."""

    id: int
    username: str | None = None
    first_name: str
    can_join_groups: bool | None = None


class WebhookRegistrationRequest(BaseModel):
    """Request model for registering the webhook URL."""

    url: str | None = None


class WebhookRegistrationResponse(BaseModel):
    """Response model for webhook registration."""

    success: bool
    url: str
    description: str | None = None


class WebhookInfoResponse(BaseModel):
    """Webhook currently registered with Telegram."""

    model_config = ConfigDict(extra="ignore")

    url: str
    pending_update_count: int = 0
    last_error_date: int | None = None
    last_error_message: str | None = None
