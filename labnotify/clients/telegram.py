"""Telegram Bot API client."""

from typing import Any

import httpx

from labnotify.models.telegram import ProviderFailure, ProviderResult, ProviderSuccess
from labnotify.utils.logging import get_logger

logger = get_logger(__name__)


class TelegramClient:
    """Thin async client for the Bot API methods this service uses.

    Every call returns a ``ProviderResult``; transport errors and ``ok: false``
    envelopes both come back as ``ProviderFailure`` rather than raising.
    """

    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Telegram client.

        Args:
            bot_token: Bot token issued by BotFather
            api_base: Bot API root URL
            timeout: Request timeout in seconds
            http_client: Preconfigured client (mostly for tests)
        """
        self.base_url = f"{api_base.rstrip('/')}/bot{bot_token}"
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "TelegramClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def get_me(self) -> ProviderResult:
        """Fetch the bot's own identity."""
        return await self._call("getMe")

    async def send_message(self, chat_id: int | str, text: str, parse_mode: str | None = "Markdown") -> ProviderResult:
        """Send a text message to a chat.

        Args:
            chat_id: Target chat id
            text: Message body
            parse_mode: Bot API formatting mode, or None for plain text

        Returns:
            ``ProviderSuccess`` wrapping the sent Message object, or a failure
        """
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return await self._call("sendMessage", payload)

    async def set_webhook(self, url: str) -> ProviderResult:
        """Register the URL Telegram should POST updates to."""
        return await self._call("setWebhook", {"url": url})

    async def get_webhook_info(self) -> ProviderResult:
        """Fetch the currently registered webhook."""
        return await self._call("getWebhookInfo")

    async def _call(self, method: str, payload: dict[str, Any] | None = None) -> ProviderResult:
        """Invoke a Bot API method and convert the envelope to a result."""
        logger.debug(f"Calling Telegram {method}")
        try:
            if payload is None:
                response = await self.client.get(f"{self.base_url}/{method}")
            else:
                response = await self.client.post(f"{self.base_url}/{method}", json=payload)
        except httpx.HTTPError as e:
            # str(e) may include the request URL, which embeds the token
            logger.error(f"Telegram {method} transport error: {type(e).__name__}")
            return ProviderFailure(description=f"{type(e).__name__}: network error calling Telegram")

        try:
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("Bot API envelope is not an object")
        except ValueError:
            logger.error(f"Telegram {method} returned non-JSON body with status {response.status_code}")
            return ProviderFailure(
                description=f"Unexpected response from Telegram (HTTP {response.status_code})",
                error_code=response.status_code,
            )

        if response.is_success and data.get("ok"):
            return ProviderSuccess(result=data.get("result"))

        description = data.get("description") or "Unknown error"
        error_code = data.get("error_code", response.status_code)
        logger.warning(f"Telegram {method} failed ({error_code}): {description}")
        return ProviderFailure(description=description, error_code=error_code)
