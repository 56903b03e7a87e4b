"""Shared fixtures for the notification relay tests."""

from unittest.mock import AsyncMock

import pytest

from labnotify.clients.telegram import TelegramClient
from labnotify.models.telegram import ProviderSuccess, TelegramUpdate
from labnotify.services.store import InMemoryDataStore


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return InMemoryDataStore(seed=False)


@pytest.fixture
def patient(store):
    """Registered patient who has not linked Telegram yet."""
    return store.add_patient("Abebe Kebede", "+251911234567", id="patient-1", patient_id="GH-0001")


@pytest.fixture
def connected_patient(store):
    """Registered patient already linked to chat 1001."""
    return store.add_patient(
        "Tigist Alemu",
        "0922345678",
        id="patient-2",
        telegram_chat_id="1001",
        telegram_username="tigist",
        telegram_connected=True,
    )


@pytest.fixture
def telegram():
    """Telegram client double whose sends succeed with message id 42."""
    client = AsyncMock(spec=TelegramClient)
    client.send_message.return_value = ProviderSuccess(result={"message_id": 42, "chat": {"id": 1001}})
    return client


@pytest.fixture
def make_update():
    """Factory for webhook updates carrying a text message."""

    def _make_update(text: str | None, chat_id: int = 1001, user_id: int = 501, username: str | None = "abebe"):
        sender = {"id": user_id, "is_bot": False, "first_name": "Abebe"}
        if username:
            sender["username"] = username
        message = {"message_id": 7, "from": sender, "chat": {"id": chat_id, "type": "private"}, "date": 1700000000}
        if text is not None:
            message["text"] = text
        return TelegramUpdate.model_validate({"update_id": 9001, "message": message})

    return _make_update
