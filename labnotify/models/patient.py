"""Patient data models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Patient(BaseModel):
    """Patient record as stored in the ``patients`` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    patient_id: str | None = None
    full_name: str
    phone: str | None = None
    email: str | None = None
    date_of_birth: str | None = None
    telegram_chat_id: str | None = None
    telegram_username: str | None = None
    telegram_connected: bool = False
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_connected(self) -> bool:
        """Whether the patient is linked to a Telegram chat.

        A row flagged as connected without a chat id can't receive messages,
        so it counts as disconnected.
        """
        return self.telegram_connected and bool(self.telegram_chat_id)
