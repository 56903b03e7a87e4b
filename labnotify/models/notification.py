"""Notification records and dispatch request/response models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationStatus = Literal["pending", "sent", "delivered", "failed", "retry"]

NOT_CONNECTED_ERROR = "Patient not connected"

# delivered is terminal; failed rows may only be handed to a retry process
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"sent", "delivered", "failed"}),
    "sent": frozenset({"delivered", "failed"}),
    "failed": frozenset({"retry"}),
    "retry": frozenset({"pending"}),
    "delivered": frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    """Check whether a notification may move from ``current`` to ``new``."""
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


class Notification(BaseModel):
    """Notification record as stored in the ``notifications`` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    patient_id: str
    test_id: str | None = None
    notification_type: str
    message: str
    status: NotificationStatus = "pending"
    retry_count: int = 0
    max_retries: int = 3
    error_message: str | None = None
    telegram_message_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationRequest(BaseModel):
    """Request model for the dispatch endpoint."""

    patient_id: str = Field(..., min_length=1)
    test_id: str | None = None
    message: str = Field(..., min_length=1)
    notification_type: str = Field(..., min_length=1, examples=["lab_result", "appointment_reminder"])


class NotificationResponse(BaseModel):
    """Response model for the dispatch endpoint."""

    success: bool
    notification_id: str | None = None
    telegram_message_id: str | None = None
    patient_name: str | None = None
    error: str | None = None
    normalized_phone: str | None = None


@dataclass
class DispatchResult:
    """Outcome of a single dispatch attempt."""

    success: bool
    notification_id: str | None = None
    telegram_message_id: str | None = None
    patient_name: str | None = None
    error: str | None = None
    normalized_phone: str | None = None

    def to_response(self) -> NotificationResponse:
        """Convert to the API response model."""
        return NotificationResponse(
            success=self.success,
            notification_id=self.notification_id,
            telegram_message_id=self.telegram_message_id,
            patient_name=self.patient_name,
            error=self.error,
            normalized_phone=self.normalized_phone,
        )
