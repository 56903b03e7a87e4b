"""Notification delivery to patients over Telegram."""

from datetime import UTC, datetime
from typing import Any

from labnotify.clients.telegram import TelegramClient
from labnotify.exceptions import DataStoreError, PatientNotFoundError
from labnotify.models.notification import (
    NOT_CONNECTED_ERROR,
    DispatchResult,
    Notification,
    NotificationRequest,
    can_transition,
)
from labnotify.models.telegram import ProviderSuccess
from labnotify.services.directory import PatientDirectory
from labnotify.services.store import DataStore
from labnotify.utils.logging import get_logger
from labnotify.utils.phone import normalize_phone

logger = get_logger(__name__)


class NotificationDispatcher:
    """Creates a notification record and makes one delivery attempt.

    Every call writes exactly one notification row and makes at most one
    ``sendMessage`` call. Failed rows are left for staff follow-up; the
    ``retry_count`` column is not touched here.
    """

    def __init__(
        self,
        store: DataStore,
        telegram: TelegramClient,
        hospital_name: str = "Girum Hospital",
        hospital_contact: str = "+251-11-XXX-XXXX",
        country_code: str = "251",
    ):
        """Initialize dispatcher.

        Args:
            store: Record store for patients and notifications
            telegram: Client used for delivery
            hospital_name: Name in the message header and footer
            hospital_contact: Phone number in the message footer
            country_code: Calling code for normalizing the patient's phone
        """
        self.store = store
        self.directory = PatientDirectory(store)
        self.telegram = telegram
        self.hospital_name = hospital_name
        self.hospital_contact = hospital_contact
        self.country_code = country_code

    async def dispatch(self, request: NotificationRequest) -> DispatchResult:
        """Deliver a notification to a patient's linked Telegram chat.

        Args:
            request: Patient, optional test, message body and type

        Returns:
            Delivery outcome; ``success`` is False when the patient isn't
            connected or Telegram rejected the message

        Raises:
            PatientNotFoundError: If the patient does not exist
            DataStoreError: If the notification row can't be created
        """
        patient = await self.directory.get(request.patient_id)
        if patient is None:
            raise PatientNotFoundError(request.patient_id)

        logger.info(f"Dispatching {request.notification_type} notification to patient {patient.id}")
        normalized_phone = normalize_phone(patient.phone, self.country_code)
        record = {
            "patient_id": patient.id,
            "test_id": request.test_id,
            "notification_type": request.notification_type,
            "message": request.message,
        }

        if not patient.is_connected:
            notification = await self.store.create_notification(
                {**record, "status": "failed", "error_message": NOT_CONNECTED_ERROR}
            )
            logger.info(f"Patient {patient.id} not connected; recorded failed notification {notification.id}")
            return DispatchResult(
                success=False,
                notification_id=notification.id,
                patient_name=patient.full_name,
                error=NOT_CONNECTED_ERROR,
                normalized_phone=normalized_phone,
            )

        notification = await self.store.create_notification({**record, "status": "pending"})
        logger.info(f"Created notification {notification.id}")

        result = await self.telegram.send_message(patient.telegram_chat_id, self.format_message(request.message))
        now = datetime.now(UTC)

        if isinstance(result, ProviderSuccess):
            raw_id = result.result.get("message_id") if isinstance(result.result, dict) else None
            message_id = str(raw_id) if raw_id is not None else None
            logger.info(f"Notification {notification.id} delivered as Telegram message {message_id}")
            await self._record(
                notification,
                {"status": "delivered", "telegram_message_id": message_id, "sent_at": now, "delivered_at": now},
            )
            return DispatchResult(
                success=True,
                notification_id=notification.id,
                telegram_message_id=message_id,
                patient_name=patient.full_name,
                normalized_phone=normalized_phone,
            )

        logger.warning(f"Notification {notification.id} failed: {result.description}")
        await self._record(notification, {"status": "failed", "error_message": result.description, "sent_at": now})
        return DispatchResult(
            success=False,
            notification_id=notification.id,
            patient_name=patient.full_name,
            error=result.description,
            normalized_phone=normalized_phone,
        )

    def format_message(self, message: str) -> str:
        """Wrap a message body in the hospital header and footer."""
        return (
            f"🏥 *{self.hospital_name}*\n\n"
            f"{message}\n\n"
            f"---\n"
            f"This is an automated message from {self.hospital_name} Lab Department. \n"
            f"If you have questions, please contact us at {self.hospital_contact}"
        )

    async def _record(self, notification: Notification, values: dict[str, Any]) -> None:
        """Write the delivery outcome onto the notification row.

        The Telegram call has already happened by now, so a failed write is
        logged and the outcome is still returned to the caller.
        """
        if not can_transition(notification.status, values["status"]):
            logger.error(
                f"Refusing to move notification {notification.id} from {notification.status} to {values['status']}"
            )
            return

        try:
            updated = await self.store.update_notification(notification.id, values)
        except DataStoreError as e:
            logger.error(f"Failed to update notification {notification.id} status: {e}")
            return

        if updated is None:
            logger.error(f"Notification {notification.id} disappeared before its status could be recorded")
