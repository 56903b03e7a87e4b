"""Telegram link state for patient records."""

from datetime import UTC, datetime
from typing import Any

from labnotify.exceptions import ConnectionUpdateError, DataStoreError
from labnotify.models.audit import AuditLogEntry
from labnotify.models.patient import Patient
from labnotify.services.store import DataStore
from labnotify.utils.logging import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Connects and disconnects patients from Telegram chats.

    Each transition is a single row update. Concurrent connects for the same
    patient are not coordinated; the last write wins.
    """

    def __init__(self, store: DataStore):
        """Initialize with the record store."""
        self.store = store

    async def connect(self, patient: Patient, chat_id: int | str, username: str | None) -> Patient:
        """Link a patient to a Telegram chat.

        Args:
            patient: Patient being linked
            chat_id: Telegram chat the link is bound to
            username: Sender's Telegram handle, if they have one

        Returns:
            The updated patient record

        Raises:
            ConnectionUpdateError: If the update failed or matched no row
        """
        chat_id = str(chat_id)
        if patient.is_connected and patient.telegram_chat_id != chat_id:
            logger.warning(f"Patient {patient.id} rebinding from chat {patient.telegram_chat_id} to {chat_id}")

        values = {
            "telegram_chat_id": chat_id,
            "telegram_username": username,
            "telegram_connected": True,
            "updated_at": datetime.now(UTC),
        }
        updated = await self._update(patient.id, values)
        logger.info(f"Patient {patient.id} connected to chat {chat_id}")

        await self._audit("telegram_connect", patient, updated)
        return updated

    async def disconnect(self, patient: Patient) -> Patient:
        """Clear a patient's Telegram link.

        Raises:
            ConnectionUpdateError: If the update failed or matched no row
        """
        values = {
            "telegram_chat_id": None,
            "telegram_username": None,
            "telegram_connected": False,
            "updated_at": datetime.now(UTC),
        }
        updated = await self._update(patient.id, values)
        logger.info(f"Patient {patient.id} disconnected from chat {patient.telegram_chat_id}")

        await self._audit("telegram_disconnect", patient, updated)
        return updated

    async def _update(self, patient_id: str, values: dict[str, Any]) -> Patient:
        try:
            updated = await self.store.update_patient(patient_id, values)
        except DataStoreError as e:
            logger.error(f"Failed to update Telegram link for patient {patient_id}: {e}")
            raise ConnectionUpdateError(f"Update failed for patient {patient_id}") from e

        if updated is None:
            raise ConnectionUpdateError(f"Patient {patient_id} no longer exists")
        return updated

    async def _audit(self, action: str, before: Patient, after: Patient) -> None:
        fields = ("telegram_chat_id", "telegram_username", "telegram_connected")
        entry = AuditLogEntry(
            action=action,
            table_name="patients",
            record_id=before.id,
            old_values={name: getattr(before, name) for name in fields},
            new_values={name: getattr(after, name) for name in fields},
        )
        try:
            await self.store.add_audit_log(entry)
        except DataStoreError as e:
            # The link change already happened; a missing audit row is reported, not rolled back
            logger.error(f"Failed to write audit log for {action} on patient {before.id}: {e}")
