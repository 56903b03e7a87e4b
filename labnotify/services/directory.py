"""Patient lookups by id, phone number, or Telegram chat."""

from labnotify.models.notification import Notification
from labnotify.models.patient import Patient
from labnotify.services.store import DataStore
from labnotify.utils.logging import get_logger

logger = get_logger(__name__)


class PatientDirectory:
    """Read-only patient lookups.

    Returns None when nothing matches; store failures propagate as
    ``DataStoreError`` so callers can tell the two apart.
    """

    def __init__(self, store: DataStore):
        """Initialize with the record store."""
        self.store = store

    async def get(self, patient_id: str) -> Patient | None:
        """Look up a patient by internal id."""
        patient = await self.store.get_patient(patient_id)
        if patient is None:
            logger.info(f"No patient with id {patient_id}")
        return patient

    async def find_by_phone(self, phone: str) -> Patient | None:
        """Look up a patient by exact phone number match."""
        return self._pick(await self.store.find_patients(phone=phone), f"phone {phone}")

    async def find_by_chat_id(self, chat_id: int | str) -> Patient | None:
        """Look up the patient linked to a Telegram chat."""
        return self._pick(await self.store.find_patients(telegram_chat_id=str(chat_id)), f"chat {chat_id}")

    async def recent_notifications(self, patient: Patient, limit: int = 10) -> list[Notification]:
        """List the patient's most recent notifications, newest first."""
        return await self.store.recent_notifications(patient.id, limit=limit)

    def _pick(self, patients: list[Patient], key: str) -> Patient | None:
        if not patients:
            logger.info(f"No patient found for {key}")
            return None

        if len(patients) > 1:
            logger.warning(
                f"{len(patients)} patients match {key}; using most recently updated {patients[0].id}"
            )
        return patients[0]
