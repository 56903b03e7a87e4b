"""Record store interface and implementations."""

from datetime import UTC, datetime
from typing import Any, ClassVar, Protocol, TypeVar

from cuid2 import cuid_wrapper
from pydantic import BaseModel, ValidationError

from labnotify.clients.supabase import SupabaseClient
from labnotify.exceptions import DataStoreError
from labnotify.models.audit import AuditLogEntry
from labnotify.models.notification import Notification
from labnotify.models.patient import Patient

cuid = cuid_wrapper()

RecordT = TypeVar("RecordT", bound=BaseModel)


class DataStore(Protocol):
    """Interface for the patient/notification record store.

    Implementations raise ``DataStoreError`` for any failed read or write and
    return ``None`` or an empty list when nothing matches.
    """

    async def get_patient(self, patient_id: str) -> Patient | None:
        """Fetch a patient by internal id."""
        ...

    async def find_patients(self, **filters: Any) -> list[Patient]:
        """Find patients whose columns exactly match ``filters``, most recently updated first."""
        ...

    async def update_patient(self, patient_id: str, values: dict[str, Any]) -> Patient | None:
        """Update a patient row, returning it, or None if no row matched."""
        ...

    async def create_notification(self, values: dict[str, Any]) -> Notification:
        """Insert a notification row and return it as stored."""
        ...

    async def update_notification(self, notification_id: str, values: dict[str, Any]) -> Notification | None:
        """Update a notification row, returning it, or None if no row matched."""
        ...

    async def recent_notifications(self, patient_id: str, limit: int = 10) -> list[Notification]:
        """List a patient's notifications, newest first."""
        ...

    async def add_audit_log(self, entry: AuditLogEntry) -> None:
        """Append an audit log entry."""
        ...


def _to_json(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value.isoformat() if isinstance(value, datetime) else value for key, value in values.items()}


class SupabaseDataStore:
    """Record store backed by Supabase tables."""

    PATIENTS = "patients"
    NOTIFICATIONS = "notifications"
    AUDIT_LOGS = "audit_logs"

    def __init__(self, client: SupabaseClient):
        """Initialize with a Supabase REST client."""
        self.client = client

    def _parse(self, model: type[RecordT], table: str, row: dict[str, Any]) -> RecordT:
        try:
            return model.model_validate(row)
        except ValidationError as e:
            raise DataStoreError(f"Table {table} returned an invalid row: {e.error_count()} field error(s)") from e

    async def get_patient(self, patient_id: str) -> Patient | None:
        rows = await self.client.select(self.PATIENTS, {"id": patient_id}, limit=1)
        return self._parse(Patient, self.PATIENTS, rows[0]) if rows else None

    async def find_patients(self, **filters: Any) -> list[Patient]:
        rows = await self.client.select(self.PATIENTS, filters, order="updated_at", descending=True)
        return [self._parse(Patient, self.PATIENTS, row) for row in rows]

    async def update_patient(self, patient_id: str, values: dict[str, Any]) -> Patient | None:
        rows = await self.client.update(self.PATIENTS, _to_json(values), {"id": patient_id})
        return self._parse(Patient, self.PATIENTS, rows[0]) if rows else None

    async def create_notification(self, values: dict[str, Any]) -> Notification:
        row = await self.client.insert(self.NOTIFICATIONS, _to_json(values))
        return self._parse(Notification, self.NOTIFICATIONS, row)

    async def update_notification(self, notification_id: str, values: dict[str, Any]) -> Notification | None:
        rows = await self.client.update(self.NOTIFICATIONS, _to_json(values), {"id": notification_id})
        return self._parse(Notification, self.NOTIFICATIONS, rows[0]) if rows else None

    async def recent_notifications(self, patient_id: str, limit: int = 10) -> list[Notification]:
        rows = await self.client.select(
            self.NOTIFICATIONS,
            {"patient_id": patient_id},
            order="created_at",
            descending=True,
            limit=limit,
        )
        return [self._parse(Notification, self.NOTIFICATIONS, row) for row in rows]

    async def add_audit_log(self, entry: AuditLogEntry) -> None:
        await self.client.insert(self.AUDIT_LOGS, _to_json(entry.model_dump(exclude_none=True)))


class InMemoryDataStore:
    """In-memory record store for local development and tests.

    Seeded with a few demo patients; nothing survives a restart.
    """

    DEMO_PATIENTS: ClassVar[list[dict[str, Any]]] = [
        {"patient_id": "GH-0001", "full_name": "Abebe Kebede", "phone": "+251911234567"},
        {"patient_id": "GH-0002", "full_name": "Tigist Alemu", "phone": "+251922345678"},
        {"patient_id": "GH-0003", "full_name": "Dawit Haile", "phone": "0933456789"},
    ]

    def __init__(self, seed: bool = True):
        """Initialize the store, optionally with demo patients."""
        self.patients: dict[str, dict[str, Any]] = {}
        self.notifications: dict[str, dict[str, Any]] = {}
        self.audit_logs: list[AuditLogEntry] = []

        if seed:
            for patient in self.DEMO_PATIENTS:
                self.add_patient(**patient)

    def add_patient(self, full_name: str, phone: str | None = None, **fields: Any) -> Patient:
        """Create a patient row, the way staff would from the dashboard."""
        now = datetime.now(UTC)
        row = {
            "id": fields.pop("id", None) or cuid(),
            "full_name": full_name,
            "phone": phone,
            "telegram_chat_id": None,
            "telegram_username": None,
            "telegram_connected": False,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        self.patients[row["id"]] = row
        return Patient.model_validate(row)

    async def get_patient(self, patient_id: str) -> Patient | None:
        row = self.patients.get(patient_id)
        return Patient.model_validate(row) if row else None

    async def find_patients(self, **filters: Any) -> list[Patient]:
        rows = [row for row in self.patients.values() if all(row.get(k) == v for k, v in filters.items())]
        rows.sort(key=lambda row: row["updated_at"], reverse=True)
        return [Patient.model_validate(row) for row in rows]

    async def update_patient(self, patient_id: str, values: dict[str, Any]) -> Patient | None:
        row = self.patients.get(patient_id)
        if row is None:
            return None
        row.update(values)
        return Patient.model_validate(row)

    async def create_notification(self, values: dict[str, Any]) -> Notification:
        now = datetime.now(UTC)
        row = {
            "id": cuid(),
            "status": "pending",
            "retry_count": 0,
            "max_retries": 3,
            "created_at": now,
            "updated_at": now,
            **values,
        }
        notification = Notification.model_validate(row)
        self.notifications[notification.id] = row
        return notification

    async def update_notification(self, notification_id: str, values: dict[str, Any]) -> Notification | None:
        row = self.notifications.get(notification_id)
        if row is None:
            return None
        row.update(values, updated_at=datetime.now(UTC))
        return Notification.model_validate(row)

    async def recent_notifications(self, patient_id: str, limit: int = 10) -> list[Notification]:
        rows = [row for row in self.notifications.values() if row["patient_id"] == patient_id]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [Notification.model_validate(row) for row in rows[:limit]]

    async def add_audit_log(self, entry: AuditLogEntry) -> None:
        if entry.created_at is None:
            entry = entry.model_copy(update={"created_at": datetime.now(UTC)})
        self.audit_logs.append(entry)
