"""Exception types raised by the notification relay."""


class LabNotifyError(Exception):
    """Base class for errors raised by this service."""


class ConfigurationError(LabNotifyError):
    """A required setting (token, URL, credential) is missing or invalid."""


class DataStoreError(LabNotifyError):
    """A read or write against the record store failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConnectionUpdateError(LabNotifyError):
    """A patient's Telegram link could not be changed."""


class PatientNotFoundError(LabNotifyError):
    """No patient record matches the requested id."""

    def __init__(self, patient_id: str):
        super().__init__("Patient not found")
        self.patient_id = patient_id
