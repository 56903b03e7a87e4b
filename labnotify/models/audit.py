"""Audit log models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLogEntry(BaseModel):
    """Row in the ``audit_logs`` table."""

    model_config = ConfigDict(extra="ignore")

    action: str
    table_name: str
    record_id: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    user_id: str | None = None
    created_at: datetime | None = None
