"""Pydantic schemas for Audit Log API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLog(BaseModel):
    """Audit log schema for API responses."""

    model_config = ConfigDict(from_attributes=True)

    log_id: str
    level: str
    message: str
    source: str
    context: dict[str, Any] | None
    created_at: datetime


class AuditLogList(BaseModel):
    """Paginated audit log response."""

    logs: list[AuditLog]
    total: int


class AuditLogSources(BaseModel):
    """Distinct sources that have written audit entries."""

    sources: list[str]


class AuditLogStats(BaseModel):
    """Audit entry counts."""

    total: int
    by_level: dict[str, int]
