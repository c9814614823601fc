"""Audit log model for tracking administrative and system events."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from pairflix.db import Base
from pairflix.utils.timezone import get_now


def _new_log_id() -> str:
    return str(uuid.uuid4())


class AuditLog(Base):
    """Audit log entry written by services for later review by admins."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_created_at", "created_at"),
        Index("ix_audit_level", "level"),
        Index("ix_audit_source", "source"),
    )

    log_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_log_id)

    level: Mapped[str] = mapped_column(String(10), nullable=False)  # info, warn, error, debug
    message: Mapped[str] = mapped_column(String(255), nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. settings-service

    # Event-specific data, e.g. {"key": "email.smtpServer", "user_id": "..."}
    context: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_now, nullable=False)
