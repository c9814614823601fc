"""Application settings model for persisted configuration entries."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from pairflix.db import Base
from pairflix.utils.timezone import get_now


class AppSetting(Base):
    """Key-value store for application settings.

    Keys are dot-delimited paths such as ``email.smtpServer``; values are any
    JSON-serializable value.
    """

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=get_now, onupdate=get_now, nullable=False
    )
