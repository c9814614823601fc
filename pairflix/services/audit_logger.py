"""Audit log service for recording administrative and system events."""

import logging
from enum import Enum
from typing import Any

from pairflix.db import SessionFactory
from pairflix.models import AuditLog
from pairflix.repositories.audit_log_repository import AuditLogRepository
from pairflix.utils.log_redaction import sanitize_for_log, to_json_safe

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Severity levels for audit entries."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"


class AuditLogService:
    """
    Service for writing and reading audit log entries.

    Writes are fire-and-forget: a failure to store an entry is logged and
    swallowed so callers never fail because auditing failed.
    """

    def __init__(self, session_factory: SessionFactory, environment: str = "development"):
        """
        Initialize audit log service.

        Args:
            session_factory: Callable yielding an AsyncSession context
            environment: Deployment environment; debug entries are dropped in production
        """
        self.session_factory = session_factory
        self.environment = environment

    async def log(
        self,
        level: LogLevel | str,
        message: str,
        source: str,
        context: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """
        Store an audit entry.

        Args:
            level: Severity level
            message: Short description of what happened
            source: Component or area where the event occurred
            context: Additional data about the event

        Returns:
            The created entry, or None if it could not be stored
        """
        level_value = level.value if isinstance(level, LogLevel) else str(level)
        try:
            async with self.session_factory() as db:
                return await AuditLogRepository(db).create(
                    level=level_value,
                    message=message[:255],
                    source=source[:100],
                    context=to_json_safe(context or {}),
                )
        except Exception as e:
            logger.error(
                f"Failed to create audit log ({level_value}, {sanitize_for_log(source)}): {e}",
                exc_info=True,
            )
            return None

    async def info(
        self, message: str, source: str, context: dict[str, Any] | None = None
    ) -> AuditLog | None:
        return await self.log(LogLevel.INFO, message, source, context)

    async def warn(
        self, message: str, source: str, context: dict[str, Any] | None = None
    ) -> AuditLog | None:
        return await self.log(LogLevel.WARN, message, source, context)

    async def error(
        self, message: str, source: str, context: dict[str, Any] | None = None
    ) -> AuditLog | None:
        return await self.log(LogLevel.ERROR, message, source, context)

    async def debug(
        self, message: str, source: str, context: dict[str, Any] | None = None
    ) -> AuditLog | None:
        """Store a debug entry unless running in production."""
        if self.environment == "production":
            return None
        return await self.log(LogLevel.DEBUG, message, source, context)
