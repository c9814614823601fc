"""Audit log repository for centralized audit queries."""

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pairflix.models import AuditLog
from pairflix.utils.timezone import get_now


class AuditLogRepository:
    """Repository for AuditLog model."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository.

        Args:
            db: AsyncSession database session
        """
        self.db = db

    async def create(
        self,
        level: str,
        message: str,
        source: str,
        context: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> AuditLog:
        """
        Create a new audit log entry.

        Args:
            level: Log level (info, warn, error, debug)
            message: Short description of what happened
            source: Component that emitted the entry
            context: Event-specific data dictionary
            created_at: Entry timestamp (defaults to now)

        Returns:
            Created AuditLog instance
        """
        entry = AuditLog(
            level=level,
            message=message,
            source=source,
            context=context or {},
            created_at=created_at or get_now(),
        )

        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def get_recent(
        self,
        limit: int = 100,
        offset: int = 0,
        level_filter: str | None = None,
        source_filter: str | None = None,
    ) -> tuple[list[AuditLog], int]:
        """
        Get recent audit logs with pagination and filtering.

        Args:
            limit: Maximum number of entries to return
            offset: Pagination offset
            level_filter: Filter by level (optional)
            source_filter: Filter by source (optional)

        Returns:
            Tuple of (entries list, total count)
        """
        query = select(AuditLog)
        count_query = select(func.count(AuditLog.log_id))

        if level_filter:
            query = query.where(AuditLog.level == level_filter)
            count_query = count_query.where(AuditLog.level == level_filter)
        if source_filter:
            query = query.where(AuditLog.source == source_filter)
            count_query = count_query.where(AuditLog.source == source_filter)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_sources(self) -> list[str]:
        """Return the distinct sources that have written entries."""
        result = await self.db.execute(select(AuditLog.source).distinct().order_by(AuditLog.source))
        return [row[0] for row in result.fetchall()]

    async def count_by_level(self) -> dict[str, int]:
        """
        Count entries grouped by level.

        Returns:
            Dictionary mapping level to count
        """
        query = select(AuditLog.level, func.count(AuditLog.log_id)).group_by(AuditLog.level)
        result = await self.db.execute(query)
        return {row[0]: row[1] for row in result.fetchall()}
