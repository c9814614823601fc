"""Admin audit log API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pairflix.db import get_db
from pairflix.repositories.audit_log_repository import AuditLogRepository
from pairflix.schemas import AuditLog, AuditLogList, AuditLogSources, AuditLogStats

router = APIRouter()


@router.get("/", response_model=AuditLogList)
async def get_audit_logs(
    limit: int = Query(100, ge=1, le=500, description="Maximum number of entries to return"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    level: str | None = Query(None, description="Filter by level (info, warn, error, debug)"),
    source: str | None = Query(None, description="Filter by source component"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get recent audit log entries with pagination and filtering.

    Args:
        limit: Maximum number of entries to return (1-500, default 100)
        offset: Pagination offset
        level: Filter by level (optional)
        source: Filter by source (optional)
        db: Database session

    Returns:
        AuditLogList with entries (newest first) and the total count
    """
    repository = AuditLogRepository(db)
    logs, total = await repository.get_recent(
        limit=limit,
        offset=offset,
        level_filter=level,
        source_filter=source,
    )
    return AuditLogList(logs=[AuditLog.model_validate(log) for log in logs], total=total)


@router.get("/sources", response_model=AuditLogSources)
async def get_audit_log_sources(db: AsyncSession = Depends(get_db)):
    """Get the distinct components that have written audit entries."""
    sources = await AuditLogRepository(db).get_sources()
    return AuditLogSources(sources=sources)


@router.get("/stats", response_model=AuditLogStats)
async def get_audit_log_stats(db: AsyncSession = Depends(get_db)):
    """Get audit entry counts grouped by level."""
    by_level = await AuditLogRepository(db).count_by_level()
    return AuditLogStats(total=sum(by_level.values()), by_level=by_level)
