"""Dependencies exposing the process-wide settings services to endpoints."""

from fastapi import HTTPException, Request, status

from pairflix.services.audit_logger import AuditLogService
from pairflix.services.settings_resolver import SettingsResolver


def get_settings_resolver(request: Request) -> SettingsResolver:
    """
    Get the SettingsResolver created at application startup.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    resolver = getattr(request.app.state, "settings_resolver", None)
    if resolver is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Settings service not initialized",
        )
    return resolver


def get_audit_logger(request: Request) -> AuditLogService:
    """Get the AuditLogService created at application startup."""
    audit = getattr(request.app.state, "audit_logger", None)
    if audit is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit log service not initialized",
        )
    return audit


async def get_current_user_id(request: Request) -> str | None:
    """
    Return the acting user's id for audit entries.

    Authentication happens upstream; a middleware that identified the caller
    attaches ``request.state.user_id``. Anonymous requests yield None.
    """
    user_id = getattr(getattr(request, "state", None), "user_id", None)
    return str(user_id) if user_id is not None else None
