"""Dependencies for FastAPI endpoints."""

from pairflix.dependencies.settings import (
    get_audit_logger,
    get_current_user_id,
    get_settings_resolver,
)

__all__ = ["get_settings_resolver", "get_audit_logger", "get_current_user_id"]
