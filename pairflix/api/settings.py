"""Admin settings API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pairflix.db import get_db
from pairflix.dependencies import get_audit_logger, get_current_user_id, get_settings_resolver
from pairflix.repositories.app_setting_repository import AppSettingRepository
from pairflix.schemas import (
    AppSetting,
    ClearCacheResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    SettingsUpdateResponse,
    SettingUpdate,
    SettingValue,
)
from pairflix.services.audit_logger import AuditLogService
from pairflix.services.settings_resolver import SettingsResolver, flatten_settings
from pairflix.utils.log_redaction import redact_value, sanitize_for_log
from pairflix.utils.timezone import get_now

logger = logging.getLogger(__name__)

router = APIRouter()

AUDIT_SOURCE = "admin-controller"

# Sections a full settings document must carry
REQUIRED_SECTIONS = ("general", "security", "email", "features")

# Distinguishes an unknown key from a setting stored as null
_NOT_FOUND = object()


@router.get("/settings", response_model=SettingsResponse)
async def get_app_settings(
    resolver: SettingsResolver = Depends(get_settings_resolver),
    audit: AuditLogService = Depends(get_audit_logger),
    user_id: str | None = Depends(get_current_user_id),
):
    """Get the compiled application settings."""
    from_cache = resolver.is_cache_fresh()
    settings = await resolver.get_settings()

    await audit.info(
        "Retrieved app settings",
        AUDIT_SOURCE,
        {"user_id": user_id, "timestamp": get_now()},
    )

    return SettingsResponse(settings=settings, from_cache=from_cache, last_updated=get_now())


@router.put("/settings", response_model=SettingsUpdateResponse)
async def update_app_settings(
    update: SettingsUpdateRequest,
    resolver: SettingsResolver = Depends(get_settings_resolver),
    audit: AuditLogService = Depends(get_audit_logger),
    user_id: str | None = Depends(get_current_user_id),
):
    """
    Update application settings from a nested settings document.

    The document must contain the general, security, email and features
    sections. Nested values are stored under dot-delimited keys.
    """
    if not update.settings:
        raise HTTPException(status_code=400, detail="Settings object is required")

    missing = [section for section in REQUIRED_SECTIONS if update.settings.get(section) is None]
    if missing:
        raise HTTPException(
            status_code=400,
            detail="Invalid settings format. Required sections: general, security, email, features",
        )

    try:
        await resolver.update_settings(flatten_settings(update.settings), user_id=user_id)
    except Exception as e:
        logger.error(f"Error updating application settings: {e}")
        await audit.error(
            "Failed to update app settings",
            AUDIT_SOURCE,
            {"user_id": user_id, "error": str(e)},
        )
        raise HTTPException(status_code=500, detail="Failed to update application settings")

    return SettingsUpdateResponse(
        success=True,
        message="Settings updated successfully",
        settings=await resolver.get_settings(),
        last_updated=get_now(),
    )


@router.post("/settings/clear-cache", response_model=ClearCacheResponse)
async def clear_settings_cache(
    resolver: SettingsResolver = Depends(get_settings_resolver),
    audit: AuditLogService = Depends(get_audit_logger),
    user_id: str | None = Depends(get_current_user_id),
):
    """Clear the server-side settings cache."""
    resolver.clear_cache()

    await audit.warn(
        "Cleared server cache",
        AUDIT_SOURCE,
        {"user_id": user_id, "timestamp": get_now()},
    )

    return ClearCacheResponse(success=True, message="Server cache cleared successfully")


@router.get("/settings/defaults")
async def get_default_settings(resolver: SettingsResolver = Depends(get_settings_resolver)):
    """Get the built-in default settings."""
    return {"settings": resolver.get_default_settings()}


@router.get("/settings/records", response_model=list[AppSetting])
async def list_setting_records(db: AsyncSession = Depends(get_db)):
    """List persisted setting records with their categories and descriptions."""
    records = await AppSettingRepository(db).find_all()
    return [AppSetting.model_validate(record) for record in records]


@router.get("/settings/{key}", response_model=SettingValue)
async def get_setting(key: str, resolver: SettingsResolver = Depends(get_settings_resolver)):
    """Get a single setting by its dot-delimited key."""
    value = await resolver.get_setting(key, default=_NOT_FOUND)
    if value is _NOT_FOUND:
        raise HTTPException(status_code=404, detail="Setting not found")

    return SettingValue(key=key, value=redact_value(key, value, resolver.SENSITIVE_SETTINGS))


@router.put("/settings/{key}", response_model=SettingValue)
async def update_setting(
    key: str,
    update: SettingUpdate,
    resolver: SettingsResolver = Depends(get_settings_resolver),
    user_id: str | None = Depends(get_current_user_id),
):
    """Create or update a single setting."""
    try:
        await resolver.update_setting(
            key,
            update.value,
            category=update.category,
            description=update.description,
            user_id=user_id,
        )
    except Exception as e:
        logger.error(f"Error updating setting {sanitize_for_log(key)}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update setting")

    value = await resolver.get_setting(key)
    return SettingValue(key=key, value=redact_value(key, value, resolver.SENSITIVE_SETTINGS))


@router.delete("/settings/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_setting(
    key: str,
    resolver: SettingsResolver = Depends(get_settings_resolver),
    user_id: str | None = Depends(get_current_user_id),
):
    """Delete a setting. Unknown keys are ignored."""
    try:
        await resolver.delete_setting(key, user_id=user_id)
    except Exception as e:
        logger.error(f"Error deleting setting {sanitize_for_log(key)}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete setting")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
