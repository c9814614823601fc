"""Pydantic schemas for API requests and responses."""

from pairflix.schemas.audit_log import AuditLog, AuditLogList, AuditLogSources, AuditLogStats
from pairflix.schemas.setting import (
    AppSetting,
    ClearCacheResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    SettingsUpdateResponse,
    SettingUpdate,
    SettingValue,
)

__all__ = [
    "AppSetting",
    "AuditLog",
    "AuditLogList",
    "AuditLogSources",
    "AuditLogStats",
    "ClearCacheResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
    "SettingsUpdateResponse",
    "SettingUpdate",
    "SettingValue",
]
