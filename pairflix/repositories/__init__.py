"""Repository pattern implementation for database queries."""

from pairflix.repositories.app_setting_repository import AppSettingRepository, SettingsStore
from pairflix.repositories.audit_log_repository import AuditLogRepository

__all__ = [
    "AppSettingRepository",
    "AuditLogRepository",
    "SettingsStore",
]
