"""Service layer for PairFlix."""

from pairflix.services.audit_logger import AuditLogService, LogLevel
from pairflix.services.settings_resolver import SettingsResolver

__all__ = ["AuditLogService", "LogLevel", "SettingsResolver"]
