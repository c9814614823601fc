"""Database models for PairFlix."""

from pairflix.models.app_setting import AppSetting
from pairflix.models.audit_log import AuditLog

__all__ = [
    "AppSetting",
    "AuditLog",
]
