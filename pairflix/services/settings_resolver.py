"""Settings resolver: cached, environment-aware access to application settings."""

import asyncio
import copy
import logging
import os
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pairflix.models import AppSetting
from pairflix.repositories.app_setting_repository import SettingsStore
from pairflix.services.audit_logger import AuditLogService
from pairflix.utils.log_redaction import redact_value, sanitize_for_log
from pairflix.utils.timezone import get_now

logger = logging.getLogger(__name__)

AUDIT_SOURCE = "settings-service"
SETTINGS_CACHE_TTL_SECONDS = 60 * 60  # 1 hour

EnvLookup = Callable[[str], str | None]
Clock = Callable[[], datetime]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class CachedSetting:
    """In-memory mirror of a persisted setting."""

    value: Any
    category: str = "general"
    description: str | None = None


def _parse_int(raw: str) -> int | None:
    """Parse the leading integer of raw ("2525abc" -> 2525); None if there is none."""
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


def _parse_bool(raw: str) -> bool:
    return raw.lower() == "true"


def flatten_settings(settings: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten a nested settings document into dot-delimited keys.

    Lists and scalars are leaves; mappings are descended into and empty
    mappings contribute no keys.

    Example:
        >>> flatten_settings({"email": {"smtpPort": 587}})
        {'email.smtpPort': 587}
    """
    flat: dict[str, Any] = {}
    for name, value in settings.items():
        key = f"{prefix}.{name}" if prefix else str(name)
        if isinstance(value, Mapping):
            flat.update(flatten_settings(value, key))
        else:
            flat[key] = value
    return flat


class SettingsResolver:
    """
    Resolve application settings from the store with caching and env overrides.

    Settings are stored flat under dot-delimited keys (``email.smtpServer``)
    and handed out compiled into a nested dict. One instance is created per
    application and owns the cache.
    """

    # Never stored at rest; the real value comes from the environment only
    SENSITIVE_SETTINGS = frozenset({"email.smtpPassword"})

    # Setting key -> (environment variable, parser)
    ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any] | None]] = {
        "general.maintenanceMode": ("MAINTENANCE_MODE", _parse_bool),
        "features.enableMatching": ("ENABLE_MATCHING", _parse_bool),
        "email.smtpServer": ("SMTP_SERVER", None),
        "email.smtpPort": ("SMTP_PORT", _parse_int),
        "email.smtpUsername": ("SMTP_USERNAME", None),
        "email.smtpPassword": ("SMTP_PASSWORD", None),
        "email.senderEmail": ("EMAIL_SENDER", None),
        "email.senderName": ("EMAIL_SENDER_NAME", None),
    }

    CATEGORIES = ("general", "security", "email", "media", "features")

    DEFAULTS: dict[str, Any] = {
        # General
        "general.siteName": "PairFlix",
        "general.siteDescription": "Find your perfect movie match",
        "general.maintenanceMode": False,
        "general.defaultUserRole": "user",
        # Security
        "security.sessionTimeout": 120,  # minutes
        "security.maxLoginAttempts": 5,
        "security.passwordPolicy.minLength": 8,
        "security.passwordPolicy.requireUppercase": True,
        "security.passwordPolicy.requireLowercase": True,
        "security.passwordPolicy.requireNumbers": True,
        "security.passwordPolicy.requireSpecialChars": False,
        "security.twoFactorAuth.enabled": False,
        "security.twoFactorAuth.requiredForAdmins": False,
        # Email
        "email.smtpServer": "smtp.example.com",
        "email.smtpPort": 587,
        "email.smtpUsername": "notifications@pairflix.com",
        "email.smtpPassword": "",
        "email.senderEmail": "notifications@pairflix.com",
        "email.senderName": "PairFlix Notifications",
        "email.emailTemplatesPath": "/templates/email",
        # Media
        "media.maxUploadSize": 5,  # MB
        "media.allowedFileTypes": ["jpg", "jpeg", "png", "gif"],
        "media.imageQuality": 85,
        "media.storageProvider": "local",
        # Feature flags
        "features.enableMatching": True,
        "features.enableUserProfiles": True,
        "features.enableNotifications": True,
        "features.enableActivityFeed": True,
    }

    DESCRIPTIONS: dict[str, str] = {
        "general.siteName": "Name of the application shown to users",
        "general.siteDescription": "Short description of the application",
        "general.maintenanceMode": "When enabled, site displays maintenance message",
        "general.defaultUserRole": "Default role assigned to new users",
        "security.sessionTimeout": "Session timeout in minutes (2 hours default)",
        "security.maxLoginAttempts": "Maximum login attempts before account lockout",
        "security.passwordPolicy.minLength": "Minimum password length",
        "security.passwordPolicy.requireUppercase": "Require uppercase letters in passwords",
        "security.passwordPolicy.requireLowercase": "Require lowercase letters in passwords",
        "security.passwordPolicy.requireNumbers": "Require numbers in passwords",
        "security.passwordPolicy.requireSpecialChars": "Require special characters in passwords",
        "security.twoFactorAuth.enabled": "Enable two-factor authentication",
        "security.twoFactorAuth.requiredForAdmins": "Require two-factor authentication for admins",
        "email.smtpServer": "SMTP server address for sending emails",
        "email.smtpPort": "SMTP server port",
        "email.smtpUsername": "SMTP username for authentication",
        "email.smtpPassword": "SMTP password for authentication (stored in env)",
        "email.senderEmail": "Email address shown as sender",
        "email.senderName": "Name shown as sender",
        "email.emailTemplatesPath": "Path to email templates",
        "media.maxUploadSize": "Maximum file upload size in MB",
        "media.allowedFileTypes": "Allowed file types for uploads",
        "media.imageQuality": "JPEG image quality (0-100)",
        "media.storageProvider": "Storage provider for uploads (local, s3, etc)",
        "features.enableMatching": "Enable the matching feature",
        "features.enableUserProfiles": "Enable user profiles",
        "features.enableNotifications": "Enable notification system",
        "features.enableActivityFeed": "Enable activity feed",
    }

    def __init__(
        self,
        store: SettingsStore,
        audit: AuditLogService,
        env: EnvLookup = os.getenv,
        clock: Clock = get_now,
        ttl_seconds: int = SETTINGS_CACHE_TTL_SECONDS,
    ):
        """
        Initialize settings resolver.

        Args:
            store: Persistent settings store
            audit: Audit log sink
            env: Lookup for environment overrides (key -> value or None)
            clock: Returns the current time; drives cache expiry
            ttl_seconds: How long a full cache population stays valid
        """
        self.store = store
        self.audit = audit
        self.env = env
        self.clock = clock
        self.ttl_seconds = ttl_seconds

        self._cache: dict[str, CachedSetting] = {}
        self._last_fetch: datetime | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def last_fetched_at(self) -> datetime | None:
        """When the cache was last populated from the store."""
        return self._last_fetch

    def is_cache_fresh(self) -> bool:
        """Check whether the cache is populated and younger than the TTL."""
        if not self._cache or self._last_fetch is None:
            return False
        age = (self.clock() - self._last_fetch).total_seconds()
        return age < self.ttl_seconds

    async def get_settings(self, force_refresh: bool = False) -> dict[str, Any]:
        """
        Get all settings compiled into a nested dict.

        Falls back to the cache (or built-in defaults when the cache is empty)
        if the store cannot be read; never raises.

        Args:
            force_refresh: Reload from the store even if the cache is fresh

        Returns:
            Nested settings with environment overrides applied
        """
        if not force_refresh and self.is_cache_fresh():
            return self._compile(self._cache)

        async with self._refresh_lock:
            try:
                records = await self.store.find_all()

                if not records:
                    await self.initialize_default_settings()
                    records = await self.store.find_all()

                self._cache = self._to_cache(records)
                self._last_fetch = self.clock()
            except Exception as e:
                logger.error(f"Database error fetching app settings: {e}")

                if not self._cache:
                    self._cache = self._default_settings_map()

                await self.audit.error(
                    "Failed to load settings from database",
                    AUDIT_SOURCE,
                    {"error": str(e)},
                )

        return self._compile(self._cache)

    async def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a single setting value.

        Args:
            key: Dot-delimited setting key
            default: Returned when the key is unknown or cannot be loaded

        Returns:
            Setting value (environment override for sensitive keys) or default
        """
        if not self._cache:
            await self.get_settings()

        entry = self._cache.get(key)
        if entry is not None:
            return self._resolve_value(key, entry.value)

        try:
            setting = await self.store.find_by_key(key)
        except Exception as e:
            logger.error(f"Error fetching setting {sanitize_for_log(key)}: {e}")
            await self.audit.error(
                f"Failed to fetch setting {key}",
                AUDIT_SOURCE,
                {"key": key, "error": str(e)},
            )
            return default

        if setting is None:
            return default

        self._cache[key] = CachedSetting(
            value=setting.value,
            category=setting.category,
            description=setting.description,
        )
        return self._resolve_value(key, setting.value)

    async def update_setting(
        self,
        key: str,
        value: Any,
        category: str | None = None,
        description: str | None = None,
        user_id: str | None = None,
    ) -> None:
        """
        Create or update a setting.

        Sensitive settings are persisted as an empty string while the cache
        keeps the real value for in-process reads.

        Raises:
            Exception: Whatever the store raised; the failure is audited first
        """
        try:
            old_value = await self.get_setting(key)

            stored_value = "" if key in self.SENSITIVE_SETTINGS else value

            setting, created = await self.store.upsert(
                key,
                stored_value,
                category=category,
                description=description,
                default_category=self.get_category_from_key(key),
            )

            effective_category = category or setting.category
            self._cache[key] = CachedSetting(
                value=value,
                category=effective_category,
                description=description or setting.description,
            )

            await self.audit.info(
                "Updated setting",
                AUDIT_SOURCE,
                {
                    "user_id": user_id,
                    "key": key,
                    "category": effective_category,
                    "changed": True,
                    "created": created,
                    "value": redact_value(key, value, self.SENSITIVE_SETTINGS),
                    "old_value": redact_value(key, old_value, self.SENSITIVE_SETTINGS),
                    "timestamp": self.clock(),
                },
            )
        except Exception as e:
            logger.error(f"Error updating setting {sanitize_for_log(key)}: {e}")
            await self.audit.error(
                f"Failed to update setting {key}",
                AUDIT_SOURCE,
                {"user_id": user_id, "key": key, "error": str(e)},
            )
            raise

    async def update_settings(self, settings: Mapping[str, Any], user_id: str | None = None) -> None:
        """
        Update several settings; every entry is attempted.

        Raises:
            Exception: The first failure, after all entries have been attempted
        """
        first_error: Exception | None = None

        for key, value in settings.items():
            try:
                await self.update_setting(key, value, user_id=user_id)
            except Exception as e:
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    async def delete_setting(self, key: str, user_id: str | None = None) -> None:
        """
        Delete a setting. Deleting an unknown key is a no-op.

        Raises:
            Exception: Whatever the store raised; the failure is audited first
        """
        try:
            setting = await self.store.find_by_key(key)

            if setting is None:
                return

            old_value = setting.value
            category = setting.category

            await self.store.delete(setting)
            self._cache.pop(key, None)

            await self.audit.warn(
                "Deleted setting",
                AUDIT_SOURCE,
                {
                    "user_id": user_id,
                    "key": key,
                    "category": category,
                    "old_value": redact_value(key, old_value, self.SENSITIVE_SETTINGS),
                    "timestamp": self.clock(),
                },
            )
        except Exception as e:
            logger.error(f"Error deleting setting {sanitize_for_log(key)}: {e}")
            await self.audit.error(
                f"Failed to delete setting {key}",
                AUDIT_SOURCE,
                {"user_id": user_id, "key": key, "error": str(e)},
            )
            raise

    def clear_cache(self) -> None:
        """Drop the cache so the next read goes to the store."""
        self._cache = {}
        self._last_fetch = None

    async def initialize_default_settings(self) -> None:
        """Persist the built-in defaults (sensitive values stored empty)."""
        defaults = self._default_settings_map()

        try:
            for key, entry in defaults.items():
                value = "" if key in self.SENSITIVE_SETTINGS else entry.value
                await self.store.create(
                    key,
                    value,
                    category=entry.category,
                    description=entry.description,
                )
        except Exception as e:
            logger.error(f"Error initializing default settings: {e}")
            raise

        logger.info(f"Initialized {len(defaults)} default settings")
        await self.audit.info(
            "Initialized default settings",
            AUDIT_SOURCE,
            {"settings_count": len(defaults), "timestamp": self.clock()},
        )

    def get_default_settings(self) -> dict[str, Any]:
        """Built-in defaults compiled into a nested dict; no store access."""
        return self._compile(self._default_settings_map())

    @classmethod
    def get_category_from_key(cls, key: str) -> str:
        """Infer a setting's category from its key."""
        prefix = key.split(".", 1)[0]
        if "." in key and prefix in cls.CATEGORIES:
            return prefix

        for category in cls.CATEGORIES:
            if category in key:
                return category

        return "general"

    def _default_settings_map(self) -> dict[str, CachedSetting]:
        return {
            key: CachedSetting(
                value=copy.deepcopy(value),
                category=self.get_category_from_key(key),
                description=self.DESCRIPTIONS.get(key),
            )
            for key, value in self.DEFAULTS.items()
        }

    @staticmethod
    def _to_cache(records: Iterable[AppSetting]) -> dict[str, CachedSetting]:
        return {
            record.key: CachedSetting(
                value=record.value,
                category=record.category,
                description=record.description,
            )
            for record in records
        }

    def _environment_override(self, key: str, keep_empty: bool = False) -> Any:
        """
        Value from the environment for key, or None when not overridden.

        An empty variable counts as unset unless keep_empty is given and the
        value needs no parsing.
        """
        mapping = self.ENV_OVERRIDES.get(key)
        if mapping is None:
            return None

        env_var, parser = mapping
        raw = self.env(env_var)
        if raw is None:
            return None
        if parser is None:
            return raw if raw or keep_empty else None

        return parser(raw) if raw else None

    def _resolve_value(self, key: str, value: Any) -> Any:
        if key in self.SENSITIVE_SETTINGS:
            override = self._environment_override(key, keep_empty=True)
            if override is not None:
                return override
        return copy.deepcopy(value)

    def _compile(self, entries: Mapping[str, CachedSetting]) -> dict[str, Any]:
        """
        Build the nested settings dict from flat dot-delimited entries.

        Intermediate dicts are created when absent and merged when present.
        A key whose parent path already holds a non-dict value is skipped.
        """
        result: dict[str, Any] = {}

        for key, entry in entries.items():
            value = self._resolve_value(key, entry.value)

            if "." not in key:
                result[key] = value
                continue

            *parents, leaf = key.split(".")
            current: dict[str, Any] | None = result

            for part in parents:
                if not part:
                    continue
                node = current.setdefault(part, {})
                if not isinstance(node, dict):
                    logger.debug(f"Skipping setting {sanitize_for_log(key)}: '{part}' is not a section")
                    current = None
                    break
                current = node

            if current is not None and leaf:
                current[leaf] = value

        return self._apply_global_environment_overrides(result)

    def _apply_global_environment_overrides(self, settings: dict[str, Any]) -> dict[str, Any]:
        """Overwrite overridable fields with set environment variables."""
        for key in self.ENV_OVERRIDES:
            section_name, field = key.split(".", 1)
            section = settings.setdefault(section_name, {})
            if not isinstance(section, dict):
                continue

            override = self._environment_override(key)
            if override is not None:
                section[field] = override

        return settings
