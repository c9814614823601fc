"""App setting repository and the session-scoped settings store."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pairflix.db import SessionFactory
from pairflix.models import AppSetting


class AppSettingRepository:
    """Repository for AppSetting model."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository.

        Args:
            db: AsyncSession database session
        """
        self.db = db

    async def find_all(self) -> list[AppSetting]:
        """Return every persisted setting ordered by key."""
        result = await self.db.execute(select(AppSetting).order_by(AppSetting.key))
        return list(result.scalars().all())

    async def find_by_key(self, key: str) -> AppSetting | None:
        """Return the setting stored under key, or None."""
        result = await self.db.execute(select(AppSetting).where(AppSetting.key == key))
        return result.scalar_one_or_none()

    async def upsert(
        self,
        key: str,
        value: Any,
        category: str | None = None,
        description: str | None = None,
        default_category: str = "general",
    ) -> tuple[AppSetting, bool]:
        """
        Create the setting or update it in place.

        On update, category and description only change when provided.

        Args:
            key: Setting key
            value: JSON-serializable value
            category: Explicit category (optional)
            description: Human-readable description (optional)
            default_category: Category used on creation when none is given

        Returns:
            Tuple of (setting, created)
        """
        setting = await self.find_by_key(key)
        created = setting is None

        if setting is None:
            setting = AppSetting(
                key=key,
                value=value,
                category=category or default_category,
                description=description,
            )
            self.db.add(setting)
        else:
            setting.value = value
            if category:
                setting.category = category
            if description:
                setting.description = description

        await self.db.commit()
        await self.db.refresh(setting)
        return setting, created

    async def create(
        self,
        key: str,
        value: Any,
        category: str = "general",
        description: str | None = None,
    ) -> AppSetting:
        """Insert a new setting row."""
        setting = AppSetting(key=key, value=value, category=category, description=description)
        self.db.add(setting)
        await self.db.commit()
        await self.db.refresh(setting)
        return setting

    async def delete(self, setting: AppSetting) -> None:
        """Delete a setting row."""
        await self.db.delete(setting)
        await self.db.commit()


class SettingsStore:
    """
    Persistent key-value store backing the settings resolver.

    The resolver lives for the whole process, so every operation opens its
    own short-lived session instead of holding a request-scoped one.
    """

    def __init__(self, session_factory: SessionFactory):
        """
        Initialize the store.

        Args:
            session_factory: Callable returning an async context manager that
                yields an AsyncSession (e.g. ``pairflix.db.db_session``)
        """
        self.session_factory = session_factory

    async def find_all(self) -> list[AppSetting]:
        async with self.session_factory() as db:
            return await AppSettingRepository(db).find_all()

    async def find_by_key(self, key: str) -> AppSetting | None:
        async with self.session_factory() as db:
            return await AppSettingRepository(db).find_by_key(key)

    async def upsert(
        self,
        key: str,
        value: Any,
        category: str | None = None,
        description: str | None = None,
        default_category: str = "general",
    ) -> tuple[AppSetting, bool]:
        async with self.session_factory() as db:
            return await AppSettingRepository(db).upsert(
                key, value, category, description, default_category=default_category
            )

    async def create(
        self,
        key: str,
        value: Any,
        category: str = "general",
        description: str | None = None,
    ) -> AppSetting:
        async with self.session_factory() as db:
            return await AppSettingRepository(db).create(key, value, category, description)

    async def delete(self, setting: AppSetting) -> None:
        async with self.session_factory() as db:
            # The instance was loaded by another session; re-fetch it here
            current = await db.get(AppSetting, setting.key)
            if current is not None:
                await AppSettingRepository(db).delete(current)
