"""Tests for the database-backed settings store and resolver."""

import pytest
from sqlalchemy import select

from pairflix.models import AppSetting, AuditLog
from pairflix.repositories import AppSettingRepository, SettingsStore


@pytest.mark.asyncio
class TestAppSettingRepository:
    """Tests for AppSettingRepository against a real session."""

    async def test_create_and_find_by_key(self, session_maker):
        """Test inserting and reading back a setting."""
        async with session_maker() as db:
            repo = AppSettingRepository(db)
            await repo.create("media.imageQuality", 85, category="media", description="Quality")

            setting = await repo.find_by_key("media.imageQuality")

        assert setting is not None
        assert setting.value == 85
        assert setting.category == "media"
        assert setting.created_at is not None
        assert setting.updated_at is not None

    async def test_find_all_is_ordered_by_key(self, session_maker):
        """Test that find_all returns rows sorted by key."""
        async with session_maker() as db:
            repo = AppSettingRepository(db)
            await repo.create("media.imageQuality", 85)
            await repo.create("email.smtpPort", 587)
            await repo.create("general.siteName", "PairFlix")

            keys = [s.key for s in await repo.find_all()]

        assert keys == ["email.smtpPort", "general.siteName", "media.imageQuality"]

    async def test_upsert_creates_with_default_category(self, session_maker):
        """Test that a new key takes the default category when none is given."""
        async with session_maker() as db:
            setting, created = await AppSettingRepository(db).upsert(
                "security.sessionTimeout", 60, default_category="security"
            )

        assert created is True
        assert setting.category == "security"
        assert setting.value == 60

    async def test_upsert_updates_existing(self, session_maker):
        """Test that upsert changes the value and keeps unspecified metadata."""
        async with session_maker() as db:
            repo = AppSettingRepository(db)
            await repo.create("general.siteName", "PairFlix", category="general", description="Name")

            setting, created = await repo.upsert("general.siteName", "Renamed")

        assert created is False
        assert setting.value == "Renamed"
        assert setting.category == "general"
        assert setting.description == "Name"

    async def test_json_values_round_trip(self, session_maker):
        """Test that list and boolean values keep their types."""
        async with session_maker() as db:
            repo = AppSettingRepository(db)
            await repo.create("media.allowedFileTypes", ["jpg", "png"])
            await repo.create("general.maintenanceMode", False)

        async with session_maker() as db:
            repo = AppSettingRepository(db)
            file_types = await repo.find_by_key("media.allowedFileTypes")
            maintenance = await repo.find_by_key("general.maintenanceMode")

        assert file_types.value == ["jpg", "png"]
        assert maintenance.value is False


@pytest.mark.asyncio
class TestSettingsStore:
    """Tests for the session-per-operation store."""

    async def test_operations_use_independent_sessions(self, settings_store: SettingsStore):
        """Test that rows written by one call are visible to the next."""
        await settings_store.create("general.siteName", "PairFlix")

        setting = await settings_store.find_by_key("general.siteName")
        assert setting.value == "PairFlix"

        updated, created = await settings_store.upsert("general.siteName", "PairFlix 2")
        assert created is False
        assert updated.value == "PairFlix 2"

        assert [s.key for s in await settings_store.find_all()] == ["general.siteName"]

    async def test_delete_detached_instance(self, settings_store: SettingsStore):
        """Test deleting a setting loaded by an earlier session."""
        await settings_store.create("media.storageProvider", "local", category="media")
        setting = await settings_store.find_by_key("media.storageProvider")

        await settings_store.delete(setting)

        assert await settings_store.find_by_key("media.storageProvider") is None

    async def test_find_missing_key(self, settings_store: SettingsStore):
        assert await settings_store.find_by_key("missing.key") is None


@pytest.mark.asyncio
class TestResolverWithDatabase:
    """End-to-end resolver behaviour against SQLite."""

    async def test_first_load_seeds_database(self, db_resolver, session_maker):
        """Test that an empty database is populated with defaults."""
        settings = await db_resolver.get_settings()

        assert settings["general"]["siteName"] == "PairFlix"
        assert settings["security"]["passwordPolicy"]["minLength"] == 8

        async with session_maker() as db:
            rows = (await db.execute(select(AppSetting))).scalars().all()
            entries = (await db.execute(select(AuditLog))).scalars().all()

        assert len(rows) == 28
        assert {row.category for row in rows} == {
            "general",
            "security",
            "email",
            "media",
            "features",
        }
        assert [entry.message for entry in entries] == ["Initialized default settings"]
        assert entries[0].context["settings_count"] == 28

    async def test_sensitive_value_never_persisted(self, db_resolver, session_maker):
        """Test that the SMTP password is stored as an empty string."""
        await db_resolver.get_settings()

        await db_resolver.update_setting("email.smtpPassword", "hunter2", user_id="admin-1")

        async with session_maker() as db:
            row = await AppSettingRepository(db).find_by_key("email.smtpPassword")
            entries = (
                (await db.execute(select(AuditLog).where(AuditLog.message == "Updated setting")))
                .scalars()
                .all()
            )

        assert row.value == ""
        assert await db_resolver.get_setting("email.smtpPassword") == "hunter2"
        assert entries[0].context["value"] == "[SENSITIVE]"
        assert entries[0].context["user_id"] == "admin-1"

    async def test_update_persists_and_audits_timestamp(self, db_resolver, session_maker):
        """Test that updates reach the database with a serialized timestamp."""
        await db_resolver.get_settings()

        await db_resolver.update_setting("media.imageQuality", 70)
        db_resolver.clear_cache()

        assert await db_resolver.get_setting("media.imageQuality") == 70

        async with session_maker() as db:
            entry = (
                await db.execute(select(AuditLog).where(AuditLog.message == "Updated setting"))
            ).scalar_one()

        assert entry.level == "info"
        assert entry.source == "settings-service"
        assert isinstance(entry.context["timestamp"], str)
        assert entry.context["old_value"] == 85

    async def test_delete_removes_row(self, db_resolver, session_maker):
        """Test deleting a seeded setting."""
        await db_resolver.get_settings()

        await db_resolver.delete_setting("media.storageProvider")

        async with session_maker() as db:
            assert await AppSettingRepository(db).find_by_key("media.storageProvider") is None
            entry = (
                await db.execute(select(AuditLog).where(AuditLog.level == "warn"))
            ).scalar_one()

        assert entry.message == "Deleted setting"
        assert entry.context["old_value"] == "local"
