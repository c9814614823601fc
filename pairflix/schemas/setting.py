"""Setting schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AppSetting(BaseModel):
    """Persisted setting schema."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    value: Any
    category: str = "general"
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class SettingValue(BaseModel):
    """A single resolved setting value."""

    key: str
    value: Any


class SettingUpdate(BaseModel):
    """Schema for updating a single setting."""

    value: Any
    category: str | None = None
    description: str | None = None


class SettingsUpdateRequest(BaseModel):
    """Schema for updating the nested settings document."""

    settings: dict[str, Any] | None = None


class SettingsResponse(BaseModel):
    """Compiled settings response."""

    settings: dict[str, Any]
    from_cache: bool
    last_updated: datetime


class SettingsUpdateResponse(BaseModel):
    """Response after a bulk settings update."""

    success: bool
    message: str
    settings: dict[str, Any]
    last_updated: datetime


class ClearCacheResponse(BaseModel):
    """Response for the cache clear endpoint."""

    success: bool
    message: str
