from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from spoom.schemas.common import ApiModel

Theme = Literal["light", "dark", "system"]
Language = Literal["en", "es", "fr", "de", "ja", "zh", "ko"]


class UserMeOut(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    auth_provider: str
    is_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class PrivacySettings(ApiModel):
    share_status: bool = True
    show_online_status: bool = True
    allow_data_collection: bool = False


class PrivacySettingsIn(ApiModel):
    share_status: Optional[bool] = None
    show_online_status: Optional[bool] = None
    allow_data_collection: Optional[bool] = None


class UserSettingsOut(ApiModel):
    theme: str
    language: str
    notifications_enabled: bool
    email_notifications: bool
    push_notifications: bool
    desktop_notifications: bool
    privacy_settings: PrivacySettings
    updated_at: Optional[datetime] = None


class NotificationSettingsIn(ApiModel):
    notifications_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    desktop_notifications: Optional[bool] = None


class PrivacySettingsPatchIn(ApiModel):
    privacy_settings: PrivacySettingsIn


class UpdateUserSettingsIn(ApiModel):
    theme: Optional[Theme] = None
    language: Optional[Language] = None
    notifications_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    desktop_notifications: Optional[bool] = None
    privacy_settings: Optional[PrivacySettingsIn] = None


class ThemeIn(ApiModel):
    theme: Theme
