from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from spoom.schemas.common import ApiModel

PrivacyLevel = Literal["private", "team", "public"]
DefaultRole = Literal["member", "admin", "guest"]
ContentType = Literal["text", "code", "file", "system"]


class WorkspaceCreateIn(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    is_personal: bool = False


class WorkspaceUpdateIn(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    logo_url: Optional[str] = Field(default=None, max_length=500)


class WorkspaceOut(ApiModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    owner_id: str
    invite_code: str
    is_personal: bool = False
    role: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WorkspaceSettingsOut(ApiModel):
    workspace_id: str
    notifications_enabled: bool
    default_user_role: str
    privacy_level: str
    allow_guest_access: bool
    domain_restrictions: list[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class WorkspaceSettingsUpdateIn(ApiModel):
    notifications_enabled: Optional[bool] = None
    default_user_role: Optional[DefaultRole] = None
    privacy_level: Optional[PrivacyLevel] = None
    allow_guest_access: Optional[bool] = None
    domain_restrictions: Optional[list[str]] = None


class WorkspaceNotificationsIn(ApiModel):
    notifications_enabled: bool


class WorkspacePrivacyIn(ApiModel):
    privacy_level: Optional[PrivacyLevel] = None
    allow_guest_access: Optional[bool] = None
    domain_restrictions: Optional[list[str]] = None


class WorkspaceRolesIn(ApiModel):
    default_user_role: DefaultRole


class MessageCreateIn(ApiModel):
    content: str = Field(min_length=1, max_length=20000)
    content_type: ContentType = "text"
    parent_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class MessageOut(ApiModel):
    id: str
    workspace_id: str
    user_id: Optional[str] = None
    content: str
    content_type: str
    parent_id: Optional[str] = None
    is_edited: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
