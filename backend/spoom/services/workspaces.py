# spoom/services/workspaces.py
"""
Workspace, workspace settings and message operations.

Storage sits behind ``WorkspaceRepository`` so the route layer never touches
SQLAlchemy directly; ``SqlWorkspaceRepository`` (workspace_store.py) is the
application implementation. Role checks live here.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Protocol, Sequence

from spoom.core.errors import NotFound, Unauthorized, ValidationError

logger = logging.getLogger(__name__)

OWNER = "owner"
ADMIN = "admin"
MEMBER = "member"
GUEST = "guest"

MANAGERS = (OWNER, ADMIN)
POSTERS = (OWNER, ADMIN, MEMBER)
ANY_MEMBER = (OWNER, ADMIN, MEMBER, GUEST)

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 6

_SLUG_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class WorkspaceRecord:
    id: str
    name: str
    slug: str
    owner_id: str
    invite_code: str
    description: str | None = None
    logo_url: str | None = None
    is_personal: bool = False
    role: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class WorkspaceSettingsRecord:
    workspace_id: str
    notifications_enabled: bool = True
    default_user_role: str = MEMBER
    privacy_level: str = "private"
    allow_guest_access: bool = False
    domain_restrictions: list[str] = field(default_factory=list)
    updated_at: datetime | None = None


@dataclass(frozen=True)
class MessageRecord:
    id: str
    workspace_id: str
    user_id: str | None
    content: str
    content_type: str = "text"
    parent_id: str | None = None
    is_edited: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


class WorkspaceRepository(Protocol):
    def list_for_user(self, user_id: str) -> list[WorkspaceRecord]:
        ...

    def get(self, workspace_id: str) -> WorkspaceRecord | None:
        ...

    def get_member_role(self, workspace_id: str, user_id: str) -> str | None:
        ...

    def create(
        self,
        *,
        owner_id: str,
        name: str,
        slug: str,
        invite_code: str,
        description: str | None = None,
        logo_url: str | None = None,
        is_personal: bool = False,
    ) -> WorkspaceRecord:
        ...

    def slug_exists(self, slug: str) -> bool:
        ...

    def invite_code_exists(self, code: str) -> bool:
        ...

    def update(self, workspace_id: str, changes: dict[str, Any]) -> WorkspaceRecord:
        ...

    def delete(self, workspace_id: str) -> None:
        ...

    def get_settings(self, workspace_id: str) -> WorkspaceSettingsRecord:
        ...

    def update_settings(self, workspace_id: str, changes: dict[str, Any]) -> WorkspaceSettingsRecord:
        ...

    def add_message(
        self,
        *,
        workspace_id: str,
        user_id: str,
        content: str,
        content_type: str = "text",
        parent_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MessageRecord:
        ...

    def get_message(self, message_id: str) -> MessageRecord | None:
        ...

    def list_messages(self, workspace_id: str, *, limit: int = 50, parent_id: str | None = None) -> list[MessageRecord]:
        ...


def slugify(name: str) -> str:
    return _SLUG_RE.sub("-", (name or "").strip().lower()).strip("-")[:100] or "workspace"


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def _unique_slug(repo: WorkspaceRepository, name: str) -> str:
    base = slugify(name)
    slug = base
    while repo.slug_exists(slug):
        slug = f"{base}-{secrets.token_hex(3)}"
    return slug


def _unique_invite_code(repo: WorkspaceRepository) -> str:
    code = generate_invite_code()
    while repo.invite_code_exists(code):
        code = generate_invite_code()
    return code


def require_workspace_role(
    repo: WorkspaceRepository,
    workspace_id: str,
    user_id: str,
    allowed: Sequence[str] = ANY_MEMBER,
) -> tuple[WorkspaceRecord, str]:
    """Return the workspace and the caller's role, or raise NotFound / Unauthorized."""
    workspace = repo.get(workspace_id)
    if workspace is None:
        raise NotFound("Workspace not found")

    role = repo.get_member_role(workspace_id, user_id)
    if role is None:
        raise Unauthorized("You are not a member of this workspace")
    if role not in allowed:
        raise Unauthorized("Your workspace role does not allow this action")
    return workspace, role


def list_workspaces(repo: WorkspaceRepository, user_id: str) -> list[WorkspaceRecord]:
    return repo.list_for_user(user_id)


def get_workspace(repo: WorkspaceRepository, workspace_id: str, user_id: str) -> WorkspaceRecord:
    workspace, role = require_workspace_role(repo, workspace_id, user_id)
    return _with_role(workspace, role)


def create_workspace(
    repo: WorkspaceRepository,
    user_id: str,
    *,
    name: str,
    description: str | None = None,
    logo_url: str | None = None,
    is_personal: bool = False,
) -> WorkspaceRecord:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Workspace name is required", details={"fields": ["name"]})

    workspace = repo.create(
        owner_id=user_id,
        name=name,
        slug=_unique_slug(repo, name),
        invite_code=_unique_invite_code(repo),
        description=description,
        logo_url=logo_url,
        is_personal=is_personal,
    )
    logger.info("Created workspace %s (%s) for user %s", workspace.id, workspace.slug, user_id)
    return _with_role(workspace, OWNER)


def update_workspace(repo: WorkspaceRepository, workspace_id: str, user_id: str, changes: dict[str, Any]) -> WorkspaceRecord:
    _, role = require_workspace_role(repo, workspace_id, user_id, MANAGERS)
    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("Workspace name cannot be empty", details={"fields": ["name"]})
    if not changes:
        return _with_role(repo.get(workspace_id), role)
    return _with_role(repo.update(workspace_id, changes), role)


def delete_workspace(repo: WorkspaceRepository, workspace_id: str, user_id: str) -> None:
    require_workspace_role(repo, workspace_id, user_id, (OWNER,))
    repo.delete(workspace_id)
    logger.info("Deleted workspace %s by owner %s", workspace_id, user_id)


def get_workspace_settings(repo: WorkspaceRepository, workspace_id: str, user_id: str) -> WorkspaceSettingsRecord:
    require_workspace_role(repo, workspace_id, user_id)
    return repo.get_settings(workspace_id)


def update_workspace_settings(
    repo: WorkspaceRepository,
    workspace_id: str,
    user_id: str,
    changes: dict[str, Any],
) -> WorkspaceSettingsRecord:
    require_workspace_role(repo, workspace_id, user_id, MANAGERS)
    if "domain_restrictions" in changes and changes["domain_restrictions"] is not None:
        changes["domain_restrictions"] = sorted(
            {d.strip().lower().lstrip("@") for d in changes["domain_restrictions"] if d and d.strip()}
        )
    return repo.update_settings(workspace_id, changes)


def post_message(
    repo: WorkspaceRepository,
    workspace_id: str,
    user_id: str,
    *,
    content: str,
    content_type: str = "text",
    parent_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> MessageRecord:
    require_workspace_role(repo, workspace_id, user_id, POSTERS)
    if not (content or "").strip():
        raise ValidationError("Message content is required", details={"fields": ["content"]})

    if parent_id:
        parent = repo.get_message(parent_id)
        if parent is None or parent.workspace_id != workspace_id:
            raise ValidationError("Parent message does not belong to this workspace", details={"fields": ["parentId"]})

    return repo.add_message(
        workspace_id=workspace_id,
        user_id=user_id,
        content=content,
        content_type=content_type,
        parent_id=parent_id,
        metadata=metadata,
    )


def list_messages(
    repo: WorkspaceRepository,
    workspace_id: str,
    user_id: str,
    *,
    limit: int = 50,
    parent_id: str | None = None,
) -> list[MessageRecord]:
    require_workspace_role(repo, workspace_id, user_id)
    return repo.list_messages(workspace_id, limit=limit, parent_id=parent_id)


def _with_role(workspace: WorkspaceRecord | None, role: str) -> WorkspaceRecord:
    if workspace is None:
        raise NotFound("Workspace not found")
    if workspace.role == role:
        return workspace
    return replace(workspace, role=role)
