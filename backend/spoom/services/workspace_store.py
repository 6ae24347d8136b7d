"""SQLAlchemy-backed ``WorkspaceRepository``."""
from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from spoom.core.errors import NotFound
from spoom.models.message import Message
from spoom.models.workspace import Workspace, WorkspaceMember, WorkspaceSettings
from spoom.services.workspaces import (
    OWNER,
    MessageRecord,
    WorkspaceRecord,
    WorkspaceSettingsRecord,
)

WORKSPACE_FIELDS = {"name", "description", "logo_url", "is_personal"}
SETTINGS_FIELDS = {
    "notifications_enabled",
    "default_user_role",
    "privacy_level",
    "allow_guest_access",
    "domain_restrictions",
}


def _workspace_record(ws: Workspace, role: str | None = None) -> WorkspaceRecord:
    return WorkspaceRecord(
        id=ws.id,
        name=ws.name,
        slug=ws.slug,
        owner_id=ws.owner_id,
        invite_code=ws.invite_code,
        description=ws.description,
        logo_url=ws.logo_url,
        is_personal=bool(ws.is_personal),
        role=role,
        created_at=ws.created_at,
        updated_at=ws.updated_at,
    )


def _settings_record(row: WorkspaceSettings) -> WorkspaceSettingsRecord:
    return WorkspaceSettingsRecord(
        workspace_id=row.workspace_id,
        notifications_enabled=bool(row.notifications_enabled),
        default_user_role=row.default_user_role,
        privacy_level=row.privacy_level,
        allow_guest_access=bool(row.allow_guest_access),
        domain_restrictions=list(row.domain_restrictions or []),
        updated_at=row.updated_at,
    )


def _message_record(msg: Message) -> MessageRecord:
    return MessageRecord(
        id=msg.id,
        workspace_id=msg.workspace_id,
        user_id=msg.user_id,
        content=msg.content,
        content_type=msg.content_type,
        parent_id=msg.parent_id,
        is_edited=bool(msg.is_edited),
        metadata=dict(msg.extra or {}),
        created_at=msg.created_at,
    )


class SqlWorkspaceRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _workspace(self, workspace_id: str) -> Workspace:
        ws = self.db.get(Workspace, workspace_id)
        if ws is None:
            raise NotFound("Workspace not found")
        return ws

    def list_for_user(self, user_id: str) -> list[WorkspaceRecord]:
        rows = (
            self.db.query(Workspace, WorkspaceMember.role)
            .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
            .filter(WorkspaceMember.user_id == user_id)
            .order_by(Workspace.created_at.asc(), Workspace.name.asc())
            .all()
        )
        return [_workspace_record(ws, role) for ws, role in rows]

    def get(self, workspace_id: str) -> WorkspaceRecord | None:
        ws = self.db.get(Workspace, workspace_id)
        return _workspace_record(ws) if ws else None

    def get_member_role(self, workspace_id: str, user_id: str) -> str | None:
        member = (
            self.db.query(WorkspaceMember)
            .filter(WorkspaceMember.workspace_id == workspace_id, WorkspaceMember.user_id == user_id)
            .first()
        )
        return member.role if member else None

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(Workspace.id).filter(Workspace.slug == slug).first() is not None

    def invite_code_exists(self, code: str) -> bool:
        return self.db.query(Workspace.id).filter(Workspace.invite_code == code).first() is not None

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
        ws = Workspace(
            name=name,
            slug=slug,
            invite_code=invite_code,
            description=description,
            logo_url=logo_url,
            is_personal=is_personal,
            owner_id=owner_id,
        )
        ws.settings = WorkspaceSettings(domain_restrictions=[])
        ws.members.append(WorkspaceMember(user_id=owner_id, role=OWNER))

        self.db.add(ws)
        self.db.commit()
        self.db.refresh(ws)
        return _workspace_record(ws, OWNER)

    def update(self, workspace_id: str, changes: dict[str, Any]) -> WorkspaceRecord:
        ws = self._workspace(workspace_id)
        for key, value in changes.items():
            if key in WORKSPACE_FIELDS:
                setattr(ws, key, value)
        self.db.commit()
        self.db.refresh(ws)
        return _workspace_record(ws)

    def delete(self, workspace_id: str) -> None:
        ws = self._workspace(workspace_id)
        self.db.delete(ws)
        self.db.commit()

    def _settings_row(self, workspace_id: str) -> WorkspaceSettings:
        ws = self._workspace(workspace_id)
        if ws.settings is None:
            ws.settings = WorkspaceSettings(domain_restrictions=[])
            self.db.commit()
            self.db.refresh(ws)
        return ws.settings

    def get_settings(self, workspace_id: str) -> WorkspaceSettingsRecord:
        return _settings_record(self._settings_row(workspace_id))

    def update_settings(self, workspace_id: str, changes: dict[str, Any]) -> WorkspaceSettingsRecord:
        row = self._settings_row(workspace_id)
        for key, value in changes.items():
            if key in SETTINGS_FIELDS:
                setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return _settings_record(row)

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
        msg = Message(
            workspace_id=workspace_id,
            user_id=user_id,
            content=content,
            content_type=content_type,
            parent_id=parent_id,
            extra=metadata or {},
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return _message_record(msg)

    def get_message(self, message_id: str) -> MessageRecord | None:
        msg = self.db.get(Message, message_id)
        return _message_record(msg) if msg else None

    def list_messages(self, workspace_id: str, *, limit: int = 50, parent_id: str | None = None) -> list[MessageRecord]:
        q = self.db.query(Message).filter(Message.workspace_id == workspace_id)
        if parent_id:
            q = q.filter(Message.parent_id == parent_id)
        rows = q.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
        return [_message_record(m) for m in reversed(rows)]
