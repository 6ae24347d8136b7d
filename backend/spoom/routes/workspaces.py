from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from spoom.dependencies.auth import get_current_user
from spoom.dependencies.workspaces import get_workspace_repository
from spoom.models.user import User
from spoom.schemas.common import ERROR_RESPONSES, ApiResponse
from spoom.schemas.workspace import (
    MessageCreateIn,
    MessageOut,
    WorkspaceCreateIn,
    WorkspaceNotificationsIn,
    WorkspaceOut,
    WorkspacePrivacyIn,
    WorkspaceRolesIn,
    WorkspaceSettingsOut,
    WorkspaceSettingsUpdateIn,
    WorkspaceUpdateIn,
)
from spoom.services import workspaces as workspace_service
from spoom.services.workspaces import WorkspaceRepository

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"], responses=ERROR_RESPONSES)


@router.get("", response_model=ApiResponse[list[WorkspaceOut]])
def list_workspaces(
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    rows = workspace_service.list_workspaces(repo, user.id)
    return ApiResponse(data=[WorkspaceOut.model_validate(w) for w in rows])


@router.post("", response_model=ApiResponse[WorkspaceOut], status_code=201)
def create_workspace(
    payload: WorkspaceCreateIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    ws = workspace_service.create_workspace(
        repo,
        user.id,
        name=payload.name,
        description=payload.description,
        logo_url=payload.logo_url,
        is_personal=payload.is_personal,
    )
    return ApiResponse(message="Workspace created", data=WorkspaceOut.model_validate(ws))


@router.get("/{workspace_id}", response_model=ApiResponse[WorkspaceOut])
def get_workspace(
    workspace_id: str,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    ws = workspace_service.get_workspace(repo, workspace_id, user.id)
    return ApiResponse(data=WorkspaceOut.model_validate(ws))


@router.patch("/{workspace_id}", response_model=ApiResponse[WorkspaceOut])
def update_workspace(
    workspace_id: str,
    payload: WorkspaceUpdateIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    ws = workspace_service.update_workspace(repo, workspace_id, user.id, payload.model_dump(exclude_unset=True))
    return ApiResponse(message="Workspace updated", data=WorkspaceOut.model_validate(ws))


@router.delete("/{workspace_id}", response_model=ApiResponse[None])
def delete_workspace(
    workspace_id: str,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    workspace_service.delete_workspace(repo, workspace_id, user.id)
    return ApiResponse(message="Workspace deleted")


# ----------------------------
# Workspace settings
# ----------------------------
@router.get("/{workspace_id}/settings", response_model=ApiResponse[WorkspaceSettingsOut])
def get_workspace_settings(
    workspace_id: str,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    row = workspace_service.get_workspace_settings(repo, workspace_id, user.id)
    return ApiResponse(data=WorkspaceSettingsOut.model_validate(row))


@router.put("/{workspace_id}/settings", response_model=ApiResponse[WorkspaceSettingsOut])
def update_workspace_settings(
    workspace_id: str,
    payload: WorkspaceSettingsUpdateIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    row = workspace_service.update_workspace_settings(
        repo,
        workspace_id,
        user.id,
        payload.model_dump(exclude_none=True),
    )
    return ApiResponse(message="Workspace settings updated", data=WorkspaceSettingsOut.model_validate(row))


@router.patch("/{workspace_id}/settings/notifications", response_model=ApiResponse[WorkspaceSettingsOut])
def update_workspace_notifications(
    workspace_id: str,
    payload: WorkspaceNotificationsIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    row = workspace_service.update_workspace_settings(repo, workspace_id, user.id, payload.model_dump())
    return ApiResponse(message="Workspace notification settings updated", data=WorkspaceSettingsOut.model_validate(row))


@router.patch("/{workspace_id}/settings/privacy", response_model=ApiResponse[WorkspaceSettingsOut])
def update_workspace_privacy(
    workspace_id: str,
    payload: WorkspacePrivacyIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    row = workspace_service.update_workspace_settings(
        repo,
        workspace_id,
        user.id,
        payload.model_dump(exclude_none=True),
    )
    return ApiResponse(message="Workspace privacy settings updated", data=WorkspaceSettingsOut.model_validate(row))


@router.patch("/{workspace_id}/settings/roles", response_model=ApiResponse[WorkspaceSettingsOut])
def update_workspace_default_role(
    workspace_id: str,
    payload: WorkspaceRolesIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    row = workspace_service.update_workspace_settings(repo, workspace_id, user.id, payload.model_dump())
    return ApiResponse(message="Default user role updated", data=WorkspaceSettingsOut.model_validate(row))


# ----------------------------
# Messages
# ----------------------------
@router.get("/{workspace_id}/messages", response_model=ApiResponse[list[MessageOut]])
def list_messages(
    workspace_id: str,
    limit: int = Query(50, ge=1, le=200),
    parent_id: str | None = Query(None, alias="parentId"),
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    rows = workspace_service.list_messages(repo, workspace_id, user.id, limit=limit, parent_id=parent_id)
    return ApiResponse(data=[MessageOut.model_validate(m) for m in rows])


@router.post("/{workspace_id}/messages", response_model=ApiResponse[MessageOut], status_code=201)
def post_message(
    workspace_id: str,
    payload: MessageCreateIn,
    user: User = Depends(get_current_user),
    repo: WorkspaceRepository = Depends(get_workspace_repository),
):
    msg = workspace_service.post_message(
        repo,
        workspace_id,
        user.id,
        content=payload.content,
        content_type=payload.content_type,
        parent_id=payload.parent_id,
        metadata=payload.metadata,
    )
    return ApiResponse(message="Message posted", data=MessageOut.model_validate(msg))
