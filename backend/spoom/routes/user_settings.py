from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from spoom.core.database import get_db
from spoom.dependencies.auth import get_current_user
from spoom.models.user import User
from spoom.schemas.common import ERROR_RESPONSES, ApiResponse
from spoom.schemas.user import (
    NotificationSettingsIn,
    PrivacySettingsIn,
    PrivacySettingsPatchIn,
    ThemeIn,
    UpdateUserSettingsIn,
    UserSettingsOut,
)
from spoom.services import users as users_service

router = APIRouter(prefix="/api/user-settings", tags=["user-settings"], responses=ERROR_RESPONSES)


def _privacy_changes(privacy: PrivacySettingsIn) -> dict[str, bool]:
    # Stored with the same camelCase keys the client sends.
    return privacy.model_dump(by_alias=True, exclude_none=True)


@router.get("", response_model=ApiResponse[UserSettingsOut])
def get_settings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    row = users_service.get_or_create_settings(db, user)
    return ApiResponse(data=UserSettingsOut.model_validate(row))


@router.put("", response_model=ApiResponse[UserSettingsOut])
def update_settings(
    payload: UpdateUserSettingsIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_none=True, exclude={"privacy_settings"})
    if payload.privacy_settings is not None:
        changes["privacy_settings"] = _privacy_changes(payload.privacy_settings)

    row = users_service.update_settings(db, user, changes)
    return ApiResponse(message="Settings updated", data=UserSettingsOut.model_validate(row))


@router.patch("/theme", response_model=ApiResponse[UserSettingsOut])
def update_theme(payload: ThemeIn, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    row = users_service.update_settings(db, user, {"theme": payload.theme})
    return ApiResponse(message="Theme updated", data=UserSettingsOut.model_validate(row))


@router.patch("/notifications", response_model=ApiResponse[UserSettingsOut])
def update_notifications(
    payload: NotificationSettingsIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = users_service.update_settings(db, user, payload.model_dump(exclude_none=True))
    return ApiResponse(message="Notification settings updated", data=UserSettingsOut.model_validate(row))


@router.patch("/privacy", response_model=ApiResponse[UserSettingsOut])
def update_privacy(
    payload: PrivacySettingsPatchIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = users_service.update_settings(db, user, {"privacy_settings": _privacy_changes(payload.privacy_settings)})
    return ApiResponse(message="Privacy settings updated", data=UserSettingsOut.model_validate(row))
