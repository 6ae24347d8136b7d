# spoom/models/__init__.py
from spoom.models.message import Message
from spoom.models.user import User
from spoom.models.user_settings import UserSettings
from spoom.models.workspace import Workspace, WorkspaceMember, WorkspaceSettings

__all__ = [
    "Message",
    "User",
    "UserSettings",
    "Workspace",
    "WorkspaceMember",
    "WorkspaceSettings",
]
