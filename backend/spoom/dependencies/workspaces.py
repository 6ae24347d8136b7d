from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from spoom.core.database import get_db
from spoom.services.workspace_store import SqlWorkspaceRepository
from spoom.services.workspaces import WorkspaceRepository


def get_workspace_repository(db: Session = Depends(get_db)) -> WorkspaceRepository:
    return SqlWorkspaceRepository(db)
