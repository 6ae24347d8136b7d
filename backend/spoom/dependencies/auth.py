# spoom/dependencies/auth.py
from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from spoom.auth.identity import Identity
from spoom.core.database import get_db
from spoom.core.errors import InvalidOrExpiredToken, Unauthorized
from spoom.dependencies.provider import get_provider
from spoom.models.user import User
from spoom.services import auth_service
from spoom.services.identity_provider import IdentityProvider
from spoom.services.session_cookies import ACCESS_TOKEN_COOKIE, read_cookie

bearer_scheme = HTTPBearer(auto_error=False)


def get_access_token(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Access token from ``Authorization: Bearer <token>``, falling back to the
    ``accessToken`` cookie.
    """
    if creds and creds.scheme.lower() == "bearer" and creds.credentials:
        return creds.credentials.strip()

    token = read_cookie(request, ACCESS_TOKEN_COOKIE)
    if not token:
        raise InvalidOrExpiredToken("Missing access token")
    return token


def get_current_identity_and_user(
    request: Request,
    access_token: str = Depends(get_access_token),
    provider: IdentityProvider = Depends(get_provider),
    db: Session = Depends(get_db),
) -> tuple[Identity, User]:
    identity, user = auth_service.resolve_current_user(provider, db, access_token)
    if not user.is_active:
        raise Unauthorized("User is inactive")
    request.state.identity = identity
    return identity, user


def get_current_user(
    resolved: tuple[Identity, User] = Depends(get_current_identity_and_user),
) -> User:
    """
    Validates the access token with the identity provider and returns the
    application user, provisioning the row on first use.
    """
    return resolved[1]
