"""
Identity-token payload decoding.

Tokens arrive straight from the provider over TLS in the same response, so the
payload is read without signature verification to avoid a second round trip.
Never use this for tokens presented by clients.
"""
from __future__ import annotations

import logging
from typing import Any

from jose import JWTError, jwt

logger = logging.getLogger(__name__)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def decode_unverified_claims(token: str | None) -> dict[str, Any]:
    if not token:
        return {}
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as exc:
        logger.warning("Could not decode identity token payload: %s", exc)
        return {}


def profile_from_claims(claims: dict[str, Any], *, fallback_email: str | None = None) -> dict[str, Any]:
    """
    Minimal user profile from identity-token claims.

    Handles Cognito (flat ``name``/``cognito:username``) and Supabase
    (``user_metadata``) claim layouts.
    """
    metadata = claims.get("user_metadata") or {}
    email = claims.get("email") or metadata.get("email") or fallback_email or ""
    username = claims.get("cognito:username") or claims.get("username") or email or None
    name = claims.get("name") or metadata.get("name") or username
    verified = claims.get("email_verified")
    if verified is None:
        verified = metadata.get("email_verified", False)

    return {
        "id": claims.get("sub") or "",
        "email": email.strip().lower(),
        "name": name or "",
        "username": username,
        "emailVerified": _truthy(verified),
    }
