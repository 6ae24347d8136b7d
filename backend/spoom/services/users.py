# spoom/services/users.py
"""
User management helpers.

Responsibilities:
- JIT (Just-In-Time) provisioning of the application user row, keyed by the
  identity provider's subject ID
- Last-login bookkeeping
- User settings read/update
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from spoom.core.errors import AccountExists
from spoom.models.user import User
from spoom.models.user_settings import DEFAULT_PRIVACY_SETTINGS, UserSettings

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "Spoom User"


def get_user(db: Session, subject: str) -> Optional[User]:
    """Look up a user by provider subject ID."""
    return db.get(User, subject)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def provision_user(
    db: Session,
    subject: str,
    email: str,
    *,
    name: str | None = None,
    provider: str = "cognito",
    is_verified: bool = False,
) -> User:
    """
    Create the user row and its settings row.

    Called on first sign-in or first authenticated request when no row exists
    for the subject.

    A concurrent request may insert the same subject first; the unique key
    rejects the second insert and the winning row is returned instead.

    Raises:
        ValueError: If subject or email is empty
        AccountExists: If the email was taken by another subject meanwhile
    """
    if not subject:
        raise ValueError("subject is required")
    if not email:
        raise ValueError("email is required")

    normalized_email = email.strip().lower()
    user = User(
        id=subject,
        email=normalized_email,
        name=normalize_name(name, fallback=normalized_email),
        auth_provider=provider,
        is_active=True,
        is_verified=bool(is_verified),
    )
    user.settings = UserSettings(privacy_settings=dict(DEFAULT_PRIVACY_SETTINGS))

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.get(User, subject)
        if existing is not None:
            logger.info("User %s was provisioned by a concurrent request", subject)
            return existing
        if db.query(User).filter(User.email == normalized_email).first() is not None:
            raise AccountExists("A user with this email already exists. Please contact support to link your accounts.")
        raise
    db.refresh(user)

    logger.info("Provisioned user: id=%s, provider=%s, email=%s", user.id, provider, normalized_email)
    return user


def ensure_user(
    db: Session,
    *,
    subject: str,
    email: str,
    name: str | None = None,
    provider: str = "cognito",
    is_verified: bool = False,
) -> User:
    """
    Ensure a database user exists for a provider-authenticated identity.

    Idempotent: an existing row is returned as-is (the verified flag is
    refreshed when the provider reports it). Otherwise the row is provisioned.
    """
    if not subject:
        raise ValueError("subject is required")
    if not email:
        raise ValueError("email is required")

    user = get_user(db, subject)
    if user:
        if is_verified and not user.is_verified:
            user.is_verified = True
            db.commit()
            db.refresh(user)
        return user

    existing_by_email = get_user_by_email(db, email)
    if existing_by_email:
        # Never auto-link a second provider subject to an existing email.
        logger.warning("Subject %s presented email already owned by user %s", subject, existing_by_email.id)
        raise AccountExists("A user with this email already exists. Please contact support to link your accounts.")

    return provision_user(db, subject, email, name=name, provider=provider, is_verified=is_verified)


def touch_last_login(db: Session, user: User, *, when: datetime | None = None) -> User:
    user.last_login_at = when or datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def normalize_name(name: str | None, fallback: str) -> str:
    """Normalize name, falling back to email/localpart if needed."""
    if name:
        clean = name.strip()
        if clean:
            return clean[:100]

    if fallback and "@" in fallback:
        local = fallback.split("@", 1)[0]
        if local:
            return local[:100]
    return DEFAULT_USER_NAME


def get_or_create_settings(db: Session, user: User) -> UserSettings:
    if user.settings is None:
        user.settings = UserSettings(privacy_settings=dict(DEFAULT_PRIVACY_SETTINGS))
        db.commit()
        db.refresh(user)
    return user.settings


def update_settings(db: Session, user: User, changes: dict[str, Any]) -> UserSettings:
    """Apply a partial update. ``privacy_settings`` is merged key by key."""
    row = get_or_create_settings(db, user)

    privacy = changes.pop("privacy_settings", None)
    for key, value in changes.items():
        setattr(row, key, value)
    if privacy:
        merged = dict(row.privacy_settings or {})
        merged.update(privacy)
        row.privacy_settings = merged

    db.commit()
    db.refresh(row)
    return row
