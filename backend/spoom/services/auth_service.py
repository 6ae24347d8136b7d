# spoom/services/auth_service.py
"""
Authentication flows, written once against ``IdentityProvider``.

Each function performs one provider operation, translates provider failures
into API error kinds, and touches the relational store only where the flow
requires it (sign-in and authenticated lookups provision the user row;
registration does not).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from spoom.auth.identity import Identity
from spoom.auth.tokens import decode_unverified_claims, profile_from_claims
from spoom.auth.usernames import derive_username
from spoom.core.errors import (
    AccountExists,
    ApiError,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidOrExpiredToken,
    NotConfirmed,
    Unexpected,
    ValidationError,
    WeakPassword,
)
from spoom.models.user import User
from spoom.services import users as users_service
from spoom.services.identity_provider import (
    ALIAS_EXISTS,
    CODE_MISMATCH,
    EXPIRED_CODE,
    INVALID_PARAMETER,
    INVALID_PASSWORD,
    LIMIT_EXCEEDED,
    NOT_AUTHORIZED,
    SERVICE_UNAVAILABLE,
    TOO_MANY_REQUESTS,
    USER_NOT_CONFIRMED,
    USER_NOT_FOUND,
    USERNAME_EXISTS,
    AuthTokens,
    IdentityProvider,
    IdentityProviderError,
)
from spoom.services.username_recovery import recover_username

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    tokens: AuthTokens
    user: dict[str, Any]


def translate_provider_error(
    exc: IdentityProviderError,
    *,
    not_authorized: type[ApiError] = InvalidCredentials,
) -> ApiError:
    """Map a provider error code onto the API error kind shown to callers."""
    code = exc.code
    if code in {USERNAME_EXISTS, ALIAS_EXISTS}:
        return AccountExists()
    if code == INVALID_PASSWORD:
        return WeakPassword(exc.message or None)
    if code == USER_NOT_CONFIRMED:
        return NotConfirmed()
    if code in {NOT_AUTHORIZED, USER_NOT_FOUND}:
        return not_authorized()
    if code in {CODE_MISMATCH, EXPIRED_CODE}:
        return InvalidOrExpiredCode()
    if code == INVALID_PARAMETER:
        return ValidationError(exc.message or None)
    if code in {LIMIT_EXCEEDED, TOO_MANY_REQUESTS}:
        return Unexpected("Too many requests. Please wait and try again.", status_code=429)
    if code in {SERVICE_UNAVAILABLE, "InternalErrorException"}:
        return Unexpected("Authentication service is unavailable. Please try again later.", status_code=503)

    logger.warning("Unmapped identity provider error %s: %s", code, exc.message)
    return Unexpected()


def _normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _require(**fields: str | None) -> None:
    missing = [name for name, value in fields.items() if not (value or "").strip()]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"fields": missing},
        )


def register(provider: IdentityProvider, *, email: str | None, password: str | None, name: str | None) -> dict[str, Any]:
    _require(email=email, password=password, name=name)
    email = _normalize_email(email)
    name = name.strip()

    username = derive_username(email, name) if provider.uses_derived_usernames else email
    try:
        result = provider.sign_up(username=username, email=email, password=password, name=name)
    except IdentityProviderError as exc:
        raise translate_provider_error(exc) from exc

    logger.info("Registered %s account: username=%s confirmed=%s", provider.name, username, result.confirmed)
    return {
        "userId": result.subject,
        "username": result.username,
        "email": email,
        "confirmed": result.confirmed,
        "needsConfirmation": not result.confirmed,
    }


def sign_in(provider: IdentityProvider, db: Session, *, email: str | None, password: str | None) -> SignInResult:
    _require(email=email, password=password)
    email = _normalize_email(email)

    try:
        tokens = provider.authenticate(username=email, password=password)
    except IdentityProviderError as exc:
        raise translate_provider_error(exc) from exc

    profile = profile_from_claims(decode_unverified_claims(tokens.id_token), fallback_email=email)
    if not profile["id"]:
        # Token without a subject claim; ask the provider instead.
        identity = _identity_from_provider(provider, tokens.access_token)
        profile.update({k: v for k, v in identity.to_public_dict().items() if v is not None})

    user = users_service.ensure_user(
        db,
        subject=profile["id"],
        email=profile["email"] or email,
        name=profile["name"],
        provider=provider.name,
        is_verified=profile["emailVerified"],
    )
    users_service.touch_last_login(db, user)

    logger.info("Signed in user %s via %s", user.id, provider.name)
    return SignInResult(tokens=tokens, user=profile)


def _run_with_username(
    provider: IdentityProvider,
    *,
    email: str,
    username: str | None,
    action: Callable[[str], None],
    skip_confirmed: bool,
) -> str:
    if username:
        action(username)
        return username
    if not provider.uses_derived_usernames:
        action(email)
        return email
    return recover_username(provider, email, action, skip_confirmed=skip_confirmed).username


def verify(provider: IdentityProvider, *, email: str | None, code: str | None, username: str | None = None) -> dict[str, Any]:
    _require(email=email, code=code)
    email = _normalize_email(email)
    code = code.strip()

    def confirm(candidate: str) -> None:
        provider.confirm_sign_up(username=candidate, code=code)

    try:
        confirmed = _run_with_username(
            provider,
            email=email,
            username=(username or "").strip() or None,
            action=confirm,
            skip_confirmed=False,
        )
    except IdentityProviderError as exc:
        raise translate_provider_error(exc, not_authorized=InvalidOrExpiredCode) from exc

    logger.info("Confirmed account %s", confirmed)
    return {"username": confirmed, "email": email, "confirmed": True}


def resend_code(provider: IdentityProvider, *, email: str | None, username: str | None = None) -> dict[str, Any]:
    _require(email=email)
    email = _normalize_email(email)

    def resend(candidate: str) -> None:
        provider.resend_confirmation_code(username=candidate)

    try:
        target = _run_with_username(
            provider,
            email=email,
            username=(username or "").strip() or None,
            action=resend,
            skip_confirmed=True,
        )
    except IdentityProviderError as exc:
        raise translate_provider_error(exc, not_authorized=InvalidOrExpiredCode) from exc

    return {"username": target, "email": email}


def forgot_password(provider: IdentityProvider, *, email: str | None) -> None:
    _require(email=email)
    email = _normalize_email(email)
    try:
        provider.forgot_password(username=email)
    except IdentityProviderError as exc:
        if exc.code == USER_NOT_FOUND:
            # Same response as a real account; do not reveal which emails exist.
            logger.info("Password reset requested for unknown account")
            return
        raise translate_provider_error(exc) from exc


def reset_password(
    provider: IdentityProvider,
    *,
    email: str | None,
    code: str | None,
    password: str | None,
) -> None:
    _require(email=email, code=code, password=password)
    try:
        provider.confirm_forgot_password(username=_normalize_email(email), code=code.strip(), password=password)
    except IdentityProviderError as exc:
        raise translate_provider_error(exc, not_authorized=InvalidOrExpiredCode) from exc


def refresh(provider: IdentityProvider, *, refresh_token: str | None, username: str | None = None) -> AuthTokens:
    _require(refreshToken=refresh_token)
    try:
        tokens = provider.refresh(refresh_token=refresh_token, username=username)
    except IdentityProviderError as exc:
        raise translate_provider_error(exc, not_authorized=InvalidOrExpiredToken) from exc

    if tokens.refresh_token:
        return tokens
    # The provider does not rotate refresh tokens; hand the caller's back.
    return AuthTokens(
        access_token=tokens.access_token,
        id_token=tokens.id_token,
        refresh_token=refresh_token,
        expires_in=tokens.expires_in,
        token_type=tokens.token_type,
    )


def _identity_from_provider(provider: IdentityProvider, access_token: str) -> Identity:
    try:
        account = provider.get_user(access_token)
    except IdentityProviderError as exc:
        raise translate_provider_error(exc, not_authorized=InvalidOrExpiredToken) from exc

    if not account.subject:
        raise InvalidOrExpiredToken()

    return Identity.from_provider(
        provider.name,
        subject=account.subject,
        username=account.username,
        email=account.email,
        name=account.name,
        email_verified=account.email_verified,
        attributes=account.attributes,
    )


def resolve_current_user(provider: IdentityProvider, db: Session, access_token: str) -> tuple[Identity, User]:
    """Resolve a bearer access token to its identity and (JIT-provisioned) user row."""
    identity = _identity_from_provider(provider, access_token)
    if not identity.email:
        raise Unexpected("Identity provider profile is missing an email address")

    user = users_service.ensure_user(
        db,
        subject=identity.subject,
        email=identity.email,
        name=identity.name,
        provider=provider.name,
        is_verified=identity.email_verified,
    )
    return identity, user


def sign_out(provider: IdentityProvider, access_token: str) -> None:
    try:
        provider.global_sign_out(access_token)
    except IdentityProviderError as exc:
        raise translate_provider_error(exc, not_authorized=InvalidOrExpiredToken) from exc
