"""
Identity provider capability.

Routes and services talk to the provider only through ``IdentityProvider``;
``CognitoIdentityProvider`` and ``SupabaseIdentityProvider`` are the two
variants, selected by ``IDENTITY_PROVIDER``. Provider SDK failures surface as
``IdentityProviderError`` carrying a Cognito-style error code.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

from spoom.core.config import SUPPORTED_IDENTITY_PROVIDERS, settings

logger = logging.getLogger(__name__)

# Provider error codes (Cognito names; the Supabase variant maps onto these).
USER_NOT_FOUND = "UserNotFoundException"
CODE_MISMATCH = "CodeMismatchException"
EXPIRED_CODE = "ExpiredCodeException"
NOT_AUTHORIZED = "NotAuthorizedException"
USERNAME_EXISTS = "UsernameExistsException"
ALIAS_EXISTS = "AliasExistsException"
INVALID_PASSWORD = "InvalidPasswordException"
INVALID_PARAMETER = "InvalidParameterException"
USER_NOT_CONFIRMED = "UserNotConfirmedException"
LIMIT_EXCEEDED = "LimitExceededException"
TOO_MANY_REQUESTS = "TooManyRequestsException"
SERVICE_UNAVAILABLE = "ServiceUnavailable"


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects a call or cannot be reached."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class SignUpResult:
    subject: str
    username: str
    confirmed: bool


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    id_token: str
    refresh_token: str | None
    expires_in: int
    token_type: str = "Bearer"


@dataclass(frozen=True)
class ProviderUser:
    subject: str
    username: str
    email: str | None
    name: str | None = None
    email_verified: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderAccount:
    username: str
    confirmed: bool


class IdentityProvider(Protocol):
    name: str
    # True when sign-up must use a generated username instead of the email.
    uses_derived_usernames: bool

    def sign_up(self, *, username: str, email: str, password: str, name: str) -> SignUpResult:
        ...

    def authenticate(self, *, username: str, password: str) -> AuthTokens:
        ...

    def confirm_sign_up(self, *, username: str, code: str) -> None:
        ...

    def resend_confirmation_code(self, *, username: str) -> None:
        ...

    def forgot_password(self, *, username: str) -> None:
        ...

    def confirm_forgot_password(self, *, username: str, code: str, password: str) -> None:
        ...

    def refresh(self, *, refresh_token: str, username: str | None = None) -> AuthTokens:
        ...

    def get_user(self, access_token: str) -> ProviderUser:
        ...

    def global_sign_out(self, access_token: str) -> None:
        ...

    def list_users_by_email(self, email: str) -> list[ProviderAccount]:
        ...


def build_identity_provider(kind: str | None = None) -> IdentityProvider:
    kind = (kind or settings.IDENTITY_PROVIDER).strip().lower()
    if kind not in SUPPORTED_IDENTITY_PROVIDERS:
        raise RuntimeError(f"Unsupported IDENTITY_PROVIDER: {kind}")

    if kind == "supabase":
        from spoom.services.supabase_client import SupabaseIdentityProvider

        return SupabaseIdentityProvider()

    from spoom.services.cognito_client import CognitoIdentityProvider

    return CognitoIdentityProvider()


_provider: IdentityProvider | None = None
_lock = threading.Lock()


def get_identity_provider() -> IdentityProvider:
    global _provider
    if _provider is not None:
        return _provider
    with _lock:
        if _provider is None:
            _provider = build_identity_provider()
            logger.info("Identity provider initialized: %s", _provider.name)
    return _provider


def reset_identity_provider() -> None:
    """Testing helper to clear the cached provider."""
    global _provider
    with _lock:
        _provider = None
