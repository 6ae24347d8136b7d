"""
Supabase Auth variant of the identity provider.

Supabase accepts the email as the login identifier, so usernames are never
derived and the recovery scan is never needed. Supabase has no separate ID
token; the access token (which carries the same claims) stands in for it.

Errors are classified from the SDK exception into the Cognito-style codes the
auth service already understands.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from supabase import AuthError, create_client

from spoom.core.config import settings
from spoom.services.identity_provider import (
    EXPIRED_CODE,
    INVALID_PASSWORD,
    NOT_AUTHORIZED,
    SERVICE_UNAVAILABLE,
    TOO_MANY_REQUESTS,
    USER_NOT_CONFIRMED,
    USER_NOT_FOUND,
    USERNAME_EXISTS,
    AuthTokens,
    IdentityProviderError,
    ProviderAccount,
    ProviderUser,
    SignUpResult,
)

logger = logging.getLogger(__name__)

LIST_USERS_PAGE_SIZE = 50

# Substrings of Supabase error codes/messages -> provider error code.
SUPABASE_ERROR_MAP: dict[str, str] = {
    "user_already_exists": USERNAME_EXISTS,
    "email_exists": USERNAME_EXISTS,
    "user already registered": USERNAME_EXISTS,
    "weak_password": INVALID_PASSWORD,
    "password should be": INVALID_PASSWORD,
    "invalid_credentials": NOT_AUTHORIZED,
    "invalid login credentials": NOT_AUTHORIZED,
    "email_not_confirmed": USER_NOT_CONFIRMED,
    "email not confirmed": USER_NOT_CONFIRMED,
    "otp_expired": EXPIRED_CODE,
    "token has expired or is invalid": EXPIRED_CODE,
    "user_not_found": USER_NOT_FOUND,
    "user not found": USER_NOT_FOUND,
    "over_email_send_rate_limit": TOO_MANY_REQUESTS,
    "over_request_rate_limit": TOO_MANY_REQUESTS,
    "rate limit": TOO_MANY_REQUESTS,
    "refresh_token_not_found": NOT_AUTHORIZED,
    "invalid refresh token": NOT_AUTHORIZED,
    "session_not_found": NOT_AUTHORIZED,
    "bad_jwt": NOT_AUTHORIZED,
    "invalid jwt": NOT_AUTHORIZED,
}


def classify_error(exc: Exception) -> IdentityProviderError:
    if isinstance(exc, httpx.HTTPError):
        return IdentityProviderError(SERVICE_UNAVAILABLE, str(exc))

    haystack = f"{getattr(exc, 'code', '') or ''} {exc}".lower()
    for needle, code in SUPABASE_ERROR_MAP.items():
        if needle in haystack:
            return IdentityProviderError(code, str(exc))
    return IdentityProviderError("SupabaseAuthError", str(exc))


def _tokens(session: Any) -> AuthTokens:
    if session is None:
        raise IdentityProviderError(NOT_AUTHORIZED, "Supabase returned no session")
    return AuthTokens(
        access_token=session.access_token,
        id_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=int(session.expires_in or 3600),
        token_type=session.token_type or "Bearer",
    )


class SupabaseIdentityProvider:
    name = "supabase"
    uses_derived_usernames = False

    def __init__(self, client: Any = None) -> None:
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be configured")
            self._client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        return self._client

    def _call(self, operation: str, fn, *args: Any) -> Any:
        try:
            return fn(*args)
        except (AuthError, httpx.HTTPError) as exc:
            translated = classify_error(exc)
            logger.warning("Supabase %s failed (%s): %s", operation, translated.code, exc)
            raise translated from exc

    def sign_up(self, *, username: str, email: str, password: str, name: str) -> SignUpResult:
        resp = self._call(
            "sign_up",
            self.client.auth.sign_up,
            {"email": email, "password": password, "options": {"data": {"name": name}}},
        )
        user = resp.user
        if user is None:
            raise IdentityProviderError("SupabaseAuthError", "Supabase returned no user")
        # An existing address comes back as an obfuscated user without identities.
        if user.identities is not None and len(user.identities) == 0:
            raise IdentityProviderError(USERNAME_EXISTS, "User already registered")

        return SignUpResult(
            subject=user.id,
            username=email,
            confirmed=user.email_confirmed_at is not None,
        )

    def authenticate(self, *, username: str, password: str) -> AuthTokens:
        resp = self._call(
            "sign_in_with_password",
            self.client.auth.sign_in_with_password,
            {"email": username, "password": password},
        )
        return _tokens(resp.session)

    def refresh(self, *, refresh_token: str, username: str | None = None) -> AuthTokens:
        resp = self._call("refresh_session", self.client.auth.refresh_session, refresh_token)
        return _tokens(resp.session)

    def confirm_sign_up(self, *, username: str, code: str) -> None:
        self._call(
            "verify_otp",
            self.client.auth.verify_otp,
            {"email": username, "token": code, "type": "signup"},
        )

    def resend_confirmation_code(self, *, username: str) -> None:
        self._call("resend", self.client.auth.resend, {"type": "signup", "email": username})

    def forgot_password(self, *, username: str) -> None:
        options = {"redirect_to": settings.PASSWORD_RESET_REDIRECT_URL} if settings.PASSWORD_RESET_REDIRECT_URL else {}
        self._call("reset_password_for_email", self.client.auth.reset_password_for_email, username, options)

    def confirm_forgot_password(self, *, username: str, code: str, password: str) -> None:
        resp = self._call(
            "verify_otp",
            self.client.auth.verify_otp,
            {"email": username, "token": code, "type": "recovery"},
        )
        if resp.user is None:
            raise IdentityProviderError(EXPIRED_CODE, "Recovery code did not resolve to a user")
        # The shared client is not bound to the recovered session; update through the admin API.
        self._call(
            "update_user_by_id",
            self.client.auth.admin.update_user_by_id,
            resp.user.id,
            {"password": password},
        )

    def get_user(self, access_token: str) -> ProviderUser:
        resp = self._call("get_user", self.client.auth.get_user, access_token)
        user = resp.user if resp is not None else None
        if user is None:
            raise IdentityProviderError(NOT_AUTHORIZED, "Invalid access token")

        metadata = user.user_metadata or {}
        return ProviderUser(
            subject=user.id,
            username=user.email or "",
            email=user.email,
            name=metadata.get("name") or metadata.get("full_name"),
            email_verified=user.email_confirmed_at is not None,
            attributes=dict(metadata),
        )

    def global_sign_out(self, access_token: str) -> None:
        self._call("sign_out", self.client.auth.admin.sign_out, access_token, "global")

    def list_users_by_email(self, email: str) -> list[ProviderAccount]:
        target = email.strip().lower()
        accounts: list[ProviderAccount] = []
        page = 1
        while True:
            users = self._call("list_users", self.client.auth.admin.list_users, page, LIST_USERS_PAGE_SIZE) or []
            accounts.extend(
                ProviderAccount(username=user.email, confirmed=user.email_confirmed_at is not None)
                for user in users
                if (user.email or "").lower() == target
            )
            if len(users) < LIST_USERS_PAGE_SIZE:
                return accounts
            page += 1
