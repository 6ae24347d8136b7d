"""
Wrapper around boto3 Cognito Identity Provider APIs.

Provides a stable, exception-friendly interface for the auth service to call
without leaking boto3-specific errors up the stack. Every keyed call carries a
SECRET_HASH when the app client has a secret configured.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from spoom.auth.credential_hash import compute_secret_hash, fingerprint
from spoom.core.config import settings
from spoom.services.identity_provider import (
    INVALID_PARAMETER,
    NOT_AUTHORIZED,
    SERVICE_UNAVAILABLE,
    AuthTokens,
    IdentityProviderError,
    ProviderAccount,
    ProviderUser,
    SignUpResult,
)

logger = logging.getLogger(__name__)


def _translate_error(exc: ClientError) -> IdentityProviderError:
    error = exc.response.get("Error", {})
    code = error.get("Code", "CognitoClientError")
    message = error.get("Message", str(exc))
    return IdentityProviderError(code=code, message=message)


def _attributes(items: List[Dict[str, str]] | None) -> dict[str, str]:
    return {attr["Name"]: attr["Value"] for attr in items or []}


class CognitoIdentityProvider:
    name = "cognito"

    def __init__(self, client: Any = None) -> None:
        self._client = client
        self.uses_derived_usernames = settings.COGNITO_DERIVED_USERNAMES

    @property
    def client(self):
        if self._client is None:
            if not settings.COGNITO_REGION:
                raise RuntimeError("COGNITO_REGION is not configured")
            if not settings.COGNITO_APP_CLIENT_ID:
                raise RuntimeError("COGNITO_APP_CLIENT_ID is not configured")
            self._client = boto3.client("cognito-idp", region_name=settings.COGNITO_REGION)
        return self._client

    def _secret_hash(self, subject: str | None) -> str | None:
        if not settings.uses_client_secret:
            return None
        return compute_secret_hash(subject, settings.COGNITO_APP_CLIENT_ID, settings.COGNITO_APP_CLIENT_SECRET)

    def _keyed(self, username: str | None, **kwargs: Any) -> Dict[str, Any]:
        """Request kwargs for ClientId-scoped calls, with SecretHash when required."""
        params: Dict[str, Any] = {"ClientId": settings.COGNITO_APP_CLIENT_ID, **kwargs}
        secret_hash = self._secret_hash(username)
        if secret_hash:
            logger.debug("Cognito SecretHash for %s: %s", username, fingerprint(secret_hash))
            params["SecretHash"] = secret_hash
        return params

    def _call(self, operation: str, **kwargs: Any) -> dict:
        try:
            return getattr(self.client, operation)(**kwargs)
        except ClientError as exc:
            raise _translate_error(exc) from exc
        except BotoCoreError as exc:
            logger.warning("Cognito %s failed before a response: %s", operation, exc)
            raise IdentityProviderError(SERVICE_UNAVAILABLE, str(exc)) from exc

    def _initiate_auth(self, flow: str, username: str | None, params: Dict[str, str]) -> AuthTokens:
        secret_hash = self._secret_hash(username)
        if secret_hash:
            params["SECRET_HASH"] = secret_hash

        resp = self._call(
            "initiate_auth",
            ClientId=settings.COGNITO_APP_CLIENT_ID,
            AuthFlow=flow,
            AuthParameters=params,
        )
        result = resp.get("AuthenticationResult")
        if not result:
            # MFA / NEW_PASSWORD_REQUIRED challenges are not handled by this API.
            challenge = resp.get("ChallengeName") or "unknown"
            raise IdentityProviderError(NOT_AUTHORIZED, f"Unsupported auth challenge: {challenge}")

        return AuthTokens(
            access_token=result["AccessToken"],
            id_token=result.get("IdToken", ""),
            refresh_token=result.get("RefreshToken"),
            expires_in=int(result.get("ExpiresIn", 3600)),
            token_type=result.get("TokenType", "Bearer"),
        )

    def sign_up(self, *, username: str, email: str, password: str, name: str) -> SignUpResult:
        resp = self._call(
            "sign_up",
            **self._keyed(
                username,
                Username=username,
                Password=password,
                UserAttributes=[
                    {"Name": "email", "Value": email},
                    {"Name": "name", "Value": name},
                ],
            ),
        )
        return SignUpResult(
            subject=resp.get("UserSub", ""),
            username=username,
            confirmed=bool(resp.get("UserConfirmed", False)),
        )

    def authenticate(self, *, username: str, password: str) -> AuthTokens:
        return self._initiate_auth("USER_PASSWORD_AUTH", username, {"USERNAME": username, "PASSWORD": password})

    def refresh(self, *, refresh_token: str, username: str | None = None) -> AuthTokens:
        return self._initiate_auth("REFRESH_TOKEN_AUTH", username or "", {"REFRESH_TOKEN": refresh_token})

    def confirm_sign_up(self, *, username: str, code: str) -> None:
        self._call("confirm_sign_up", **self._keyed(username, Username=username, ConfirmationCode=code))

    def resend_confirmation_code(self, *, username: str) -> None:
        self._call("resend_confirmation_code", **self._keyed(username, Username=username))

    def forgot_password(self, *, username: str) -> None:
        self._call("forgot_password", **self._keyed(username, Username=username))

    def confirm_forgot_password(self, *, username: str, code: str, password: str) -> None:
        self._call(
            "confirm_forgot_password",
            **self._keyed(username, Username=username, ConfirmationCode=code, Password=password),
        )

    def get_user(self, access_token: str) -> ProviderUser:
        resp = self._call("get_user", AccessToken=access_token)
        attributes = _attributes(resp.get("UserAttributes"))
        return ProviderUser(
            subject=attributes.get("sub", ""),
            username=resp.get("Username", ""),
            email=attributes.get("email"),
            name=attributes.get("name"),
            email_verified=attributes.get("email_verified", "false").lower() == "true",
            attributes=attributes,
        )

    def global_sign_out(self, access_token: str) -> None:
        self._call("global_sign_out", AccessToken=access_token)

    def list_users_by_email(self, email: str) -> list[ProviderAccount]:
        if not settings.COGNITO_USER_POOL_ID:
            raise IdentityProviderError(INVALID_PARAMETER, "COGNITO_USER_POOL_ID is not configured")

        safe_email = email.strip().lower().replace('"', "")
        params: Dict[str, Any] = {
            "UserPoolId": settings.COGNITO_USER_POOL_ID,
            "Filter": f'email = "{safe_email}"',
        }
        accounts: list[ProviderAccount] = []
        while True:
            resp = self._call("list_users", **params)
            accounts.extend(
                ProviderAccount(username=user["Username"], confirmed=user.get("UserStatus") == "CONFIRMED")
                for user in resp.get("Users", [])
                if user.get("Username")
            )
            token = resp.get("PaginationToken")
            if not token:
                return accounts
            params["PaginationToken"] = token
