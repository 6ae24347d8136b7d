from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from spoom.core.database import get_db
from spoom.core.errors import ApiError, Unexpected
from spoom.dependencies.auth import bearer_scheme, get_current_identity_and_user
from spoom.dependencies.provider import get_provider
from spoom.schemas.auth import (
    ForgotPasswordIn,
    RefreshIn,
    ResendCodeIn,
    ResendCodeOut,
    ResetPasswordIn,
    SignInIn,
    SignInOut,
    SignUpIn,
    SignUpOut,
    TokensOut,
    VerifyIn,
    VerifyOut,
)
from spoom.schemas.common import ERROR_RESPONSES, ApiResponse
from spoom.schemas.user import UserMeOut
from spoom.services import auth_service
from spoom.services.identity_provider import AuthTokens, IdentityProvider
from spoom.services.session_cookies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    clear_auth_cookies,
    read_cookie,
    set_auth_cookies,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"], responses=ERROR_RESPONSES)

GENERIC_RESET_RESPONSE = "If the account exists, a password reset code has been sent."


def _tokens_out(tokens: AuthTokens) -> TokensOut:
    return TokensOut(
        access_token=tokens.access_token,
        id_token=tokens.id_token or None,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        token_type=tokens.token_type,
    )


@router.post("/signup", response_model=ApiResponse[SignUpOut], status_code=201)
def signup(payload: SignUpIn, provider: IdentityProvider = Depends(get_provider)):
    data = auth_service.register(provider, email=payload.email, password=payload.password, name=payload.name)
    if data["needsConfirmation"]:
        message = "Account created. Enter the verification code we emailed you."
    else:
        message = "Signup successful."
    return ApiResponse(message=message, data=SignUpOut.model_validate(data))


@router.post("/signin", response_model=ApiResponse[SignInOut])
def signin(
    payload: SignInIn,
    response: Response,
    provider: IdentityProvider = Depends(get_provider),
    db: Session = Depends(get_db),
):
    result = auth_service.sign_in(provider, db, email=payload.email, password=payload.password)
    set_auth_cookies(response, result.tokens)

    data = SignInOut(**_tokens_out(result.tokens).model_dump(), user=result.user)
    return ApiResponse(message="Signed in", data=data)


@router.post("/verify", response_model=ApiResponse[VerifyOut])
def verify(payload: VerifyIn, provider: IdentityProvider = Depends(get_provider)):
    data = auth_service.verify(provider, email=payload.email, code=payload.code, username=payload.username)
    return ApiResponse(message="Account confirmed. You can now sign in.", data=VerifyOut.model_validate(data))


@router.post("/resend-code", response_model=ApiResponse[ResendCodeOut])
def resend_code(payload: ResendCodeIn, provider: IdentityProvider = Depends(get_provider)):
    data = auth_service.resend_code(provider, email=payload.email, username=payload.username)
    return ApiResponse(message="A new verification code has been sent.", data=ResendCodeOut.model_validate(data))


@router.post("/forgot-password", response_model=ApiResponse[None])
def forgot_password(payload: ForgotPasswordIn, provider: IdentityProvider = Depends(get_provider)):
    auth_service.forgot_password(provider, email=payload.email)
    return ApiResponse(message=GENERIC_RESET_RESPONSE)


@router.post("/reset-password", response_model=ApiResponse[None])
def reset_password(payload: ResetPasswordIn, provider: IdentityProvider = Depends(get_provider)):
    auth_service.reset_password(provider, email=payload.email, code=payload.code, password=payload.password)
    return ApiResponse(message="Password has been reset. You can now sign in.")


@router.post("/refresh-token", response_model=ApiResponse[TokensOut])
def refresh_token(
    request: Request,
    response: Response,
    payload: RefreshIn | None = None,
    provider: IdentityProvider = Depends(get_provider),
):
    raw = (payload.refresh_token if payload else None) or read_cookie(request, REFRESH_TOKEN_COOKIE)
    tokens = auth_service.refresh(provider, refresh_token=raw, username=payload.username if payload else None)
    set_auth_cookies(response, tokens)
    return ApiResponse(message="Token refreshed", data=_tokens_out(tokens))


@router.get("/me", response_model=ApiResponse[UserMeOut])
def me(resolved=Depends(get_current_identity_and_user)):
    identity, user = resolved
    data = UserMeOut.model_validate(user).model_copy(update={"username": identity.username})
    return ApiResponse(data=data)


@router.post("/signout")
def signout(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_provider),
):
    """Global sign-out. Session cookies are cleared whatever the provider answers."""
    token = creds.credentials if creds and creds.credentials else read_cookie(request, ACCESS_TOKEN_COOKIE)

    try:
        if token:
            auth_service.sign_out(provider, token)
        resp = JSONResponse(status_code=200, content={"success": True, "message": "Signed out"})
    except ApiError as exc:
        logger.warning("Global sign-out failed (%s); clearing session cookies anyway", exc.code)
        resp = JSONResponse(status_code=exc.status_code, content=exc.to_payload())
    except Exception:
        logger.exception("Global sign-out raised unexpectedly; clearing session cookies anyway")
        err = Unexpected()
        resp = JSONResponse(status_code=err.status_code, content=err.to_payload())

    clear_auth_cookies(resp)
    return resp
