"""
Session cookie helpers.

Tokens travel in the response body; when AUTH_COOKIES_ENABLED is on they are
mirrored into cookies as well. The three token cookies are HTTP-only.
``isAuthenticated`` is readable by client script so the UI can tell it has a
session without touching the tokens.
"""
from __future__ import annotations

from fastapi import Request, Response

from spoom.core.config import settings
from spoom.services.identity_provider import AuthTokens

ACCESS_TOKEN_COOKIE = "accessToken"
ID_TOKEN_COOKIE = "idToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
AUTH_FLAG_COOKIE = "isAuthenticated"

SESSION_COOKIES = (ACCESS_TOKEN_COOKIE, ID_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, AUTH_FLAG_COOKIE)

COOKIE_PATH = "/"


def refresh_cookie_max_age_seconds() -> int:
    return int(settings.REFRESH_COOKIE_MAX_AGE_DAYS) * 24 * 60 * 60


def cookie_samesite() -> str:
    """
    "lax" for same-site dev
    "none" when the frontend is served from another site (requires HTTPS + Secure=True)
    """
    v = str(settings.AUTH_COOKIE_SAMESITE or "lax").lower().strip()
    if v not in {"lax", "strict", "none"}:
        return "lax"
    return v


def cookie_secure() -> bool:
    # Browsers drop SameSite=None cookies that are not Secure.
    return settings.is_prod or cookie_samesite() == "none"


def _set(resp: Response, key: str, value: str, *, max_age: int, httponly: bool = True) -> None:
    resp.set_cookie(
        key=key,
        value=value,
        httponly=httponly,
        secure=cookie_secure(),
        samesite=cookie_samesite(),
        max_age=max_age,
        path=COOKIE_PATH,
        domain=settings.AUTH_COOKIE_DOMAIN,
    )


def set_auth_cookies(resp: Response, tokens: AuthTokens) -> None:
    if not settings.AUTH_COOKIES_ENABLED:
        return

    max_age = int(tokens.expires_in)
    _set(resp, ACCESS_TOKEN_COOKIE, tokens.access_token, max_age=max_age)
    if tokens.id_token:
        _set(resp, ID_TOKEN_COOKIE, tokens.id_token, max_age=max_age)
    if tokens.refresh_token:
        _set(resp, REFRESH_TOKEN_COOKIE, tokens.refresh_token, max_age=refresh_cookie_max_age_seconds())
    _set(resp, AUTH_FLAG_COOKIE, "true", max_age=max_age, httponly=False)


def clear_auth_cookies(resp: Response) -> None:
    for key in SESSION_COOKIES:
        resp.delete_cookie(
            key=key,
            path=COOKIE_PATH,
            domain=settings.AUTH_COOKIE_DOMAIN,
            secure=cookie_secure(),
            httponly=key != AUTH_FLAG_COOKIE,
            samesite=cookie_samesite(),
        )


def read_cookie(req: Request, name: str) -> str | None:
    val = req.cookies.get(name)
    if not val:
        return None
    val = val.strip()
    return val or None
