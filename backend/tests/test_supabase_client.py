from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from supabase import AuthError

from spoom.core.config import settings
from spoom.services.identity_provider import (
    EXPIRED_CODE,
    INVALID_PASSWORD,
    NOT_AUTHORIZED,
    SERVICE_UNAVAILABLE,
    TOO_MANY_REQUESTS,
    USER_NOT_CONFIRMED,
    USERNAME_EXISTS,
    IdentityProviderError,
)
from spoom.services.supabase_client import LIST_USERS_PAGE_SIZE, SupabaseIdentityProvider, classify_error


class Recorder:
    """
    Namespace whose methods record their arguments and return ``results[name]``.
    A list of lists is served one per call, in order.
    """

    def __init__(self, calls: list, results: dict, prefix: str = "") -> None:
        self._calls = calls
        self._results = results
        self._prefix = prefix

    def __getattr__(self, name: str):
        key = f"{self._prefix}{name}"

        def _call(*args):
            self._calls.append((key, args))
            result = self._results.get(key)
            if isinstance(result, list) and result and isinstance(result[0], list):
                result = result.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        return _call


class FakeSupabase:
    def __init__(self) -> None:
        self.calls: list = []
        self.results: dict = {}
        self.auth = Recorder(self.calls, self.results)
        self.auth.admin = Recorder(self.calls, self.results, prefix="admin.")


def _user(**overrides):
    data = {
        "id": "uuid-1",
        "email": "s@x.com",
        "email_confirmed_at": None,
        "identities": [{"provider": "email"}],
        "user_metadata": {"name": "Sue"},
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _session():
    return SimpleNamespace(access_token="sb-access", refresh_token="sb-refresh", expires_in=3600, token_type="bearer")


@pytest.fixture()
def sb():
    return FakeSupabase()


@pytest.fixture()
def supa(sb):
    return SupabaseIdentityProvider(client=sb)


def test_never_derives_usernames(supa):
    assert supa.uses_derived_usernames is False


def test_sign_up_passes_name_metadata(supa, sb):
    sb.results["sign_up"] = SimpleNamespace(user=_user(), session=None)

    result = supa.sign_up(username="s@x.com", email="s@x.com", password="pw", name="Sue")

    assert sb.calls == [
        ("sign_up", ({"email": "s@x.com", "password": "pw", "options": {"data": {"name": "Sue"}}},)),
    ]
    assert (result.subject, result.username, result.confirmed) == ("uuid-1", "s@x.com", False)


def test_sign_up_existing_address(supa, sb):
    sb.results["sign_up"] = SimpleNamespace(user=_user(identities=[]), session=None)

    with pytest.raises(IdentityProviderError) as excinfo:
        supa.sign_up(username="s@x.com", email="s@x.com", password="pw", name="Sue")
    assert excinfo.value.code == USERNAME_EXISTS


def test_authenticate_uses_access_token_as_id_token(supa, sb):
    sb.results["sign_in_with_password"] = SimpleNamespace(user=_user(), session=_session())

    tokens = supa.authenticate(username="s@x.com", password="pw")

    assert tokens.access_token == "sb-access"
    assert tokens.id_token == "sb-access"
    assert tokens.refresh_token == "sb-refresh"


def test_authenticate_bad_credentials(supa, sb):
    sb.results["sign_in_with_password"] = AuthError("Invalid login credentials", "invalid_credentials")

    with pytest.raises(IdentityProviderError) as excinfo:
        supa.authenticate(username="s@x.com", password="nope")
    assert excinfo.value.code == NOT_AUTHORIZED


def test_confirm_sign_up_verifies_signup_otp(supa, sb):
    supa.confirm_sign_up(username="s@x.com", code="123456")
    assert sb.calls == [("verify_otp", ({"email": "s@x.com", "token": "123456", "type": "signup"},))]


def test_forgot_password_sends_redirect(supa, sb, monkeypatch):
    monkeypatch.setattr(settings, "PASSWORD_RESET_REDIRECT_URL", "http://localhost:5173/reset-password")

    supa.forgot_password(username="s@x.com")

    assert sb.calls == [
        ("reset_password_for_email", ("s@x.com", {"redirect_to": "http://localhost:5173/reset-password"})),
    ]


def test_confirm_forgot_password_updates_through_admin(supa, sb):
    sb.results["verify_otp"] = SimpleNamespace(user=_user(), session=_session())

    supa.confirm_forgot_password(username="s@x.com", code="654321", password="N3w!")

    assert sb.calls == [
        ("verify_otp", ({"email": "s@x.com", "token": "654321", "type": "recovery"},)),
        ("admin.update_user_by_id", ("uuid-1", {"password": "N3w!"})),
    ]


def test_get_user_maps_profile(supa, sb):
    sb.results["get_user"] = SimpleNamespace(user=_user(email_confirmed_at="2024-01-01T00:00:00Z"))

    user = supa.get_user("sb-access")

    assert user.subject == "uuid-1"
    assert user.username == "s@x.com"
    assert user.name == "Sue"
    assert user.email_verified is True


def test_global_sign_out(supa, sb):
    supa.global_sign_out("sb-access")
    assert sb.calls == [("admin.sign_out", ("sb-access", "global"))]


def test_list_users_by_email(supa, sb):
    sb.results["admin.list_users"] = [
        _user(email="other@x.com"),
        _user(email="S@x.com", email_confirmed_at="2024-01-01T00:00:00Z"),
    ]

    accounts = supa.list_users_by_email("s@x.com")

    assert [(a.username, a.confirmed) for a in accounts] == [("S@x.com", True)]
    assert sb.calls == [("admin.list_users", (1, LIST_USERS_PAGE_SIZE))]


def test_list_users_by_email_reads_every_page(supa, sb):
    full_page = [_user(id=f"uuid-{i}", email=f"u{i}@x.com") for i in range(LIST_USERS_PAGE_SIZE - 1)]
    sb.results["admin.list_users"] = [
        full_page + [_user(email="s@x.com")],
        [_user(id="uuid-late", email="s@x.com", email_confirmed_at="2024-01-01T00:00:00Z")],
    ]

    accounts = supa.list_users_by_email("s@x.com")

    assert [(a.username, a.confirmed) for a in accounts] == [("s@x.com", False), ("s@x.com", True)]
    assert [args for _, args in sb.calls] == [(1, LIST_USERS_PAGE_SIZE), (2, LIST_USERS_PAGE_SIZE)]


def test_transport_error_is_service_unavailable(supa, sb):
    sb.results["admin.sign_out"] = httpx.ConnectError("connection refused")

    with pytest.raises(IdentityProviderError) as excinfo:
        supa.global_sign_out("sb-access")
    assert excinfo.value.code == SERVICE_UNAVAILABLE


@pytest.mark.parametrize(
    "exc,code",
    [
        (AuthError("User already registered", "user_already_exists"), USERNAME_EXISTS),
        (AuthError("Password should be at least 6 characters", "weak_password"), INVALID_PASSWORD),
        (AuthError("Email not confirmed", "email_not_confirmed"), USER_NOT_CONFIRMED),
        (AuthError("Token has expired or is invalid", "otp_expired"), EXPIRED_CODE),
        (AuthError("email rate limit exceeded", "over_email_send_rate_limit"), TOO_MANY_REQUESTS),
        (httpx.ReadTimeout("timed out"), SERVICE_UNAVAILABLE),
    ],
)
def test_classify_error(exc, code):
    assert classify_error(exc).code == code


def test_classify_unknown_error():
    err = classify_error(AuthError("Something odd", "unexpected_failure"))
    assert err.code == "SupabaseAuthError"
    assert err.message == "Something odd"
