from __future__ import annotations

import logging

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from spoom.auth.credential_hash import compute_secret_hash, fingerprint
from spoom.core.config import settings
from spoom.services.cognito_client import CognitoIdentityProvider
from spoom.services.identity_provider import (
    INVALID_PARAMETER,
    NOT_AUTHORIZED,
    SERVICE_UNAVAILABLE,
    IdentityProviderError,
)

CLIENT_ID = "test-client-id"
SECRET = "s3cr3t"


class FakeBotoClient:
    """
    Records every Cognito call; ``responses[op]`` is returned or raised.
    A list of responses is served one per call, in order.
    """

    def __init__(self, responses: dict | None = None) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.responses = responses or {}

    def __getattr__(self, operation: str):
        def _call(**kwargs):
            self.calls.append((operation, kwargs))
            result = self.responses.get(operation, {})
            if isinstance(result, list):
                result = result.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        return _call


def _client_error(code: str, message: str = "boom", operation: str = "SignUp") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


AUTH_RESULT = {
    "AuthenticationResult": {
        "AccessToken": "access",
        "IdToken": "id",
        "RefreshToken": "refresh",
        "ExpiresIn": 3600,
        "TokenType": "Bearer",
    }
}


@pytest.fixture()
def boto():
    return FakeBotoClient({"initiate_auth": AUTH_RESULT, "sign_up": {"UserSub": "sub-1", "UserConfirmed": False}})


@pytest.fixture()
def cognito(boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_APP_CLIENT_ID", CLIENT_ID)
    return CognitoIdentityProvider(client=boto)


def test_no_secret_hash_without_client_secret(cognito, boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_APP_CLIENT_SECRET", "")

    cognito.sign_up(username="a_1", email="a@x.com", password="Abc12345!", name="A B")
    cognito.authenticate(username="a@x.com", password="Abc12345!")

    sign_up, initiate = boto.calls
    assert "SecretHash" not in sign_up[1]
    assert "SECRET_HASH" not in initiate[1]["AuthParameters"]


def test_secret_hash_on_every_keyed_call(cognito, boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_APP_CLIENT_SECRET", SECRET)

    cognito.sign_up(username="a_1", email="a@x.com", password="Abc12345!", name="A B")
    cognito.confirm_sign_up(username="a_1", code="123456")
    cognito.resend_confirmation_code(username="a_1")
    cognito.forgot_password(username="a@x.com")
    cognito.confirm_forgot_password(username="a@x.com", code="123456", password="N3w!")

    expected = {
        "sign_up": compute_secret_hash("a_1", CLIENT_ID, SECRET),
        "confirm_sign_up": compute_secret_hash("a_1", CLIENT_ID, SECRET),
        "resend_confirmation_code": compute_secret_hash("a_1", CLIENT_ID, SECRET),
        "forgot_password": compute_secret_hash("a@x.com", CLIENT_ID, SECRET),
        "confirm_forgot_password": compute_secret_hash("a@x.com", CLIENT_ID, SECRET),
    }
    for operation, kwargs in boto.calls:
        assert kwargs["ClientId"] == CLIENT_ID
        assert kwargs["SecretHash"] == expected[operation], operation


def test_secret_hash_is_logged_only_as_fingerprint(cognito, boto, monkeypatch, caplog):
    monkeypatch.setattr(settings, "COGNITO_APP_CLIENT_SECRET", SECRET)
    caplog.set_level(logging.DEBUG, logger="spoom.services.cognito_client")

    cognito.confirm_sign_up(username="a_1", code="123456")

    secret_hash = compute_secret_hash("a_1", CLIENT_ID, SECRET)
    assert fingerprint(secret_hash) in caplog.text
    assert secret_hash not in caplog.text


def test_refresh_without_username_hashes_empty_subject(cognito, boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_APP_CLIENT_SECRET", SECRET)

    tokens = cognito.refresh(refresh_token="rt")

    operation, kwargs = boto.calls[0]
    assert operation == "initiate_auth"
    assert kwargs["AuthFlow"] == "REFRESH_TOKEN_AUTH"
    assert kwargs["AuthParameters"] == {
        "REFRESH_TOKEN": "rt",
        "SECRET_HASH": compute_secret_hash("", CLIENT_ID, SECRET),
    }
    assert tokens.access_token == "access"


def test_authenticate_maps_tokens(cognito, boto):
    tokens = cognito.authenticate(username="a@x.com", password="pw")

    assert tokens.access_token == "access"
    assert tokens.id_token == "id"
    assert tokens.refresh_token == "refresh"
    assert tokens.expires_in == 3600
    assert boto.calls[0][1]["AuthFlow"] == "USER_PASSWORD_AUTH"


def test_challenge_is_not_authorized(cognito, boto):
    boto.responses["initiate_auth"] = {"ChallengeName": "SOFTWARE_TOKEN_MFA", "Session": "s"}

    with pytest.raises(IdentityProviderError) as excinfo:
        cognito.authenticate(username="a@x.com", password="pw")
    assert excinfo.value.code == NOT_AUTHORIZED


def test_sign_up_result(cognito):
    result = cognito.sign_up(username="a_1", email="a@x.com", password="pw", name="A")
    assert (result.subject, result.username, result.confirmed) == ("sub-1", "a_1", False)


def test_client_error_keeps_provider_code(cognito, boto):
    boto.responses["sign_up"] = _client_error("UsernameExistsException", "User already exists")

    with pytest.raises(IdentityProviderError) as excinfo:
        cognito.sign_up(username="a_1", email="a@x.com", password="pw", name="A")

    assert excinfo.value.code == "UsernameExistsException"
    assert excinfo.value.message == "User already exists"


def test_transport_error_is_service_unavailable(cognito, boto):
    boto.responses["global_sign_out"] = EndpointConnectionError(endpoint_url="https://cognito-idp.example")

    with pytest.raises(IdentityProviderError) as excinfo:
        cognito.global_sign_out("access")
    assert excinfo.value.code == SERVICE_UNAVAILABLE


def test_get_user_maps_attributes(cognito, boto):
    boto.responses["get_user"] = {
        "Username": "a_1",
        "UserAttributes": [
            {"Name": "sub", "Value": "sub-1"},
            {"Name": "email", "Value": "a@x.com"},
            {"Name": "name", "Value": "A B"},
            {"Name": "email_verified", "Value": "True"},
        ],
    }

    user = cognito.get_user("access")

    assert user.subject == "sub-1"
    assert user.username == "a_1"
    assert user.email == "a@x.com"
    assert user.name == "A B"
    assert user.email_verified is True


def test_list_users_by_email_filter(cognito, boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_USER_POOL_ID", "us-east-1_Pool")
    boto.responses["list_users"] = {
        "Users": [
            {"Username": "a_2", "UserStatus": "UNCONFIRMED"},
            {"Username": "a_1", "UserStatus": "CONFIRMED"},
        ]
    }

    accounts = cognito.list_users_by_email(' A@X.com"')

    operation, kwargs = boto.calls[0]
    assert operation == "list_users"
    assert kwargs == {"UserPoolId": "us-east-1_Pool", "Filter": 'email = "a@x.com"'}
    assert [(a.username, a.confirmed) for a in accounts] == [("a_2", False), ("a_1", True)]


def test_list_users_by_email_follows_pagination_token(cognito, boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_USER_POOL_ID", "us-east-1_Pool")
    boto.responses["list_users"] = [
        {"Users": [{"Username": "a_1", "UserStatus": "UNCONFIRMED"}], "PaginationToken": "page-2"},
        {"Users": [{"Username": "a_2", "UserStatus": "CONFIRMED"}]},
    ]

    accounts = cognito.list_users_by_email("a@x.com")

    first, second = boto.calls
    assert "PaginationToken" not in first[1]
    assert second[1]["PaginationToken"] == "page-2"
    assert [(a.username, a.confirmed) for a in accounts] == [("a_1", False), ("a_2", True)]


def test_list_users_without_pool_id(cognito, boto, monkeypatch):
    monkeypatch.setattr(settings, "COGNITO_USER_POOL_ID", "")

    with pytest.raises(IdentityProviderError) as excinfo:
        cognito.list_users_by_email("a@x.com")

    assert excinfo.value.code == INVALID_PARAMETER
    assert boto.calls == []
