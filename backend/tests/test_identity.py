# tests/test_identity.py
"""
Unit tests for the Identity model.

These tests verify:
- Unauthenticated identity defaults
- Provider identity mapping and email normalization
- Public output never leaks raw provider attributes

Tests do NOT require a real identity provider or database access.
"""
from __future__ import annotations

import dataclasses

import pytest

from spoom.auth.identity import Identity


def test_unauthenticated_identity():
    identity = Identity.unauthenticated()

    assert identity.subject is None
    assert identity.auth_provider is None
    assert identity.email is None
    assert identity.is_authenticated is False
    assert identity.attributes == {}


def test_from_provider_normalizes_email():
    identity = Identity.from_provider(
        "cognito",
        subject="abc123-def456",
        username="cognito_user_1700000000000",
        email="Cognito.User@Example.COM",
        name="Cognito User",
        email_verified=True,
        attributes={"sub": "abc123-def456"},
    )

    assert identity.subject == "abc123-def456"
    assert identity.auth_provider == "cognito"
    assert identity.username == "cognito_user_1700000000000"
    assert identity.email == "cognito.user@example.com"
    assert identity.email_verified is True
    assert identity.is_authenticated is True


def test_from_provider_without_email():
    identity = Identity.from_provider("supabase", subject="uuid-1")

    assert identity.email is None
    assert identity.attributes == {}
    assert identity.is_authenticated is True


def test_public_dict_excludes_attributes():
    identity = Identity.from_provider(
        "supabase",
        subject="uuid-1",
        username="a@x.com",
        email="a@x.com",
        attributes={"app_metadata": {"role": "admin"}},
    )

    public = identity.to_public_dict()

    assert public == {
        "id": "uuid-1",
        "username": "a@x.com",
        "email": "a@x.com",
        "name": None,
        "emailVerified": False,
    }
    assert "attributes" not in public


def test_identity_is_immutable():
    identity = Identity.unauthenticated()
    with pytest.raises(dataclasses.FrozenInstanceError):
        identity.subject = "x"  # type: ignore[misc]
