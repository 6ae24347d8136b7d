from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from spoom.auth.credential_hash import compute_secret_hash, fingerprint

CLIENT_ID = "4abc123clientid"
CLIENT_SECRET = "s3cr3t-value"


def _reference(subject: str) -> str:
    mac = hmac.new(CLIENT_SECRET.encode(), (subject + CLIENT_ID).encode(), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode()


def test_hash_is_deterministic():
    first = compute_secret_hash("a_1700000000000", CLIENT_ID, CLIENT_SECRET)
    second = compute_secret_hash("a_1700000000000", CLIENT_ID, CLIENT_SECRET)
    assert first == second


def test_hash_matches_hmac_sha256_over_subject_and_client_id():
    assert compute_secret_hash("user@example.com", CLIENT_ID, CLIENT_SECRET) == _reference("user@example.com")


def test_hash_decodes_to_sha256_digest():
    raw = base64.b64decode(compute_secret_hash("someone", CLIENT_ID, CLIENT_SECRET))
    assert len(raw) == 32


def test_empty_subject_is_accepted():
    assert compute_secret_hash("", CLIENT_ID, CLIENT_SECRET) == _reference("")
    assert compute_secret_hash(None, CLIENT_ID, CLIENT_SECRET) == _reference("")


def test_different_subjects_give_different_hashes():
    assert compute_secret_hash("alice", CLIENT_ID, CLIENT_SECRET) != compute_secret_hash("bob", CLIENT_ID, CLIENT_SECRET)


def test_different_secrets_give_different_hashes():
    assert compute_secret_hash("alice", CLIENT_ID, "one") != compute_secret_hash("alice", CLIENT_ID, "two")


@pytest.mark.parametrize("client_id,client_secret", [("", CLIENT_SECRET), (CLIENT_ID, "")])
def test_missing_client_material_raises(client_id, client_secret):
    with pytest.raises(ValueError):
        compute_secret_hash("alice", client_id, client_secret)


def test_fingerprint_does_not_expose_full_hash():
    value = compute_secret_hash("alice", CLIENT_ID, CLIENT_SECRET)
    marker = fingerprint(value)
    assert value not in marker
    assert marker.startswith(value[:4])
    assert fingerprint(None) == "<none>"
