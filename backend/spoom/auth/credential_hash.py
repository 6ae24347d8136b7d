"""
Credential hash (``SECRET_HASH``) for app clients that carry a client secret.

The provider expects ``base64(HMAC_SHA256(key=client_secret, msg=subject + client_id))``
alongside every keyed request: sign-up, sign-in, confirm, resend, refresh and the
password-reset pair. The subject is the username the request names, or the empty
string when none is known (refresh without a stored username).
"""
from __future__ import annotations

import base64
import hashlib
import hmac


def compute_secret_hash(subject: str | None, client_id: str, client_secret: str) -> str:
    if not client_id:
        raise ValueError("client_id is required to compute a secret hash")
    if not client_secret:
        raise ValueError("client_secret is required to compute a secret hash")

    message = f"{subject or ''}{client_id}".encode("utf-8")
    digest = hmac.new(client_secret.encode("utf-8"), message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def fingerprint(secret_hash: str | None) -> str:
    """Short, log-safe marker for a computed hash."""
    if not secret_hash:
        return "<none>"
    return f"{secret_hash[:4]}…({len(secret_hash)})"
