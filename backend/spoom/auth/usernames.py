"""
Derived usernames: ``<base>_<registration epoch millis>``.

The base is the sanitized email local part, falling back to the sanitized
display name only when the local part has nothing usable in it. The suffix is
not recoverable from the email, so verification without a username has to go
through ``spoom.services.username_recovery``.
"""
from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Iterator

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

DEFAULT_BASE = "user"
MAX_BASE_LENGTH = 64


def sanitize(value: str | None) -> str:
    clean = _NON_ALNUM_RE.sub("_", (value or "").strip().lower()).strip("_")
    return clean[:MAX_BASE_LENGTH]


def email_local_part(email: str) -> str:
    return (email or "").strip().lower().split("@", 1)[0]


def username_base(email: str, name: str | None = None) -> str:
    return sanitize(email_local_part(email)) or sanitize(name) or DEFAULT_BASE


def now_millis() -> int:
    return int(time.time() * 1000)


def derive_username(email: str, name: str | None = None, *, epoch_millis: int | None = None) -> str:
    millis = now_millis() if epoch_millis is None else int(epoch_millis)
    return f"{username_base(email, name)}_{millis}"


def _to_millis(now: datetime | int | float | None) -> int:
    if now is None:
        return now_millis()
    if isinstance(now, datetime):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return int(now.timestamp() * 1000)
    return int(now)


def candidate_usernames(
    email: str,
    *,
    now: datetime | int | float | None = None,
    window_seconds: int = 24 * 60 * 60,
    step_seconds: int = 60,
) -> Iterator[str]:
    """
    Yield ``local-part_{millis}`` guesses for the window preceding ``now``.

    Timestamps are aligned to ``step_seconds`` and walk backwards from the
    current step, newest first. Exactly ``window_seconds // step_seconds``
    candidates are produced.
    """
    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive")

    base = username_base(email)
    step_ms = step_seconds * 1000
    start = _to_millis(now) // step_ms * step_ms
    for i in range(max(0, window_seconds // step_seconds)):
        yield f"{base}_{start - i * step_ms}"
