"""
Username recovery for confirm / resend requests that arrive with only an email.

Derived usernames carry the registration time, so the email alone does not
name the account. Recovery runs two strategies, strictly sequentially:

1. Lookup: ask the provider for every account whose email attribute matches
   and try each one in order (confirmed accounts are skipped on resend).
2. Scan: only when the lookup fails or finds nothing, rebuild
   ``local-part_{millis}`` candidates for each step of the window preceding
   now, newest first.

In both strategies "user not found", "code mismatch" and "not authorized" mean
try the next candidate; any other provider error stops recovery and propagates.
Running out of candidates raises ``InvalidOrExpiredCode``.

This is best-effort: registrations older than the window, or not aligned to a
step, cannot be found by the scan.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from spoom.auth.usernames import candidate_usernames
from spoom.core.config import settings
from spoom.core.errors import InvalidOrExpiredCode, ValidationError
from spoom.services.identity_provider import (
    CODE_MISMATCH,
    NOT_AUTHORIZED,
    USER_NOT_FOUND,
    IdentityProvider,
    IdentityProviderError,
)

logger = logging.getLogger(__name__)

KEEP_TRYING_CODES = frozenset({USER_NOT_FOUND, CODE_MISMATCH, NOT_AUTHORIZED})


@dataclass(frozen=True)
class RecoveryResult:
    username: str
    strategy: str  # "lookup" | "scan"
    attempts: int


def _try_candidates(
    candidates: Iterable[str],
    action: Callable[[str], None],
    *,
    strategy: str,
) -> tuple[RecoveryResult | None, int]:
    attempts = 0
    for username in candidates:
        attempts += 1
        try:
            action(username)
        except IdentityProviderError as exc:
            if exc.code in KEEP_TRYING_CODES:
                continue
            logger.warning(
                "Username recovery (%s) aborted after %s attempts: %s",
                strategy,
                attempts,
                exc.code,
            )
            raise
        return RecoveryResult(username=username, strategy=strategy, attempts=attempts), attempts
    return None, attempts


def recover_username(
    provider: IdentityProvider,
    email: str,
    action: Callable[[str], None],
    *,
    skip_confirmed: bool = False,
    now: datetime | int | None = None,
    window_seconds: int | None = None,
    step_seconds: int | None = None,
) -> RecoveryResult:
    """
    Find the account behind ``email`` by running ``action`` against candidate usernames.

    ``action`` is the provider call to perform (confirm or resend) and must raise
    ``IdentityProviderError`` on failure.
    """
    if window_seconds is None:
        window_seconds = settings.USERNAME_RECOVERY_WINDOW_HOURS * 3600
    if step_seconds is None:
        step_seconds = settings.USERNAME_RECOVERY_STEP_SECONDS

    try:
        accounts = provider.list_users_by_email(email)
    except IdentityProviderError as exc:
        logger.warning("Email lookup failed (%s); falling back to timestamp scan", exc.code)
        accounts = []

    if accounts:
        candidates = [a.username for a in accounts if not (skip_confirmed and a.confirmed)]
        if not candidates:
            raise ValidationError("This account is already confirmed")

        result, attempts = _try_candidates(candidates, action, strategy="lookup")
        if result is None:
            logger.info("Username recovery (lookup) exhausted %s candidates", attempts)
            raise InvalidOrExpiredCode()
        return result

    result, attempts = _try_candidates(
        candidate_usernames(email, now=now, window_seconds=window_seconds, step_seconds=step_seconds),
        action,
        strategy="scan",
    )
    if result is None:
        logger.info("Username recovery (scan) exhausted %s candidates", attempts)
        raise InvalidOrExpiredCode()

    logger.info("Username recovered by scan after %s attempts", result.attempts)
    return result
