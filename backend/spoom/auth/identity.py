# spoom/auth/identity.py
"""
Canonical authenticated identity model.

A provider-agnostic view of "who is calling", built from the identity
provider's user lookup. Route code reasons about the caller through this
object instead of raw provider payloads.

The Identity object is INTERNAL ONLY and should not be returned directly
to clients.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Identity:
    """
    Canonical representation of an authenticated (or unauthenticated) user.

    Attributes:
        subject: The provider-issued subject ID. Also the primary key of the
                 application user row.
        auth_provider: ``"cognito"`` or ``"supabase"`` (``None`` if unauthenticated).
        username: Provider username (derived username for Cognito, email for Supabase).
        email: User's email address if available.
        name: Display name if the provider holds one.
        email_verified: Provider's verified flag.
        is_authenticated: True if the token resolved to a provider account.
        attributes: Raw provider attributes. Should NOT be used for authorization.
    """

    subject: str | None = None
    auth_provider: str | None = None
    username: str | None = None
    email: str | None = None
    name: str | None = None
    email_verified: bool = False
    is_authenticated: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def unauthenticated(cls) -> Identity:
        return cls()

    @classmethod
    def from_provider(
        cls,
        provider: str,
        *,
        subject: str,
        username: str | None = None,
        email: str | None = None,
        name: str | None = None,
        email_verified: bool = False,
        attributes: dict[str, Any] | None = None,
    ) -> Identity:
        return cls(
            subject=subject,
            auth_provider=provider,
            username=username,
            email=email.strip().lower() if email else None,
            name=name,
            email_verified=bool(email_verified),
            is_authenticated=True,
            attributes=attributes or {},
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Safe subset for API responses (no raw attributes)."""
        return {
            "id": self.subject,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "emailVerified": self.email_verified,
        }
