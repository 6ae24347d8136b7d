from __future__ import annotations

from spoom.services.identity_provider import IdentityProvider, get_identity_provider


def get_provider() -> IdentityProvider:
    """FastAPI dependency; tests override it with a fake provider."""
    return get_identity_provider()
