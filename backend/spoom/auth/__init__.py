# spoom/auth/__init__.py
"""
Authentication primitives.

This package contains:
- identity.py: Canonical authenticated identity model (provider agnostic)
- credential_hash.py: SECRET_HASH computation for keyed app clients
- usernames.py: Derived usernames and recovery candidates
- tokens.py: Identity-token payload decoding
"""
from spoom.auth.identity import Identity

__all__ = ["Identity"]
