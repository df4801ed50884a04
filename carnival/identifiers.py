from __future__ import annotations

import secrets

INVITE_CODE_BYTES = 16


def new_invite_code() -> str:
    """Return a URL-safe invite code carrying 128 bits of randomness."""
    return secrets.token_urlsafe(INVITE_CODE_BYTES)
