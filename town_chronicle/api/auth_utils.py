"""HMAC-signed bearer token utilities for Town Chronicle identity.

# ─── HOW BEARER TOKENS WORK ──────────────────────────────────────────
#
# The API identifies callers with an HMAC-SHA256 signed bearer token
# instead of server-side sessions.  This keeps the server stateless
# (no session table) while preventing token forgery.
#
# Token format:  {user_id}:{unix_timestamp}:{hmac_hex_digest}
#   - user_id:   opaque caller id (must not contain ':')
#   - timestamp: when the token was issued (UTC epoch seconds)
#   - hmac:      HMAC-SHA256(secret, "{user_id}:{timestamp}")
#
# Validation checks:
#   1. Token format matches expected pattern
#   2. HMAC signature is valid (constant-time comparison)
#   3. Timestamp is within the TTL window
#
# Issuing tokens to end users (login, registration) happens outside this
# service; operators mint them with ``town-chronicle issue-token``.
# ─────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import hashlib
import hmac
import time


def _sign(secret: str, payload: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def create_user_token(user_id: str, secret: str, issued_at: int | None = None) -> str:
    """Create an HMAC-signed bearer token for ``user_id``.

    Parameters
    ----------
    user_id:
        The caller's opaque id.  Must be non-empty and free of ``:``.
    secret:
        The server's ``AUTH_SECRET``.
    issued_at:
        Issue time in epoch seconds; defaults to now.

    Returns
    -------
    Token string in the format ``{user_id}:{timestamp}:{hmac_hex}``.
    """
    if not user_id or ":" in user_id:
        raise ValueError("user_id must be non-empty and must not contain ':'")
    timestamp = str(int(time.time()) if issued_at is None else issued_at)
    payload = f"{user_id}:{timestamp}"
    return f"{payload}:{_sign(secret, payload)}"


def validate_user_token(
    token: str,
    secret: str,
    ttl_hours: int = 168,
) -> str | None:
    """Validate a bearer token and return the user id it carries.

    Returns
    -------
    The user id when the token is well-formed, correctly signed and not
    expired; ``None`` otherwise.
    """
    if not token or token.count(":") != 2:
        return None

    user_id, timestamp_str, provided_hmac = token.split(":")
    if not user_id:
        return None

    # Verify the timestamp is a valid integer.
    try:
        timestamp = int(timestamp_str)
    except ValueError:
        return None

    # Check expiry.
    max_age_seconds = ttl_hours * 3600
    if time.time() - timestamp > max_age_seconds:
        return None

    # Recompute the expected HMAC and compare in constant time.
    expected_hmac = _sign(secret, f"{user_id}:{timestamp_str}")
    if not hmac.compare_digest(provided_hmac, expected_hmac):
        return None
    return user_id
