"""
Core owner-identity logic.

A token is `<user_id>.<expires_at>.<signature>`, where `expires_at` is a Unix
timestamp and the signature covers `<user_id>.<expires_at>`. Tokens are minted
for new anonymous callers and parsed on every request; nothing is stored
server-side.
"""

import time
import uuid
from typing import Optional, Tuple

from .config import TOKEN_TTL
from .utils import sign, verify


def issue_token(
    secret: str, user_id: Optional[str] = None, ttl: int = TOKEN_TTL, now: Optional[float] = None
) -> Tuple[str, str]:
    """
    Mint a token for `user_id`, or for a new random id when omitted.

    Returns:
        tuple: (user_id, token)
    """
    user_id = user_id or str(uuid.uuid4())
    now = time.time() if now is None else now
    payload = f"{user_id}.{int(now) + ttl}"
    return user_id, f"{payload}.{sign(payload, secret)}"


def parse_token(token: Optional[str], secret: str, now: Optional[float] = None) -> Optional[str]:
    """Return the user id carried by a valid, unexpired token, else None."""
    if not token:
        return None
    payload, _, signature = token.rpartition(".")
    user_id, _, expires_at = payload.rpartition(".")
    if not user_id or not expires_at.isdigit() or not verify(payload, signature, secret):
        return None
    now = time.time() if now is None else now
    if int(expires_at) <= now:
        return None
    return user_id
