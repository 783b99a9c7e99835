"""
Utility functions for the auth module.
"""

import hashlib
import hmac


def sign(value: str, secret: str) -> str:
    """Return the hex HMAC-SHA256 of `value` under `secret`."""
    return hmac.new(secret.encode(), value.encode(), hashlib.sha256).hexdigest()


def verify(value: str, signature: str, secret: str) -> bool:
    return hmac.compare_digest(sign(value, secret), signature)
