"""
Strategies for short-code generation in shortener_platform.

Provided strategies:
- RandomBase64Strategy: 6 bytes from `secrets` -> URL-safe Base64 -> 8 characters

Codes are not guaranteed unique. Collisions are expected and handled by the
caller: `ShorteningService.shorten` retries with a fresh code, and
`ShorteningService.shorten_batch` fails the batch.

Best practices:
- Keep strategies stateless; inject a fixed or scripted strategy in tests.
"""

import base64
import re
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass

CODE_LENGTH = 8
URLSAFE_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8}$")


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    @abstractmethod
    def generate(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class RandomBase64Strategy(BaseStrategy):
    """
    Cryptographically random codes over the URL-safe Base64 alphabet.

    6 random bytes encode to exactly 8 Base64 characters with no padding,
    giving 2^48 possible codes.
    """

    num_bytes: int = 6
    length: int = CODE_LENGTH

    def generate(self) -> str:
        raw = secrets.token_bytes(self.num_bytes)
        return base64.urlsafe_b64encode(raw).decode("ascii")[: self.length]


def generate_code() -> str:
    """Facade used by the rest of the app."""
    return RandomBase64Strategy().generate()
