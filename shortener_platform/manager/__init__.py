from .deleter import AsyncDeleter, DeletionJob
from .shortening_service import ShorteningService
from .strategies import BaseStrategy, RandomBase64Strategy

__all__ = ["AsyncDeleter", "BaseStrategy", "DeletionJob", "RandomBase64Strategy", "ShorteningService"]
