from .base import BaseStorage
from .file_storage import FileStorage
from .storage import MemoryStorage
from .storage_factory import get_storage

__all__ = ["BaseStorage", "FileStorage", "MemoryStorage", "get_storage"]
