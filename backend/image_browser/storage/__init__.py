"""
Object store collaborators.

The core only talks to the ``ObjectStore`` protocol; the concrete backend is
chosen from settings.
"""

from ..config import Settings
from .base import ObjectStore
from .memory import MemoryObjectStore
from .types import ListPage, ObjectBody, StoredObject


def create_store(config: Settings) -> ObjectStore:
    if config.storage.backend == "s3":
        from .s3 import S3ObjectStore

        return S3ObjectStore(config.storage)
    return MemoryObjectStore()


__all__ = [
    "ListPage",
    "MemoryObjectStore",
    "ObjectBody",
    "ObjectStore",
    "StoredObject",
    "create_store",
]
