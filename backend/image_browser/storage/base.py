from typing import Dict, Optional, Protocol

from .types import ListPage, ObjectBody, StoredObject


class ObjectStore(Protocol):
    """
    Flat key-value object store with prefix listings.

    Implementations must raise ``StoreError`` for backend failures and return
    ``None`` from ``get``/``head`` for absent keys. ``list`` returns keys in
    lexicographic order; ``cursor`` is opaque and resumes after the last entry
    of the previous page.
    """

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> StoredObject: ...

    async def get(self, key: str) -> Optional[ObjectBody]: ...

    async def head(self, key: str) -> Optional[StoredObject]: ...

    async def delete(self, key: str) -> None: ...

    async def list(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        limit: int = 1000,
        cursor: Optional[str] = None,
    ) -> ListPage: ...
