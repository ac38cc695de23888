"""
In-process object store.

Used as the default backend for local runs and as the store in tests.
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..errors import StoreError
from .types import ListPage, ObjectBody, StoredObject


def _encode_cursor(key: str) -> str:
    return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii")


def _decode_cursor(cursor: str) -> str:
    try:
        return base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        raise StoreError("Invalid list cursor")


class MemoryObjectStore:
    def __init__(self):
        self._objects: Dict[str, ObjectBody] = {}

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> StoredObject:
        obj = ObjectBody(
            key=key,
            size=len(body),
            uploaded_at=datetime.now(timezone.utc),
            content_type=content_type,
            custom_metadata=dict(metadata or {}),
            body=bytes(body),
        )
        self._objects[key] = obj
        return StoredObject.model_validate(obj.model_dump(exclude={"body"}))

    async def get(self, key: str) -> Optional[ObjectBody]:
        obj = self._objects.get(key)
        return obj.model_copy(deep=True) if obj else None

    async def head(self, key: str) -> Optional[StoredObject]:
        obj = self._objects.get(key)
        if obj is None:
            return None
        return StoredObject.model_validate(obj.model_dump(exclude={"body"}))

    async def delete(self, key: str) -> None:
        self._objects.pop(key, None)

    async def list(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        limit: int = 1000,
        cursor: Optional[str] = None,
    ) -> ListPage:
        after = _decode_cursor(cursor) if cursor else None
        keys = sorted(
            key
            for key in self._objects
            if key.startswith(prefix) and (after is None or key > after)
        )

        page = ListPage()
        entries = 0
        last_key: Optional[str] = None
        i = 0
        while i < len(keys) and entries < max(limit, 1):
            key = keys[i]
            rest = key[len(prefix) :]
            if delimiter and delimiter in rest:
                # Collapse every key under the common prefix into one entry
                common = prefix + rest[: rest.index(delimiter) + len(delimiter)]
                page.delimited_prefixes.append(common)
                while i < len(keys) and keys[i].startswith(common):
                    last_key = keys[i]
                    i += 1
            else:
                page.objects.append(self._describe(key))
                last_key = key
                i += 1
            entries += 1

        page.truncated = i < len(keys)
        if page.truncated and last_key is not None:
            page.cursor = _encode_cursor(last_key)
        return page

    def _describe(self, key: str) -> StoredObject:
        return StoredObject.model_validate(
            self._objects[key].model_dump(exclude={"body"})
        )

    def keys(self) -> List[str]:
        """All stored keys, sorted"""
        return sorted(self._objects)
