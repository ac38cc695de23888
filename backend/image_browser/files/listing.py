"""
Paginated listings over the object store.

``list_children`` returns one delimiter page of immediate children;
``list_all_descendants`` walks the cursor until the store is exhausted or a
safety cap is reached.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config import settings
from ..logger import logger
from ..storage import ObjectStore, StoredObject
from .paths import folder_prefix


class ChildListing(BaseModel):
    folders: List[str] = Field(default_factory=list)  # Child folder paths
    objects: List[StoredObject] = Field(default_factory=list)
    truncated: bool = False
    cursor: Optional[str] = None


class DescendantListing(BaseModel):
    objects: List[StoredObject] = Field(default_factory=list)
    truncated: bool = False  # True when the cap stopped the scan early


async def list_children(
    store: ObjectStore,
    path: str,
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> ChildListing:
    """Immediate children of the folder ``path`` ("" for the root)."""
    page_cap = settings.limits.list_page_size
    page_size = min(limit or page_cap, page_cap)
    page = await store.list(
        prefix=folder_prefix(path),
        delimiter="/",
        limit=page_size,
        cursor=cursor,
    )
    return ChildListing(
        folders=[prefix.rstrip("/") for prefix in page.delimited_prefixes],
        objects=page.objects,
        truncated=page.truncated,
        cursor=page.cursor,
    )


async def list_all_descendants(
    store: ObjectStore, path: str, max_objects: Optional[int] = None
) -> DescendantListing:
    """
    Every object below the folder ``path``, in store order.

    At most ``max_objects`` objects are returned, never more than the
    configured hard ceiling; hitting the cap marks the listing truncated.
    """
    ceiling = settings.limits.descendant_ceiling
    cap = min(max_objects or settings.limits.max_descendants, ceiling)
    prefix = folder_prefix(path)

    objects: List[StoredObject] = []
    cursor: Optional[str] = None
    while True:
        page = await store.list(
            prefix=prefix,
            limit=min(settings.limits.list_page_size, cap - len(objects)),
            cursor=cursor,
        )
        objects.extend(page.objects)
        if not page.truncated or not page.cursor:
            return DescendantListing(objects=objects[:cap])
        if len(objects) >= cap:
            logger.warning(
                f"Descendant listing of '{prefix}' stopped at {cap} objects"
            )
            return DescendantListing(objects=objects[:cap], truncated=True)
        cursor = page.cursor
