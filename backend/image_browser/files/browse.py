"""
Read-side views of the bucket: folder listings, folder image lists and
bucket statistics.
"""

from collections import Counter
from typing import List, Optional

from ..config import settings
from ..logger import logger
from ..storage import ObjectStore
from .classify import KeyKind, classify_key, get_extension, is_hidden_folder
from .hierarchy import build_hierarchy, folders_from_prefixes, image_files
from .listing import list_all_descendants, list_children
from .paths import sanitize_path
from .types import (
    BucketStats,
    FileNode,
    FolderListing,
    FolderNode,
    ImageItem,
    Pagination,
)
from .utils import build_file_url, run_in_batches, utc_now


async def folder_previews(
    store: ObjectStore, folder: FolderNode, count: int
) -> List[FileNode]:
    listing = await list_children(store, folder.path)
    return image_files(listing.objects)[:count]


async def attach_previews(
    store: ObjectStore, folders: List[FolderNode], count: int
) -> None:
    async def attach(folder: FolderNode) -> None:
        try:
            folder.previews = await folder_previews(store, folder, count)
        except Exception as e:
            # previews stay None for this folder
            logger.warning(f"Failed to load previews for '{folder.path}': {e}")

    await run_in_batches(folders, attach)


async def list_folder(
    store: ObjectStore,
    path: Optional[str] = None,
    depth: int = 1,
    include_files: bool = False,
    include_previews: bool = False,
    preview_count: int = 4,
    limit: Optional[int] = None,
    offset: int = 0,
    cursor: Optional[str] = None,
) -> FolderListing:
    """
    List the folders (and optionally image files) under ``path``.

    Depth 1 maps onto a single delimiter listing page and paginates with the
    store cursor. Deeper listings scan every descendant (up to the safety
    cap), build the tree and paginate the top-level folders by offset.
    """
    path = sanitize_path(path)
    depth = max(1, min(depth, settings.limits.max_depth))
    page_size = limit or settings.limits.list_page_size

    if depth == 1:
        children = await list_children(store, path, limit=page_size, cursor=cursor)
        folders = folders_from_prefixes(children.folders, path)
        files = image_files(children.objects) if include_files else None
        pagination = Pagination(has_more=children.truncated, cursor=children.cursor)
    else:
        listing = await list_all_descendants(store, path)
        hierarchy = build_hierarchy(listing.objects, path, depth)
        total = len(hierarchy.folders)
        folders = hierarchy.folders[offset : offset + page_size]
        files = hierarchy.files if include_files else None
        pagination = Pagination(
            has_more=offset + page_size < total,
            total=total,
            offset=offset,
            limit=page_size,
            truncated=listing.truncated,
        )

    if include_previews and folders:
        await attach_previews(store, folders, preview_count)

    return FolderListing(
        path=path,
        depth=depth,
        folders=folders,
        files=files,
        pagination=pagination,
    )


async def list_images(store: ObjectStore, folder: Optional[str]) -> List[ImageItem]:
    """Image files directly inside ``folder``; nothing without a folder."""
    folder = sanitize_path(folder)
    if not folder:
        return []
    listing = await list_children(store, folder)
    return [
        ImageItem(
            key=node.path,
            name=node.name,
            size=node.size,
            uploaded=node.last_modified,
            url=build_file_url(node.path),
        )
        for node in image_files(listing.objects)
    ]


async def bucket_stats(store: ObjectStore) -> BucketStats:
    """
    Image count, size and type breakdown over the whole bucket.

    Hidden system folders (thumbnails) are counted unless
    ``stats_include_hidden`` is turned off.
    """
    hidden = [] if settings.stats_include_hidden else None
    listing = await list_all_descendants(
        store, "", max_objects=settings.limits.descendant_ceiling
    )

    total_files = 0
    total_size = 0
    file_types: Counter[str] = Counter()
    folders: set[str] = set()
    for obj in listing.objects:
        segments = obj.key.split("/")
        folder = "/".join(segments[:-1])
        if folder and hidden is None and is_hidden_folder(folder):
            continue
        for level in range(1, len(segments)):
            folders.add("/".join(segments[:level]))
        if classify_key(obj.key, hidden).kind != KeyKind.FILE:
            continue
        total_files += 1
        total_size += obj.size
        file_types[get_extension(obj.key).lstrip(".")] += 1

    return BucketStats(
        total_files=total_files,
        total_size=total_size,
        total_size_mb=round(total_size / (1024 * 1024), 2),
        folder_count=len(folders),
        file_types=dict(file_types),
        last_updated=utc_now(),
    )
