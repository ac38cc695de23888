from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..config import settings
from ..dependencies import get_store, require_admin
from ..files import FolderListing, list_folder, list_images
from ..models import DataResponse, ImagesResponse
from ..storage import ObjectStore

router = APIRouter(
    tags=["folders"],
    dependencies=[Depends(require_admin)],
)


@router.get("/folders", response_model=DataResponse[FolderListing])
async def get_folders(
    path: str = "",
    depth: int = Query(default=1, ge=1, le=settings.limits.max_depth),
    include_files: bool = False,
    include_previews: bool = False,
    preview_count: int = Query(default=4, ge=1, le=20),
    limit: int = Query(default=settings.limits.list_page_size, ge=1),
    offset: int = Query(default=0, ge=0),
    cursor: Optional[str] = None,
    store: ObjectStore = Depends(get_store),
):
    """List child folders of a path, optionally nested and with image files"""
    listing = await list_folder(
        store,
        path,
        depth=depth,
        include_files=include_files,
        include_previews=include_previews,
        preview_count=preview_count,
        limit=min(limit, settings.limits.list_page_size),
        offset=offset,
        cursor=cursor,
    )
    return DataResponse[FolderListing](data=listing)


@router.get("/images", response_model=ImagesResponse)
async def get_images(
    folder: Optional[str] = None, store: ObjectStore = Depends(get_store)
):
    """List the images directly inside a folder"""
    images = await list_images(store, folder)
    return ImagesResponse(folder=folder, images=images)
