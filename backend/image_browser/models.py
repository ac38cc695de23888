"""
Response envelopes shared by all API routes: ``{"success": true, ...}`` on
success and ``{"success": false, "error": "..."}`` on failure.
"""

from typing import Generic, List, Optional, TypeVar

from .files.types import BucketStats, CamelModel, ImageItem, SimpleUploadResult

T = TypeVar("T")


class DataResponse(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: T


class ImagesResponse(CamelModel):
    success: bool = True
    folder: Optional[str] = None
    images: List[ImageItem]


class StatsResponse(CamelModel):
    success: bool = True
    stats: BucketStats


class SimpleUploadResponse(CamelModel):
    success: bool = True
    results: List[SimpleUploadResult]
