"""
File browser type definitions and Pydantic models.

Every model serializes with camelCase aliases for the admin UI.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConflictPolicy(str, Enum):
    RENAME = "rename"
    SKIP = "skip"
    OVERWRITE = "overwrite"


# Tree views
class FileNode(CamelModel):
    name: str
    path: str
    size: int
    content_type: str
    last_modified: datetime
    url: str


class FolderNode(CamelModel):
    name: str
    path: str  # Full key prefix without trailing slash
    file_count: int = 0
    total_size: int = 0
    children: List["FolderNode"] = Field(default_factory=list)
    previews: Optional[List[FileNode]] = None


class Hierarchy(CamelModel):
    folders: List[FolderNode] = Field(default_factory=list)
    files: List[FileNode] = Field(default_factory=list)


class Pagination(CamelModel):
    has_more: bool
    cursor: Optional[str] = None
    total: Optional[int] = None
    offset: Optional[int] = None
    limit: Optional[int] = None
    truncated: bool = False  # Descendant listing hit its safety cap


class FolderListing(CamelModel):
    path: str
    depth: int
    folders: List[FolderNode]
    files: Optional[List[FileNode]] = None
    pagination: Pagination


class ImageItem(CamelModel):
    key: str
    name: str
    size: int
    uploaded: datetime
    url: str


class BucketStats(CamelModel):
    total_files: int
    total_size: int
    total_size_mb: float = Field(serialization_alias="totalSizeMB")
    folder_count: int
    file_types: Dict[str, int]
    last_updated: datetime


# Upload results
class UploadSuccess(CamelModel):
    status: Literal["success"] = "success"
    original_name: str
    final_path: str
    url: str
    size: int
    note: Optional[str] = None


class UploadSkipped(CamelModel):
    status: Literal["skipped"] = "skipped"
    original_name: str
    final_path: str
    note: str


class UploadFailed(CamelModel):
    status: Literal["failed"] = "failed"
    original_name: str
    error: str


UploadResult = Annotated[
    Union[UploadSuccess, UploadSkipped, UploadFailed], Field(discriminator="status")
]


class BatchUploadSummary(CamelModel):
    total_files: int
    successful_uploads: int
    failed_uploads: int
    skipped_uploads: int


class BatchUploadReport(CamelModel):
    results: List[UploadResult]
    failures: List[UploadFailed]
    summary: BatchUploadSummary
    created_folders: List[str]


class SimpleUploadResult(CamelModel):
    name: str
    success: bool
    key: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


# Folder operations
class CreateFolderRequest(CamelModel):
    name: str


class NestedFolderRequest(CamelModel):
    path: str
    create_parents: bool = True


class MoveFolderRequest(CamelModel):
    source_path: str = Field(
        validation_alias=AliasChoices("sourcePath", "source", "source_path")
    )
    target_path: str = Field(
        validation_alias=AliasChoices("targetPath", "target", "target_path")
    )
    create_parents: bool = Field(
        default=False,
        validation_alias=AliasChoices("createParents", "create_parents"),
    )


class RenameFolderRequest(CamelModel):
    name: str  # New folder name


class CreateFolderResult(CamelModel):
    name: str
    path: str


class NestedFolderResult(CamelModel):
    path: str
    created_paths: List[str]


class MoveItemResult(CamelModel):
    source_key: str
    target_key: str
    success: bool
    placeholder: bool = False
    error: Optional[str] = None


class MoveReport(CamelModel):
    source_path: str
    target_path: str
    total_objects: int
    moved_files: int
    moved_folders: int  # Folder placeholders carried over
    failed: int
    created_parents: List[str] = Field(default_factory=list)
    placeholder_created: bool = False
    results: List[MoveItemResult]
    results_truncated: bool = False


class DeleteFailure(CamelModel):
    key: str
    error: str


class DeleteReport(CamelModel):
    path: str
    deleted_files: int
    deleted_folders: int  # Folder placeholders removed
    freed_bytes: int
    failed: int
    failures: List[DeleteFailure]
    truncated: bool = False
