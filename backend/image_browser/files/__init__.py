"""
Virtual folder layer over a flat object store.

This module provides:
- Path sanitization and key classification
- Paginated listings and folder/file tree building
- Folder create, move, rename and delete as batches of single-key calls
- Batch uploads with conflict resolution
"""

from .browse import bucket_stats, list_folder, list_images
from .classify import (
    ALLOWED_UPLOAD_TYPES,
    IMAGE_MIME_TYPES,
    PLACEHOLDER_NAME,
    KeyClass,
    KeyKind,
    classify_key,
    content_type_for,
)
from .conflicts import Resolution, resolve_conflict
from .folders import (
    create_folder,
    create_nested_folder,
    delete_folder,
    delete_folder_recursive,
    folder_exists,
    move_folder,
    rename_folder,
)
from .hierarchy import build_hierarchy, folders_from_prefixes
from .listing import (
    ChildListing,
    DescendantListing,
    list_all_descendants,
    list_children,
)
from .paths import sanitize_path, validate_filename, validate_folder_name
from .types import (
    BatchUploadReport,
    BucketStats,
    ConflictPolicy,
    CreateFolderRequest,
    CreateFolderResult,
    DeleteReport,
    FileNode,
    FolderListing,
    FolderNode,
    Hierarchy,
    ImageItem,
    MoveFolderRequest,
    MoveReport,
    NestedFolderRequest,
    NestedFolderResult,
    RenameFolderRequest,
    SimpleUploadResult,
    UploadFailed,
    UploadResult,
    UploadSkipped,
    UploadSuccess,
)
from .upload import (
    IncomingFile,
    batch_upload,
    parse_conflict_policy,
    parse_folder_structure,
)

__all__ = [
    # Types
    "BatchUploadReport",
    "BucketStats",
    "ChildListing",
    "ConflictPolicy",
    "CreateFolderRequest",
    "CreateFolderResult",
    "DeleteReport",
    "DescendantListing",
    "FileNode",
    "FolderListing",
    "FolderNode",
    "Hierarchy",
    "ImageItem",
    "IncomingFile",
    "KeyClass",
    "KeyKind",
    "MoveFolderRequest",
    "MoveReport",
    "NestedFolderRequest",
    "NestedFolderResult",
    "RenameFolderRequest",
    "Resolution",
    "SimpleUploadResult",
    "UploadFailed",
    "UploadResult",
    "UploadSkipped",
    "UploadSuccess",
    # Constants
    "ALLOWED_UPLOAD_TYPES",
    "IMAGE_MIME_TYPES",
    "PLACEHOLDER_NAME",
    # Paths and keys
    "classify_key",
    "content_type_for",
    "sanitize_path",
    "validate_filename",
    "validate_folder_name",
    # Listings
    "build_hierarchy",
    "bucket_stats",
    "folders_from_prefixes",
    "list_all_descendants",
    "list_children",
    "list_folder",
    "list_images",
    # Folder operations
    "create_folder",
    "create_nested_folder",
    "delete_folder",
    "delete_folder_recursive",
    "folder_exists",
    "move_folder",
    "rename_folder",
    # Uploads
    "batch_upload",
    "parse_conflict_policy",
    "parse_folder_structure",
    "resolve_conflict",
]
