"""
Batch uploads with per-file validation and conflict resolution.

Files are processed one after another and independently: a rejected or
failed file never affects the others, and earlier writes are never rolled
back.
"""

import json
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..config import settings
from ..errors import ImageBrowserError, ValidationError
from ..logger import logger
from ..storage import ObjectStore
from .classify import ALLOWED_UPLOAD_TYPES, is_image_name, placeholder_key
from .conflicts import object_exists, resolve_conflict
from .folders import write_placeholder
from .paths import join_path, parent_path, sanitize_path, split_path, validate_filename
from .types import (
    BatchUploadReport,
    BatchUploadSummary,
    ConflictPolicy,
    UploadFailed,
    UploadResult,
    UploadSkipped,
    UploadSuccess,
)
from .utils import build_file_url, utc_now_iso


class IncomingFile(BaseModel):
    """An uploaded file, already read into memory"""

    filename: str
    content_type: str
    data: bytes
    size: int


def parse_folder_structure(raw: Optional[str]) -> Dict[str, str]:
    """Parse the ``folderStructure`` form field: a JSON object mapping each
    uploaded filename to its relative destination path."""
    if not raw:
        return {}
    try:
        structure = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Invalid folder structure JSON")
    if not isinstance(structure, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in structure.items()
    ):
        raise ValidationError("Invalid folder structure JSON")
    return structure


def parse_conflict_policy(raw: Optional[str]) -> ConflictPolicy:
    if not raw:
        return ConflictPolicy.RENAME
    try:
        return ConflictPolicy(raw)
    except ValueError:
        raise ValidationError(
            "Invalid conflict resolution. Use 'rename', 'skip' or 'overwrite'"
        )


def _check_file(file: IncomingFile) -> Optional[str]:
    if file.content_type not in ALLOWED_UPLOAD_TYPES:
        return "Invalid file type. Only images are allowed."
    limit = settings.limits.max_upload_size
    if file.size > limit:
        return f"File too large. Maximum size is {limit // (1024 * 1024)}MB."
    return None


def _candidate_key(relative_path: str, target_path: Optional[str]) -> str:
    """Sanitize folder and file name separately and rejoin them."""
    folder, name = split_path(join_path(target_path or "", relative_path.strip()))
    folder = sanitize_path(folder)
    name = validate_filename(name)
    if not is_image_name(name):
        raise ValidationError("File extension not allowed. Only images are allowed.")
    return join_path(folder, name)


async def process_uploaded_file(
    store: ObjectStore,
    file: IncomingFile,
    relative_path: str,
    target_path: Optional[str],
    policy: ConflictPolicy,
    batch: bool = True,
) -> UploadResult:
    error = _check_file(file)
    if error:
        return UploadFailed(original_name=file.filename, error=error)

    try:
        candidate = _candidate_key(relative_path, target_path)
        resolution = await resolve_conflict(store, candidate, policy)
    except ImageBrowserError as e:
        return UploadFailed(original_name=file.filename, error=e.message)

    if resolution.skipped:
        return UploadSkipped(
            original_name=file.filename,
            final_path=resolution.final_path,
            note="File already exists and was skipped",
        )

    existed = policy == ConflictPolicy.OVERWRITE and await object_exists(
        store, resolution.final_path
    )
    metadata = {"originalName": file.filename, "uploadedAt": utc_now_iso()}
    if batch:
        metadata["batchUpload"] = "true"
    try:
        await store.put(
            resolution.final_path,
            file.data,
            content_type=file.content_type,
            metadata=metadata,
        )
    except Exception as e:
        logger.warning(f"Failed to store upload '{resolution.final_path}': {e}")
        return UploadFailed(original_name=file.filename, error=str(e))

    note = None
    if resolution.renamed:
        note = "File was renamed to avoid conflict"
    elif existed:
        note = "File was overwritten"
    return UploadSuccess(
        original_name=file.filename,
        final_path=resolution.final_path,
        url=build_file_url(resolution.final_path),
        size=file.size,
        note=note,
    )


async def ensure_placeholders(store: ObjectStore, folders: Sequence[str]) -> List[str]:
    """Write a placeholder into each folder that lacks one; returns the
    folders that received a new placeholder."""
    created = []
    for folder in sorted(set(f for f in folders if f)):
        if await object_exists(store, placeholder_key(folder)):
            continue
        try:
            await write_placeholder(store, folder)
        except Exception as e:
            logger.warning(f"Failed to create placeholder for '{folder}': {e}")
            continue
        created.append(folder)
    return created


async def batch_upload(
    store: ObjectStore,
    files: Sequence[IncomingFile],
    folder_structure: Optional[Dict[str, str]] = None,
    target_path: Optional[str] = None,
    policy: ConflictPolicy = ConflictPolicy.RENAME,
    batch: bool = True,
) -> BatchUploadReport:
    if not files:
        raise ValidationError("No files provided")
    folder_structure = folder_structure or {}

    results: List[UploadResult] = []
    for file in files:
        relative_path = folder_structure.get(file.filename) or file.filename
        results.append(
            await process_uploaded_file(
                store, file, relative_path, target_path, policy, batch=batch
            )
        )

    used_folders = [
        parent_path(r.final_path) for r in results if isinstance(r, UploadSuccess)
    ]
    created_folders = await ensure_placeholders(store, used_folders)

    failures = [r for r in results if isinstance(r, UploadFailed)]
    summary = BatchUploadSummary(
        total_files=len(results),
        successful_uploads=sum(1 for r in results if isinstance(r, UploadSuccess)),
        failed_uploads=len(failures),
        skipped_uploads=sum(1 for r in results if isinstance(r, UploadSkipped)),
    )
    logger.info(
        f"Batch upload into '{target_path or ''}': "
        f"{summary.successful_uploads} stored, {summary.skipped_uploads} skipped, "
        f"{summary.failed_uploads} failed"
    )
    return BatchUploadReport(
        results=results,
        failures=failures,
        summary=summary,
        created_folders=created_folders,
    )
