from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from ..config import settings
from ..dependencies import get_store, require_admin
from ..errors import ValidationError
from ..files import (
    BatchUploadReport,
    ConflictPolicy,
    CreateFolderRequest,
    CreateFolderResult,
    DeleteReport,
    IncomingFile,
    MoveFolderRequest,
    MoveReport,
    NestedFolderRequest,
    NestedFolderResult,
    RenameFolderRequest,
    SimpleUploadResult,
    UploadFailed,
    UploadSuccess,
    batch_upload,
    bucket_stats,
    create_folder,
    create_nested_folder,
    delete_folder,
    delete_folder_recursive,
    move_folder,
    parse_conflict_policy,
    parse_folder_structure,
    rename_folder,
)
from ..models import DataResponse, SimpleUploadResponse, StatsResponse
from ..storage import ObjectStore

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


async def read_incoming(file: UploadFile) -> IncomingFile:
    """Read an upload into memory, stopping just past the size limit."""
    data = await file.read(settings.limits.max_upload_size + 1)
    size = max(file.size or 0, len(data))
    return IncomingFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=data,
        size=size,
    )


def _failure_response(status_code: int, error: str, report) -> JSONResponse:
    """Error envelope that still carries the itemized report."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "data": report.model_dump(mode="json", by_alias=True),
        },
    )


def _all_failed(report: BatchUploadReport) -> bool:
    return (
        report.summary.successful_uploads == 0 and report.summary.skipped_uploads == 0
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(store: ObjectStore = Depends(get_store)):
    """Bucket-wide image statistics"""
    return StatsResponse(stats=await bucket_stats(store))


@router.post("/upload", response_model=SimpleUploadResponse)
async def upload_files(
    folder: str = Form(default=""),
    files: Optional[List[UploadFile]] = File(default=None),
    store: ObjectStore = Depends(get_store),
):
    """Upload images into one folder, replacing files with the same name"""
    incoming = [await read_incoming(file) for file in files or []]
    report = await batch_upload(
        store,
        incoming,
        target_path=folder,
        policy=ConflictPolicy.OVERWRITE,
        batch=False,
    )

    results = []
    for result in report.results:
        if isinstance(result, UploadSuccess):
            results.append(
                SimpleUploadResult(
                    name=result.original_name,
                    success=True,
                    key=result.final_path,
                    url=result.url,
                )
            )
        elif isinstance(result, UploadFailed):
            results.append(
                SimpleUploadResult(
                    name=result.original_name, success=False, error=result.error
                )
            )

    response = SimpleUploadResponse(success=not _all_failed(report), results=results)
    if not response.success:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                **response.model_dump(mode="json", by_alias=True),
                "error": "No files were uploaded",
            },
        )
    return response


@router.post("/upload/batch", response_model=DataResponse[BatchUploadReport])
async def upload_batch(
    files: Optional[List[UploadFile]] = File(default=None),
    folder_structure: Optional[str] = Form(default=None, alias="folderStructure"),
    target_path: Optional[str] = Form(default=None, alias="targetPath"),
    conflict_resolution: Optional[str] = Form(
        default=None, alias="conflictResolution"
    ),
    store: ObjectStore = Depends(get_store),
):
    """Upload a folder tree of images with a conflict policy"""
    if not files:
        raise ValidationError("No files provided")
    structure = parse_folder_structure(folder_structure)
    policy = parse_conflict_policy(conflict_resolution)

    incoming = [await read_incoming(file) for file in files]
    report = await batch_upload(store, incoming, structure, target_path, policy)

    if _all_failed(report):
        return _failure_response(
            status.HTTP_400_BAD_REQUEST, "All uploads failed", report
        )
    return DataResponse[BatchUploadReport](
        message=(
            f"Upload completed. Success: {report.summary.successful_uploads}"
            f"/{report.summary.total_files}"
        ),
        data=report,
    )


@router.post("/folders", response_model=DataResponse[CreateFolderResult])
async def create_folder_endpoint(
    request: CreateFolderRequest, store: ObjectStore = Depends(get_store)
):
    """Create a top-level folder"""
    result = await create_folder(store, request.name)
    return DataResponse[CreateFolderResult](
        message=f"Folder '{result.name}' created successfully", data=result
    )


@router.post("/folders/nested", response_model=DataResponse[NestedFolderResult])
async def create_nested_folder_endpoint(
    request: NestedFolderRequest, store: ObjectStore = Depends(get_store)
):
    """Create a folder at any path, optionally with its parents"""
    result = await create_nested_folder(store, request.path, request.create_parents)
    return DataResponse[NestedFolderResult](
        message=f"Folder '{result.path}' created successfully", data=result
    )


@router.put("/folders/move", response_model=DataResponse[MoveReport])
async def move_folder_endpoint(
    request: MoveFolderRequest, store: ObjectStore = Depends(get_store)
):
    """Move a folder and everything below it to a new path"""
    report = await move_folder(
        store, request.source_path, request.target_path, request.create_parents
    )
    if report.failed and report.failed == report.total_objects:
        return _failure_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Move failed for every object",
            report,
        )
    return DataResponse[MoveReport](
        message=f"Moved {report.moved_files} files from '{report.source_path}' "
        f"to '{report.target_path}'",
        data=report,
    )


@router.put("/folders/{name}", response_model=DataResponse[MoveReport])
async def rename_folder_endpoint(
    name: str, request: RenameFolderRequest, store: ObjectStore = Depends(get_store)
):
    """Rename a top-level folder"""
    report = await rename_folder(store, name, request.name)
    if report.failed and report.failed == report.total_objects:
        return _failure_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Rename failed for every object",
            report,
        )
    return DataResponse[MoveReport](
        message=f"Folder renamed from '{report.source_path}' to '{report.target_path}'",
        data=report,
    )


@router.delete("/folders/recursive", response_model=DataResponse[DeleteReport])
async def delete_folder_recursive_endpoint(
    path: str, store: ObjectStore = Depends(get_store)
):
    """Delete a folder and everything below it"""
    report = await delete_folder_recursive(store, path)
    if report.failed and report.deleted_files + report.deleted_folders == 0:
        return _failure_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Delete failed for every object",
            report,
        )
    return DataResponse[DeleteReport](
        message=f"Deleted {report.deleted_files} files from '{report.path}'",
        data=report,
    )


@router.delete("/folders/{name}", response_model=DataResponse[DeleteReport])
async def delete_folder_endpoint(name: str, store: ObjectStore = Depends(get_store)):
    """Delete an empty top-level folder"""
    report = await delete_folder(store, name)
    if report.failed:
        return _failure_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to delete folder '{report.path}'",
            report,
        )
    return DataResponse[DeleteReport](
        message=f"Folder '{report.path}' deleted",
        data=report,
    )
