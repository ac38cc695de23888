"""
Folder operations on top of single-key store primitives.

Folders exist only as key prefixes plus an optional ``.folder-placeholder``
object. Moves and renames copy every object under the source prefix, then
delete the sources whose copy succeeded. Nothing here is atomic: a failure
part way leaves both copies of the affected objects in place, and the result
reports say exactly which ones. Pre-condition checks run before the first
mutation and abort the whole operation.
"""

from typing import List

from ..config import settings
from ..errors import AlreadyExists, NotFound, ValidationError
from ..logger import log_exception, logger
from ..storage import ObjectStore, StoredObject
from .classify import is_placeholder, placeholder_key
from .listing import list_all_descendants
from .paths import (
    folder_prefix,
    parent_path,
    sanitize_path,
    validate_folder_name,
)
from .types import (
    CreateFolderResult,
    DeleteFailure,
    DeleteReport,
    MoveItemResult,
    MoveReport,
    NestedFolderResult,
)
from .utils import run_in_batches, utc_now_iso


@log_exception("Existence probe for '{path}'", default_return=False)
async def folder_exists(store: ObjectStore, path: str) -> bool:
    """
    Whether at least one object lives under ``path/``.

    Store errors count as "does not exist": a transient failure lets a
    create go through instead of blocking it.
    """
    page = await store.list(prefix=folder_prefix(path), limit=1)
    return bool(page.objects or page.delimited_prefixes)


async def write_placeholder(store: ObjectStore, folder: str) -> None:
    await store.put(
        placeholder_key(folder),
        b"",
        content_type="application/x-directory",
        metadata={"type": "folder-placeholder", "createdAt": utc_now_iso()},
    )


async def create_folder(store: ObjectStore, name: str) -> CreateFolderResult:
    name = validate_folder_name(name)
    if await folder_exists(store, name):
        raise AlreadyExists(f"Folder '{name}' already exists")

    await write_placeholder(store, name)
    logger.info(f"Created folder '{name}'")
    return CreateFolderResult(name=name, path=name)


async def create_nested_folder(
    store: ObjectStore, path: str, create_parents: bool = True
) -> NestedFolderResult:
    path = sanitize_path(path)
    if not path:
        raise ValidationError("Folder path is required")

    created: List[str] = []
    if create_parents:
        segments = path.split("/")
        for level in range(1, len(segments) + 1):
            current = "/".join(segments[:level])
            if not await folder_exists(store, current):
                await write_placeholder(store, current)
                created.append(current)
    else:
        if await folder_exists(store, path):
            raise AlreadyExists(f"Folder '{path}' already exists")
        await write_placeholder(store, path)
        created.append(path)

    if created:
        logger.info(f"Created folders {created}")
    return NestedFolderResult(path=path, created_paths=created)


async def _transfer(
    store: ObjectStore, source: str, target: str, objects: List[StoredObject]
) -> List[MoveItemResult]:
    """Copy every object from ``source/`` to ``target/``, then delete the
    originals that were copied."""
    source_prefix = folder_prefix(source)
    target_prefix = folder_prefix(target)
    moved_at = utc_now_iso()

    async def copy_object(obj: StoredObject) -> MoveItemResult:
        target_key = target_prefix + obj.key[len(source_prefix) :]
        result = MoveItemResult(
            source_key=obj.key,
            target_key=target_key,
            success=False,
            placeholder=is_placeholder(obj.key),
        )
        try:
            original = await store.get(obj.key)
            if original is None:
                result.error = "Source object disappeared before copy"
                return result
            metadata = dict(original.custom_metadata)
            metadata.update({"movedFrom": obj.key, "movedAt": moved_at})
            await store.put(
                target_key,
                original.body,
                content_type=original.content_type,
                metadata=metadata,
            )
        except Exception as e:
            logger.warning(f"Failed to copy '{obj.key}' to '{target_key}': {e}")
            result.error = f"Copy failed: {e}"
            return result
        result.success = True
        return result

    async def delete_original(result: MoveItemResult) -> MoveItemResult:
        try:
            await store.delete(result.source_key)
        except Exception as e:
            logger.warning(f"Copied '{result.source_key}' but could not delete it: {e}")
            result.success = False
            result.error = f"Copied, but failed to delete source: {e}"
        return result

    results = await run_in_batches(objects, copy_object)
    await run_in_batches([r for r in results if r.success], delete_original)
    return results


async def _list_for_relocation(store: ObjectStore, source: str) -> List[StoredObject]:
    listing = await list_all_descendants(
        store, source, max_objects=settings.limits.descendant_ceiling
    )
    if listing.truncated:
        raise ValidationError(
            f"Folder '{source}' holds more than "
            f"{settings.limits.descendant_ceiling} objects and cannot be moved"
        )
    return listing.objects


async def _relocate(
    store: ObjectStore,
    source: str,
    target: str,
    objects: List[StoredObject],
    created_parents: List[str],
) -> MoveReport:
    results = await _transfer(store, source, target, objects)

    moved = [r for r in results if r.success]
    target_placeholder = placeholder_key(target)
    placeholder_moved = any(r.target_key == target_placeholder for r in moved)
    placeholder_created = False
    # Nothing landed under the target, so it must stay absent for a retry
    if moved and not placeholder_moved:
        try:
            await write_placeholder(store, target)
            placeholder_created = True
        except Exception as e:
            logger.warning(f"Failed to create placeholder for '{target}': {e}")

    cap = settings.limits.result_report_cap
    report = MoveReport(
        source_path=source,
        target_path=target,
        total_objects=len(results),
        moved_files=sum(1 for r in moved if not r.placeholder),
        moved_folders=sum(1 for r in moved if r.placeholder),
        failed=len(results) - len(moved),
        created_parents=created_parents,
        placeholder_created=placeholder_created,
        results=results[:cap],
        results_truncated=len(results) > cap,
    )
    logger.info(
        f"Moved '{source}' to '{target}': {len(moved)}/{len(results)} objects, "
        f"{report.failed} failed"
    )
    return report


async def move_folder(
    store: ObjectStore,
    source_path: str,
    target_path: str,
    create_parents: bool = False,
) -> MoveReport:
    source = sanitize_path(source_path)
    target = sanitize_path(target_path)
    if not source or not target:
        raise ValidationError("Source and target paths are required")
    if source == target:
        raise ValidationError("Source and target paths are the same")
    if target.startswith(folder_prefix(source)):
        raise ValidationError("Cannot move a folder into itself")

    if not await folder_exists(store, source):
        raise NotFound(f"Source folder '{source}' not found")
    if await folder_exists(store, target):
        raise AlreadyExists(f"Target folder '{target}' already exists")

    objects = await _list_for_relocation(store, source)

    # Without create_parents the target parent stays implicit in the key prefix
    created_parents: List[str] = []
    target_parent = parent_path(target)
    if create_parents and target_parent:
        nested = await create_nested_folder(store, target_parent, create_parents=True)
        created_parents = nested.created_paths

    return await _relocate(store, source, target, objects, created_parents)


async def rename_folder(store: ObjectStore, old_name: str, new_name: str) -> MoveReport:
    old_name = sanitize_path(old_name)
    if not old_name or "/" in old_name:
        raise ValidationError("Only top-level folders can be renamed")
    new_name = validate_folder_name(new_name)
    if old_name == new_name:
        raise ValidationError("New name must be different from the current name")

    if not await folder_exists(store, old_name):
        raise NotFound(f"Folder '{old_name}' not found")
    if await folder_exists(store, new_name):
        raise AlreadyExists(f"Folder '{new_name}' already exists")

    objects = await _list_for_relocation(store, old_name)
    return await _relocate(store, old_name, new_name, objects, [])


async def _delete_objects(
    store: ObjectStore, path: str, objects: List[StoredObject], truncated: bool
) -> DeleteReport:
    async def delete_object(obj: StoredObject) -> DeleteFailure | None:
        try:
            await store.delete(obj.key)
        except Exception as e:
            logger.warning(f"Failed to delete '{obj.key}': {e}")
            return DeleteFailure(key=obj.key, error=str(e))
        return None

    outcomes = await run_in_batches(objects, delete_object)

    report = DeleteReport(
        path=path,
        deleted_files=0,
        deleted_folders=0,
        freed_bytes=0,
        failed=0,
        failures=[],
        truncated=truncated,
    )
    for obj, failure in zip(objects, outcomes):
        if failure is not None:
            report.failed += 1
            report.failures.append(failure)
            continue
        if is_placeholder(obj.key):
            report.deleted_folders += 1
        else:
            report.deleted_files += 1
        report.freed_bytes += obj.size

    logger.info(
        f"Deleted '{path}': {report.deleted_files} files, "
        f"{report.deleted_folders} placeholders, {report.failed} failed"
    )
    return report


async def delete_folder_recursive(store: ObjectStore, path: str) -> DeleteReport:
    path = sanitize_path(path)
    if not path:
        raise ValidationError("Refusing to delete the root folder")
    if not await folder_exists(store, path):
        raise NotFound(f"Folder '{path}' not found")

    listing = await list_all_descendants(
        store, path, max_objects=settings.limits.descendant_ceiling
    )
    return await _delete_objects(store, path, listing.objects, listing.truncated)


async def delete_folder(store: ObjectStore, name: str) -> DeleteReport:
    """Delete a top-level folder that holds nothing but its placeholder."""
    name = sanitize_path(name)
    if not name or "/" in name:
        raise ValidationError("Only top-level folders can be deleted here")
    if not await folder_exists(store, name):
        raise NotFound(f"Folder '{name}' not found")

    listing = await list_all_descendants(store, name, max_objects=2)
    if [obj.key for obj in listing.objects] != [placeholder_key(name)]:
        raise ValidationError(
            "Folder is not empty. Use recursive delete to remove its contents"
        )
    return await _delete_objects(store, name, listing.objects, False)
