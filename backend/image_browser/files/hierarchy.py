"""
Folder/file trees built from flat key listings.

Depth counts folder levels below the base path: ``base/x.png`` has depth 0,
``base/a/x.png`` depth 1, ``base/a/b/x.png`` depth 2. Image files within the
requested depth are counted into every folder on their path. Placeholders,
non-image objects and objects below the requested depth add no counts but
still make their folder chain (cut at the requested depth) visible, so a
depth 1 build shows the same folders as a delimiter listing. Hidden
system folders and everything below them are left out.
"""

from typing import Dict, Iterable, List, Optional

from ..storage import StoredObject
from .classify import KeyKind, classify_key, is_hidden_folder
from .paths import folder_prefix, join_path
from .types import FileNode, FolderNode, Hierarchy
from .utils import build_file_url


def file_node(obj: StoredObject) -> FileNode:
    cls = classify_key(obj.key)
    return FileNode(
        name=obj.key.rsplit("/", 1)[-1],
        path=obj.key,
        size=obj.size,
        content_type=cls.mime_type,
        last_modified=obj.uploaded_at,
        url=build_file_url(obj.key),
    )


def image_files(
    objects: Iterable[StoredObject], hidden_prefixes: Optional[Iterable[str]] = None
) -> List[FileNode]:
    """FileNodes for the image objects among ``objects``, sorted by name."""
    nodes = [
        file_node(obj)
        for obj in objects
        if classify_key(obj.key, hidden_prefixes).kind == KeyKind.FILE
    ]
    return sorted(nodes, key=lambda node: node.name)


def folders_from_prefixes(
    folder_paths: Iterable[str],
    base_path: str = "",
    hidden_prefixes: Optional[Iterable[str]] = None,
) -> List[FolderNode]:
    """
    FolderNodes for the child folders of ``base_path`` reported by a delimiter
    listing. Only the part below ``base_path`` is checked for hidden segments.
    """
    prefix = folder_prefix(base_path)
    nodes = [
        FolderNode(name=path.rsplit("/", 1)[-1], path=path)
        for path in folder_paths
        if path and not is_hidden_folder(path[len(prefix) :], hidden_prefixes)
    ]
    return sorted(nodes, key=lambda node: node.name)


def sort_folders(folders: List[FolderNode]) -> List[FolderNode]:
    folders.sort(key=lambda node: node.name)
    for folder in folders:
        sort_folders(folder.children)
    return folders


def build_hierarchy(
    objects: Iterable[StoredObject],
    base_path: str,
    depth: int,
    hidden_prefixes: Optional[Iterable[str]] = None,
) -> Hierarchy:
    depth = max(depth, 1)
    prefix = folder_prefix(base_path)
    nodes: Dict[str, FolderNode] = {}
    levels: Dict[str, int] = {}
    files: List[FileNode] = []

    for obj in objects:
        if not obj.key.startswith(prefix):
            continue
        relative = obj.key[len(prefix) :]
        segments = relative.split("/")
        if not relative or not all(segments[:-1]):
            continue
        # A trailing slash marks a directory object, treated like a placeholder
        kind = (
            classify_key(obj.key, hidden_prefixes).kind
            if segments[-1]
            else KeyKind.PLACEHOLDER
        )

        object_depth = len(segments) - 1
        # Folders at and below a hidden segment stay invisible
        visible_depth = next(
            (
                i
                for i, segment in enumerate(segments[:-1])
                if is_hidden_folder(segment, hidden_prefixes)
            ),
            object_depth,
        )
        if visible_depth < object_depth:
            kind = KeyKind.OTHER
        if object_depth == 0:
            if kind == KeyKind.FILE:
                files.append(file_node(obj))
            continue

        counted = kind == KeyKind.FILE and object_depth <= depth
        for level in range(1, min(visible_depth, depth) + 1):
            path = join_path(base_path, *segments[:level])
            node = nodes.get(path)
            if node is None:
                node = nodes[path] = FolderNode(name=segments[level - 1], path=path)
                levels[path] = level
            if counted:
                node.file_count += 1
                node.total_size += obj.size

    roots: List[FolderNode] = []
    for path, node in nodes.items():
        if levels[path] == 1:
            roots.append(node)
        else:
            nodes[path.rsplit("/", 1)[0]].children.append(node)

    files.sort(key=lambda node: node.name)
    return Hierarchy(folders=sort_folders(roots), files=files)
