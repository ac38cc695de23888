"""
Validation and normalization of user supplied paths and names.
"""

import re
from typing import Optional

from ..config import settings
from ..errors import InvalidPath, ValidationError

_INVALID_PATH_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f]")
_FOLDER_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


def sanitize_path(raw_path: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Validate a slash separated path and return its normalized form.

    Leading/trailing whitespace and slashes are trimmed, every segment is
    trimmed and empty segments are dropped. An empty input is the root and
    sanitizes to "". The result never starts or ends with "/" and
    ``sanitize_path(sanitize_path(p)) == sanitize_path(p)``.

    Raises:
        InvalidPath: on traversal, double slashes, forbidden characters or
            excessive length.
    """
    if not raw_path:
        return ""
    if not isinstance(raw_path, str):
        raise InvalidPath("Path must be a string")

    limit = max_length or settings.limits.max_path_length
    path = raw_path.strip().strip("/")

    if ".." in path:
        raise InvalidPath("Path traversal not allowed")
    if "//" in path:
        raise InvalidPath("Double slashes not allowed")
    if _INVALID_PATH_CHARS.search(path):
        raise InvalidPath("Invalid characters in path")
    if len(path) > limit:
        raise InvalidPath("Path too long")

    segments = []
    for segment in path.split("/"):
        segment = _CONTROL_CHARS.sub("", segment).strip()
        if not segment or segment == ".":
            continue
        if len(segment) > settings.limits.max_filename_length:
            raise InvalidPath(f"Path segment too long: {segment[:32]}...")
        segments.append(segment)
    return "/".join(segments)


def validate_filename(name: Optional[str]) -> str:
    """Validate a single leaf file name and return it trimmed."""
    name = (name or "").strip()
    if not name:
        raise InvalidPath("Filename cannot be empty")
    if _CONTROL_CHARS.search(name):
        raise InvalidPath("Invalid characters in filename")
    if "/" in name or "\\" in name:
        raise InvalidPath("Filename cannot contain path separators")
    if name in (".", ".."):
        raise InvalidPath("Invalid filename")
    if len(name) > settings.limits.max_filename_length:
        raise InvalidPath("Filename too long")
    return name


def validate_folder_name(name: Optional[str]) -> str:
    """Folder names created through the admin API use a strict allow-list."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Folder name is required")
    if not _FOLDER_NAME.match(name):
        raise ValidationError(
            "Folder name can only contain letters, numbers, hyphens, and underscores"
        )
    return name


def join_path(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts if part and part.strip("/"))


def split_path(path: str) -> tuple[str, str]:
    """Split into (folder, leaf); folder is "" for top-level entries."""
    if "/" not in path:
        return "", path
    folder, leaf = path.rsplit("/", 1)
    return folder, leaf


def parent_path(path: str) -> str:
    return split_path(path)[0]


def folder_prefix(path: str) -> str:
    """Store prefix that scopes a listing to the contents of ``path``."""
    return f"{path}/" if path else ""
