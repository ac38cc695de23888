"""
Classification of stored keys into image files, folder placeholders and
everything else (non-images and system artifacts, never surfaced).
"""

from enum import Enum
from typing import Iterable, NamedTuple, Optional

from ..config import settings

PLACEHOLDER_NAME = ".folder-placeholder"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}

# MIME types accepted for uploads ("image/jpg" is sent by some browsers)
ALLOWED_UPLOAD_TYPES = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
        "image/svg+xml",
        "image/webp",
    }
)


class KeyKind(str, Enum):
    FILE = "file"
    PLACEHOLDER = "placeholder"
    OTHER = "other"


class KeyClass(NamedTuple):
    kind: KeyKind
    extension: str = ""
    mime_type: str = DEFAULT_CONTENT_TYPE


def get_extension(key: str) -> str:
    """Lowercased extension of the last segment including the dot, or ""."""
    name = key.rsplit("/", 1)[-1]
    if "." not in name.lstrip("."):
        return ""
    return "." + name.rsplit(".", 1)[1].lower()


def content_type_for(key: str) -> str:
    return IMAGE_MIME_TYPES.get(get_extension(key), DEFAULT_CONTENT_TYPE)


def is_image_name(name: str) -> bool:
    return get_extension(name) in IMAGE_MIME_TYPES


def is_placeholder(key: str) -> bool:
    return key.rsplit("/", 1)[-1] == PLACEHOLDER_NAME


def placeholder_key(folder: str) -> str:
    return f"{folder}/{PLACEHOLDER_NAME}"


def is_hidden_folder(
    path: str, hidden_prefixes: Optional[Iterable[str]] = None
) -> bool:
    """True when any segment of a folder path is a hidden system folder"""
    if hidden_prefixes is None:
        hidden_prefixes = settings.hidden_prefixes
    hidden = set(hidden_prefixes)
    return any(segment in hidden for segment in path.split("/"))


def classify_key(
    key: str, hidden_prefixes: Optional[Iterable[str]] = None
) -> KeyClass:
    folder = key.rsplit("/", 1)[0] if "/" in key else ""
    if folder and is_hidden_folder(folder, hidden_prefixes):
        return KeyClass(KeyKind.OTHER)
    if is_placeholder(key):
        return KeyClass(KeyKind.PLACEHOLDER)

    extension = get_extension(key)
    if extension in IMAGE_MIME_TYPES:
        return KeyClass(KeyKind.FILE, extension, IMAGE_MIME_TYPES[extension])
    return KeyClass(KeyKind.OTHER, extension)
