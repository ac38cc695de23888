"""
Shared helpers: bounded concurrent batches, public URLs, timestamps.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence, TypeVar
from urllib.parse import quote

from asyncer import create_task_group

from ..config import settings

T = TypeVar("T")
R = TypeVar("R")


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int | None = None,
) -> list[R]:
    """
    Run ``worker`` over ``items`` in sequential waves of at most
    ``batch_size`` concurrent calls. A wave completes only when all of its
    members have finished. Results keep the order of ``items``.

    ``worker`` must capture its own per-item errors: an exception escaping it
    cancels the rest of its wave.
    """
    size = max(batch_size or settings.limits.batch_size, 1)
    results: list[R] = []
    for start in range(0, len(items), size):
        async with create_task_group() as task_group:
            pending = [
                task_group.soonify(worker)(item) for item in items[start : start + size]
            ]
        results.extend(value.value for value in pending)
    return results


def build_file_url(key: str) -> str:
    """Public URL of a key: percent-encoded with literal slashes kept."""
    base = settings.storage.public_base_url.rstrip("/")
    return f"{base}/{quote(key, safe='/')}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()
