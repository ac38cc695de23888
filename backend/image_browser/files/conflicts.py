"""
Destination key selection for uploads that may collide with existing keys.

Probing is check-then-act without any lock: two concurrent uploads can pick
the same free name. The admin workflow is low-concurrency, so this is
accepted rather than guarded against.
"""

from typing import Optional

from pydantic import BaseModel

from ..config import settings
from ..errors import ExhaustedRename
from ..logger import log_exception
from ..storage import ObjectStore
from .paths import join_path, split_path
from .types import ConflictPolicy


class Resolution(BaseModel):
    final_path: str
    skipped: bool = False
    renamed: bool = False


@log_exception("Existence probe for key '{key}'", default_return=False)
async def object_exists(store: ObjectStore, key: str) -> bool:
    return await store.head(key) is not None


def numbered_candidate(path: str, counter: int) -> str:
    """``a/photo.png`` -> ``a/photo-<counter>.png``"""
    folder, name = split_path(path)
    dot = name.rfind(".")
    if dot > 0:
        name = f"{name[:dot]}-{counter}{name[dot:]}"
    else:
        name = f"{name}-{counter}"
    return join_path(folder, name)


async def resolve_conflict(
    store: ObjectStore,
    candidate_path: str,
    policy: ConflictPolicy,
    max_attempts: Optional[int] = None,
) -> Resolution:
    if policy == ConflictPolicy.OVERWRITE:
        return Resolution(final_path=candidate_path)

    if not await object_exists(store, candidate_path):
        return Resolution(final_path=candidate_path)

    if policy == ConflictPolicy.SKIP:
        return Resolution(final_path=candidate_path, skipped=True)

    attempts = max_attempts or settings.limits.max_rename_attempts
    for counter in range(1, attempts + 1):
        path = numbered_candidate(candidate_path, counter)
        if not await object_exists(store, path):
            return Resolution(final_path=path, renamed=True)

    raise ExhaustedRename(
        f"Could not find a free name for '{candidate_path}' after {attempts} attempts"
    )
