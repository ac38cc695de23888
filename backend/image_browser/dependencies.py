import base64
import binascii
import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .config import settings
from .logger import logger
from .storage import ObjectStore, create_store

basic_scheme = HTTPBasic(auto_error=False, realm=settings.auth.realm)


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
) -> str:
    """
    HTTP Basic authentication dependency.
    Returns the authenticated username.
    """
    if credentials is not None:
        # Evaluate both comparisons to keep timing independent of which one fails
        user_ok = _matches(credentials.username, settings.auth.username)
        password_ok = _matches(credentials.password, settings.auth.password)
        if user_ok and password_ok:
            return credentials.username
        logger.warning(f"Rejected credentials for user '{credentials.username}'")

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": f'Basic realm="{settings.auth.realm}"'},
    )


def basic_auth_username(authorization: Optional[str]) -> Optional[str]:
    """Username carried by a Basic Authorization header, unverified."""
    if not authorization or not authorization.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(authorization[6:], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, _, _ = decoded.partition(":")
    return username or None


@lru_cache
def get_store() -> ObjectStore:
    """Object store dependency, created once from settings."""
    logger.info(f"Using '{settings.storage.backend}' object store")
    return create_store(settings)
