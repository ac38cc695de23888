"""
Object store record types.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class StoredObject(BaseModel):
    """Metadata of one object as reported by a listing or head call"""

    key: str
    size: int
    uploaded_at: datetime
    content_type: Optional[str] = None
    custom_metadata: Dict[str, str] = Field(default_factory=dict)


class ObjectBody(StoredObject):
    """Object metadata together with its content"""

    body: bytes


class ListPage(BaseModel):
    """One page of a prefix listing"""

    objects: List[StoredObject] = Field(default_factory=list)
    # Common prefixes (ending with the delimiter) when listing with a delimiter
    delimited_prefixes: List[str] = Field(default_factory=list)
    truncated: bool = False
    cursor: Optional[str] = None
