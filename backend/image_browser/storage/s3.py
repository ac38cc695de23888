"""
S3-compatible object store (AWS S3, Cloudflare R2, MinIO, ...).
"""

from typing import Dict, Optional

from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageSettings
from ..errors import StoreError
from ..logger import logger
from .types import ListPage, ObjectBody, StoredObject

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStore:
    def __init__(self, storage: StorageSettings):
        self.bucket = storage.bucket
        self.endpoint_url = storage.endpoint_url
        self.region = storage.region
        self.access_key_id = storage.access_key_id
        self.secret_access_key = storage.secret_access_key
        self._session = get_session()

    def _create_client(self):
        return self._session.create_client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=Config(signature_version="s3v4"),
        )

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> StoredObject:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "Metadata": dict(metadata or {}),
        }
        if content_type:
            params["ContentType"] = content_type
        try:
            async with self._create_client() as client:
                await client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to put object {key}: {e}")
            raise StoreError(f"Failed to store '{key}': {e}")
        head = await self.head(key)
        if head is None:
            raise StoreError(f"Object '{key}' missing after write")
        return head

    async def get(self, key: str) -> Optional[ObjectBody]:
        try:
            async with self._create_client() as client:
                response = await client.get_object(Bucket=self.bucket, Key=key)
                async with response["Body"] as stream:
                    body = await stream.read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StoreError(f"Failed to read '{key}': {e}")
        except BotoCoreError as e:
            raise StoreError(f"Failed to read '{key}': {e}")
        return ObjectBody(
            key=key,
            size=response.get("ContentLength", len(body)),
            uploaded_at=response["LastModified"],
            content_type=response.get("ContentType"),
            custom_metadata=response.get("Metadata", {}),
            body=body,
        )

    async def head(self, key: str) -> Optional[StoredObject]:
        try:
            async with self._create_client() as client:
                response = await client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StoreError(f"Failed to inspect '{key}': {e}")
        except BotoCoreError as e:
            raise StoreError(f"Failed to inspect '{key}': {e}")
        return StoredObject(
            key=key,
            size=response.get("ContentLength", 0),
            uploaded_at=response["LastModified"],
            content_type=response.get("ContentType"),
            custom_metadata=response.get("Metadata", {}),
        )

    async def delete(self, key: str) -> None:
        try:
            async with self._create_client() as client:
                await client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to delete '{key}': {e}")

    async def list(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        limit: int = 1000,
        cursor: Optional[str] = None,
    ) -> ListPage:
        params = {"Bucket": self.bucket, "Prefix": prefix, "MaxKeys": limit}
        if delimiter:
            params["Delimiter"] = delimiter
        if cursor:
            params["ContinuationToken"] = cursor
        try:
            async with self._create_client() as client:
                response = await client.list_objects_v2(**params)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to list '{prefix}': {e}")

        return ListPage(
            objects=[
                StoredObject(
                    key=item["Key"],
                    size=item.get("Size", 0),
                    uploaded_at=item["LastModified"],
                )
                for item in response.get("Contents", [])
            ],
            delimited_prefixes=[
                item["Prefix"] for item in response.get("CommonPrefixes", [])
            ],
            truncated=bool(response.get("IsTruncated")),
            cursor=response.get("NextContinuationToken"),
        )
