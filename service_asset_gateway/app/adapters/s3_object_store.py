"""
S3-compatible object store (AWS S3, Cloudflare R2, MinIO).
"""

import asyncio
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.errors import StoreError
from shared.logging import get_logger

from ..domain.models import Blob
from .object_store import ObjectStore

MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(ObjectStore):
    """boto3 clients are thread-safe, so blocking calls run on worker threads."""

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: str = "",
    ) -> None:
        self.bucket = bucket
        self.logger = get_logger("asset-gateway.s3_object_store")

        client_kwargs: Dict[str, Any] = {
            "service_name": "s3",
            "region_name": region,
        }
        if access_key_id and secret_access_key:
            client_kwargs["aws_access_key_id"] = access_key_id
            client_kwargs["aws_secret_access_key"] = secret_access_key
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url

        self.client = boto3.client(**client_kwargs)

    async def get(self, key: str) -> Optional[Blob]:
        try:
            response = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=key)
            data = await asyncio.to_thread(response["Body"].read)
        except ClientError as exc:
            if _error_code(exc) in MISSING_KEY_CODES:
                return None
            raise StoreError(self.name, "get_object failed", {"key": key, "error": str(exc)}) from exc
        except BotoCoreError as exc:
            raise StoreError(self.name, "get_object failed", {"key": key, "error": str(exc)}) from exc

        return Blob(data=data, content_type=response.get("ContentType"))

    async def put(self, key: str, blob: Blob) -> None:
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": blob.data}
        if blob.content_type:
            params["ContentType"] = blob.content_type

        try:
            await asyncio.to_thread(self.client.put_object, **params)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(self.name, "put_object failed", {"key": key, "error": str(exc)}) from exc

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(self.name, "delete_object failed", {"key": key, "error": str(exc)}) from exc

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as exc:
            self.logger.warning("Object store ping failed", bucket=self.bucket, error=str(exc))
            return False

    async def close(self) -> None:
        await asyncio.to_thread(self.client.close)
