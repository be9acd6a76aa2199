from __future__ import annotations

from typing import Any, Optional, Protocol

import boto3

from graffic.core.config import settings
from graffic.core.logging import get_logger

logger = get_logger(__name__)


class ObjectStore(Protocol):
    """Durable key-addressed storage for one bucket."""

    def put(self, key: str, data: bytes, acl: str | None = None) -> None: ...

    def get(self, key: str) -> bytes: ...

    def delete(self, key: str) -> None: ...

    def url(self, key: str) -> str: ...


CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
}


def make_s3_client():
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
    )


class S3ObjectStore:
    def __init__(self, bucket: str, client: Any = None, public_url: Optional[str] = None):
        self.bucket = bucket
        self.client = client if client is not None else make_s3_client()
        self.public_url = public_url if public_url is not None else settings.S3_PUBLIC_URL

    def put(self, key: str, data: bytes, acl: str | None = None) -> None:
        kwargs: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
        }
        ext = key.rsplit(".", 1)[-1].lower()
        if ext in CONTENT_TYPES:
            kwargs["ContentType"] = CONTENT_TYPES[ext]
        if acl:
            kwargs["ACL"] = acl

        logger.debug("s3 put s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        self.client.put_object(**kwargs)

    def get(self, key: str) -> bytes:
        resp = self.client.get_object(Bucket=self.bucket, Key=key)
        return resp["Body"].read()

    def delete(self, key: str) -> None:
        logger.debug("s3 delete s3://%s/%s", self.bucket, key)
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def url(self, key: str) -> str:
        if self.public_url:
            return f"{self.public_url.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"


class StoreProvider:
    """
    Hands out one ObjectStore per bucket name, sharing a single S3 client.
    """

    def __init__(self, client: Any = None):
        self._client = client
        self._stores: dict[str, S3ObjectStore] = {}

    def __call__(self, bucket: str) -> S3ObjectStore:
        store = self._stores.get(bucket)
        if store is None:
            if self._client is None:
                self._client = make_s3_client()
            store = S3ObjectStore(bucket, client=self._client)
            self._stores[bucket] = store
        return store
