from __future__ import annotations
"""Object store access for S3-compatible services."""
import logging
from typing import Callable

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import (
    DeleteAllResult,
    DeleteError,
    DeleteResult,
    DownloadedObject,
    ObjectPage,
    StoredObject,
)
from .profiles import ConnectionProfile

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 50
MAX_KEYS_PER_REQUEST = 1000
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _require_bucket(bucket_name: str) -> None:
    if not bucket_name:
        raise ValueError("Bucket name is required")


def _chunks(keys: list[str], size: int):
    for start in range(0, len(keys), size):
        yield keys[start:start + size]


class S3ObjectStore:
    """Bucket and object operations against one S3-compatible endpoint.

    Store errors (``ClientError``/``BotoCoreError``) propagate to the caller,
    except that a denied bucket listing falls back to the profile's default
    bucket when one is configured.
    """

    def __init__(
        self,
        profile: ConnectionProfile,
        client_factory: Callable[..., object] | None = None,
    ):
        self._profile = profile
        self._client_factory = client_factory or boto3.client
        self._client = None

    @property
    def profile(self) -> ConnectionProfile:
        return self._profile

    def list_buckets(self) -> list[str]:
        """Return the available bucket names."""

        try:
            response = self._get_client().list_buckets()
        except (ClientError, BotoCoreError):
            fallback = self._profile.default_bucket
            if not fallback:
                raise
            LOGGER.warning("Bucket listing failed; falling back to '%s'", fallback)
            return [fallback]
        return [bucket["Name"] for bucket in response.get("Buckets", []) if bucket.get("Name")]

    def list_page(
        self,
        bucket_name: str,
        *,
        prefix: str = "",
        cursor: str | None = None,
        page_size: int = PAGE_SIZE,
    ) -> ObjectPage:
        """Return one page of objects, resuming from ``cursor`` when given."""

        _require_bucket(bucket_name)
        params = {
            "Bucket": bucket_name,
            "MaxKeys": max(1, min(int(page_size), MAX_KEYS_PER_REQUEST)),
        }
        if prefix:
            params["Prefix"] = prefix
        if cursor:
            params["ContinuationToken"] = cursor
        response = self._get_client().list_objects_v2(**params)
        items = [
            StoredObject(
                key=item.get("Key", ""),
                size=item.get("Size"),
                last_modified=item.get("LastModified"),
            )
            for item in response.get("Contents", [])
        ]
        truncated = bool(response.get("IsTruncated", False))
        next_cursor = response.get("NextContinuationToken") if truncated else None
        return ObjectPage(items=items, next_cursor=next_cursor or None, truncated=truncated)

    def put_object(
        self,
        bucket_name: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """Store ``data`` under ``key``, silently replacing any existing object."""

        _require_bucket(bucket_name)
        if not key:
            raise ValueError("Object key is required")
        params = {"Bucket": bucket_name, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        self._get_client().put_object(**params)
        return key

    def get_object(self, bucket_name: str, key: str) -> DownloadedObject:
        _require_bucket(bucket_name)
        if not key:
            raise ValueError("Object key is required")
        response = self._get_client().get_object(Bucket=bucket_name, Key=key)
        body = response.get("Body")
        if body is None:
            raise ValueError(f"No data returned for '{key}'")
        try:
            data = body.read()
        finally:
            body.close()
        return DownloadedObject(
            key=key,
            data=data,
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            content_length=response.get("ContentLength", len(data)),
        )

    def delete_objects(self, bucket_name: str, keys: list[str]) -> DeleteResult:
        """Delete ``keys`` in as few requests as possible.

        Per-key failures are returned in :attr:`DeleteResult.errors` rather
        than raised.
        """

        _require_bucket(bucket_name)
        result = DeleteResult()
        client = self._get_client()
        for batch in _chunks(list(keys), MAX_KEYS_PER_REQUEST):
            response = client.delete_objects(
                Bucket=bucket_name,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": False},
            )
            result.deleted.extend(item["Key"] for item in response.get("Deleted", []) if "Key" in item)
            result.errors.extend(
                DeleteError(
                    key=item.get("Key", ""),
                    reason=item.get("Message") or item.get("Code") or "Unknown error",
                )
                for item in response.get("Errors", [])
            )
        return result

    def delete_all_objects(self, bucket_name: str) -> DeleteAllResult:
        """Page through the whole bucket deleting each page in quiet mode."""

        _require_bucket(bucket_name)
        client = self._get_client()
        count = 0
        continuation_token: str | None = None
        while True:
            params = {"Bucket": bucket_name}
            if continuation_token:
                params["ContinuationToken"] = continuation_token
            listing = client.list_objects_v2(**params)
            contents = listing.get("Contents", [])
            if not contents:
                break
            response = client.delete_objects(
                Bucket=bucket_name,
                Delete={"Objects": [{"Key": item["Key"]} for item in contents], "Quiet": True},
            )
            errors = response.get("Errors", [])
            if errors:
                LOGGER.warning(
                    "%d object(s) could not be deleted from bucket '%s'",
                    len(errors),
                    bucket_name,
                )
            count += len(contents) - len(errors)
            continuation_token = listing.get("NextContinuationToken")
            if not continuation_token:
                break
        return DeleteAllResult(success=True, count=count)

    def _get_client(self):
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        config = Config(signature_version="s3v4")
        return self._client_factory(
            "s3",
            endpoint_url=self._profile.endpoint_url,
            aws_access_key_id=self._profile.access_key,
            aws_secret_access_key=self._profile.secret_key,
            config=config,
        )
