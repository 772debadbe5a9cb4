"""Thin adapter for reading objects from Amazon S3."""

from collections.abc import Mapping
from typing import Any, Protocol

import boto3


class _Boto3S3Client(Protocol):
    """Internal typing for boto3 S3 client (AWS-facing only)."""

    def get_object(
        self,
        *,
        Bucket: str,
        Key: str,
    ) -> Mapping[str, Any]: ...


class S3AdapterProtocol(Protocol):
    """Minimal S3 adapter protocol (repository-facing)."""

    def get_object(self, *, bucket: str, key: str) -> Mapping[str, Any]: ...


class S3Adapter:
    """Low-level S3 operations (mechanical, no error handling).

    The bucket is part of every call because events name their own
    source bucket.
    """

    def __init__(
        self,
        *,
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        """Create the S3 client."""
        self._client: _Boto3S3Client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region_name,
        )

    def get_object(self, *, bucket: str, key: str) -> Mapping[str, Any]:
        """Fetch object from S3.
        Raises boto3 exceptions - caught by domain implementation.
        """
        return self._client.get_object(Bucket=bucket, Key=key)
