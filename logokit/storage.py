"""
Object-store clients used by Source Acquisition.

Two backends are provided: S3 (through boto3) and a local-filesystem store
used as the fallback when AWS credentials are not configured. Both expose a
single `get_object(bucket, key) -> bytes` call and report every failure as
`SourceFetchError`. Neither retries.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import KitSettings
from .errors import SourceFetchError


logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "NoSuchBucket", "404", "NotFound"}


class ObjectStore(Protocol):
    def get_object(self, bucket: str, key: str) -> bytes:
        ...


class S3ObjectStore:
    def __init__(self, client: Any) -> None:
        self.client = client

    @classmethod
    def from_settings(cls, settings: KitSettings) -> "S3ObjectStore":
        client = boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
        return cls(client)

    def get_object(self, bucket: str, key: str) -> bytes:
        logger.debug("Fetching s3://%s/%s", bucket, key)
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                message = f"object s3://{bucket}/{key} does not exist"
            else:
                message = f"object store rejected s3://{bucket}/{key} ({code or 'unknown error'})"
            raise SourceFetchError(message, cause=exc) from exc
        except BotoCoreError as exc:
            raise SourceFetchError(
                f"object store unreachable while fetching s3://{bucket}/{key}", cause=exc
            ) from exc


class LocalObjectStore:
    """Reads `<root>/<bucket>/<key>` from disk."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def get_object(self, bucket: str, key: str) -> bytes:
        base = self.root.resolve()
        path = (base / bucket / key).resolve()
        if base not in path.parents:
            raise SourceFetchError(f"key {key!r} escapes the local store root")
        logger.debug("Reading local object %s", path)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise SourceFetchError(f"local object {bucket}/{key} does not exist", cause=exc) from exc
        except OSError as exc:
            raise SourceFetchError(f"could not read local object {bucket}/{key}", cause=exc) from exc


def build_object_store(settings: KitSettings, s3_client: Optional[Any] = None) -> ObjectStore:
    """
    Pick the backend the way uploads were stored: S3 when it is fully
    configured, otherwise the local-filesystem fallback.
    """
    if s3_client is not None:
        return S3ObjectStore(s3_client)
    if settings.s3_configured:
        logger.info("Using S3 object store in region %s", settings.aws_region)
        return S3ObjectStore.from_settings(settings)
    logger.info("S3 not configured, using local object store at %s", settings.local_root)
    return LocalObjectStore(Path(settings.local_root))
