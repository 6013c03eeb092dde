"""S3 operations layer for sync actions."""

import mimetypes
from typing import Any, Dict, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from bucket_sync.logging_setup import get_logger

logger = get_logger()

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Metadata names sent as real HTTP headers rather than x-amz-meta-*
HEADER_PARAMS = {
    "content-type": "ContentType",
    "content-encoding": "ContentEncoding",
    "cache-control": "CacheControl",
    "content-disposition": "ContentDisposition",
    "content-language": "ContentLanguage",
}


class StorageError(Exception):
    """Raised when an upload or delete fails."""

    pass


def create_session(
    profile_name: Optional[str] = None,
    region: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
) -> boto3.session.Session:
    """Create a boto3 session from a profile or explicit keys."""
    if access_key and secret_key:
        return boto3.session.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )
    return boto3.session.Session(profile_name=profile_name, region_name=region)


def content_type_of(path: str) -> str:
    """Guess a MIME type from the file name, never failing."""
    try:
        content_type, _ = mimetypes.guess_type(path)
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not guess content type for {path}: {e}")
        return DEFAULT_CONTENT_TYPE
    return content_type or DEFAULT_CONTENT_TYPE


def metadata_to_put_args(metadata: Optional[Dict[str, str]]) -> Dict[str, Any]:
    """Split metadata into put_object header params and user metadata."""
    args: Dict[str, Any] = {}
    user_metadata = {}
    for name, value in (metadata or {}).items():
        param = HEADER_PARAMS.get(name.lower())
        if param:
            args[param] = value
        else:
            user_metadata[name.lower()] = value
    if user_metadata:
        args["Metadata"] = user_metadata
    return args


def head_to_metadata(head: Dict[str, Any]) -> Dict[str, str]:
    """Rebuild a metadata dict from a head_object response."""
    metadata = dict(head.get("Metadata") or {})
    for name, param in HEADER_PARAMS.items():
        if head.get(param):
            metadata[name] = head[param]
    return metadata


class S3Storage:
    """Bucket lister, uploader and deleter for one S3 bucket."""

    def __init__(
        self,
        bucket_name: str,
        client=None,
        session: Optional[boto3.session.Session] = None,
        endpoint_url: Optional[str] = None,
        fetch_metadata: bool = False,
    ):
        """Initialize storage.

        Args:
            bucket_name: S3 bucket name
            client: Pre-built S3 client; created from ``session`` if omitted
            session: boto3 session used to create the client
            endpoint_url: Custom endpoint (S3-compatible services)
            fetch_metadata: Issue head_object per key so metadata takes
                part in comparisons
        """
        self.bucket_name = bucket_name
        self.fetch_metadata = fetch_metadata
        if client is None:
            session = session or boto3.session.Session()
            client = session.client("s3", endpoint_url=endpoint_url)
        self.s3_client = client

    def list_objects(self, prefix: str = "") -> Iterator[Dict[str, Any]]:
        """List bucket objects as ``{key, etag[, metadata]}`` dicts.

        Connectivity and permission errors propagate to the caller.
        """
        paginator = self.s3_client.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=self.bucket_name, Prefix=prefix)

        count = 0
        for page in pages:
            for obj in page.get("Contents", []):
                key = obj["Key"]
                # Skip directory markers
                if key.endswith("/"):
                    continue

                item = {"key": key, "etag": obj.get("ETag", "")}
                if self.fetch_metadata:
                    head = self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
                    item["metadata"] = head_to_metadata(head)
                count += 1
                yield item

        logger.info(f"Listed {count} objects in s3://{self.bucket_name}/{prefix}")

    def upload(self, key: str, path: str, metadata: Optional[Dict[str, str]] = None) -> None:
        """Upload a local file under ``key``.

        Raises:
            StorageError: If the file cannot be read or S3 rejects the upload
        """
        extra = metadata_to_put_args(metadata)
        try:
            with open(path, "rb") as body:
                self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=body, **extra)
        except (OSError, ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload {path} to {key}: {e}") from e
        logger.debug(f"Uploaded {path} -> s3://{self.bucket_name}/{key}")

    def delete(self, key: str) -> None:
        """Delete ``key`` from the bucket.

        Raises:
            StorageError: If S3 rejects the delete
        """
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
        logger.debug(f"Deleted s3://{self.bucket_name}/{key}")
