"""Fingerprints for local files and remote objects."""

import hashlib
from typing import Any, Callable, Dict, Iterable, Mapping

from bucket_sync.logging_setup import get_logger
from bucket_sync.manifest import FileMap, ManifestEntry, ManifestError, normalize_metadata

logger = get_logger()

CHUNK_SIZE = 1024 * 1024

Hasher = Callable[[str], str]
Matcher = Callable[[str, str], bool]


class FingerprintError(Exception):
    """Raised when local content cannot be read for hashing."""

    pass


def md5_hasher(path: str) -> str:
    """Hex MD5 of a file, the same value S3 reports as a single-part ETag."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def normalize_etag(etag: str) -> str:
    """Strip the quotes S3 wraps around ETags."""
    return (etag or "").strip().strip('"')


def exact_match(remote_fingerprint: str, local_fingerprint: str) -> bool:
    """Default matcher: fingerprints are equal.

    Composite ETags from multipart uploads ("<hash>-<parts>") never equal a
    plain content hash, so such objects count as changed and get re-uploaded
    as a single part.
    """
    return remote_fingerprint == local_fingerprint


class FingerprintAdapter:
    """Turns bucket listings and file maps into comparable snapshots."""

    def __init__(self, hasher: Hasher = md5_hasher, matcher: Matcher = exact_match):
        """Initialize adapter.

        Args:
            hasher: Maps a local file path to its content fingerprint
            matcher: Decides whether a remote and a local fingerprint
                describe the same content
        """
        self.hasher = hasher
        self.matcher = matcher

    def content_matches(self, remote_fingerprint: str, local_fingerprint: str) -> bool:
        """Compare a remote and a local fingerprint."""
        return self.matcher(remote_fingerprint, local_fingerprint)

    def remote_snapshot(
        self, bucket_objects: Iterable[Mapping[str, Any]]
    ) -> Dict[str, ManifestEntry]:
        """Build the remote snapshot from a bucket listing.

        Args:
            bucket_objects: Items with ``key``/``etag`` (or boto3's
                ``Key``/``ETag``) and optionally ``metadata``

        Returns:
            Dict mapping key to ManifestEntry

        Raises:
            ManifestError: If a listing item has no key
        """
        snapshot = {}
        for obj in bucket_objects:
            key = obj.get("key", obj.get("Key"))
            if not key:
                raise ManifestError(f"Bucket listing item has no key: {obj!r}")
            etag = obj.get("etag", obj.get("ETag", ""))
            snapshot[key] = ManifestEntry(
                key=key,
                fingerprint=normalize_etag(etag),
                metadata=normalize_metadata(obj.get("metadata")),
            )
        return snapshot

    def local_snapshot(self, file_maps: Iterable[FileMap]) -> Dict[str, ManifestEntry]:
        """Hash every file map, keeping manifest order.

        Raises:
            FingerprintError: If a file cannot be read
        """
        snapshot = {}
        for file_map in file_maps:
            try:
                fingerprint = self.hasher(file_map.path)
            except OSError as e:
                raise FingerprintError(
                    f"Cannot read {file_map.path} for key '{file_map.key}': {e}"
                ) from e
            snapshot[file_map.key] = ManifestEntry(
                key=file_map.key,
                fingerprint=fingerprint,
                metadata=normalize_metadata(file_map.metadata),
            )
            logger.debug(f"Fingerprint {file_map.key}: {fingerprint}")
        return snapshot
