"""Manifest types and the local directory scanner."""

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from bucket_sync.logging_setup import get_logger

logger = get_logger()


class ManifestError(Exception):
    """Raised when a manifest entry or listing item is malformed."""

    pass


@dataclass(frozen=True)
class FileMap:
    """One desired object: upload the file at ``path`` under ``key``."""

    key: str
    path: str
    metadata: Optional[Dict[str, str]] = field(default=None, compare=False)


@dataclass
class ManifestEntry:
    """Comparable state of one key, local or remote.

    ``metadata`` is None when it is unknown (a plain bucket listing), which
    disables metadata comparison for the key. An empty dict means the
    object is known to carry no metadata.
    """

    key: str
    fingerprint: str
    metadata: Optional[Dict[str, str]] = None


def normalize_metadata(metadata: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    """Lower-case metadata keys, S3 hands user metadata back that way."""
    if metadata is None:
        return None
    return {str(k).lower(): v for k, v in metadata.items()}


def validate_file_maps(file_maps: Iterable[Any]) -> List[FileMap]:
    """Validate caller-supplied file maps before anything touches the bucket.

    Args:
        file_maps: Ordered file maps describing the desired bucket state

    Returns:
        The file maps as a list, order preserved

    Raises:
        ManifestError: On a malformed entry or a duplicated key
    """
    validated = []
    seen = set()

    for index, file_map in enumerate(file_maps):
        if not isinstance(file_map, FileMap):
            raise ManifestError(f"Manifest entry #{index} is not a FileMap: {file_map!r}")
        if not isinstance(file_map.key, str) or not file_map.key:
            raise ManifestError(f"Manifest entry #{index} has no key")
        if not file_map.path:
            raise ManifestError(f"Manifest entry '{file_map.key}' has no path")
        if file_map.metadata is not None:
            if not isinstance(file_map.metadata, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in file_map.metadata.items()
            ):
                raise ManifestError(
                    f"Manifest entry '{file_map.key}' metadata must map strings to strings"
                )
        if file_map.key in seen:
            raise ManifestError(f"Duplicate key in manifest: {file_map.key}")

        seen.add(file_map.key)
        validated.append(file_map)

    return validated


class DirectoryScanner:
    """Walks a local directory and builds file maps for it."""

    def __init__(
        self,
        ignore_extensions: List[str] | None = None,
        ignore_filenames_prefix: List[str] | None = None,
        ignore_filenames_exact: List[str] | None = None,
        ignore_directories: List[str] | None = None,
        metadata_rules: List[Dict[str, Any]] | None = None,
        key_prefix: str = "",
    ):
        """Initialize scanner with ignore and metadata rules.

        Args:
            ignore_extensions: Extensions to ignore (e.g., ['.tmp', '.bak'])
            ignore_filenames_prefix: Filename prefixes to ignore
            ignore_filenames_exact: Exact filenames to ignore
            ignore_directories: Directory names to ignore (e.g., ['.git'])
            metadata_rules: List of {"pattern": glob, "values": metadata};
                later rules override earlier ones for the same metadata key
            key_prefix: Prefix prepended to every object key
        """
        self.ignore_extensions = set(f for f in (ignore_extensions or []) if f)
        self.ignore_filenames_prefix = set(f for f in (ignore_filenames_prefix or []) if f)
        self.ignore_filenames_exact = set(f for f in (ignore_filenames_exact or []) if f)
        self.ignore_directories = set(d for d in (ignore_directories or []) if d)
        self.metadata_rules = list(metadata_rules or [])
        self.key_prefix = key_prefix.strip("/")

    def _should_ignore(self, filename: str) -> bool:
        """Check if file should be ignored."""
        if filename in self.ignore_filenames_exact:
            return True

        for prefix in self.ignore_filenames_prefix:
            if filename.startswith(prefix):
                return True

        for ext in self.ignore_extensions:
            if filename.endswith(ext):
                return True

        return False

    def _metadata_for(self, relative_path: str) -> Optional[Dict[str, str]]:
        metadata: Dict[str, str] = {}
        for rule in self.metadata_rules:
            if fnmatch.fnmatch(relative_path, rule["pattern"]):
                metadata.update(rule["values"])
        return metadata or None

    def _key_for(self, relative_path: str) -> str:
        if self.key_prefix:
            return f"{self.key_prefix}/{relative_path}"
        return relative_path

    def scan(self, root_path: str) -> List[FileMap]:
        """Scan a directory and return one file map per regular file.

        Args:
            root_path: Root directory to scan

        Returns:
            File maps ordered lexically by key

        Raises:
            ManifestError: If the root directory does not exist
        """
        root = Path(root_path)

        if not root.is_dir():
            raise ManifestError(f"Source directory does not exist: {root_path}")

        result = []
        for file_path in root.rglob("*"):
            if not file_path.is_file():
                continue

            relative_path = file_path.relative_to(root)
            relative_path_str = relative_path.as_posix()

            if any(part in self.ignore_directories for part in relative_path.parts[:-1]):
                logger.debug(f"Skipping path in ignored directory: {relative_path_str}")
                continue

            if self._should_ignore(file_path.name):
                logger.debug(f"Ignoring file: {relative_path_str}")
                continue

            result.append(
                FileMap(
                    key=self._key_for(relative_path_str),
                    path=str(file_path.resolve()),
                    metadata=self._metadata_for(relative_path_str),
                )
            )

        result.sort(key=lambda fm: fm.key)
        logger.info(f"Scanned {len(result)} files in {root_path}")
        return result
