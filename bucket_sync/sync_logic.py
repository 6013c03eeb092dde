"""Sync operation planning."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bucket_sync.conflict import dedupe_diff
from bucket_sync.diff_engine import DiffResult, diff
from bucket_sync.fingerprint import FingerprintAdapter
from bucket_sync.logging_setup import get_logger
from bucket_sync.manifest import FileMap, validate_file_maps

logger = get_logger()


class SyncAction(Enum):
    """Sync actions to perform."""

    UPLOAD = "UPLOAD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    NOOP = "NOOP"


class SyncInvariantError(Exception):
    """Raised when classification or planning produced an impossible state."""

    def __init__(self, message: str, key: Optional[str] = None, context: Any = None):
        super().__init__(f"{message} (key={key!r}, context={context!r})")
        self.key = key
        self.context = context


@dataclass
class SyncJob:
    """A single sync action to perform."""

    action: SyncAction
    key: str
    path: Optional[str] = None
    metadata: Optional[Dict[str, str]] = field(default=None, repr=False)
    details: Optional[str] = None


def operation_for(resolved: DiffResult, key: str) -> SyncAction:
    """Return the action a key needs according to a resolved diff.

    Raises:
        SyncInvariantError: If the key is in none of the categories
    """
    if key in resolved.added:
        return SyncAction.UPLOAD
    if key in resolved.changed:
        return SyncAction.UPDATE
    if key in resolved.removed:
        return SyncAction.DELETE
    if key in resolved.unchanged:
        return SyncAction.NOOP

    raise SyncInvariantError("No operation found", key=key, context=resolved.to_dict())


class SyncPlanner:
    """Computes diffs and ordered operation plans."""

    def __init__(self, adapter: Optional[FingerprintAdapter] = None):
        """Initialize planner.

        Args:
            adapter: Fingerprint adapter; defaults to MD5 content hashes
                compared against ETags
        """
        self.adapter = adapter or FingerprintAdapter()

    def diff(
        self, bucket_objects: Iterable[Mapping[str, Any]], file_maps: Iterable[FileMap]
    ) -> DiffResult:
        """Raw four-way diff between a bucket listing and file maps.

        Changed keys also appear in ``removed`` with their old version.
        """
        file_maps = validate_file_maps(file_maps)
        remote = self.adapter.remote_snapshot(bucket_objects)
        local = self.adapter.local_snapshot(file_maps)
        return diff(remote, local, matcher=self.adapter.content_matches)

    def plan(
        self, bucket_objects: Iterable[Mapping[str, Any]], file_maps: Iterable[FileMap]
    ) -> List[SyncJob]:
        """Generate the ordered list of sync jobs.

        One job per file map in the given order, followed by deletes for
        remote-only keys in lexical order.

        Returns:
            List of SyncJob objects
        """
        file_maps = validate_file_maps(file_maps)
        resolved = dedupe_diff(self.diff(bucket_objects, file_maps))

        jobs = []
        for file_map in file_maps:
            action = operation_for(resolved, file_map.key)
            if action == SyncAction.DELETE:
                raise SyncInvariantError(
                    "Key in local manifest scheduled for deletion",
                    key=file_map.key,
                    context=resolved.to_dict(),
                )
            jobs.append(
                SyncJob(
                    action=action,
                    key=file_map.key,
                    path=file_map.path,
                    metadata=file_map.metadata,
                )
            )

        for key in sorted(resolved.removed):
            action = operation_for(resolved, key)
            if action != SyncAction.DELETE:
                raise SyncInvariantError(
                    f"Removed key resolved to {action.value}",
                    key=key,
                    context=resolved.to_dict(),
                )
            jobs.append(SyncJob(action=SyncAction.DELETE, key=key))

        if resolved.is_empty():
            logger.info(f"Bucket already in sync: {len(resolved.unchanged)} unchanged")
        else:
            logger.info(
                f"Planned {len(jobs)} sync jobs: {len(resolved.added)} added, "
                f"{len(resolved.changed)} changed, {len(resolved.removed)} removed, "
                f"{len(resolved.unchanged)} unchanged"
            )
        for job in jobs:
            logger.debug(f"Job: action={job.action.value}, key={job.key}, path={job.path}")
        return jobs


def calculate_ops(
    bucket_objects: Iterable[Mapping[str, Any]], file_maps: Iterable[FileMap]
) -> List[SyncJob]:
    """Plan with the default fingerprint adapter."""
    return SyncPlanner().plan(bucket_objects, file_maps)
