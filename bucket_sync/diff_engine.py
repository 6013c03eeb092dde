"""Four-way diff between the remote snapshot and the local manifest."""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from bucket_sync.fingerprint import Matcher, exact_match
from bucket_sync.manifest import ManifestEntry


@dataclass
class DiffResult:
    """Keys classified as added, changed, removed or unchanged.

    Before conflict resolution a key whose content or metadata changed sits
    in ``changed`` (new local entry) and in ``removed`` (superseded remote
    entry) at the same time.
    """

    added: Dict[str, ManifestEntry] = field(default_factory=dict)
    changed: Dict[str, ManifestEntry] = field(default_factory=dict)
    removed: Dict[str, ManifestEntry] = field(default_factory=dict)
    unchanged: Dict[str, ManifestEntry] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """True when nothing needs uploading or deleting."""
        return not (self.added or self.changed or self.removed)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        """Return key to fingerprint per category, for diagnostics."""
        return {
            name: {key: entry.fingerprint for key, entry in getattr(self, name).items()}
            for name in ("added", "changed", "removed", "unchanged")
        }


def metadata_matches(
    remote_metadata: Optional[Dict[str, str]], local_metadata: Optional[Dict[str, str]]
) -> bool:
    """Compare only the metadata keys the local side specifies.

    Extra remote keys are ignored, and unknown remote metadata matches
    anything.
    """
    if remote_metadata is None or not local_metadata:
        return True
    return all(remote_metadata.get(k) == v for k, v in local_metadata.items())


def diff(
    remote: Mapping[str, ManifestEntry],
    local: Mapping[str, ManifestEntry],
    matcher: Matcher = exact_match,
) -> DiffResult:
    """Partition keys of both snapshots.

    Args:
        remote: Remote snapshot, key to entry
        local: Local snapshot, key to entry (iteration order is kept)
        matcher: Content fingerprint comparison

    Returns:
        Raw DiffResult; run it through ``dedupe_diff`` before planning
    """
    result = DiffResult()

    for key, local_entry in local.items():
        remote_entry = remote.get(key)
        if remote_entry is None:
            result.added[key] = local_entry
        elif matcher(remote_entry.fingerprint, local_entry.fingerprint) and metadata_matches(
            remote_entry.metadata, local_entry.metadata
        ):
            result.unchanged[key] = local_entry
        else:
            result.changed[key] = local_entry
            result.removed[key] = remote_entry

    for key, remote_entry in remote.items():
        if key not in local:
            result.removed[key] = remote_entry

    return result
