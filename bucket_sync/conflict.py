"""Resolution of keys classified as both changed and removed."""

from bucket_sync.diff_engine import DiffResult
from bucket_sync.logging_setup import get_logger

logger = get_logger()


def dedupe_diff(diff: DiffResult) -> DiffResult:
    """Remove every key in ``changed`` from ``removed``.

    A changed key still exists after the sync, so it must not be deleted.
    Returns a new DiffResult and leaves the input untouched.
    """
    superseded = [key for key in diff.removed if key in diff.changed]
    if superseded:
        logger.debug(f"Dropping {len(superseded)} superseded versions from removed")

    return DiffResult(
        added=dict(diff.added),
        changed=dict(diff.changed),
        removed={k: v for k, v in diff.removed.items() if k not in diff.changed},
        unchanged=dict(diff.unchanged),
    )
