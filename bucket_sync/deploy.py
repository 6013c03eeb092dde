"""One-call sync of a local manifest to a bucket."""

from typing import Iterable, Optional

from bucket_sync.executor import SyncExecutor, SyncOptions, SyncResult
from bucket_sync.logging_setup import get_logger
from bucket_sync.manifest import FileMap, validate_file_maps
from bucket_sync.sync_logic import SyncPlanner

logger = get_logger()


def sync(
    storage,
    file_maps: Iterable[FileMap],
    options: Optional[SyncOptions] = None,
    planner: Optional[SyncPlanner] = None,
) -> SyncResult:
    """Sync the files described by ``file_maps`` to the storage's bucket.

    The bucket is listed once at the start. Uploads and updates run in the
    order of ``file_maps``, deletes of keys missing from the manifest come
    last and only happen with ``options.prune``.

    Args:
        storage: Object with ``list_objects()``, ``upload(key, path,
            metadata)`` and ``delete(key)``, e.g. S3Storage
        file_maps: Ordered desired state of the bucket
        options: Run options (dry_run, prune, report, max_workers)
        planner: Planner to use; defaults to MD5 against ETags

    Returns:
        SyncResult with uploaded, updated, deleted and unchanged keys
    """
    options = options or SyncOptions()
    planner = planner or SyncPlanner()

    # Malformed input fails before the bucket is touched
    file_maps = validate_file_maps(file_maps)

    bucket_objects = list(storage.list_objects())
    jobs = planner.plan(bucket_objects, file_maps)

    executor = SyncExecutor(storage)
    return executor.execute(jobs, options)
