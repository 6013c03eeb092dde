"""Execution of planned sync jobs against a storage backend."""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Set

from bucket_sync.logging_setup import get_logger
from bucket_sync.s3_ops import content_type_of
from bucket_sync.sync_logic import SyncAction, SyncInvariantError, SyncJob

logger = get_logger()

PRUNE_DISABLED = "prune disabled, delete skipped"


@dataclass
class SyncOptions:
    """Options for one sync run.

    ``report`` is called once per planned job, in plan order, before the
    job's side effect. It is an observer only.
    """

    dry_run: bool = False
    prune: bool = False
    report: Optional[Callable[[SyncJob], None]] = None
    max_workers: int = 1


@dataclass
class SyncResult:
    """Keys touched by a sync run, by outcome."""

    uploaded: Set[str] = field(default_factory=set)
    updated: Set[str] = field(default_factory=set)
    deleted: Set[str] = field(default_factory=set)
    unchanged: Set[str] = field(default_factory=set)

    def changed_keys(self) -> Set[str]:
        """Keys whose remote object was written or removed."""
        return self.uploaded | self.updated | self.deleted

    def to_dict(self) -> Dict[str, List[str]]:
        """Return sorted key lists per outcome."""
        return {
            "uploaded": sorted(self.uploaded),
            "updated": sorted(self.updated),
            "deleted": sorted(self.deleted),
            "unchanged": sorted(self.unchanged),
        }


class SyncError(Exception):
    """Raised when a job fails; carries the partial result of the run."""

    def __init__(self, message: str, result: SyncResult, job: Optional[SyncJob] = None):
        super().__init__(message)
        self.result = result
        self.job = job


class SyncExecutor:
    """Applies sync jobs to a storage backend and tallies the outcome."""

    def __init__(self, storage, content_type_resolver: Callable[[str], str] = content_type_of):
        """Initialize executor.

        Args:
            storage: Object with ``upload(key, path, metadata)`` and
                ``delete(key)``
            content_type_resolver: Maps a local path to its default
                Content-Type
        """
        self.storage = storage
        self.content_type_resolver = content_type_resolver

    def execute(self, jobs: List[SyncJob], options: Optional[SyncOptions] = None) -> SyncResult:
        """Execute jobs in plan order.

        Args:
            jobs: Planned jobs, deletes last
            options: Run options; defaults to a live run without pruning

        Returns:
            SyncResult for the run

        Raises:
            SyncError: If a storage call fails; ``.result`` holds what
                completed before the failure
            SyncInvariantError: If a job has an unknown action
        """
        options = options or SyncOptions()
        result = SyncResult()

        if options.dry_run:
            logger.info("DRY RUN MODE: no changes will be made to the bucket")

        try:
            if options.max_workers > 1:
                self._execute_parallel(jobs, options, result)
            else:
                self._execute_sequential(jobs, options, result)
        except KeyboardInterrupt as e:
            # Applied side effects stay applied; the caller gets what completed
            logger.warning(
                f"Sync interrupted after {len(result.changed_keys())} changes, "
                "nothing is rolled back"
            )
            e.result = result
            raise

        logger.info(
            f"Sync finished: {len(result.uploaded)} uploaded, {len(result.updated)} updated, "
            f"{len(result.deleted)} deleted, {len(result.unchanged)} unchanged"
        )
        return result

    def _execute_sequential(
        self, jobs: List[SyncJob], options: SyncOptions, result: SyncResult
    ) -> None:
        for job in jobs:
            job = self._report(job, options)
            if job is None:
                continue
            try:
                self._perform(job, options.dry_run)
            except SyncInvariantError:
                raise
            except Exception as e:
                raise self._failure(job, e, result) from e
            self._record(job, result)

    def _report(self, job: SyncJob, options: SyncOptions) -> Optional[SyncJob]:
        """Report a job and return it, or None if prune gating drops it."""
        gated = job.action == SyncAction.DELETE and not options.prune
        reported = replace(job, action=SyncAction.NOOP, details=PRUNE_DISABLED) if gated else job

        if options.report is not None:
            try:
                options.report(reported)
            except Exception:
                logger.exception(f"Report sink failed for {reported.key}, continuing")

        if gated:
            logger.info(f"[SKIP_DELETE] {job.key} ({PRUNE_DISABLED})")
            return None
        return job

    def _upload_metadata(self, job: SyncJob) -> Dict[str, str]:
        metadata = {"content-type": self.content_type_resolver(job.path)}
        metadata.update({k.lower(): v for k, v in (job.metadata or {}).items()})
        return metadata

    def _perform(self, job: SyncJob, dry_run: bool) -> None:
        """Run the side effect of one job."""
        suffix = " (dry run)" if dry_run else ""

        if job.action in (SyncAction.UPLOAD, SyncAction.UPDATE):
            if not dry_run:
                self.storage.upload(job.key, job.path, self._upload_metadata(job))
            logger.info(f"[{job.action.value}] {job.key}{suffix}")

        elif job.action == SyncAction.DELETE:
            if not dry_run:
                self.storage.delete(job.key)
            logger.info(f"[{job.action.value}] {job.key}{suffix}")

        elif job.action == SyncAction.NOOP:
            logger.debug(f"[NOOP] {job.key}")

        else:
            raise SyncInvariantError("Unrecognized sync action", key=job.key, context=job)

    @staticmethod
    def _record(job: SyncJob, result: SyncResult) -> None:
        if job.action == SyncAction.UPLOAD:
            result.uploaded.add(job.key)
        elif job.action == SyncAction.UPDATE:
            result.updated.add(job.key)
        elif job.action == SyncAction.DELETE:
            result.deleted.add(job.key)
        elif job.action == SyncAction.NOOP:
            result.unchanged.add(job.key)

    @staticmethod
    def _failure(job: SyncJob, error: Exception, result: SyncResult) -> SyncError:
        """Wrap a storage failure together with the partial result."""
        logger.error(f"Job failed: [{job.action.value}] {job.key}: {error}")
        return SyncError(f"Sync aborted at {job.key}: {error}", result=result, job=job)

    def _execute_parallel(
        self, jobs: List[SyncJob], options: SyncOptions, result: SyncResult
    ) -> None:
        """Run transfers in a thread pool, then deletes once all transfers are done."""
        transfers = []
        deletes = []
        for job in jobs:
            job = self._report(job, options)
            if job is None:
                continue
            if job.action == SyncAction.NOOP:
                self._record(job, result)
            elif job.action == SyncAction.DELETE:
                deletes.append(job)
            else:
                transfers.append(job)

        logger.debug(
            f"Executing {len(transfers)} transfers and {len(deletes)} deletes "
            f"with {options.max_workers} workers"
        )
        with ThreadPoolExecutor(max_workers=options.max_workers) as pool:
            self._run_phase(pool, transfers, options, result)
            self._run_phase(pool, deletes, options, result)

    def _run_phase(
        self,
        pool: ThreadPoolExecutor,
        jobs: List[SyncJob],
        options: SyncOptions,
        result: SyncResult,
    ) -> None:
        abort = threading.Event()

        def run(job: SyncJob) -> bool:
            # Jobs a worker picks up after a failure are skipped
            if abort.is_set():
                return False
            try:
                self._perform(job, options.dry_run)
            except BaseException:
                abort.set()
                raise
            return True

        def stop() -> None:
            abort.set()
            for pending in futures:
                pending.cancel()

        futures = {pool.submit(run, job): job for job in jobs}

        failed = None
        try:
            for future in as_completed(futures):
                job = futures[future]
                if future.cancelled():
                    continue
                try:
                    performed = future.result()
                except Exception as e:
                    if failed is None:
                        failed = (job, e)
                        stop()
                    else:
                        logger.error(f"Job failed: [{job.action.value}] {job.key}: {e}")
                    continue
                if performed:
                    self._record(job, result)
        except KeyboardInterrupt:
            stop()
            raise

        if failed is not None:
            job, error = failed
            if isinstance(error, SyncInvariantError):
                raise error
            raise self._failure(job, error, result) from error
