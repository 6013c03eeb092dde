"""Dry run output formatter with visual diagrams."""

from typing import List

from bucket_sync.executor import SyncResult
from bucket_sync.sync_logic import SyncAction, SyncJob


class DryRunFormatter:
    """Formats dry run output with visual diagrams."""

    ACTION_SYMBOLS = {
        SyncAction.UPLOAD: "->",
        SyncAction.UPDATE: "=>",
        SyncAction.DELETE: "[X]",
        SyncAction.NOOP: "==",
    }

    ACTION_DESCRIPTIONS = {
        SyncAction.UPLOAD: "Upload new object",
        SyncAction.UPDATE: "Replace changed object",
        SyncAction.DELETE: "Delete from bucket",
        SyncAction.NOOP: "Unchanged",
    }

    def __init__(self, local_name: str = "LOCAL", bucket_name: str = "BUCKET"):
        """Initialize formatter.

        Args:
            local_name: Display name for the local side
            bucket_name: Display name for the bucket side
        """
        self.local_name = local_name
        self.bucket_name = bucket_name

    def format_dry_run_output(self, jobs: List[SyncJob], show_unchanged: bool = False) -> str:
        """Format dry run output with visual diagrams.

        Args:
            jobs: Jobs as reported by the executor, in plan order
            show_unchanged: Also list unchanged keys in the details

        Returns:
            Formatted output string
        """
        pending = [job for job in jobs if job.action != SyncAction.NOOP]
        if not pending:
            return self._format_no_changes()

        grouped = self._group_jobs_by_action(jobs)

        output = []
        output.append("=" * 80)
        output.append("DRY RUN MODE - NO CHANGES WILL BE MADE")
        output.append("=" * 80)
        output.append("")
        output.append(f"The following {len(pending)} operations would be performed:\n")

        output.append("Summary by Action:")
        output.append("-" * 80)
        for action, action_jobs in grouped.items():
            symbol = self.ACTION_SYMBOLS.get(action, "?")
            desc = self.ACTION_DESCRIPTIONS.get(action, str(action))
            output.append(f"  {symbol} {desc}: {len(action_jobs)} files")
        output.append("")

        output.append("Detailed Changes:")
        output.append("-" * 80)

        for action, action_jobs in grouped.items():
            if action == SyncAction.NOOP and not show_unchanged:
                # Skipped deletes carry details and are always listed
                action_jobs = [job for job in action_jobs if job.details]
                if not action_jobs:
                    continue

            output.append(f"\n{self.ACTION_DESCRIPTIONS.get(action, str(action))}:")
            output.append("")

            for job in action_jobs:
                output.append(self._format_job_diagram(job))

        output.append("")
        output.append("=" * 80)
        output.append("END DRY RUN - To perform these changes, set dry_run: false in config")
        output.append("=" * 80)

        return "\n".join(output)

    def format_summary(self, result: SyncResult) -> str:
        """Format the summary printed after a live run."""
        output = []
        output.append("=" * 50)
        output.append("Sync Summary")
        output.append("=" * 50)
        output.append(f"Uploaded: {len(result.uploaded)}")
        output.append(f"Updated: {len(result.updated)}")
        output.append(f"Deleted: {len(result.deleted)}")
        output.append(f"Unchanged: {len(result.unchanged)}")
        output.append("=" * 50)
        return "\n".join(output)

    def _group_jobs_by_action(self, jobs: List[SyncJob]) -> dict:
        """Group jobs by action type, keeping first-seen order."""
        grouped = {}
        for job in jobs:
            grouped.setdefault(job.action, []).append(job)
        return grouped

    def _format_job_diagram(self, job: SyncJob) -> str:
        """Format a single job as a visual diagram."""
        symbol = self.ACTION_SYMBOLS.get(job.action, "?")

        if job.action in (SyncAction.UPLOAD, SyncAction.UPDATE):
            return f"  [{self.local_name}] {job.key} {symbol} [{self.bucket_name}]"

        elif job.action == SyncAction.DELETE:
            return f"  [{self.bucket_name}] {job.key} {symbol} (delete)"

        elif job.action == SyncAction.NOOP and job.details:
            return f"  [{self.bucket_name}] {job.key} {symbol} ({job.details})"

        elif job.action == SyncAction.NOOP:
            return f"  [{self.local_name}] {job.key} {symbol} [{self.bucket_name}]"

        else:
            return f"  {job.key} ({job.action})"

    def _format_no_changes(self) -> str:
        output = []
        output.append("=" * 80)
        output.append("DRY RUN MODE - NO CHANGES WILL BE MADE")
        output.append("=" * 80)
        output.append("")
        output.append("[OK] No synchronization needed - bucket is already in sync!")
        output.append("")
        output.append("=" * 80)
        return "\n".join(output)
