"""Reconcile a local file set with an S3 bucket."""

from bucket_sync.config_loader import Config, ConfigError, load_config
from bucket_sync.conflict import dedupe_diff
from bucket_sync.deploy import sync
from bucket_sync.diff_engine import DiffResult, diff
from bucket_sync.executor import SyncError, SyncExecutor, SyncOptions, SyncResult
from bucket_sync.logging_setup import get_logger, setup_logging
from bucket_sync.manifest import FileMap, ManifestEntry, ManifestError
from bucket_sync.sync_logic import SyncAction, SyncJob, SyncPlanner, calculate_ops

__all__ = [
    "Config",
    "ConfigError",
    "load_config",
    "setup_logging",
    "get_logger",
    "FileMap",
    "ManifestEntry",
    "ManifestError",
    "DiffResult",
    "diff",
    "dedupe_diff",
    "SyncAction",
    "SyncJob",
    "SyncPlanner",
    "calculate_ops",
    "SyncOptions",
    "SyncResult",
    "SyncError",
    "SyncExecutor",
    "sync",
]
