"""Main entry point for the bucket sync tool."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from bucket_sync.cdn import CloudFrontInvalidator
from bucket_sync.config_loader import Config, ConfigError, load_config, load_config_from_env
from bucket_sync.deploy import sync
from bucket_sync.dry_run_formatter import DryRunFormatter
from bucket_sync.executor import SyncError, SyncOptions, SyncResult
from bucket_sync.logging_setup import get_logger, setup_logging
from bucket_sync.manifest import DirectoryScanner, ManifestError
from bucket_sync.s3_ops import S3Storage, create_session
from bucket_sync.sync_logic import SyncJob

logger = get_logger()


class SyncRunner:
    """Orchestrates a sync of the source directory to the bucket."""

    def __init__(self, config: Config, storage=None, cloudfront_client=None):
        """Initialize sync runner.

        Args:
            config: Loaded configuration
            storage: Storage backend; an S3Storage is built from config if omitted
            cloudfront_client: CloudFront client; built lazily when needed
        """
        self.config = config
        setup_logging(
            self.config.log_file_path,
            self.config.log_level,
            max_bytes=self.config.log_max_size_mb * 1024 * 1024,
            backup_count=self.config.log_backup_count,
            rotation_enabled=self.config.log_rotation_enabled,
        )

        self.scanner = DirectoryScanner(
            ignore_extensions=self.config.ignore_extensions,
            ignore_filenames_prefix=self.config.ignore_filenames_prefix,
            ignore_filenames_exact=self.config.ignore_filenames_exact,
            ignore_directories=self.config.ignore_directories,
            metadata_rules=self.config.metadata_rules,
            key_prefix=self.config.key_prefix,
        )

        self.session = None
        if storage is None or (cloudfront_client is None and config.cloudfront_distribution_id):
            self.session = create_session(
                profile_name=self.config.aws_profile,
                region=self.config.aws_region,
                access_key=self.config.aws_access_key,
                secret_key=self.config.aws_secret_key,
            )

        self.storage = storage or S3Storage(
            self.config.bucket,
            session=self.session,
            endpoint_url=self.config.aws_endpoint_url,
            fetch_metadata=self.config.fetch_metadata,
        )
        self.cloudfront_client = cloudfront_client
        self.reported: List[SyncJob] = []

    def run(self) -> bool:
        """Execute the sync.

        Returns:
            True if sync completed successfully
        """
        self.reported = []
        logger.info(
            f"Starting sync of {self.config.source_dir} to s3://{self.config.bucket} "
            f"(dry_run={self.config.dry_run}, prune={self.config.prune})"
        )

        try:
            file_maps = self.scanner.scan(self.config.source_dir)
            options = SyncOptions(
                dry_run=self.config.dry_run,
                prune=self.config.prune,
                report=self.reported.append,
                max_workers=self.config.max_workers,
            )
            result = sync(self.storage, file_maps, options)
        except ManifestError as e:
            logger.error(f"Invalid manifest: {e}")
            return False
        except SyncError as e:
            logger.error(f"Sync aborted: {e}")
            self._print_summary(e.result)
            return False
        except KeyboardInterrupt as e:
            partial = getattr(e, "result", None)
            if partial is not None:
                logger.warning("Sync interrupted, partial results follow")
                self._print_summary(partial)
            raise
        except Exception as e:
            logger.exception(f"Sync failed: {e}")
            return False

        if self.config.dry_run:
            formatter = DryRunFormatter(bucket_name=self.config.bucket)
            print("\n" + formatter.format_dry_run_output(self.reported) + "\n")
            return True

        self._print_summary(result)
        self._invalidate(result)
        return True

    def _print_summary(self, result: SyncResult) -> None:
        formatter = DryRunFormatter(bucket_name=self.config.bucket)
        print("\n" + formatter.format_summary(result) + "\n")

    def _invalidate(self, result: SyncResult) -> Optional[str]:
        """Invalidate CloudFront paths for changed keys, if configured."""
        distribution_id = self.config.cloudfront_distribution_id
        if not distribution_id:
            return None

        if self.cloudfront_client is None:
            self.cloudfront_client = self.session.client("cloudfront")

        invalidator = CloudFrontInvalidator(self.cloudfront_client)
        return invalidator.invalidate(distribution_id, result.changed_keys())


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Bucket Sync - upload a directory to S3 with minimal transfer"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config.yaml file",
    )
    parser.add_argument(
        "--use-env",
        action="store_true",
        help="Load config from BUCKET_SYNC_CONFIG environment variable",
    )
    parser.add_argument(
        "--no-dry-run",
        action="store_true",
        help="Disable dry run mode and modify the bucket",
    )
    parser.add_argument(
        "--prune",
        action="store_true",
        help="Delete bucket objects that have no local counterpart",
    )
    parser.add_argument("--bucket", type=str, help="Override the target bucket")
    parser.add_argument("--source", type=str, help="Override the source directory")

    args = parser.parse_args()

    try:
        if args.use_env:
            logger.info("Loading config from environment variable")
            config = load_config_from_env()
        elif args.config:
            config = load_config(args.config)
        elif Path("config.yaml").exists():
            config = load_config("config.yaml")
        else:
            parser.print_help()
            logger.error(
                "No config file specified. Use --config or --use-env, "
                "or place config.yaml in current directory"
            )
            return 1

        if args.no_dry_run:
            logger.info("--no-dry-run flag provided: disabling dry run mode")
            config.set_override("dry_run", False)
        if args.prune:
            config.set_override("prune", True)
        if args.bucket:
            config.set_override("bucket", args.bucket)
        if args.source:
            config.set_override("source_dir", args.source)

        runner = SyncRunner(config)
        success = runner.run()
        return 0 if success else 1
    except ConfigError as e:
        logger.error(f"Config error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Sync interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
