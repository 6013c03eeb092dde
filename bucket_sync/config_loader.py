"""Configuration loader for the bucket sync tool."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class ConfigError(Exception):
    """Raised when config validation fails."""

    pass


class Config:
    """Configuration object for the bucket sync tool."""

    def __init__(self, config_dict: Dict[str, Any]):
        """Initialize config from dictionary."""
        self._config = config_dict
        self._validate()

    def _validate(self) -> None:
        """Validate required configuration fields."""
        required_keys = ["bucket", "source_dir"]
        for key in required_keys:
            if key not in self._config:
                raise ConfigError(f"Missing required config key: {key}")

            value = self._config[key]
            if not isinstance(value, str) or not value:
                raise ConfigError(f"Config key '{key}' must be a non-empty string")

        workers = self._config.get("max_workers", 1)
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ConfigError("Config key 'max_workers' must be a positive integer")

        self._validate_credentials()
        self._validate_metadata_rules()

    def _validate_credentials(self) -> None:
        """Check that explicit credentials come as a pair of strings."""
        aws = self._config.get("aws") or {}
        access_key = aws.get("access_key")
        secret_key = aws.get("secret_key")
        if access_key is None and secret_key is None:
            return
        if not (isinstance(access_key, str) and isinstance(secret_key, str)):
            raise ConfigError("aws.access_key and aws.secret_key must both be strings")

    def _validate_metadata_rules(self) -> None:
        rules = self._config.get("metadata") or []
        if not isinstance(rules, list):
            raise ConfigError("Config key 'metadata' must be a list of rules")
        for index, rule in enumerate(rules):
            if not isinstance(rule, dict) or not isinstance(rule.get("pattern"), str):
                raise ConfigError(f"Metadata rule #{index} needs a string 'pattern'")
            values = rule.get("values")
            if not isinstance(values, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in values.items()
            ):
                raise ConfigError(
                    f"Metadata rule #{index} 'values' must map strings to strings"
                )

    @property
    def bucket(self) -> str:
        """Get target bucket name."""
        return self._config["bucket"]

    @property
    def source_dir(self) -> str:
        """Get local source directory."""
        return self._config["source_dir"]

    @property
    def key_prefix(self) -> str:
        """Get prefix prepended to every object key."""
        return self._config.get("key_prefix") or ""

    @property
    def dry_run(self) -> bool:
        """Get dry run flag (defaults to True for safety)."""
        return self._config.get("dry_run", True)

    @property
    def prune(self) -> bool:
        """Get prune flag."""
        return self._config.get("prune", False)

    @property
    def max_workers(self) -> int:
        """Get number of parallel transfer workers."""
        return self._config.get("max_workers", 1)

    @property
    def fetch_metadata(self) -> bool:
        """Get whether remote metadata is fetched for comparison."""
        return self._config.get("fetch_metadata", False)

    @property
    def aws_profile(self) -> Optional[str]:
        """Get AWS profile name."""
        return (self._config.get("aws") or {}).get("profile")

    @property
    def aws_region(self) -> Optional[str]:
        """Get AWS region."""
        return (self._config.get("aws") or {}).get("region")

    @property
    def aws_endpoint_url(self) -> Optional[str]:
        """Get custom S3 endpoint URL."""
        return (self._config.get("aws") or {}).get("endpoint_url")

    @property
    def aws_access_key(self) -> Optional[str]:
        """Get explicit access key."""
        return (self._config.get("aws") or {}).get("access_key")

    @property
    def aws_secret_key(self) -> Optional[str]:
        """Get explicit secret key."""
        return (self._config.get("aws") or {}).get("secret_key")

    @property
    def cloudfront_distribution_id(self) -> Optional[str]:
        """Get CloudFront distribution to invalidate after a sync."""
        return (self._config.get("cloudfront") or {}).get("distribution_id")

    @property
    def ignore_extensions(self) -> list:
        """Get extensions to ignore."""
        items = (self._config.get("ignore") or {}).get("extensions", [])
        return [i for i in (items or []) if i]

    @property
    def ignore_filenames_prefix(self) -> list:
        """Get filename prefixes to ignore."""
        items = (self._config.get("ignore") or {}).get("filenames_prefix", [])
        return [i for i in (items or []) if i]

    @property
    def ignore_filenames_exact(self) -> list:
        """Get exact filenames to ignore."""
        items = (self._config.get("ignore") or {}).get("filenames_exact", [])
        return [i for i in (items or []) if i]

    @property
    def ignore_directories(self) -> list:
        """Get directory names to ignore."""
        items = (self._config.get("ignore") or {}).get("directories", [])
        return [i for i in (items or []) if i]

    @property
    def metadata_rules(self) -> List[Dict[str, Any]]:
        """Get metadata rules as (pattern, values) dicts."""
        return list(self._config.get("metadata") or [])

    @property
    def log_file_path(self) -> str:
        """Get log file path."""
        return (self._config.get("logging") or {}).get("file_path", "bucket_sync.log")

    @property
    def log_level(self) -> str:
        """Get log level."""
        return (self._config.get("logging") or {}).get("level", "INFO")

    @property
    def log_max_size_mb(self) -> int:
        """Get max log file size in MB before rotation."""
        return (self._config.get("logging") or {}).get("max_size_mb", 10)

    @property
    def log_backup_count(self) -> int:
        """Get number of rotated log files to keep."""
        return (self._config.get("logging") or {}).get("backup_count", 5)

    @property
    def log_rotation_enabled(self) -> bool:
        """Get log rotation flag."""
        return (self._config.get("logging") or {}).get("rotation_enabled", True)

    def set_override(self, key: str, value: Any) -> None:
        """Override a top-level setting from the command line."""
        self._config[key] = value
        self._validate()

    def to_dict(self) -> Dict[str, Any]:
        """Return config as dictionary."""
        return self._config.copy()


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml file

    Returns:
        Config object

    Raises:
        ConfigError: If config file doesn't exist or is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")

    return Config(config_dict)


def load_config_from_env(env_var: str = "BUCKET_SYNC_CONFIG") -> Config:
    """Load configuration from environment variable.

    Args:
        env_var: Name of environment variable containing config path

    Returns:
        Config object

    Raises:
        ConfigError: If environment variable not set or config invalid
    """
    config_path = os.getenv(env_var)
    if not config_path:
        raise ConfigError(f"Environment variable {env_var} not set")

    return load_config(config_path)
