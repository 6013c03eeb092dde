"""Pytest configuration and fixtures."""

import hashlib
import logging
import threading
import time
from pathlib import Path

import pytest

from bucket_sync.logging_setup import LOGGER_NAME
from bucket_sync.manifest import FileMap
from bucket_sync.s3_ops import StorageError


class InMemoryStorage:
    """Bucket double implementing list_objects, upload and delete."""

    def __init__(self, fail_on=None, interrupt_on=None, upload_delay=0.0):
        self.objects = {}
        self.calls = []
        self.fail_on = set(fail_on or [])
        self.interrupt_on = set(interrupt_on or [])
        self.upload_delay = upload_delay
        self._lock = threading.Lock()

    def put_bytes(self, key, body, metadata=None):
        """Seed an object directly, bypassing the call log."""
        self.objects[key] = (body, dict(metadata or {}))

    def etag(self, key):
        return '"' + hashlib.md5(self.objects[key][0]).hexdigest() + '"'

    def list_objects(self):
        for key in sorted(self.objects):
            yield {"key": key, "etag": self.etag(key), "metadata": dict(self.objects[key][1])}

    def upload(self, key, path, metadata=None):
        if key in self.fail_on:
            raise StorageError(f"Failed to upload {path} to {key}: boom")
        if key in self.interrupt_on:
            raise KeyboardInterrupt
        if self.upload_delay:
            time.sleep(self.upload_delay)
        body = Path(path).read_bytes()
        with self._lock:
            self.calls.append(("upload", key))
            self.objects[key] = (body, dict(metadata or {}))

    def delete(self, key):
        if key in self.fail_on:
            raise StorageError(f"Failed to delete {key}: boom")
        with self._lock:
            self.calls.append(("delete", key))
            self.objects.pop(key, None)


@pytest.fixture
def storage():
    """Empty in-memory bucket."""
    return InMemoryStorage()


@pytest.fixture
def site_dir(tmp_path):
    """Create a small static site and return (root, file_maps builder)."""
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_text("<h1>home</h1>")
    (root / "about.html").write_text("<h1>about</h1>")
    (root / "css" / "site.css").write_text("body { color: red; }")
    return root


@pytest.fixture
def make_file_maps(site_dir):
    """Build file maps for files under the site directory."""

    def _make(*keys, metadata=None):
        return [
            FileMap(key=key, path=str(site_dir / key), metadata=(metadata or {}).get(key))
            for key in keys
        ]

    return _make


@pytest.fixture
def sample_config(tmp_path, site_dir):
    """Create a sample config file for testing."""
    config_path = tmp_path / "config.yaml"
    config_content = f"""
bucket: www.example.com
source_dir: {site_dir}
dry_run: true
prune: false

aws:
  region: eu-west-1

cloudfront:
  distribution_id: E12QOFOQTRE6O6

ignore:
  extensions:
    - .tmp
  filenames_prefix:
    - .
  directories:
    - .git

metadata:
  - pattern: "*.css"
    values:
      cache-control: max-age=3600

logging:
  level: INFO
  file_path: {tmp_path / "logs" / "bucket_sync.log"}
"""
    config_path.write_text(config_content)
    return config_path


@pytest.fixture
def storage_factory():
    """Build in-memory buckets with custom failure keys."""
    return InMemoryStorage


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging between tests."""
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()
