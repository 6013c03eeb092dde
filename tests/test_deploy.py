"""End-to-end tests for sync() against an in-memory bucket."""

from unittest.mock import MagicMock

import pytest

from bucket_sync.deploy import sync
from bucket_sync.executor import SyncOptions
from bucket_sync.manifest import DirectoryScanner, FileMap, ManifestError
from bucket_sync.sync_logic import SyncAction


class TestSync:
    """sync() tests."""

    def test_first_sync_uploads_everything(self, storage, site_dir):
        file_maps = DirectoryScanner().scan(str(site_dir))

        result = sync(storage, file_maps)

        assert result.uploaded == {"about.html", "css/site.css", "index.html"}
        assert set(storage.objects) == result.uploaded

    def test_second_sync_is_noop(self, storage, site_dir):
        """Syncing twice leaves nothing to do on the second run."""
        scanner = DirectoryScanner(
            metadata_rules=[{"pattern": "*.css", "values": {"Cache-Control": "max-age=60"}}]
        )
        sync(storage, scanner.scan(str(site_dir)), SyncOptions(prune=True))
        storage.calls.clear()

        result = sync(storage, scanner.scan(str(site_dir)), SyncOptions(prune=True))

        assert result.uploaded == result.updated == result.deleted == set()
        assert result.unchanged == {"about.html", "css/site.css", "index.html"}
        assert storage.calls == []

    def test_changed_and_removed(self, storage, site_dir):
        file_maps = DirectoryScanner().scan(str(site_dir))
        sync(storage, file_maps)
        (site_dir / "index.html").write_text("<h1>new home</h1>")
        storage.put_bytes("stale.html", b"stale")

        result = sync(storage, file_maps, SyncOptions(prune=True))

        assert result.updated == {"index.html"}
        assert result.deleted == {"stale.html"}
        assert "stale.html" not in storage.objects

    def test_metadata_change_triggers_update(self, storage, make_file_maps):
        sync(storage, make_file_maps("index.html"))

        result = sync(
            storage,
            make_file_maps("index.html", metadata={"index.html": {"content-language": "de"}}),
        )

        assert result.updated == {"index.html"}
        assert storage.objects["index.html"][1]["content-language"] == "de"

    def test_partial_metadata_unchanged(self, storage, make_file_maps):
        """Omitting previously supplied metadata is not a change."""
        sync(storage, make_file_maps("index.html", metadata={"index.html": {"x-a": "1"}}))

        result = sync(storage, make_file_maps("index.html"))

        assert result.unchanged == {"index.html"}

    def test_prune_false_keeps_remote_only_keys(self, storage, make_file_maps):
        storage.put_bytes("w.txt", b"w")

        result = sync(storage, make_file_maps("index.html"))

        assert "w.txt" in storage.objects
        assert "w.txt" not in (
            result.uploaded | result.updated | result.deleted | result.unchanged
        )

    def test_invalid_manifest_before_listing(self):
        """Validation errors surface before the bucket is touched."""
        storage = MagicMock()

        with pytest.raises(ManifestError):
            sync(storage, [FileMap("", "/nowhere")])

        storage.list_objects.assert_not_called()

    def test_dry_run_reports_plan(self, storage, make_file_maps):
        storage.put_bytes("w.txt", b"w")
        reported = []

        result = sync(
            storage,
            make_file_maps("index.html"),
            SyncOptions(dry_run=True, prune=True, report=reported.append),
        )

        assert [(job.key, job.action) for job in reported] == [
            ("index.html", SyncAction.UPLOAD),
            ("w.txt", SyncAction.DELETE),
        ]
        assert result.deleted == {"w.txt"}
        assert "w.txt" in storage.objects
        assert storage.calls == []
