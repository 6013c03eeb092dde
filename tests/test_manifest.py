"""Tests for manifest validation and the directory scanner."""

import pytest

from bucket_sync.manifest import (
    DirectoryScanner,
    FileMap,
    ManifestError,
    normalize_metadata,
    validate_file_maps,
)


class TestValidateFileMaps:
    """validate_file_maps() tests."""

    def test_valid_order_preserved(self):
        file_maps = [FileMap("b", "/b"), FileMap("a", "/a")]

        assert validate_file_maps(iter(file_maps)) == file_maps

    def test_not_a_file_map(self):
        with pytest.raises(ManifestError, match="not a FileMap"):
            validate_file_maps([{"key": "a", "path": "/a"}])

    def test_missing_key(self):
        with pytest.raises(ManifestError, match="no key"):
            validate_file_maps([FileMap("", "/a")])

    def test_missing_path(self):
        with pytest.raises(ManifestError, match="no path"):
            validate_file_maps([FileMap("a", "")])

    def test_duplicate_key(self):
        with pytest.raises(ManifestError, match="Duplicate key"):
            validate_file_maps([FileMap("a", "/a"), FileMap("a", "/b")])

    def test_bad_metadata(self):
        with pytest.raises(ManifestError, match="metadata"):
            validate_file_maps([FileMap("a", "/a", metadata={"max-age": 3600})])

    def test_normalize_metadata(self):
        assert normalize_metadata(None) is None
        assert normalize_metadata({"Content-Type": "text/css"}) == {"content-type": "text/css"}


class TestDirectoryScanner:
    """DirectoryScanner tests."""

    def test_scan_site(self, site_dir):
        """Keys are POSIX relative paths in lexical order."""
        file_maps = DirectoryScanner().scan(str(site_dir))

        assert [fm.key for fm in file_maps] == ["about.html", "css/site.css", "index.html"]
        assert file_maps[1].path == str((site_dir / "css" / "site.css").resolve())
        assert all(fm.metadata is None for fm in file_maps)

    def test_scan_missing_root(self, tmp_path):
        with pytest.raises(ManifestError):
            DirectoryScanner().scan(str(tmp_path / "missing"))

    def test_ignore_rules(self, site_dir):
        """Extensions, prefixes, exact names and directories are skipped."""
        (site_dir / "draft.tmp").write_text("x")
        (site_dir / ".DS_Store").write_text("x")
        (site_dir / "thumbs.db").write_text("x")
        (site_dir / ".git").mkdir()
        (site_dir / ".git" / "HEAD").write_text("ref")

        scanner = DirectoryScanner(
            ignore_extensions=[".tmp"],
            ignore_filenames_prefix=["."],
            ignore_filenames_exact=["thumbs.db"],
            ignore_directories=[".git"],
        )
        keys = [fm.key for fm in scanner.scan(str(site_dir))]

        assert keys == ["about.html", "css/site.css", "index.html"]

    def test_key_prefix(self, site_dir):
        scanner = DirectoryScanner(key_prefix="/blog/")

        keys = [fm.key for fm in scanner.scan(str(site_dir))]

        assert keys == ["blog/about.html", "blog/css/site.css", "blog/index.html"]

    def test_metadata_rules(self, site_dir):
        """Matching rules merge, later rules win."""
        scanner = DirectoryScanner(
            metadata_rules=[
                {"pattern": "*", "values": {"cache-control": "max-age=60"}},
                {"pattern": "*.css", "values": {"cache-control": "max-age=3600"}},
            ]
        )

        by_key = {fm.key: fm for fm in scanner.scan(str(site_dir))}

        assert by_key["css/site.css"].metadata == {"cache-control": "max-age=3600"}
        assert by_key["index.html"].metadata == {"cache-control": "max-age=60"}
