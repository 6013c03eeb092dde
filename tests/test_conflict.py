"""Tests for conflict resolution between changed and removed keys."""

from bucket_sync.conflict import dedupe_diff
from bucket_sync.diff_engine import DiffResult, diff
from bucket_sync.manifest import ManifestEntry


def entry(key, fingerprint):
    return ManifestEntry(key=key, fingerprint=fingerprint)


class TestDedupeDiff:
    """dedupe_diff() tests."""

    def test_changed_key_not_removed(self):
        """A changed key is dropped from removed."""
        raw = diff({"x.css": entry("x.css", "v1")}, {"x.css": entry("x.css", "v2")})

        resolved = dedupe_diff(raw)

        assert set(resolved.changed) == {"x.css"}
        assert resolved.removed == {}

    def test_truly_removed_key_kept(self):
        """Keys absent from the manifest stay in removed."""
        remote = {"c.txt": entry("c.txt", "old"), "d.txt": entry("d.txt", "d")}
        local = {"c.txt": entry("c.txt", "new")}

        resolved = dedupe_diff(diff(remote, local))

        assert resolved.removed == {"d.txt": remote["d.txt"]}

    def test_idempotent(self):
        """Resolving twice equals resolving once."""
        remote = {"c.txt": entry("c.txt", "old"), "d.txt": entry("d.txt", "d")}
        local = {"a.txt": entry("a.txt", "a"), "c.txt": entry("c.txt", "new")}
        once = dedupe_diff(diff(remote, local))

        assert dedupe_diff(once) == once

    def test_input_untouched(self):
        """The raw diff keeps its overlap."""
        raw = DiffResult(
            changed={"x": entry("x", "2")},
            removed={"x": entry("x", "1")},
        )

        dedupe_diff(raw)

        assert set(raw.removed) == {"x"}

    def test_empty(self):
        assert dedupe_diff(DiffResult()) == DiffResult()
