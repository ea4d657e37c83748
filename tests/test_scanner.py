"""Tests for the node_modules manifest scanner."""

import os
from unittest.mock import patch

import pytest

from dedupe.errors import ScanError
from dedupe.scanner import is_ignored, scan_manifests


class TestScanManifests:
    """Inventory of installed package.json files."""

    def test_finds_nested_manifests_only_under_node_modules(self, sample_tree):
        sample_tree.write("src/package.json", '{"name": "not-installed", "version": "1.0.0"}')
        paths = scan_manifests(str(sample_tree.root))

        assert "package.json" not in paths
        assert "src/package.json" not in paths
        assert "node_modules/p/package.json" in paths
        assert "node_modules/c/node_modules/p/package.json" in paths
        assert "node_modules/@scope/pkg/package.json" in paths
        assert len(paths) == 10

    def test_includes_helper_manifests_inside_packages(self, node_tree):
        node_tree.add("node_modules/lib", "lib", "1.0.0")
        node_tree.write("node_modules/lib/dist/esm/package.json", '{"type": "module"}')
        paths = scan_manifests(str(node_tree.root))
        assert "node_modules/lib/dist/esm/package.json" in paths

    def test_order_is_deterministic(self, sample_tree):
        first = scan_manifests(str(sample_tree.root))
        second = scan_manifests(str(sample_tree.root))
        assert first == second
        # Parents are listed before the packages nested below them.
        assert first.index("node_modules/a/package.json") < first.index(
            "node_modules/a/node_modules/p/package.json"
        )

    def test_missing_root_yields_empty(self, tmp_path, caplog):
        with caplog.at_level("WARNING"):
            assert scan_manifests(str(tmp_path / "missing")) == []
        assert "does not exist" in caplog.text

    def test_root_without_node_modules(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        assert scan_manifests(str(tmp_path)) == []

    def test_ignore_patterns_prune_directories(self, sample_tree):
        paths = scan_manifests(str(sample_tree.root), ignore=["./node_modules/c"])
        assert not any(p.startswith("node_modules/c/") for p in paths)
        assert "node_modules/p/package.json" in paths

    def test_ignore_patterns_match_files(self, sample_tree):
        paths = scan_manifests(str(sample_tree.root), ignore=["node_modules/*/node_modules/p/package.json"])
        assert paths.count("node_modules/p/package.json") == 1
        assert "node_modules/a/node_modules/p/package.json" not in paths

    def test_leading_globstar_matches_top_level_package(self, sample_tree):
        paths = scan_manifests(str(sample_tree.root), ignore=["**/node_modules/c/**"])
        assert "node_modules/c/package.json" not in paths
        assert "node_modules/c/node_modules/p/package.json" not in paths
        assert "node_modules/c/node_modules/zero/package.json" not in paths
        assert "node_modules/p/package.json" in paths

    def test_brace_sets_expand(self, sample_tree):
        paths = scan_manifests(str(sample_tree.root), ignore=["node_modules/{a,b}/**"])
        assert not any(p.startswith(("node_modules/a/", "node_modules/b/")) for p in paths)
        assert "node_modules/c/package.json" in paths

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinked_directories_are_not_followed(self, node_tree):
        node_tree.add("node_modules/real", "real", "1.0.0")
        link = node_tree.root / "node_modules" / "linked"
        try:
            os.symlink(node_tree.root / "node_modules" / "real", link, target_is_directory=True)
        except OSError:
            pytest.skip("cannot create symlinks here")
        # A self-referencing link would loop forever if followed.
        loop = node_tree.root / "node_modules" / "real" / "node_modules"
        loop.mkdir()
        try:
            os.symlink(node_tree.root / "node_modules", loop / "cycle", target_is_directory=True)
        except OSError:
            pytest.skip("cannot create symlinks here")

        paths = scan_manifests(str(node_tree.root))
        assert paths == ["node_modules/real/package.json"]

    def test_unreadable_directory_raises_scan_error(self, sample_tree):
        def _boom(*args, **kwargs):
            onerror = kwargs["onerror"]
            err = PermissionError(13, "Permission denied")
            err.filename = "node_modules/a"
            onerror(err)
            return iter(())

        with patch("dedupe.scanner.os.walk", side_effect=_boom):
            with pytest.raises(ScanError) as exc:
                scan_manifests(str(sample_tree.root))
        assert "node_modules/a" in str(exc.value)


@pytest.mark.parametrize("path,patterns,is_dir,expected", [
    ("node_modules/a", ["node_modules/a"], True, True),
    ("node_modules/a", ["node_modules/a/"], True, True),
    ("node_modules/a/package.json", ["node_modules/b/*"], False, False),
    ("node_modules/a/package.json", ["*/package.json"], False, False),
    ("node_modules/a/package.json", ["*/*/package.json"], False, True),
    ("node_modules/a/package.json", ["**/package.json"], False, True),
    ("node_modules/c/package.json", ["**/node_modules/c/**"], False, True),
    ("node_modules/b/node_modules/p/package.json", ["node_modules/{a,b}/**"], False, True),
    ("node_modules/c/package.json", ["node_modules/{a,b}/**"], False, False),
    ("node_modules/.cache/x/package.json", ["node_modules/*/x/package.json"], False, True),
    ("node_modules/b", ["node_modules/a*"], True, False),
])
def test_is_ignored(path, patterns, is_dir, expected):
    assert is_ignored(path, patterns, is_dir=is_dir) is expected
