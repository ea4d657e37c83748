"""Shared fixtures: on-disk node_modules trees for scan/build tests."""

import json
from pathlib import Path

import pytest


class NodeTree:
    """Helper writing installed packages and lockfiles under a project root."""

    def __init__(self, root: Path):
        self.root = root

    def add(self, location: str, name: str, version: str, **extra) -> Path:
        """Install ``name@version`` at ``location`` (relative directory)."""
        pkg_dir = self.root / location
        pkg_dir.mkdir(parents=True, exist_ok=True)
        manifest = {"name": name, "version": version}
        manifest.update(extra)
        path = pkg_dir / "package.json"
        path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        return path

    def write(self, rel_path: str, text: str) -> Path:
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def lockfile(self, text: str = "# yarn lockfile v1\n", name: str = "yarn.lock") -> Path:
        return self.write(name, text)


@pytest.fixture
def node_tree(tmp_path):
    """Project root with a root package.json and an (initially empty) yarn.lock."""
    tree = NodeTree(tmp_path)
    tree.write("package.json", json.dumps({"name": "app", "version": "1.0.0"}))
    tree.lockfile()
    return tree


@pytest.fixture
def sample_tree(node_tree):
    """Package ``p`` installed at 1.0.0, 1.0.4, 1.2.0 and 2.0.0, plus a 0.x pair."""
    node_tree.add("node_modules/p", "p", "1.0.0")
    node_tree.add("node_modules/a/node_modules/p", "p", "1.0.4")
    node_tree.add("node_modules/b/node_modules/p", "p", "1.2.0")
    node_tree.add("node_modules/c/node_modules/p", "p", "2.0.0")
    node_tree.add("node_modules/a", "a", "3.1.0")
    node_tree.add("node_modules/b", "b", "3.1.0")
    node_tree.add("node_modules/c", "c", "1.0.0")
    node_tree.add("node_modules/zero", "zero", "0.1.0")
    node_tree.add("node_modules/c/node_modules/zero", "zero", "0.2.0")
    node_tree.add("node_modules/@scope/pkg", "@scope/pkg", "1.0.0")
    return node_tree
