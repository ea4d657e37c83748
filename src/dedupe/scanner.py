"""Inventory of installed package manifests inside nested node_modules trees."""

from __future__ import annotations

import logging
import os
from typing import Iterable, List, Sequence

from wcmatch import glob

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants

from .errors import ScanError

logger = logging.getLogger(__name__)

# Exclude patterns use fast-glob rules: globstar and brace expansion,
# with wildcards matching dot-names too.
_GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.DOTGLOB


def _normalize_patterns(patterns: Iterable[str]) -> List[str]:
    normalized = []
    for pattern in patterns or ():
        pattern = str(pattern).strip().replace("\\", "/")
        while pattern.startswith("./"):
            pattern = pattern[2:]
        if pattern:
            normalized.append(pattern)
    return normalized


def is_ignored(rel_path: str, patterns: Sequence[str], is_dir: bool = False) -> bool:
    """Return True when ``rel_path`` (POSIX, relative to the root) matches any glob pattern.

    Directories are also tried with a trailing ``/`` so that ``node_modules/c/``
    prunes the whole subtree.
    """
    if not patterns:
        return False
    candidates = [rel_path, rel_path + "/"] if is_dir else [rel_path]
    return any(glob.globmatch(candidate, list(patterns), flags=_GLOB_FLAGS) for candidate in candidates)


def _raise_scan_error(exc: OSError) -> None:
    raise ScanError(f"Unable to read '{exc.filename}': {exc.strerror or exc}") from exc


def scan_manifests(
    root: str,
    ignore: Iterable[str] = (),
    dependency_dir: str = Constants.DEPENDENCY_DIR,
    manifest_name: str = Constants.PACKAGE_JSON_FILE,
) -> List[str]:
    """Find every manifest installed below a dependency directory.

    Walks ``root`` without following symbolic links and returns the path of each
    regular ``manifest_name`` file that has a ``dependency_dir`` directory among
    its ancestors, at any nesting depth. Paths are relative to ``root`` with
    POSIX separators, in a stable sorted-walk order.

    Args:
        root: Project directory to scan.
        ignore: Glob exclude patterns (``**``, ``{a,b}``), matched against relative paths.
        dependency_dir: Directory name denoting an installed dependency tree.
        manifest_name: Manifest file name.

    Returns:
        List of relative manifest paths. Empty when ``root`` does not exist.

    Raises:
        ScanError: if a directory inside an existing tree cannot be read.
    """
    if not os.path.isdir(root):
        logger.warning("%s Project root '%s' does not exist; no packages found", Constants.LOG_TAG, root)
        return []

    patterns = _normalize_patterns(ignore)
    found: List[str] = []

    with Timer() as t:
        for current, dirnames, filenames in os.walk(root, onerror=_raise_scan_error, followlinks=False):
            rel_dir = os.path.relpath(current, root).replace(os.sep, "/")
            rel_dir = "" if rel_dir == "." else rel_dir

            kept = []
            for dirname in sorted(dirnames):
                rel_child = f"{rel_dir}/{dirname}" if rel_dir else dirname
                if os.path.islink(os.path.join(current, dirname)):
                    continue
                if patterns and is_ignored(rel_child, patterns, is_dir=True):
                    continue
                kept.append(dirname)
            dirnames[:] = kept

            if manifest_name not in filenames:
                continue
            if dependency_dir not in rel_dir.split("/"):
                continue
            path = os.path.join(current, manifest_name)
            if os.path.islink(path) or not os.path.isfile(path):
                continue
            rel_path = f"{rel_dir}/{manifest_name}"
            if patterns and is_ignored(rel_path, patterns):
                continue
            found.append(rel_path)

    if is_debug_enabled(logger):
        logger.debug(
            "Manifest scan finished",
            extra=extra_context(
                event="scan",
                component="scanner",
                action="scan_manifests",
                outcome="success",
                count=len(found),
                duration_ms=t.duration_ms(),
                target=root,
            ),
        )
    return found
