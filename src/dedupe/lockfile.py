"""Lockfile discovery for fingerprinting."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Tuple

from constants import Constants

from .errors import ConfigError

logger = logging.getLogger(__name__)


def discover_lockfiles(dir_path: str) -> Dict[str, Optional[str]]:
    """Map each known lockfile name to its path in ``dir_path`` (None when absent)."""
    found: Dict[str, Optional[str]] = {}
    for name in Constants.LOCKFILES:
        path = os.path.join(dir_path, name)
        found[name] = path if os.path.isfile(path) else None
    return found


def select_lockfile(lockfiles: Dict[str, Optional[str]]) -> Tuple[Optional[str], str]:
    """Select a lockfile by precedence: package-lock.json > yarn.lock > pnpm-lock.yaml > bun.lock.

    Returns:
        Tuple of (selected path or None, rationale)
    """
    present = [lockfiles[name] for name in Constants.LOCKFILES if lockfiles.get(name)]
    if not present:
        return None, "no lockfile"
    selected = present[0]
    if len(present) > 1:
        logger.warning(
            "Multiple lockfiles found; using %s and ignoring: %s",
            selected,
            ", ".join(str(p) for p in present[1:]),
        )
    return selected, f"using {os.path.basename(selected)}"


def locate_lockfile(project_root: str, configured: Optional[str] = None) -> str:
    """Return the lockfile to fingerprint.

    A configured path is taken relative to ``project_root`` and must exist;
    otherwise the project root is searched.

    Raises:
        ConfigError: if no lockfile can be found.
    """
    if configured:
        path = configured if os.path.isabs(configured) else os.path.join(project_root, configured)
        if not os.path.isfile(path):
            raise ConfigError(f"Lockfile not found: {path}")
        return path

    selected, rationale = select_lockfile(discover_lockfiles(project_root))
    if selected is None:
        expected = ", ".join(Constants.LOCKFILES)
        raise ConfigError(f"Lockfile required but not found in '{project_root}'. Expected one of: {expected}")
    logger.debug("Lockfile selection: %s (%s)", selected, rationale)
    return selected
