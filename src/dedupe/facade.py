"""Read-only lookup of canonical package locations for module-request rewriters."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from constants import Constants

from .errors import ResolutionNotFound
from .models import DuplicatePackagesMap

logger = logging.getLogger(__name__)


def package_name_from_request(module_request: str) -> Optional[str]:
    """Extract the package name from a bare module request.

    ``@babel/core/lib/index`` -> ``@babel/core``, ``uuid/v4`` -> ``uuid``.
    Relative or absolute paths are not package requests and yield None.
    """
    request = (module_request or "").strip()
    if not request or request.startswith((".", "/")):
        return None
    parts = request.split("/")
    if request.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


@dataclass(frozen=True)
class CanonicalLocation:
    """Where a request for package@requested_version should be served from."""
    package_name: str
    requested_version: str
    resolved_version: str
    location: str
    path: str
    manifest_path: str
    package_json: str

    @property
    def version_changed(self) -> bool:
        return self.resolved_version != self.requested_version

    @property
    def manifest(self) -> Dict[str, Any]:
        """Parsed manifest of the canonical copy."""
        return json.loads(self.package_json)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": self.package_name,
            "requestedVersion": self.requested_version,
            "resolvedVersion": self.resolved_version,
            "location": self.location,
            "path": self.path,
            "manifestPath": self.manifest_path,
            "packageJson": self.package_json,
        }


class ResolutionCacheFacade:
    """Lookups over a fully built, published map. Never mutates the map."""

    def __init__(self, dup_map: DuplicatePackagesMap, project_root: str):
        self._map = dup_map
        self._root = os.path.abspath(project_root)

    @property
    def duplicate_map(self) -> DuplicatePackagesMap:
        return self._map

    def resolve_canonical_location(self, package_name: str, installed_version: str) -> Optional[CanonicalLocation]:
        """Return the canonical copy for ``package_name`` at ``installed_version``.

        Returns None (with a diagnostic) when the package or version was never
        observed in the tree.
        """
        try:
            return self.require(package_name, installed_version)
        except ResolutionNotFound as e:
            if package_name in self._map:
                logger.info("%s %s", Constants.LOG_TAG, e)
            else:
                logger.debug("%s %s", Constants.LOG_TAG, e)
            return None

    def require(self, package_name: str, installed_version: str) -> CanonicalLocation:
        """Like ``resolve_canonical_location`` but raises ResolutionNotFound on a miss."""
        entry = self._map.get(package_name, installed_version)
        if entry is None or entry.resolved_version is None:
            raise ResolutionNotFound(package_name, installed_version)
        target = self._map.get(package_name, entry.resolved_version)
        if target is None:
            raise ResolutionNotFound(package_name, installed_version)

        location = target.canonical_location
        path = os.path.join(self._root, *location.split("/"))
        return CanonicalLocation(
            package_name=package_name,
            requested_version=installed_version,
            resolved_version=entry.resolved_version,
            location=location,
            path=path,
            manifest_path=os.path.join(path, Constants.PACKAGE_JSON_FILE),
            package_json=target.package_json,
        )

    def resolve_request(self, module_request: str, installed_version: str) -> Optional[CanonicalLocation]:
        """Resolve using a raw module request such as ``@scope/pkg/sub/path``."""
        package_name = package_name_from_request(module_request)
        if package_name is None:
            return None
        return self.resolve_canonical_location(package_name, installed_version)
