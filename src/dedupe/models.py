"""Data models for the duplicate package map."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from constants import Constants

from .errors import ConfigError


class DedupeStrategy(Enum):
    """Compatibility rule controlling how aggressively versions are merged."""
    EXACT = "exact"
    PATCH = "patch-compatible"
    MINOR = "minor-compatible"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DedupeStrategy":
        """Parse a strategy name, accepting the legacy aliases.

        ``None`` or an empty string selects the default strategy.
        """
        if value is None or not str(value).strip():
            return cls(Constants.DEFAULT_STRATEGY)
        raw = str(value).strip()
        raw = Constants.STRATEGY_ALIASES.get(raw, raw)
        try:
            return cls(raw.lower())
        except ValueError:
            allowed = ", ".join(Constants.STRATEGIES + list(Constants.STRATEGY_ALIASES))
            raise ConfigError(f"Unknown dedupe strategy '{value}' (expected one of: {allowed})") from None


@dataclass(frozen=True)
class CacheKey:
    """Identity of one persisted map: strategy plus lockfile fingerprint."""
    strategy: DedupeStrategy
    fingerprint: str

    def __str__(self) -> str:
        return f"{self.strategy.value}-{self.fingerprint}"


@dataclass(frozen=True)
class ManifestRecord:
    """Fields extracted from a single installed package.json."""
    name: str
    version: str
    location: str  # directory holding the manifest, relative to the project root
    package_json: str


def location_sort_key(location: str) -> Tuple[int, str]:
    """Order locations hoisted-first: fewest nested dependency dirs, then by path."""
    depth = location.split("/").count(Constants.DEPENDENCY_DIR)
    return depth, location


@dataclass
class VersionEntry:
    """Every installed copy of one package at one exact version."""
    locations: List[str]
    package_json: str
    resolved_version: Optional[str] = None

    def add_location(self, location: str) -> None:
        if location not in self.locations:
            self.locations.append(location)
            self.locations.sort(key=location_sort_key)

    @property
    def canonical_location(self) -> str:
        return self.locations[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locations": list(self.locations),
            "resolvedVersion": self.resolved_version,
            "packageJson": self.package_json,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "VersionEntry":
        """Build an entry from its JSON shape, rejecting anything malformed."""
        if not isinstance(data, dict):
            raise ValueError("version entry must be an object")
        locations = data.get("locations")
        if (
            not isinstance(locations, list)
            or not locations
            or not all(isinstance(loc, str) and loc for loc in locations)
        ):
            raise ValueError("locations must be a non-empty list of strings")
        package_json = data.get("packageJson")
        if not isinstance(package_json, str):
            raise ValueError("packageJson must be a string")
        resolved = data.get("resolvedVersion")
        if resolved is not None and not isinstance(resolved, str):
            raise ValueError("resolvedVersion must be a string")
        return cls(
            locations=sorted(set(locations), key=location_sort_key),
            package_json=package_json,
            resolved_version=resolved,
        )


class DuplicatePackagesMap:
    """Mapping of package name -> version -> VersionEntry.

    Packages and versions keep first-encounter order. A package installed at a
    single version is still present; ``duplicates()`` lists the rest.
    """

    def __init__(self) -> None:
        self._packages: Dict[str, Dict[str, VersionEntry]] = {}

    def add(self, name: str, version: str, location: str, package_json: str) -> VersionEntry:
        """Record one installed copy; the manifest text is kept once per version."""
        versions = self._packages.setdefault(name, {})
        entry = versions.get(version)
        if entry is None:
            entry = VersionEntry(locations=[], package_json=package_json)
            versions[version] = entry
        entry.add_location(location)
        return entry

    def get(self, name: str, version: str) -> Optional[VersionEntry]:
        return self._packages.get(name, {}).get(version)

    def versions(self, name: str) -> List[str]:
        return list(self._packages.get(name, {}))

    def packages(self) -> List[str]:
        return list(self._packages)

    def items(self) -> Iterator[Tuple[str, Dict[str, VersionEntry]]]:
        return iter(self._packages.items())

    def entries(self) -> Iterator[Tuple[str, str, VersionEntry]]:
        for name, versions in self._packages.items():
            for version, entry in versions.items():
                yield name, version, entry

    def duplicates(self) -> List[str]:
        """Names installed at more than one distinct version."""
        return [name for name, versions in self._packages.items() if len(versions) > 1]

    def total_locations(self) -> int:
        """Count of every installed copy; matches the number of manifests grouped."""
        return sum(len(entry.locations) for _, _, entry in self.entries())

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DuplicatePackagesMap):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            name: {version: entry.to_dict() for version, entry in versions.items()}
            for name, versions in self._packages.items()
        }

    @classmethod
    def from_dict(cls, data: Any) -> "DuplicatePackagesMap":
        """Rebuild a map from its JSON shape.

        Raises:
            ValueError: if any level of the document has the wrong shape.
        """
        if not isinstance(data, dict):
            raise ValueError("map must be an object")
        result = cls()
        for name, versions in data.items():
            if not isinstance(versions, dict) or not versions:
                raise ValueError(f"package '{name}' must map versions to entries")
            result._packages[name] = {
                version: VersionEntry.from_dict(entry) for version, entry in versions.items()
            }
        return result


@dataclass
class DedupeSummary:
    """Counts reported after a map is built or loaded."""
    packages: int = 0
    duplicate_packages: int = 0
    versions: int = 0
    locations: int = 0
    moved_versions: int = 0
    duplicate_names: List[str] = field(default_factory=list)
