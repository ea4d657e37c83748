"""Error taxonomy for the duplicate map build and lookups."""

from __future__ import annotations


class DedupeError(Exception):
    """Base class for all depdedupe errors."""


class ConfigError(DedupeError, ValueError):
    """Invalid or incomplete configuration (strategy, lockfile, config file)."""


class ScanError(DedupeError):
    """The dependency tree could not be walked."""


class ManifestParseError(DedupeError, ValueError):
    """A package.json is not valid structured data."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CacheReadError(DedupeError):
    """A cache file exists but cannot be used."""


class CacheWriteError(DedupeError):
    """A cache file could not be persisted."""


class ResolutionNotFound(DedupeError, LookupError):
    """No resolution entry exists for package@version."""

    def __init__(self, package_name: str, version: str):
        super().__init__(f"No resolution entry found for {package_name}@{version}")
        self.package_name = package_name
        self.version = version
