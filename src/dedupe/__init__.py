"""Duplicate package detection and version resolution.

This package scans nested node_modules trees for installed package manifests,
groups them by name and exact version, resolves each version to a canonical
sibling under a dedupe strategy, and caches the result keyed by a fingerprint
of the project lockfile.
"""

from .cache import ResolutionCache, fingerprint, fingerprint_file
from .config import DedupeConfig, load_config_file
from .errors import (
    CacheReadError,
    CacheWriteError,
    ConfigError,
    DedupeError,
    ManifestParseError,
    ResolutionNotFound,
    ScanError,
)
from .facade import CanonicalLocation, ResolutionCacheFacade, package_name_from_request
from .models import CacheKey, DedupeStrategy, DuplicatePackagesMap, VersionEntry
from .resolver import VersionResolver
from .scanner import scan_manifests
from .service import DedupeService, ensure_ready_sync

__all__ = [
    "CacheKey",
    "CacheReadError",
    "CacheWriteError",
    "CanonicalLocation",
    "ConfigError",
    "DedupeConfig",
    "DedupeError",
    "DedupeService",
    "DedupeStrategy",
    "DuplicatePackagesMap",
    "ManifestParseError",
    "ResolutionCache",
    "ResolutionCacheFacade",
    "ResolutionNotFound",
    "ScanError",
    "VersionEntry",
    "VersionResolver",
    "ensure_ready_sync",
    "fingerprint",
    "fingerprint_file",
    "load_config_file",
    "package_name_from_request",
    "scan_manifests",
]
