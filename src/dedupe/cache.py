"""File-backed cache of resolved duplicate maps keyed by strategy and lockfile fingerprint."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from typing import Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants

from .errors import CacheReadError, CacheWriteError
from .models import CacheKey, DuplicatePackagesMap

logger = logging.getLogger(__name__)


def fingerprint(contents: bytes) -> str:
    """Hex digest of raw lockfile bytes, used only to detect changes."""
    return hashlib.sha1(contents, usedforsecurity=False).hexdigest()


def fingerprint_file(path: str) -> str:
    """Stream a lockfile through the same digest as ``fingerprint``."""
    digest = hashlib.sha1(usedforsecurity=False)
    with open(path, "rb") as file:
        for chunk in iter(lambda: file.read(Constants.FINGERPRINT_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def serialize_map(dup_map: DuplicatePackagesMap) -> str:
    """Stable JSON rendering; identical maps produce identical bytes."""
    return json.dumps(dup_map.to_dict(), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


class ResolutionCache:
    """Persist resolved maps as one JSON file per ``CacheKey``.

    Files are written whole and replaced atomically, so a concurrent build
    racing on the same key can only overwrite an identical document.
    """

    def __init__(self, cache_dir: str):
        """Initialize the cache.

        Args:
            cache_dir: Directory holding the cache files; created on first store.
        """
        self.cache_dir = cache_dir

    def path_for(self, key: CacheKey) -> str:
        filename = f"{Constants.CACHE_FILE_PREFIX}_{key.strategy.value}-{key.fingerprint}.json"
        return os.path.join(self.cache_dir, filename)

    def _read(self, path: str) -> DuplicatePackagesMap:
        try:
            with open(path, "r", encoding="utf-8") as file:
                data = json.load(file)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheReadError(f"{path}: {e}") from e
        try:
            dup_map = DuplicatePackagesMap.from_dict(data)
        except ValueError as e:
            raise CacheReadError(f"{path}: {e}") from e
        for name, version, entry in dup_map.entries():
            if entry.resolved_version is None or dup_map.get(name, entry.resolved_version) is None:
                raise CacheReadError(f"{path}: {name}@{version} has no usable resolvedVersion")
        return dup_map

    def load(self, key: CacheKey) -> Optional[DuplicatePackagesMap]:
        """Load the map persisted for ``key``.

        Returns:
            The map, or None on a miss. Corrupt files count as a miss.
        """
        path = self.path_for(key)
        if not os.path.isfile(path):
            if is_debug_enabled(logger):
                logger.debug(
                    "Cache miss",
                    extra=extra_context(event="cache_miss", component="cache", action="load", target=path),
                )
            return None
        try:
            dup_map = self._read(path)
        except CacheReadError as e:
            logger.warning("%s Ignoring unreadable cache file: %s", Constants.LOG_TAG, e)
            return None
        logger.info("%s Duplicate dependency map already exists: %s", Constants.LOG_TAG, path)
        return dup_map

    def store(self, key: CacheKey, dup_map: DuplicatePackagesMap) -> bool:
        """Persist ``dup_map`` under ``key``.

        Returns:
            True when written. Failures are logged and reported as False; the
            in-memory map stays usable.
        """
        path = self.path_for(key)
        try:
            self._write(path, serialize_map(dup_map))
        except CacheWriteError as e:
            logger.warning("%s Could not persist duplicate map: %s", Constants.LOG_TAG, e)
            return False
        logger.info("%s Wrote duplicate dependency map: %s", Constants.LOG_TAG, path)
        return True

    def _write(self, path: str, payload: str) -> None:
        tmp_path = None
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{Constants.CACHE_FILE_PREFIX}-", suffix=".tmp", dir=self.cache_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as file:
                file.write(payload)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            raise CacheWriteError(f"{path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.debug("Could not remove temporary cache file %s", tmp_path)
