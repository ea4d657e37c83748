"""Build orchestration and the readiness barrier in front of resolution lookups.

``DedupeService.ensure_ready`` is the single awaitable the host build tool calls
before every full build and every incremental rebuild. It fingerprints the
lockfile, then either loads the cached map or runs scan -> group -> resolve ->
persist. A new facade is published only once that unit completes, and lookups
through ``DedupeService.resolve`` wait for any in-flight build, so no query can
observe a partially populated map.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants

from .builder import build_duplicate_map
from .cache import ResolutionCache, fingerprint_file
from .config import DedupeConfig
from .errors import DedupeError
from .facade import CanonicalLocation, ResolutionCacheFacade
from .lockfile import locate_lockfile
from .models import CacheKey
from .resolver import VersionResolver
from .scanner import scan_manifests

logger = logging.getLogger(__name__)


class DedupeService:
    """Owns the published duplicate map for one project configuration."""

    def __init__(self, config: DedupeConfig, cache: Optional[ResolutionCache] = None):
        self._config = config
        self._cache = cache if cache is not None else ResolutionCache(config.resolved_cache_dir)
        self._resolver = VersionResolver(config.strategy)
        self._facade: Optional[ResolutionCacheFacade] = None
        self._published_key: Optional[CacheKey] = None
        self._pending: Optional[asyncio.Task] = None
        self._pending_key: Optional[CacheKey] = None
        self.last_loaded_from_cache: Optional[bool] = None

    @property
    def config(self) -> DedupeConfig:
        return self._config

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    @property
    def is_ready(self) -> bool:
        """True when a map is published and no rebuild is in flight."""
        return self._facade is not None and self._pending is None

    @property
    def published_key(self) -> Optional[CacheKey]:
        return self._published_key

    @property
    def facade(self) -> Optional[ResolutionCacheFacade]:
        return self._facade

    async def compute_key(self) -> CacheKey:
        """Fingerprint the current lockfile for the configured strategy."""
        lockfile = await asyncio.to_thread(locate_lockfile, self._config.root, self._config.lockfile)
        digest = await asyncio.to_thread(fingerprint_file, lockfile)
        return CacheKey(self._config.strategy, digest)

    async def ensure_ready(self) -> ResolutionCacheFacade:
        """Make the map for the current lockfile available and return its facade.

        Concurrent callers for the same key share one build. Build failures
        propagate to every caller and leave no facade published.
        """
        key = await self.compute_key()
        if self._pending is None and self._facade is not None and self._published_key == key:
            return self._facade
        if self._pending is not None and self._pending_key == key:
            return await asyncio.shield(self._pending)

        task = asyncio.ensure_future(self._build(key))
        self._pending = task
        self._pending_key = key
        return await asyncio.shield(task)

    async def _build(self, key: CacheKey) -> ResolutionCacheFacade:
        root = self._config.root
        try:
            with Timer() as t:
                dup_map = await asyncio.to_thread(self._cache.load, key)
                from_cache = dup_map is not None
                if dup_map is None:
                    logger.info("%s Fetching all node_modules package.jsons", Constants.LOG_TAG)
                    paths = await asyncio.to_thread(scan_manifests, root, self._config.ignore)
                    dup_map = await build_duplicate_map(root, paths, self._config.read_concurrency)
                    self._resolver.resolve_all(dup_map)
                    await asyncio.to_thread(self._cache.store, key, dup_map)
            facade = ResolutionCacheFacade(dup_map, root)
            if self._pending_key == key:
                self._facade = facade
                self._published_key = key
                self.last_loaded_from_cache = from_cache
            logger.info(
                "%s Map ready for %s: %d packages, %d with duplicates (%s)",
                Constants.LOG_TAG,
                key.strategy.value,
                len(dup_map),
                len(dup_map.duplicates()),
                "cached" if from_cache else "built",
            )
            if is_debug_enabled(logger):
                logger.debug(
                    "Map published",
                    extra=extra_context(
                        event="function_exit",
                        component="service",
                        action="ensure_ready",
                        outcome="cache_hit" if from_cache else "built",
                        target=str(key),
                        duration_ms=t.duration_ms(),
                    ),
                )
            return facade
        except Exception:
            if self._pending_key == key:
                self._facade = None
                self._published_key = None
            raise
        finally:
            if self._pending_key == key:
                self._pending = None
                self._pending_key = None

    async def wait_ready(self) -> Optional[ResolutionCacheFacade]:
        """Wait for in-flight builds; return the published facade, if any."""
        while self._pending is not None:
            task = self._pending
            try:
                await asyncio.shield(task)
            except (DedupeError, OSError) as e:
                logger.warning("%s Map build failed; lookups fall through: %s", Constants.LOG_TAG, e)
        return self._facade

    async def resolve(self, package_name: str, installed_version: str) -> Optional[CanonicalLocation]:
        """Readiness-gated Facade lookup. Misses return None and never raise."""
        facade = await self.wait_ready()
        if facade is None:
            logger.warning(
                "%s Lookup for %s@%s before any map was built",
                Constants.LOG_TAG,
                package_name,
                installed_version,
            )
            return None
        return facade.resolve_canonical_location(package_name, installed_version)

    async def resolve_request(self, module_request: str, installed_version: str) -> Optional[CanonicalLocation]:
        facade = await self.wait_ready()
        if facade is None:
            return None
        return facade.resolve_request(module_request, installed_version)


def ensure_ready_sync(config: DedupeConfig) -> DedupeService:
    """Build or load the map outside an event loop; returns the ready service."""
    service = DedupeService(config)
    asyncio.run(service.ensure_ready())
    return service
