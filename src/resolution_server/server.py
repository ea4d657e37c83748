"""Local resolution server using aiohttp.

Bridges a host build tool to the duplicate map: the tool posts to
``/_dedupe/ready`` before each build or rebuild and queries ``/resolve`` for
every module-resolution request it wants rewritten.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from typing import Any, Dict, Optional

from aiohttp import web

from constants import Constants
from dedupe.errors import DedupeError
from dedupe.service import DedupeService

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Configuration for the resolution server."""

    host: str = Constants.SERVER_HOST
    port: int = Constants.SERVER_PORT
    allow_external: bool = False
    warm_start: bool = True

    @classmethod
    def from_args(cls, args: Any) -> "ServerConfig":
        """Create config from CLI arguments.

        Args:
            args: Parsed CLI arguments namespace.

        Returns:
            ServerConfig instance.
        """
        return cls(
            host=getattr(args, "SERVER_HOST", None) or Constants.SERVER_HOST,
            port=int(getattr(args, "SERVER_PORT", None) or Constants.SERVER_PORT),
            allow_external=bool(getattr(args, "ALLOW_EXTERNAL", False)),
            warm_start=not bool(getattr(args, "NO_WARM_START", False)),
        )


class ResolutionServer:
    """HTTP front for a DedupeService.

    Lookups are gated by the service's readiness barrier: a ``/resolve`` call
    made while a build is running waits for that build to publish its map.
    """

    def __init__(self, service: DedupeService, config: Optional[ServerConfig] = None):
        """Initialize the server.

        Args:
            service: Service owning the duplicate map.
            config: Server configuration.
        """
        self._service = service
        self._config = config or ServerConfig()
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._warmup: Optional[asyncio.Task] = None

    def _create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        app.router.add_get("/_dedupe/health", self._health_check)
        app.router.add_post("/_dedupe/ready", self._ensure_ready)
        app.router.add_get("/resolve", self._resolve)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, app: web.Application) -> None:
        """Start building the map so the first query does not pay for the scan."""
        if self._config.warm_start:
            self._warmup = asyncio.ensure_future(self._warm())
        logger.info("Resolution server starting on %s:%s", self._config.host, self._config.port)

    async def _warm(self) -> None:
        try:
            await self._service.ensure_ready()
        except (DedupeError, OSError) as e:
            logger.error("Initial map build failed: %s", e)
        except Exception:  # pylint: disable=broad-exception-caught
            # Nothing else awaits this task.
            logger.exception("Initial map build failed unexpectedly")

    async def _on_cleanup(self, app: web.Application) -> None:
        """Called when the server stops."""
        if self._warmup is not None and not self._warmup.done():
            self._warmup.cancel()
            try:
                await self._warmup
            except asyncio.CancelledError:
                pass
        logger.info("Resolution server stopped")

    async def _health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        key = self._service.published_key
        return web.json_response({
            "status": "ok",
            "ready": self._service.is_ready,
            "strategy": self._service.config.strategy.value,
            "key": str(key) if key else None,
        })

    async def _ensure_ready(self, request: web.Request) -> web.Response:
        """Build-lifecycle trigger: returns once the map for the current lockfile is published."""
        try:
            facade = await self._service.ensure_ready()
        except (DedupeError, OSError) as e:
            logger.error("Map build failed: %s", e)
            return web.json_response({"status": "error", "error": str(e)}, status=500)
        dup_map = facade.duplicate_map
        key = self._service.published_key
        return web.json_response({
            "status": "ready",
            "key": str(key) if key else None,
            "fromCache": self._service.last_loaded_from_cache,
            "packages": len(dup_map),
            "duplicatePackages": len(dup_map.duplicates()),
        })

    def _relative_location(self, location: str) -> str:
        root = self._service.config.root
        if os.path.isabs(location):
            location = os.path.relpath(location, root)
        return location.replace(os.sep, "/").strip("/")

    async def _resolve(self, request: web.Request) -> web.Response:
        """Per-request resolution.

        Query parameters: ``version`` plus either ``package`` or ``request``
        (a raw module request), and optionally ``location`` (the directory the
        host tool currently resolved to) to detect location-only rewrites.
        """
        version = request.query.get("version", "").strip()
        package_name = request.query.get("package", "").strip()
        module_request = request.query.get("request", "").strip()
        if not version or not (package_name or module_request):
            return web.json_response(
                {"error": "'version' and one of 'package' or 'request' are required"},
                status=400,
            )

        if self._warmup is not None and not self._warmup.done():
            # The warm build may not have registered with the service yet.
            await asyncio.shield(self._warmup)

        if package_name:
            result = await self._service.resolve(package_name, version)
        else:
            result = await self._service.resolve_request(module_request, version)

        if result is None:
            return web.json_response({
                "changed": False,
                "package": package_name or module_request,
                "version": version,
            })

        changed = result.version_changed
        current = request.query.get("location")
        if current:
            changed = changed or self._relative_location(current) != result.location
        body: Dict[str, Any] = {"changed": changed}
        body.update(result.to_dict())
        return web.json_response(body)

    async def start(self) -> None:
        """Start the resolution server."""
        self._app = self._create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(
            self._runner,
            self._config.host,
            self._config.port,
        )
        await site.start()

        logger.info(
            "Resolution server listening on http://%s:%s",
            self._config.host, self._config.port,
        )
        logger.info("Project root: %s", self._service.config.root)
        logger.info("Strategy: %s", self._service.config.strategy.value)

    async def stop(self) -> None:
        """Stop the resolution server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._app = None


def run_resolution_server_sync(service: DedupeService, config: ServerConfig) -> None:
    """Run the resolution server until SIGTERM/SIGINT.

    Args:
        service: Service owning the duplicate map.
        config: Server configuration.
    """
    server = ResolutionServer(service, config)
    loop = asyncio.new_event_loop()

    async def run():
        await server.start()
        stop_event = asyncio.Event()
        running_loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            running_loop.add_signal_handler(sig, stop_event.set)
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
        await server.stop()

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        loop.run_until_complete(server.stop())
    finally:
        loop.close()
        logger.info("Resolution server shutdown complete")
