"""CLI entry point for the DepDedupe resolution server.

Starts a local HTTP server that a host build tool queries for canonical
package locations.
"""

from __future__ import annotations

import ipaddress
import logging
import sys
from typing import Any

from cli_config import load_config, setup_logging
from constants import ExitCodes

logger = logging.getLogger(__name__)


def _is_local_bind_host(host: str) -> bool:
    """Return True if host is a loopback/local bind target."""
    if not host:
        return False
    host_lower = host.strip().lower()
    if host_lower in ("localhost",):
        return True
    try:
        return ipaddress.ip_address(host_lower).is_loopback
    except ValueError:
        # Non-IP hostnames are treated as non-local unless explicitly allowed.
        return False


def _enforce_local_binding(host: str, allow_external: bool) -> None:
    """Enforce local-only binding unless explicitly allowed."""
    if _is_local_bind_host(host):
        return
    if not allow_external:
        sys.stderr.write(
            "ERROR: Non-local bindings require --allow-external.\n"
        )
        sys.exit(ExitCodes.CONFIG_ERROR.value)
    logger.warning(
        "Binding resolution server to non-local address (%s).",
        host,
    )


def run_server(args: Any) -> int:
    """Entry point for the ``serve`` command.

    Args:
        args: Parsed CLI arguments namespace.
    """
    setup_logging(args)

    # Lazy import to avoid loading aiohttp for other commands
    try:
        from resolution_server.server import ServerConfig, run_resolution_server_sync
    except ImportError as e:
        sys.stderr.write(
            f"Resolution server not available: {e}\n"
            "Make sure 'aiohttp' is installed: pip install aiohttp\n"
        )
        return ExitCodes.CONFIG_ERROR.value

    from dedupe.service import DedupeService  # pylint: disable=import-outside-toplevel

    config = load_config(args)
    server_config = ServerConfig.from_args(args)
    _enforce_local_binding(server_config.host, server_config.allow_external)

    print(
        f"\n"
        f"  DepDedupe Resolution Server\n"
        f"  ===========================\n"
        f"  Listening: http://{server_config.host}:{server_config.port}\n"
        f"  Project:   {config.root}\n"
        f"  Strategy:  {config.strategy.value}\n"
        f"\n"
        f"  POST /_dedupe/ready before each build, GET /resolve per request\n"
        f"  Press Ctrl+C to stop\n"
    )

    run_resolution_server_sync(DedupeService(config), server_config)
    return ExitCodes.SUCCESS.value
