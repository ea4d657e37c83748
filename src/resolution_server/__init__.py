"""Local HTTP bridge between a host build tool and the duplicate map.

The host tool triggers a map build before each build or rebuild and queries
canonical package locations for module-resolution requests.
"""

from .server import ResolutionServer, ServerConfig, run_resolution_server_sync

__all__ = [
    "ResolutionServer",
    "ServerConfig",
    "run_resolution_server_sync",
]
