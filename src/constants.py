"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONFIG_ERROR = 2
    EXIT_WARNINGS = 3
    NOT_FOUND = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PACKAGE_JSON_FILE = "package.json"
    DEPENDENCY_DIR = "node_modules"
    PACKAGE_LOCK_FILE = "package-lock.json"
    YARN_LOCK_FILE = "yarn.lock"
    PNPM_LOCK_FILE = "pnpm-lock.yaml"
    BUN_LOCK_FILE = "bun.lock"
    # Discovery precedence when no lockfile is configured
    LOCKFILES = [PACKAGE_LOCK_FILE, YARN_LOCK_FILE, PNPM_LOCK_FILE, BUN_LOCK_FILE]

    STRATEGIES = ["exact", "patch-compatible", "minor-compatible"]
    STRATEGY_ALIASES = {
        "sameVersion": "exact",
        "patch": "patch-compatible",
        "minor": "minor-compatible",
    }
    DEFAULT_STRATEGY = "exact"

    CACHE_DIR = "temp"
    CACHE_FILE_PREFIX = "duplicatePackagesMap"
    FINGERPRINT_CHUNK_SIZE = 64 * 1024
    MANIFEST_READ_CONCURRENCY = 32

    LOG_TAG = "[DedupeMap]"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "DEPDEDUPE_LOG_LEVEL"

    SERVER_HOST = "127.0.0.1"
    SERVER_PORT = 8089
    CONFIG_SECTION = "dedupe"
