"""CLI entry points for building the duplicate map and querying it."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

from cli_config import load_config, setup_logging
from constants import Constants, ExitCodes
from dedupe.config import DedupeConfig
from dedupe.errors import ConfigError, ManifestParseError, ScanError
from dedupe.report import export_csv, export_json, summarize
from dedupe.service import DedupeService, ensure_ready_sync

logger = logging.getLogger(__name__)


def ready_service_or_exit(config: DedupeConfig) -> DedupeService:
    """Build or load the map; map build failures to exit codes."""
    try:
        return ensure_ready_sync(config)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(ExitCodes.CONFIG_ERROR.value)
    except (ScanError, ManifestParseError, OSError) as e:
        logger.error("Duplicate map build failed: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def _report_format(args: Any) -> Optional[str]:
    if not getattr(args, "OUTPUT", None):
        return None
    if getattr(args, "OUTPUT_FORMAT", None):
        return args.OUTPUT_FORMAT.lower()
    if args.OUTPUT.lower().endswith(".csv"):
        return "csv"
    return "json"


def run_build(args: Any) -> int:
    """Entry point for the ``build`` command.

    Returns:
        Process exit code.
    """
    setup_logging(args)
    config = load_config(args)
    service = ready_service_or_exit(config)
    dup_map = service.facade.duplicate_map

    summary = summarize(dup_map)
    logger.info(
        "%s %d packages, %d with duplicates, %d versions in %d locations, %d versions resolved elsewhere",
        Constants.LOG_TAG,
        summary.packages,
        summary.duplicate_packages,
        summary.versions,
        summary.locations,
        summary.moved_versions,
    )

    if getattr(args, "LIST_DUPLICATES", False):
        for name in summary.duplicate_names:
            parts = []
            for version in dup_map.versions(name):
                entry = dup_map.get(name, version)
                parts.append(f"{version} -> {entry.resolved_version} ({len(entry.locations)})")
            print(f"{name}: " + ", ".join(parts))

    fmt = _report_format(args)
    if fmt == "csv":
        export_csv(dup_map, args.OUTPUT)
    elif fmt == "json":
        export_json(dup_map, args.OUTPUT)

    if summary.duplicate_packages and getattr(args, "ERROR_ON_DUPLICATES", False):
        logger.error("Duplicate packages present, exiting with non-zero status code.")
        return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


def run_resolve(args: Any) -> int:
    """Entry point for the ``resolve`` command; prints the canonical location as JSON."""
    setup_logging(args)
    config = load_config(args)
    service = ready_service_or_exit(config)

    result = service.facade.resolve_request(args.PACKAGE, args.VERSION)
    if result is None:
        sys.stderr.write(f"No resolution entry found for {args.PACKAGE}@{args.VERSION}\n")
        return ExitCodes.NOT_FOUND.value
    data = result.to_dict()
    data["changed"] = result.version_changed
    print(json.dumps(data, indent=2))
    return ExitCodes.SUCCESS.value
