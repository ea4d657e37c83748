"""Summaries and JSON/CSV exports of a resolved duplicate map."""

from __future__ import annotations

import csv
import json
import logging
import sys
from typing import Any, Dict, List

from constants import ExitCodes

from .models import DedupeSummary, DuplicatePackagesMap

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "package",
    "version",
    "resolved_version",
    "location_count",
    "canonical_location",
    "is_duplicate",
]


def summarize(dup_map: DuplicatePackagesMap) -> DedupeSummary:
    """Count packages, duplicates, versions, installed copies and moved versions."""
    summary = DedupeSummary(packages=len(dup_map))
    summary.duplicate_names = dup_map.duplicates()
    summary.duplicate_packages = len(summary.duplicate_names)
    for _, version, entry in dup_map.entries():
        summary.versions += 1
        summary.locations += len(entry.locations)
        if entry.resolved_version is not None and entry.resolved_version != version:
            summary.moved_versions += 1
    return summary


def report_rows(dup_map: DuplicatePackagesMap) -> List[Dict[str, Any]]:
    """One row per (package, version), canonical location taken from the resolved entry."""
    duplicates = set(dup_map.duplicates())
    rows = []
    for name, version, entry in dup_map.entries():
        resolved = entry.resolved_version or version
        target = dup_map.get(name, resolved) or entry
        rows.append({
            "package": name,
            "version": version,
            "resolved_version": resolved,
            "location_count": len(entry.locations),
            "canonical_location": target.canonical_location,
            "is_duplicate": name in duplicates,
        })
    return rows


def export_json(dup_map: DuplicatePackagesMap, path: str) -> None:
    """Exports the per-version resolution rows to a JSON file.

    Args:
        dup_map (DuplicatePackagesMap): Resolved map.
        path (str): File path to export the JSON.
    """
    summary = summarize(dup_map)
    data = {
        "summary": {
            "packages": summary.packages,
            "duplicatePackages": summary.duplicate_packages,
            "versions": summary.versions,
            "locations": summary.locations,
            "movedVersions": summary.moved_versions,
        },
        "packages": report_rows(dup_map),
    }
    try:
        with open(path, "w", encoding="utf-8") as file:
            json.dump(data, file, ensure_ascii=False, indent=4)
        logger.info("JSON file saved successfully.")
    except OSError as e:
        logger.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def export_csv(dup_map: DuplicatePackagesMap, path: str) -> None:
    """Exports the per-version resolution rows to a CSV file.

    Args:
        dup_map (DuplicatePackagesMap): Resolved map.
        path (str): File path to export the CSV.
    """
    try:
        with open(path, "w", newline="", encoding="utf-8") as file:
            writer = csv.DictWriter(file, fieldnames=CSV_HEADERS)
            writer.writeheader()
            writer.writerows(report_rows(dup_map))
        logger.info("CSV file saved successfully.")
    except OSError as e:
        logger.error("CSV file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
