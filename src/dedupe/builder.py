"""Group installed manifests by package name and exact version."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import posixpath
from typing import Iterable, List, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants

from .errors import ManifestParseError
from .models import DuplicatePackagesMap, ManifestRecord

logger = logging.getLogger(__name__)


def read_manifest(root: str, rel_path: str) -> Optional[ManifestRecord]:
    """Read one package.json and extract its ``name`` and ``version``.

    The manifest is treated as untrusted data. Helper manifests without a
    string name and version (e.g. ``dist/esm/package.json`` declaring only a
    module type) are not package roots and yield ``None``.

    Raises:
        ManifestParseError: if the file is unreadable, not JSON, or not a JSON object.
    """
    full_path = os.path.join(root, *rel_path.split("/"))
    try:
        with open(full_path, "r", encoding="utf-8") as file:
            body = file.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestParseError(rel_path, f"unreadable manifest ({e})") from e
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ManifestParseError(rel_path, f"invalid JSON ({e.msg} at line {e.lineno})") from e
    if not isinstance(data, dict):
        raise ManifestParseError(rel_path, "manifest is not a JSON object")

    name = data.get("name")
    version = data.get("version")
    if not isinstance(name, str) or not name.strip() or not isinstance(version, str) or not version.strip():
        logger.debug("Skipping %s: no package name/version", rel_path)
        return None
    return ManifestRecord(
        name=name.strip(),
        version=version.strip(),
        location=posixpath.dirname(rel_path),
        package_json=body,
    )


async def collect_manifests(
    root: str,
    paths: Sequence[str],
    concurrency: int = Constants.MANIFEST_READ_CONCURRENCY,
) -> List[ManifestRecord]:
    """Read manifests in parallel; results keep the order of ``paths``.

    The first parse failure cancels the remaining reads and propagates.
    """
    semaphore = asyncio.Semaphore(max(1, int(concurrency)))

    async def _read(rel_path: str) -> Optional[ManifestRecord]:
        async with semaphore:
            return await asyncio.to_thread(read_manifest, root, rel_path)

    tasks = [asyncio.ensure_future(_read(p)) for p in paths]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
    return [record for record in results if record is not None]


def group_manifests(records: Iterable[ManifestRecord]) -> DuplicatePackagesMap:
    """Merge manifest records into a map; the only place the map is mutated."""
    dup_map = DuplicatePackagesMap()
    for record in records:
        dup_map.add(record.name, record.version, record.location, record.package_json)
    return dup_map


async def build_duplicate_map(
    root: str,
    paths: Sequence[str],
    concurrency: int = Constants.MANIFEST_READ_CONCURRENCY,
) -> DuplicatePackagesMap:
    """Read every manifest in ``paths`` and group them by name and version."""
    logger.info("%s Analyzing %d package.jsons", Constants.LOG_TAG, len(paths))
    with Timer() as t:
        records = await collect_manifests(root, paths, concurrency)
        dup_map = group_manifests(records)
    logger.info("%s Sanity check: %d package.jsons", Constants.LOG_TAG, dup_map.total_locations())
    if is_debug_enabled(logger):
        logger.debug(
            "Duplicate map grouped",
            extra=extra_context(
                event="build",
                component="builder",
                action="build_duplicate_map",
                outcome="success",
                count=len(dup_map),
                duplicates=len(dup_map.duplicates()),
                duration_ms=t.duration_ms(),
            ),
        )
    return dup_map
