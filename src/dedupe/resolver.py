"""Canonical version selection among installed siblings using npm semver rules."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

import semantic_version

from common.logging_utils import extra_context, is_debug_enabled

from .models import DedupeStrategy, DuplicatePackagesMap

logger = logging.getLogger(__name__)

_RANGE_OPERATORS = {
    DedupeStrategy.EXACT: "=",
    DedupeStrategy.PATCH: "~",
    DedupeStrategy.MINOR: "^",
}


def parse_version(version: str) -> Optional[semantic_version.Version]:
    """Parse a strict semantic version, or None when the string is not one."""
    try:
        return semantic_version.Version(version)
    except ValueError:
        return None


def precedence_key(parsed: semantic_version.Version, raw: str) -> Tuple:
    """Total ordering key following semver precedence.

    A release outranks its pre-releases; numeric identifiers compare numerically
    and below alphanumeric ones. The raw string breaks ties between versions
    differing only in build metadata.
    """
    if parsed.prerelease:
        prerelease = (0, tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in parsed.prerelease
        ))
    else:
        prerelease = (1, ())
    return parsed.major, parsed.minor, parsed.patch, prerelease, raw


class VersionResolver:
    """Resolve each installed version to the best sibling under a strategy.

    ``exact`` resolves every version to itself, ``patch-compatible`` picks the
    highest sibling within ``~V`` and ``minor-compatible`` within ``^V``.
    Versions with major 0 and strings that are not semantic versions always
    resolve to themselves.
    """

    def __init__(self, strategy: DedupeStrategy = DedupeStrategy.EXACT):
        self.strategy = strategy

    def range_for(self, version: str) -> Optional[semantic_version.NpmSpec]:
        """Return the npm range implied by the strategy for ``version``."""
        parsed = parse_version(version)
        if parsed is None:
            return None
        base = semantic_version.Version(
            major=parsed.major,
            minor=parsed.minor,
            patch=parsed.patch,
            prerelease=parsed.prerelease,
        )
        try:
            return semantic_version.NpmSpec(f"{_RANGE_OPERATORS[self.strategy]}{base}")
        except ValueError:
            return None

    def pick(self, version: str, siblings: Iterable[str]) -> str:
        """Pick the maximum sibling satisfying the range derived from ``version``.

        Args:
            version: Installed version being resolved.
            siblings: Every installed version of the same package (may include ``version``).

        Returns:
            The chosen version string; ``version`` itself when nothing higher matches.
        """
        if self.strategy is DedupeStrategy.EXACT:
            return version
        parsed = parse_version(version)
        if parsed is None or parsed.major == 0:
            return version
        spec = self.range_for(version)
        if spec is None:
            return version

        best = precedence_key(parsed, version)
        for candidate in siblings:
            if candidate == version:
                continue
            candidate_parsed = parse_version(candidate)
            if candidate_parsed is None or candidate_parsed.major == 0:
                continue
            if not spec.match(candidate_parsed):
                continue
            ranked = precedence_key(candidate_parsed, candidate)
            if ranked > best:
                best = ranked
        return best[-1]

    def resolve_all(self, dup_map: DuplicatePackagesMap) -> DuplicatePackagesMap:
        """Assign ``resolved_version`` on every entry of a completely grouped map."""
        moved = 0
        for _, versions in dup_map.items():
            siblings = list(versions)
            for version, entry in versions.items():
                entry.resolved_version = self.pick(version, siblings)
                if entry.resolved_version != version:
                    moved += 1
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved versions",
                extra=extra_context(
                    event="resolve",
                    component="resolver",
                    action="resolve_all",
                    strategy=self.strategy.value,
                    count=len(dup_map),
                    moved=moved,
                ),
            )
        return dup_map
