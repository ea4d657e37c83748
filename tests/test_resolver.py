"""Tests for canonical version selection."""

import random

import pytest

from dedupe.models import DedupeStrategy, DuplicatePackagesMap
from dedupe.resolver import VersionResolver, parse_version, precedence_key

SIBLINGS = ["1.0.0", "1.0.4", "1.2.0", "2.0.0"]


@pytest.mark.parametrize("strategy,expected", [
    (DedupeStrategy.EXACT, {"1.0.0": "1.0.0", "1.0.4": "1.0.4", "1.2.0": "1.2.0", "2.0.0": "2.0.0"}),
    (DedupeStrategy.PATCH, {"1.0.0": "1.0.4", "1.0.4": "1.0.4", "1.2.0": "1.2.0", "2.0.0": "2.0.0"}),
    (DedupeStrategy.MINOR, {"1.0.0": "1.2.0", "1.0.4": "1.2.0", "1.2.0": "1.2.0", "2.0.0": "2.0.0"}),
])
def test_strategy_table(strategy, expected):
    resolver = VersionResolver(strategy)
    assert {v: resolver.pick(v, SIBLINGS) for v in SIBLINGS} == expected


class TestVersionResolver:
    """Edge cases of the compatibility rules."""

    @pytest.mark.parametrize("strategy", [DedupeStrategy.PATCH, DedupeStrategy.MINOR])
    def test_major_zero_resolves_to_itself(self, strategy):
        resolver = VersionResolver(strategy)
        siblings = ["0.1.0", "0.1.5", "0.2.0"]
        assert [resolver.pick(v, siblings) for v in siblings] == siblings

    def test_major_zero_never_chosen_as_target(self):
        resolver = VersionResolver(DedupeStrategy.MINOR)
        assert resolver.pick("1.0.0", ["0.9.0", "1.0.0"]) == "1.0.0"

    def test_invalid_versions_resolve_to_themselves(self):
        resolver = VersionResolver(DedupeStrategy.MINOR)
        siblings = ["latest", "1.0", "1.0.0", "1.5.0"]
        assert resolver.pick("latest", siblings) == "latest"
        assert resolver.pick("1.0", siblings) == "1.0"
        assert resolver.pick("1.0.0", siblings) == "1.5.0"

    def test_release_does_not_move_to_prerelease(self):
        resolver = VersionResolver(DedupeStrategy.PATCH)
        assert resolver.pick("1.0.0", ["1.0.0", "1.0.1-beta.1"]) == "1.0.0"

    def test_prerelease_moves_to_release(self):
        resolver = VersionResolver(DedupeStrategy.PATCH)
        assert resolver.pick("1.0.0-beta.1", ["1.0.0-beta.1", "1.0.0"]) == "1.0.0"

    def test_numeric_prerelease_identifiers_compare_numerically(self):
        parsed = [(parse_version(v), v) for v in ["1.0.0-beta.2", "1.0.0-beta.10", "1.0.0-alpha"]]
        ranked = sorted(parsed, key=lambda pair: precedence_key(*pair))
        assert [raw for _, raw in ranked] == ["1.0.0-alpha", "1.0.0-beta.2", "1.0.0-beta.10"]

    def test_result_is_never_lower(self):
        resolver = VersionResolver(DedupeStrategy.MINOR)
        for version in SIBLINGS:
            chosen = resolver.pick(version, SIBLINGS)
            assert parse_version(chosen) >= parse_version(version)

    def test_pick_is_independent_of_sibling_order(self):
        resolver = VersionResolver(DedupeStrategy.MINOR)
        siblings = ["1.0.0", "1.3.0", "1.2.9", "1.3.0-rc.1", "2.1.0", "1.0.1"]
        expected = resolver.pick("1.0.0", siblings)
        rng = random.Random(11)
        for _ in range(10):
            rng.shuffle(siblings)
            assert resolver.pick("1.0.0", siblings) == expected
        assert expected == "1.3.0"

    def test_range_for(self):
        assert VersionResolver(DedupeStrategy.PATCH).range_for("1.2.3").match(parse_version("1.2.9"))
        assert not VersionResolver(DedupeStrategy.PATCH).range_for("1.2.3").match(parse_version("1.3.0"))
        assert VersionResolver(DedupeStrategy.MINOR).range_for("1.2.3").match(parse_version("1.9.0"))
        assert VersionResolver(DedupeStrategy.MINOR).range_for("not-a-version") is None


def test_resolve_all_assigns_every_entry():
    dup_map = DuplicatePackagesMap()
    for version in SIBLINGS:
        dup_map.add("p", version, f"node_modules/x{version}/node_modules/p", "{}")
    dup_map.add("solo", "3.0.0", "node_modules/solo", "{}")

    VersionResolver(DedupeStrategy.MINOR).resolve_all(dup_map)

    assert dup_map.get("p", "1.0.0").resolved_version == "1.2.0"
    assert dup_map.get("p", "2.0.0").resolved_version == "2.0.0"
    assert dup_map.get("solo", "3.0.0").resolved_version == "3.0.0"
    for name, _, entry in dup_map.entries():
        # Every resolution target is itself an installed version.
        assert dup_map.get(name, entry.resolved_version) is not None
