"""Tests for configuration loading and CLI merging."""

import json
import os
from types import SimpleNamespace

import pytest

from dedupe.config import DedupeConfig, load_config_file
from dedupe.errors import ConfigError
from dedupe.models import DedupeStrategy


def _args(**overrides):
    base = dict(CONFIG=None, DIRECTORY=None, STRATEGY=None, IGNORE=[], LOCKFILE=None, CACHE_DIR=None)
    base.update(overrides)
    return SimpleNamespace(**base)


class TestDedupeConfig:
    """Defaults and derived paths."""

    def test_defaults(self):
        config = DedupeConfig()
        assert config.strategy is DedupeStrategy.EXACT
        assert config.ignore == []
        assert config.root == os.path.abspath(".")
        assert config.resolved_cache_dir == os.path.join(config.root, "temp")

    def test_absolute_cache_dir_is_kept(self, tmp_path):
        config = DedupeConfig(project_root=str(tmp_path), cache_dir=str(tmp_path / "elsewhere"))
        assert config.resolved_cache_dir == str(tmp_path / "elsewhere")

    def test_from_mapping_accepts_camel_and_snake_case(self):
        config = DedupeConfig.from_mapping({
            "projectRoot": "web",
            "strategy": "minor",
            "ignore": "node_modules/.cache/**",
            "cache_dir": ".dedupe",
            "readConcurrency": "4",
        })
        assert config.project_root == "web"
        assert config.strategy is DedupeStrategy.MINOR
        assert config.ignore == ["node_modules/.cache/**"]
        assert config.cache_dir == ".dedupe"
        assert config.read_concurrency == 4

    @pytest.mark.parametrize("data", [
        {"strategy": "major"},
        {"ignore": [1, 2]},
        {"readConcurrency": "many"},
    ])
    def test_from_mapping_rejects_invalid(self, data):
        with pytest.raises(ConfigError):
            DedupeConfig.from_mapping(data)


class TestFromArgs:
    """CLI values override the config file."""

    def test_cli_only(self, tmp_path):
        config = DedupeConfig.from_args(_args(DIRECTORY=str(tmp_path), STRATEGY="patch", IGNORE=["x/**"]))
        assert config.project_root == str(tmp_path)
        assert config.strategy is DedupeStrategy.PATCH
        assert config.ignore == ["x/**"]

    def test_file_then_cli(self, tmp_path):
        path = tmp_path / "dedupe.yml"
        path.write_text(
            "dedupe:\n"
            "  strategy: minor-compatible\n"
            "  ignore:\n"
            "    - node_modules/.cache/**\n"
            "  lockfile: yarn.lock\n"
        )
        config = DedupeConfig.from_args(_args(CONFIG=str(path), STRATEGY="exact", IGNORE=["build/**"]))
        assert config.strategy is DedupeStrategy.EXACT
        assert config.ignore == ["node_modules/.cache/**", "build/**"]
        assert config.lockfile == "yarn.lock"


class TestLoadConfigFile:
    """YAML and JSON documents."""

    def test_json_without_section(self, tmp_path):
        path = tmp_path / "dedupe.json"
        path.write_text(json.dumps({"strategy": "patch"}))
        assert load_config_file(str(path)) == {"strategy": "patch"}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_file(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config_file(str(tmp_path / "nope.yml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("strategy: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config_file(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config_file(str(path))
