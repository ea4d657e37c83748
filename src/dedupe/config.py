"""Configuration for the duplicate map build.

Precedence, lowest to highest: built-in defaults, config file (YAML or JSON),
CLI arguments. Exclude patterns from the CLI are added to those from the file.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

import yaml

from constants import Constants

from .errors import ConfigError
from .models import DedupeStrategy

logger = logging.getLogger(__name__)


@dataclass
class DedupeConfig:
    """Settings consumed from the host build tool or the CLI."""

    project_root: str = "."
    strategy: DedupeStrategy = DedupeStrategy.EXACT
    ignore: List[str] = field(default_factory=list)
    lockfile: Optional[str] = None
    cache_dir: Optional[str] = None
    read_concurrency: int = Constants.MANIFEST_READ_CONCURRENCY

    @property
    def root(self) -> str:
        return os.path.abspath(self.project_root)

    @property
    def resolved_cache_dir(self) -> str:
        cache_dir = self.cache_dir or Constants.CACHE_DIR
        return cache_dir if os.path.isabs(cache_dir) else os.path.join(self.root, cache_dir)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: Optional["DedupeConfig"] = None) -> "DedupeConfig":
        """Apply recognised keys from a config document on top of ``base``.

        Both camelCase and snake_case keys are accepted.
        """
        config = replace(base) if base is not None else cls()
        config.ignore = list(config.ignore)

        def _pick(*names: str) -> Any:
            for name in names:
                if name in data and data[name] is not None:
                    return data[name]
            return None

        root = _pick("projectRoot", "project_root", "root")
        if root is not None:
            config.project_root = str(root)
        strategy = _pick("strategy")
        if strategy is not None:
            config.strategy = DedupeStrategy.parse(str(strategy))
        ignore = _pick("ignore")
        if ignore is not None:
            if isinstance(ignore, str):
                ignore = [ignore]
            if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
                raise ConfigError("'ignore' must be a list of glob patterns")
            config.ignore = list(ignore)
        lockfile = _pick("lockfile", "lockFile")
        if lockfile is not None:
            config.lockfile = str(lockfile)
        cache_dir = _pick("cacheDir", "cache_dir")
        if cache_dir is not None:
            config.cache_dir = str(cache_dir)
        concurrency = _pick("readConcurrency", "read_concurrency")
        if concurrency is not None:
            try:
                config.read_concurrency = max(1, int(concurrency))
            except (TypeError, ValueError):
                raise ConfigError(f"Invalid read concurrency: {concurrency!r}") from None
        return config

    @classmethod
    def from_args(cls, args: Any) -> "DedupeConfig":
        """Create config from a parsed CLI namespace (optionally with ``--config``)."""
        config = cls()
        config_path = getattr(args, "CONFIG", None)
        if config_path:
            config = cls.from_mapping(load_config_file(config_path), config)
            logger.info("Loaded config from: %s", config_path)

        if getattr(args, "DIRECTORY", None):
            config.project_root = args.DIRECTORY
        if getattr(args, "STRATEGY", None):
            config.strategy = DedupeStrategy.parse(args.STRATEGY)
        extra_ignore = getattr(args, "IGNORE", None) or []
        if extra_ignore:
            config.ignore = list(config.ignore) + list(extra_ignore)
        if getattr(args, "LOCKFILE", None):
            config.lockfile = args.LOCKFILE
        if getattr(args, "CACHE_DIR", None):
            config.cache_dir = args.CACHE_DIR
        return config


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load a YAML or JSON config document.

    A top-level ``dedupe:`` section is used when present.

    Raises:
        ConfigError: if the file is missing, unparseable or not a mapping.
    """
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.lower().endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{Constants.CONFIG_SECTION}' section in {config_path} must be a mapping")
    return section
