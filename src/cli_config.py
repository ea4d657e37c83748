"""Shared CLI setup: logging configuration and DedupeConfig loading.

Every subcommand calls ``setup_logging`` first, then ``load_config`` which exits
with ``ExitCodes.CONFIG_ERROR`` on invalid configuration.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

from common.logging_utils import configure_logging
from constants import Constants, ExitCodes
from dedupe.config import DedupeConfig
from dedupe.errors import ConfigError

logger = logging.getLogger(__name__)


def setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments.

    Args:
        args: Parsed CLI arguments.
    """
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.LOG_LEVEL_ENV] = str(args.LOG_LEVEL).upper()

    configure_logging()

    # Ensure runtime CLI flag wins regardless of environment defaults
    level_name = str(getattr(args, "LOG_LEVEL", None) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    logging.getLogger().setLevel(level_value)

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def load_config(args: Any) -> DedupeConfig:
    """Build the DedupeConfig for this invocation or exit on configuration errors."""
    try:
        config = DedupeConfig.from_args(args)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(ExitCodes.CONFIG_ERROR.value)
    if not os.path.isdir(config.root):
        logger.warning("Project root not found: %s", config.root)
    return config
