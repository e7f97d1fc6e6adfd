"""Configuration loading and logging setup shared by the CLI entry points."""

import logging
from pathlib import Path

import yaml

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_config(config_path: Path) -> dict:
    """Load a YAML configuration file."""
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def configure_logging(config: dict) -> None:
    """Configure root logging from the ``logging`` section of a config.

    Args:
        config: Loaded configuration; ``logging.log_level`` defaults to INFO
    """
    log_level = config.get("logging", {}).get("log_level", "INFO")
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, log_level.upper(), logging.INFO))
