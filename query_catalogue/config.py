"""
Configuration loading for the query catalogue tools.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict

import tomli

# Setup logger for this module
logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'mongodb': {
        'database': 'query-catalogue',
        'server_selection_timeout_ms': 5000,
    },
    'output': {
        'indent': 2,
    },
}


def load_config(config_path: str = "config.toml") -> Dict[str, Any]:
    """
    Load configuration from TOML file, filling in defaults for missing keys

    A relative path that does not exist in the working directory is looked up next to the
    project root instead.

    Raises:
        ValueError: If the file is missing or is not valid TOML
    """
    if not Path(config_path).exists():
        config_path = Path(__file__).parent.parent / "config.toml"

    try:
        with open(config_path, 'rb') as f:
            loaded = tomli.load(f)
    except (FileNotFoundError, tomli.TOMLDecodeError) as e:
        logger.error("Error loading configuration file %s: %s", config_path, e)
        raise ValueError(f"Could not load configuration from {config_path}: {e}") from e

    config = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    logger.debug("Loaded configuration from %s", config_path)
    return config
