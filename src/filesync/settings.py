"""
Load sync settings from a key/value file.

The file uses dotenv syntax, one ``key=value`` per line::

    target_path=/data/outbox
    upload_url=http://files.example.com/upload
    upload_file_extensions=xls,xlsx,csv

Any key can be overridden by an environment variable named
``FILESYNC_<KEY>``, e.g. ``FILESYNC_UPLOAD_URL``.
"""

import logging
import os
from dataclasses import fields
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from .config import SyncConfig
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("conf/filesync.env")
ENV_PREFIX = "FILESYNC_"


def read_settings(path: Path, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Read raw settings from a file and apply environment overrides.

    Args:
        path: Settings file
        environ: Environment to read overrides from (default: os.environ)

    Returns:
        Raw string values keyed by setting name

    Raises:
        ConfigError: If the file does not exist
    """
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    logger.info(f"Loading settings from {path}")
    raw = {key.strip().lower(): value for key, value in dotenv_values(path).items() if value is not None}

    environ = os.environ if environ is None else environ
    for f in fields(SyncConfig):
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in environ:
            logger.debug(f"Setting {f.name} overridden by {env_key}")
            raw[f.name] = environ[env_key]

    return raw


def load_config(path: Path = DEFAULT_SETTINGS_PATH, environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """
    Load a SyncConfig from a settings file.

    Raises:
        ConfigError: If the file is missing or a setting is invalid
    """
    return SyncConfig.from_mapping(read_settings(Path(path), environ))
