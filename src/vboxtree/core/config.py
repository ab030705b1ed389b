#!/usr/bin/env python3
"""
VBOXTREE CONFIG
---------------
Configuration loading from environment variables and vboxtree.toml.

Priority: environment variables > vboxtree.toml > defaults.
CLI flags are applied on top by the caller.

Author: VBoxTree Team
Date: 2026-10-19
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from vboxtree.core.errors import ConfigError

CONFIG_FILENAME = "vboxtree.toml"
_DEFAULT_TIMEOUT = 60


@dataclass
class VBoxTreeConfig:
    """Top-level VBoxTree configuration."""

    vboxmanage: Optional[str] = None   # Explicit VBoxManage path; resolved per platform when None
    timeout: int = _DEFAULT_TIMEOUT    # Seconds allowed per VBoxManage call
    log_level: str = "WARNING"
    indent: int = 2                    # Spaces per tree level in text output


def _read_toml(path: Path) -> dict:
    try:
        return tomllib.loads(path.read_text(encoding='utf-8'))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Unable to read config '{path}': {e}") from e


def _candidate_paths():
    return [Path.cwd() / CONFIG_FILENAME, Path.home() / ".vboxtree" / CONFIG_FILENAME]


def load_config(config_path: Optional[Path] = None) -> VBoxTreeConfig:
    """Load configuration from environment variables and optional vboxtree.toml.

    Raises:
        ConfigError: an explicit config_path is missing, or a file is not valid TOML.
    """
    file_data: dict = {}
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        file_data = _read_toml(config_path)
    else:
        for candidate in _candidate_paths():
            if candidate.exists():
                file_data = _read_toml(candidate)
                break

    section = file_data.get("vboxtree", file_data)

    try:
        timeout = int(os.getenv("VBOXTREE_TIMEOUT", section.get("timeout", _DEFAULT_TIMEOUT)))
        indent = int(section.get("indent", 2))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    return VBoxTreeConfig(
        vboxmanage=os.getenv("VBOXTREE_VBOXMANAGE", section.get("vboxmanage")),
        timeout=timeout,
        log_level=os.getenv("VBOXTREE_LOG_LEVEL", section.get("log_level", "WARNING")),
        indent=indent,
    )
