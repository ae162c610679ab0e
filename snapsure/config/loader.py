"""Locate, read and validate the snapsure YAML configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .protocol import Config

CONFIG_NAME = "config.yaml"
SYSTEM_CONFIG = Path("/etc/snapsure") / CONFIG_NAME


def _user_config() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser(
        "~/.config"
    )
    return Path(xdg) / "snapsure" / CONFIG_NAME


def config_candidates() -> list[Path]:
    """Default config locations, most specific first."""
    return [_user_config(), SYSTEM_CONFIG]


def find_config_file(config_path: str | None = None) -> Path:
    """Return the config file to load.

    An explicit path must exist. Otherwise the first existing file of
    :func:`config_candidates` is used.
    """
    if config_path is not None:
        p = Path(config_path).expanduser()
        if not p.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        return p

    candidates = config_candidates()
    found = next((p for p in candidates if p.is_file()), None)
    if found is None:
        searched = ", ".join(str(p) for p in candidates)
        raise ConfigError(f"No config file found. Searched: {searched}")
    return found


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Unable to read {path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        raise ConfigError(f"Config file is empty: {path}")
    elif not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping: {path}")
    else:
        return raw


def load_config(config_path: str | None = None) -> Config:
    """Load and validate configuration from a YAML file.

    Raises:
        ConfigError: The file is missing, unreadable or invalid. For
            schema errors the pydantic ValidationError is the cause.
    """
    path = find_config_file(config_path)
    raw = _read_mapping(path)
    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e
