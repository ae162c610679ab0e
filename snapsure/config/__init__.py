"""Configuration types and loading."""

from ..errors import ConfigError
from .loader import find_config_file, load_config
from .protocol import (
    Config,
    FilesystemSpec,
    HostProfile,
    LvmName,
    Privilege,
    ScannerConfig,
)
from .resolution import current_hostname, resolve_host_profile

__all__ = [
    "Config",
    "ConfigError",
    "FilesystemSpec",
    "HostProfile",
    "LvmName",
    "Privilege",
    "ScannerConfig",
    "current_hostname",
    "find_config_file",
    "load_config",
    "resolve_host_profile",
]
