"""Host resolution: pick the profile for the machine we run on."""

from __future__ import annotations

import socket

from ..errors import ConfigError
from .protocol import Config, HostProfile


def current_hostname() -> str:
    return socket.gethostname()


def resolve_host_profile(
    config: Config, hostname: str | None = None
) -> HostProfile:
    """Return the profile for ``hostname`` (default: this host).

    Raises ConfigError when the host is not listed in the config.
    """
    name = hostname if hostname is not None else current_hostname()
    profile = config.hosts.get(name)
    if profile is None:
        known = ", ".join(sorted(config.hosts)) or "none"
        raise ConfigError(
            f"Host '{name}' not found in config (known hosts: {known})"
        )
    else:
        return profile
