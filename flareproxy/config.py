"""Adapter configuration.

The configuration is resolved once at startup and handed to the translator and
the application factories. Nothing reads the environment after that point.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from flareproxy.vars import DEFAULT_FLARESOLVERR_URL, DEFAULT_HOST, DEFAULT_PORT


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name, "").strip()
    return value or None


def _parse_port(name: str, raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"{name} must be between 1 and 65535, got {port}")
    return port


@dataclass(frozen=True)
class AdapterConfig:
    """Immutable runtime settings shared by both listeners."""

    flaresolverr_url: str = DEFAULT_FLARESOLVERR_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    proxy_port: Optional[int] = None

    @property
    def proxy_enabled(self) -> bool:
        return self.proxy_port is not None

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "AdapterConfig":
        """Build a configuration from ``FLARESOLVERR_URL``, ``HOST``, ``PORT`` and ``PROXY_PORT``.

        Empty variables are treated as unset. Invalid ports raise ``ValueError``.
        """
        if environ is None:
            environ = os.environ

        port_raw = _env(environ, "PORT")
        proxy_port_raw = _env(environ, "PROXY_PORT")
        return cls(
            flaresolverr_url=_env(environ, "FLARESOLVERR_URL") or DEFAULT_FLARESOLVERR_URL,
            host=_env(environ, "HOST") or DEFAULT_HOST,
            port=_parse_port("PORT", port_raw) if port_raw else DEFAULT_PORT,
            proxy_port=(
                _parse_port("PROXY_PORT", proxy_port_raw) if proxy_port_raw else None
            ),
        )
