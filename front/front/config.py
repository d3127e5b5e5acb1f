"""Runtime settings.

Defaults come from the environment (a ``.env`` in the working directory
is loaded by the entrypoint), command-line flags override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from bridge.client import CONNECTION_MODES


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


@dataclass(slots=True)
class Settings:
    """Listen address, backend address and bridge tuning for one proxy process."""

    host: str = "0.0.0.0"
    port: int = 3000
    electrumx_host: str = "127.0.0.1"
    electrumx_port: int = 50010
    connection_mode: str = "shared"
    read_timeout: float = 5.0
    connect_timeout: float = 5.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        d = cls()
        return cls(
            host=os.getenv("PROXY_HOST", d.host),
            port=_env_int("PROXY_PORT", d.port),
            electrumx_host=os.getenv("ELECTRUMX_HOST", d.electrumx_host),
            electrumx_port=_env_int("ELECTRUMX_PORT", d.electrumx_port),
            connection_mode=os.getenv("PROXY_CONNECTION_MODE", d.connection_mode),
            read_timeout=_env_float("PROXY_READ_TIMEOUT", d.read_timeout),
            connect_timeout=_env_float("PROXY_CONNECT_TIMEOUT", d.connect_timeout),
            log_level=os.getenv("LOG_LEVEL", d.log_level),
        )

    def validate(self) -> "Settings":
        """Raise ``ValueError`` on settings the proxy cannot run with."""
        if self.connection_mode not in CONNECTION_MODES:
            raise ValueError(
                f"connection mode must be one of {CONNECTION_MODES}, got {self.connection_mode!r}"
            )
        if self.read_timeout <= 0 or self.connect_timeout <= 0:
            raise ValueError("timeouts must be positive")
        for name in ("port", "electrumx_port"):
            value = getattr(self, name)
            if not 0 < value < 65536:
                raise ValueError(f"{name} out of range: {value}")
        return self
