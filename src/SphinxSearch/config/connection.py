"""Connection domain configuration for the searchd MySQL listener."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from SphinxSearch.config.common import (
    expect_int,
    expect_optional_str,
    expect_str,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """searchd connection settings.

    Attributes:
        host: Daemon host name.
        port: SphinxQL listener port (9306 by default in searchd).
        charset: Connection charset.
        connect_timeout: Connect timeout in seconds.
        user: Optional user name sent on handshake.
        password_env: Optional environment variable holding the password.
    """

    host: str
    port: int
    charset: str = "utf8"
    connect_timeout: int = 10
    user: str | None = None
    password_env: str | None = None

    def resolve_password(self) -> str | None:
        """Return the password from `password_env`, if configured."""
        if not self.password_env:
            return None
        return os.getenv(self.password_env)


def load_connection(raw: Mapping[str, Any]) -> ConnectionConfig:
    """Load the `connection` section."""
    section = get_section(raw, "connection", required=True)
    return ConnectionConfig(
        host=expect_str(get_required_value(section, "host", "connection.host"), "connection.host"),
        port=expect_int(get_required_value(section, "port", "connection.port"), "connection.port"),
        charset=expect_str(section.get("charset", "utf8"), "connection.charset"),
        connect_timeout=expect_int(section.get("connect_timeout", 10), "connection.connect_timeout"),
        user=expect_optional_str(section.get("user"), "connection.user"),
        password_env=expect_optional_str(section.get("password_env"), "connection.password_env"),
    )


def check_connection(config: ConnectionConfig) -> None:
    """Validate connection domain constraints."""
    if not config.host.strip():
        raise ValueError("connection.host must not be empty")
    if not 0 < config.port < 65536:
        raise ValueError("connection.port must be in range 1..65535")
    if config.connect_timeout <= 0:
        raise ValueError("connection.connect_timeout must be > 0")
