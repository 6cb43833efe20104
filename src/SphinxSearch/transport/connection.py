"""Connection to a searchd daemon over its MySQL protocol listener."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping

import pymysql
from pymysql.constants import CLIENT

from SphinxSearch.builder import QueryBuilder, escape_match_value
from SphinxSearch.core.errors import TransportError
from SphinxSearch.transport.command import Command
from SphinxSearch.utils.log import log

if TYPE_CHECKING:
    from SphinxSearch.config import ConnectionConfig

Connector = Callable[..., Any]


def pymysql_connector(**kwargs: Any) -> Any:
    """Open a PyMySQL connection able to return several result sets."""
    return pymysql.connect(client_flag=CLIENT.MULTI_STATEMENTS, autocommit=True, **kwargs)


class Connection:
    """Lazily opened DB-API connection plus the SphinxQL query builder.

    Any PEP 249 connector may be injected; its cursors must support
    `nextset()` for faceted searches.

    Supports context manager protocol for automatic connection cleanup.
    """

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 9306,
        charset: str = "utf8",
        connect_timeout: int = 10,
        user: str | None = None,
        password: str | None = None,
        connector: Connector | None = None,
        driver_errors: tuple[type[BaseException], ...] = (pymysql.Error,),
    ) -> None:
        self.host = host
        self.port = port
        self.charset = charset
        self.connect_timeout = connect_timeout
        self.user = user
        self.password = password
        self.driver_errors = driver_errors
        self._connector = connector or pymysql_connector
        self._conn: Any = None
        self._builder: QueryBuilder | None = None

    @classmethod
    def from_config(cls, config: ConnectionConfig, *, password: str | None = None, **kwargs: Any) -> Connection:
        """Create a connection from validated configuration."""
        return cls(
            host=config.host,
            port=config.port,
            charset=config.charset,
            connect_timeout=config.connect_timeout,
            user=config.user,
            password=password,
            **kwargs,
        )

    @property
    def is_active(self) -> bool:
        return self._conn is not None

    def open(self) -> Any:
        """Open the underlying connection if needed and return it.

        Raises:
            TransportError: If the daemon cannot be reached.
        """
        if self._conn is not None:
            return self._conn
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "charset": self.charset,
            "connect_timeout": self.connect_timeout,
        }
        if self.user is not None:
            kwargs["user"] = self.user
        if self.password is not None:
            kwargs["password"] = self.password
        log.debug("Opening searchd connection: %s:%s", self.host, self.port)
        try:
            self._conn = self._connector(**kwargs)
        except self.driver_errors as error:
            raise TransportError(f"Unable to connect to searchd at {self.host}:{self.port}: {error}") from error
        return self._conn

    def close(self) -> None:
        """Close the underlying connection; safe to call more than once."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.close()
        except self.driver_errors as error:
            log.warning("Closing searchd connection failed: %s", error)

    def cursor(self) -> Any:
        return self.open().cursor()

    def get_query_builder(self) -> QueryBuilder:
        if self._builder is None:
            self._builder = QueryBuilder()
        return self._builder

    def create_command(self, sql: str | None = None, params: Mapping[str, Any] | None = None) -> Command:
        return Command(self, sql, params)

    def escape_match_value(self, text: str) -> str:
        """Escape fulltext operators in `text`; see `builder.escape_match_value`."""
        return escape_match_value(text)

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
