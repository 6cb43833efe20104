"""Transport layer: connection, commands and result set readers."""

from __future__ import annotations

from SphinxSearch.transport.command import Command, DataReader
from SphinxSearch.transport.connection import Connection, pymysql_connector

__all__ = [
    "Command",
    "Connection",
    "DataReader",
    "pymysql_connector",
]
