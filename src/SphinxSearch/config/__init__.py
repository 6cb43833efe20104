from __future__ import annotations

"""Public configuration API for SphinxSearch."""

from SphinxSearch.config.app import (
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from SphinxSearch.config.connection import ConnectionConfig
from SphinxSearch.config.runtime import RuntimeConfig
from SphinxSearch.config.search import SearchConfig

__all__ = [
    "AppConfig",
    "ConnectionConfig",
    "RuntimeConfig",
    "SearchConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
