"""Tests for CLI command composition and execution."""

from __future__ import annotations

import json
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))
sys.path.insert(0, str(REPO_ROOT / "test"))

from SphinxSearch.builder import QueryBuilder
from SphinxSearch.cli.commands import CountCommand, SearchCommand
from SphinxSearch.cli.ui import cli
from SphinxSearch.config import parse_config_dict
from SphinxSearch.core.models import SearchResult
from SphinxSearch.renderers import OutputWriter
from SphinxSearch.transport import Connection
from fake_searchd import make_connection

_CONFIG_YAML = """
log:
  level: ERROR
  to_file: false
  dir: log

connection:
  host: 127.0.0.1
  port: 9306

search:
  index: idx_item
  limit: 5
  show_meta: true
  facets:
    - brand_id
"""


def _config(**search_overrides):
    search = {"index": "idx_item", "limit": 5, "show_meta": True, "facets": ["brand_id"]}
    search.update(search_overrides)
    return parse_config_dict(
        {
            "log": {"level": "ERROR", "to_file": False, "dir": "log"},
            "connection": {"host": "127.0.0.1", "port": 9306},
            "search": search,
        }
    )


class _RecordingWriter(OutputWriter):
    def __init__(self) -> None:
        self.results: list[tuple[SearchResult, str, str | None]] = []
        self.scalars: list[tuple[str, object]] = []

    def write_search_result(self, result: SearchResult, *, index: str, match: str | None) -> None:
        self.results.append((result, index, match))

    def write_scalar(self, name: str, value: object) -> None:
        self.scalars.append((name, value))


class TestSearchCommand(unittest.TestCase):
    def test_build_query_uses_config_defaults(self) -> None:
        connection, _ = make_connection()
        command = SearchCommand(
            config=_config(options={"ranker": "bm25"}),
            connection=connection,
            output_writer=_RecordingWriter(),
            match="pencil",
        )

        sql, params = QueryBuilder().build(command.build_query())

        self.assertEqual(
            sql,
            "SELECT * FROM `idx_item` WHERE MATCH(%(qp0)s) LIMIT 5 OPTION ranker = bm25 FACET `brand_id`; SHOW META",
        )
        self.assertEqual(params, {"qp0": "pencil"})

    def test_cli_overrides_replace_config(self) -> None:
        connection, _ = make_connection()
        command = SearchCommand(
            config=_config(),
            connection=connection,
            output_writer=_RecordingWriter(),
            index="idx_other",
            facets=("group_id",),
            show_meta=False,
            limit=2,
        )

        sql, _ = QueryBuilder().build(command.build_query())

        self.assertEqual(sql, "SELECT * FROM `idx_other` LIMIT 2 FACET `group_id`")

    def test_execute_writes_result(self) -> None:
        connection, _ = make_connection(
            [[{"id": 1}], [{"brand_id": 5, "count(*)": 1}], [{"Variable_name": "total", "Value": "1"}]]
        )
        writer = _RecordingWriter()
        command = SearchCommand(config=_config(), connection=connection, output_writer=writer, match="pencil")

        result = command.execute()

        self.assertEqual(writer.results, [(result, "idx_item", "pencil")])
        self.assertEqual(result.meta, {"total": "1"})

    def test_count_command(self) -> None:
        connection, fake = make_connection([[{"count(*)": 12}]])
        writer = _RecordingWriter()

        total = CountCommand(config=_config(), connection=connection, output_writer=writer, match="pen").execute()

        self.assertEqual(total, 12)
        self.assertEqual(writer.scalars, [("count", 12)])
        self.assertEqual(fake.executed[0][0], "SELECT COUNT(*) FROM `idx_item` WHERE MATCH(%(qp0)s)")


class TestCliEntry(unittest.TestCase):
    def _invoke(self, connection: Connection, args: list[str]):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("sphinx.yml").write_text(_CONFIG_YAML, encoding="utf-8")
            with patch.object(Connection, "from_config", return_value=connection) as from_config:
                result = runner.invoke(cli, ["--config", "sphinx.yml", *args])
        return result, from_config

    def test_search_json_output(self) -> None:
        connection, fake = make_connection(
            [[{"id": 1}], [{"brand_id": 5, "count(*)": 3}], [{"Variable_name": "total_found", "Value": "1"}]]
        )

        result, from_config = self._invoke(connection, ["search", "--match", "pencil", "--format", "json"])

        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertEqual(payload["index"], "idx_item")
        self.assertEqual(payload["hits"], [{"id": 1}])
        self.assertEqual(payload["facets"]["brand_id"][0]["count"], 3)
        self.assertEqual(payload["meta"], {"total_found": "1"})
        from_config.assert_called_once()
        self.assertTrue(fake.closed)

    def test_count_json_output(self) -> None:
        connection, _ = make_connection([[{"count(*)": 7}]])

        result, _ = self._invoke(connection, ["count", "--format", "json"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output), {"count": 7})

    def test_failure_aborts(self) -> None:
        connection, _ = make_connection([[{"id": 1}]])

        result, _ = self._invoke(connection, ["search", "--facet", "brand_id"])

        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
