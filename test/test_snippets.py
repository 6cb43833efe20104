"""Tests for snippet enrichment."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))
sys.path.insert(0, str(REPO_ROOT / "test"))

from SphinxSearch.core.errors import InvalidCallError, ResultSetError
from SphinxSearch.core.query import Query
from SphinxSearch.core.snippets import call_snippets, fill_up_snippets, first_index
from fake_searchd import make_connection


def _sources(rows):
    return [f"text of {row['id']}" for row in rows]


class TestFillUpSnippets(unittest.TestCase):
    def test_without_callback_rows_are_unchanged(self) -> None:
        connection, fake = make_connection()
        rows = [{"id": 1}]

        self.assertIs(fill_up_snippets(Query(connection).from_("idx").match("x"), rows), rows)
        self.assertEqual(fake.executed, [])

    def test_empty_rows_skip_callback(self) -> None:
        calls: list = []
        query = Query().from_("idx").snippet_callback(calls.append)

        self.assertEqual(fill_up_snippets(query, []), [])
        self.assertEqual(calls, [])

    def test_missing_match_fails_before_callback_and_execution(self) -> None:
        connection, fake = make_connection()
        calls: list = []
        query = Query(connection).from_("idx").snippet_callback(lambda rows: calls.append(rows) or [])

        with self.assertRaises(InvalidCallError) as ctx:
            fill_up_snippets(query, [{"id": 1}])
        self.assertEqual(ctx.exception.field, "match")
        self.assertEqual(calls, [])
        self.assertEqual(fake.executed, [])

    def test_snippets_assigned_by_position(self) -> None:
        connection, fake = make_connection([[{"snippet": "a"}, {"snippet": "b"}]])
        query = (
            Query(connection)
            .from_("idx_item")
            .match("pencil")
            .snippet_callback(_sources)
            .snippet_options({"limit": 50, "html_strip_mode": "strip"})
        )
        rows = [{"id": 1}, {"id": 2}]

        out = fill_up_snippets(query, rows)

        self.assertEqual(out, [{"id": 1, "snippet": "a"}, {"id": 2, "snippet": "b"}])
        self.assertEqual(rows, [{"id": 1}, {"id": 2}])
        sql, params = fake.executed[0]
        self.assertEqual(
            sql,
            "CALL SNIPPETS((%(qp0)s, %(qp1)s), %(qp2)s, %(qp3)s, %(qp4)s AS limit, %(qp5)s AS html_strip_mode)",
        )
        self.assertEqual(
            params,
            {
                "qp0": "text of 1",
                "qp1": "text of 2",
                "qp2": "idx_item",
                "qp3": "pencil",
                "qp4": 50,
                "qp5": "strip",
            },
        )

    def test_callback_count_mismatch(self) -> None:
        connection, fake = make_connection()
        query = Query(connection).from_("idx").match("x").snippet_callback(lambda rows: ["only one"])

        with self.assertRaises(ResultSetError):
            fill_up_snippets(query, [{"id": 1}, {"id": 2}])
        self.assertEqual(fake.executed, [])

    def test_daemon_snippet_count_mismatch(self) -> None:
        connection, _ = make_connection([[{"snippet": "a"}]])
        query = Query(connection).from_("idx").match("x").snippet_callback(_sources)

        with self.assertRaises(ResultSetError):
            fill_up_snippets(query, [{"id": 1}, {"id": 2}])

    def test_one_fills_single_row(self) -> None:
        connection, _ = make_connection([[{"id": 9}]], [[{"snippet": "s"}]])
        query = Query(connection).from_("idx").match("x").snippet_callback(_sources)

        self.assertEqual(query.one(), {"id": 9, "snippet": "s"})


class TestCallSnippets(unittest.TestCase):
    def test_explicit_index(self) -> None:
        connection, fake = make_connection([[{"snippet": "z"}]])
        query = Query(connection).from_("idx_a").match("x")

        self.assertEqual(call_snippets(query, ["source"], index="idx_b"), ["z"])
        self.assertEqual(fake.executed[0][1]["qp1"], "idx_b")

    def test_first_index_from_alias_mapping(self) -> None:
        self.assertEqual(first_index(Query().from_({"i": "idx_item"})), "idx_item")

    def test_first_index_requires_from(self) -> None:
        with self.assertRaises(InvalidCallError) as ctx:
            first_index(Query())
        self.assertEqual(ctx.exception.field, "from_")


if __name__ == "__main__":
    unittest.main()
