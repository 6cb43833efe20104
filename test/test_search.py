"""Tests for faceted multi result set searches."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

import pymysql

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))
sys.path.insert(0, str(REPO_ROOT / "test"))

from SphinxSearch.core.errors import ResultSetError, TransportError
from SphinxSearch.core.executor import MultiResultReader, ResultSetPhase
from SphinxSearch.core.expression import Expression
from SphinxSearch.core.facets import FacetSpec
from SphinxSearch.core.models import SearchResult
from SphinxSearch.core.query import Query
from fake_searchd import make_connection

META_ROWS = [{"Variable_name": "total_found", "Value": "1"}]


class TestSearch(unittest.TestCase):
    def test_hits_facet_and_meta(self) -> None:
        connection, fake = make_connection(
            [
                [{"id": 1}],
                [{"brand_id": "5", "count(*)": "3"}],
                META_ROWS,
            ]
        )
        query = Query().from_("idx_item").match("pencil").facets(["brand_id"]).show_meta(True)

        result = query.search(connection)

        self.assertEqual(result.hits, [{"id": 1}])
        self.assertEqual(
            result.facets,
            {"brand_id": [{"brand_id": "5", "count(*)": "3", "value": "5", "count": "3"}]},
        )
        self.assertEqual(result.meta, {"total_found": "1"})
        self.assertEqual(len(fake.executed), 1)
        self.assertEqual(
            fake.executed[0],
            ("SELECT * FROM `idx_item` WHERE MATCH(%(qp0)s) FACET `brand_id`; SHOW META", {"qp0": "pencil"}),
        )

    def test_drains_exactly_declared_result_sets(self) -> None:
        connection, fake = make_connection(
            [
                [{"id": 1}, {"id": 2}],
                [{"brand_id": 5, "count(*)": 2}],
                [{"group_id": 7, "count(*)": 1}, {"group_id": 8, "count(*)": 1}],
                META_ROWS,
            ]
        )
        query = Query(connection).from_("idx").facets(["brand_id", "group_id"]).show_meta(True)

        result = query.search()

        self.assertEqual(fake.nextset_calls, 3)
        self.assertEqual([row["value"] for row in result.facets["group_id"]], [7, 8])
        self.assertTrue(fake.cursors[0].closed)

    def test_without_meta_returns_empty_meta(self) -> None:
        connection, fake = make_connection([[{"id": 3}]])

        result = Query(connection).from_("idx").search()

        self.assertEqual(result, SearchResult(hits=[{"id": 3}], facets={}, meta={}))
        self.assertEqual(fake.nextset_calls, 0)

    def test_meta_later_duplicate_variable_wins(self) -> None:
        connection, _ = make_connection(
            [
                [{"id": 1}],
                [
                    {"Variable_name": "total", "Value": "1"},
                    {"Variable_name": "time", "Value": "0.001"},
                    {"Variable_name": "total", "Value": "2"},
                ],
            ]
        )

        result = Query(connection).from_("idx").show_meta(True).search()

        self.assertEqual(result.meta, {"total": "2", "time": "0.001"})

    def test_meta_like_pattern_is_bound_and_drained(self) -> None:
        connection, fake = make_connection(
            [
                [{"id": 1}],
                [{"brand_id": 5, "count(*)": 2}],
                [{"Variable_name": "total", "Value": "1"}, {"Variable_name": "total_found", "Value": "9"}],
            ]
        )
        query = Query(connection).from_("idx").match("pencil").facets(["brand_id"]).show_meta("total%")

        result = query.search()

        self.assertEqual(
            fake.executed[0],
            (
                "SELECT * FROM `idx` WHERE MATCH(%(qp0)s) FACET `brand_id`; SHOW META LIKE %(qp1)s",
                {"qp0": "pencil", "qp1": "total%"},
            ),
        )
        self.assertEqual(result.meta, {"total": "1", "total_found": "9"})
        self.assertEqual(fake.nextset_calls, 2)

    def test_meta_expression_pattern_is_drained(self) -> None:
        connection, fake = make_connection([[{"id": 1}], [{"Variable_name": "time", "Value": "0.002"}]])
        query = Query(connection).from_("idx").show_meta(Expression("%(pattern)s", {"pattern": "ti%"}))

        result = query.search()

        self.assertEqual(fake.executed[0], ("SELECT * FROM `idx`; SHOW META LIKE %(pattern)s", {"pattern": "ti%"}))
        self.assertEqual(result.meta, {"time": "0.002"})

    def test_missing_result_set_is_reported(self) -> None:
        connection, fake = make_connection(
            [
                [{"id": 1}],
                [{"brand_id": 5, "count(*)": 2}],
            ]
        )
        query = Query(connection).from_("idx").facets(["brand_id", "group_id"])

        with self.assertRaises(ResultSetError) as ctx:
            query.search()
        self.assertIn("group_id", str(ctx.exception))
        self.assertTrue(fake.cursors[0].closed)

    def test_missing_meta_result_set_is_reported(self) -> None:
        connection, _ = make_connection([[{"id": 1}]])

        with self.assertRaises(ResultSetError):
            Query(connection).from_("idx").show_meta(True).search()

    def test_missing_count_column_is_reported(self) -> None:
        connection, _ = make_connection([[{"id": 1}], [{"brand_id": 5, "total": 2}]])

        with self.assertRaises(ResultSetError):
            Query(connection).from_("idx").facets(["brand_id"]).search()

    def test_facet_value_column_matched_case_insensitively(self) -> None:
        connection, _ = make_connection([[{"id": 1}], [{"price": 1, "total": 4}]])
        query = Query(connection).from_("idx").facets(
            {
                "Price": {
                    "select": "INTERVAL(price,200,400) AS price",
                    "count": "total",
                }
            }
        )

        result = query.search()

        self.assertEqual(result.facets["Price"], [{"price": 1, "total": 4, "value": 1, "count": 4}])

    def test_facet_sharing_a_name_accumulates_rows(self) -> None:
        connection, _ = make_connection(
            [
                [{"id": 1}],
                [{"brand_id": 5, "count(*)": 2}],
                [{"group_id": 7, "count(*)": 1}],
            ]
        )
        query = Query(connection).from_("idx").facets(
            {
                "brand": {"name": "attrs", "value": "brand_id"},
                "group": {"name": "attrs", "value": "group_id"},
            }
        )

        result = query.search()

        self.assertEqual([row["value"] for row in result.facets["attrs"]], [5, 7])

    def test_emulated_search_skips_transport(self) -> None:
        connection, fake = make_connection()
        query = Query(connection).from_("idx").facets(["brand_id"]).show_meta(True).emulate_execution()

        result = query.search()

        self.assertEqual(result, SearchResult(hits=[], facets={}, meta={}))
        self.assertEqual(fake.connect_calls, 0)

    def test_hits_are_indexed_after_drain(self) -> None:
        connection, _ = make_connection([[{"id": 4, "title": "x"}], META_ROWS])

        result = Query(connection).from_("idx").index_by("id").show_meta(True).search()

        self.assertEqual(result.hits, {4: {"id": 4, "title": "x"}})
        self.assertEqual(result.meta, {"total_found": "1"})

    def test_snippets_run_after_search_cursor_is_closed(self) -> None:
        connection, fake = make_connection(
            [[{"id": 1}, {"id": 2}], [{"brand_id": 5, "count(*)": 2}]],
            [[{"snippet": "<b>pencil</b> one"}, {"snippet": "<b>pencil</b> two"}]],
        )
        query = (
            Query(connection)
            .from_("idx_item")
            .match("pencil")
            .facets(["brand_id"])
            .snippet_callback(lambda rows: [f"pencil {row['id']}" for row in rows])
        )

        result = query.search()

        self.assertEqual(
            result.hits,
            [
                {"id": 1, "snippet": "<b>pencil</b> one"},
                {"id": 2, "snippet": "<b>pencil</b> two"},
            ],
        )
        self.assertEqual(fake.open_cursors_at_execute, [0, 0])
        self.assertTrue(fake.executed[1][0].startswith("CALL SNIPPETS("))

    def test_driver_error_while_advancing_is_wrapped(self) -> None:
        connection, fake = make_connection([[{"id": 1}], [{"brand_id": 5, "count(*)": 2}]])
        fake.nextset_error = pymysql.err.OperationalError(2013, "Lost connection")

        with self.assertRaises(TransportError):
            Query(connection).from_("idx").facets(["brand_id"]).search()
        self.assertTrue(fake.cursors[0].closed)


class _StubReader:
    def __init__(self, *result_sets: list[dict]) -> None:
        self.result_sets = list(result_sets)
        self.position = 0
        self.closed = False

    def read_all(self) -> list[dict]:
        return list(self.result_sets[self.position])

    def next_result(self) -> bool:
        if self.position + 1 >= len(self.result_sets):
            return False
        self.position += 1
        return True

    def close(self) -> None:
        self.closed = True


class TestMultiResultReader(unittest.TestCase):
    def test_phases_advance_to_exhausted(self) -> None:
        reader = MultiResultReader(
            _StubReader([{"id": 1}], [{"a": 1, "count(*)": 1}], META_ROWS),
            [FacetSpec(name="a", value="a")],
            show_meta=True,
        )

        self.assertEqual(reader.phase, ResultSetPhase.IDLE)
        self.assertEqual(reader.expected_result_sets, 3)
        reader.read()

        self.assertEqual(reader.phase, ResultSetPhase.EXHAUSTED)
        self.assertEqual(reader.result_sets_read, 3)
        self.assertTrue(reader.reader.closed)

    def test_second_read_is_rejected(self) -> None:
        reader = MultiResultReader(_StubReader([{"id": 1}]), [], show_meta=False)
        reader.read()

        with self.assertRaises(ResultSetError):
            reader.read()


if __name__ == "__main__":
    unittest.main()
