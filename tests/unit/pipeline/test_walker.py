#!/usr/bin/env python3
"""
Unit tests for the batch cursor walker.
"""

from pipeline.models import BottleSnapshot
from pipeline.walker import BatchCursorWalker, BottlePage
from tests import SqliteCellarTestCase, sorted_ids


class TestBatchCursorWalker(SqliteCellarTestCase):

    def setUp(self):
        super().setUp()
        wine_id = self.add_wine()
        self.ids = sorted_ids(self.add_bottle(wine_id) for _ in range(5))
        self.walker = BatchCursorWalker(self.uow_factory, batch_size=2)

    def test_walks_every_bottle_once(self):
        seen = []
        cursor = None
        while True:
            page = self.walker.fetch_next(cursor)
            seen.extend(b.id for b in page.bottles)
            if page.is_last:
                break
            cursor = page.last_id

        self.assertEqual(seen, self.ids)

    def test_pages_are_snapshots(self):
        page = self.walker.fetch_next(None)
        self.assertTrue(all(isinstance(b, BottleSnapshot) for b in page.bottles))
        self.assertIsNone(page.bottles[0].readiness_score)

    def test_page_boundaries(self):
        first = self.walker.fetch_next(None)
        self.assertEqual(first.last_id, str(self.ids[1]))
        self.assertFalse(first.is_last)

        last = self.walker.fetch_next(str(self.ids[3]))
        self.assertEqual([b.id for b in last.bottles], [self.ids[4]])
        self.assertTrue(last.is_last)

    def test_empty_page(self):
        page = self.walker.fetch_next(str(self.ids[-1]))
        self.assertEqual(page.bottles, [])
        self.assertIsNone(page.last_id)
        self.assertTrue(page.is_last)

    def test_full_page_is_not_last(self):
        page = BottlePage(bottles=[BottleSnapshot(id=i, wine_id=None) for i in range(2)], limit=2)
        self.assertFalse(page.is_last)
