#!/usr/bin/env python3
"""
Unit tests for the bounded worker pool.
"""

import contextlib
import threading
import time
import unittest
import uuid
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, InvalidRequestError, OperationalError

from pipeline.models import BottleSnapshot, MAX_FAILURE_REASON_LENGTH
from pipeline.worker_pool import BoundedWorkerPool, describe_error
from tests import SqliteCellarTestCase

VERSION = 2
YEAR = 2025


def snapshot(wine_id=None):
    return BottleSnapshot(id=uuid.uuid4(), wine_id=wine_id or uuid.uuid4())


def wine_row(vintage=2015, color="red", region="Bordeaux"):
    wine = MagicMock()
    wine.vintage = vintage
    wine.color = color
    wine.region = region
    wine.country = "France"
    wine.grapes = []
    wine.wine_name = "Test"
    wine.wine_profile = None
    return wine


class MockStore:
    """uow_factory stand-in: every unit of work yields the same mocked repository."""

    def __init__(self, wines):
        self.repo = MagicMock()
        self.repo.wines.get_by_ids.return_value = wines
        self.repo.bottles.stamp_readiness.return_value = True
        self.units = 0

    @contextlib.contextmanager
    def __call__(self):
        self.units += 1
        yield self.repo


class TestBoundedWorkerPoolWithMocks(unittest.TestCase):

    def test_updates_every_bottle(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        bottles = [snapshot(wine_id) for _ in range(4)]

        outcome = BoundedWorkerPool(store, VERSION, YEAR, concurrency=2).process(bottles)

        self.assertEqual((outcome.updated, outcome.skipped, outcome.failed), (4, 0, 0))
        self.assertEqual(outcome.failures, [])
        self.assertEqual(store.repo.bottles.stamp_readiness.call_count, 4)

        bottle_id, fields, version, _now = store.repo.bottles.stamp_readiness.call_args[0]
        self.assertEqual(version, VERSION)
        self.assertEqual(fields['readiness_status'], 'Peak')
        self.assertEqual(fields['drink_window_start'], 2019)

    def test_wines_are_fetched_once_per_page(self):
        wine_ids = [uuid.uuid4(), uuid.uuid4()]
        store = MockStore({wid: wine_row() for wid in wine_ids})
        bottles = [snapshot(wine_ids[i % 2]) for i in range(6)]

        BoundedWorkerPool(store, VERSION, YEAR).process(bottles)

        store.repo.wines.get_by_ids.assert_called_once()

    def test_missing_wine_is_skipped(self):
        store = MockStore({})

        outcome = BoundedWorkerPool(store, VERSION, YEAR).process([snapshot()])

        self.assertEqual((outcome.updated, outcome.skipped, outcome.failed), (0, 1, 0))
        store.repo.bottles.stamp_readiness.assert_not_called()

    def test_deleted_bottle_is_skipped(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        store.repo.bottles.stamp_readiness.return_value = False

        outcome = BoundedWorkerPool(store, VERSION, YEAR).process([snapshot(wine_id)])

        self.assertEqual((outcome.updated, outcome.skipped, outcome.failed), (0, 1, 0))

    def test_write_failure_is_recorded_and_siblings_continue(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        bad = snapshot(wine_id)
        bottles = [snapshot(wine_id), bad, snapshot(wine_id)]

        def stamp(bottle_id, fields, version, now):
            if bottle_id == bad.id:
                raise ValueError("constraint violated")
            return True

        store.repo.bottles.stamp_readiness.side_effect = stamp

        outcome = BoundedWorkerPool(store, VERSION, YEAR).process(bottles)

        self.assertEqual((outcome.updated, outcome.skipped, outcome.failed), (2, 0, 1))
        self.assertEqual(len(outcome.failures), 1)
        self.assertEqual(outcome.failures[0].bottle_id, str(bad.id))
        self.assertEqual(outcome.failures[0].reason, "constraint violated")

    def test_failure_reason_is_truncated(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        store.repo.bottles.stamp_readiness.side_effect = RuntimeError("x" * 2000)

        outcome = BoundedWorkerPool(store, VERSION, YEAR).process([snapshot(wine_id)])

        self.assertEqual(len(outcome.failures[0].reason), MAX_FAILURE_REASON_LENGTH)

    def test_transient_errors_are_retried(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        store.repo.bottles.stamp_readiness.side_effect = [
            OperationalError("UPDATE bottles", {}, Exception("database is locked")),
            True,
        ]

        outcome = BoundedWorkerPool(store, VERSION, YEAR, write_retry_attempts=3).process([snapshot(wine_id)])

        self.assertEqual(outcome.updated, 1)
        self.assertEqual(store.repo.bottles.stamp_readiness.call_count, 2)

    def test_persistent_transient_error_becomes_failure(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        store.repo.bottles.stamp_readiness.side_effect = OperationalError(
            "UPDATE bottles", {}, Exception("database is locked")
        )

        outcome = BoundedWorkerPool(store, VERSION, YEAR, write_retry_attempts=2).process([snapshot(wine_id)])

        self.assertEqual(outcome.failed, 1)
        self.assertEqual(store.repo.bottles.stamp_readiness.call_count, 2)

    def test_store_error_reason_omits_statement_and_parameters(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        store.repo.bottles.stamp_readiness.side_effect = OperationalError(
            "UPDATE bottles SET readiness_score=? WHERE bottles.id = ?",
            (90, "secret-bottle-id"),
            Exception("database is locked"),
        )

        outcome = BoundedWorkerPool(store, VERSION, YEAR, write_retry_attempts=1).process([snapshot(wine_id)])

        reason = outcome.failures[0].reason
        self.assertEqual(reason, "OperationalError: database is locked")
        self.assertNotIn("UPDATE", reason)
        self.assertNotIn("secret-bottle-id", reason)

    def test_concurrency_ceiling(self):
        wine_id = uuid.uuid4()
        store = MockStore({wine_id: wine_row()})
        lock = threading.Lock()
        state = {'active': 0, 'peak': 0}

        def stamp(*args):
            with lock:
                state['active'] += 1
                state['peak'] = max(state['peak'], state['active'])
            time.sleep(0.02)
            with lock:
                state['active'] -= 1
            return True

        store.repo.bottles.stamp_readiness.side_effect = stamp

        outcome = BoundedWorkerPool(store, VERSION, YEAR, concurrency=3).process(
            [snapshot(wine_id) for _ in range(12)]
        )

        self.assertEqual(outcome.updated, 12)
        self.assertLessEqual(state['peak'], 3)

    def test_empty_page(self):
        store = MockStore({})
        outcome = BoundedWorkerPool(store, VERSION, YEAR).process([])
        self.assertEqual((outcome.updated, outcome.skipped, outcome.failed), (0, 0, 0))
        self.assertEqual(store.units, 0)


class TestDescribeError(unittest.TestCase):

    def test_driver_error_keeps_first_line(self):
        exc = IntegrityError(
            "UPDATE bottles SET readiness_status=%(status)s",
            {"status": "Peak"},
            Exception("violates check constraint\nDETAIL: Failing row contains (Peak)"),
        )
        self.assertEqual(describe_error(exc), "IntegrityError: violates check constraint")

    def test_other_sqlalchemy_errors_use_class_name(self):
        exc = InvalidRequestError("Could not evaluate SELECT bottles.id FROM bottles")
        self.assertEqual(describe_error(exc), "InvalidRequestError")

    def test_plain_errors_keep_message(self):
        self.assertEqual(describe_error(ValueError("constraint violated")), "constraint violated")
        self.assertEqual(describe_error(RuntimeError()), "RuntimeError")


class TestBoundedWorkerPoolOnSqlite(SqliteCellarTestCase):

    def test_writes_readiness_and_keeps_analysis(self):
        wine_id = self.add_wine(vintage=YEAR, color="Sparkling")
        bottle_id = self.add_bottle(wine_id, analysis_summary="Celebration bottle")
        bottle = self.get_bottle(bottle_id)

        outcome = BoundedWorkerPool(self.uow_factory, VERSION, YEAR, concurrency=2).process(
            [BottleSnapshot.from_orm(bottle)]
        )

        self.assertEqual(outcome.updated, 1)
        stored = self.get_bottle(bottle_id)
        self.assertEqual(stored.readiness_score, 80)
        self.assertEqual(stored.readiness_status, 'InWindow')
        self.assertEqual(stored.readiness_confidence, 'high')
        self.assertEqual((stored.drink_window_start, stored.drink_window_end), (YEAR, YEAR + 5))
        self.assertEqual(stored.readiness_version, VERSION)
        self.assertIsNotNone(stored.readiness_updated_at)
        self.assertEqual(stored.analysis_summary, "Celebration bottle")


if __name__ == '__main__':
    unittest.main()
