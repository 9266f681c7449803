#!/usr/bin/env python3
"""
Unit tests for the job record manager.
"""

import unittest
import uuid

from core.readiness import BackfillMode
from pipeline.exceptions import BackfillJobConflict, BackfillJobNotFound
from pipeline.job_manager import JobRecordManager
from pipeline.models import BatchOutcome, FailureRecord
from tests import SqliteCellarTestCase

VERSION = 2


class TestJobRecordManager(SqliteCellarTestCase):

    def setUp(self):
        super().setUp()
        self.manager = JobRecordManager(self.uow_factory, failure_ring_size=5)
        wine_id = self.add_wine()
        for _ in range(3):
            self.add_bottle(wine_id)
        self.add_fresh_bottle(wine_id, VERSION)

    def test_create_estimates_candidates(self):
        job = self.manager.create(BackfillMode.MISSING_ONLY, 2, VERSION)

        self.assertEqual(job.mode, 'missing_only')
        self.assertEqual(job.batch_size, 2)
        self.assertEqual(job.current_version, VERSION)
        self.assertEqual(job.status, 'running')
        self.assertEqual(job.estimated_total, 3)
        self.assertIsNone(job.cursor)
        self.assertFalse(job.is_complete)

    def test_create_force_all_estimate(self):
        job = self.manager.create(BackfillMode.FORCE_ALL, 2, VERSION)
        self.assertEqual(job.estimated_total, 4)

    def test_load(self):
        created = self.manager.create(BackfillMode.FORCE_ALL, 10, VERSION)
        loaded = self.manager.load(created.id)
        self.assertEqual(loaded.id, created.id)
        self.assertEqual(loaded.row_version, created.row_version)

    def test_load_unknown_job(self):
        with self.assertRaises(BackfillJobNotFound):
            self.manager.load(str(uuid.uuid4()))
        with self.assertRaises(BackfillJobNotFound):
            self.manager.load("not-a-job")

    def test_advance_merges_deltas_and_moves_cursor(self):
        job = self.manager.create(BackfillMode.FORCE_ALL, 2, VERSION)
        cursor = str(uuid.uuid4())

        job = self.manager.advance(job, BatchOutcome(processed=2, updated=1, skipped=1, last_id=cursor))
        job = self.manager.advance(job, BatchOutcome(processed=2, updated=1, failed=1, last_id=cursor,
                                                     failures=[FailureRecord.build(cursor, "boom")]))

        reloaded = self.manager.load(job.id)
        self.assertEqual(reloaded.processed, 4)
        self.assertEqual(reloaded.updated, 2)
        self.assertEqual(reloaded.skipped, 1)
        self.assertEqual(reloaded.failed, 1)
        self.assertEqual(reloaded.cursor, cursor)
        self.assertEqual(reloaded.failures, [{'bottle_id': cursor, 'reason': 'boom'}])
        self.assertEqual(reloaded.row_version, job.row_version)

    def test_failure_ring_keeps_most_recent(self):
        job = self.manager.create(BackfillMode.FORCE_ALL, 2, VERSION)

        for batch in range(3):
            failures = [FailureRecord.build(f"b{batch}-{i}", f"reason {batch}-{i}") for i in range(3)]
            job = self.manager.advance(job, BatchOutcome(processed=3, failed=3, failures=failures))

        reloaded = self.manager.load(job.id)
        self.assertEqual(reloaded.failed, 9)
        self.assertEqual(len(reloaded.failures), 5)
        self.assertEqual(
            [f['bottle_id'] for f in reloaded.failures],
            ['b1-1', 'b1-2', 'b2-0', 'b2-1', 'b2-2']
        )

    def test_advance_with_stale_state_conflicts(self):
        job = self.manager.create(BackfillMode.FORCE_ALL, 2, VERSION)
        self.manager.advance(job, BatchOutcome(processed=2, updated=2))

        with self.assertRaises(BackfillJobConflict):
            self.manager.advance(job, BatchOutcome(processed=2, updated=2))

        self.assertEqual(self.manager.load(job.id).processed, 2)

    def test_complete(self):
        job = self.manager.create(BackfillMode.FORCE_ALL, 2, VERSION)
        completed = self.manager.complete(job)

        self.assertTrue(completed.is_complete)
        self.assertIsNotNone(completed.finished_at)
        self.assertEqual(self.manager.get_active(), None)

    def test_estimate_list_and_active(self):
        first = self.manager.create(BackfillMode.MISSING_ONLY, 2, VERSION)
        self.manager.complete(first)
        second = self.manager.create(BackfillMode.STALE_OR_MISSING, 2, VERSION)

        self.assertEqual(self.manager.estimate(BackfillMode.STALE_OR_MISSING, VERSION), 3)
        self.assertEqual(self.manager.estimate(BackfillMode.FORCE_ALL, VERSION), 4)
        self.assertEqual(len(self.manager.list_recent()), 2)
        self.assertEqual([j.id for j in self.manager.list_recent(status='completed')], [first.id])
        self.assertEqual(self.manager.get_active().id, second.id)


if __name__ == '__main__':
    unittest.main()
