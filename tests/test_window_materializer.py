"""Tests for session membership and activity classification."""

import unittest

from session_splitter.engine.boundary_resolver import BoundaryResolver
from session_splitter.engine.data_structures import SessionAnchor, SessionBoundary
from session_splitter.engine.window_materializer import WindowMaterializer
from tests.factories import make_record, LOGON, PRIVILEGED, LOGOFF, GROUP, OTHER


class TestWindowMaterializer(unittest.TestCase):
    """Test cases for WindowMaterializer."""

    def setUp(self):
        self.materializer = WindowMaterializer()

    def _boundary(self, identifier, start, end, fallback=False):
        return SessionBoundary(
            identifier=identifier, start_epoch=start, end_epoch=end,
            anchor=SessionAnchor("alice", "3", "ts"), started_via_fallback=fallback
        )

    def test_members_within_boundaries_in_source_order(self):
        records = [
            make_record(5, OTHER, target_id="S1"),
            make_record(10, LOGON, target_id="S1"),
            make_record(30, OTHER, subject_id="S1"),
            make_record(20, OTHER, target_id="S2"),
            make_record(None, OTHER, target_id="S1"),
            make_record(25, OTHER, legacy_id="S1"),
            make_record(40, LOGOFF, target_id="S1"),
            make_record(41, OTHER, target_id="S1"),
        ]
        window = self.materializer.materialize(self._boundary("S1", 10, 40), records)

        self.assertEqual([r.epoch_time for r in window.members], [10, 30, 25, 40])

    def test_window_carries_boundary_and_anchor(self):
        records = [make_record(10, OTHER, target_id="S1")]
        window = self.materializer.materialize(self._boundary("S1", 10, 10, fallback=True), records)

        self.assertEqual(window.identifier, "S1")
        self.assertEqual((window.start_epoch, window.end_epoch), (10, 10))
        self.assertEqual(window.anchor_user_name, "alice")
        self.assertEqual(window.anchor_logon_type, "3")
        self.assertEqual(window.anchor_timestamp, "ts")
        self.assertTrue(window.started_via_fallback)
        self.assertEqual(window.duration_seconds, 0)

    def test_only_marker_events_is_not_significant(self):
        records = [
            make_record(10, LOGON, target_id="S1"),
            make_record(11, PRIVILEGED, target_id="S1"),
            make_record(12, GROUP, target_id="S1"),
            make_record(20, LOGOFF, target_id="S1"),
        ]
        window = self.materializer.materialize(self._boundary("S1", 10, 20), records)
        self.assertFalse(window.is_significant)

    def test_any_other_event_is_significant(self):
        records = [
            make_record(10, LOGON, target_id="S1"),
            make_record(15, OTHER, target_id="S1"),
            make_record(20, LOGOFF, target_id="S1"),
        ]
        window = self.materializer.materialize(self._boundary("S1", 10, 20), records)
        self.assertTrue(window.is_significant)

    def test_activity_outside_window_does_not_count(self):
        records = [
            make_record(10, LOGON, target_id="S1"),
            make_record(20, LOGOFF, target_id="S1"),
            make_record(25, OTHER, target_id="S1"),
        ]
        window = self.materializer.materialize(self._boundary("S1", 10, 20), records)
        self.assertFalse(window.is_significant)

    def test_record_shared_by_two_windows(self):
        shared = make_record(15, OTHER, target_id="A", subject_id="B")
        records = [
            make_record(10, LOGON, target_id="A"),
            make_record(12, LOGON, target_id="B"),
            shared,
            make_record(20, LOGOFF, target_id="A"),
            make_record(20, LOGOFF, target_id="B"),
        ]
        resolver = BoundaryResolver()
        window_a = self.materializer.materialize(resolver.resolve("A", records), records)
        window_b = self.materializer.materialize(resolver.resolve("B", records), records)

        self.assertIn(shared, window_a.members)
        self.assertIn(shared, window_b.members)

    def test_membership_matches_definition(self):
        records = [make_record(i * 7 % 50, [LOGON, OTHER, LOGOFF][i % 3],
                               target_id=f"S{i % 4}", subject_id=f"S{(i + 1) % 4}")
                   for i in range(40)]
        resolver = BoundaryResolver()
        for identifier in ("S0", "S1", "S2", "S3"):
            boundary = resolver.resolve(identifier, records)
            window = self.materializer.materialize(boundary, records)
            expected = [r for r in records if r.matches(identifier)
                        and boundary.start_epoch <= r.epoch_time <= boundary.end_epoch]
            self.assertEqual(list(window.members), expected)


if __name__ == "__main__":
    unittest.main()
