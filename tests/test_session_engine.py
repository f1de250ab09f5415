"""End-to-end tests for the session engine."""

import unittest

from session_splitter.config.session_config import SessionSplitterConfig
from session_splitter.engine.session_engine import SessionEngine, split_sessions
from tests.factories import make_record, LOGON, PRIVILEGED, LOGOFF, GROUP, OTHER


def _scenario_records():
    return [
        # S1: full session with activity
        make_record(100, LOGON, target_id="S1", user="alice", logon_type="3",
                    timestamp="2024-01-15 10:00:00"),
        make_record(120, OTHER, target_id="S1"),
        make_record(150, PRIVILEGED, target_id="S1"),
        make_record(200, LOGOFF, target_id="S1"),
        # S2: logon/logoff noise only
        make_record(100, LOGON, target_id="S2", user="bob", logon_type="2"),
        make_record(200, LOGOFF, target_id="S2"),
        # S3: activity without markers
        make_record(50, OTHER, target_id="S3"),
        make_record(90, OTHER, target_id="S3"),
        # S4: no usernames anywhere
        make_record(10, LOGON, target_id="S4", logon_type="2"),
        make_record(20, OTHER, target_id="S4", user="-"),
        make_record(30, LOGOFF, target_id="S4"),
        # S5: logoff only, skipped
        make_record(40, LOGOFF, target_id="S5"),
        # L1: legacy id only
        make_record(60, OTHER, legacy_id="L1", user="dave", logon_type="5"),
    ]


class TestSessionEngineScenarios(unittest.TestCase):
    """Scenario tests covering the documented behaviours."""

    def setUp(self):
        self.result = SessionEngine().run(_scenario_records())

    def test_identifier_order(self):
        self.assertEqual(self.result.identifiers, ["S1", "S2", "S3", "S4", "S5", "L1"])

    def test_full_session_routed_to_main(self):
        artifact = self.result.get_artifact("S1")
        window = artifact.window

        self.assertEqual((window.start_epoch, window.end_epoch), (100, 200))
        self.assertTrue(window.is_significant)
        self.assertFalse(window.started_via_fallback)
        self.assertFalse(artifact.ignored)
        self.assertIn("alice-S1-3", artifact.file_name)
        self.assertIn("Duration-00_01_40", artifact.file_name)
        self.assertEqual(len(window.members), 4)

    def test_noise_only_session_is_ignored(self):
        artifact = self.result.get_artifact("S2")

        self.assertFalse(artifact.window.is_significant)
        self.assertTrue(artifact.ignored)
        self.assertTrue(artifact.file_name.startswith("IGNORED_"))
        self.assertEqual(self.result.ledger_lines, [
            "IGNORED_bob-S2-2-Duration-00_01_40.csv | Reason: "
            "No Intermediate Activity (Only Logon/Logoff/Admin events)"
        ])

    def test_session_without_markers(self):
        artifact = self.result.get_artifact("S3")
        window = artifact.window

        self.assertEqual((window.start_epoch, window.end_epoch), (50, 90))
        self.assertTrue(window.started_via_fallback)
        self.assertIn("-nologon", artifact.file_name)
        self.assertEqual(artifact.file_name, "UNKNOWN_USER_S3-S3-missing-nologon-Duration-00_00_40.csv")

    def test_session_without_usernames(self):
        artifact = self.result.get_artifact("S4")
        self.assertTrue(artifact.file_name.startswith("UNKNOWN_USER_S4-S4-2-"))

    def test_logoff_only_identifier_is_skipped(self):
        self.assertEqual(self.result.skipped_identifiers, ["S5"])
        self.assertIsNone(self.result.get_artifact("S5"))

    def test_legacy_identifier_is_processed(self):
        artifact = self.result.get_artifact("L1")

        self.assertIsNotNone(artifact)
        self.assertEqual(artifact.file_name, "dave-L1-5-nologon-Duration-00_00_00.csv")

    def test_summary(self):
        self.assertEqual(self.result.to_summary(), {
            'identifiers': 6, 'windows': 5, 'main': 4, 'ignored': 1,
            'skipped': 1, 'ledger_lines': 1
        })


class TestSessionEngineProperties(unittest.TestCase):
    """Invariants that hold for any input."""

    def _mixed_records(self):
        codes = [LOGON, OTHER, PRIVILEGED, GROUP, LOGOFF, OTHER]
        records = []
        for i in range(120):
            epoch = None if i % 17 == 0 else (i * 37) % 500
            records.append(make_record(
                epoch, codes[i % len(codes)],
                target_id=f"0x{i % 9:x}", subject_id=f"0x{(i * 5) % 11:x}",
                user="" if i % 4 == 0 else f"user{i % 3}", logon_type=str(i % 4),
                timestamp=f"2024-01-{1 + i % 28:02d} 10:00:{i % 60:02d}"
            ))
        return records

    def test_empty_input(self):
        result = SessionEngine().run([])

        self.assertEqual(result.artifacts, [])
        self.assertEqual(result.ledger_lines, [])
        self.assertEqual(result.identifiers, [])

    def test_boundaries_are_ordered(self):
        for artifact in SessionEngine().run(self._mixed_records()).artifacts:
            self.assertLessEqual(artifact.window.start_epoch, artifact.window.end_epoch)

    def test_classification_matches_members(self):
        ignored_codes = SessionSplitterConfig().event_codes.ignored_codes
        for artifact in SessionEngine().run(self._mixed_records()).artifacts:
            only_noise = all(r.event_code in ignored_codes for r in artifact.members)
            self.assertEqual(artifact.window.is_significant, not only_noise)
            self.assertEqual(artifact.ignored, only_noise)

    def test_repeated_runs_are_identical(self):
        records = self._mixed_records()
        first = SessionEngine().run(records)
        second = SessionEngine().run(records)

        self.assertEqual(first.identifiers, second.identifiers)
        self.assertEqual(first.artifacts, second.artifacts)
        self.assertEqual(first.ledger_lines, second.ledger_lines)

    def test_threaded_run_matches_sequential(self):
        records = self._mixed_records()
        sequential = SessionEngine(max_workers=1).run(records)
        threaded = SessionEngine(max_workers=4).run(records)

        self.assertEqual([a.file_name for a in threaded.artifacts],
                         [a.file_name for a in sequential.artifacts])
        self.assertEqual(threaded.artifacts, sequential.artifacts)
        self.assertEqual(threaded.ledger_lines, sequential.ledger_lines)
        self.assertEqual(threaded.skipped_identifiers, sequential.skipped_identifiers)

    def test_ledger_is_sorted(self):
        records = []
        for identifier, user in (("S9", "zed"), ("S1", "amy"), ("S5", "mia")):
            records.append(make_record(10, LOGON, target_id=identifier, user=user, logon_type="2"))
            records.append(make_record(20, LOGOFF, target_id=identifier))
        lines = split_sessions(records).ledger_lines

        self.assertEqual(len(lines), 3)
        self.assertEqual(lines, sorted(lines))
        self.assertTrue(lines[0].startswith("IGNORED_amy-S1"))

    def test_invalid_worker_count(self):
        with self.assertRaises(ValueError):
            SessionEngine(max_workers=0)


if __name__ == "__main__":
    unittest.main()
