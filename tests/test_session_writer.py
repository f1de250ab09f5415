"""Tests for writing session files and the ignored-session ledger."""

import csv
import os
import shutil
import tempfile
import unittest
from pathlib import Path

from session_splitter.config.session_config import OutputConfig
from session_splitter.engine.session_engine import SessionEngine
from session_splitter.integration.session_writer import SessionWriter
from tests.factories import make_record, FIELDNAMES, LOGON, LOGOFF, OTHER


def _records():
    return [
        make_record(100, LOGON, target_id="S1", user="alice", logon_type="3"),
        make_record(120, OTHER, target_id="S1"),
        make_record(200, LOGOFF, target_id="S1"),
        make_record(100, LOGON, target_id="S2", user="bob", logon_type="2"),
        make_record(200, LOGOFF, target_id="S2"),
    ]


class TestSessionWriter(unittest.TestCase):
    """Test cases for SessionWriter."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.output_dir = os.path.join(self.temp_dir, "sessions")
        self.writer = SessionWriter(OutputConfig(output_directory=self.output_dir))
        self.result = SessionEngine().run(_records())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _read_rows(self, path):
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return list(csv.DictReader(f))

    def test_files_are_routed(self):
        summary = self.writer.write_all(self.result, FIELDNAMES)

        self.assertEqual(len(summary.main_files), 1)
        self.assertEqual(len(summary.ignored_files), 1)
        self.assertEqual(summary.total_files, 2)
        self.assertEqual(summary.main_files[0].parent, Path(self.output_dir))
        self.assertEqual(summary.ignored_files[0].parent, Path(self.output_dir) / "ignored")
        self.assertTrue(summary.ignored_files[0].name.startswith("IGNORED_bob-S2"))
        for path in summary.main_files + summary.ignored_files:
            self.assertTrue(path.is_file())

    def test_rows_keep_source_columns(self):
        summary = self.writer.write_all(self.result, FIELDNAMES)
        rows = self._read_rows(summary.main_files[0])

        self.assertEqual([row["EpochTime"] for row in rows], ["100", "120", "200"])
        self.assertEqual(list(rows[0].keys()), FIELDNAMES)
        self.assertEqual(rows[0]["TargetUserName"], "alice")

    def test_ledger_contents(self):
        summary = self.writer.write_all(self.result, FIELDNAMES)

        self.assertEqual(summary.ledger_file, Path(self.output_dir) / "ignored_sessions.txt")
        with open(summary.ledger_file, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
        self.assertEqual(lines, self.result.ledger_lines)
        self.assertIn(summary.ignored_files[0].name, lines[0])

    def test_no_ledger_without_ignored_sessions(self):
        result = SessionEngine().run(_records()[:3])
        summary = self.writer.write_all(result, FIELDNAMES)

        self.assertIsNone(summary.ledger_file)
        self.assertFalse(self.writer.ledger_path.exists())

    def test_previous_output_is_cleaned(self):
        os.makedirs(os.path.join(self.output_dir, "ignored"))
        stale = Path(self.output_dir) / "stale-S9-2-Duration-00_00_01.csv"
        stale_ignored = Path(self.output_dir) / "ignored" / "IGNORED_old-S8-2-Duration-00_00_01.csv"
        notes = Path(self.output_dir) / "notes.txt"
        other_csv = Path(self.output_dir) / "security.csv"
        unprefixed_ignored = Path(self.output_dir) / "ignored" / "old-S8-2-Duration-00_00_01.csv"
        for path in (stale, stale_ignored, notes, other_csv, unprefixed_ignored):
            path.write_text("x", encoding='utf-8')

        self.writer.write_all(self.result, FIELDNAMES)

        self.assertFalse(stale.exists())
        self.assertFalse(stale_ignored.exists())
        self.assertTrue(notes.exists())
        self.assertTrue(other_csv.exists())
        self.assertTrue(unprefixed_ignored.exists())

    def test_preserved_paths_survive_cleanup(self):
        os.makedirs(self.output_dir)
        export = Path(self.output_dir) / "export-Duration-00_00_01.csv"
        export.write_text("x", encoding='utf-8')

        self.writer.write_all(self.result, FIELDNAMES, preserve=[str(export)])
        self.assertTrue(export.exists())

    def test_input_is_never_overwritten(self):
        os.makedirs(self.output_dir)
        summary = SessionWriter(OutputConfig(output_directory=self.output_dir)).write_all(
            self.result, FIELDNAMES)
        target = summary.main_files[0]
        target.write_text("evidence", encoding='utf-8')

        with self.assertRaises(FileExistsError):
            self.writer.write_all(self.result, FIELDNAMES, preserve=[str(target)])
        self.assertEqual(target.read_text(encoding='utf-8'), "evidence")

    def test_is_session_file(self):
        self.assertTrue(self.writer.is_session_file(Path("a-S1-3-Duration-25_01_01.csv")))
        self.assertFalse(self.writer.is_session_file(Path("a-S1-3-Duration-00_01_01.tsv")))
        self.assertFalse(self.writer.is_session_file(Path("security.csv")))
        self.assertFalse(self.writer.is_session_file(Path("a-Duration-00_00_01.csv"), ignored=True))
        self.assertTrue(self.writer.is_session_file(Path("IGNORED_a-Duration-00_00_01.csv"),
                                                    ignored=True))

    def test_duplicate_names_are_reported(self):
        records = [
            make_record(100, OTHER, target_id="a-b", user="x", logon_type="2"),
            make_record(100, OTHER, target_id="b", user="x-a", logon_type="2"),
        ]
        result = SessionEngine().run(records)
        self.assertEqual(result.artifacts[0].file_name, result.artifacts[1].file_name)

        with self.assertLogs("session_splitter.integration.session_writer", level="WARNING") as logs:
            summary = self.writer.write_all(result, FIELDNAMES)

        self.assertEqual(summary.overwritten_files, [summary.main_files[1]])
        self.assertTrue(any("same file name" in line for line in logs.output))

    def test_path_separators_do_not_nest(self):
        records = [
            make_record(100, LOGON, target_id="S1", user="alice", logon_type="N/A"),
            make_record(120, OTHER, target_id="S1"),
        ]
        result = SessionEngine().run(records)

        with self.assertLogs("session_splitter.integration.session_writer", level="WARNING"):
            summary = self.writer.write_all(result, FIELDNAMES)

        path = summary.main_files[0]
        self.assertEqual(path.parent, Path(self.output_dir))
        self.assertEqual(path.name, "alice-S1-N_A-Duration-00_00_20.csv")
        self.assertTrue(path.is_file())

    def test_stale_ledger_removed_when_nothing_ignored(self):
        self.writer.write_all(self.result, FIELDNAMES)
        self.assertTrue(self.writer.ledger_path.exists())

        self.writer.write_all(SessionEngine().run(_records()[:3]), FIELDNAMES)
        self.assertFalse(self.writer.ledger_path.exists())

    def test_no_clean_keeps_previous_output(self):
        os.makedirs(self.output_dir)
        stale = Path(self.output_dir) / "stale.csv"
        stale.write_text("x", encoding='utf-8')
        writer = SessionWriter(OutputConfig(output_directory=self.output_dir,
                                            clean_output_directory=False))

        writer.write_all(self.result, FIELDNAMES)
        self.assertTrue(stale.exists())


if __name__ == "__main__":
    unittest.main()
