"""Tests for web-root file access."""

import os
import stat
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent))

from asset_combiner.file_store import FileStore


class TestFileStore(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp_dir.name)
        self.web = self.root / "web"
        self.web.mkdir()
        self.store = FileStore(self.root, [self.web])

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_root_wins_over_fallback(self):
        (self.root / "file3.css").write_text("file3", encoding="utf-8")
        (self.web / "file3.css").write_text("web/file3", encoding="utf-8")
        self.assertEqual(self.store.read("file3.css"), b"file3")

    def test_reads_from_fallback_directory(self):
        (self.web / "file2.css").write_text("web/file2", encoding="utf-8")
        self.assertTrue(self.store.exists("file2.css"))
        self.assertEqual(self.store.read_text("file2.css"), "web/file2")

    def test_missing_file(self):
        self.assertFalse(self.store.exists("nope.css"))
        with self.assertRaises(FileNotFoundError):
            self.store.read("nope.css")

    def test_directories_do_not_count_as_files(self):
        (self.root / "assets").mkdir()
        self.assertFalse(self.store.exists("assets"))

    def test_write_creates_directories_and_leaves_no_temp_files(self):
        target = self.store.write("assets/css/abc.css", b"a{}\n")
        self.assertEqual(target, self.root / "assets" / "css" / "abc.css")
        self.assertEqual(target.read_bytes(), b"a{}\n")
        self.assertEqual([p.name for p in target.parent.iterdir()], ["abc.css"])

    def test_write_replaces_existing_file(self):
        self.store.write("assets/js/abc.js", b"old")
        self.store.write("assets/js/abc.js", b"new")
        self.assertEqual(self.store.read("assets/js/abc.js"), b"new")

    def test_written_files_follow_the_umask(self):
        previous = os.umask(0o022)
        try:
            target = self.store.write("assets/css/abc.css", b"a{}")
        finally:
            os.umask(previous)
        self.assertEqual(stat.S_IMODE(target.stat().st_mode), 0o644)

    def test_failed_write_keeps_previous_content(self):
        self.store.write("assets/css/abc.css", b"published")
        with patch("asset_combiner.file_store.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.store.write("assets/css/abc.css", b"partial")
        target_dir = self.root / "assets" / "css"
        self.assertEqual((target_dir / "abc.css").read_bytes(), b"published")
        self.assertEqual([p.name for p in target_dir.iterdir()], ["abc.css"])


if __name__ == "__main__":
    unittest.main()
