"""Tests for backup and restore functionality."""

import io
import shutil
import tempfile
from pathlib import Path
from unittest import TestCase

from rich.console import Console

from tests.helpers import FOLDER_CONTENT, PLAIN_CONTENT, create_database, populate_profile, read_urls
from zensync.core.backup import BackupManager
from zensync.core.manifest import MANIFEST
from zensync.core.restore import RestoreManager


class TestBackupRestore(TestCase):
    """Test a backup followed by a restore into a different profile."""

    def setUp(self) -> None:
        """Set up the test environment."""
        self.source_dir = Path(tempfile.mkdtemp())
        self.target_dir = Path(tempfile.mkdtemp())
        self.scratch_dir = Path(tempfile.mkdtemp())

        populate_profile(self.source_dir)

        # The target already has a profile of its own
        create_database(self.target_dir / "places.sqlite", ["https://target.example"])
        (self.target_dir / "zen-themes.json").write_text('{"themes": ["light"]}')
        (self.target_dir / "sessionstore-backups").mkdir()
        (self.target_dir / "sessionstore-backups" / "target.jsonlz4").write_bytes(b"target")

        self.console = Console(file=io.StringIO(), width=200, color_system=None)
        self.backup_manager = BackupManager(self.console)
        self.restore_manager = RestoreManager(self.console)

    def tearDown(self) -> None:
        """Clean up the test environment."""
        shutil.rmtree(self.source_dir)
        shutil.rmtree(self.target_dir)
        shutil.rmtree(self.scratch_dir)

    def test_backup_then_restore(self) -> None:
        """Test that a restored profile matches the backed up one."""
        backed_up = self.backup_manager.backup(self.source_dir, self.scratch_dir)
        self.assertEqual(backed_up, [spec.name for spec in MANIFEST])

        restored = self.restore_manager.restore(self.scratch_dir, self.target_dir)
        self.assertEqual(restored, backed_up)

        self.assertEqual(
            read_urls(self.target_dir / "places.sqlite"),
            ["https://example.com", "https://zen-browser.app"],
        )
        self.assertEqual(
            read_urls(self.target_dir / "favicons.sqlite"), ["https://example.com/favicon.ico"]
        )
        for name, content in PLAIN_CONTENT.items():
            self.assertEqual((self.target_dir / name).read_bytes(), content)
        for folder, files in FOLDER_CONTENT.items():
            for rel_path, content in files.items():
                self.assertEqual((self.target_dir / folder / rel_path).read_bytes(), content)

    def test_restore_keeps_previous_profile(self) -> None:
        """Test that the target's own files survive as .bak copies."""
        self.backup_manager.backup(self.source_dir, self.scratch_dir)
        self.restore_manager.restore(self.scratch_dir, self.target_dir)

        self.assertEqual(
            read_urls(self.target_dir / "places.sqlite.bak"), ["https://target.example"]
        )
        self.assertEqual(
            (self.target_dir / "zen-themes.json.bak").read_text(), '{"themes": ["light"]}'
        )
        self.assertEqual(
            (self.target_dir / "sessionstore-backups.bak" / "target.jsonlz4").read_bytes(),
            b"target",
        )
        self.assertFalse((self.target_dir / "sessionstore-backups" / "target.jsonlz4").exists())
        self.assertFalse((self.target_dir / "favicons.sqlite.bak").exists())

    def test_restore_twice_keeps_one_generation(self) -> None:
        """Test that a second restore replaces the earlier .bak copies."""
        self.backup_manager.backup(self.source_dir, self.scratch_dir)
        self.restore_manager.restore(self.scratch_dir, self.target_dir)
        self.restore_manager.restore(self.scratch_dir, self.target_dir)

        self.assertEqual(
            read_urls(self.target_dir / "places.sqlite.bak"),
            ["https://example.com", "https://zen-browser.app"],
        )
        self.assertEqual(
            sorted(p.name for p in (self.target_dir / "sessionstore-backups.bak").iterdir()),
            ["previous.jsonlz4", "recovery.jsonlz4"],
        )
        self.assertFalse(list(self.target_dir.glob("*.bak.bak")))
