"""Test backup module."""

import sqlite3
import tarfile
from pathlib import Path

from rich.console import Console

from tests.helpers import PLAIN_CONTENT, read_urls
from zensync.core.backup import BackupManager
from zensync.core.manifest import MANIFEST, FileKind, FileSpec
from zensync.core.snapshot import SqliteSnapshotter


class FailingSnapshotter(SqliteSnapshotter):
    """Snapshotter whose online backup always fails."""

    def snapshot(self, source: Path, destination: Path) -> None:
        raise sqlite3.OperationalError("database is locked")


def test_backup_full_profile(profile_dir: Path, scratch_dir: Path, console: Console) -> None:
    """Every manifest entry is written to the working copy."""
    changed = BackupManager(console).backup(profile_dir, scratch_dir)

    assert changed == [spec.name for spec in MANIFEST]
    assert read_urls(scratch_dir / "places.sqlite") == [
        "https://example.com",
        "https://zen-browser.app",
    ]
    for name, content in PLAIN_CONTENT.items():
        assert (scratch_dir / name).read_bytes() == content
    for folder in ("sessionstore-backups", "bookmarkbackups", "zen-sessions-backup"):
        assert (scratch_dir / f"{folder}.tar.gz").is_file()
        assert not (scratch_dir / folder).exists()


def test_backup_archive_is_relative(profile_dir: Path, scratch_dir: Path, console: Console) -> None:
    """Folder archives do not contain absolute paths."""
    BackupManager(console).backup(profile_dir, scratch_dir)

    with tarfile.open(scratch_dir / "zen-sessions-backup.tar.gz") as tar:
        names = tar.getnames()
    assert "zen-sessions-backup/nested/session-1.jsonlz4" in names
    assert all(not name.startswith("/") for name in names)


def test_backup_empty_profile(tmp_path: Path, scratch_dir: Path, console: Console) -> None:
    """An empty profile changes nothing and says so."""
    empty = tmp_path / "empty"
    empty.mkdir()

    assert BackupManager(console).backup(empty, scratch_dir) == []
    assert list(scratch_dir.iterdir()) == []

    output = console.file.getvalue()
    assert "No files found to backup" in output
    assert "File not found: places.sqlite (skipping)" in output
    assert "Folder not found: bookmarkbackups (skipping)" in output


def test_backup_one_missing_file(tmp_path: Path, scratch_dir: Path, console: Console) -> None:
    """A missing plain file is skipped, not an error."""
    manager = BackupManager(console)
    spec = FileSpec("zen-themes.json", FileKind.PLAIN)
    assert manager.backup_one(spec, tmp_path, scratch_dir) is False


def test_backup_partial_profile(tmp_path: Path, scratch_dir: Path, console: Console) -> None:
    """Only the entries present in the profile are reported."""
    profile = tmp_path / "partial"
    (profile / "bookmarkbackups").mkdir(parents=True)
    (profile / "bookmarkbackups" / "b.jsonlz4").write_bytes(b"b")
    (profile / "zen-themes.json").write_text("{}")

    changed = BackupManager(console).backup(profile, scratch_dir)
    assert changed == ["zen-themes.json", "bookmarkbackups"]


def test_sqlite_fallback_copies_sidecars(
    profile_dir: Path, scratch_dir: Path, console: Console
) -> None:
    """When the online backup fails the database and sidecars are copied raw."""
    (profile_dir / "places.sqlite-wal").write_bytes(b"wal pages")
    (profile_dir / "places.sqlite-shm").write_bytes(b"shm")
    manager = BackupManager(console, snapshotter=FailingSnapshotter())

    assert manager.backup_one(FileSpec("places.sqlite", FileKind.SQLITE), profile_dir, scratch_dir)

    assert (scratch_dir / "places.sqlite").read_bytes() == (profile_dir / "places.sqlite").read_bytes()
    assert (scratch_dir / "places.sqlite-wal").read_bytes() == b"wal pages"
    assert (scratch_dir / "places.sqlite-shm").read_bytes() == b"shm"
    assert "falling back to file copy" in console.file.getvalue()


def test_snapshot_removes_stale_sidecars(
    profile_dir: Path, scratch_dir: Path, console: Console
) -> None:
    """Sidecars from an earlier raw copy do not survive a successful snapshot."""
    (scratch_dir / "places.sqlite-wal").write_bytes(b"stale")
    (scratch_dir / "places.sqlite-shm").write_bytes(b"stale")

    BackupManager(console).backup_one(FileSpec("places.sqlite", FileKind.SQLITE), profile_dir, scratch_dir)

    assert not (scratch_dir / "places.sqlite-wal").exists()
    assert not (scratch_dir / "places.sqlite-shm").exists()
    assert "SQLite backup successful: places.sqlite" in console.file.getvalue()


def test_backup_overwrites_previous_artifacts(
    profile_dir: Path, scratch_dir: Path, console: Console
) -> None:
    """Files already in the clone are replaced by the current profile's."""
    (scratch_dir / "zen-themes.json").write_text("old")

    BackupManager(console).backup(profile_dir, scratch_dir)

    assert (scratch_dir / "zen-themes.json").read_bytes() == PLAIN_CONTENT["zen-themes.json"]
