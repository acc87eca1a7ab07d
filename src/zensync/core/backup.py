"""Backup functionality for Zen Browser profiles.

This module copies the manifest entries from a profile directory into the
working copy of the backup repository:

- SQLite databases are snapshotted with the online backup API, falling back
  to a raw copy of the database and its sidecar files
- plain files are copied byte for byte
- folders are packed into ``<name>.tar.gz``
"""

from __future__ import annotations

import logging
import shutil
import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console

from . import logging as log
from .archive import TarArchiver
from .manifest import ARCHIVE_SUFFIX, MANIFEST, FileKind, FileSpec
from .snapshot import SqliteSnapshotter, sidecar_paths

logger = logging.getLogger(__name__)


class BackupManager:
    """Copies profile files into the repository working copy.

    Attributes:
        manifest (Sequence[FileSpec]): Entries to back up, in order
        console (Console): Rich console for progress output
        archiver (TarArchiver): Packs folders into tarballs
        snapshotter (SqliteSnapshotter): Copies SQLite databases
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        manifest: Sequence[FileSpec] = MANIFEST,
        archiver: Optional[TarArchiver] = None,
        snapshotter: Optional[SqliteSnapshotter] = None,
    ):
        self.console = console or log.console
        self.manifest = manifest
        self.archiver = archiver or TarArchiver()
        self.snapshotter = snapshotter or SqliteSnapshotter()

    def backup_one(self, spec: FileSpec, profile_dir: Path, scratch_dir: Path) -> bool:
        """Back up a single manifest entry.

        Args:
            spec (FileSpec): Entry to back up
            profile_dir (Path): Profile directory to read from
            scratch_dir (Path): Repository working copy to write to

        Returns:
            bool: True if the entry existed in the profile and was written
        """
        if spec.kind is FileKind.SQLITE:
            return self._backup_sqlite(spec.name, profile_dir, scratch_dir)
        if spec.kind is FileKind.DIRECTORY:
            return self._backup_directory(spec.name, profile_dir, scratch_dir)
        return self._backup_file(spec.name, profile_dir, scratch_dir)

    def backup(self, profile_dir: Path, scratch_dir: Path) -> List[str]:
        """Back up every manifest entry.

        Returns:
            List[str]: Names of the entries that were written. Empty when the
            profile held none of them, in which case nothing should be pushed.
        """
        profile_dir = Path(profile_dir)
        scratch_dir = Path(scratch_dir)
        logger.debug("Backing up %s into %s", profile_dir, scratch_dir)

        changed = [
            spec.name
            for spec in self.manifest
            if self.backup_one(spec, profile_dir, scratch_dir)
        ]
        if not changed:
            log.warn("No files found to backup", self.console)
        return changed

    def _backup_file(self, name: str, profile_dir: Path, scratch_dir: Path) -> bool:
        src = profile_dir / name
        if not src.is_file():
            log.warn(f"File not found: {name} (skipping)", self.console)
            return False

        log.info(f"Copying {name}...", self.console)
        shutil.copy2(src, scratch_dir / name)
        return True

    def _backup_sqlite(self, name: str, profile_dir: Path, scratch_dir: Path) -> bool:
        src = profile_dir / name
        dst = scratch_dir / name
        if not src.is_file():
            log.warn(f"File not found: {name} (skipping)", self.console)
            return False

        log.info(f"Backing up SQLite database: {name}...", self.console)
        # Sidecars left in the clone by an older raw copy belong to an older database
        for stale in sidecar_paths(dst):
            if stale.exists():
                stale.unlink()

        try:
            self.snapshotter.snapshot(src, dst)
        except sqlite3.Error as e:
            logger.debug("Snapshot of %s failed: %s", src, e)
            log.warn(f"SQLite backup failed for {name}, falling back to file copy", self.console)
            self.snapshotter.raw_copy(src, dst)
            return True

        log.success(f"SQLite backup successful: {name}", self.console)
        return True

    def _backup_directory(self, name: str, profile_dir: Path, scratch_dir: Path) -> bool:
        if not (profile_dir / name).is_dir():
            log.warn(f"Folder not found: {name} (skipping)", self.console)
            return False

        log.info(f"Archiving {name}...", self.console)
        self.archiver.create(profile_dir, name, scratch_dir / f"{name}{ARCHIVE_SUFFIX}")
        return True
