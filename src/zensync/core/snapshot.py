"""Consistent copies of SQLite databases.

The browser keeps ``places.sqlite`` and ``favicons.sqlite`` in WAL mode, so a
plain file copy can miss committed pages that still live in the ``-wal``
sidecar. The online backup API produces a self-contained snapshot instead.
"""

from __future__ import annotations

import logging
import shutil
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import List

from .manifest import SQLITE_SIDECARS

logger = logging.getLogger(__name__)


def sidecar_paths(database: Path) -> List[Path]:
    """Return the ``-wal`` and ``-shm`` paths next to ``database``."""
    return [database.with_name(database.name + suffix) for suffix in SQLITE_SIDECARS]


class SqliteSnapshotter:
    """Copies SQLite databases with the online backup API."""

    def snapshot(self, source: Path, destination: Path) -> None:
        """Write a consistent copy of ``source`` to ``destination``.

        The source is opened read-only so no write access to the profile
        directory is needed.

        Raises:
            sqlite3.Error: If the database cannot be opened or copied.
        """
        source = Path(source).resolve()
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists():
            destination.unlink()

        uri = f"{source.as_uri()}?mode=ro"
        try:
            with closing(sqlite3.connect(uri, uri=True)) as src:
                with closing(sqlite3.connect(destination)) as dst:
                    src.backup(dst)
        except sqlite3.Error:
            if destination.exists():
                destination.unlink()
            raise
        logger.debug("Snapshot of %s written to %s", source, destination)

    def raw_copy(self, source: Path, destination: Path) -> List[Path]:
        """Copy ``source`` and any existing sidecar files byte for byte.

        Returns:
            The destination paths written.
        """
        source = Path(source)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        shutil.copy2(source, destination)
        copied = [destination]
        for src_sidecar, dst_sidecar in zip(sidecar_paths(source), sidecar_paths(destination)):
            if src_sidecar.is_file():
                shutil.copy2(src_sidecar, dst_sidecar)
                copied.append(dst_sidecar)
        return copied
