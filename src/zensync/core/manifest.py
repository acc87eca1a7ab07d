"""The fixed set of profile files and folders that zen-sync backs up."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

# Sidecar files SQLite keeps next to a database in WAL mode
SQLITE_SIDECARS: Tuple[str, ...] = ("-wal", "-shm")

ARCHIVE_SUFFIX = ".tar.gz"
BACKUP_SUFFIX = ".bak"


class FileKind(Enum):
    """How an entry is moved between the profile and the repository."""

    SQLITE = "sqlite"
    PLAIN = "plain"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class FileSpec:
    """One manifest entry.

    Attributes:
        name: File or folder name relative to the profile directory.
        kind: Copy strategy for the entry.
    """

    name: str
    kind: FileKind

    @property
    def artifact_name(self) -> str:
        """Name of the entry inside the backup repository."""
        if self.kind is FileKind.DIRECTORY:
            return f"{self.name}{ARCHIVE_SUFFIX}"
        return self.name


SQLITE_FILES: Tuple[str, ...] = ("places.sqlite", "favicons.sqlite")
PLAIN_FILES: Tuple[str, ...] = (
    "sessionstore.jsonlz4",
    "zen-sessions.jsonlz4",
    "zen-themes.json",
    "zen-keyboard-shortcuts.json",
)
BACKUP_DIRS: Tuple[str, ...] = ("sessionstore-backups", "bookmarkbackups", "zen-sessions-backup")

MANIFEST: Tuple[FileSpec, ...] = (
    tuple(FileSpec(name, FileKind.SQLITE) for name in SQLITE_FILES)
    + tuple(FileSpec(name, FileKind.PLAIN) for name in PLAIN_FILES)
    + tuple(FileSpec(name, FileKind.DIRECTORY) for name in BACKUP_DIRS)
)
