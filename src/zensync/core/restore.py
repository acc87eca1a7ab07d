"""Restore functionality for Zen Browser profiles."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console

from . import logging as log
from .archive import TarArchiver
from .errors import ArchiveError
from .manifest import BACKUP_SUFFIX, MANIFEST, FileKind, FileSpec
from .snapshot import sidecar_paths

logger = logging.getLogger(__name__)


def backup_path_for(path: Path) -> Path:
    """Return ``path`` with ``.bak`` appended to its name."""
    return path.with_name(path.name + BACKUP_SUFFIX)


class RestoreManager:
    """Copies backed-up files from the repository working copy into a profile.

    Anything already at a destination is renamed to ``<name>.bak`` first.
    Only one generation of ``.bak`` is kept.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        manifest: Sequence[FileSpec] = MANIFEST,
        archiver: Optional[TarArchiver] = None,
    ) -> None:
        """Initialize restore manager.

        Args:
            console: Rich console for progress output.
            manifest: Entries to restore, in order.
            archiver: Extracts folder tarballs.
        """
        self.console = console or log.console
        self.manifest = manifest
        self.archiver = archiver or TarArchiver()

    def restore_one(self, spec: FileSpec, scratch_dir: Path, profile_dir: Path) -> bool:
        """Restore a single manifest entry.

        Args:
            spec: Entry to restore.
            scratch_dir: Repository working copy to read from.
            profile_dir: Profile directory to write to.

        Returns:
            True if the entry was present in the backup and restored.
        """
        if spec.kind is FileKind.DIRECTORY:
            return self._restore_directory(spec, scratch_dir, profile_dir)
        return self._restore_file(spec, scratch_dir, profile_dir)

    def restore(self, scratch_dir: Path, profile_dir: Path) -> List[str]:
        """Restore every manifest entry found in the backup.

        A failure part-way leaves earlier entries restored; there is no rollback.

        Returns:
            Names of the entries that were restored.
        """
        scratch_dir = Path(scratch_dir)
        profile_dir = Path(profile_dir)
        logger.debug("Restoring %s into %s", scratch_dir, profile_dir)
        profile_dir.mkdir(parents=True, exist_ok=True)

        return [
            spec.name
            for spec in self.manifest
            if self.restore_one(spec, scratch_dir, profile_dir)
        ]

    def _set_aside_file(self, path: Path) -> None:
        """Rename an existing file to ``<name>.bak``, replacing an older one."""
        if not path.is_file():
            return
        bak = backup_path_for(path)
        log.info(f"Backing up existing {path.name} to {bak.name}", self.console)
        if bak.is_dir():
            shutil.rmtree(bak)
        os.replace(path, bak)

    def _set_aside_directory(self, path: Path) -> Optional[Path]:
        """Rename an existing folder to ``<name>.bak``, removing an older one first.

        Returns:
            The ``.bak`` path, or None if there was no folder to move.
        """
        if not path.is_dir():
            return None
        bak = backup_path_for(path)
        log.info(f"Backing up existing {path.name} to {bak.name}", self.console)
        if bak.is_dir() and not bak.is_symlink():
            shutil.rmtree(bak)
        elif bak.exists() or bak.is_symlink():
            bak.unlink()
        path.rename(bak)
        return bak

    def _restore_file(self, spec: FileSpec, scratch_dir: Path, profile_dir: Path) -> bool:
        src = scratch_dir / spec.name
        dst = profile_dir / spec.name
        if not src.is_file():
            log.warn(f"Backup not found: {spec.name}", self.console)
            return False

        log.info(f"Restoring {spec.name}...", self.console)
        self._set_aside_file(dst)
        if spec.kind is FileKind.SQLITE:
            # The live sidecars belong to the old database
            for sidecar in sidecar_paths(dst):
                self._set_aside_file(sidecar)

        shutil.copy2(src, dst)
        if spec.kind is FileKind.SQLITE:
            # Present only when the backup fell back to a raw copy
            for src_sidecar, dst_sidecar in zip(sidecar_paths(src), sidecar_paths(dst)):
                if src_sidecar.is_file():
                    shutil.copy2(src_sidecar, dst_sidecar)
        return True

    def _restore_directory(self, spec: FileSpec, scratch_dir: Path, profile_dir: Path) -> bool:
        src = scratch_dir / spec.artifact_name
        dst = profile_dir / spec.name
        if not src.is_file():
            log.warn(f"Backup not found: {spec.artifact_name}", self.console)
            return False

        log.info(f"Restoring {spec.name}...", self.console)
        bak = self._set_aside_directory(dst)
        try:
            self.archiver.extract(src, profile_dir)
        except ArchiveError:
            # Drop any partial extraction and move the live folder back
            if dst.is_dir():
                shutil.rmtree(dst)
            if bak is not None:
                bak.rename(dst)
            raise
        return True
