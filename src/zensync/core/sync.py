"""Backup and restore runs.

:class:`SyncManager` sequences one run: load the repository config, check the
environment, pick a profile, materialize a scratch clone, move the files,
push (for backups), record the timestamp and remove the clone.
"""

from __future__ import annotations

import logging
import shutil
from typing import Callable, Optional, Tuple

import psutil
from rich.console import Console

from . import logging as log
from .backup import BackupManager
from .config import ConfigStore, RepositoryConfig, current_timestamp
from .environment import ProcessIter, Which, check_prerequisites, ensure_browser_not_running
from .errors import RepositoryNotConfigured
from .profiles import ProfileDescriptor, ProfileLocator, select_profile
from .repository import RepositorySync
from .restore import RestoreManager

logger = logging.getLogger(__name__)


class SyncManager:
    """Runs backups and restores of a Zen Browser profile.

    Every collaborator can be replaced, which is how the tests avoid real
    process tables and terminals.
    """

    def __init__(
        self,
        store: ConfigStore,
        locator: Optional[ProfileLocator] = None,
        repo_sync: Optional[RepositorySync] = None,
        backup_manager: Optional[BackupManager] = None,
        restore_manager: Optional[RestoreManager] = None,
        console: Optional[Console] = None,
        prompt: Optional[Callable[[str], str]] = None,
        which: Which = shutil.which,
        process_iter: ProcessIter = psutil.process_iter,
    ) -> None:
        self.store = store
        self.console = console or log.console
        self.locator = locator or ProfileLocator()
        self.repo_sync = repo_sync or RepositorySync(self.console)
        self.backup_manager = backup_manager or BackupManager(self.console)
        self.restore_manager = restore_manager or RestoreManager(self.console)
        self.prompt = prompt
        self.which = which
        self.process_iter = process_iter

    def _prepare(self) -> Tuple[RepositoryConfig, ProfileDescriptor]:
        config = self.store.load()
        if config is None or not config.repository_url:
            raise RepositoryNotConfigured()

        ensure_browser_not_running(self.process_iter)
        check_prerequisites(self.which)

        profile = select_profile(self.locator.discover(), self.console, self.prompt)
        log.info(f"Selected Zen Profile: {profile.path}", self.console)
        return config, profile

    def backup(self) -> bool:
        """Back up the selected profile and push it.

        Returns:
            bool: False when the profile held none of the manifest entries
            and nothing was pushed.

        Raises:
            ZenSyncError: On any fatal condition; the scratch clone is still removed.
        """
        log.header("Starting Zen Browser Backup...", self.console)
        config, profile = self._prepare()

        with self.repo_sync.scratch(config.repository_url, config.repository_dir) as repo:
            changed = self.backup_manager.backup(profile.path, repo.path)
            if not changed:
                return False

            log.info("Pushing to repository...", self.console)
            self.repo_sync.commit_and_push(repo, f"Zen Browser backup - {current_timestamp()}")
            self.store.record_backup()

        log.success("Backup completed successfully!", self.console)
        return True

    def restore(self) -> None:
        """Restore the selected profile from the repository.

        Raises:
            CloneFailed: If the repository cannot be cloned.
            ZenSyncError: On any other fatal condition.
        """
        log.header("Starting Zen Browser Restore...", self.console)
        config, profile = self._prepare()

        log.info("Cloning backup repository...", self.console)
        with self.repo_sync.scratch(
            config.repository_url, config.repository_dir, allow_init=False
        ) as repo:
            restored = self.restore_manager.restore(repo.path, profile.path)
            logger.debug("Restored entries: %s", restored)
            self.store.record_restore()

        log.success("Restore completed successfully!", self.console)
