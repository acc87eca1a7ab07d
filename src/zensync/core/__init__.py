"""Core functionality for zen-sync."""

from .backup import BackupManager
from .config import ConfigStore, RepositoryConfig
from .profiles import ProfileDescriptor, ProfileLocator
from .repository import GitRepository, RepositorySync
from .restore import RestoreManager
from .sync import SyncManager

__all__ = [
    "BackupManager",
    "ConfigStore",
    "GitRepository",
    "ProfileDescriptor",
    "ProfileLocator",
    "RepositoryConfig",
    "RepositorySync",
    "RestoreManager",
    "SyncManager",
]
