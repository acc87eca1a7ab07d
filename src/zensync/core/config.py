"""Repository configuration for zen-sync.

A single JSON record describes the backup repository:

```json
{
    "repositoryUrl": "git@github.com:user/zen-backup.git",
    "repositoryDir": "/tmp/zen-backup-zen-backup",
    "lastBackup": null,
    "lastRestore": null
}
```
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import InvalidUrl, RepositoryNotConfigured

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.zen_sync_config.json"
CONFIG_ENV_VAR = "ZEN_SYNC_CONFIG"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

REPOSITORY_URL_PATTERN = re.compile(r"^(https://|git@).*\.git$")


def validate_repository_url(url: str) -> str:
    """Return ``url`` stripped of surrounding whitespace, or raise InvalidUrl."""
    candidate = (url or "").strip()
    if not REPOSITORY_URL_PATTERN.match(candidate):
        raise InvalidUrl(candidate)
    return candidate


def repository_name(url: str) -> str:
    """Return the repository name of a Git URL (``.../zen-backup.git`` -> ``zen-backup``)."""
    tail = re.split(r"[/:]", url.rstrip("/"))[-1]
    return tail[: -len(".git")] if tail.endswith(".git") else tail


def scratch_directory_for(url: str) -> Path:
    """Return the disposable clone directory used for ``url``."""
    return Path(tempfile.gettempdir()) / f"zen-backup-{repository_name(url)}"


def current_timestamp() -> str:
    """Local time formatted the way the config file stores it."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


@dataclass
class RepositoryConfig:
    """The persisted repository record."""

    repository_url: str
    repository_dir: Path
    last_backup: Optional[str] = None
    last_restore: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryConfig":
        """Build a record from the JSON object stored on disk."""
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a JSON object")
        url = data.get("repositoryUrl")
        if not url:
            raise ValueError("Configuration is missing repositoryUrl")
        directory = data.get("repositoryDir") or scratch_directory_for(url)
        return cls(
            repository_url=url,
            repository_dir=Path(directory),
            last_backup=data.get("lastBackup"),
            last_restore=data.get("lastRestore"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON object stored on disk."""
        return {
            "repositoryUrl": self.repository_url,
            "repositoryDir": str(self.repository_dir),
            "lastBackup": self.last_backup,
            "lastRestore": self.last_restore,
        }


class ConfigStore:
    """Loads and saves the single :class:`RepositoryConfig` of the user.

    Nothing is cached: every call reads the file again. Writes go to a
    temporary file in the same directory which then replaces the original.

    Attributes:
        path (Path): Location of the JSON config file.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        if path is None:
            path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE
        self.path = Path(path).expanduser()

    def __repr__(self) -> str:
        return f"ConfigStore({self.path})"

    def load(self) -> Optional[RepositoryConfig]:
        """Return the stored record, or None when no repository is configured.

        Raises:
            ValueError: If the file exists but does not hold a valid record.
        """
        if not self.path.exists():
            logger.debug("No config file at %s", self.path)
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Config file {self.path} is not valid JSON: {e}") from e

        # A literal null means no repository
        if data is None:
            return None
        return RepositoryConfig.from_dict(data)

    def save(self, url: str, directory: Optional[Union[str, Path]] = None) -> RepositoryConfig:
        """Replace the stored record; both timestamps are reset.

        Args:
            url: Git URL of the backup repository.
            directory: Scratch clone directory. Derived from the URL if omitted.

        Raises:
            InvalidUrl: If ``url`` is not an ``https://`` or ``git@`` URL ending in ``.git``.
        """
        url = validate_repository_url(url)
        config = RepositoryConfig(
            repository_url=url,
            repository_dir=Path(directory) if directory else scratch_directory_for(url),
        )
        self._write(config)
        logger.debug("Saved repository %s to %s", url, self.path)
        return config

    def record_backup(self) -> RepositoryConfig:
        """Stamp ``lastBackup`` with the current local time."""
        config = self._require()
        config.last_backup = current_timestamp()
        self._write(config)
        return config

    def record_restore(self) -> RepositoryConfig:
        """Stamp ``lastRestore`` with the current local time."""
        config = self._require()
        config.last_restore = current_timestamp()
        self._write(config)
        return config

    def clear(self) -> bool:
        """Delete the config file. Returns False if there was nothing to delete."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Removed config file %s", self.path)
        return True

    def _require(self) -> RepositoryConfig:
        config = self.load()
        if config is None:
            raise RepositoryNotConfigured()
        return config

    def _write(self, config: RepositoryConfig) -> None:
        serialized = json.dumps(config.to_dict(), indent=4)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(serialized + "\n")
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(temp_path, self.path)
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)
