"""Test configuration."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from tests.helpers import git, populate_profile, write_profiles_ini
from zensync.core.config import ConfigStore
from zensync.core.profiles import ProfileLocator


@pytest.fixture(autouse=True)
def isolated_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep git away from the user's global configuration."""
    home = tmp_path / "git-home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.delenv("ZEN_SYNC_CONFIG", raising=False)


@pytest.fixture
def console() -> Console:
    """A console that records output instead of printing it."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """A config store in the test directory."""
    return ConfigStore(tmp_path / "zen_sync_config.json")


@pytest.fixture
def profile_dir(tmp_path: Path) -> Path:
    """A profile directory holding every manifest entry."""
    path = tmp_path / "profile"
    populate_profile(path)
    return path


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """An empty directory standing in for the repository clone."""
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def remote_repo(tmp_path: Path) -> Path:
    """An empty bare repository used as the backup remote."""
    path = tmp_path / "remote.git"
    git("init", "--bare", str(path))
    return path


@pytest.fixture
def zen_home(tmp_path: Path) -> Path:
    """A home directory with one regular Linux profile."""
    home = tmp_path / "home"
    write_profiles_ini(home / ".config" / "zen", {"default": "abc123.default"})
    (home / ".config" / "zen" / "abc123.default").mkdir(parents=True)
    return home


@pytest.fixture
def locator(zen_home: Path) -> ProfileLocator:
    """A Linux profile locator rooted at ``zen_home``."""
    return ProfileLocator(system="Linux", home=zen_home, environ={})
