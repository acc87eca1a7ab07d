"""Shared helpers for the zen-sync tests."""

from __future__ import annotations

import json
import sqlite3
import subprocess
from contextlib import closing
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

from zensync.core.config import ConfigStore

PLAIN_CONTENT = {
    "sessionstore.jsonlz4": b"mozLz40\x00\x01\x02session",
    "zen-sessions.jsonlz4": b"mozLz40\x00zen-sessions",
    "zen-themes.json": b'{"themes": ["dark"]}',
    "zen-keyboard-shortcuts.json": b'{"shortcuts": {"newTab": "Ctrl+T"}}',
}

FOLDER_CONTENT = {
    "sessionstore-backups": {"recovery.jsonlz4": b"recovery", "previous.jsonlz4": b"previous"},
    "bookmarkbackups": {"bookmarks-2024-01-01.jsonlz4": b"bookmarks"},
    "zen-sessions-backup": {"nested/session-1.jsonlz4": b"nested session"},
}


def create_database(path: Path, rows: Iterable[str]) -> None:
    """Create a small SQLite database with a ``moz_places`` table."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with closing(sqlite3.connect(path)) as conn:
        conn.execute("CREATE TABLE moz_places (id INTEGER PRIMARY KEY, url TEXT)")
        conn.executemany("INSERT INTO moz_places (url) VALUES (?)", [(row,) for row in rows])
        conn.commit()


def read_urls(path: Path) -> List[str]:
    """Return the URLs stored by :func:`create_database`."""
    with closing(sqlite3.connect(path)) as conn:
        return [row[0] for row in conn.execute("SELECT url FROM moz_places ORDER BY id")]


def populate_profile(profile_dir: Path) -> None:
    """Fill ``profile_dir`` with every manifest entry."""
    profile_dir.mkdir(parents=True, exist_ok=True)
    create_database(profile_dir / "places.sqlite", ["https://example.com", "https://zen-browser.app"])
    create_database(profile_dir / "favicons.sqlite", ["https://example.com/favicon.ico"])
    for name, content in PLAIN_CONTENT.items():
        (profile_dir / name).write_bytes(content)
    for folder, files in FOLDER_CONTENT.items():
        for rel_path, content in files.items():
            target = profile_dir / folder / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)


def write_profiles_ini(base: Path, entries: Dict[str, str]) -> Path:
    """Write a ``profiles.ini`` with one ``[ProfileN]`` section per entry."""
    base.mkdir(parents=True, exist_ok=True)
    lines = ["[General]", "StartWithLastProfile=1", ""]
    for index, (name, path) in enumerate(entries.items()):
        lines += [f"[Profile{index}]", f"Name={name}", "IsRelative=1", f"Path={path}", ""]
    ini_path = base / "profiles.ini"
    ini_path.write_text("\n".join(lines))
    return ini_path


def write_config(store: ConfigStore, url: str, repo_dir: Path) -> None:
    """Store a config record without URL validation (local remotes in tests)."""
    store.path.write_text(
        json.dumps(
            {
                "repositoryUrl": url,
                "repositoryDir": str(repo_dir),
                "lastBackup": None,
                "lastRestore": None,
            }
        )
    )


def git(*args: str, cwd: Optional[Path] = None) -> str:
    """Run git and return stdout."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout.strip()


def fake_process(pid: int, name: str, cmdline: Optional[List[str]] = None) -> Any:
    """Stand-in for a psutil process created by ``process_iter(attrs)``."""
    return SimpleNamespace(info={"pid": pid, "name": name, "cmdline": cmdline or [name]})


def no_processes(*args: Any, **kwargs: Any) -> List[Any]:
    """A process table with nothing in it."""
    return []


def all_tools(name: str) -> str:
    """``shutil.which`` replacement that finds every tool."""
    return f"/usr/bin/{name}"


