"""Checks run before touching a profile: required tools and a running browser."""

from __future__ import annotations

import logging
import os
import re
import shutil
import sqlite3
import subprocess
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import psutil

from .errors import BrowserRunning, PrerequisiteMissing

logger = logging.getLogger(__name__)

Which = Callable[[str], Optional[str]]
ProcessIter = Callable[..., Iterable[psutil.Process]]

REQUIRED_TOOLS = ("git",)

INSTALL_HINTS = (
    ("Debian/Ubuntu", "sudo apt install {pkgs}"),
    ("Arch", "sudo pacman -S {pkgs}"),
    ("Fedora", "sudo dnf install {pkgs}"),
    ("Alpine", "sudo apk add {pkgs}"),
    ("NixOS", "nix-env -iA nixpkgs.{{{nix}}}"),
    ("macOS", "brew install {pkgs}"),
)

BROWSER_NAMES = {"zen", "zen-bin"}
BROWSER_NAME_FRAGMENTS = ("zen-beta", "zen-alpha")
BROWSER_CMDLINE = re.compile(r"zen.*--type=", re.IGNORECASE)
MAX_LISTED_PROCESSES = 5


@dataclass(frozen=True)
class ToolStatus:
    """Whether a tool is available, for the status panel."""

    name: str
    installed: bool
    detail: str = ""


@dataclass(frozen=True)
class BrowserProcess:
    """A running process that looks like Zen Browser."""

    pid: int
    name: str

    def __str__(self) -> str:
        return f"PID {self.pid}  {self.name}"


def install_hints(missing: Iterable[str]) -> List[str]:
    """Return per-distribution install commands for ``missing`` tools."""
    tools = list(missing)
    pkgs = " ".join(tools)
    nix = ",".join(tools)
    return [f"{label}: {command.format(pkgs=pkgs, nix=nix)}" for label, command in INSTALL_HINTS]


def check_prerequisites(which: Which = shutil.which) -> None:
    """Make sure every external tool zen-sync shells out to is installed.

    Raises:
        PrerequisiteMissing: Listing the missing tools with install hints.
    """
    missing = [tool for tool in REQUIRED_TOOLS if which(tool) is None]
    if missing:
        raise PrerequisiteMissing(missing, install_hints(missing))


def _git_version() -> str:
    try:
        result = subprocess.run(["git", "--version"], capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError):
        return ""
    return result.stdout.strip()[:30]


def tool_status(which: Which = shutil.which) -> List[ToolStatus]:
    """Describe the tools zen-sync depends on."""
    statuses = []
    for tool in REQUIRED_TOOLS:
        if which(tool) is None:
            statuses.append(ToolStatus(tool, False, "Not installed"))
        else:
            statuses.append(ToolStatus(tool, True, _git_version() if tool == "git" else "Installed"))
    # Archiving and database snapshots run in-process
    statuses.append(ToolStatus("sqlite", True, f"SQLite {sqlite3.sqlite_version} (built in)"))
    statuses.append(ToolStatus("tar", True, "Built in"))
    return statuses


def _looks_like_browser(name: str, cmdline: Iterable[str]) -> bool:
    lowered = name.lower()
    if lowered in BROWSER_NAMES:
        return True
    if any(fragment in lowered for fragment in BROWSER_NAME_FRAGMENTS):
        return True
    return bool(BROWSER_CMDLINE.search(" ".join(cmdline)))


def find_browser_processes(process_iter: ProcessIter = psutil.process_iter) -> List[BrowserProcess]:
    """Scan the process list for something that looks like Zen Browser.

    This is a name heuristic: an unrelated process called ``zen`` matches too.
    """
    own_pid = os.getpid()
    found = []
    for proc in process_iter(["pid", "name", "cmdline"]):
        info = proc.info
        pid = info.get("pid")
        if pid == own_pid:
            continue
        name = info.get("name") or ""
        cmdline = info.get("cmdline") or []
        if _looks_like_browser(name, cmdline):
            found.append(BrowserProcess(pid, name or os.path.basename(cmdline[0])))
    logger.debug("Found %d browser-like process(es)", len(found))
    return found


def ensure_browser_not_running(process_iter: ProcessIter = psutil.process_iter) -> None:
    """Refuse to continue while Zen Browser may be writing to its profile.

    Raises:
        BrowserRunning: With up to five matching processes listed.
    """
    processes = find_browser_processes(process_iter)
    if processes:
        raise BrowserRunning([str(proc) for proc in processes[:MAX_LISTED_PROCESSES]])
