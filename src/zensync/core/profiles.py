"""Zen Browser profile discovery.

Profiles come from two places:

- ``profiles.ini`` in the browser's data directory (regular profiles), and
- a ``profiles`` folder whose subdirectories are Twilight builds' profiles.

Each operating system gets its own :class:`ProfileSource` strategy. The
platform is resolved once in :class:`ProfileLocator` so tests can inject it.
"""

from __future__ import annotations

import logging
import os
import platform
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Type

import click
from rich.console import Console
from rich.markup import escape

from . import logging as log
from .errors import NoProfilesFound

logger = logging.getLogger(__name__)

PROFILES_INI = "profiles.ini"


class ProfileKind(Enum):
    """Which browser build a profile belongs to."""

    REGULAR = "Regular"
    TWILIGHT = "Twilight"


@dataclass(frozen=True)
class ProfileDescriptor:
    """A profile directory found on this machine."""

    display_name: str
    path: Path
    kind: ProfileKind = ProfileKind.REGULAR

    def __str__(self) -> str:
        return f"{self.display_name}:{self.path}"


def parse_profiles_ini(
    text: str, base: Path, honor_relative: bool = False
) -> Iterator[Tuple[str, Path]]:
    """Yield ``(name, path)`` pairs from the contents of a ``profiles.ini``.

    Each ``Name=`` line is paired with the next ``Path=`` line. With
    ``honor_relative`` an ``IsRelative=1`` line seen before the pair makes the
    path relative to ``base``; any other value makes it absolute. Without
    ``honor_relative`` paths are always joined onto ``base``.
    """
    name: Optional[str] = None
    path: Optional[str] = None
    is_relative: Optional[str] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("Name="):
            name = line[len("Name=") :]
        elif line.startswith("Path="):
            path = line[len("Path=") :]
        elif line.startswith("IsRelative="):
            is_relative = line[len("IsRelative=") :]

        if name and path:
            if not honor_relative or is_relative == "1":
                yield name, base / path
            else:
                yield name, Path(path)
            name = path = is_relative = None


class ProfileSource:
    """Discovery strategy for one operating system.

    Subclasses list where ``profiles.ini`` may live and where Twilight profile
    folders live.
    """

    honor_relative = False

    def __init__(self, home: Path, environ: Mapping[str, str]) -> None:
        self.home = home
        self.environ = environ

    def ini_bases(self) -> List[Path]:
        """Candidate directories holding ``profiles.ini``, in priority order."""
        return []

    def twilight_bases(self) -> List[Path]:
        """Directories whose subdirectories are Twilight profiles."""
        return []

    def discover(self) -> List[ProfileDescriptor]:
        """Return regular profiles followed by Twilight profiles."""
        return self.regular_profiles() + self.twilight_profiles()

    def regular_profiles(self) -> List[ProfileDescriptor]:
        """Parse the first ``profiles.ini`` found; later bases are ignored."""
        for base in self.ini_bases():
            ini_path = base / PROFILES_INI
            if not ini_path.is_file():
                continue
            logger.debug("Reading profiles from %s", ini_path)
            text = ini_path.read_text(encoding="utf-8", errors="replace")
            return [
                ProfileDescriptor(name, path, ProfileKind.REGULAR)
                for name, path in parse_profiles_ini(text, base, self.honor_relative)
            ]
        return []

    def twilight_profiles(self) -> List[ProfileDescriptor]:
        """List every subdirectory of the Twilight profile folders."""
        profiles = []
        for base in self.twilight_bases():
            if not base.is_dir():
                continue
            for entry in sorted(base.iterdir()):
                if entry.is_dir():
                    profiles.append(
                        ProfileDescriptor(f"Twilight ({entry.name})", entry, ProfileKind.TWILIGHT)
                    )
        return profiles


class LinuxProfileSource(ProfileSource):
    """Standard, legacy and Flatpak install locations."""

    def ini_bases(self) -> List[Path]:
        return [
            self.home / ".config" / "zen",
            self.home / ".zen",
            self.home / ".var" / "app" / "app.zen_browser.zen" / ".zen",
        ]

    def twilight_bases(self) -> List[Path]:
        return [self.home / ".config" / "zen" / "profiles", self.home / ".zen" / "profiles"]


class MacProfileSource(ProfileSource):
    """``~/Library/Application Support/Zen``."""

    honor_relative = True

    def ini_bases(self) -> List[Path]:
        return [self.home / "Library" / "Application Support" / "Zen"]

    def twilight_bases(self) -> List[Path]:
        return [self.home / ".config" / "zen" / "profiles", self.home / ".zen" / "profiles"]


class WindowsProfileSource(ProfileSource):
    """Only Twilight profiles under ``%APPDATA%`` are known on Windows."""

    def twilight_bases(self) -> List[Path]:
        appdata = self.environ.get("APPDATA")
        if not appdata:
            return []
        return [Path(appdata) / "zen" / "Profiles"]


PROFILE_SOURCES: Dict[str, Type[ProfileSource]] = {
    "Linux": LinuxProfileSource,
    "Darwin": MacProfileSource,
    "Windows": WindowsProfileSource,
}


class ProfileLocator:
    """Finds Zen Browser profiles for the current platform.

    Attributes:
        system (str): Platform name as returned by ``platform.system()``.
        source (ProfileSource): Strategy chosen for ``system``.
    """

    def __init__(
        self,
        system: Optional[str] = None,
        home: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.system = system or platform.system()
        source_cls = PROFILE_SOURCES.get(self.system, LinuxProfileSource)
        self.source = source_cls(
            Path(home) if home is not None else Path.home(),
            environ if environ is not None else os.environ,
        )

    def discover(self) -> List[ProfileDescriptor]:
        """Return every profile found, in discovery order."""
        profiles = self.source.discover()
        logger.debug("Discovered %d profile(s) on %s", len(profiles), self.system)
        return profiles


def select_profile(
    profiles: Sequence[ProfileDescriptor],
    console: Optional[Console] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> ProfileDescriptor:
    """Pick the profile to operate on.

    A single profile is used without asking. With several, the operator is
    asked for a 1-based index until a valid one is given.

    Raises:
        NoProfilesFound: If ``profiles`` is empty.
    """
    out = console or log.console
    if not profiles:
        raise NoProfilesFound()

    if len(profiles) == 1:
        log.info(f"Using single profile: {profiles[0]}", out)
        return profiles[0]

    ask = prompt or (lambda text: click.prompt(text, type=str, prompt_suffix=" ", err=True))

    log.header(f"Found {len(profiles)} Zen Browser profiles:", out)
    out.print()
    for index, profile in enumerate(profiles, 1):
        out.print(f"  [blue]\\[{index}][/blue] {escape(profile.display_name)}", highlight=False)
        out.print(f"      [bright_black]{escape(str(profile.path))}[/bright_black]", highlight=False)
    out.print()

    while True:
        selection = ask(f"Select profile (1-{len(profiles)}):").strip()
        if re.fullmatch(r"[0-9]+", selection) and 1 <= int(selection) <= len(profiles):
            return profiles[int(selection) - 1]
        log.error(f"Invalid selection. Please enter a number between 1 and {len(profiles)}.", out)
