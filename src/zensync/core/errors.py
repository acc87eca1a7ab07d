"""Exceptions raised by zen-sync.

Every fatal condition is a subclass of :class:`ZenSyncError`. The CLI catches
the base class, prints the message (and any hints) and exits with status 1.
Missing source files are not errors: they are reported and skipped.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class ZenSyncError(Exception):
    """Base class for fatal zen-sync errors.

    Attributes:
        hints: Extra lines shown to the operator below the error message.
    """

    def __init__(self, message: str, hints: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.hints: List[str] = list(hints or [])


class PrerequisiteMissing(ZenSyncError):
    """A required external tool is not installed."""

    def __init__(self, tools: Sequence[str], hints: Optional[Sequence[str]] = None) -> None:
        self.tools = list(tools)
        names = ", ".join(self.tools)
        super().__init__(f"{names} not found. Please install {names}", hints)


class InvalidUrl(ZenSyncError):
    """The repository URL is not shaped like a Git remote."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(
            f"Invalid repository URL format: {url!r}",
            [
                "Examples:",
                "  SSH:   git@github.com:user/zen-backup.git",
                "  HTTPS: https://github.com/user/zen-backup.git",
            ],
        )


class NoProfilesFound(ZenSyncError):
    """No Zen Browser profile directory could be located."""

    def __init__(self) -> None:
        super().__init__(
            "No Zen Browser profiles found. "
            "Make sure Zen Browser is installed and has been run at least once."
        )


class BrowserRunning(ZenSyncError):
    """Zen Browser appears to be running."""

    def __init__(self, processes: Sequence[str]) -> None:
        self.processes = list(processes)
        hints = ["Please close all Zen Browser windows before running backup or restore."]
        if self.processes:
            hints.append("Running processes:")
            hints.extend(f"  {line}" for line in self.processes)
        super().__init__("Zen Browser is currently running!", hints)


class RepositoryNotConfigured(ZenSyncError):
    """No backup repository has been configured yet."""

    def __init__(self) -> None:
        super().__init__("No repository configured!", ["Run: zen-sync repo set <url>"])


class GitCommandError(ZenSyncError, RuntimeError):
    """A git invocation exited with a non-zero status."""

    def __init__(self, args: Sequence[str], stderr: str = "") -> None:
        self.command = list(args)
        self.stderr = stderr
        detail = stderr or "no output"
        super().__init__(f"Git command failed: {detail}")


class CloneFailed(ZenSyncError):
    """The backup repository could not be cloned."""

    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        message = f"Failed to clone repository {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PushRejected(ZenSyncError):
    """The remote rejected the push of a new backup."""

    def __init__(self, detail: str = "") -> None:
        message = "Failed to push to repository"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ArchiveError(ZenSyncError):
    """A folder archive could not be written or unpacked."""

    def __init__(self, archive: str, detail: str = "") -> None:
        self.archive = archive
        message = f"Archive {archive} is unusable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
