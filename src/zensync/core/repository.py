"""Git repository handling for zen-sync."""

from __future__ import annotations

import logging
import shutil
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from rich.console import Console

from . import logging as log
from .errors import CloneFailed, GitCommandError, PushRejected

logger = logging.getLogger(__name__)

README_TEXT = "# Zen Browser Backups\n"
INITIAL_BRANCHES = ("master", "main")


def run_git(args: Sequence[str], cwd: Optional[Path] = None) -> str:
    """Run a Git command and return its stripped stdout.

    Raises:
        GitCommandError: If git exits with a non-zero status.
    """
    command = ["git", *args]
    logger.debug("Running %s (cwd=%s)", " ".join(command), cwd)
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or (e.stdout or "").strip()
        raise GitCommandError(command, detail) from e
    return result.stdout.strip()


class GitRepository:
    """A working copy of the backup repository.

    This is the narrow version-control interface zen-sync needs: clone,
    init, stage, commit and push.

    Attributes:
        path (Path): Path to the working copy.
    """

    def __init__(self, path: Path):
        """Initialize repository."""
        self.path = Path(path)

    def __str__(self) -> str:
        """Return string representation."""
        return f"GitRepository({self.path})"

    def __repr__(self) -> str:
        """Return string representation."""
        return self.__str__()

    def _run_git(self, *args: str) -> str:
        """Run a Git command inside the working copy."""
        return run_git(args, cwd=self.path)

    @classmethod
    def clone(cls, url: str, path: Path) -> "GitRepository":
        """Clone ``url`` into ``path``.

        Raises:
            GitCommandError: If the clone fails.
        """
        run_git(["clone", url, str(path)])
        return cls(path)

    def init(self) -> None:
        """Create an empty repository at ``path``."""
        self.path.mkdir(parents=True, exist_ok=True)
        self._run_git("init")

    def add_remote(self, url: str, name: str = "origin") -> None:
        """Register a remote."""
        self._run_git("remote", "add", name, url)

    def add_all(self) -> None:
        """Stage every change in the working copy."""
        self._run_git("add", "--all", ".")

    def commit(self, message: str) -> bool:
        """Commit everything staged.

        A clean working copy is detected with ``git status --porcelain``
        rather than from git's (translated) commit output.

        Returns:
            bool: False if there was nothing to commit.

        Raises:
            GitCommandError: If the commit fails.
        """
        if not self.has_changes():
            logger.debug("Nothing to commit in %s", self.path)
            return False
        self._run_git("commit", "-m", message)
        return True

    def has_changes(self) -> bool:
        """Check whether the working copy has uncommitted changes."""
        return bool(self._run_git("status", "--porcelain"))

    def push(self, *refspec: str, remote: str = "origin", set_upstream: bool = True) -> None:
        """Push to ``remote``.

        Raises:
            GitCommandError: If the remote rejects the push.
        """
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args.append(remote)
        args.extend(refspec)
        self._run_git(*args)


class RepositorySync:
    """Keeps a throwaway clone of the backup repository.

    The scratch directory is deleted before every clone and after every run,
    so nothing in it survives between invocations.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or log.console

    def materialize(self, url: str, scratch_dir: Path, allow_init: bool = True) -> GitRepository:
        """Produce a fresh clone of ``url`` in ``scratch_dir``.

        If the clone fails and ``allow_init`` is set, the remote is assumed
        not to exist yet: an empty repository with a README commit is
        created and pushed to ``master`` or ``main``. Those pushes may fail
        (an empty remote can refuse them) and that is tolerated.

        Raises:
            CloneFailed: If the clone fails and ``allow_init`` is False.
        """
        scratch_dir = Path(scratch_dir)
        self.teardown(scratch_dir)

        log.info("Setting up repository...", self.console)
        try:
            repo = GitRepository.clone(url, scratch_dir)
        except GitCommandError as e:
            if not allow_init:
                raise CloneFailed(url, e.stderr) from e
            logger.debug("Clone of %s failed: %s", url, e.stderr)
        else:
            log.success("Repository cloned successfully", self.console)
            return repo

        log.info("Initializing new repository...", self.console)
        self.teardown(scratch_dir)
        repo = GitRepository(scratch_dir)
        repo.init()
        repo.add_remote(url)
        (scratch_dir / "README.md").write_text(README_TEXT)
        repo.add_all()
        repo.commit("Initial commit")

        for branch in INITIAL_BRANCHES:
            try:
                repo.push(branch)
            except GitCommandError as e:
                logger.debug("Initial push to %s failed: %s", branch, e.stderr)
                continue
            break
        return repo

    def commit_and_push(self, repo: GitRepository, message: str) -> bool:
        """Stage everything, commit and push the current branch.

        Returns:
            bool: False if the working copy had nothing new to commit.

        Raises:
            PushRejected: If the push fails.
        """
        repo.add_all()
        committed = repo.commit(message)
        try:
            repo.push("HEAD")
        except GitCommandError as e:
            raise PushRejected(e.stderr) from e
        return committed

    def teardown(self, scratch_dir: Path) -> None:
        """Remove ``scratch_dir`` and everything below it."""
        scratch_dir = Path(scratch_dir)
        if scratch_dir.is_symlink() or scratch_dir.is_file():
            scratch_dir.unlink()
        elif scratch_dir.exists():
            shutil.rmtree(scratch_dir)
            logger.debug("Removed scratch directory %s", scratch_dir)

    @contextmanager
    def scratch(self, url: str, scratch_dir: Path, allow_init: bool = True) -> Iterator[GitRepository]:
        """Materialize a clone for the duration of a ``with`` block.

        The scratch directory is removed on every exit path, including a
        failed clone.
        """
        try:
            yield self.materialize(url, scratch_dir, allow_init=allow_init)
        finally:
            self.teardown(scratch_dir)
