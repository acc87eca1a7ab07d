"""Command line interface for zen-sync."""

from pathlib import Path
from typing import List, NoReturn, Optional, Tuple

import click
from rich.markup import escape
from rich.table import Table

from .core import logging as log
from .core.config import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE, ConfigStore, validate_repository_url
from .core.environment import install_hints, tool_status
from .core.errors import InvalidUrl, ZenSyncError
from .core.sync import SyncManager

console = log.console

PROGRAM = "zen-sync"

COMMANDS = (
    ("backup", "Back up your Zen profile to a Git repository"),
    ("restore", "Restore your Zen profile from a Git repository"),
    ("repo", "Show the current backup repository"),
    ("repo set", "Set or change the backup repository URL"),
    ("repo clear", "Remove the repository configuration"),
)


def _fail(error: Exception) -> NoReturn:
    """Print a fatal error with its hints and abort with exit status 1."""
    console.print(f"[red]Error: {escape(str(error))}[/red]", highlight=False)
    for hint in getattr(error, "hints", []):
        log.info(hint, console)
    raise click.Abort()


def show_status(store: ConfigStore) -> None:
    """Print usage, repository and tool status, and install hints."""
    console.print()
    console.print("  [blue]Zen Browser Profile Backup & Restore[/blue]")
    console.print("  [bright_black]────────────────────────────────────[/bright_black]")
    console.print()
    console.print(f"  Usage:  [yellow]{PROGRAM}[/yellow] [cyan]<command>[/cyan]")
    console.print()

    commands = Table.grid(padding=(0, 3))
    commands.add_column(style="cyan")
    commands.add_column()
    for name, description in COMMANDS:
        commands.add_row(f"    {name}", description)
    console.print("  Commands:")
    console.print(commands)
    console.print()

    status = Table.grid(padding=(0, 2))
    status.add_column()
    status.add_column()
    status.add_column(style="bright_black")

    try:
        config = store.load()
    except ValueError:
        config = None
    if config is not None and config.repository_url:
        status.add_row("    [green]✓[/green]", "Repository", escape(config.repository_url))
    else:
        status.add_row("    [red]✗[/red]", "Repository", f"Run: {PROGRAM} repo set <url>")

    missing = []
    for tool in tool_status():
        mark = "[green]✓[/green]" if tool.installed else "[red]✗[/red]"
        status.add_row(f"    {mark}", tool.name, tool.detail)
        if not tool.installed:
            missing.append(tool.name)

    console.print("  Status:")
    console.print(status)
    console.print()

    if missing:
        console.print(f"  [red]Missing packages:[/red] {' '.join(missing)}")
        console.print()
        console.print("  Install with:")
        for hint in install_hints(missing):
            console.print(f"    {hint}", highlight=False)
        console.print()


class _StrictGroup(click.Group):
    """Command group that aborts with exit status 1 on an unknown command.

    ``resolve_command`` runs before the group's own callback, so subclasses
    must not rely on anything the callback sets up.
    """

    def unknown_command(self, ctx: click.Context, name: str) -> None:
        raise NotImplementedError

    def resolve_command(
        self, ctx: click.Context, args: List[str]
    ) -> Tuple[Optional[str], Optional[click.Command], List[str]]:
        name = args[0] if args else ""
        if name and not name.startswith("-") and not ctx.resilient_parsing:
            if self.get_command(ctx, name) is None:
                self.unknown_command(ctx, name)
                raise click.Abort()
        return super().resolve_command(ctx, args)


class MainGroup(_StrictGroup):
    """Top-level group: an unknown command shows the status screen."""

    def unknown_command(self, ctx: click.Context, name: str) -> None:
        log.error(f"Unknown command: {name}", console)
        show_status(ConfigStore(ctx.params.get("config_path")))


class RepoGroup(_StrictGroup):
    """``repo`` group: an unknown subcommand shows its usage line."""

    def unknown_command(self, ctx: click.Context, name: str) -> None:
        log.error(f"Unknown repo command: {name}", console)
        log.info(f"Usage: {PROGRAM} repo [set|clear]", console)


@click.group(cls=MainGroup, invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write debug logging to this file",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=CONFIG_ENV_VAR,
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Repository configuration file",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, log_file: Optional[Path], config_path: Path) -> None:
    """Back up and restore Zen Browser profiles using a Git repository.

    Main commands:

      backup      Back up your Zen profile to a Git repository
      restore     Restore your Zen profile from a Git repository
      repo        Show, set or clear the backup repository

    Run without a command to see the current status.
    """
    log.setup_logging(debug=debug, log_file=str(log_file) if log_file else None)
    ctx.obj = ConfigStore(config_path)

    if ctx.invoked_subcommand is None:
        show_status(ctx.obj)
        ctx.exit(1)


@cli.command()
@click.pass_obj
def backup(store: ConfigStore) -> None:
    """Back up your Zen profile to a Git repository.

    The backup command will:
    1. Check that Zen Browser is closed and git is installed
    2. Select a profile (asking if there are several)
    3. Clone the backup repository, creating it if it does not exist yet
    4. Copy databases, session files and archived folders into it
    5. Commit and push, then remove the local clone
    """
    try:
        SyncManager(store).backup()
    except (ZenSyncError, OSError, ValueError) as e:
        _fail(e)


@cli.command()
@click.pass_obj
def restore(store: ConfigStore) -> None:
    """Restore your Zen profile from a Git repository.

    Existing files in the profile are kept as <name>.bak.
    """
    try:
        SyncManager(store).restore()
    except (ZenSyncError, OSError, ValueError) as e:
        _fail(e)


@cli.group(cls=RepoGroup, invoke_without_command=True)
@click.pass_context
def repo(ctx: click.Context) -> None:
    """Show the current backup repository."""
    if ctx.invoked_subcommand is not None:
        return

    store: ConfigStore = ctx.obj
    try:
        config = store.load()
    except ValueError as e:
        _fail(e)
    if config is None:
        log.warn("No repository configured yet", console)
        log.info(f"Run: {PROGRAM} repo set <url>", console)
        ctx.exit(1)

    console.print()
    console.print(f"  Repository:   [cyan]{escape(config.repository_url)}[/cyan]", highlight=False)
    console.print(f"  Last backup:  [bright_black]{config.last_backup or 'never'}[/bright_black]")
    console.print(f"  Last restore: [bright_black]{config.last_restore or 'never'}[/bright_black]")
    console.print()


def _prompt_for_url() -> str:
    """Ask until a valid repository URL is entered."""
    log.header("Repository Setup", console)
    log.info("You need to provide a Git repository URL for your backups.", console)
    log.info("Examples:", console)
    log.info("  SSH: git@github.com:username/zen-browser-backup.git", console)
    log.info("  HTTPS: https://github.com/username/zen-browser-backup.git", console)

    while True:
        url = click.prompt(
            "Enter your backup repository URL", default="", show_default=False, err=True
        ).strip()
        if not url:
            log.error("Repository URL cannot be empty", console)
            continue
        try:
            return validate_repository_url(url)
        except InvalidUrl as e:
            log.error(str(e), console)


@repo.command("set")
@click.argument("url", required=False)
@click.pass_obj
def repo_set(store: ConfigStore, url: Optional[str]) -> None:
    """Set or change the backup repository URL.

    Without URL the repository is asked for interactively.

    Examples:

      zen-sync repo set git@github.com:user/zen-backup.git

      zen-sync repo set https://github.com/user/zen-backup.git
    """
    if url is None:
        url = _prompt_for_url()
    elif not url.strip():
        _fail(ZenSyncError("Repository URL cannot be empty"))

    try:
        config = store.save(url)
    except ZenSyncError as e:
        _fail(e)
    log.success("Configuration saved", console)
    log.success(f"Repository set to: {config.repository_url}", console)


@repo.command("clear")
@click.pass_obj
def repo_clear(store: ConfigStore) -> None:
    """Remove the repository configuration."""
    if store.clear():
        log.success("Repository configuration removed", console)
    else:
        log.warn("No configuration to remove", console)


def main() -> None:
    """Entry point for the zen-sync CLI."""
    cli()


if __name__ == "__main__":
    main()
