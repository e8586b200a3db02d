"""selfupgrade CLI entry point."""

import logging
import platform

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


class ConsoleReporter:
    """Renders upgrade progress on the console."""

    def __init__(self, out: Console):
        self.out = out

    def step(self, message: str) -> None:
        self.out.print(f"[cyan]→[/cyan] {escape(message)}")

    def success(self, message: str) -> None:
        self.out.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self.out.print(f"[yellow]![/yellow] {escape(message)}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """selfupgrade - keep this tool up to date."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
def version() -> None:
    """Show the installed version."""
    from selfupgrade.upgrade import get_current_version

    console.print(get_current_version())


@cli.command()
def upgrade() -> None:
    """Upgrade to the latest version."""
    from selfupgrade.config import UpgradeConfig
    from selfupgrade.download import HttpArtifactDownloader
    from selfupgrade.errors import UnsupportedPlatformError, UpgradeFailedError, UpgradeStage
    from selfupgrade.releases import HttpReleaseFetcher
    from selfupgrade.swap import select_swapper
    from selfupgrade.upgrade import Upgrader, get_current_version

    try:
        config = UpgradeConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    try:
        swapper = select_swapper(elevation_command=config.elevation_command)
    except UnsupportedPlatformError as e:
        console.print(f"[red]✗[/red] Unable to upgrade: {escape(str(e))}")
        raise SystemExit(UpgradeStage.INSTALL.exit_code) from e

    upgrader = Upgrader(
        current_version=get_current_version(),
        fetcher=HttpReleaseFetcher(config.resolved_releases_url, timeout=config.timeout),
        downloader=HttpArtifactDownloader(
            config.resolved_download_url_template,
            config.tool_name,
            timeout=config.timeout,
        ),
        swapper=swapper,
        scratch_path=config.scratch_path(windows=platform.system() == "Windows"),
        executable_path=config.executable,
        reporter=ConsoleReporter(console),
    )

    try:
        upgrader.run()
    except UpgradeFailedError as e:
        console.print(f"[red]✗[/red] {escape(e.message)}")
        if e.cause is not None:
            console.print(f"  [dim]{type(e.cause).__name__}: {escape(str(e.cause))}[/dim]")
        if e.needs_manual_recovery:
            console.print("  [yellow]The installation needs manual recovery.[/yellow]")
        raise SystemExit(e.stage.exit_code) from e


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
