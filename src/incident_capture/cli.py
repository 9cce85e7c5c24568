"""
Command-line interface for Incident Capture.

Provides commands for capturing redacted diagnostics into incident directories.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from incident_capture import __version__
from incident_capture.atomic import AtomicWriteError, atomic_write
from incident_capture.capabilities import Category, commands_for, detect_platform, resolve_platform
from incident_capture.config import Config
from incident_capture.core import CaptureOrchestrator
from incident_capture.incident import Incident
from incident_capture.modules import CaptureResult
from incident_capture.redaction import Redactor

console = Console()


def setup_logging(level: str, log_file: str | None = None) -> None:
    """Configure logging with rich handler."""
    handlers: list[logging.Handler] = [RichHandler(console=console, rich_tracebacks=True)]
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
    )


@click.group()
@click.version_option(version=__version__, prog_name="incap")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "-V",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """
    Incident Capture - Redacted diagnostic snapshots.

    Run read-only inspection commands and store their sanitized output
    in a per-incident directory.
    """
    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = Config.load(config) if config else Config.load()
    except yaml.YAMLError as e:
        raise click.BadParameter(f"invalid YAML: {e}", param_hint="--config") from e
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    log_level = "DEBUG" if verbose else ctx.obj["config"].log_level
    setup_logging(log_level, ctx.obj["config"].log_file)
    ctx.obj["verbose"] = verbose


@main.command()
@click.option("--dry-run", is_flag=True, help="Show what would run without executing")
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory that holds the incidents",
)
@click.option("--label", "-l", help="Short description stored with the incident")
@click.option("--platform", "platform_name", help="Override the detected platform")
@click.pass_context
def capture(
    ctx: click.Context,
    dry_run: bool,
    output_dir: Path | None,
    label: str | None,
    platform_name: str | None,
) -> None:
    """
    Capture diagnostics into a new incident.

    Every command is read-only. Output is redacted before it is written.
    """
    config: Config = ctx.obj["config"]
    if dry_run:
        config.dry_run = True
    if output_dir:
        config.output_dir = str(output_dir)
    if platform_name:
        config.platform = platform_name

    incident = Incident.create(config.incidents_dir, label=label)
    orchestrator = CaptureOrchestrator(config, console=console)

    console.print()
    console.print(
        Panel.fit(
            f"[bold blue]Incident Capture v{__version__}[/]\n"
            f"Incident [cyan]{incident.incident_id}[/] on {orchestrator.platform.value}"
            + (" [yellow](dry run)[/]" if config.dry_run else ""),
            border_style="blue",
        )
    )
    console.print()

    _record_event(incident, "capture_started", dry_run=config.dry_run, platform=orchestrator.platform.value)
    try:
        results = orchestrator.run(incident)
    except AtomicWriteError as e:
        console.print(f"[red]✗ Could not write incident metadata: {e}[/]")
        sys.exit(1)

    captured = sum(1 for r in results if r.success)
    _record_event(incident, "capture_finished", captured=captured, total=len(results))

    console.print()
    _display_summary(results)
    console.print(f"\n[dim]Incident saved to: {incident.path}[/]")


def _record_event(incident: Incident, event: str, **fields) -> None:
    """Append to the event trail, reporting a failed write without aborting the capture."""
    try:
        incident.record_event(event, **fields)
    except AtomicWriteError as e:
        console.print(f"[yellow]⚠ Could not record {event} event: {e}[/]")


def _display_summary(results: list[CaptureResult]) -> None:
    """Display a summary table of capture results."""
    table = Table(title="Capture Results", show_header=True)
    table.add_column("Module", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Bytes", justify="right")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Note")

    for result in results:
        status = "[green]✓[/]" if result.success else "[yellow]–[/]"
        table.add_row(
            result.name,
            status,
            str(len(result.output.encode("utf-8"))),
            f"{result.duration:.0f}",
            result.error_msg or "",
        )

    console.print(table)


@main.command("list")
@click.option("--platform", "platform_name", help="Platform to list commands for")
@click.pass_context
def list_commands(ctx: click.Context, platform_name: str | None) -> None:
    """List capture categories and the commands they run."""
    config: Config = ctx.obj["config"]
    name = platform_name or config.platform
    plat = resolve_platform(name) if name else detect_platform()

    table = Table(title=f"Capture Commands ({plat.value})", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Description")
    table.add_column("Commands")

    for category in Category:
        commands = commands_for(category, plat)
        table.add_row(
            category.value,
            category.display_name,
            "\n".join(commands) if commands else "[dim]skipped[/]",
        )

    console.print()
    console.print(table)


@main.command()
@click.argument("source", type=click.File("r"), default="-")
@click.pass_context
def redact(ctx: click.Context, source) -> None:
    """
    Redact a file (or stdin) and print the result.

    Uses the same patterns as capture, including configured extras.
    """
    config: Config = ctx.obj["config"]
    redactor = Redactor(extra_expressions=config.extra_redaction_patterns)
    click.echo(redactor.redact(source.read()), nl=False)


@main.command("version", short_help="Display version information")
def version() -> None:
    """Display version information for Incident Capture."""
    console.print()
    console.print(
        Panel.fit(
            f"[bold blue]Incident Capture[/]\nVersion: [cyan]{__version__}[/]",
            border_style="blue",
            title="Version Information",
        )
    )
    console.print()

    table = Table(show_header=False, box=None)
    table.add_column("Component", style="dim", width=20)
    table.add_column("Version", style="cyan")

    table.add_row("Incident Capture", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)
    console.print()


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    config: Config = ctx.obj["config"]
    plat = resolve_platform(config.platform) if config.platform else detect_platform()

    console.print()
    console.print(Panel.fit("[bold]Incident Capture Status[/]", border_style="blue"))

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Platform", plat.value)
    table.add_row("Dry Run", "Yes" if config.dry_run else "No")
    table.add_row("Command Timeout", f"{config.command_timeout}s")
    table.add_row("Incidents Dir", str(config.incidents_dir))
    table.add_row("Extra Patterns", str(len(config.extra_redaction_patterns)))
    table.add_row("Log Level", config.log_level)
    table.add_row("Log File", config.log_file or "[dim]Not set[/]")

    console.print(table)


SAMPLE_CONFIG = """# Incident Capture Configuration

# Capture settings
capture:
  # Simulate capture without running commands or writing logs
  dry_run: false

  # Per-command timeout in seconds
  command_timeout: 30

  # Override platform detection: linux, macos, windows
  platform: null

# Output settings
output:
  # Incidents are created under <output_dir>/incidents
  output_dir: ~/.local/share/incident-capture

# Redaction
redaction:
  # Extra regular expressions, applied after the built-in patterns
  extra_redaction_patterns: []

# Logging
logging:
  # Log level: DEBUG, INFO, WARNING, ERROR
  log_level: INFO

  # Log file path (null = console only)
  log_file: null
"""


@main.command()
@click.argument("output_path", type=click.Path(path_type=Path))
def init_config(output_path: Path) -> None:
    """
    Generate a sample configuration file.

    Creates a YAML configuration file with all available options.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write(output_path, SAMPLE_CONFIG)
    console.print(f"[green]✓ Configuration file created: {output_path}[/]")
    console.print()
    console.print("Next steps:")
    console.print("  1. Edit the configuration file")
    console.print(f"  2. Run a dry capture: [cyan]incap -c {output_path} capture --dry-run[/]")


@main.command("host-id")
@click.option(
    "--reset",
    is_flag=True,
    help="Reset the host ID (generates a new UUID)",
)
@click.pass_context
def host_id(ctx: click.Context, reset: bool) -> None:
    """
    Display or reset the persistent host ID.

    The host ID is recorded in every incident captured on this machine.
    """
    from incident_capture.host_id import get_host_id, reset_host_id

    config: Config = ctx.obj["config"]

    if reset:
        if not click.confirm("Resetting the host ID breaks correlation with earlier incidents. Continue?"):
            console.print("[yellow]Cancelled[/]")
            return

        new_id = reset_host_id(config.output_dir)
        console.print(f"[green]✓[/] Host ID reset to: [cyan]{new_id}[/]")
    else:
        console.print(f"[bold]Host ID:[/] [cyan]{get_host_id(config.output_dir)}[/]")


if __name__ == "__main__":
    main()
