"""Typer CLI: check and run commands."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .backup import Backup, ScanInvocation
from .command import CommandRunner
from .config import (
    Config,
    ConfigError,
    HostProfile,
    load_config,
    resolve_host_profile,
)
from .errors import CreationError, SnapsureError
from .lvm import Namer, VolumeInventory
from .output import (
    OutputFormat,
    print_backup_error,
    print_config_error,
    print_human_plan,
    print_human_results,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="snapsure",
    help="LVM snapshot backups with integrity scanning",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Optional[str],
    typer.Option("--config", "-c", help="Path to config file"),
]
HostOption = Annotated[
    Optional[str],
    typer.Option("--host", help="Host profile to use (default: hostname)"),
]
OutputOption = Annotated[
    OutputFormat,
    typer.Option("--output", "-o", help="Output format"),
]
VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase log verbosity (-v, -vv)",
    ),
]


@app.command()
def check(
    config: ConfigOption = None,
    host: HostOption = None,
    output: OutputOption = OutputFormat.HUMAN,
    verbose: VerboseOption = 0,
) -> None:
    """Show the snapshots a run would create, without changing anything."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    profile = _resolve_host_or_exit(cfg, host)
    runner = CommandRunner(cfg.privilege, dry_run=True)
    try:
        backup = _build_backup(cfg, profile, runner)
    except SnapsureError as e:
        logger.error("%s", e)
        _report_fatal(e, output, profile)
        raise typer.Exit(1)

    planned = backup.plan()
    match output:
        case OutputFormat.JSON:
            data = {
                "host": profile.name,
                "timestamp": backup.namer.timestamp,
                "snapshots": [p.model_dump() for p in planned],
            }
            typer.echo(json.dumps(data, indent=2))
        case OutputFormat.HUMAN:
            print_human_plan(profile, backup.namer.timestamp, planned)

    if not all(p.ready for p in planned):
        raise typer.Exit(1)


@app.command()
def run(
    config: ConfigOption = None,
    host: HostOption = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Log volume and mount commands without running them",
        ),
    ] = False,
    output: OutputOption = OutputFormat.HUMAN,
    verbose: VerboseOption = 0,
) -> None:
    """Snapshot, check, mount and scan every filesystem of this host.

    Every command is logged, even without -v. Use -vv for debug output.
    """
    _setup_logging(max(verbose, 1))
    cfg = _load_config_or_exit(config)
    profile = _resolve_host_or_exit(cfg, host)
    runner = CommandRunner(cfg.privilege, dry_run=dry_run)
    try:
        backup = _build_backup(cfg, profile, runner)
        result = backup.run()
    except SnapsureError as e:
        logger.error("%s", e)
        if isinstance(e, CreationError) and e.created:
            logger.error(
                "Snapshots left for manual cleanup: %s",
                ", ".join(s.text_name for s in e.created),
            )
        _report_fatal(e, output, profile)
        raise typer.Exit(1)

    match output:
        case OutputFormat.JSON:
            typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        case OutputFormat.HUMAN:
            print_human_results(result)

    if not result.success:
        raise typer.Exit(1)


def _build_backup(
    cfg: Config, profile: HostProfile, runner: CommandRunner
) -> Backup:
    """Capture the run timestamp and LVM inventory for a backup."""
    namer = Namer.today(cfg.timestamp_format)
    inventory = VolumeInventory.load(runner)
    return Backup(
        profile,
        namer,
        inventory,
        runner,
        ScanInvocation.from_config(cfg.scanner),
    )


def _report_fatal(
    e: SnapsureError, output: OutputFormat, profile: HostProfile
) -> None:
    match output:
        case OutputFormat.JSON:
            data: dict[str, object] = {
                "host": profile.name,
                "success": False,
                "error": str(e),
            }
            if isinstance(e, CreationError):
                data["created"] = [s.text_name for s in e.created]
            typer.echo(json.dumps(data, indent=2))
        case OutputFormat.HUMAN:
            print_backup_error(e)


def _setup_logging(verbose: int) -> None:
    match verbose:
        case 0:
            level = logging.WARNING
        case 1:
            level = logging.INFO
        case _:
            level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=Console(stderr=True), show_path=False)
        ],
        force=True,
    )


def _load_config_or_exit(config_path: str | None) -> Config:
    """Load config or exit with code 2 on error."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        print_config_error(e)
        raise typer.Exit(2)


def _resolve_host_or_exit(cfg: Config, hostname: str | None) -> HostProfile:
    """Resolve the host profile or exit with code 2 on error."""
    try:
        return resolve_host_profile(cfg, hostname)
    except ConfigError as e:
        print_config_error(e)
        raise typer.Exit(2)


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
