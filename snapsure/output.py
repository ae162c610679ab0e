"""CLI output formatting."""

from __future__ import annotations

import enum

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .backup import BackupResult, CheckOutcome, PlannedSnapshot
from .config import HostProfile
from .errors import ConfigError, CreationError, SnapsureError


class OutputFormat(str, enum.Enum):
    """Output format for CLI commands."""

    HUMAN = "human"
    JSON = "json"


def _plan_status(planned: PlannedSnapshot) -> Text:
    """Format whether a planned snapshot can be created."""
    reasons: list[str] = []
    if planned.exists:
        reasons.append("snapshot exists")
    if not planned.source_exists:
        reasons.append("source missing")
    if reasons:
        return Text(f"blocked ({', '.join(reasons)})", style="red")
    else:
        return Text("ready", style="green")


def _check_text(outcome: CheckOutcome | None) -> Text:
    match outcome:
        case CheckOutcome.CLEAN:
            return Text("clean", style="green")
        case CheckOutcome.CORRECTED:
            return Text("corrected", style="yellow")
        case CheckOutcome.FAILED:
            return Text("failed", style="red")
        case _:
            return Text("-", style="dim")


def print_human_plan(
    profile: HostProfile,
    timestamp: str,
    planned: list[PlannedSnapshot],
    *,
    console: Console | None = None,
) -> None:
    """Print the snapshots a run would create on this host."""
    if console is None:
        console = Console()

    table = Table(title=f"Snapshots for {profile.name} ({timestamp}):")
    table.add_column("Filesystem", style="bold")
    table.add_column("Snapshot")
    table.add_column("Device")
    table.add_column("Mount point")
    table.add_column("Status")

    for p in planned:
        table.add_row(
            p.filesystem,
            p.snapshot,
            p.device,
            p.mount_point,
            _plan_status(p),
        )

    console.print(table)


def print_human_results(
    result: BackupResult,
    *,
    console: Console | None = None,
) -> None:
    """Print human-readable run results."""
    if console is None:
        console = Console()
    mode = " (dry run)" if result.dry_run else ""

    table = Table(title=f"Backup results for {result.host}{mode}:")
    table.add_column("Filesystem", style="bold")
    table.add_column("Snapshot")
    table.add_column("fsck")
    table.add_column("Status")
    table.add_column("Details")

    for r in result.results:
        if r.success:
            status = Text("OK", style="green")
        else:
            status = Text("FAILED", style="red")

        details_parts: list[str] = []
        if r.error:
            details_parts.append(f"Error: {r.error}")
        released = [s for s in r.steps if s.step in ("unmount", "deactivate")]
        for s in released:
            if not s.ok:
                details_parts.append(f"Release failed: {s.command}")

        table.add_row(
            r.filesystem,
            r.snapshot,
            _check_text(r.check_outcome),
            status,
            "\n".join(details_parts),
        )

    console.print(table)


def print_backup_error(
    e: SnapsureError,
    *,
    console: Console | None = None,
) -> None:
    """Print a run-fatal error as a Rich panel to stderr."""
    if console is None:
        console = Console(stderr=True)
    lines = [str(e)]
    match e:
        case CreationError() if e.created:
            lines.append("")
            lines.append("Snapshots left in place, remove them manually:")
            lines.extend(f"  lvremove {s.text_name}" for s in e.created)
    console.print(
        Panel("\n".join(lines), title="Backup aborted", style="red")
    )


def print_config_error(
    e: ConfigError,
    *,
    console: Console | None = None,
) -> None:
    """Print a ConfigError as a Rich panel to stderr."""
    if console is None:
        console = Console(stderr=True)
    cause = e.__cause__
    match cause:
        case ValidationError():
            lines: list[str] = []
            for err in cause.errors():
                loc = " → ".join(str(p) for p in err["loc"])
                msg = err["msg"]
                if msg.startswith("Value error, "):
                    msg = msg[len("Value error, "):]
                if loc:
                    lines.append(f"{loc}: {msg}")
                else:
                    lines.append(msg)
            body = "\n".join(lines)
        case _:
            body = str(e)
    console.print(Panel(body, title="Config error", style="red"))
