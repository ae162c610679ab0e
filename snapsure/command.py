"""External command execution with optional sudo elevation.

Every volume-manager, filesystem and scanner invocation goes through
:class:`CommandRunner`, which logs the command line and working
directory before running it.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PRIVILEGE_MODES = ("auto", "sudo", "none")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of an external command.

    Attributes:
        args: The command line that was run (including any sudo prefix).
        returncode: Exit code of the command.
        stdout: Captured standard output, empty when not captured.
        stderr: Captured standard error, empty when not captured.
    """

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


def format_command(args: list[str] | tuple[str, ...]) -> str:
    return " ".join(shlex.quote(a) for a in args)


def _lvm_env() -> dict[str, str]:
    # Stable, untranslated output for the LVM reports we parse.
    return {**os.environ, "LC_ALL": "C"}


class CommandRunner:
    """Runs commands, elevating through sudo when needed.

    Args:
        privilege: ``auto`` prefixes sudo unless running as root,
            ``sudo`` always prefixes it, ``none`` never does.
        dry_run: Log commands passed to :meth:`run` without executing
            them. :meth:`capture` is reserved for read-only queries and
            always executes.
    """

    def __init__(self, privilege: str = "auto", dry_run: bool = False) -> None:
        if privilege not in PRIVILEGE_MODES:
            raise ValueError(f"Unknown privilege mode: {privilege!r}")
        self.privilege = privilege
        self.dry_run = dry_run

    @property
    def use_sudo(self) -> bool:
        match self.privilege:
            case "sudo":
                return True
            case "none":
                return False
            case _:
                return os.geteuid() != 0

    def command_line(self, args: list[str]) -> list[str]:
        if self.use_sudo:
            return ["sudo", *args]
        else:
            return list(args)

    def _show(self, argv: list[str], cwd: str | None) -> None:
        prefix = "[dry-run] " if self.dry_run else ""
        logger.info("%s%s", prefix, format_command(argv))
        if cwd is not None:
            logger.info("  in dir: %r", cwd)

    def run(self, args: list[str], cwd: str | None = None) -> CommandResult:
        """Run a command with inherited stdout/stderr.

        Raises:
            OSError: If the command cannot be started.
        """
        argv = self.command_line(args)
        self._show(argv, cwd)
        if self.dry_run:
            return CommandResult(args=tuple(argv), returncode=0)
        else:
            proc = subprocess.run(argv, cwd=cwd, check=False)
            if proc.returncode != 0:
                logger.debug(
                    "%s exited with code %d", args[0], proc.returncode
                )
            return CommandResult(args=tuple(argv), returncode=proc.returncode)

    def capture(self, args: list[str]) -> CommandResult:
        """Run a read-only query and capture its output.

        Raises:
            OSError: If the command cannot be started.
        """
        argv = self.command_line(args)
        logger.info("%s", format_command(argv))
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            check=False,
            env=_lvm_env(),
        )
        return CommandResult(
            args=tuple(argv),
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )
