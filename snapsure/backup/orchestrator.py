"""Snapshot orchestration: preflight -> snapshots -> per-filesystem scans."""

from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from pathlib import PurePosixPath
from typing import Iterator, Optional

from pydantic import BaseModel, Field

from ..command import CommandResult, CommandRunner, format_command
from ..config import FilesystemSpec, HostProfile
from ..errors import (
    ActivationError,
    CollisionError,
    CreationError,
    CycleError,
    DeactivationError,
    IntegrityCheckError,
    MissingSourceError,
    MountError,
    ScanError,
    UnmountError,
)
from ..lvm import Namer, VolumeIdentity, VolumeInventory
from .fsck import CheckOutcome, fsck_command, interpret_fsck
from .scan import ScanInvocation

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    """Where a backup run currently is."""

    PREFLIGHT = "preflight"
    SNAPSHOTTING = "snapshotting"
    PER_FILESYSTEM = "per-filesystem"
    DONE = "done"
    ABORTED = "aborted"


class PlannedSnapshot(BaseModel):
    """The snapshot a filesystem will get, and whether it can be made."""

    filesystem: str
    snapshot: str
    device: str
    mount_point: str
    exists: bool
    source_exists: bool

    @property
    def ready(self) -> bool:
        return self.source_exists and not self.exists


class StepRecord(BaseModel):
    """One external command issued during a filesystem cycle."""

    step: str
    command: str
    returncode: Optional[int] = None
    ok: bool


class FilesystemResult(BaseModel):
    """Outcome of one filesystem's activate/check/mount/scan cycle."""

    filesystem: str
    snapshot: str
    device: str
    mount_point: str
    success: bool
    check_outcome: Optional[CheckOutcome] = None
    steps: list[StepRecord] = Field(default_factory=list)
    failed_step: Optional[str] = None
    error: Optional[str] = None


class BackupResult(BaseModel):
    """Outcome of a whole backup run."""

    host: str
    timestamp: str
    dry_run: bool
    created: list[str]
    results: list[FilesystemResult]
    success: bool
    error: Optional[str] = None


class Backup:
    """One backup run over a host profile.

    Preflight and snapshotting failures abort the run by raising.
    Per-filesystem failures are recorded and the remaining
    filesystems are still processed.
    """

    def __init__(
        self,
        profile: HostProfile,
        namer: Namer,
        inventory: VolumeInventory,
        runner: CommandRunner,
        scanner: ScanInvocation,
    ) -> None:
        self.profile = profile
        self.namer = namer
        self.inventory = inventory
        self.runner = runner
        self.scanner = scanner
        self.phase = Phase.PREFLIGHT
        self.created: list[VolumeIdentity] = []

    def mount_point(self, fs: FilesystemSpec) -> str:
        snapshot_dir = PurePosixPath(self.profile.snapshot_dir)
        return str(snapshot_dir / fs.logical_volume)

    def plan(self) -> list[PlannedSnapshot]:
        """Describe every snapshot of this run against the inventory."""
        planned: list[PlannedSnapshot] = []
        for fs in self.profile.filesystems:
            snap = self.namer.snapshot_identity(fs)
            planned.append(
                PlannedSnapshot(
                    filesystem=fs.source.text_name,
                    snapshot=snap.text_name,
                    device=snap.device_path,
                    mount_point=self.mount_point(fs),
                    exists=self.inventory.has_volume(snap),
                    source_exists=self.inventory.has_volume(fs.source),
                )
            )
        return planned

    def preflight(self) -> None:
        """Refuse to start if any snapshot exists or any source is missing.

        Issues no commands.
        """
        self.phase = Phase.PREFLIGHT
        collisions: list[VolumeIdentity] = []
        missing: list[VolumeIdentity] = []
        for fs in self.profile.filesystems:
            snap = self.namer.snapshot_identity(fs)
            if self.inventory.has_volume(snap):
                collisions.append(snap)
            if not self.inventory.has_volume(fs.source):
                missing.append(fs.source)

        if collisions:
            raise CollisionError(collisions)
        elif missing:
            raise MissingSourceError(missing)

    def make_snapshots(self) -> list[VolumeIdentity]:
        """Create a COW snapshot of every filesystem, in config order.

        Snapshots made before a failure are kept; CreationError lists
        them so the operator can clean up.
        """
        self.phase = Phase.SNAPSHOTTING
        self.created = []
        for fs in self.profile.filesystems:
            snap = self.namer.snapshot_identity(fs)
            args = ["lvcreate", "-s", fs.source.text_name, "-n", snap.name]
            try:
                result = self.runner.run(args)
            except OSError as e:
                raise CreationError(
                    snap, f"unable to run lvcreate: {e}", list(self.created)
                ) from e
            if result.returncode != 0:
                raise CreationError(
                    snap,
                    f"lvcreate exited with code {result.returncode}",
                    list(self.created),
                )
            self.created.append(snap)
        return list(self.created)

    def scan_all(self) -> list[FilesystemResult]:
        self.phase = Phase.PER_FILESYSTEM
        return [self.scan_one(fs) for fs in self.profile.filesystems]

    def scan_one(self, fs: FilesystemSpec) -> FilesystemResult:
        """Activate, check, mount, scan, unmount and deactivate a snapshot."""
        snap = self.namer.snapshot_identity(fs)
        mount_point = self.mount_point(fs)
        steps: list[StepRecord] = []
        release_errors: list[CycleError] = []
        outcome: CheckOutcome | None = None
        error: CycleError | None = None

        try:
            with self._activated(snap, steps, release_errors):
                outcome = self._check(snap, steps)
                with self._mounted(snap, mount_point, steps, release_errors):
                    self._scan(fs, snap, mount_point, steps)
        except IntegrityCheckError as e:
            outcome = CheckOutcome.FAILED
            error = e
        except CycleError as e:
            error = e

        if error is None and release_errors:
            error = release_errors[0]
        if error is not None:
            logger.error("%s", error)

        return FilesystemResult(
            filesystem=fs.source.text_name,
            snapshot=snap.text_name,
            device=snap.device_path,
            mount_point=mount_point,
            success=error is None,
            check_outcome=outcome,
            steps=steps,
            failed_step=error.step if error is not None else None,
            error=str(error) if error is not None else None,
        )

    def run(self) -> BackupResult:
        """Run every phase. Raises on preflight or snapshot failure."""
        try:
            self.preflight()
            self.make_snapshots()
        except Exception:
            self.phase = Phase.ABORTED
            raise

        results = self.scan_all()
        self.phase = Phase.DONE
        first_failure = next((r for r in results if not r.success), None)
        return BackupResult(
            host=self.profile.name,
            timestamp=self.namer.timestamp,
            dry_run=self.runner.dry_run,
            created=[s.text_name for s in self.created],
            results=results,
            success=first_failure is None,
            error=first_failure.error if first_failure is not None else None,
        )

    def _exec(
        self,
        step: str,
        args: list[str],
        identity: VolumeIdentity,
        error_cls: type[CycleError],
        steps: list[StepRecord],
        *,
        cwd: str | None = None,
        accept: tuple[int, ...] = (0,),
    ) -> CommandResult:
        """Run one cycle command and record it.

        OSError is converted to ``error_cls``; a non-accepted exit code
        is only recorded, the caller decides what it means.
        """
        try:
            result = self.runner.run(args, cwd=cwd)
        except OSError as e:
            steps.append(
                StepRecord(step=step, command=format_command(args), ok=False)
            )
            raise error_cls(identity, f"unable to run {args[0]}: {e}") from e
        steps.append(
            StepRecord(
                step=step,
                command=format_command(args),
                returncode=result.returncode,
                ok=result.returncode in accept,
            )
        )
        return result

    def _release(
        self,
        step: str,
        args: list[str],
        identity: VolumeIdentity,
        error_cls: type[CycleError],
        steps: list[StepRecord],
        release_errors: list[CycleError],
    ) -> None:
        """Best-effort release: failures are logged and collected."""
        try:
            result = self._exec(step, args, identity, error_cls, steps)
        except CycleError as e:
            logger.warning("%s", e)
            release_errors.append(e)
            return
        if result.returncode != 0:
            err = error_cls(
                identity, f"{args[0]} exited with code {result.returncode}"
            )
            logger.warning("%s", err)
            release_errors.append(err)

    @contextmanager
    def _activated(
        self,
        identity: VolumeIdentity,
        steps: list[StepRecord],
        release_errors: list[CycleError],
    ) -> Iterator[None]:
        device = identity.device_path
        args = ["lvchange", "-ay", "-K", device]
        result = self._exec("activate", args, identity, ActivationError, steps)
        if result.returncode != 0:
            raise ActivationError(
                identity, f"lvchange exited with code {result.returncode}"
            )
        try:
            yield
        finally:
            self._release(
                "deactivate",
                ["lvchange", "-an", device],
                identity,
                DeactivationError,
                steps,
                release_errors,
            )

    @contextmanager
    def _mounted(
        self,
        identity: VolumeIdentity,
        mount_point: str,
        steps: list[StepRecord],
        release_errors: list[CycleError],
    ) -> Iterator[None]:
        device = identity.device_path
        args = ["mount", "-r", device, mount_point]
        result = self._exec("mount", args, identity, MountError, steps)
        if result.returncode != 0:
            raise MountError(
                identity, f"mount exited with code {result.returncode}"
            )
        try:
            yield
        finally:
            self._release(
                "unmount",
                ["umount", device],
                identity,
                UnmountError,
                steps,
                release_errors,
            )

    def _check(
        self, identity: VolumeIdentity, steps: list[StepRecord]
    ) -> CheckOutcome:
        result = self._exec(
            "check",
            fsck_command(identity),
            identity,
            IntegrityCheckError,
            steps,
            accept=(0, 1),
        )
        outcome = interpret_fsck(result.returncode)
        match outcome:
            case CheckOutcome.FAILED:
                raise IntegrityCheckError(
                    identity,
                    f"fsck exited with code {result.returncode}",
                    code=result.returncode,
                )
            case CheckOutcome.CORRECTED:
                logger.info("fsck corrected errors on %s", identity)
        return outcome

    def _scan(
        self,
        fs: FilesystemSpec,
        identity: VolumeIdentity,
        mount_point: str,
        steps: list[StepRecord],
    ) -> None:
        result = self._exec(
            "scan",
            self.scanner.command(fs),
            identity,
            ScanError,
            steps,
            cwd=mount_point,
        )
        self.scanner.verify(identity, result.returncode)
