"""Exception hierarchy shared by all snapsure modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .lvm.naming import VolumeIdentity


class SnapsureError(Exception):
    """Base class for every error raised by snapsure."""


class ConfigError(SnapsureError):
    """Raised when configuration is invalid or the host is unknown."""


class InventoryError(SnapsureError):
    """Raised when the volume manager cannot be queried or parsed."""


class PreflightError(SnapsureError):
    """Raised before any mutation when the run cannot safely start."""


class CollisionError(PreflightError):
    """One or more snapshot volumes already exist."""

    def __init__(self, identities: list[VolumeIdentity]) -> None:
        self.identities = identities
        names = ", ".join(i.text_name for i in identities)
        super().__init__(f"Snapshot volume(s) already present: {names}")


class MissingSourceError(PreflightError):
    """One or more source volumes are not known to the volume manager."""

    def __init__(self, identities: list[VolumeIdentity]) -> None:
        self.identities = identities
        names = ", ".join(i.text_name for i in identities)
        super().__init__(f"Source volume(s) not found: {names}")


class CreationError(SnapsureError):
    """Snapshot creation failed partway through the filesystem list.

    ``created`` holds the snapshots made before the failure; they are
    left in place and must be removed by the operator.
    """

    def __init__(
        self,
        identity: VolumeIdentity,
        message: str,
        created: list[VolumeIdentity],
    ) -> None:
        self.identity = identity
        self.created = created
        super().__init__(f"Creating {identity.text_name} failed: {message}")


class CycleError(SnapsureError):
    """A step of one filesystem's activate/check/mount/scan cycle failed."""

    step = "cycle"

    def __init__(self, identity: VolumeIdentity, message: str) -> None:
        self.identity = identity
        super().__init__(f"{self.step} {identity.text_name}: {message}")


class ActivationError(CycleError):
    step = "activate"


class IntegrityCheckError(CycleError):
    step = "check"

    def __init__(
        self, identity: VolumeIdentity, message: str, code: int | None = None
    ) -> None:
        self.code = code
        super().__init__(identity, message)


class MountError(CycleError):
    step = "mount"


class ScanError(CycleError):
    step = "scan"

    def __init__(
        self, identity: VolumeIdentity, message: str, code: int | None = None
    ) -> None:
        self.code = code
        super().__init__(identity, message)


class UnmountError(CycleError):
    step = "unmount"


class DeactivationError(CycleError):
    step = "deactivate"
