"""Interpretation of fsck(8) exit statuses."""

from __future__ import annotations

import enum

from ..lvm.naming import VolumeIdentity


class CheckOutcome(str, enum.Enum):
    """Result of a preen-mode filesystem check."""

    CLEAN = "clean"
    CORRECTED = "corrected"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not CheckOutcome.FAILED


def interpret_fsck(code: int) -> CheckOutcome:
    """Map an fsck exit status to a CheckOutcome.

    fsck reserves 1 for "errors corrected", which is safe to continue
    from. Every other non-zero status (uncorrected errors, usage or
    operational errors, cancellation) is a failure.
    """
    match code:
        case 0:
            return CheckOutcome.CLEAN
        case 1:
            return CheckOutcome.CORRECTED
        case _:
            return CheckOutcome.FAILED


def fsck_command(identity: VolumeIdentity) -> list[str]:
    return ["fsck", "-p", "-f", identity.device_path]
