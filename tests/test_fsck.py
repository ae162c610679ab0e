"""Tests for snapsure.backup.fsck."""

from __future__ import annotations

import pytest

from snapsure.backup import CheckOutcome, interpret_fsck
from snapsure.backup.fsck import fsck_command
from snapsure.lvm import VolumeIdentity


class TestInterpretFsck:
    def test_clean(self) -> None:
        assert interpret_fsck(0) is CheckOutcome.CLEAN

    def test_corrected(self) -> None:
        assert interpret_fsck(1) is CheckOutcome.CORRECTED

    @pytest.mark.parametrize("code", [2, 4, 8, 12, 16, 32, 128])
    def test_failed(self, code: int) -> None:
        assert interpret_fsck(code) is CheckOutcome.FAILED

    def test_ok(self) -> None:
        assert CheckOutcome.CLEAN.ok
        assert CheckOutcome.CORRECTED.ok
        assert not CheckOutcome.FAILED.ok


class TestFsckCommand:
    def test_preen_and_force(self) -> None:
        ident = VolumeIdentity(group="vg0", name="root.2024.01.15")
        assert fsck_command(ident) == [
            "fsck",
            "-p",
            "-f",
            "/dev/mapper/vg0-root.2024.01.15",
        ]
