"""Tests for snapsure.backup.scan."""

from __future__ import annotations

import pytest

from snapsure.backup import ScanInvocation
from snapsure.config import FilesystemSpec, ScannerConfig
from snapsure.errors import ScanError
from snapsure.lvm import VolumeIdentity


def _fs(mount_point: str) -> FilesystemSpec:
    return FilesystemSpec(
        volume_group="vg0", logical_volume="lv", mount_point=mount_point
    )


class TestScanInvocation:
    @pytest.mark.parametrize(
        ("mount_point", "expected"),
        [
            ("/", "/2sure"),
            ("/home", "/home/2sure"),
            ("/home/", "/home/2sure"),
        ],
    )
    def test_catalog_path(self, mount_point: str, expected: str) -> None:
        scan = ScanInvocation("gosure")
        assert scan.catalog_path(_fs(mount_point)) == expected

    def test_command(self) -> None:
        scan = ScanInvocation("/usr/local/bin/gosure")
        assert scan.command(_fs("/home")) == [
            "/usr/local/bin/gosure",
            "-file",
            "/home/2sure",
            "update",
        ]

    def test_from_config(self) -> None:
        cfg = ScannerConfig(path="/opt/gosure", catalog_name="catalog")
        scan = ScanInvocation.from_config(cfg)
        assert scan.command(_fs("/")) == [
            "/opt/gosure",
            "-file",
            "/catalog",
            "update",
        ]

    def test_verify_success(self) -> None:
        ident = VolumeIdentity(group="vg0", name="lv.2024.01.15")
        ScanInvocation("gosure").verify(ident, 0)

    def test_verify_failure(self) -> None:
        ident = VolumeIdentity(group="vg0", name="lv.2024.01.15")
        with pytest.raises(ScanError, match="gosure exited with code 3") as e:
            ScanInvocation("gosure").verify(ident, 3)
        assert e.value.code == 3
        assert e.value.step == "scan"
