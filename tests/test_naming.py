"""Tests for snapsure.lvm.naming."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from snapsure.config import FilesystemSpec
from snapsure.lvm import Namer, VolumeIdentity, dm_escape


def _split_mapper_name(mapper: str) -> tuple[str, str]:
    """Undo device-mapper escaping: split on the lone ``-``."""
    parts = re.split(r"(?<!-)-(?!-)", mapper)
    assert len(parts) == 2
    vg, lv = parts
    return vg.replace("--", "-"), lv.replace("--", "-")


class TestDmEscape:
    def test_no_dashes(self) -> None:
        assert dm_escape("root") == "root"

    def test_dashes_doubled(self) -> None:
        assert dm_escape("data-vg") == "data--vg"
        assert dm_escape("a--b") == "a----b"


class TestVolumeIdentity:
    def test_text_name(self) -> None:
        ident = VolumeIdentity(group="vg0", name="root")
        assert ident.text_name == "vg0/root"
        assert str(ident) == "vg0/root"

    def test_device_path(self) -> None:
        ident = VolumeIdentity(group="vg0", name="root.2024.01.15")
        assert ident.device_path == "/dev/mapper/vg0-root.2024.01.15"

    def test_device_path_escapes_dashes(self) -> None:
        ident = VolumeIdentity(group="data-vg", name="my-lv.2024.01.15")
        assert (
            ident.device_path == "/dev/mapper/data--vg-my--lv.2024.01.15"
        )

    @pytest.mark.parametrize(
        ("group", "name"),
        [
            ("vg0", "root"),
            ("vg-data", "lv-home"),
            ("my--vg", "a-b-c"),
            ("vg", "root.2024.01.15"),
        ],
    )
    def test_device_path_is_unambiguous(self, group: str, name: str) -> None:
        ident = VolumeIdentity(group=group, name=name)
        mapper = ident.device_path.removeprefix("/dev/mapper/")
        assert _split_mapper_name(mapper) == (group, name)

    def test_frozen_and_hashable(self) -> None:
        a = VolumeIdentity(group="vg0", name="root")
        b = VolumeIdentity(group="vg0", name="root")
        assert a == b
        assert len({a, b}) == 1


class TestNamer:
    def test_snapshot_name(self, root_fs: FilesystemSpec) -> None:
        namer = Namer("2024.01.15")
        assert namer.snapshot_name(root_fs) == "root.2024.01.15"

    def test_snapshot_identity(self, home_fs: FilesystemSpec) -> None:
        snap = Namer("2024.01.15").snapshot_identity(home_fs)
        assert snap == VolumeIdentity(group="vg0", name="home.2024.01.15")

    def test_deterministic(self, root_fs: FilesystemSpec) -> None:
        namer = Namer("2024.01.15")
        first = namer.snapshot_identity(root_fs)
        second = namer.snapshot_identity(root_fs)
        assert first == second

    def test_today_with_fixed_clock(self) -> None:
        now = datetime(2024, 1, 15, 23, 59, tzinfo=timezone.utc)
        assert Namer.today(now=now).timestamp == "2024.01.15"

    def test_today_custom_format(self) -> None:
        now = datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)
        namer = Namer.today("%Y%m%d-%H%M", now=now)
        assert namer.timestamp == "20240115-0830"

    def test_today_uses_local_clock(self) -> None:
        namer = Namer.today()
        expected = datetime.now().astimezone().strftime("%Y.%m.%d")
        # A run straddling midnight may see the next day.
        assert namer.timestamp <= expected
