"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from snapsure.command import CommandResult, CommandRunner
from snapsure.config import FilesystemSpec, HostProfile
from snapsure.lvm import Namer, VolumeInventory

SAMPLE_YAML = """\
scanner:
  path: /usr/local/bin/gosure
timestamp-format: "%Y.%m.%d"
privilege: sudo

hosts:
  myhost:
    snapshot-dir: /mnt/snap
    filesystems:
      - volume-group: vg0
        logical-volume: root
        mount-point: /
      - volume-group: vg0
        logical-volume: home
        mount-point: /home

  otherhost:
    snapshot-dir: /snap
    filesystems:
      - volume-group: data-vg
        logical-volume: srv
        mount-point: /srv
"""

SAMPLE_YAML_MINIMAL = """\
hosts:
  myhost:
    snapshot-dir: /mnt/snap
    filesystems:
      - volume-group: vg0
        logical-volume: root
        mount-point: /
"""


def step_of(args: list[str] | tuple[str, ...]) -> str:
    """Name the cycle step a command line belongs to."""
    match list(args):
        case ["lvcreate", *_]:
            return "create"
        case ["lvchange", "-ay", *_]:
            return "activate"
        case ["lvchange", "-an", *_]:
            return "deactivate"
        case ["fsck", *_]:
            return "check"
        case ["mount", *_]:
            return "mount"
        case ["umount", *_]:
            return "unmount"
        case _:
            return "scan"


RunnerFactory = Callable[..., MagicMock]


@pytest.fixture()
def make_runner() -> RunnerFactory:
    """Build a mock CommandRunner with scripted exit codes.

    ``codes`` maps a step name, or a ``(step, fragment)`` pair matched
    against the command line, to an exit code or an exception to raise.
    Every call is appended to ``runner.observed`` as (step, args, cwd).
    """

    def factory(
        codes: dict[object, int | BaseException] | None = None,
        *,
        dry_run: bool = False,
    ) -> MagicMock:
        scripted = codes or {}
        runner = MagicMock(spec=CommandRunner)
        runner.dry_run = dry_run
        runner.observed = []

        def _run(args: list[str], cwd: str | None = None) -> CommandResult:
            step = step_of(args)
            runner.observed.append((step, list(args), cwd))
            line = " ".join(args)
            code: int | BaseException = 0
            for key, value in scripted.items():
                match key:
                    case (str() as s, str() as fragment) if (
                        s == step and fragment in line
                    ):
                        code = value
                        break
                    case str() as s if s == step:
                        code = value
            if isinstance(code, BaseException):
                raise code
            return CommandResult(args=tuple(args), returncode=code)

        runner.run.side_effect = _run
        return runner

    return factory


@pytest.fixture()
def root_fs() -> FilesystemSpec:
    return FilesystemSpec(
        volume_group="vg0", logical_volume="root", mount_point="/"
    )


@pytest.fixture()
def home_fs() -> FilesystemSpec:
    return FilesystemSpec(
        volume_group="vg0", logical_volume="home", mount_point="/home"
    )


@pytest.fixture()
def single_profile(root_fs: FilesystemSpec) -> HostProfile:
    return HostProfile(
        name="myhost", snapshot_dir="/mnt/snap", filesystems=[root_fs]
    )


@pytest.fixture()
def two_profile(
    root_fs: FilesystemSpec, home_fs: FilesystemSpec
) -> HostProfile:
    return HostProfile(
        name="myhost",
        snapshot_dir="/mnt/snap",
        filesystems=[root_fs, home_fs],
    )


@pytest.fixture()
def namer() -> Namer:
    return Namer("2024.01.15")


@pytest.fixture()
def inventory() -> VolumeInventory:
    return VolumeInventory({"vg0": {"root", "home", "swap"}})


@pytest.fixture()
def sample_config_file(tmp_path: Path) -> Path:
    """Write sample YAML config to a temp file."""
    p = tmp_path / "config.yaml"
    p.write_text(SAMPLE_YAML)
    return p


@pytest.fixture()
def sample_minimal_config_file(tmp_path: Path) -> Path:
    """Write minimal YAML config to a temp file."""
    p = tmp_path / "config.yaml"
    p.write_text(SAMPLE_YAML_MINIMAL)
    return p
