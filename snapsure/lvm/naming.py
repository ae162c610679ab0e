"""Snapshot volume naming and device-mapper paths."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..config import FilesystemSpec

DEFAULT_TIMESTAMP_FORMAT = "%Y.%m.%d"


def dm_escape(name: str) -> str:
    """Escape a VG or LV name the way device-mapper does.

    The mapper name joins VG and LV with a single ``-``, so every
    ``-`` inside either part is doubled.
    """
    return name.replace("-", "--")


class VolumeIdentity(BaseModel):
    """A logical volume inside a volume group."""

    model_config = ConfigDict(frozen=True)
    group: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @property
    def text_name(self) -> str:
        """The ``vg/lv`` form accepted by the LVM tools."""
        return f"{self.group}/{self.name}"

    @property
    def device_path(self) -> str:
        return f"/dev/mapper/{dm_escape(self.group)}-{dm_escape(self.name)}"

    def __str__(self) -> str:
        return self.text_name


class Namer:
    """Derives snapshot identities for one backup run.

    The timestamp is fixed at construction so a run that crosses
    midnight still names every snapshot with the same date.
    """

    def __init__(self, timestamp: str) -> None:
        self.timestamp = timestamp

    @classmethod
    def today(
        cls,
        fmt: str = DEFAULT_TIMESTAMP_FORMAT,
        *,
        now: datetime | None = None,
    ) -> Namer:
        if now is None:
            now = datetime.now().astimezone()
        return cls(now.strftime(fmt))

    def snapshot_name(self, fs: FilesystemSpec) -> str:
        return f"{fs.logical_volume}.{self.timestamp}"

    def snapshot_identity(self, fs: FilesystemSpec) -> VolumeIdentity:
        return VolumeIdentity(
            group=fs.volume_group, name=self.snapshot_name(fs)
        )
