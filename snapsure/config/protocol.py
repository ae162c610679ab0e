from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Annotated, Dict, List, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ..lvm.naming import VolumeIdentity


def _to_kebab(name: str) -> str:
    return name.replace("_", "-")


class _BaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_kebab,
        populate_by_name=True,
    )


# Characters and length accepted by lvm(8) for VG and LV names.
LVM_NAME_MAX = 127
LVM_NAME_PATTERN = r"^[A-Za-z0-9+_.][A-Za-z0-9+_.-]*$"

LvmName = Annotated[
    str,
    Field(min_length=1, max_length=LVM_NAME_MAX, pattern=LVM_NAME_PATTERN),
]

# Wednesday in September: the widest weekday and month names.
_SAMPLE_TIME = datetime(2000, 9, 27, 23, 59, 59)
_STAMP_CHARS = re.compile(r"[A-Za-z0-9+_.-]+")

Privilege = Literal["auto", "sudo", "none"]


class FilesystemSpec(_BaseModel):
    """One backed-up filesystem: an LVM volume and where it is mounted."""

    model_config = ConfigDict(frozen=True)
    volume_group: LvmName
    logical_volume: LvmName
    mount_point: str = Field(..., min_length=1)

    @field_validator("logical_volume")
    @classmethod
    def reject_dot_names(cls, v: str) -> str:
        if v in (".", ".."):
            raise ValueError(f"Invalid logical volume name: {v!r}")
        return v

    @property
    def source(self) -> VolumeIdentity:
        return VolumeIdentity(
            group=self.volume_group, name=self.logical_volume
        )


class HostProfile(_BaseModel):
    """The filesystems to snapshot on a single host."""

    model_config = ConfigDict(frozen=True)
    name: str = Field(..., min_length=1)
    snapshot_dir: str = Field(..., min_length=1)
    filesystems: List[FilesystemSpec] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_unique_volumes(self) -> HostProfile:
        seen_sources: set[tuple[str, str]] = set()
        seen_lvs: set[str] = set()
        for fs in self.filesystems:
            key = (fs.volume_group, fs.logical_volume)
            if key in seen_sources:
                raise ValueError(
                    f"Host '{self.name}' lists "
                    f"{fs.volume_group}/{fs.logical_volume} twice"
                )
            # Snapshots are mounted at <snapshot-dir>/<lv>.
            if fs.logical_volume in seen_lvs:
                raise ValueError(
                    f"Host '{self.name}' has two filesystems with "
                    f"logical volume '{fs.logical_volume}'"
                )
            seen_sources.add(key)
            seen_lvs.add(fs.logical_volume)
        return self


class ScannerConfig(_BaseModel):
    """Location and catalog naming of the integrity scanner."""

    model_config = ConfigDict(frozen=True)
    path: str = Field(default="gosure", min_length=1)
    catalog_name: str = Field(default="2sure", min_length=1)


class Config(_BaseModel):
    """Top-level snapsure configuration."""

    scanner: ScannerConfig = Field(default_factory=lambda: ScannerConfig())
    timestamp_format: str = Field(default="%Y.%m.%d", min_length=1)
    privilege: Privilege = "auto"

    hosts: Dict[str, HostProfile] = Field(default_factory=dict)

    # The host name is the key in the hosts dict,
    # but we also want it as a field in the HostProfile objects.
    @field_validator("hosts", mode="before")
    @classmethod
    def inject_host_names(cls, v: Any, info: ValidationInfo) -> Any:
        if not isinstance(v, dict):
            return v
        return {
            name: (
                {**data, "name": name}
                if isinstance(data, dict) and "name" not in data
                else data
            )
            for name, data in v.items()
        }

    @model_validator(mode="after")
    def validate_snapshot_names(self) -> Config:
        stamp = _SAMPLE_TIME.strftime(self.timestamp_format)
        if not _STAMP_CHARS.fullmatch(stamp):
            raise ValueError(
                f"timestamp-format {self.timestamp_format!r} produces "
                f"{stamp!r}, which is not valid in an LVM volume name"
            )
        for host in self.hosts.values():
            for fs in host.filesystems:
                name = f"{fs.logical_volume}.{stamp}"
                if len(name) > LVM_NAME_MAX:
                    raise ValueError(
                        f"Host '{host.name}': snapshot name {name!r} is "
                        f"longer than {LVM_NAME_MAX} characters"
                    )
        return self
