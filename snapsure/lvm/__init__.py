"""LVM naming and inventory."""

from .inventory import VolumeInventory
from .naming import DEFAULT_TIMESTAMP_FORMAT, Namer, VolumeIdentity, dm_escape

__all__ = [
    "DEFAULT_TIMESTAMP_FORMAT",
    "Namer",
    "VolumeIdentity",
    "VolumeInventory",
    "dm_escape",
]
