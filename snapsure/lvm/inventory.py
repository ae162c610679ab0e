"""Read-only inventory of LVM volume groups and logical volumes."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..command import CommandRunner
from ..errors import InventoryError
from .naming import VolumeIdentity

logger = logging.getLogger(__name__)

VGS_COMMAND = ["vgs", "--reportformat", "json", "-o", "vg_name"]
LVS_COMMAND = [
    "lvs",
    "--all",
    "--reportformat",
    "json",
    "-o",
    "vg_name,lv_name",
]


def _report_rows(output: str, key: str, command: str) -> list[dict[str, Any]]:
    """Flatten the ``report`` list of an LVM JSON report."""
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise InventoryError(
            f"Unable to decode {command} JSON output: {e}"
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("report"), list):
        raise InventoryError(f"Unexpected {command} report layout")
    else:
        rows: list[dict[str, Any]] = []
        for item in data["report"]:
            entries = item.get(key, []) if isinstance(item, dict) else None
            if not isinstance(entries, list):
                raise InventoryError(f"Unexpected {command} report layout")
            rows.extend(entries)
        return rows


def _strip_hidden(name: str) -> str:
    # lvs --all reports internal volumes as [name].
    if name.startswith("[") and name.endswith("]"):
        return name[1:-1]
    else:
        return name


def _query(runner: CommandRunner, args: list[str]) -> str:
    try:
        result = runner.capture(args)
    except OSError as e:
        raise InventoryError(f"Unable to run {args[0]}: {e}") from e
    if result.returncode != 0:
        raise InventoryError(
            f"{args[0]} exited with code {result.returncode}: "
            f"{result.stderr.strip()}"
        )
    else:
        return result.stdout


class VolumeInventory:
    """Point-in-time view of the volumes known to LVM.

    Built once with :meth:`load`; lookups never query LVM again, so
    the answers are only as fresh as that single read.
    """

    def __init__(self, volumes: dict[str, set[str]]) -> None:
        self._volumes = volumes

    @classmethod
    def load(cls, runner: CommandRunner) -> VolumeInventory:
        volumes: dict[str, set[str]] = {}
        for row in _report_rows(_query(runner, VGS_COMMAND), "vg", "vgs"):
            vg = row.get("vg_name")
            if vg:
                volumes.setdefault(vg, set())
        for row in _report_rows(_query(runner, LVS_COMMAND), "lv", "lvs"):
            vg = row.get("vg_name")
            lv = row.get("lv_name")
            if not vg or not lv:
                raise InventoryError(f"Incomplete lvs row: {row!r}")
            volumes.setdefault(vg, set()).add(_strip_hidden(lv))
        logger.debug(
            "Inventory: %d volume group(s), %d logical volume(s)",
            len(volumes),
            sum(len(lvs) for lvs in volumes.values()),
        )
        return cls(volumes)

    @property
    def groups(self) -> list[str]:
        return sorted(self._volumes)

    def has_group(self, name: str) -> bool:
        return name in self._volumes

    def has_volume(self, identity: VolumeIdentity) -> bool:
        return identity.name in self._volumes.get(identity.group, ())

    def volumes(self, group: str) -> list[str]:
        return sorted(self._volumes.get(group, ()))
