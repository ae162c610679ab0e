"""Integrity scanner invocation."""

from __future__ import annotations

from ..config import FilesystemSpec, ScannerConfig
from ..errors import ScanError
from ..lvm.naming import VolumeIdentity


class ScanInvocation:
    """Builds and judges the scanner command for one filesystem.

    The catalog is kept under the live filesystem's mount point: the
    snapshot is mounted read-only, and the catalog must carry over to
    the next run.
    """

    def __init__(self, scanner: str, catalog_name: str = "2sure") -> None:
        self.scanner = scanner
        self.catalog_name = catalog_name

    @classmethod
    def from_config(cls, config: ScannerConfig) -> ScanInvocation:
        return cls(config.path, config.catalog_name)

    def catalog_path(self, fs: FilesystemSpec) -> str:
        return f"{fs.mount_point.rstrip('/')}/{self.catalog_name}"

    def command(self, fs: FilesystemSpec) -> list[str]:
        # TODO: Run a fresh "scan" instead of "update" when the catalog
        # (<catalog>.dat.gz) does not exist yet.
        return [self.scanner, "-file", self.catalog_path(fs), "update"]

    def verify(self, identity: VolumeIdentity, returncode: int) -> None:
        """Raise ScanError unless the scanner exited cleanly."""
        if returncode != 0:
            raise ScanError(
                identity,
                f"{self.scanner} exited with code {returncode}",
                code=returncode,
            )
