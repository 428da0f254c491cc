"""Read-only probes of the machine the build runs on."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import platform

from .architectures import ArchitectureId


DEFAULT_BINFMT_DIR = Path("/proc/sys/fs/binfmt_misc")


@dataclass(slots=True)
class HostEnvironment:
    """Snapshot of host facts consumed by the resolver."""

    machine: str
    binfmt_dir: Path = DEFAULT_BINFMT_DIR

    @classmethod
    def detect(cls, *, binfmt_dir: Path | None = None) -> "HostEnvironment":
        return cls(machine=platform.machine(), binfmt_dir=binfmt_dir or DEFAULT_BINFMT_DIR)

    @property
    def architecture(self) -> ArchitectureId:
        return ArchitectureId.from_uname(self.machine)

    def emulation_available(self, arch: ArchitectureId) -> bool:
        # qemu-user-static registers one binfmt_misc entry per foreign architecture.
        return (self.binfmt_dir / arch.emulator).exists()

    @staticmethod
    def file_exists(path: Path) -> bool:
        return path.is_file()


__all__ = ["DEFAULT_BINFMT_DIR", "HostEnvironment"]
