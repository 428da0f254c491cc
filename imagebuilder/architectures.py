"""CPU architectures an image can be built for."""
from __future__ import annotations

from enum import Enum
from typing import Tuple


class ArchitectureId(Enum):
    """Supported target architectures.

    Each member carries ``(name, uname, platform, emulator)``: the canonical
    name, the spelling reported by ``uname -m``, the OCI platform passed to the
    image builder and the binfmt_misc entry registered by qemu-user-static.
    """

    AMD64 = ("amd64", "x86_64", "linux/amd64", "qemu-x86_64")
    ARM64 = ("arm64", "aarch64", "linux/arm64", "qemu-aarch64")

    def __init__(self, canonical: str, uname: str, platform: str, emulator: str) -> None:
        self.canonical = canonical
        self.uname = uname
        self.platform = platform
        self.emulator = emulator

    def __str__(self) -> str:
        return self.uname

    @classmethod
    def from_uname(cls, machine: str) -> "ArchitectureId":
        normalized = machine.strip().lower()
        for arch in cls:
            if normalized == arch.uname:
                return arch
        raise ValueError(f"Unsupported host architecture '{machine}'")


SUPPORTED_ARCHITECTURES: Tuple[ArchitectureId, ...] = (ArchitectureId.AMD64, ArchitectureId.ARM64)


__all__ = ["ArchitectureId", "SUPPORTED_ARCHITECTURES"]
