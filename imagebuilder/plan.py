"""Build plan data model."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .architectures import ArchitectureId


class ClangBuildMode(str, Enum):
    SKIP = "SKIP"
    INSTALL = "INSTALL"
    INSTALL_FROM = "INSTALL_FROM"


ArchiveSpec = Mapping[ArchitectureId, str]


@dataclass(slots=True)
class BuildFlags:
    """Raw, unvalidated options as they arrive from the command line."""

    clang_build_mode: str = ClangBuildMode.SKIP.value
    archive_paths: Dict[ArchitectureId, str | None] = field(default_factory=dict)
    disable_multiarch: bool = False


@dataclass(frozen=True, slots=True)
class BuildPlan:
    platforms: Tuple[ArchitectureId, ...]
    multiarch_enabled: bool
    clang_build_mode: ClangBuildMode
    archive_spec: ArchiveSpec = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.platforms:
            raise ValueError("A build plan needs at least one platform")
        if not self.multiarch_enabled and len(self.platforms) != 1:
            raise ValueError("A single-architecture plan must target exactly one platform")
        if self.clang_build_mode is ClangBuildMode.INSTALL and self.multiarch_enabled:
            raise ValueError("INSTALL builds clang natively and cannot be multi-architecture")
        if self.clang_build_mode is ClangBuildMode.SKIP and self.archive_spec:
            raise ValueError("SKIP plans do not carry clang archives")
        if self.clang_build_mode is ClangBuildMode.INSTALL_FROM:
            missing = [arch.uname for arch in self.platforms if arch not in self.archive_spec]
            if missing:
                raise ValueError(f"Missing clang archives for: {', '.join(missing)}")
        for path in self.archive_spec.values():
            if path == ".." or path.startswith("../") or path.startswith("/"):
                raise ValueError(f"Archive path escapes the build root: {path}")
        object.__setattr__(self, "archive_spec", MappingProxyType(dict(self.archive_spec)))

    def platform_strings(self) -> Tuple[str, ...]:
        return tuple(arch.platform for arch in self.platforms)

    def serialized_archives(self) -> str:
        return serialize_archives(self.archive_spec)


def serialize_archives(spec: ArchiveSpec) -> str:
    """Render ``spec`` as space separated ``arch:path`` pairs.

    Pairs are sorted by the uname spelling so the result does not depend on
    insertion order, e.g. ``"aarch64:a.tar.xz x86_64:b.tar.xz"``.
    """

    ordered = sorted(spec.items(), key=lambda item: item[0].uname)
    return " ".join(f"{arch.uname}:{path}" for arch, path in ordered)


__all__ = ["ArchiveSpec", "BuildFlags", "BuildPlan", "ClangBuildMode", "serialize_archives"]
