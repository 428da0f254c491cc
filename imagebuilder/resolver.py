"""Resolve command line flags and host facts into a validated build plan."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Sequence, Tuple
import os

from .architectures import SUPPORTED_ARCHITECTURES, ArchitectureId
from .errors import (
    ArchiveNotFound,
    ArchiveOutsideRoot,
    InvalidArchivePath,
    InvalidBuildMode,
    MissingArchivePath,
    MissingEmulationSupport,
)
from .plan import BuildFlags, BuildPlan, ClangBuildMode


EmulationProbe = Callable[[ArchitectureId], bool]
FileExists = Callable[[Path], bool]
RelativeResolver = Callable[[str, Path], str]
DefaultArchivePath = Callable[[ArchitectureId], str]


def normalize_relative(path: str, root: Path) -> str:
    """Return ``path`` relative to ``root`` after lexical normalization.

    Relative inputs are taken relative to ``root``. The result starts with
    ``..`` whenever the path leaves ``root``.
    """

    base = os.path.abspath(root)
    candidate = path if os.path.isabs(path) else os.path.join(base, path)
    relative = os.path.relpath(os.path.normpath(candidate), base)
    return Path(relative).as_posix()


def _escapes_root(relative: str) -> bool:
    return relative == ".." or relative.startswith("../")


class BuildPlanResolver:
    """Turns :class:`BuildFlags` into a :class:`BuildPlan`.

    The resolver performs no I/O of its own: host capabilities are supplied as
    callables so the whole decision table can be exercised without buildah,
    qemu or a real archive on disk.
    """

    def __init__(
        self,
        *,
        host_architecture: ArchitectureId,
        build_root: Path,
        emulation_available: EmulationProbe,
        file_exists: FileExists,
        default_archive_path_for: DefaultArchivePath,
        resolve_relative: RelativeResolver = normalize_relative,
        supported_architectures: Sequence[ArchitectureId] = SUPPORTED_ARCHITECTURES,
    ) -> None:
        if host_architecture not in supported_architectures:
            raise ValueError(f"Host architecture {host_architecture.uname} is not a supported build target")
        self._host = host_architecture
        self._build_root = build_root
        self._emulation_available = emulation_available
        self._file_exists = file_exists
        self._default_archive_path_for = default_archive_path_for
        self._resolve_relative = resolve_relative
        self._supported: Tuple[ArchitectureId, ...] = tuple(supported_architectures)

    @staticmethod
    def parse_mode(value: str) -> ClangBuildMode:
        # Case-sensitive: only the exact enum names are accepted.
        for mode in ClangBuildMode:
            if value == mode.value:
                return mode
        raise InvalidBuildMode(value)

    def resolve(self, flags: BuildFlags) -> BuildPlan:
        mode = self.parse_mode(flags.clang_build_mode)

        # Compiling clang under emulation is prohibitively slow.
        disable_multiarch = flags.disable_multiarch or mode is ClangBuildMode.INSTALL

        if not disable_multiarch:
            self._require_emulation()

        platforms = self._select_platforms(disable_multiarch)

        archives: Dict[ArchitectureId, str] = {}
        if mode is ClangBuildMode.INSTALL:
            archives[self._host] = self._install_archive(flags)
        elif mode is ClangBuildMode.INSTALL_FROM:
            for arch in platforms:
                archives[arch] = self._import_archive(arch, flags.archive_paths.get(arch))

        return BuildPlan(
            platforms=platforms,
            multiarch_enabled=not disable_multiarch,
            clang_build_mode=mode,
            archive_spec=archives,
        )

    def _require_emulation(self) -> None:
        for arch in self._supported:
            if arch is self._host:
                continue
            if not self._emulation_available(arch):
                raise MissingEmulationSupport(arch)

    def _select_platforms(self, disable_multiarch: bool) -> Tuple[ArchitectureId, ...]:
        if disable_multiarch:
            return (self._host,)
        return self._supported

    def _normalize_in_root(self, arch: ArchitectureId, raw: str) -> str:
        # CLANG_ARCHIVES is a space separated list of arch:path pairs.
        if any(char.isspace() for char in raw):
            raise InvalidArchivePath(arch, raw)
        normalized = self._resolve_relative(raw, self._build_root)
        if _escapes_root(normalized):
            raise ArchiveOutsideRoot(arch, raw)
        return normalized

    def _install_archive(self, flags: BuildFlags) -> str:
        supplied = (flags.archive_paths.get(self._host) or "").strip()
        if supplied:
            return self._normalize_in_root(self._host, supplied)
        return self._normalize_in_root(self._host, self._default_archive_path_for(self._host))

    def _import_archive(self, arch: ArchitectureId, raw: str | None) -> str:
        supplied = (raw or "").strip()
        if not supplied:
            raise MissingArchivePath(arch)
        normalized = self._normalize_in_root(arch, supplied)
        if not self._file_exists(self._build_root / normalized):
            raise ArchiveNotFound(arch, supplied)
        return normalized


__all__ = ["BuildPlanResolver", "normalize_relative"]
