"""Validation failures raised while preparing an image build."""
from __future__ import annotations

from .architectures import ArchitectureId


class BuildSetupError(RuntimeError):
    """Base class for fatal, non-retryable setup failures."""


class ToolMissing(BuildSetupError):
    def __init__(self, name: str, min_version: str | None = None, found: str | None = None) -> None:
        self.name = name
        self.min_version = min_version
        self.found = found
        if found == "":
            message = f"Could not determine the version of '{name}'; version {min_version} or newer is required"
        elif found is not None:
            message = f"'{name}' version {found} is too old; version {min_version} or newer is required"
        elif min_version:
            message = f"'{name}' (version {min_version} or newer) is required but was not found"
        else:
            message = f"'{name}' is required but was not found"
        super().__init__(message)


class ImageAlreadyPublished(BuildSetupError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Image '{name}' is already published; refusing to overwrite it")


class InvalidBuildMode(BuildSetupError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid clang build mode '{value}'. Expected one of: SKIP, INSTALL, INSTALL_FROM")


class MissingEmulationSupport(BuildSetupError):
    def __init__(self, arch: ArchitectureId) -> None:
        self.arch = arch
        super().__init__(
            f"Emulation support for {arch.uname} is not available; install qemu-user-static "
            "or pass --disable-multiarch"
        )


class MissingArchivePath(BuildSetupError):
    def __init__(self, arch: ArchitectureId) -> None:
        self.arch = arch
        super().__init__(f"INSTALL_FROM requires --clang-archive-{arch.uname} <path>")


class ArchiveOutsideRoot(BuildSetupError):
    def __init__(self, arch: ArchitectureId, path: str) -> None:
        self.arch = arch
        self.path = path
        super().__init__(f"Clang archive for {arch.uname} must be inside the build root: {path}")


class InvalidArchivePath(BuildSetupError):
    def __init__(self, arch: ArchitectureId, path: str) -> None:
        self.arch = arch
        self.path = path
        super().__init__(
            f"Clang archive path for {arch.uname} must not contain whitespace: {path!r}"
        )


class ArchiveNotFound(BuildSetupError):
    def __init__(self, arch: ArchitectureId, path: str) -> None:
        self.arch = arch
        self.path = path
        super().__init__(f"Clang archive for {arch.uname} does not exist: {path}")


class UnrecognizedFlag(BuildSetupError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(token)


__all__ = [
    "BuildSetupError",
    "ToolMissing",
    "ImageAlreadyPublished",
    "InvalidBuildMode",
    "MissingEmulationSupport",
    "MissingArchivePath",
    "ArchiveOutsideRoot",
    "ArchiveNotFound",
    "InvalidArchivePath",
    "UnrecognizedFlag",
]
