"""Validate the build environment and build a multi-architecture clang toolchain image."""

from .architectures import SUPPORTED_ARCHITECTURES, ArchitectureId
from .plan import BuildFlags, BuildPlan, ClangBuildMode, serialize_archives
from .resolver import BuildPlanResolver
from .cli import main

__all__ = [
    "ArchitectureId",
    "BuildFlags",
    "BuildPlan",
    "BuildPlanResolver",
    "ClangBuildMode",
    "SUPPORTED_ARCHITECTURES",
    "main",
    "serialize_archives",
]
