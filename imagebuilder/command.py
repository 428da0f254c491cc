"""Serialize a :class:`BuildPlan` into the final ``buildah bud`` invocation."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from core.command_runner import CommandResult, CommandRunner

from .config import BuilderSettings
from .plan import BuildPlan, ClangBuildMode


# Every build starts from freshly pulled bases and produces a single layer.
BUILD_POLICY = ("--squash", "--no-cache", "--pull-always")


@dataclass(slots=True)
class BuildCommand:
    platforms: List[str]
    build_args: Dict[str, str]
    manifest: str
    containerfile: str
    context: str
    volumes: List[str] = field(default_factory=list)
    builder: str = "buildah"

    @classmethod
    def from_plan(cls, plan: BuildPlan, settings: BuilderSettings) -> "BuildCommand":
        build_args = {
            "CLANG_BUILD": plan.clang_build_mode.value,
            "CLANG_ARCHIVES": plan.serialized_archives(),
            "CLANG_VERSION": settings.clang_version,
        }
        volumes: List[str] = []
        if plan.clang_build_mode is ClangBuildMode.INSTALL:
            # Archive paths are relative to the build root, which is mounted whole
            # so the exported archive lands at the same relative path on the host.
            build_args["CLANG_ARCHIVE_ROOT"] = settings.root_mount
            volumes.append(f"{Path(settings.build_root)}:{settings.root_mount}")
        return cls(
            platforms=list(plan.platform_strings()),
            build_args=build_args,
            manifest=settings.image,
            containerfile=settings.containerfile,
            context=settings.context,
            volumes=volumes,
        )

    @staticmethod
    def export_directories(plan: BuildPlan, settings: BuilderSettings) -> List[Path]:
        """Host directories that must exist before an INSTALL build exports into them."""

        if plan.clang_build_mode is not ClangBuildMode.INSTALL:
            return []
        root = Path(settings.build_root)
        return sorted({(root / path).parent for path in plan.archive_spec.values()})

    def argv(self) -> List[str]:
        command = [self.builder, "bud"]
        for platform in self.platforms:
            command.extend(["--platform", platform])
        command.extend(BUILD_POLICY)
        for name, value in self.build_args.items():
            command.extend(["--build-arg", f"{name}={value}"])
        for volume in self.volumes:
            command.extend(["--volume", volume])
        command.extend(["--manifest", self.manifest, "-f", self.containerfile, self.context])
        return command

    def run(self, runner: CommandRunner, *, cwd: Path | None = None) -> CommandResult:
        return runner.run(self.argv(), cwd=cwd, check=True, note="image build", stream=True)


__all__ = ["BUILD_POLICY", "BuildCommand"]
