"""Presence and minimum-version checks for required external tools."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Sequence, Tuple
import re
import shutil

from core.command_runner import CommandRunner
from core.console import Console

from .errors import ToolMissing


Version = Tuple[int, int, int]

_VERSION_PATTERN = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")

# ``reg`` has no --version flag.
_VERSION_COMMANDS: Mapping[str, Sequence[str]] = {
    "reg": ("version",),
}


def parse_version(text: str) -> Version | None:
    """Extract the first dotted version from ``text``; missing patch is 0."""

    match = _VERSION_PATTERN.search(text)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def format_version(version: Version) -> str:
    return ".".join(str(part) for part in version)


@dataclass(frozen=True, slots=True)
class ToolRequirement:
    name: str
    min_version: Version | None = None

    @classmethod
    def from_setting(cls, name: str, value: str | None) -> "ToolRequirement":
        text = (value or "").strip()
        if not text:
            return cls(name=name)
        parsed = parse_version(text)
        if parsed is None:
            raise ValueError(f"Invalid minimum version '{value}' for tool '{name}'")
        return cls(name=name, min_version=parsed)

    @property
    def version_command(self) -> List[str]:
        return [self.name, *_VERSION_COMMANDS.get(self.name, ("--version",))]

    def describe_minimum(self) -> str | None:
        return format_version(self.min_version) if self.min_version else None


class ToolChecker:
    """Verifies each :class:`ToolRequirement` against the local installation."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        console: Console | None = None,
        which: Callable[[str], str | None] | None = None,
    ) -> None:
        self._runner = runner
        self._console = console or Console(level="none")
        self._which = which or shutil.which

    def installed_version(self, requirement: ToolRequirement) -> Version | None:
        result = self._runner.run(requirement.version_command, check=False, note="version probe")
        if not result.ok:
            return None
        return parse_version(f"{result.stdout}\n{result.stderr}")

    def check(self, requirement: ToolRequirement) -> Version | None:
        location = self._which(requirement.name)
        if location is None:
            raise ToolMissing(requirement.name, requirement.describe_minimum())
        self._console.debug(f"Found {requirement.name} at {location}")

        if requirement.min_version is None:
            return None

        found = self.installed_version(requirement)
        if found is None:
            raise ToolMissing(requirement.name, requirement.describe_minimum(), found="")
        # Plain tuple comparison: major dominates, then minor, then patch.
        if found < requirement.min_version:
            raise ToolMissing(requirement.name, requirement.describe_minimum(), found=format_version(found))
        self._console.info(f"{requirement.name} {format_version(found)} satisfies >= {requirement.describe_minimum()}")
        return found

    def check_all(self, requirements: Iterable[ToolRequirement]) -> None:
        for requirement in requirements:
            self.check(requirement)


__all__ = [
    "ToolChecker",
    "ToolRequirement",
    "Version",
    "format_version",
    "parse_version",
]
