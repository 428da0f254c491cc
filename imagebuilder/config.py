"""Settings for an image build, merged from defaults, files and the environment."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping
import os

from core.config_loader import load_config_file, merge_mappings

from .architectures import ArchitectureId
from .environment import DEFAULT_BINFMT_DIR
from .tools import ToolRequirement


CONFIG_ENV_VAR = "CLANG_IMAGE_BUILDER_CONFIG"
IMAGE_ENV_VAR = "CLANG_IMAGE_BUILDER_IMAGE"
CLANG_VERSION_ENV_VAR = "CLANG_IMAGE_BUILDER_CLANG_VERSION"
SECTION = "image_builder"

DEFAULT_TOOLS: Dict[str, str] = {
    "buildah": "1.19.3",
    "podman": "",
    "reg": "",
}


@dataclass(slots=True)
class BuilderSettings:
    image: str = "localhost/clang-toolchain:latest"
    clang_version: str = "17.0.6"
    build_root: Path = Path(".")
    context: str = "."
    containerfile: str = "Containerfile"
    archive_dir: str = "archives"
    root_mount: str = "/build-root"
    binfmt_dir: Path = DEFAULT_BINFMT_DIR
    tools: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOOLS))

    @property
    def image_id(self) -> str:
        """Last component of the image name, safe for use in file names."""

        name = self.image.rstrip("/").rsplit("/", 1)[-1]
        return name.replace(":", "-")

    def default_archive_path(self, arch: ArchitectureId) -> str:
        filename = f"clang-{self.clang_version}-{self.image_id}-{arch.uname}.tar.xz"
        return f"{self.archive_dir.rstrip('/')}/{filename}"

    def tool_requirements(self) -> List[ToolRequirement]:
        return [ToolRequirement.from_setting(name, value) for name, value in sorted(self.tools.items())]

    def with_overrides(self, **overrides: Any) -> "BuilderSettings":
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base_dir: Path) -> "BuilderSettings":
        allowed = {item.name for item in fields(cls)}
        unknown = {str(key) for key in data.keys() if str(key) not in allowed}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ValueError(f"Image builder settings contain unknown keys: {joined}")

        defaults = cls()
        values: Dict[str, Any] = {}
        for key in ("image", "clang_version", "context", "containerfile", "archive_dir", "root_mount"):
            if key in data:
                text = str(data[key]).strip()
                if not text:
                    raise ValueError(f"Setting '{key}' must not be empty")
                values[key] = text

        for key in ("build_root", "binfmt_dir"):
            if key in data:
                path = Path(str(data[key])).expanduser()
                values[key] = path if path.is_absolute() else base_dir / path

        tools_section = data.get("tools")
        if tools_section is not None:
            if not isinstance(tools_section, Mapping):
                raise TypeError("Setting 'tools' must be a mapping of tool name to minimum version")
            tools = dict(defaults.tools)
            for name, minimum in tools_section.items():
                if minimum is False:
                    tools.pop(str(name), None)
                else:
                    tools[str(name)] = "" if minimum in (None, True) else str(minimum)
            values["tools"] = tools

        return replace(defaults, **values)


def _read_config(path: Path) -> Mapping[str, Any]:
    data = load_config_file(path)
    section = data.get(SECTION, data)
    if not isinstance(section, Mapping):
        raise TypeError(f"Section '{SECTION}' in '{path}' must be a mapping")
    return section


def load_settings(
    workspace: Path,
    *,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> BuilderSettings:
    """Build settings from defaults, an optional config file and the environment."""

    environ = os.environ if env is None else env
    merged: Dict[str, Any] = {"build_root": str(workspace)}
    base_dir = workspace

    if config_path is None and environ.get(CONFIG_ENV_VAR):
        config_path = Path(environ[CONFIG_ENV_VAR])
    if config_path is not None:
        if not config_path.is_absolute():
            config_path = workspace / config_path
        if not config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        merged = merge_mappings(merged, _read_config(config_path))
        base_dir = config_path.parent

    if environ.get(IMAGE_ENV_VAR):
        merged["image"] = environ[IMAGE_ENV_VAR]
    if environ.get(CLANG_VERSION_ENV_VAR):
        merged["clang_version"] = environ[CLANG_VERSION_ENV_VAR]

    return BuilderSettings.from_mapping(merged, base_dir=base_dir)


__all__ = [
    "BuilderSettings",
    "CLANG_VERSION_ENV_VAR",
    "CONFIG_ENV_VAR",
    "DEFAULT_TOOLS",
    "IMAGE_ENV_VAR",
    "load_settings",
]
