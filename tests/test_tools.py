from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Sequence
import unittest

from core.command_runner import CommandResult, CommandRunner
from imagebuilder.errors import ImageAlreadyPublished, ToolMissing
from imagebuilder.registry import ensure_not_published
from imagebuilder.tools import ToolChecker, ToolRequirement, format_version, parse_version


class ScriptedRunner(CommandRunner):
    def __init__(self, responses: Dict[str, CommandResult] | None = None) -> None:
        self.responses = responses or {}
        self.commands: List[List[str]] = []

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self.commands.append(list(command))
        key = " ".join(command)
        return self.responses.get(key, CommandResult(command=command, returncode=1, stdout="", stderr=""))


def _ok(command: str, stdout: str) -> CommandResult:
    return CommandResult(command=command.split(), returncode=0, stdout=stdout, stderr="")


class VersionParsingTests(unittest.TestCase):
    def test_parse_version(self) -> None:
        self.assertEqual(parse_version("buildah version 1.19.6 (image-spec 1.0.1-dev)"), (1, 19, 6))
        self.assertEqual(parse_version("podman version 4.9"), (4, 9, 0))
        self.assertEqual(parse_version(" version     : v0.16.1"), (0, 16, 1))
        self.assertIsNone(parse_version("no digits here"))

    def test_tuple_comparison_against_minimum(self) -> None:
        minimum = (1, 19, 3)
        self.assertTrue(parse_version("1.20.0") >= minimum)
        self.assertTrue(parse_version("2.0.0") >= minimum)
        self.assertTrue(parse_version("1.19.3") >= minimum)
        self.assertFalse(parse_version("1.19.2") >= minimum)
        self.assertFalse(parse_version("0.99.99") >= minimum)

    def test_requirement_from_setting(self) -> None:
        self.assertEqual(ToolRequirement.from_setting("buildah", "1.19.3").min_version, (1, 19, 3))
        self.assertIsNone(ToolRequirement.from_setting("reg", "").min_version)
        with self.assertRaises(ValueError):
            ToolRequirement.from_setting("buildah", "latest")
        self.assertEqual(format_version((1, 19, 3)), "1.19.3")

    def test_version_commands(self) -> None:
        self.assertEqual(ToolRequirement("reg").version_command, ["reg", "version"])
        self.assertEqual(ToolRequirement("buildah").version_command, ["buildah", "--version"])


class ToolCheckerTests(unittest.TestCase):
    def test_missing_tool_raises(self) -> None:
        checker = ToolChecker(ScriptedRunner(), which=lambda name: None)
        with self.assertRaises(ToolMissing) as ctx:
            checker.check(ToolRequirement("buildah", (1, 19, 3)))
        self.assertEqual(ctx.exception.name, "buildah")
        self.assertEqual(ctx.exception.min_version, "1.19.3")

    def test_presence_only_requirement_skips_version_probe(self) -> None:
        runner = ScriptedRunner()
        checker = ToolChecker(runner, which=lambda name: f"/usr/bin/{name}")
        self.assertIsNone(checker.check(ToolRequirement("podman")))
        self.assertEqual(runner.commands, [])

    def test_new_enough_version_passes(self) -> None:
        runner = ScriptedRunner({"buildah --version": _ok("buildah --version", "buildah version 1.20.0 (x)")})
        checker = ToolChecker(runner, which=lambda name: "/usr/bin/buildah")
        self.assertEqual(checker.check(ToolRequirement("buildah", (1, 19, 3))), (1, 20, 0))

    def test_old_version_raises(self) -> None:
        runner = ScriptedRunner({"buildah --version": _ok("buildah --version", "buildah version 1.19.2")})
        checker = ToolChecker(runner, which=lambda name: "/usr/bin/buildah")
        with self.assertRaises(ToolMissing) as ctx:
            checker.check(ToolRequirement("buildah", (1, 19, 3)))
        self.assertEqual(ctx.exception.found, "1.19.2")
        self.assertIn("too old", str(ctx.exception))

    def test_unreadable_version_raises(self) -> None:
        checker = ToolChecker(ScriptedRunner(), which=lambda name: "/usr/bin/buildah")
        with self.assertRaises(ToolMissing):
            checker.check(ToolRequirement("buildah", (1, 19, 3)))

    def test_check_all_stops_at_first_failure(self) -> None:
        seen: List[str] = []

        def which(name: str) -> str | None:
            seen.append(name)
            return None if name == "podman" else f"/usr/bin/{name}"

        checker = ToolChecker(ScriptedRunner(), which=which)
        with self.assertRaises(ToolMissing):
            checker.check_all([ToolRequirement("podman"), ToolRequirement("reg")])
        self.assertEqual(seen, ["podman"])


class RegistryTests(unittest.TestCase):
    def test_published_image_raises(self) -> None:
        image = "ghcr.io/acme/clang:17"
        runner = ScriptedRunner({f"reg digest {image}": _ok("reg digest", "sha256:abc")})
        with self.assertRaises(ImageAlreadyPublished) as ctx:
            ensure_not_published(runner, image)
        self.assertEqual(ctx.exception.name, image)

    def test_unpublished_image_passes(self) -> None:
        runner = ScriptedRunner()
        ensure_not_published(runner, "ghcr.io/acme/clang:18")
        self.assertEqual(runner.commands, [["reg", "digest", "ghcr.io/acme/clang:18"]])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
