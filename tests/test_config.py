from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from core.config_loader import load_config_file, merge_mappings
from imagebuilder.architectures import ArchitectureId
from imagebuilder.config import (
    CLANG_VERSION_ENV_VAR,
    CONFIG_ENV_VAR,
    IMAGE_ENV_VAR,
    BuilderSettings,
    load_settings,
)


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_loads_toml_json_and_yaml(self) -> None:
        (self.root / "a.toml").write_text('[image_builder]\nimage = "x"\n')
        (self.root / "b.json").write_text('{"image_builder": {"image": "y"}}')
        (self.root / "c.yaml").write_text("image_builder:\n  image: z\n")
        self.assertEqual(load_config_file(self.root / "a.toml"), {"image_builder": {"image": "x"}})
        self.assertEqual(load_config_file(self.root / "b.json"), {"image_builder": {"image": "y"}})
        self.assertEqual(load_config_file(self.root / "c.yaml"), {"image_builder": {"image": "z"}})

    def test_empty_yaml_is_empty_mapping(self) -> None:
        (self.root / "empty.yml").write_text("")
        self.assertEqual(load_config_file(self.root / "empty.yml"), {})

    def test_rejects_unknown_extension_and_non_mapping(self) -> None:
        (self.root / "settings.ini").write_text("[x]\n")
        with self.assertRaises(ValueError):
            load_config_file(self.root / "settings.ini")
        (self.root / "list.yaml").write_text("- a\n- b\n")
        with self.assertRaises(TypeError):
            load_config_file(self.root / "list.yaml")

    def test_merge_mappings_is_deep(self) -> None:
        merged = merge_mappings({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 4}, "e": 5})
        self.assertEqual(merged, {"a": 1, "b": {"c": 4, "d": 3}, "e": 5})


class SettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_defaults(self) -> None:
        settings = load_settings(self.workspace, env={})
        self.assertEqual(settings.build_root, self.workspace)
        self.assertEqual(settings.tools["buildah"], "1.19.3")
        self.assertEqual(settings.image_id, "clang-toolchain-latest")

    def test_default_archive_path(self) -> None:
        settings = BuilderSettings(image="ghcr.io/acme/clang-toolchain:17", clang_version="17.0.6")
        self.assertEqual(
            settings.default_archive_path(ArchitectureId.AMD64),
            "archives/clang-17.0.6-clang-toolchain-17-x86_64.tar.xz",
        )

    def test_config_file_then_environment_precedence(self) -> None:
        config_dir = self.workspace / "etc"
        config_dir.mkdir()
        (config_dir / "builder.toml").write_text(
            textwrap.dedent(
                """
                [image_builder]
                image = "ghcr.io/acme/clang:file"
                clang_version = "16.0.0"
                build_root = "../tree"
                containerfile = "docker/Containerfile"

                [image_builder.tools]
                buildah = "1.30.0"
                reg = false
                skopeo = true
                """
            )
        )
        env = {IMAGE_ENV_VAR: "ghcr.io/acme/clang:env"}
        settings = load_settings(self.workspace, config_path=Path("etc/builder.toml"), env=env)
        self.assertEqual(settings.image, "ghcr.io/acme/clang:env")
        self.assertEqual(settings.clang_version, "16.0.0")
        self.assertEqual(settings.build_root, config_dir / "../tree")
        self.assertEqual(settings.containerfile, "docker/Containerfile")
        self.assertEqual(settings.tools, {"buildah": "1.30.0", "podman": "", "skopeo": ""})

    def test_config_path_from_environment(self) -> None:
        path = self.workspace / "builder.yaml"
        path.write_text("image_builder:\n  clang_version: '18.1.0'\n")
        env = {CONFIG_ENV_VAR: str(path), CLANG_VERSION_ENV_VAR: ""}
        settings = load_settings(self.workspace, env=env)
        self.assertEqual(settings.clang_version, "18.1.0")

    def test_missing_config_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_settings(self.workspace, config_path=Path("nope.toml"), env={})

    def test_unknown_keys_rejected(self) -> None:
        (self.workspace / "bad.json").write_text('{"image_builder": {"imagee": "typo"}}')
        with self.assertRaises(ValueError) as ctx:
            load_settings(self.workspace, config_path=Path("bad.json"), env={})
        self.assertIn("imagee", str(ctx.exception))

    def test_cli_overrides_ignore_none(self) -> None:
        settings = BuilderSettings().with_overrides(image="override:1", clang_version=None)
        self.assertEqual(settings.image, "override:1")
        self.assertEqual(settings.clang_version, BuilderSettings().clang_version)

    def test_tool_requirements_are_sorted(self) -> None:
        names = [req.name for req in BuilderSettings().tool_requirements()]
        self.assertEqual(names, ["buildah", "podman", "reg"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
