"""Command line interface for the clang toolchain image builder."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, NoReturn
import sys

from core.command_runner import CommandError, CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from core.console import Console

from .architectures import SUPPORTED_ARCHITECTURES
from .command import BuildCommand
from .config import BuilderSettings, load_settings
from .environment import HostEnvironment
from .errors import BuildSetupError, UnrecognizedFlag
from .plan import BuildFlags, BuildPlan, ClangBuildMode
from .registry import ensure_not_published
from .resolver import BuildPlanResolver
from .tools import ToolChecker


class _ArgumentParser(ArgumentParser):
    """Reports parse failures as :class:`UnrecognizedFlag` instead of exiting with 2."""

    def error(self, message: str) -> NoReturn:
        raise UnrecognizedFlag(message)


def _build_parser() -> _ArgumentParser:
    parser = _ArgumentParser(
        prog="clang-image-builder",
        description="Validate the build environment and build the clang toolchain image",
    )
    parser.add_argument(
        "--clang-build-mode",
        default=ClangBuildMode.SKIP.value,
        metavar="{SKIP,INSTALL,INSTALL_FROM}",
        help="Skip clang, build and export it (host only), or import prebuilt archives",
    )
    for arch in SUPPORTED_ARCHITECTURES:
        parser.add_argument(
            f"--clang-archive-{arch.uname}",
            dest=f"archive_{arch.canonical}",
            metavar="PATH",
            help=f"Clang archive for {arch.uname}, relative to the build root",
        )
    parser.add_argument(
        "--disable-multiarch",
        action="store_true",
        help="Build only for the host architecture",
    )
    parser.add_argument("--image", help="Target manifest name (overrides configuration)")
    parser.add_argument("--clang-version", help="Clang version tag (overrides configuration)")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML, JSON or YAML settings file",
    )
    parser.add_argument("-n", "--dry-run", action="store_true", help="Print the build command without executing it")
    parser.add_argument("--show-plan", action="store_true", help="Display the resolved build plan before building")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output (maps to debug)")
    parser.add_argument(
        "-l",
        "--log",
        choices=["none", "error", "info", "debug"],
        default=None,
        help="Set log level (default: error)",
    )
    return parser


def _flags_from_args(args: Namespace) -> BuildFlags:
    return BuildFlags(
        clang_build_mode=args.clang_build_mode,
        archive_paths={arch: getattr(args, f"archive_{arch.canonical}") for arch in SUPPORTED_ARCHITECTURES},
        disable_multiarch=args.disable_multiarch,
    )


def _make_runner(dry_run: bool) -> CommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _make_probe_runner() -> CommandRunner:
    # Probes are read-only and run even in dry-run mode.
    return SubprocessCommandRunner()


def _detect_host(settings: BuilderSettings) -> HostEnvironment:
    return HostEnvironment.detect(binfmt_dir=settings.binfmt_dir)


def _make_resolver(settings: BuilderSettings, host: HostEnvironment) -> BuildPlanResolver:
    return BuildPlanResolver(
        host_architecture=host.architecture,
        build_root=Path(settings.build_root),
        emulation_available=host.emulation_available,
        file_exists=host.file_exists,
        default_archive_path_for=settings.default_archive_path,
    )


def _print_plan(plan: BuildPlan) -> None:
    print("Resolved build plan:")
    print(f"  platforms:   {', '.join(plan.platform_strings())}")
    print(f"  multiarch:   {'enabled' if plan.multiarch_enabled else 'disabled'}")
    print(f"  clang build: {plan.clang_build_mode.value}")
    if plan.archive_spec:
        print(f"  archives:    {plan.serialized_archives()}")


def _emit_dry_run_output(runner: RecordingCommandRunner, console: Console) -> None:
    for line in runner.iter_formatted():
        console.dry(line)


def _prepare_export_directories(directories: Iterable[Path], console: Console) -> None:
    for directory in directories:
        if console.dry_run:
            console.dry(f"mkdir -p {directory}")
            continue
        console.debug(f"Creating archive directory {directory}")
        directory.mkdir(parents=True, exist_ok=True)


def _console_level(args: Namespace) -> str:
    if args.log:
        return args.log
    return "debug" if args.verbose else "error"


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    except UnrecognizedFlag as exc:
        parser.print_usage(sys.stderr)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except SystemExit as exc:
        # --help
        return int(exc.code or 0)

    console = Console(level=_console_level(args), dry_run=args.dry_run)
    workspace = Path.cwd()

    try:
        settings = load_settings(workspace, config_path=args.config)
    except (OSError, TypeError, ValueError) as exc:
        console.fatal(f"Failed to load settings: {exc}")
        return 1
    settings = settings.with_overrides(image=args.image, clang_version=args.clang_version)
    console.debug(f"Settings: {settings}")

    try:
        host = _detect_host(settings)
        console.info(f"Host architecture: {host.architecture.uname}")

        probe_runner = _make_probe_runner()
        ToolChecker(probe_runner, console=console).check_all(settings.tool_requirements())
        ensure_not_published(probe_runner, settings.image, console=console)

        plan = _make_resolver(settings, host).resolve(_flags_from_args(args))
    except (BuildSetupError, ValueError) as exc:
        console.fatal(str(exc))
        return 1

    if args.show_plan:
        _print_plan(plan)

    command = BuildCommand.from_plan(plan, settings)
    try:
        _prepare_export_directories(BuildCommand.export_directories(plan, settings), console)
    except OSError as exc:
        console.fatal(f"Cannot create archive directory: {exc}")
        return 1

    runner = _make_runner(args.dry_run)
    console.info(f"Building {settings.image} for {', '.join(plan.platform_strings())}")
    try:
        command.run(runner, cwd=Path(settings.build_root))
    except CommandError as exc:
        console.fatal(str(exc))
        return exc.result.returncode or 1

    if isinstance(runner, RecordingCommandRunner):
        _emit_dry_run_output(runner, console)
    return 0


__all__ = ["main"]
