"""Guard against overwriting an image that already exists in a registry."""
from __future__ import annotations

from core.command_runner import CommandRunner
from core.console import Console

from .errors import ImageAlreadyPublished


def ensure_not_published(runner: CommandRunner, image: str, *, console: Console | None = None) -> None:
    """Raise :class:`ImageAlreadyPublished` when ``reg digest`` resolves ``image``.

    ``reg`` exits non-zero for unknown manifests, which is the expected case.
    """

    result = runner.run(["reg", "digest", image], check=False, note="registry probe")
    if result.ok:
        raise ImageAlreadyPublished(image)
    if console is not None:
        console.debug(f"No published digest for {image}")


__all__ = ["ensure_not_published"]
