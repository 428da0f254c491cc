"""Entry point for ``python -m imagebuilder`` and the console script."""
from __future__ import annotations

import sys

from .cli import main as cli_main


def main() -> int:
    """Delegate to the builder CLI entry point."""
    return cli_main(sys.argv[1:])


if __name__ == "__main__":  # pragma: no cover - exercised via integration tests
    raise SystemExit(main())
