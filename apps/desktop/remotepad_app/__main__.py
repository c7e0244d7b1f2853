"""``python -m remotepad_app``; with no arguments the desktop window opens."""

from __future__ import annotations

import sys

if __package__:
    from .cli import main as _cli_main
else:
    # Plain-script path used by frozen bundles and runpy.run_path.
    from remotepad_app.cli import main as _cli_main


DEFAULT_COMMAND = ["run"]


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    return int(_cli_main(args or DEFAULT_COMMAND))


if __name__ == "__main__":
    raise SystemExit(main())
