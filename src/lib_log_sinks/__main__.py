"""Console entry point for ``python -m lib_log_sinks`` and the ``lib_log_sinks`` script.

Contents
--------
* :func:`main` - runs the Click group in a test-friendly manner.
"""

from __future__ import annotations

from typing import Sequence

import click

from .cli import cli


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Click command group and return its exit code.

    Parameters
    ----------
    argv:
        Optional sequence of argument strings (defaults to ``sys.argv[1:]``).

    Returns
    -------
    int
        Zero on success; the Click exception's exit code otherwise.
    """

    args = list(argv) if argv is not None else None
    try:
        cli.main(args=args, prog_name="lib_log_sinks", standalone_mode=False)
    except click.ClickException as error:
        error.show()
        return error.exit_code
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
