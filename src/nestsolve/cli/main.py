"""nestsolve CLI — inspect how a set of candidates resolves.

Entry point for the ``nestsolve`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve — Discover candidates (including nested archives) and print
              the selected version of every identity.

Usage::

    nestsolve resolve ./app.zip ./plugins/extra
    nestsolve resolve --folder ./candidates --require http-core
    nestsolve resolve --folder ./candidates --format json
"""

from __future__ import annotations

import click

from nestsolve import __version__
from nestsolve.cli.resolve_cmd import resolve_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """nestsolve: Recursive candidate discovery and version selection."""


cli.add_command(resolve_command)
