"""``nestsolve resolve [PATHS]...`` — Discover candidates and select versions.

Every PATH (directory or archive) and every entry of each ``--folder`` is an
explicitly provided candidate. Nested archives are discovered recursively,
then one version per identity is selected and verified.

Exit Codes:
    0 — Resolution succeeded (warnings may have been printed).
    1 — Resolution or verification failed.
    2 — Discovery failed, or no candidate sources were given.
"""

from __future__ import annotations

import logging
import sys

import click

from nestsolve.cli.output import print_failure, print_json, print_selection, selection_to_json
from nestsolve.config import DEFAULT_DISCOVERY_TIMEOUT, ResolverConfig
from nestsolve.core.pipeline import resolve_from_finders
from nestsolve.discovery import DirectoryCandidateFinder, ExplicitCandidateFinder
from nestsolve.exceptions import DiscoveryError, ResolutionError


def _fail(output_format: str, title: str, message: str, code: int) -> None:
    if output_format == "json":
        print_json({"success": False, "error": title, "details": message})
    else:
        print_failure(title, message)
    sys.exit(code)


@click.command("resolve")
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option(
    "--folder", "folders",
    multiple=True,
    type=click.Path(exists=True, file_okay=False),
    help="Folder whose archives and sub-directories are all candidates.",
)
@click.option(
    "--require", "required",
    multiple=True,
    help="Identity that must be part of the selection (repeatable).",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_DISCOVERY_TIMEOUT,
    show_default=True,
    help="Discovery timeout in seconds.",
)
@click.option(
    "--solve-timeout",
    type=float,
    default=None,
    help="Solver timeout in seconds (default: unbounded).",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Discovery worker threads (default: CPU count - 1).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def resolve_command(
    paths: tuple[str, ...],
    folders: tuple[str, ...],
    required: tuple[str, ...],
    timeout: float,
    solve_timeout: float | None,
    workers: int | None,
    output_format: str,
    verbose: bool,
) -> None:
    """Resolve one version per identity from PATHS and --folder entries."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not paths and not folders:
        click.echo("No candidate sources given.")
        sys.exit(2)

    try:
        config = ResolverConfig(
            discovery_timeout=timeout,
            solve_timeout=solve_timeout,
            max_workers=workers,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    finders = [ExplicitCandidateFinder(paths)]
    finders.extend(
        DirectoryCandidateFinder(folder, archive_suffixes=config.archive_suffixes)
        for folder in folders
    )

    try:
        result = resolve_from_finders(finders, required, config=config)
    except DiscoveryError as exc:
        _fail(output_format, "Discovery failed", str(exc), 2)
        return
    except ResolutionError as exc:
        _fail(output_format, "Resolution failed", str(exc), 1)
        return

    with result:
        if output_format == "json":
            print_json(selection_to_json(result.selection, result.warnings))
        else:
            print_selection(result.selection, result.warnings)
    sys.exit(0)
