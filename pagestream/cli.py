"""Command-line interface for Pagestream.

Commands:
- build: Run the full build in the current directory and write ``dist/``.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .errors import FatalBuildError, ProtocolViolation


@click.group()
@click.version_option(version=__version__, prog_name="pagestream")
def cli():
    """Pagestream static site build pipeline."""


@cli.command()
def build():
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(project_root)
    except FatalBuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Stage: {exc.stage}", fg="yellow"), err=True)
        if exc.path is not None:
            click.echo(click.style(f"  File: {_display_path(exc.path, project_root)}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except ProtocolViolation as exc:
        click.echo(click.style("Renderer protocol violation:", fg="red", bold=True), err=True)
        click.echo(f"  {exc}", err=True)
        raise SystemExit(1) from None
    except Exception as exc:
        click.echo(click.style("Unexpected error:", fg="red", bold=True), err=True)
        click.echo(f"  {type(exc).__name__}: {exc}", err=True)
        raise SystemExit(1) from None

    if not result.succeeded:
        click.echo(
            click.style(
                f"Build finished with {len(result.errors)} error(s)", fg="red", bold=True
            ),
            err=True,
        )
        raise SystemExit(result.exit_code)
    click.echo(f"Built {len(result.routes)} pages into {result.output_dir}")


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)


def main():
    """Entry point for the CLI application."""
    cli()
