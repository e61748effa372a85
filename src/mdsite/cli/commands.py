"""CLI command implementations"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.errors import RenderError
from mdsite.core.export import build_sidecar
from mdsite.core.parse import discover_files
from mdsite.core.pipeline import BuildResult, build_pages, render_file, run_build
from mdsite.logging import configure_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging from it."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    configure_logging(verbose=settings.verbose, log_json=settings.log_json)
    return settings


def _echo_failures(results: list[BuildResult]) -> int:
    """Print one stderr line per failed document; returns the failure count."""
    failed = [r for r in results if not r.ok]
    for r in failed:
        typer.echo(f"  FAILED {r.source}: {type(r.error).__name__}: {getattr(r.error, 'message', r.error)}", err=True)
    return len(failed)


def build_cmd(
    path: Annotated[Optional[str], typer.Argument(help="File or directory to render (default: content_dir)")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    layout: Annotated[Optional[str], typer.Option("--default-layout", help="Layout when front matter names none")] = None,
    layouts: Annotated[Optional[str], typer.Option("--layouts", help="Comma-separated layout registry to validate against")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Documents rendered concurrently")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    log_json: Annotated[bool, typer.Option("--log-json", help="JSON log lines on stderr")] = False,
    ):
    """Render every document to HTML + sidecar JSON; failures are reported and skipped."""
    settings = _settings(overrides={
        "content_dir": path, "output_dir": out, "default_layout": layout, "layouts": layouts,
        "workers": workers, "parser_config": parser, "verbose": verbose or None, "log_json": log_json or None,
    })
    output_dir = Path(settings.output_dir)
    results = run_build(
        settings.content_dir, output_dir,
        settings.default_layout, settings.layouts, settings.parser_config, settings.workers,
    )
    if not results:
        typer.echo(f"No .md/.markdown files found under {settings.content_dir}.")
        raise typer.Exit(1)

    for r in results:
        if r.ok:
            typer.echo(f"  {r.source} -> {r.written[0]}")
    failed = _echo_failures(results)
    typer.echo(f"Built {len(results) - failed} page(s) to {output_dir}/, {failed} failed")
    if failed:
        raise typer.Exit(1)


def check_cmd(
    path: Annotated[Optional[str], typer.Argument(help="File or directory to validate (default: content_dir)")] = None,
    layouts: Annotated[Optional[str], typer.Option("--layouts", help="Comma-separated layout registry to validate against")] = None,
    layout: Annotated[Optional[str], typer.Option("--default-layout", help="Layout when front matter names none")] = None,
    ):
    """Render every document without writing output; exit 1 if any fails."""
    settings = _settings(overrides={"content_dir": path, "layouts": layouts, "default_layout": layout})
    files = discover_files(Path(settings.content_dir))
    if not files:
        typer.echo(f"No .md/.markdown files found under {settings.content_dir}.")
        raise typer.Exit(1)
    results = build_pages(
        files, settings.default_layout, settings.layouts, settings.parser_config, settings.workers,
    )
    failed = _echo_failures(results)
    if failed:
        typer.echo(f"{failed} of {len(results)} document(s) failed")
        raise typer.Exit(1)
    typer.echo(f"All {len(results)} document(s) OK")


def render_cmd(
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Markdown file to render")],
    as_json: Annotated[bool, typer.Option("--json", help="Print the sidecar JSON instead of HTML")] = False,
    layout: Annotated[Optional[str], typer.Option("--default-layout", help="Layout when front matter names none")] = None,
    ):
    """Render a single document and print the HTML fragment to stdout."""
    settings = _settings(overrides={"default_layout": layout})
    try:
        page = render_file(file, settings.default_layout, settings.layouts, settings.parser_config)
    except (RenderError, UnicodeDecodeError) as e:
        _fail(f"Could not render {file}", e)
    if as_json:
        typer.echo(json.dumps(build_sidecar(page), indent=2, ensure_ascii=False, default=str))
    else:
        typer.echo(page.html, nl=False)
