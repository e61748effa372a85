"""Pipeline step functions: render one document, build a corpus, export results"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from mdsite.core.assemble import assemble_page
from mdsite.core.errors import RenderError
from mdsite.core.export import write_page
from mdsite.core.models import OutputPage
from mdsite.core.parse import discover_files, parse_document, read_document
from mdsite.core.render.blocks import DEFAULT_PRESET
from mdsite.core.render.render import render_body


logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome for one source file: a page, or the error that stopped it."""
    source:  Path
    page:    Optional[OutputPage] = None
    error:   Optional[Exception] = None
    written: Optional[tuple[Path, Path]] = None     # (html_path, json_path) once exported

    @property
    def ok(self) -> bool:
        return self.error is None


def render_text(
    text: str,
    source_path: Optional[Path] = None,
    default_layout: Optional[str] = None,
    layouts: Optional[Iterable[str]] = None,
    preset: str = DEFAULT_PRESET,
    ) -> OutputPage:
    """Parse -> render -> assemble for one document held in memory."""
    document = parse_document(text, source_path)
    try:
        nodes = render_body(document.raw_body, preset)
        return assemble_page(document, nodes, default_layout, layouts)
    except RenderError as e:
        raise e.with_source(source_path)


def render_file(
    path: Path,
    default_layout: Optional[str] = None,
    layouts: Optional[Iterable[str]] = None,
    preset: str = DEFAULT_PRESET,
    ) -> OutputPage:
    """Read and render a single source file."""
    document = read_document(path)
    try:
        return assemble_page(document, render_body(document.raw_body, preset), default_layout, layouts)
    except RenderError as e:
        raise e.with_source(path)


def build_pages(
    paths: Sequence[Path],
    default_layout: Optional[str] = None,
    layouts: Optional[Iterable[str]] = None,
    preset: str = DEFAULT_PRESET,
    workers: int = 1,
    ) -> list[BuildResult]:
    """Render every path; one bad document never stops the rest. Results keep input order."""
    registry = None if layouts is None else frozenset(layouts)

    def _one(path: Path) -> BuildResult:
        try:
            page = render_file(path, default_layout, registry, preset)
        except (RenderError, OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to render %s: %s", path, e)
            return BuildResult(source=path, error=e)
        logger.debug("Rendered %s -> %s", path, page.slug)
        return BuildResult(source=path, page=page)

    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(_one, paths))
    return [_one(p) for p in paths]


def run_build(
    path: str,
    output_dir: Path,
    default_layout: Optional[str] = None,
    layouts: Optional[Iterable[str]] = None,
    preset: str = DEFAULT_PRESET,
    workers: int = 1,
    ) -> list[BuildResult]:
    """Discover sources under path, render them, and write each successful page to output_dir."""
    root = Path(path)
    files = discover_files(root)
    logger.info("Building %d document(s) from %s", len(files), root)
    results = build_pages(files, default_layout, layouts, preset, workers)

    content_root = root if root.is_dir() else root.parent
    for result in results:
        if result.ok:
            result.written = write_page(result.page, output_dir, content_root)

    failed = sum(1 for r in results if not r.ok)
    if failed:
        logger.warning("%d of %d document(s) failed", failed, len(results))
    return results
