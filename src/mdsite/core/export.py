"""Export: write an OutputPage as an html fragment plus a sidecar JSON"""

import json
from pathlib import Path
from typing import Optional

from mdsite.core.models import OutputPage


def build_sidecar(page: OutputPage) -> dict:
    """Build the sidecar JSON dict consumed by the publishing layout.

    Front matter passes through unchanged; dates and other YAML scalars are
    serialized as strings.
    """
    return {
        "slug": page.slug,
        "path": str(page.source_path) if page.source_path else None,
        "date": page.date.isoformat() if page.date else None,
        "title": page.title,
        "layout": page.layout_name,
        "hash": page.hash,
        "frontmatter": page.front_matter,
        "footnotes": [
            {"number": f.number, "id": f.id, "html": f.html}
            for f in page.footnotes
        ],
    }


def output_paths(page: OutputPage, output_dir: Path, content_root: Optional[Path] = None) -> tuple[Path, Path]:
    """Return (html_path, json_path).

    Output path mirrors the source directory structure under content_root:
      output_dir / <source parent relative to content_root> / page.slug.{html|json}
    """
    dest_dir = output_dir
    if page.source_path is not None and content_root is not None:
        parent = page.source_path.parent
        if parent.is_relative_to(content_root):
            dest_dir = output_dir / parent.relative_to(content_root)
    stem = page.slug or "index"
    return dest_dir / f"{stem}.html", dest_dir / f"{stem}.json"


def write_page(page: OutputPage, output_dir: Path, content_root: Optional[Path] = None) -> tuple[Path, Path]:
    """Write html + sidecar JSON for a single page. Returns (html_path, json_path)."""
    html_path, json_path = output_paths(page, output_dir, content_root)
    html_path.parent.mkdir(parents=True, exist_ok=True)
    html_path.write_text(page.html, encoding='utf-8')
    json_path.write_text(
        json.dumps(build_sidecar(page), indent=2, ensure_ascii=False, default=str),
        encoding='utf-8',
    )
    return html_path, json_path
