"""File discovery and front matter extraction into immutable Documents"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from mdsite.core.errors import MalformedFrontMatter
from mdsite.core.models import Document


logger = logging.getLogger(__name__)

FRONTMATTER_DELIM = '---'
MD_EXTENSIONS = {'.md', '.markdown'}


def _is_delimiter(line: str) -> bool:
    return line.rstrip('\r\n') == FRONTMATTER_DELIM


def split_front_matter(text: str) -> tuple[Optional[str], str]:
    """Return (front_matter_source, body). Source is None when the text has no header.

    The header must open on the very first line; an opening '---' with no
    closing '---' line raises MalformedFrontMatter.
    """
    lines = text.splitlines(keepends=True)
    if not lines or not _is_delimiter(lines[0]):
        return None, text
    for i in range(1, len(lines)):
        if _is_delimiter(lines[i]):
            return ''.join(lines[1:i]), ''.join(lines[i + 1:])
    raise MalformedFrontMatter("Front matter opened with '---' but never closed")


def _load_front_matter(source: Optional[str]) -> dict[str, Any]:
    """Parse the YAML header into a string-keyed mapping."""
    if source is None:
        return {}
    try:
        fm = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise MalformedFrontMatter(f"Invalid YAML front matter: {e}") from e
    if fm is None:
        return {}
    if not isinstance(fm, dict):
        raise MalformedFrontMatter(f"Invalid YAML front matter: expected a mapping, got {type(fm).__name__}")
    return {str(k): v for k, v in fm.items()}


def parse_document(text: str, source_path: Optional[Path] = None) -> Document:
    """Split front matter from body. Pure function of the input text."""
    try:
        header, body = split_front_matter(text)
        front_matter = _load_front_matter(header)
    except MalformedFrontMatter as e:
        raise e.with_source(source_path)
    return Document(
        source_path=source_path,
        front_matter=front_matter,
        raw_body=body,
        raw_text=text,
    )


def read_document(path: Path) -> Document:
    """Read a UTF-8 source file and parse it into a Document."""
    logger.debug("Reading %s", path)
    return parse_document(path.read_text(encoding='utf-8'), source_path=path)


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS and p.is_file())
