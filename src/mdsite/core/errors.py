"""Per-document render failures raised by the parse, render and assemble stages"""

from pathlib import Path
from typing import Iterable, Optional


class RenderError(ValueError):
    """Base class for data-quality failures in a single source document."""

    def __init__(self, message: str, source_path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.source_path = source_path

    def with_source(self, source_path: Optional[Path]) -> "RenderError":
        """Attach the offending file path if none is set yet; returns self for re-raising."""
        if self.source_path is None:
            self.source_path = source_path
        return self

    def __str__(self) -> str:
        if self.source_path is not None:
            return f"{self.source_path}: {self.message}"
        return self.message


class MalformedFrontMatter(RenderError):
    """Front matter opened with '---' but never closed, or not a YAML mapping."""


class ReferenceResolutionError(RenderError):
    """A link or footnote reference does not resolve to exactly one definition."""

    def __init__(self, message: str, ids: Iterable[str] = (), source_path: Optional[Path] = None):
        super().__init__(message, source_path)
        self.ids = tuple(ids)


class DanglingReference(ReferenceResolutionError):
    """A reference names a label or footnote id with no matching definition."""


class DuplicateReference(ReferenceResolutionError):
    """A footnote id is defined more than once in the same document."""


class UnknownLayout(RenderError):
    """The layout named in front matter is not in the configured registry."""

    def __init__(self, layout: Optional[str], known: Iterable[str] = (), source_path: Optional[Path] = None):
        known = sorted(known)
        shown = repr(layout) if layout else "(none)"
        super().__init__(f"Unknown layout {shown}; expected one of: {', '.join(known) or '(empty registry)'}", source_path)
        self.layout = layout
        self.known = tuple(known)
