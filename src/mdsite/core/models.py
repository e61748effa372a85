"""Value models for the parse -> render -> assemble pipeline"""

import hashlib
import datetime as dt
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from mdsite.core.utils.slug import slugify, split_post_stem


FROZEN = {"frozen": True}


# --- inline ---

class FootnoteRef(BaseModel):
    """Placeholder for an inline `[^id]` marker; resolved to an anchor at assembly."""
    model_config = FROZEN

    kind: Literal["footnote_ref"] = "footnote_ref"
    id: str


# Rendered inline HTML fragments interleaved with unresolved footnote references.
InlinePart = Union[str, FootnoteRef]


# --- block nodes ---

class Paragraph(BaseModel):
    model_config = FROZEN

    kind:  Literal["paragraph"] = "paragraph"
    text:  str                              # inline markdown source
    parts: tuple[InlinePart, ...] = ()      # rendered inline html + footnote refs


class Heading(BaseModel):
    model_config = FROZEN

    kind:  Literal["heading"] = "heading"
    level: int = Field(ge=1, le=6)
    text:  str
    parts: tuple[InlinePart, ...] = ()
    plain: str = ""                         # text with inline markup stripped


class CodeBlock(BaseModel):
    """Fenced or Liquid-highlighted code; `literal` is the fenced text, byte-for-byte."""
    model_config = FROZEN

    kind:     Literal["code"] = "code"
    language: Optional[str] = None
    literal:  str


class Image(BaseModel):
    """A standalone image paragraph, optionally wrapped in a link."""
    model_config = FROZEN

    kind:  Literal["image"] = "image"
    alt:   str = ""
    src:   str
    title: Optional[str] = None
    link:  Optional[str] = None


class FootnoteDef(BaseModel):
    """A footnote definition, emitted at the position it was declared."""
    model_config = FROZEN

    kind:  Literal["footnote_def"] = "footnote_def"
    id:    str
    text:  str
    parts: tuple[InlinePart, ...] = ()


class ListItem(BaseModel):
    """One list item: its source lines, marker included, and its nested blocks."""
    model_config = FROZEN

    text:     str
    children: tuple["Node", ...] = ()


class ListBlock(BaseModel):
    model_config = FROZEN

    kind:    Literal["list"] = "list"
    ordered: bool = False
    start:   Optional[int] = None           # first number of an ordered list when not 1
    items:   tuple[ListItem, ...] = ()


class BlockQuote(BaseModel):
    model_config = FROZEN

    kind:     Literal["quote"] = "quote"
    children: tuple["Node", ...] = ()


class ThematicBreak(BaseModel):
    model_config = FROZEN

    kind: Literal["rule"] = "rule"


class HtmlBlock(BaseModel):
    """Raw HTML passed through untouched."""
    model_config = FROZEN

    kind: Literal["html"] = "html"
    html: str


Node = Annotated[
    Union[Paragraph, Heading, CodeBlock, Image, FootnoteDef, ListBlock, BlockQuote, ThematicBreak, HtmlBlock],
    Field(discriminator="kind"),
]

ListItem.model_rebuild()
ListBlock.model_rebuild()
BlockQuote.model_rebuild()


# --- documents and pages ---

def _coerce_date(value: Any) -> Optional[dt.date]:
    """Normalize a YAML front matter date (date, datetime or ISO string) to a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return dt.date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


class Document(BaseModel):
    """One parsed source file: opaque front matter plus the unrendered markdown body."""
    model_config = FROZEN

    source_path:  Optional[Path] = None
    front_matter: dict[str, Any] = Field(default_factory=dict)
    raw_body:     str                       # body only (front matter stripped)
    raw_text:     str                       # full file content (includes front matter)

    @property
    def hash(self) -> str:
        """SHA-256 of the full source text, for change detection downstream."""
        return hashlib.sha256(self.raw_text.encode("utf-8")).hexdigest()

    @property
    def slug(self) -> str:
        """Front matter `slug`, else the filename minus any `YYYY-MM-DD-` prefix."""
        if self.front_matter.get("slug"):
            return slugify(str(self.front_matter["slug"]))
        if self.source_path is None:
            return ""
        return slugify(split_post_stem(self.source_path.stem)[1])

    @property
    def date(self) -> Optional[dt.date]:
        """Date from a `YYYY-MM-DD-` filename prefix, else from front matter `date`."""
        if self.source_path is not None:
            stamp = split_post_stem(self.source_path.stem)[0]
            if stamp is not None:
                return stamp
        return _coerce_date(self.front_matter.get("date"))

    @property
    def title(self) -> Optional[str]:
        value = self.front_matter.get("title")
        return str(value) if value is not None else None

    @property
    def layout(self) -> Optional[str]:
        value = self.front_matter.get("layout")
        return str(value) if value is not None else None


class FootnoteEntry(BaseModel):
    """A resolved footnote: declaration-order number, source id and rendered html."""
    model_config = FROZEN

    number: int
    id:     str
    html:   str


class OutputPage(BaseModel):
    """Public render contract: one html fragment plus resolved metadata per document."""
    model_config = FROZEN

    html:         str
    title:        str
    layout_name:  Optional[str] = None
    slug:         str = ""
    date:         Optional[dt.date] = None
    source_path:  Optional[Path] = None
    front_matter: dict[str, Any] = Field(default_factory=dict)
    footnotes:    tuple[FootnoteEntry, ...] = ()
    hash:         str = ""
