"""Page assembly: footnote resolution, html emission, layout pass-through"""

from html import escape
from typing import Iterable, Iterator, Optional

from mdsite.core.errors import DanglingReference, DuplicateReference, RenderError, UnknownLayout
from mdsite.core.models import (
    BlockQuote,
    CodeBlock,
    Document,
    FootnoteDef,
    FootnoteEntry,
    FootnoteRef,
    Heading,
    HtmlBlock,
    Image,
    InlinePart,
    ListBlock,
    Node,
    OutputPage,
    Paragraph,
    ThematicBreak,
)
from mdsite.core.utils.slug import unique_slug


def walk(nodes: Iterable[Node]) -> Iterator[Node]:
    """Depth-first over nodes, descending into quotes and list items."""
    for node in nodes:
        yield node
        if isinstance(node, BlockQuote):
            yield from walk(node.children)
        elif isinstance(node, ListBlock):
            for item in node.items:
                yield from walk(item.children)


def iter_footnote_refs(nodes: Iterable[Node]) -> Iterator[FootnoteRef]:
    for node in walk(nodes):
        for part in getattr(node, 'parts', ()):
            if isinstance(part, FootnoteRef):
                yield part


def index_footnotes(nodes: Iterable[Node]) -> dict[str, int]:
    """Number footnote definitions 1, 2, 3, ... in declaration order and check every reference.

    Raises DuplicateReference if an id is defined twice, DanglingReference if
    any reference has no definition.
    """
    nodes = tuple(nodes)
    index: dict[str, int] = {}
    for node in walk(nodes):
        if isinstance(node, FootnoteDef):
            if node.id in index:
                raise DuplicateReference(f"Footnote [^{node.id}] is defined more than once", ids=[node.id])
            index[node.id] = len(index) + 1

    missing = list(dict.fromkeys(ref.id for ref in iter_footnote_refs(nodes) if ref.id not in index))
    if missing:
        shown = ', '.join(f'[^{i}]' for i in missing)
        raise DanglingReference(f"Footnote reference(s) with no definition: {shown}", ids=missing)
    return index


def resolve_layout(
    document: Document,
    default_layout: Optional[str] = None,
    layouts: Optional[Iterable[str]] = None,
    ) -> Optional[str]:
    """Return the layout name; validated against `layouts` only when a registry is given."""
    name = document.layout or default_layout
    if layouts is not None:
        known = set(layouts)
        if name not in known:
            raise UnknownLayout(name, known)
    return name


def _attr(value: str) -> str:
    return escape(value, quote=True)


class _PageWriter:
    """Html emitter for one page; its counters live only as long as one assemble call."""

    def __init__(self, footnotes: dict[str, int]):
        self.footnotes = footnotes
        self.ref_counts: dict[str, int] = {}
        self.heading_ids: dict[str, int] = {}

    def inline(self, parts: Iterable[InlinePart]) -> str:
        out = []
        for part in parts:
            if isinstance(part, FootnoteRef):
                number = self.footnotes[part.id]
                count = self.ref_counts[part.id] = self.ref_counts.get(part.id, 0) + 1
                anchor = f"fnref:{number}" if count == 1 else f"fnref:{number}:{count}"
                out.append(
                    f'<sup id="{anchor}"><a href="#fn:{number}" class="footnote" '
                    f'role="doc-noteref">{number}</a></sup>'
                )
            else:
                out.append(part)
        return ''.join(out)

    def blocks(self, nodes: Iterable[Node]) -> str:
        return ''.join(self.block(node) for node in nodes)

    def block(self, node: Node) -> str:
        if isinstance(node, Paragraph):
            return f"<p>{self.inline(node.parts)}</p>\n"
        if isinstance(node, Heading):
            anchor = unique_slug(node.plain or node.text, self.heading_ids)
            return f'<h{node.level} id="{anchor}">{self.inline(node.parts)}</h{node.level}>\n'
        if isinstance(node, CodeBlock):
            cls = f' class="language-{_attr(node.language)}"' if node.language else ''
            return f"<pre><code{cls}>{escape(node.literal, quote=False)}</code></pre>\n"
        if isinstance(node, Image):
            title = f' title="{_attr(node.title)}"' if node.title else ''
            img = f'<img src="{_attr(node.src)}" alt="{_attr(node.alt)}"{title} />'
            if node.link:
                img = f'<a href="{_attr(node.link)}">{img}</a>'
            return f"<figure>{img}</figure>\n"
        if isinstance(node, ListBlock):
            tag = 'ol' if node.ordered else 'ul'
            start = f' start="{node.start}"' if node.ordered and node.start is not None else ''
            items = ''.join(f"<li>{self._item(item.children)}</li>\n" for item in node.items)
            return f"<{tag}{start}>\n{items}</{tag}>\n"
        if isinstance(node, BlockQuote):
            return f"<blockquote>\n{self.blocks(node.children)}</blockquote>\n"
        if isinstance(node, ThematicBreak):
            return "<hr />\n"
        if isinstance(node, HtmlBlock):
            return node.html if node.html.endswith('\n') else node.html + '\n'
        # footnote definitions are collected into the trailing block
        return ''

    def _item(self, children: tuple[Node, ...]) -> str:
        """Tight items (a single paragraph) render without the <p> wrapper."""
        if len(children) == 1 and isinstance(children[0], Paragraph):
            return self.inline(children[0].parts)
        return '\n' + self.blocks(children)

    def footnote_entries(self, defs: list[FootnoteDef]) -> list[FootnoteEntry]:
        entries = []
        for d in defs:
            number = self.footnotes[d.id]
            body = self.inline(d.parts)
            if d.id in self.ref_counts:
                body += f'&#160;<a href="#fnref:{number}" class="reversefootnote" role="doc-backlink">&#8617;</a>'
            entries.append(FootnoteEntry(number=number, id=d.id, html=body))
        return entries


def render_footnotes(entries: Iterable[FootnoteEntry]) -> str:
    items = ''.join(f'<li id="fn:{e.number}">{e.html}</li>\n' for e in entries)
    if not items:
        return ''
    return f'<div class="footnotes" role="doc-endnotes">\n<ol>\n{items}</ol>\n</div>\n'


def _page_title(document: Document, nodes: tuple[Node, ...]) -> str:
    """Front matter title, else the first heading's plain text, else the slug."""
    if document.title:
        return document.title
    heading = next((n for n in nodes if isinstance(n, Heading)), None)
    if heading is not None and (heading.plain or heading.text):
        return heading.plain or heading.text
    return document.slug


def assemble_page(
    document: Document,
    nodes: Iterable[Node],
    default_layout: Optional[str] = None,
    layouts: Optional[Iterable[str]] = None,
    ) -> OutputPage:
    """Merge rendered nodes with document metadata into an OutputPage.

    Footnote references resolve to anchors numbered by definition order;
    definitions are emitted as a trailing block rather than in place.
    """
    nodes = tuple(nodes)
    try:
        footnotes = index_footnotes(nodes)
        layout_name = resolve_layout(document, default_layout, layouts)
    except RenderError as e:
        raise e.with_source(document.source_path)

    writer = _PageWriter(footnotes)
    body = writer.blocks(nodes)
    defs = sorted(
        (n for n in walk(nodes) if isinstance(n, FootnoteDef)),
        key=lambda d: footnotes[d.id],
    )
    entries = writer.footnote_entries(defs)

    return OutputPage(
        html=body + render_footnotes(entries),
        title=_page_title(document, nodes),
        layout_name=layout_name,
        slug=document.slug,
        date=document.date,
        source_path=document.source_path,
        front_matter=document.front_matter,
        footnotes=tuple(entries),
        hash=document.hash,
    )
