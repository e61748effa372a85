"""Convert a markdown body into a lazy, restartable sequence of Nodes"""

from typing import Iterable, Iterator, Optional

from markdown_it.token import Token
from markdown_it.tree import SyntaxTreeNode

from mdsite.core.models import (
    BlockQuote,
    CodeBlock,
    FootnoteDef,
    Heading,
    HtmlBlock,
    Image,
    ListBlock,
    ListItem,
    Node,
    Paragraph,
    ThematicBreak,
)
from mdsite.core.render.blocks import DEFAULT_PRESET, make_parser, parse_blocks, source_slice
from mdsite.core.render.inline import InlineRenderer, plain_text


def _figure(children: list[Token]) -> Optional[Image]:
    """Return an Image if the paragraph holds only an image, optionally wrapped in a link."""
    non_ws = [
        c for c in children
        if c.type not in ('softbreak', 'hardbreak') and not (c.type == 'text' and not c.content.strip())
    ]
    link = None
    if len(non_ws) == 3 and non_ws[0].type == 'link_open' and non_ws[2].type == 'link_close':
        link = non_ws[0].attrGet('href')
        non_ws = non_ws[1:2]
    if len(non_ws) != 1 or non_ws[0].type != 'image':
        return None
    img = non_ws[0]
    return Image(
        alt=plain_text(img.children),
        src=img.attrGet('src') or '',
        title=img.attrGet('title') or None,
        link=link,
    )


class _NodeBuilder:
    """Maps one body's block tree to Nodes; holds the source lines and inline renderer."""

    def __init__(self, source_lines: list[str], inline: InlineRenderer):
        self.source_lines = source_lines
        self.inline = inline

    def nodes(self, tree_nodes: Iterable[SyntaxTreeNode]) -> Iterator[Node]:
        for tree_node in tree_nodes:
            node = self.node(tree_node)
            if node is not None:
                yield node

    def node(self, t: SyntaxTreeNode) -> Optional[Node]:
        if t.type == 'paragraph':
            inline = t.children[0]
            children = inline.token.children or []
            figure = _figure(children)
            if figure is not None:
                return figure
            return Paragraph(text=inline.content, parts=self.inline.render_tokens(children, inline.content))
        if t.type == 'heading':
            inline = t.children[0]
            children = inline.token.children or []
            return Heading(
                level=int(t.tag[1:]),
                text=inline.content,
                parts=self.inline.render_tokens(children, inline.content),
                plain=plain_text(children),
            )
        if t.type in ('fence', 'code_block'):
            info = t.info.strip() if t.type == 'fence' else ''
            return CodeBlock(language=info.split()[0] if info else None, literal=t.content)
        if t.type == 'footnote_def':
            return FootnoteDef(id=t.meta['id'], text=t.content, parts=self.inline.render(t.content))
        if t.type == 'blockquote':
            return BlockQuote(children=tuple(self.nodes(t.children)))
        if t.type in ('bullet_list', 'ordered_list'):
            items = tuple(
                ListItem(text=source_slice(item, self.source_lines), children=tuple(self.nodes(item.children)))
                for item in t.children
            )
            start = t.attrs.get('start') if t.type == 'ordered_list' else None
            return ListBlock(ordered=t.type == 'ordered_list', start=start, items=items)
        if t.type == 'hr':
            return ThematicBreak()
        if t.type == 'html_block':
            return HtmlBlock(html=t.content)
        # tables and other preset-specific blocks keep markdown-it's own html
        return HtmlBlock(html=self.inline.render_html(t.to_tokens()))


class BodyRenderer:
    """Iterable over the Nodes of one body.

    Each iteration parses the block structure and indexes link definitions
    afresh, so iterating twice yields equal sequences and nothing carries
    over between calls. Nodes are then produced one block at a time.
    """

    def __init__(self, raw_body: str, preset: str = DEFAULT_PRESET):
        self.raw_body = raw_body
        self.preset = preset

    def __iter__(self) -> Iterator[Node]:
        md = make_parser(self.preset)
        tree, references = parse_blocks(self.raw_body, md)
        builder = _NodeBuilder(self.raw_body.splitlines(keepends=True), InlineRenderer(references, md=md))
        return builder.nodes(tree.children)


def render_body(raw_body: str, preset: str = DEFAULT_PRESET) -> BodyRenderer:
    """Return a lazy, restartable Node sequence for raw_body."""
    return BodyRenderer(raw_body, preset)
