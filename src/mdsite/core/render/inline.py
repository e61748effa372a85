"""Inline rendering on markdown-it: code spans, links/images, emphasis, footnote placeholders"""

import re
from typing import Iterable, Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import normalizeReference
from markdown_it.token import Token

from mdsite.core.errors import DanglingReference
from mdsite.core.models import FootnoteRef, InlinePart
from mdsite.core.render.blocks import DEFAULT_PRESET, make_parser


FOOTNOTE_REF_RE = re.compile(r'\[\^([^\]\s]+)\]')
# Full `[text][label]` or collapsed `[text][]` references.
UNRESOLVED_REF_RE = re.compile(r'(?<![\w\])])!?\[([^\[\]]+)\]\[([^\[\]]*)\]')
CODE_SPAN_RE = re.compile(r'(?<!`)(`+)(?!`).+?(?<!`)\1(?!`)', re.DOTALL)
ESCAPE_RE = re.compile(r'\\.')


def _blank(m: re.Match) -> str:
    return ' ' * len(m.group(0))


def mask_literals(text: str) -> str:
    """Blank out code spans, backslash escapes and footnote markers, keeping offsets."""
    text = CODE_SPAN_RE.sub(_blank, text)
    text = ESCAPE_RE.sub(_blank, text)
    return FOOTNOTE_REF_RE.sub(_blank, text)


def plain_text(tokens: Optional[Iterable[Token]]) -> str:
    """Text content of inline tokens with markup dropped; code spans keep their text."""
    out = []
    for tok in tokens or ():
        if tok.type in ('text', 'text_special', 'code_inline'):
            out.append(tok.content)
        elif tok.type in ('softbreak', 'hardbreak'):
            out.append(' ')
        elif tok.type == 'image':
            out.append(plain_text(tok.children))
    return FOOTNOTE_REF_RE.sub('', ''.join(out)).strip()


class InlineRenderer:
    """Render inline markdown to html parts, splitting out FootnoteRef placeholders."""

    def __init__(
        self,
        references: dict[str, dict[str, Optional[str]]],
        preset: str = DEFAULT_PRESET,
        md: Optional[MarkdownIt] = None,
        ):
        self._md = md or make_parser(preset)
        self._references = {}
        for label, ref in references.items():
            href = self._md.normalizeLink(ref.get("href") or "")
            if self._md.validateLink(href):
                self._references[label] = {"href": href, "title": ref.get("title") or ""}

    def _dangling(self, text: str) -> list[str]:
        labels = []
        for m in UNRESOLVED_REF_RE.finditer(mask_literals(text)):
            label = m.group(2) or m.group(1)
            if normalizeReference(label) not in self._references:
                labels.append(label)
        return labels

    def render(self, text: str) -> tuple[InlinePart, ...]:
        """Parse and render inline source; html fragments interleaved with FootnoteRefs."""
        tokens = self._md.parseInline(text, {"references": dict(self._references)})
        children = tokens[0].children if tokens and tokens[0].children else []
        return self.render_tokens(children, text)

    def render_tokens(self, children: list[Token], source: str) -> tuple[InlinePart, ...]:
        """Render already-parsed inline tokens. `source` is the inline markdown they came from.

        Raises DanglingReference when source holds a full or collapsed
        reference whose label has no definition.
        """
        dangling = self._dangling(source)
        if dangling:
            shown = ', '.join(f'[{label}]' for label in dict.fromkeys(dangling))
            raise DanglingReference(f"Link reference(s) with no definition: {shown}", ids=dict.fromkeys(dangling))

        env = {"references": self._references}
        parts: list[InlinePart] = []
        run: list[Token] = []

        def flush() -> None:
            if run:
                parts.append(self._md.renderer.renderInline(run, self._md.options, env))
                run.clear()

        for tok in children:
            if tok.type == 'text_special':
                run.append(Token('text', '', 0, content=tok.content))
                continue
            if tok.type != 'text':
                run.append(tok)
                continue
            # split() alternates plain text and captured footnote ids
            for idx, piece in enumerate(FOOTNOTE_REF_RE.split(tok.content)):
                if idx % 2:
                    flush()
                    parts.append(FootnoteRef(id=piece))
                elif piece:
                    run.append(Token('text', '', 0, content=piece))
        flush()
        return tuple(parts)

    def render_html(self, tokens: list[Token]) -> str:
        """Render block tokens with markdown-it's own renderer."""
        return self._md.renderer.render(tokens, self._md.options, {"references": self._references})
