"""Block parsing on markdown-it: parser setup, footnote/Liquid block rules, link definition index"""

import re
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.tree import SyntaxTreeNode


DEFAULT_PRESET = 'commonmark'

FOOTNOTE_DEF_RE = re.compile(r'^\[\^(?P<label>[^\]\s]+)\]:[ \t]*(?P<text>.*)$')
LIQUID_OPEN_RE  = re.compile(r'^\{%-?\s*highlight\s+(?P<lang>[^\s%]+)(?:\s+[^%]*)?-?%\}\s*$')
LIQUID_CLOSE_RE = re.compile(r'^\{%-?\s*endhighlight\s*-?%\}\s*$')
LIQUID_TAG_RE   = re.compile(r'^\{%.*%\}\s*$')


def _line(state: StateBlock, line: int) -> str:
    """Source of one line with container markers and leading indent removed."""
    return state.src[state.bMarks[line] + state.tShift[line]:state.eMarks[line]]


def _indented_code(state: StateBlock, line: int) -> bool:
    return state.sCount[line] - state.blkIndent >= 4


def footnote_def_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """`[^id]: text` plus indented continuation lines -> one `footnote_def` token."""
    if _indented_code(state, startLine):
        return False
    m = FOOTNOTE_DEF_RE.match(_line(state, startLine))
    if m is None:
        return False
    if silent:
        return True

    collected = [m.group('text').strip()] if m.group('text').strip() else []
    nextLine = startLine + 1
    while nextLine < endLine and not state.isEmpty(nextLine) and _indented_code(state, nextLine):
        collected.append(_line(state, nextLine).strip())
        nextLine += 1

    token = state.push('footnote_def', '', 0)
    token.meta = {'id': m.group('label')}
    token.content = '\n'.join(collected)
    token.map = [startLine, nextLine]
    state.line = nextLine
    return True


def liquid_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """Jekyll `{% highlight lang %}` blocks become fence tokens; other standalone tags pass through as html."""
    if _indented_code(state, startLine):
        return False
    line = _line(state, startLine)
    opening = LIQUID_OPEN_RE.match(line)
    if opening is None and not LIQUID_TAG_RE.match(line):
        return False
    if silent:
        return True

    if opening is None:
        token = state.push('html_block', '', 0)
        token.content = line + '\n'
        token.map = [startLine, startLine + 1]
        state.line = startLine + 1
        return True

    nextLine = startLine + 1
    while nextLine < endLine and not LIQUID_CLOSE_RE.match(_line(state, nextLine)):
        nextLine += 1
    # unterminated blocks run to the end of the body, like fences
    end = nextLine + 1 if nextLine < endLine else nextLine

    token = state.push('fence', 'code', 0)
    token.info = opening.group('lang')
    token.markup = '{%'
    token.content = state.getLines(startLine + 1, nextLine, state.sCount[startLine], True)
    token.map = [startLine, end]
    state.line = end
    return True


def make_parser(preset: str = DEFAULT_PRESET) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name, with footnote and Liquid block rules.

    `text_join` stays disabled so escaped characters remain separate tokens
    and never form reference or footnote patterns.
    """
    md = MarkdownIt(preset, options_update={"linkify": False})
    md.block.ruler.before('fence', 'liquid', liquid_rule, {'alt': ['paragraph', 'reference', 'blockquote', 'list']})
    md.block.ruler.before('reference', 'footnote_def', footnote_def_rule, {'alt': ['paragraph', 'reference']})
    md.disable('text_join', ignoreInvalid=True)
    return md


def parse_blocks(body: str, md: MarkdownIt) -> tuple[SyntaxTreeNode, dict[str, Any]]:
    """Parse body once; return the block tree and the link definitions markdown-it collected.

    Definitions are normalized, validated and keyed by normalized label; the first
    definition of a label wins.
    """
    env: dict[str, Any] = {}
    tokens = md.parse(body, env)
    return SyntaxTreeNode(tokens), env.get('references', {})


def collect_link_definitions(body: str, preset: str = DEFAULT_PRESET) -> dict[str, dict[str, str]]:
    """Map normalized label -> {"href", "title"} for every link definition in body."""
    return parse_blocks(body, make_parser(preset))[1]


def source_slice(node: SyntaxTreeNode, source_lines: list[str]) -> str:
    """Raw source for a block via its line map; fallback to its content."""
    if node.map:
        start, end = node.map
        return ''.join(source_lines[start:end]).rstrip()
    return node.content.rstrip()
