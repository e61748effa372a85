"""Unit tests for core/assemble.py"""

from pathlib import Path

import pytest

from mdsite.core.assemble import assemble_page, index_footnotes, resolve_layout
from mdsite.core.errors import DanglingReference, DuplicateReference, UnknownLayout
from mdsite.core.models import OutputPage
from mdsite.core.parse import parse_document
from mdsite.core.render.render import render_body


def _page(text: str, path: Path = None, **kwargs) -> OutputPage:
    doc = parse_document(text, path)
    return assemble_page(doc, render_body(doc.raw_body), **kwargs)


def _ref(number: int, anchor: str = None) -> str:
    anchor = anchor or f"fnref:{number}"
    return (
        f'<sup id="{anchor}"><a href="#fn:{number}" class="footnote" '
        f'role="doc-noteref">{number}</a></sup>'
    )


def test_single_footnote_page():
    page = _page("Declarations move.[^1]\n\n[^1]: Only declarations.\n")
    assert page.html == (
        f"<p>Declarations move.{_ref(1)}</p>\n"
        '<div class="footnotes" role="doc-endnotes">\n<ol>\n'
        '<li id="fn:1">Only declarations.&#160;<a href="#fnref:1" class="reversefootnote" '
        'role="doc-backlink">&#8617;</a></li>\n'
        "</ol>\n</div>\n"
    )
    assert [(f.number, f.id) for f in page.footnotes] == [(1, "1")]


def test_footnotes_numbered_by_declaration_order():
    """Numbers follow definitions, not the order references appear."""
    page = _page("B first[^b], then a[^a].\n\n[^a]: Alpha.\n\n[^b]: Beta.\n")
    assert _ref(2) in page.html
    assert page.html.index(_ref(2)) < page.html.index(_ref(1))
    assert [(f.number, f.id) for f in page.footnotes] == [(1, "a"), (2, "b")]
    assert page.html.index('<li id="fn:1">Alpha.') < page.html.index('<li id="fn:2">Beta.')


def test_repeated_reference_shares_anchor():
    page = _page("One[^x] and again[^x].\n\n[^x]: Shared.\n")
    assert _ref(1) in page.html
    assert _ref(1, "fnref:1:2") in page.html
    assert page.html.count('href="#fn:1"') == 2
    assert len(page.footnotes) == 1


def test_unreferenced_definition_has_no_backlink():
    page = _page("No refs here.\n\n[^lonely]: Still listed.\n")
    assert page.footnotes[0].html == "Still listed."


def test_footnotes_trail_the_body():
    """Definitions move from their declared position to a block after all content."""
    page = _page("Intro.[^n]\n\n[^n]: Note.\n\n## Later\n\nOutro.\n")
    assert page.html.index("<p>Outro.</p>") < page.html.index('<div class="footnotes"')
    assert page.html.endswith("</div>\n")


def test_no_footnotes_no_trailing_block():
    page = _page("Just text.\n")
    assert page.html == "<p>Just text.</p>\n"
    assert page.footnotes == ()


def test_missing_definition_raises_dangling():
    with pytest.raises(DanglingReference) as exc:
        _page("See[^gone] and[^also].\n", Path("p.md"))
    assert exc.value.ids == ("gone", "also")
    assert exc.value.source_path == Path("p.md")
    assert str(exc.value).startswith("p.md: ")


def test_duplicate_definition_raises():
    with pytest.raises(DuplicateReference) as exc:
        _page("Ref[^d].\n\n[^d]: One.\n\n[^d]: Two.\n")
    assert exc.value.ids == ("d",)


def test_index_footnotes_counts_nested_definitions():
    nodes = list(render_body("> Quoted[^q].\n>\n> [^q]: In the quote.\n"))
    assert index_footnotes(nodes) == {"q": 1}


@pytest.mark.parametrize("front,default,layouts,expected", [
    ("layout: post\n", None, None, "post"),
    ("layout: post\n", "page", None, "post"),
    ("title: x\n", "page", None, "page"),
    ("title: x\n", None, None, None),
    ("layout: post\n", None, ["post", "page"], "post"),
])
def test_resolve_layout(front, default, layouts, expected):
    doc = parse_document(f"---\n{front}---\nBody.\n")
    assert resolve_layout(doc, default, layouts) == expected


def test_unknown_layout_raises():
    doc = parse_document("---\nlayout: fancy\n---\nBody.\n", Path("a.md"))
    with pytest.raises(UnknownLayout) as exc:
        assemble_page(doc, render_body(doc.raw_body), layouts=["post", "page"])
    assert exc.value.layout == "fancy"
    assert exc.value.known == ("page", "post")
    assert exc.value.source_path == Path("a.md")


def test_missing_layout_with_registry_raises():
    doc = parse_document("Body.\n")
    with pytest.raises(UnknownLayout):
        resolve_layout(doc, None, ["post"])


def test_page_metadata(sample_post):
    path = Path("_posts/2010-02-08-javascript-scoping-and-hoisting.md")
    doc = parse_document(sample_post, path)
    page = assemble_page(doc, render_body(doc.raw_body))
    assert page.title == "JavaScript Scoping and Hoisting"
    assert page.layout_name == "default"
    assert page.slug == "javascript-scoping-and-hoisting"
    assert page.date.isoformat() == "2010-02-08"
    assert page.front_matter == {"layout": "default", "title": "JavaScript Scoping and Hoisting"}
    assert page.hash == doc.hash
    assert page.source_path == path


def test_sample_post_html(sample_post):
    page = _page(sample_post)
    assert '<pre><code class="language-javascript">var foo = 1;\nfunction bar() {\n' in page.html
    assert "    if (!foo) {\n" in page.html
    assert '<h2 id="scoping-in-javascript">Scoping in JavaScript</h2>' in page.html
    assert "<em>scoping</em>" in page.html
    assert "<code>var *x*</code>" in page.html
    assert _ref(1) in page.html and _ref(1, "fnref:1:2") in page.html
    assert page.html.count('<li id="fn:') == 1


def test_title_falls_back_to_heading_then_slug():
    assert _page("# First Heading\n\nText.\n").title == "First Heading"
    assert _page("Text.\n", Path("2020-01-02-no-title.md")).title == "no-title"


def test_heading_title_and_anchor_drop_markup():
    page = _page("## The `var` *keyword*\n")
    assert page.title == "The var keyword"
    assert '<h2 id="the-var-keyword">' in page.html


def test_unsafe_urls_never_reach_html():
    page = _page("[![a](/a.png)](javascript:alert(1))\n\n![b](javascript:alert(2))\n")
    assert 'href="javascript:' not in page.html
    assert 'src="javascript:' not in page.html


def test_duplicate_headings_get_unique_ids():
    page = _page("## Notes\n\n## Notes\n")
    assert '<h2 id="notes">' in page.html
    assert '<h2 id="notes-1">' in page.html


def test_code_is_escaped():
    page = _page("```html\n<b>&amp;</b>\n```\n")
    assert page.html == '<pre><code class="language-html">&lt;b&gt;&amp;amp;&lt;/b&gt;\n</code></pre>\n'


def test_image_and_list_html():
    page = _page('![A cat](/cat.png "Cat")\n\n3. three\n4. four\n')
    assert '<figure><img src="/cat.png" alt="A cat" title="Cat" /></figure>\n' in page.html
    assert '<ol start="3">\n<li>three</li>\n<li>four</li>\n</ol>\n' in page.html


def test_assembly_is_repeatable():
    text = "A[^1] b[^1].\n\n## H\n\n## H\n\n[^1]: Note.\n"
    assert _page(text) == _page(text)
