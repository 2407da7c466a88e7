import html
from typing import List

from bleach import clean
from markdown_it import MarkdownIt

from .content_masker import ContentMasker
from .pipeline import Pipeline
from .reference_parser import ParsedReference

md = MarkdownIt("commonmark")

ALLOWED_TAGS = [
    "p",
    "ul",
    "ol",
    "li",
    "strong",
    "em",
    "blockquote",
    "code",
    "pre",
    "a",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "span",
    "br",
    "hr",
]
ALLOWED_ATTRIBUTES = {"a": ["href", "title", "rel", "data-tags"]}

# Anchors must never land inside code, even when code is scanned for tags.
_code_masker = ContentMasker(parse_code_blocks=False)


def _anchor(reference: ParsedReference, tags: List[str]) -> str:
    title = html.escape(tags[0] if tags else "", quote=True)
    data = html.escape(" ".join(tags), quote=True)
    return f'<a href="#" rel="ref" title="{title}" data-tags="{data}">{html.escape(reference.raw, quote=False)}</a>'


def highlight_references(raw: str, pipeline: Pipeline) -> str:
    """Wrap every reference found in the body with an anchor carrying its tags."""
    if not raw:
        return raw

    excluded = _code_masker.excluded_spans(raw)
    pieces = raw
    # Work from the end so earlier offsets stay valid.
    for reference in sorted(pipeline.scan_body(raw), key=lambda r: r.start, reverse=True):
        if any(start < reference.end and reference.start < end for start, end in excluded):
            continue
        tags = pipeline.emitter.tags_for(reference)
        pieces = pieces[: reference.start] + _anchor(reference, tags) + pieces[reference.end :]
    return pieces


def render_markdown(text: str, pipeline: Pipeline) -> str:
    html_out = md.render(highlight_references(text, pipeline))
    return clean(html_out, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, strip=True)
