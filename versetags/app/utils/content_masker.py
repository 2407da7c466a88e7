import re
from typing import List, Optional, Tuple

# Metadata block only counts when it opens the document and is closed.
FRONTMATTER_REGEX = re.compile(r"\A---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
CODE_BLOCK_REGEX = re.compile(r"```.*?```", re.DOTALL)
INLINE_CODE_REGEX = re.compile(r"(?<!`)`(?!`)[^`\n]+?`(?!`)")
WIKI_LINK_REGEX = re.compile(r"\[\[[^\]]+?\]\]")
URL_REGEX = re.compile(r"https?://\S+")

Span = Tuple[int, int]


class ContentMasker:
    """Blanks out the parts of a note that are not prose.

    The masked text always has the same length as the input so offsets found in it
    can be reported against the original document.
    """

    def __init__(self, parse_code_blocks: bool = False):
        self.parse_code_blocks = parse_code_blocks
        patterns = [FRONTMATTER_REGEX]
        if not parse_code_blocks:
            patterns.extend([CODE_BLOCK_REGEX, INLINE_CODE_REGEX])
        patterns.extend([WIKI_LINK_REGEX, URL_REGEX])
        self.patterns = patterns
        self._last: Optional[Tuple[str, str, List[Span]]] = None

    def _run(self, text: str) -> Tuple[str, List[Span]]:
        last = self._last
        if last is not None and last[0] == text:
            return last[1], last[2]

        spans: List[Span] = []

        def blank(match: re.Match) -> str:
            spans.append(match.span())
            return " " * (match.end() - match.start())

        working = text
        for pattern in self.patterns:
            working = pattern.sub(blank, working)
        spans.sort()
        # Only the most recent document is kept, for repeated is_excluded() calls.
        self._last = (text, working, spans)
        return working, spans

    def mask(self, text: str) -> str:
        if not text:
            return text
        masked, _ = self._run(text)
        return masked

    def excluded_spans(self, text: str) -> List[Span]:
        if not text:
            return []
        _, spans = self._run(text)
        return list(spans)

    def is_excluded(self, text: str, offset: int) -> bool:
        """Whether ``offset`` falls in a masked span. Spans of the last text seen are reused."""
        if offset < 0 or offset >= len(text):
            return False
        return any(start <= offset < end for start, end in self.excluded_spans(text))


def mask_content(text: str, parse_code_blocks: bool = False) -> str:
    return ContentMasker(parse_code_blocks).mask(text)
