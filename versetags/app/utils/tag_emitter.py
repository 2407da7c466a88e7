import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import Granularity
from .book_aliases import DisplayResolver
from .range_expander import RangeExpander
from .reference_parser import ParsedReference

DIGITS = re.compile(r"(\d+)")


def natural_key(tag: str) -> Tuple:
    """Sort key comparing digit runs numerically and text case-insensitively."""
    parts = DIGITS.split(tag)
    key = tuple(int(part) if i % 2 else part.casefold() for i, part in enumerate(parts))
    return key, tag


def natural_sort(tags: Iterable[str]) -> List[str]:
    return sorted(tags, key=natural_key)


@dataclass(frozen=True)
class TagParts:
    book_id: str
    granularity: Granularity
    chapter: Optional[int] = None
    verse: Optional[int] = None


class TagEmitter:
    def __init__(
        self,
        expander: RangeExpander,
        display_resolver: DisplayResolver,
        prefix: str,
        expand_whole_books: bool = False,
    ):
        self.expander = expander
        self.display_resolver = display_resolver
        self.prefix = prefix
        self.expand_whole_books = expand_whole_books

    def tags_for(self, reference: ParsedReference) -> List[str]:
        display_id = self.display_resolver.display_id(reference.book_id)
        if reference.granularity is Granularity.BOOK and not self.expand_whole_books:
            return [f"{self.prefix}{display_id}"]
        expansion = self.expander.expand(reference)
        return [f"{self.prefix}{display_id}/{v.chapter}/{v.verse}" for v in expansion.verses]

    def emit(self, references: Iterable[ParsedReference]) -> List[str]:
        """Deduplicated, naturally sorted tags for all references."""
        tags = set()
        for reference in references:
            tags.update(self.tags_for(reference))
        return natural_sort(tags)


def parse_tag(
    tag: str, prefix: Optional[str] = None, resolver: Optional[DisplayResolver] = None
) -> Optional[TagParts]:
    """Split a tag back into book, chapter and verse.

    Without a prefix the first path segment is taken to be the prefix. With a resolver
    the display id is mapped back to its canonical id.
    """
    if not tag:
        return None
    if prefix is not None:
        if not tag.startswith(prefix):
            return None
        parts = tag[len(prefix):].split("/")
    else:
        parts = tag.split("/")[1:]
    if not parts or not parts[0] or len(parts) > 3:
        return None

    book_id = parts[0]
    if resolver is not None:
        canonical = resolver.canonical_id(book_id)
        if canonical is None:
            return None
        book_id = canonical

    if len(parts) == 1:
        return TagParts(book_id, Granularity.BOOK)
    if not parts[1].isdecimal():
        return None
    chapter = int(parts[1])
    if len(parts) == 2:
        return TagParts(book_id, Granularity.CHAPTER, chapter=chapter)
    if not parts[2].isdecimal():
        return None
    return TagParts(book_id, Granularity.VERSE, chapter=chapter, verse=int(parts[2]))


def specificity_key(tag: str) -> Tuple:
    # Verse tags first, then chapter, then book.
    return -len(tag.split("/")), natural_key(tag)


def sort_by_specificity(tags: Iterable[str]) -> List[str]:
    return sorted(tags, key=specificity_key)


def group_tags_by_book(tags: Iterable[str], prefix: Optional[str] = None) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for tag in tags:
        parsed = parse_tag(tag, prefix)
        if parsed is None:
            continue
        grouped.setdefault(parsed.book_id, []).append(tag)
    return grouped
