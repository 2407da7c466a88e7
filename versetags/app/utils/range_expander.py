import logging
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional

from ..config import Granularity
from .canon_loader import CanonTable
from .reference_parser import ParsedReference

logger = logging.getLogger(__name__)


class VerseRef(NamedTuple):
    book_id: str
    chapter: int
    verse: int


@dataclass(frozen=True)
class Expansion:
    """Result of expanding one reference.

    An empty ``verses`` list with no diagnostic means the reference legitimately covers
    nothing in bounds; a diagnostic means it was rejected.
    """

    verses: List[VerseRef] = field(default_factory=list)
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


class RangeExpander:
    """Turns parsed references into the exact in-bounds verses they denote."""

    def __init__(self, canon: CanonTable):
        self.canon = canon

    def _reject(self, reference: ParsedReference, reason: str) -> Expansion:
        logger.warning("Cannot expand %r: %s", reference.raw, reason)
        return Expansion(verses=[], diagnostic=reason)

    def _whole_chapter(self, book_id: str, chapter: int) -> List[VerseRef]:
        return [VerseRef(book_id, chapter, v) for v in range(1, self.canon.max_verse(book_id, chapter) + 1)]

    def expand(self, reference: ParsedReference) -> Expansion:
        book_id = reference.book_id
        if book_id not in self.canon:
            return self._reject(reference, f"unknown book {book_id}")

        if reference.granularity is Granularity.BOOK:
            verses: List[VerseRef] = []
            for chapter in range(1, self.canon.max_chapter(book_id) + 1):
                verses.extend(self._whole_chapter(book_id, chapter))
            return Expansion(verses)

        if reference.granularity is Granularity.CHAPTER:
            end_chapter = min(reference.end_chapter or reference.start_chapter, self.canon.max_chapter(book_id))
            verses = []
            for chapter in range(reference.start_chapter, end_chapter + 1):
                verses.extend(self._whole_chapter(book_id, chapter))
            return Expansion(verses)

        if reference.is_cross_chapter:
            return self._expand_cross_chapter(reference)

        chapter = reference.start_chapter
        max_verse = self.canon.max_verse(book_id, chapter)
        if reference.verses:
            wanted: Iterable[int] = reference.verses
        elif reference.end_verse and reference.end_verse > reference.start_verse:
            wanted = range(reference.start_verse, min(reference.end_verse, max_verse) + 1)
        else:
            wanted = [reference.start_verse]
        return Expansion([VerseRef(book_id, chapter, v) for v in wanted if 1 <= v <= max_verse])

    def _expand_cross_chapter(self, reference: ParsedReference) -> Expansion:
        book_id = reference.book_id
        start_chapter, end_chapter = reference.start_chapter, reference.end_chapter
        max_chapter = self.canon.max_chapter(book_id)
        if start_chapter > max_chapter or end_chapter > max_chapter:
            return self._reject(reference, f"{book_id} has only {max_chapter} chapters")

        start_max = self.canon.max_verse(book_id, start_chapter)
        verses = [VerseRef(book_id, start_chapter, v) for v in range(reference.start_verse, start_max + 1)]
        for chapter in range(start_chapter + 1, end_chapter):
            verses.extend(self._whole_chapter(book_id, chapter))
        last = min(reference.end_verse, self.canon.max_verse(book_id, end_chapter))
        verses.extend(VerseRef(book_id, end_chapter, v) for v in range(1, last + 1))
        return Expansion(verses)

    def expand_all(self, references: Iterable[ParsedReference]) -> List[VerseRef]:
        verses: List[VerseRef] = []
        for reference in references:
            verses.extend(self.expand(reference).verses)
        return verses

    def sort_by_canonical_order(self, verses: Iterable[VerseRef]) -> List[VerseRef]:
        return sorted(verses, key=lambda v: (self.canon.order(v.book_id), v.chapter, v.verse))
