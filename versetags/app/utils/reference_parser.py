import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from ..config import Granularity, SeparatorConfig
from .book_aliases import BookAliasResolver

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


@dataclass(frozen=True)
class ParsedReference:
    """A reference recognized in text, before expansion into single verses.

    ``verses`` is only set when the verse set is not one contiguous run.
    ``end_chapter`` is only set for ranges that cross a chapter boundary.
    """

    raw: str
    book_id: str
    granularity: Granularity
    start_chapter: Optional[int] = None
    end_chapter: Optional[int] = None
    start_verse: Optional[int] = None
    end_verse: Optional[int] = None
    verses: Optional[Tuple[int, ...]] = None
    start: int = 0
    end: int = 0

    def __post_init__(self) -> None:
        problems = self._shape_problems()
        if problems:
            raise ValueError(f"Invalid reference {self.raw!r}: {'; '.join(problems)}")

    def _shape_problems(self) -> List[str]:
        problems: List[str] = []
        numbers = (self.start_chapter, self.end_chapter, self.start_verse, self.end_verse)
        if any(n is not None and n < 1 for n in numbers):
            problems.append("chapter and verse numbers must be positive")
        if self.end < self.start:
            problems.append("span ends before it starts")
        if self.granularity is Granularity.BOOK:
            if any(n is not None for n in numbers) or self.verses:
                problems.append("book reference carries chapter or verse numbers")
        elif self.granularity is Granularity.CHAPTER:
            if self.start_chapter is None:
                problems.append("chapter reference without start chapter")
            if self.start_verse is not None or self.end_verse is not None or self.verses:
                problems.append("chapter reference carries verse numbers")
            if self.end_chapter is not None and self.start_chapter is not None and self.end_chapter < self.start_chapter:
                problems.append("chapter range is reversed")
        else:
            if self.start_chapter is None or self.start_verse is None:
                problems.append("verse reference without start chapter or start verse")
            elif self.end_chapter is not None and self.end_chapter <= self.start_chapter:
                problems.append("end chapter set on a reference that does not cross chapters")
            if self.verses is not None and list(self.verses) != sorted(set(self.verses)):
                problems.append("verse list must be ascending without duplicates")
        return problems

    @property
    def span(self) -> Span:
        return self.start, self.end

    @property
    def is_cross_chapter(self) -> bool:
        return self.granularity is Granularity.VERSE and self.end_chapter is not None


# Longest chapter in the canon (Psalm 119); no verse number above this can be in bounds.
MAX_VERSE_NUMBER = 176


def parse_verse_intervals(text: str, list_separator: str, range_separator: str) -> List[Span]:
    """Read a verse part such as "1.5-7.10" into sorted, merged (low, high) intervals."""
    intervals: List[Span] = []
    for segment in text.split(list_separator):
        segment = segment.strip()
        if not segment:
            continue
        if range_separator in segment:
            first, _, last = segment.partition(range_separator)
            if not (first.isdecimal() and last.isdecimal()):
                continue
            low, high = int(first), int(last)
            if low < 1 or low > high:
                continue
            intervals.append((low, high))
        elif segment.isdecimal() and int(segment) >= 1:
            intervals.append((int(segment), int(segment)))

    merged: List[Span] = []
    for low, high in sorted(intervals):
        if merged and low <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], high))
        else:
            merged.append((low, high))
    return merged


def _materialize(intervals: List[Span], limit: int) -> List[int]:
    verses: List[int] = []
    for low, high in intervals:
        verses.extend(range(low, min(high, limit) + 1))
    return verses


def parse_verse_part(
    text: str, list_separator: str, range_separator: str, limit: int = MAX_VERSE_NUMBER
) -> List[int]:
    """Read a verse part into a sorted list of distinct verses, none above ``limit``."""
    return _materialize(parse_verse_intervals(text, list_separator, range_separator), limit)


def _overlaps(start: int, end: int, claimed: List[Span]) -> bool:
    return any(start < other_end and end > other_start for other_start, other_end in claimed)


def _followed_by_number(text: str, end: int) -> bool:
    rest = text[end:].lstrip()
    return bool(rest) and rest[0] in "0123456789"


class ReferenceScanner:
    """Finds references in masked prose using four ordered, non-overlapping passes.

    A numeric candidate whose book resolves claims its text even when it turns out to
    denote nothing, such as "Joh 3,0", a reversed range like "Joh 4,3-3,1" or chapter 0.
    Later passes never reread that text, so "Joh 3,0" does not become chapter 3; the
    candidate yields no reference and no tags.

    Verse lists are never materialized past ``verse_limit``, the longest chapter of the
    canon in use, so the work done depends on the text and not on the numbers in it.
    """

    def __init__(
        self,
        resolver: BookAliasResolver,
        separators: SeparatorConfig,
        verse_limit: int = MAX_VERSE_NUMBER,
    ):
        self.resolver = resolver
        self.separators = separators
        self.verse_limit = verse_limit

        book = f"(?P<book>{resolver.alias_pattern})"
        cv = re.escape(separators.chapter_verse)
        ls = re.escape(separators.list)
        rs = re.escape(separators.range)
        verse_part = rf"[0-9]+(?:{rs}[0-9]+)?(?:{ls}[0-9]+(?:{rs}[0-9]+)?)*"

        self.cross_chapter_regex: Pattern[str] = re.compile(
            rf"\b{book}\s*(?P<chapter>[0-9]+){cv}(?P<verse>[0-9]+){rs}(?P<end_chapter>[0-9]+){cv}(?P<end_verse>[0-9]+)\b",
            re.IGNORECASE,
        )
        self.verse_regex: Pattern[str] = re.compile(
            rf"\b{book}\s*(?P<chapter>[0-9]+){cv}(?P<verses>{verse_part})\b",
            re.IGNORECASE,
        )
        self.chapter_regex: Pattern[str] = re.compile(
            rf"\b{book}\s*(?P<chapter>[0-9]+)(?:{rs}(?P<end_chapter>[0-9]+))?\b",
            re.IGNORECASE,
        )

    @property
    def is_disabled(self) -> bool:
        return self.resolver.is_disabled

    def _resolve(self, match: re.Match) -> Optional[str]:
        book_id = self.resolver.resolve(match.group("book"))
        if book_id is None:
            logger.debug("Skipping %r: unknown book spelling", match.group(0))
        return book_id

    def _cross_chapter_ref(self, match: re.Match, book_id: str) -> Optional[ParsedReference]:
        chapter, verse = int(match.group("chapter")), int(match.group("verse"))
        end_chapter, end_verse = int(match.group("end_chapter")), int(match.group("end_verse"))
        if min(chapter, verse, end_chapter, end_verse) < 1:
            return None
        if end_chapter < chapter:
            logger.debug("Skipping %r: range ends in an earlier chapter", match.group(0))
            return None
        if end_chapter == chapter:
            if end_verse < verse:
                return None
            return ParsedReference(
                raw=match.group(0),
                book_id=book_id,
                granularity=Granularity.VERSE,
                start_chapter=chapter,
                start_verse=verse,
                end_verse=end_verse if end_verse > verse else None,
                start=match.start(),
                end=match.end(),
            )
        return ParsedReference(
            raw=match.group(0),
            book_id=book_id,
            granularity=Granularity.VERSE,
            start_chapter=chapter,
            end_chapter=end_chapter,
            start_verse=verse,
            end_verse=end_verse,
            start=match.start(),
            end=match.end(),
        )

    def _verse_ref(self, match: re.Match, book_id: str) -> Optional[ParsedReference]:
        chapter = int(match.group("chapter"))
        if chapter < 1:
            return None
        intervals = parse_verse_intervals(match.group("verses"), self.separators.list, self.separators.range)
        if not intervals:
            logger.debug("Skipping %r: no valid verses", match.group(0))
            return None
        if len(intervals) == 1:
            low, high = intervals[0]
            return ParsedReference(
                raw=match.group(0),
                book_id=book_id,
                granularity=Granularity.VERSE,
                start_chapter=chapter,
                start_verse=low,
                end_verse=high if high > low else None,
                start=match.start(),
                end=match.end(),
            )
        verses = _materialize(intervals, self.verse_limit)
        if not verses:
            logger.debug("Skipping %r: every verse is past the longest chapter", match.group(0))
            return None
        return ParsedReference(
            raw=match.group(0),
            book_id=book_id,
            granularity=Granularity.VERSE,
            start_chapter=chapter,
            start_verse=verses[0],
            end_verse=verses[-1] if len(verses) > 1 else None,
            verses=tuple(verses),
            start=match.start(),
            end=match.end(),
        )

    def _chapter_ref(self, match: re.Match, book_id: str) -> Optional[ParsedReference]:
        chapter = int(match.group("chapter"))
        end_chapter = int(match.group("end_chapter")) if match.group("end_chapter") else None
        if chapter < 1 or (end_chapter is not None and end_chapter < chapter):
            return None
        return ParsedReference(
            raw=match.group(0),
            book_id=book_id,
            granularity=Granularity.CHAPTER,
            start_chapter=chapter,
            end_chapter=end_chapter if end_chapter != chapter else None,
            start=match.start(),
            end=match.end(),
        )

    def _numeric_pass(self, text, regex, build, claimed, results) -> None:
        for match in regex.finditer(text):
            start, end = match.span()
            if _overlaps(start, end, claimed):
                continue
            book_id = self._resolve(match)
            if book_id is None:
                continue
            # A well-formed but empty candidate still owns its text.
            claimed.append((start, end))
            reference = build(match, book_id)
            if reference is not None:
                results.append(reference)

    def _standalone_pass(self, text: str, claimed: List[Span], results: List[ParsedReference]) -> None:
        for matcher in self.resolver.standalone_matchers:
            for match in matcher.regex.finditer(text):
                start, end = match.span()
                if _overlaps(start, end, claimed) or _followed_by_number(text, end):
                    continue
                claimed.append((start, end))
                results.append(
                    ParsedReference(
                        raw=match.group(0),
                        book_id=matcher.book_id,
                        granularity=Granularity.BOOK,
                        start=start,
                        end=end,
                    )
                )

    def scan(self, text: str) -> List[ParsedReference]:
        """Scan already-masked text and return references ordered by position."""
        results: List[ParsedReference] = []
        if not text:
            return results

        claimed: List[Span] = []
        if not self.is_disabled:
            self._numeric_pass(text, self.cross_chapter_regex, self._cross_chapter_ref, claimed, results)
            self._numeric_pass(text, self.verse_regex, self._verse_ref, claimed, results)
            self._numeric_pass(text, self.chapter_regex, self._chapter_ref, claimed, results)
        self._standalone_pass(text, claimed, results)

        results.sort(key=lambda r: r.start)
        return results

    def parse_title(self, filename: str) -> Optional[ParsedReference]:
        """Best-effort single reference from a note title or filename."""
        if not filename:
            return None
        title = filename[:-3] if filename.lower().endswith(".md") else filename

        if not self.is_disabled:
            for regex, build in (
                (self.cross_chapter_regex, self._cross_chapter_ref),
                (self.verse_regex, self._verse_ref),
            ):
                for match in regex.finditer(title):
                    book_id = self._resolve(match)
                    reference = build(match, book_id) if book_id else None
                    if reference is not None:
                        return reference

            for match in self.chapter_regex.finditer(title):
                # "Joh 3,x" is a broken verse reference, not chapter 3.
                if title[match.end():match.end() + 1] == self.separators.chapter_verse:
                    continue
                book_id = self._resolve(match)
                reference = self._chapter_ref(match, book_id) if book_id else None
                if reference is not None:
                    return reference

        for matcher in self.resolver.standalone_matchers:
            match = matcher.regex.search(title)
            if match:
                return ParsedReference(
                    raw=match.group(0),
                    book_id=matcher.book_id,
                    granularity=Granularity.BOOK,
                    start=match.start(),
                    end=match.end(),
                )
        return None
