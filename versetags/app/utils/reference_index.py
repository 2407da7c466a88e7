from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from .tag_emitter import natural_key


@dataclass
class CoOccurrence:
    tag: str
    book_id: str
    chapter: int
    verse: int
    count: int = 0
    documents: List[str] = field(default_factory=list)


class ReferenceIndex:
    """In-memory index of which notes mention which verses.

    Built from each note's stored tags; only tags under ``prefix`` are indexed.
    ``book_order`` maps a display id to its position in the canon.
    """

    def __init__(self, prefix: str = "bible/", book_order: Optional[Callable[[str], int]] = None):
        self.prefix = prefix
        self.book_order = book_order or (lambda display_id: 999)
        self.documents: Dict[str, List[str]] = {}

    def add(self, document: str, tags: List[str]) -> None:
        self.documents[document] = [t for t in tags if t.startswith(self.prefix)]

    def remove(self, document: str) -> None:
        self.documents.pop(document, None)

    def _split(self, tag: str) -> Optional[List[str]]:
        if not tag.startswith(self.prefix):
            return None
        parts = tag[len(self.prefix):].split("/")
        return parts if parts and parts[0] else None

    def _verse_parts(self, tag: str):
        parts = self._split(tag)
        if not parts or len(parts) != 3 or not (parts[1].isdecimal() and parts[2].isdecimal()):
            return None
        return parts[0], int(parts[1]), int(parts[2])

    def _tag_order(self, tag: str):
        parts = self._split(tag) or [""]
        return self.book_order(parts[0]), natural_key(tag)

    def books(self) -> List[str]:
        found: Set[str] = set()
        for tags in self.documents.values():
            for tag in tags:
                parts = self._split(tag)
                if parts:
                    found.add(parts[0])
        return sorted(found, key=lambda book: (self.book_order(book), book.casefold()))

    def chapters(self, book: str) -> List[int]:
        found: Set[int] = set()
        for tags in self.documents.values():
            for tag in tags:
                parts = self._split(tag)
                if parts and parts[0] == book and len(parts) >= 2 and parts[1].isdecimal():
                    found.add(int(parts[1]))
        return sorted(found)

    def verses(self, book: str, chapter: int) -> List[int]:
        found: Set[int] = set()
        for tags in self.documents.values():
            for tag in tags:
                verse = self._verse_parts(tag)
                if verse and verse[0] == book and verse[1] == chapter:
                    found.add(verse[2])
        return sorted(found)

    def documents_with(self, tag: str, prefix_match: bool = False) -> Dict[str, List[str]]:
        """Verse tags matching ``tag`` (exactly, or as a prefix) mapped to the notes carrying them."""
        results: Dict[str, List[str]] = {}
        for document, tags in self.documents.items():
            for candidate in tags:
                matched = candidate.startswith(tag) if prefix_match else candidate == tag
                if matched and self._verse_parts(candidate):
                    results.setdefault(candidate, []).append(document)
        return {key: results[key] for key in sorted(results, key=self._tag_order)}

    def co_occurrences(self, document: str) -> List[CoOccurrence]:
        """Verses cited alongside this note's verses in other notes, most frequent first."""
        current = {t for t in self.documents.get(document, []) if self._verse_parts(t)}
        found: Dict[str, CoOccurrence] = {}
        for other, tags in self.documents.items():
            if other == document or not current.intersection(tags):
                continue
            for tag in tags:
                if tag in current:
                    continue
                verse = self._verse_parts(tag)
                if verse is None:
                    continue
                entry = found.get(tag)
                if entry is None:
                    entry = found[tag] = CoOccurrence(tag, *verse)
                entry.count += 1
                if other not in entry.documents:
                    entry.documents.append(other)
        return sorted(found.values(), key=lambda e: (-e.count, self._tag_order(e.tag)))
