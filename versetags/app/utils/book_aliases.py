import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern

from ..config import BookMappingCustomization
from .canon_loader import BookLocalization, LanguageConfig

logger = logging.getLogger(__name__)

# Never matches; stands in for an alternation with no alternatives.
DISABLED_PATTERN = "(?!)"


@dataclass(frozen=True)
class StandaloneMatcher:
    book_id: str
    phrase: str
    regex: Pattern[str]


def _remove_casefold(values: Iterable[str], deletions: Iterable[str]) -> List[str]:
    dropped = {d.lower() for d in deletions}
    return [v for v in values if v.lower() not in dropped]


def apply_customization(
    book: BookLocalization, customization: Optional[BookMappingCustomization]
) -> BookLocalization:
    """Return a new localization with the user's additions and deletions applied."""
    if customization is None:
        return book
    aliases = _remove_casefold(book.aliases, customization.aliases_deletions)
    aliases.extend(a for a in customization.aliases_additions if a.strip())
    patterns = _remove_casefold(book.standalone_patterns, customization.standalone_patterns_deletions)
    patterns.extend(p for p in customization.standalone_patterns_additions if p.strip())
    return book.model_copy(update={"aliases": tuple(aliases), "standalone_patterns": tuple(patterns)})


def standalone_regex(phrase: str) -> Pattern[str]:
    # Whitespace lookarounds instead of \b so accented letters at either edge behave.
    return re.compile(r"(?<!\S)" + re.escape(phrase) + r"(?!\S)", re.IGNORECASE)


class BookAliasResolver:
    """Case-insensitive lookup from every known book spelling to its canonical id."""

    def __init__(
        self,
        language: LanguageConfig,
        customizations: Optional[Dict[str, BookMappingCustomization]] = None,
    ):
        customizations = customizations or {}
        known = {b.canonical_id for b in language.books}
        for book_id in customizations:
            if book_id not in known:
                logger.warning("Ignoring customization for unknown book %s", book_id)

        self.language = language
        self.books: List[BookLocalization] = [
            apply_customization(book, customizations.get(book.canonical_id)) for book in language.books
        ]
        self.alias_map: Dict[str, str] = self._build_alias_map()
        self.standalone_matchers: List[StandaloneMatcher] = self._build_standalone_matchers()
        self.alias_pattern: str = self._build_alias_pattern()

    def _build_alias_map(self) -> Dict[str, str]:
        mapping: Dict[str, str] = {}
        for book in self.books:
            spellings = [book.display_id, book.canonical_id, *book.aliases]
            for alias in sorted(spellings, key=len, reverse=True):
                key = alias.strip().lower()
                if key and key not in mapping:
                    mapping[key] = book.canonical_id
        return mapping

    def _build_standalone_matchers(self) -> List[StandaloneMatcher]:
        matchers: List[StandaloneMatcher] = []
        for book in self.books:
            for phrase in sorted(book.standalone_patterns, key=len, reverse=True):
                if phrase.strip():
                    matchers.append(StandaloneMatcher(book.canonical_id, phrase, standalone_regex(phrase)))
        matchers.sort(key=lambda m: len(m.regex.pattern), reverse=True)
        return matchers

    def _build_alias_pattern(self) -> str:
        if not self.alias_map:
            return DISABLED_PATTERN
        keys = sorted(self.alias_map, key=len, reverse=True)
        return "|".join(re.escape(k) for k in keys)

    @property
    def is_disabled(self) -> bool:
        return not self.alias_map

    def resolve(self, spelling: str) -> Optional[str]:
        if not spelling:
            return None
        return self.alias_map.get(spelling.strip().lower())

    def is_valid_alias(self, spelling: str) -> bool:
        return self.resolve(spelling) is not None

    def book(self, canonical_id: str) -> Optional[BookLocalization]:
        for book in self.books:
            if book.canonical_id == canonical_id:
                return book
        return None


class DisplayResolver:
    """Maps canonical ids to the id shown in tags, honoring pinned overrides."""

    def __init__(
        self,
        language: LanguageConfig,
        customizations: Optional[Dict[str, BookMappingCustomization]] = None,
    ):
        customizations = customizations or {}
        self.display_map: Dict[str, str] = {}
        self.reverse_map: Dict[str, str] = {}

        for book in language.books:
            display_id = book.display_id
            customization = customizations.get(book.canonical_id)
            if customization and customization.pinned_display_id:
                display_id = customization.pinned_display_id
                working = apply_customization(book, customization)
                spellings = {s.lower() for s in (book.display_id, book.canonical_id, *working.aliases, *working.standalone_patterns)}
                if display_id.lower() not in spellings:
                    logger.warning(
                        "Pinned display id %r is not a known spelling of %s", display_id, book.canonical_id
                    )
            self.display_map[book.canonical_id] = display_id

        # Later books overwrite earlier ones when two share a display id.
        for canonical_id, display_id in self.display_map.items():
            self.reverse_map[display_id] = canonical_id

    def display_id(self, canonical_id: str) -> str:
        return self.display_map.get(canonical_id, canonical_id)

    def canonical_id(self, display_id: str) -> Optional[str]:
        if display_id in self.reverse_map:
            return self.reverse_map[display_id]
        if display_id in self.display_map:
            return display_id
        return None
