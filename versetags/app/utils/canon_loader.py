import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError

from ..config import DEFAULT_ASSETS_PATH, Locale, SeparatorConfig
from ..errors import AssetError, UnknownLocaleError

logger = logging.getLogger(__name__)


class CanonicalBook(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    canonical_id: str
    name: str
    verses: Tuple[int, ...]

    @property
    def chapter_count(self) -> int:
        return len(self.verses)

    def max_verse(self, chapter: int) -> int:
        if chapter < 1 or chapter > len(self.verses):
            return 0
        return self.verses[chapter - 1]


class BookLocalization(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    canonical_id: str
    display_id: str
    display_name: str
    aliases: Tuple[str, ...] = ()
    standalone_patterns: Tuple[str, ...] = ()


class LanguageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: Locale
    name: str
    tag_prefix: str
    separators: SeparatorConfig
    books: Tuple[BookLocalization, ...]

    def book(self, canonical_id: str) -> Optional[BookLocalization]:
        for book in self.books:
            if book.canonical_id == canonical_id:
                return book
        return None


class CanonLoader:
    """Reads the canonical structure table and per-language book tables from JSON assets."""

    def __init__(self, assets_dir: Path | None = None):
        self.assets_dir = assets_dir or DEFAULT_ASSETS_PATH

    def _read(self, path: Path) -> dict:
        if not path.exists():
            raise AssetError(path, "file not found")
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as exc:
            raise AssetError(path, str(exc)) from exc

    def load_canon(self) -> List[CanonicalBook]:
        path = self.assets_dir / "canon.json"
        data = self._read(path)
        try:
            books = [CanonicalBook(**entry) for entry in data["books"]]
        except (KeyError, TypeError, ValidationError) as exc:
            raise AssetError(path, str(exc)) from exc
        if [b.number for b in books] != list(range(1, len(books) + 1)):
            raise AssetError(path, "books must be numbered consecutively from 1")
        return books

    def list_languages(self) -> List[str]:
        languages_dir = self.assets_dir / "languages"
        return sorted(p.stem for p in languages_dir.glob("*.json"))

    def load_language(self, code: str) -> LanguageConfig:
        path = self.assets_dir / "languages" / f"{code}.json"
        data = self._read(path)
        try:
            return LanguageConfig(**data)
        except (TypeError, ValidationError) as exc:
            raise AssetError(path, str(exc)) from exc


class CanonTable:
    """Chapter and verse bounds for every book, keyed by canonical id."""

    def __init__(self, books: List[CanonicalBook]):
        self.books = books
        self._by_id: Dict[str, CanonicalBook] = {b.canonical_id: b for b in books}
        self._order: Dict[str, int] = {b.canonical_id: b.number for b in books}

    def __contains__(self, canonical_id: str) -> bool:
        return canonical_id in self._by_id

    def get(self, canonical_id: str) -> Optional[CanonicalBook]:
        return self._by_id.get(canonical_id)

    def max_chapter(self, canonical_id: str) -> int:
        book = self._by_id.get(canonical_id)
        return book.chapter_count if book else 0

    def max_verse(self, canonical_id: str, chapter: int) -> int:
        book = self._by_id.get(canonical_id)
        return book.max_verse(chapter) if book else 0

    def longest_chapter(self) -> int:
        return max((max(b.verses) for b in self.books if b.verses), default=0)

    def order(self, canonical_id: str) -> int:
        return self._order.get(canonical_id, 999)

    def canonical_ids(self) -> List[str]:
        return [b.canonical_id for b in self.books]


class LanguageRegistry:
    """Every supported locale's language table, assembled once and keyed by Locale."""

    def __init__(self, languages: Dict[Locale, LanguageConfig]):
        self.languages = languages

    def get(self, locale) -> LanguageConfig:
        try:
            key = Locale(locale)
        except ValueError:
            raise UnknownLocaleError(str(locale))
        if key not in self.languages:
            raise UnknownLocaleError(key.value)
        return self.languages[key]

    def locales(self) -> List[Locale]:
        return list(self.languages)

    def book_by_display_id(self, locale, display_id: str) -> Optional[BookLocalization]:
        wanted = display_id.lower()
        for book in self.get(locale).books:
            if book.display_id.lower() == wanted:
                return book
        return None

    def all_tag_prefixes(self) -> List[str]:
        prefixes: List[str] = []
        for language in self.languages.values():
            if language.tag_prefix not in prefixes:
                prefixes.append(language.tag_prefix)
        return prefixes

    def locale_for_tag_prefix(self, prefix: str) -> Optional[Locale]:
        wanted = prefix.lower()
        for locale, language in self.languages.items():
            if language.tag_prefix.lower() == wanted:
                return locale
        return None

    def universal_display_map(self, to_locale) -> Dict[str, str]:
        """Map every spelling of every locale (lowercased) to the target locale's display id."""
        target = self.get(to_locale)
        mapping: Dict[str, str] = {}
        for to_book in target.books:
            for language in self.languages.values():
                from_book = language.book(to_book.canonical_id)
                if from_book is None:
                    continue
                mapping[from_book.display_id.lower()] = to_book.display_id
                for alias in from_book.aliases:
                    mapping[alias.lower()] = to_book.display_id
        return mapping


def load_canon_table(assets_dir: Path | None = None) -> CanonTable:
    return CanonTable(CanonLoader(assets_dir).load_canon())


def load_registry(assets_dir: Path | None = None) -> LanguageRegistry:
    loader = CanonLoader(assets_dir)
    languages: Dict[Locale, LanguageConfig] = {}
    for code in loader.list_languages():
        try:
            locale = Locale(code)
        except ValueError:
            logger.warning("Ignoring language file for unsupported locale %s", code)
            continue
        languages[locale] = loader.load_language(code)
    if not languages:
        raise AssetError(loader.assets_dir / "languages", "no language tables found")
    return LanguageRegistry(languages)


@lru_cache()
def default_canon_table() -> CanonTable:
    return load_canon_table()


@lru_cache()
def default_registry() -> LanguageRegistry:
    return load_registry()
