import logging
from typing import Iterable, List, Optional

from ..config import PipelineConfig, SeparatorConfig
from .book_aliases import BookAliasResolver, DisplayResolver
from .canon_loader import CanonTable, LanguageConfig, LanguageRegistry, default_canon_table, default_registry
from .content_masker import ContentMasker
from .range_expander import Expansion, RangeExpander
from .reference_parser import ParsedReference, ReferenceScanner
from .tag_emitter import TagEmitter

logger = logging.getLogger(__name__)


class Pipeline:
    """Text in, tags out, for one immutable configuration snapshot.

    Build a new instance whenever the configuration changes; instances hold no state
    that changes between calls and may be shared between threads.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        canon: Optional[CanonTable] = None,
        registry: Optional[LanguageRegistry] = None,
    ):
        self.config = config or PipelineConfig()
        self.canon = canon or default_canon_table()
        self.registry = registry or default_registry()

        # Raises UnknownLocaleError for languages without a table.
        self.language: LanguageConfig = self.registry.get(self.config.language)
        self.separators: SeparatorConfig = (self.config.separators or self.language.separators).validate_distinct()

        self.masker = ContentMasker(parse_code_blocks=self.config.parse_code_blocks)
        self.resolver = BookAliasResolver(self.language, self.config.customizations)
        self.display_resolver = DisplayResolver(self.language, self.config.customizations)
        self.scanner = ReferenceScanner(self.resolver, self.separators, verse_limit=self.canon.longest_chapter())
        self.expander = RangeExpander(self.canon)
        self.emitter = TagEmitter(
            self.expander,
            self.display_resolver,
            self.config.tag_prefix,
            expand_whole_books=self.config.expand_whole_books,
        )
        logger.debug(
            "Built pipeline for %s with %s spellings and %s standalone patterns",
            self.language.code.value,
            len(self.resolver.alias_map),
            len(self.resolver.standalone_matchers),
        )

    @property
    def tag_prefix(self) -> str:
        return self.config.tag_prefix

    def mask(self, text: str) -> str:
        return self.masker.mask(text)

    def scan_body(self, text: str) -> List[ParsedReference]:
        return self.scanner.scan(self.masker.mask(text or ""))

    def scan_title(self, filename: str) -> Optional[ParsedReference]:
        return self.scanner.parse_title(filename or "")

    def references_for_document(self, text: str, filename: Optional[str] = None) -> List[ParsedReference]:
        references: List[ParsedReference] = []
        if filename and self.config.parse_titles:
            title_reference = self.scan_title(filename)
            if title_reference is not None:
                references.append(title_reference)
        references.extend(self.scan_body(text))
        return references

    def expand(self, reference: ParsedReference) -> Expansion:
        return self.expander.expand(reference)

    def tags_for(self, references: Iterable[ParsedReference]) -> List[str]:
        return self.emitter.emit(references)

    def tags_for_document(self, text: str, filename: Optional[str] = None) -> List[str]:
        return self.tags_for(self.references_for_document(text, filename))

    def book_order(self, display_id: str) -> int:
        canonical_id = self.display_resolver.canonical_id(display_id)
        return self.canon.order(canonical_id) if canonical_id else 999
