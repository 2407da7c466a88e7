import logging
from collections import Counter
from typing import Iterable, List, Optional, Tuple

from ..config import Locale
from .canon_loader import LanguageRegistry, default_registry

logger = logging.getLogger(__name__)


class TagMigrator:
    """Rewrites reference tags written in any supported language into one target language.

    ``Bibel/Joh/3/16`` becomes ``Bible/John/3/16`` when migrating to English. Tags
    without a known prefix, or whose book spelling is unknown, pass through unchanged.
    """

    def __init__(self, to_locale, registry: Optional[LanguageRegistry] = None, to_prefix: Optional[str] = None):
        self.registry = registry or default_registry()
        self.language = self.registry.get(to_locale)
        self.to_prefix = to_prefix or self.language.tag_prefix
        self.display_map = self.registry.universal_display_map(self.language.code)
        self.prefixes = self.registry.all_tag_prefixes()

    def _matching_prefix(self, tag: str) -> Optional[str]:
        lowered = tag.lower()
        for prefix in self.prefixes:
            if lowered.startswith(prefix.lower() + "/"):
                return prefix
        return None

    def migrate_tag(self, tag: str) -> str:
        if self._matching_prefix(tag) is None:
            return tag
        _, book, *rest = tag.split("/")
        display_id = self.display_map.get(book.lower())
        if display_id is None:
            return tag
        return "/".join([self.to_prefix, display_id, *rest])

    def migrate_tags(self, tags: Iterable[str]) -> Tuple[List[str], int]:
        migrated: List[str] = []
        converted = 0
        for tag in tags:
            new_tag = self.migrate_tag(tag)
            if new_tag != tag:
                converted += 1
            migrated.append(new_tag)
        logger.info("Converted %s tag(s) to %s", converted, self.language.name)
        return migrated, converted


def detect_locale(tags: Iterable[str], registry: Optional[LanguageRegistry] = None) -> Optional[Locale]:
    """Guess which language a tag list was written in from its most common prefix."""
    registry = registry or default_registry()
    counts: Counter = Counter()
    for tag in tags:
        head, sep, _ = tag.partition("/")
        if not sep:
            continue
        locale = registry.locale_for_tag_prefix(head)
        if locale is not None:
            counts[locale] += 1
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def rename_display_id(tags: Iterable[str], prefix: str, old_id: str, new_id: str) -> Tuple[List[str], int]:
    """Move tags from one display id to another, e.g. after the user pins a new spelling."""
    old_head = f"{prefix}{old_id}/"
    new_head = f"{prefix}{new_id}/"
    renamed: List[str] = []
    changed = 0
    for tag in tags:
        if tag.startswith(old_head):
            tag = new_head + tag[len(old_head):]
            changed += 1
        elif tag == f"{prefix}{old_id}":
            tag = f"{prefix}{new_id}"
            changed += 1
        renamed.append(tag)
    if changed:
        logger.info("Renamed %s tag(s) from %s to %s", changed, old_id, new_id)
    return renamed, changed
