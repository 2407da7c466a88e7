"""Helpers for reconciling freshly computed tags with the tags already stored on a note.

Nothing here touches a file; the caller reads and writes the metadata block.
"""
from typing import Iterable, List

from ..config import Granularity


def tags_equal(a: Iterable[str], b: Iterable[str]) -> bool:
    return sorted(a) == sorted(b)


def needs_update(existing: Iterable[str], new: Iterable[str]) -> bool:
    return not tags_equal(existing, new)


def truncate_tag(tag: str, granularity: Granularity, prefix: str = "bible/") -> str:
    """Cut a verse tag down to its book or chapter form."""
    if granularity is Granularity.VERSE or not tag.startswith(prefix):
        return tag
    parts = tag[len(prefix):].split("/")
    keep = 1 if granularity is Granularity.BOOK else 2
    return prefix + "/".join(parts[:keep])


def merge_tag_field(
    existing_tags: Iterable[str],
    reference_tags: Iterable[str],
    prefix: str,
    granularity: Granularity = Granularity.VERSE,
) -> List[str]:
    """Replace the reference tags inside a general-purpose tag list.

    Tags not under ``prefix`` keep their order; reference tags follow, truncated to
    ``granularity`` and deduplicated in first-seen order.
    """
    merged = [tag for tag in existing_tags if not tag.startswith(prefix)]
    seen = set()
    for tag in reference_tags:
        short = truncate_tag(tag, granularity, prefix)
        if short not in seen:
            seen.add(short)
            merged.append(short)
    return merged
