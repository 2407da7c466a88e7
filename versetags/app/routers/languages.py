from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_canon, get_registry
from ..errors import UnknownLocaleError
from ..schemas import BookRead, LanguageRead, MigrateTagsRequest, MigrateTagsResponse, SeparatorsRead
from ..utils.canon_loader import CanonTable, LanguageRegistry
from ..utils.tag_migration import TagMigrator, detect_locale

router = APIRouter(prefix="/languages", tags=["languages"])


@router.get("", response_model=List[LanguageRead])
def list_languages(registry: LanguageRegistry = Depends(get_registry)) -> List[LanguageRead]:
    return [
        LanguageRead(
            code=language.code,
            name=language.name,
            tag_prefix=language.tag_prefix,
            separators=SeparatorsRead(**language.separators.model_dump()),
        )
        for language in registry.languages.values()
    ]


@router.get("/{locale}/books", response_model=List[BookRead])
def list_books(
    locale: str,
    registry: LanguageRegistry = Depends(get_registry),
    canon: CanonTable = Depends(get_canon),
) -> List[BookRead]:
    try:
        language = registry.get(locale)
    except UnknownLocaleError:
        raise HTTPException(status_code=404, detail=f"Language not found: {locale}")
    return [
        BookRead(
            number=book.number,
            canonical_id=book.canonical_id,
            display_id=book.display_id,
            display_name=book.display_name,
            chapters=canon.max_chapter(book.canonical_id),
            aliases=list(book.aliases),
            standalone_patterns=list(book.standalone_patterns),
        )
        for book in language.books
    ]


@router.post("/migrate-tags", response_model=MigrateTagsResponse)
def migrate_tags(payload: MigrateTagsRequest, registry: LanguageRegistry = Depends(get_registry)) -> MigrateTagsResponse:
    migrator = TagMigrator(payload.to_locale, registry=registry, to_prefix=payload.to_prefix)
    tags, converted = migrator.migrate_tags(payload.tags)
    return MigrateTagsResponse(
        tags=tags,
        converted=converted,
        detected_locale=detect_locale(payload.tags, registry),
    )
