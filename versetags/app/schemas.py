from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import Granularity, Locale


class SeparatorsRead(BaseModel):
    chapter_verse: str
    list: str
    range: str


class ScanRequest(BaseModel):
    text: str
    filename: Optional[str] = None


class TitleRequest(BaseModel):
    filename: str


class RenderRequest(BaseModel):
    text: str


class ParseTagRequest(BaseModel):
    tag: str


class ReferenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    raw: str
    book_id: str
    granularity: Granularity
    start_chapter: Optional[int] = None
    end_chapter: Optional[int] = None
    start_verse: Optional[int] = None
    end_verse: Optional[int] = None
    verses: Optional[List[int]] = None
    start: int
    end: int


class ScanResponse(BaseModel):
    language: Locale
    references: List[ReferenceRead] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class TitleResponse(BaseModel):
    reference: Optional[ReferenceRead] = None
    tags: List[str] = Field(default_factory=list)


class TagPartsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    book_id: str
    granularity: Granularity
    chapter: Optional[int] = None
    verse: Optional[int] = None


class RenderResponse(BaseModel):
    html: str


class LanguageRead(BaseModel):
    code: Locale
    name: str
    tag_prefix: str
    separators: SeparatorsRead


class BookRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    number: int
    canonical_id: str
    display_id: str
    display_name: str
    chapters: int
    aliases: List[str] = Field(default_factory=list)
    standalone_patterns: List[str] = Field(default_factory=list)


class MigrateTagsRequest(BaseModel):
    tags: List[str]
    to_locale: Locale
    to_prefix: Optional[str] = None


class MigrateTagsResponse(BaseModel):
    tags: List[str]
    converted: int
    detected_locale: Optional[Locale] = None
