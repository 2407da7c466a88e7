import json
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError, UnknownLocaleError

DEFAULT_ASSETS_PATH = Path(__file__).resolve().parent / "data"


class Locale(str, Enum):
    DE = "de"
    EN = "en"
    ES = "es"
    FR = "fr"
    IT = "it"
    PT = "pt"


class Granularity(str, Enum):
    BOOK = "book"
    CHAPTER = "chapter"
    VERSE = "verse"


class SeparatorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    chapter_verse: str
    list: str
    range: str

    def validate_distinct(self) -> "SeparatorConfig":
        values = [self.chapter_verse, self.list, self.range]
        for name, value in zip(("chapter_verse", "list", "range"), values):
            if len(value) != 1 or value.isdigit() or value.isspace():
                raise ConfigurationError(f"separator must be a single non-digit character, got {value!r}", field=name)
        if len(set(values)) != len(values):
            raise ConfigurationError(f"separators must be distinct, got {values}", field="separators")
        return self


class BookMappingCustomization(BaseModel):
    """User edits layered on top of one book's base localization."""

    model_config = ConfigDict(frozen=True)

    aliases_additions: List[str] = Field(default_factory=list)
    aliases_deletions: List[str] = Field(default_factory=list)
    standalone_patterns_additions: List[str] = Field(default_factory=list)
    standalone_patterns_deletions: List[str] = Field(default_factory=list)
    pinned_display_id: Optional[str] = None

    @field_validator("pinned_display_id")
    @classmethod
    def blank_pin_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class PipelineConfig(BaseModel):
    """Immutable configuration snapshot the pipeline is built from."""

    model_config = ConfigDict(frozen=True)

    language: Locale = Locale.DE
    separators: Optional[SeparatorConfig] = None
    tag_prefix: str = "bible/"
    parse_code_blocks: bool = False
    parse_titles: bool = True
    expand_whole_books: bool = False
    customizations: Dict[str, BookMappingCustomization] = Field(default_factory=dict)


def make_pipeline_config(**values) -> PipelineConfig:
    """Build a snapshot from loose caller input, reporting bad values as configuration errors."""
    try:
        config = PipelineConfig(**values)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        if field == "language":
            raise UnknownLocaleError(str(values.get("language"))) from exc
        raise ConfigurationError(error["msg"], field=field) from exc
    if config.separators is not None:
        config.separators.validate_distinct()
    return config


def load_customizations(path: Path) -> Dict[str, BookMappingCustomization]:
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"cannot read {path}: {exc}", field="custom_book_mappings_path") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError("expected an object keyed by canonical book id", field="custom_book_mappings_path")
    try:
        return {book_id: BookMappingCustomization(**entry) for book_id, entry in raw.items()}
    except (TypeError, ValidationError) as exc:
        raise ConfigurationError(str(exc), field="custom_book_mappings_path") from exc


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="VERSETAGS_", env_file=".env", case_sensitive=False, extra="ignore")

    language: Locale = Locale.DE
    chapter_verse_separator: Optional[str] = None
    list_separator: Optional[str] = None
    range_separator: Optional[str] = None
    tag_prefix: str = "bible/"
    parse_code_blocks: bool = False
    parse_titles: bool = True
    expand_whole_books: bool = False
    custom_book_mappings_path: Optional[Path] = None
    assets_path: Optional[Path] = None
    cors_origins: List[str] = ["*"]

    def resolved_assets_path(self) -> Path:
        return self.assets_path or DEFAULT_ASSETS_PATH

    def pipeline_config(self) -> PipelineConfig:
        separators = None
        overrides = (self.chapter_verse_separator, self.list_separator, self.range_separator)
        if any(overrides):
            if not all(overrides):
                raise ConfigurationError(
                    "chapter_verse_separator, list_separator and range_separator must be set together",
                    field="separators",
                )
            separators = SeparatorConfig(
                chapter_verse=self.chapter_verse_separator,
                list=self.list_separator,
                range=self.range_separator,
            ).validate_distinct()
        customizations = {}
        if self.custom_book_mappings_path:
            customizations = load_customizations(self.custom_book_mappings_path)
        return PipelineConfig(
            language=self.language,
            separators=separators,
            tag_prefix=self.tag_prefix,
            parse_code_blocks=self.parse_code_blocks,
            parse_titles=self.parse_titles,
            expand_whole_books=self.expand_whole_books,
            customizations=customizations,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
