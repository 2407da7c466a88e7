"""
Custom exceptions for the reference tagging pipeline.
"""


class VersetagsError(Exception):
    """Base exception for versetags errors."""
    pass


class ConfigurationError(VersetagsError):
    """Raised when the caller supplies a configuration the pipeline cannot be built from."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class UnknownLocaleError(ConfigurationError):
    """Raised when a language code is not one of the supported locales."""

    def __init__(self, locale: str):
        self.locale = locale
        super().__init__(f"Unsupported language '{locale}'", field="language")


class AssetError(VersetagsError):
    """Raised when the canonical data assets are missing or corrupt."""

    def __init__(self, path, reason: str = None):
        self.path = path
        self.reason = reason or "Unknown error"
        super().__init__(f"Failed to load asset {path}: {self.reason}")
