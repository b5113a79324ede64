"""
Exceptions raised by the i18n scanner.
"""


class I18nScanError(Exception):
    """Base exception for the i18n scanner."""
    pass


class ConfigError(I18nScanError):
    """Raised when the scan configuration has a wrong shape."""
    pass


class ExtractionError(I18nScanError):
    """A single translation call could not be extracted completely."""

    def __init__(self, message: str, *, filepath: str = "", line: int = 1, column: int = 1) -> None:
        super().__init__(message)
        self.filepath = filepath
        self.line = line
        self.column = column


class InvalidKeyError(ExtractionError):
    """The first argument of a translation call is empty."""
    pass


class OptionsParseError(ExtractionError):
    """The options argument of a translation call is malformed."""

    def __init__(self, message: str, code: str, **location) -> None:
        super().__init__(message, **location)
        self.code = code


class ResourceLoadError(I18nScanError):
    """A resource file or directory is missing or unreadable."""
    pass


class TranslationIntegrityError(I18nScanError):
    """A non-native resource file contains untranslated source-language text."""

    def __init__(self, lang: str, value: str) -> None:
        super().__init__(f"{lang}.json contains source-language text: {value}")
        self.lang = lang
        self.value = value
