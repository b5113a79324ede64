from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


@dataclass
class ParseOptions:
    default_value: str | None = None
    default_value_plural: str | None = None
    count: str | None = None
    context: str | None = None
    ns: str | None = None
    key_separator: str | None = None
    ns_separator: str | None = None


@dataclass(frozen=True)
class ExtractedCall:
    key: str
    default_value: str | None = None
    default_value_plural: str | None = None
    count: str | None = None
    context: str | None = None
    ns: str | None = None
    key_separator: str | None = None
    ns_separator: str | None = None
    filepath: str = ""
    line: int = 1
    column: int = 1

    @classmethod
    def build(
        cls, key: str, options: ParseOptions, *, filepath: str = "", line: int = 1, column: int = 1
    ) -> "ExtractedCall":
        return cls(key=key, filepath=filepath, line=line, column=column, **asdict(options))

    @property
    def options(self) -> ParseOptions:
        return ParseOptions(
            default_value=self.default_value,
            default_value_plural=self.default_value_plural,
            count=self.count,
            context=self.context,
            ns=self.ns,
            key_separator=self.key_separator,
            ns_separator=self.ns_separator,
        )


@dataclass(frozen=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True)
class Location:
    start: Position
    end: Position


class LintCategory(Enum):
    BARE_LITERAL_IN_CODE = "bare-literal-in-code"
    BARE_LITERAL_IN_MARKUP = "bare-literal-in-markup"
    BARE_LITERAL_IN_TEMPLATE = "bare-literal-in-template"
    HARD_CODED_DOMAIN = "hard-coded-domain"
    NAIVE_STRING_CONCATENATION = "naive-string-concatenation"

    @property
    def is_bare_literal(self) -> bool:
        return self.value.startswith("bare-literal")


@dataclass
class LintFinding:
    filepath: str
    loc: Location
    raw_value: str
    category: LintCategory


class ErrorKind(Enum):
    PARSE_ERROR = "ParseError"
    INVALID_KEY = "InvalidKey"
    DUPLICATE_KEY = "DuplicateKey"
    MISSING_TRANSLATION = "MissingTranslation"
    HARD_CODED_TEXT = "HardCodedText"


class WarningKind(Enum):
    UNUSED_KEY = "UnusedKey"
    STRING_CONCATENATION = "StringConcatenation"
    HARD_CODED_DOMAIN = "HardCodedDomain"


@dataclass
class ScanIssue:
    filepath: str
    line: int
    column: int
    message: str
    kind: ErrorKind | WarningKind


@dataclass
class ScanStats:
    files_scanned: int = 0
    keys_found: int = 0
    errors_count: int = 0
    warnings_count: int = 0
    processing_time_ms: int = 0


@dataclass
class ScanResult:
    keys: set[str] = field(default_factory=set)
    translations: dict[str, str] = field(default_factory=dict)
    errors: list[ScanIssue] = field(default_factory=list)
    warnings: list[ScanIssue] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "keys": sorted(self.keys),
            "translations": dict(sorted(self.translations.items())),
            "errors": [_issue_to_dict(issue) for issue in self.errors],
            "warnings": [_issue_to_dict(issue) for issue in self.warnings],
            "stats": asdict(self.stats),
        }


def _issue_to_dict(issue: ScanIssue) -> dict[str, Any]:
    return {
        "filepath": issue.filepath,
        "line": issue.line,
        "column": issue.column,
        "message": issue.message,
        "kind": issue.kind.value,
    }


@dataclass
class SourceRow:
    key: str
    native_string: str | None = None
    translate_map: dict[str, str] = field(default_factory=dict)


@dataclass
class ProjectStats:
    total_keys: int
    active_keys: int
    obsoleted_keys: int
    lang_stats: dict[str, int] = field(default_factory=dict)
