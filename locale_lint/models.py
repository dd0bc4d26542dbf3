"""Shared data model for the locale index and the diagnostic engine."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Set


class Severity(str, Enum):
    """Diagnostic severity, ordered from most to least severe."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
    Severity.HINT: 3,
}


class DiagnosticCode(str, Enum):
    """Stable discriminators consumed by quick-fix tooling."""
    MISSING = "missing"
    UNTRANSLATED = "untranslated"
    PLACEHOLDER_MISMATCH = "placeholder-mismatch"
    INVALID_BASE_VALUE = "invalid-base-value"
    MISSING_REFERENCE = "missing-reference"
    MISSING_DEFAULT = "missing-default"
    STYLE = "style"


class CatalogEntry(NamedTuple):
    """A single "register key for locale with value" event emitted by a parser."""
    key: str
    locale: str
    value: str


@dataclass
class LocaleLocation:
    locale: str
    file: str


@dataclass
class TranslationRecord:
    """All known values of one translation key across locales."""
    key: str
    default_locale: str
    locales: Dict[str, str] = field(default_factory=dict)
    locations: List[LocaleLocation] = field(default_factory=list)

    def location_for(self, locale: str) -> Optional[LocaleLocation]:
        for location in self.locations:
            if location.locale == locale:
                return location
        return None


@dataclass
class FileContribution:
    """Reverse index entry: the keys one file currently declares for its locale."""
    locale: str
    # key -> value declared by this file, in file order
    keys: Dict[str, str] = field(default_factory=dict)

    def add(self, key: str, value: str) -> None:
        self.keys[key] = value


@dataclass
class IgnorePatternSet:
    exact: Set[str] = field(default_factory=set)
    exact_case_insensitive: Set[str] = field(default_factory=set)
    contains: Set[str] = field(default_factory=set)

    def merge(self, other: "IgnorePatternSet") -> None:
        self.exact.update(other.exact)
        self.exact_case_insensitive.update(other.exact_case_insensitive)
        self.contains.update(other.contains)

    def is_empty(self) -> bool:
        return not (self.exact or self.exact_case_insensitive or self.contains)


@dataclass
class StyleSuggestion:
    key_path: str
    locale: str
    english: Optional[str] = None
    current: Optional[str] = None
    suggested: Optional[str] = None


@dataclass(frozen=True)
class TextRange:
    """Zero-based range into a file's decoded text."""
    start_offset: int
    end_offset: int
    start_line: int
    start_character: int
    end_line: int
    end_character: int

    @classmethod
    def empty(cls) -> "TextRange":
        return cls(0, 0, 0, 0, 0, 0)


@dataclass
class DiagnosticIssue:
    range: TextRange
    message: str
    severity: Severity
    code: DiagnosticCode
    key: Optional[str] = None
    locale: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
            "key": self.key,
            "locale": self.locale,
            "range": {
                "start": {"line": self.range.start_line, "character": self.range.start_character},
                "end": {"line": self.range.end_line, "character": self.range.end_character},
                "offsets": [self.range.start_offset, self.range.end_offset],
            },
        }


@dataclass
class ProjectConfig:
    declared_locales: List[str]
    default_locale: str
    src_root: Optional[str] = None


@dataclass
class ScanResult:
    files_total: int = 0
    files_processed: int = 0
    cancelled: bool = False


@dataclass
class AnalysisBatch:
    diagnostics: Dict[str, List[DiagnosticIssue]] = field(default_factory=dict)
    files_processed: int = 0
    cancelled: bool = False

    def issue_count(self) -> int:
        return sum(len(issues) for issues in self.diagnostics.values())
