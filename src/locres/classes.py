import enum
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, eq=False)
class LanguageInfo:
    code: str
    path: Path
    base_name: str = ""
    display_name: str | None = None
    is_default: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LanguageInfo):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    @property
    def label(self) -> str:
        code = self.code or "default"
        if self.display_name:
            return f"{self.display_name} ({code})"
        return code


@dataclass
class ResourceEntry:
    key: str
    value: str = ""
    comment: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Resource key must not be empty")

    @property
    def is_empty(self) -> bool:
        return not self.value or self.value.isspace()


@dataclass
class ResourceFile:
    language: LanguageInfo
    entries: list[ResourceEntry] = field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        return [entry.key for entry in self.entries]

    def get(self, key: str) -> ResourceEntry | None:
        return next((entry for entry in self.entries if entry.key == key), None)

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def completed_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.is_empty)

    @property
    def completion_percentage(self) -> float:
        if not self.entries:
            return 0.0
        return self.completed_count / self.entry_count * 100


class Confidence(enum.IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class AccessPattern(enum.Enum):
    STATIC_MEMBER = "static-member"
    INDEXER = "indexer"
    WRAPPER_CALL = "wrapper-call"


@dataclass(frozen=True)
class UsageReference:
    path: str
    line: int
    column: int
    key: str
    pattern: AccessPattern
    confidence: Confidence
    is_dynamic: bool = False
    fragments: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "column": self.column,
            "key": self.key or None,
            "pattern": self.pattern.value,
            "confidence": self.confidence.name.lower(),
            "is_dynamic": self.is_dynamic,
        }


@dataclass
class FileScanResult:
    path: str
    references: list[UsageReference] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    partial: bool = False
    skipped: bool = False


@dataclass
class DynamicReview:
    reference: UsageReference
    candidates: list[str] = field(default_factory=list)


@dataclass
class ScanReport:
    base_name: str
    files: list[FileScanResult] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unused: list[str] = field(default_factory=list)
    needs_review: list[DynamicReview] = field(default_factory=list)
    cancelled: bool = False

    @property
    def references(self) -> list[UsageReference]:
        return [ref for result in self.files for ref in result.references]

    @property
    def warnings(self) -> list[str]:
        return [warning for result in self.files for warning in result.warnings]


@dataclass
class Report:
    langid: str
    filename: str
    file_warning: str = ""
    phrase_key: str = ""
    phrase_warning: str = ""
