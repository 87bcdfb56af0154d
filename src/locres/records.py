"""Plain data records exchanged with a cloud sync service."""
import hashlib
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from locres.catalog import Catalog
from locres.classes import ResourceFile


@dataclass(frozen=True)
class GlossaryTerm:
    source_term: str
    source_language: str
    translations: dict[str, str] = field(default_factory=dict)
    case_sensitive: bool = False

    def __post_init__(self) -> None:
        if not self.source_term:
            raise ValueError("Glossary term must not be empty")

    def translation_for(self, language: str) -> str | None:
        if language in self.translations:
            return self.translations[language]
        # fall back from a regional culture (fr-CA) to its neutral one (fr)
        neutral = re.split(r"[-_]", language, maxsplit=1)[0]
        return self.translations.get(neutral)

    def occurs_in(self, text: str) -> bool:
        flags = 0 if self.case_sensitive else re.IGNORECASE
        return re.search(rf"(?<!\w){re.escape(self.source_term)}(?!\w)", text, flags) is not None


@dataclass(frozen=True)
class SnapshotFile:
    path: str
    language: str
    key_count: int
    digest: str


def file_digest(file: ResourceFile) -> str:
    sha = hashlib.sha256()
    for entry in file.entries:
        for part in (entry.key, entry.value, entry.comment or ""):
            sha.update(part.encode("utf-8"))
            sha.update(b"\0")
    return sha.hexdigest()


@dataclass(frozen=True)
class SnapshotDiff:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()

    @property
    def unchanged(self) -> bool:
        return not (self.added or self.removed or self.modified)


@dataclass(frozen=True)
class CatalogSnapshot:
    snapshot_id: str
    created_at: datetime
    files: tuple[SnapshotFile, ...] = ()

    def diff(self, other: "CatalogSnapshot") -> SnapshotDiff:
        """Changes needed to go from this snapshot to ``other``."""
        before = {file.path: file for file in self.files}
        after = {file.path: file for file in other.files}
        return SnapshotDiff(
            added=tuple(sorted(after.keys() - before.keys())),
            removed=tuple(sorted(before.keys() - after.keys())),
            modified=tuple(
                sorted(
                    path
                    for path in before.keys() & after.keys()
                    if before[path].digest != after[path].digest
                )
            ),
        )


def snapshot_catalog(catalog: Catalog, snapshot_id: str) -> CatalogSnapshot:
    files = tuple(
        sorted(
            (
                SnapshotFile(
                    path=file.language.path.name
                    if file.language.is_default
                    else f"{file.language.code}/{file.language.path.name}",
                    language=file.language.code,
                    key_count=file.entry_count,
                    digest=file_digest(file),
                )
                for file in catalog.files
            ),
            key=lambda snapshot_file: snapshot_file.path,
        )
    )
    return CatalogSnapshot(snapshot_id, datetime.now(timezone.utc), files)
