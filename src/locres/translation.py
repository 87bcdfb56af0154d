import abc
import logging
from dataclasses import dataclass, field

from locres.classes import ResourceEntry, ResourceFile
from locres.errors import TranslationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationRequest:
    """One string handed to an external translation provider."""

    source_text: str
    target_language: str
    target_language_name: str
    source_language: str | None = None
    source_language_name: str | None = None
    context: str | None = None

    def __post_init__(self) -> None:
        if not self.source_text:
            raise ValueError("Source text must not be empty")
        if not self.target_language:
            raise ValueError("Target language code must not be empty")


class TranslationProvider(abc.ABC):
    @abc.abstractmethod
    def translate(self, request: TranslationRequest) -> str:
        """Return the translation of ``request`` or raise ``TranslationError``."""


@dataclass
class TranslationFailure:
    key: str
    error: TranslationError


@dataclass
class TranslationResult:
    translated: list[str] = field(default_factory=list)
    failures: list[TranslationFailure] = field(default_factory=list)


def build_translation_requests(
    source_file: ResourceFile, target_file: ResourceFile
) -> list[TranslationRequest]:
    """Requests for every key translated in the source but empty or absent in the target."""
    source = source_file.language
    target = target_file.language
    target_entries = {entry.key: entry for entry in target_file.entries}

    requests = []
    for entry in source_file.entries:
        if entry.is_empty:
            continue
        existing = target_entries.get(entry.key)
        if existing is not None and not existing.is_empty:
            continue
        requests.append(
            TranslationRequest(
                source_text=entry.value,
                target_language=target.code,
                target_language_name=target.display_name or target.code,
                source_language=source.code or None,
                source_language_name=source.display_name,
                context=entry.key,
            )
        )
    return requests


def apply_translations(
    target_file: ResourceFile,
    provider: TranslationProvider,
    requests: list[TranslationRequest],
) -> TranslationResult:
    """Fill ``target_file`` in memory; a failing key is recorded and the rest continue."""
    result = TranslationResult()
    entries = {entry.key: entry for entry in target_file.entries}
    for request in requests:
        key = request.context
        if not key:
            logger.warning(f"Skipping request without a key: {request.source_text!r}")
            continue
        try:
            value = provider.translate(request)
        except TranslationError as ex:
            logger.warning(f"Could not translate {key} to {request.target_language}: {ex}")
            result.failures.append(TranslationFailure(key, ex))
            continue

        entry = entries.get(key)
        if entry is None:
            entry = ResourceEntry(key)
            target_file.entries.append(entry)
            entries[key] = entry
        entry.value = value
        result.translated.append(key)

    logger.info(
        f"Translated {len(result.translated)} of {len(requests)} entries to {target_file.language.label}"
    )
    return result
