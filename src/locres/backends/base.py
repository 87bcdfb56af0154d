import abc
import asyncio
import contextlib
import logging
import os
import re
import stat
import tempfile
from pathlib import Path

from locres.cancellation import CancellationToken, check
from locres.classes import LanguageInfo, ResourceEntry, ResourceFile
from locres.errors import AlreadyExistsError, NotFoundError, ParseError

logger = logging.getLogger(__name__)

CULTURE_CODE_REGEX = re.compile(r"^[a-z]{2,3}(?:[-_][A-Za-z0-9]{2,8})*$")

_UMASK = os.umask(0)
os.umask(_UMASK)


def is_culture_code(code: str) -> bool:
    return bool(code) and CULTURE_CODE_REGEX.match(code) is not None


def _file_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_UMASK


def atomic_write(path: Path, content: str, token: CancellationToken | None = None) -> None:
    """Replace ``path`` with ``content`` in one step.

    The content is staged in a temporary file next to the target and moved over it with
    ``os.replace`` only once fully written, so readers never observe a truncated file and
    a failed or cancelled write leaves the previous content untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, staged = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        check(token)
        os.chmod(staged, _file_mode(path))
        os.replace(staged, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(staged)
        raise


def ensure_unique_keys(entries: list[ResourceEntry], path: Path) -> None:
    seen: set[str] = set()
    for entry in entries:
        if entry.key in seen:
            raise ParseError(f"Duplicate key '{entry.key}'", path)
        seen.add(entry.key)


class Backend(abc.ABC):
    """Format-specific driver for loading and writing catalog files.

    Subclasses describe the on-disk naming scheme (``language_path``/``describe``),
    and convert between file text and entries (``parse``/``render``). Loading,
    atomic writing and the language file lifecycle are shared.
    """

    name = ""
    aliases: tuple[str, ...] = ()

    def __init__(
        self,
        options: dict | None = None,
        language_names: dict[str, str] | None = None,
    ) -> None:
        self.options = dict(options or {})
        self.language_names = dict(language_names or {})

    @classmethod
    @abc.abstractmethod
    def can_handle(cls, path: Path) -> bool:
        ...

    @abc.abstractmethod
    def language_path(self, directory: Path, base_name: str, code: str) -> Path:
        ...

    @abc.abstractmethod
    def describe(self, path: Path) -> LanguageInfo | None:
        ...

    @abc.abstractmethod
    def discover(self, directory: Path) -> list[LanguageInfo]:
        ...

    @abc.abstractmethod
    def parse(self, text: str, language: LanguageInfo) -> list[ResourceEntry]:
        ...

    @abc.abstractmethod
    def render(self, file: ResourceFile) -> str:
        ...

    def _language(self, code: str, path: Path, base_name: str, is_default: bool) -> LanguageInfo:
        return LanguageInfo(
            code=code,
            path=path,
            base_name=base_name,
            display_name=self.language_names.get(code),
            is_default=is_default,
        )

    def load(
        self, path: str | Path | LanguageInfo, token: CancellationToken | None = None
    ) -> ResourceFile:
        if isinstance(path, LanguageInfo):
            language = path
        else:
            file_path = Path(path)
            language = self.describe(file_path) or self._language(
                "", file_path, file_path.stem, True
            )
        check(token)

        logger.debug(f"Loading {language.path} with the {self.name} backend")
        try:
            text = language.path.read_text("utf-8-sig")
        except FileNotFoundError:
            raise NotFoundError(f"Language file not found: {language.path}") from None
        except UnicodeDecodeError as ex:
            raise ParseError(f"File is not valid UTF-8: {ex.reason}", language.path) from ex

        entries = self.parse(text, language)
        ensure_unique_keys(entries, language.path)
        return ResourceFile(language, entries)

    def write(self, file: ResourceFile, token: CancellationToken | None = None) -> None:
        check(token)
        content = self.render(file)
        atomic_write(file.language.path, content, token)
        logger.debug(f"Wrote {file.entry_count} entries to {file.language.path}")

    def create_language_file(
        self,
        base_name: str,
        culture_code: str,
        target_path: str | Path,
        source_file: ResourceFile | None = None,
        copy_entries: bool = True,
        token: CancellationToken | None = None,
    ) -> ResourceFile:
        if not is_culture_code(culture_code):
            raise ValueError(f"Invalid culture code: {culture_code}")

        path = self.language_path(Path(target_path), base_name, culture_code)
        if path.exists():
            raise AlreadyExistsError(f"Language file already exists: {path.name}")

        file = ResourceFile(self._language(culture_code, path, base_name, False))
        if source_file is not None and copy_entries:
            # A new language starts untranslated.
            file.entries = [
                ResourceEntry(entry.key, "", entry.comment) for entry in source_file.entries
            ]

        self.write(file, token)
        logger.info(f"Created {path} with {file.entry_count} entries")
        return file

    def delete_language_file(
        self, language: LanguageInfo, token: CancellationToken | None = None
    ) -> None:
        check(token)
        if not language.path.is_file():
            raise NotFoundError(f"Language file not found: {language.path.name}")
        if language.is_default:
            raise ValueError(
                "Cannot delete the default language file, it is the fallback for all languages"
            )
        language.path.unlink()
        logger.info(f"Deleted {language.path}")

    async def load_async(
        self, path: str | Path | LanguageInfo, token: CancellationToken | None = None
    ) -> ResourceFile:
        return await asyncio.to_thread(self.load, path, token)

    async def write_async(
        self, file: ResourceFile, token: CancellationToken | None = None
    ) -> None:
        await asyncio.to_thread(self.write, file, token)

    async def create_language_file_async(
        self,
        base_name: str,
        culture_code: str,
        target_path: str | Path,
        source_file: ResourceFile | None = None,
        copy_entries: bool = True,
        token: CancellationToken | None = None,
    ) -> ResourceFile:
        return await asyncio.to_thread(
            self.create_language_file,
            base_name,
            culture_code,
            target_path,
            source_file,
            copy_entries,
            token,
        )

    async def delete_language_file_async(
        self, language: LanguageInfo, token: CancellationToken | None = None
    ) -> None:
        await asyncio.to_thread(self.delete_language_file, language, token)
