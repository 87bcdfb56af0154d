import logging
from pathlib import Path

import vdf

from locres.backends.base import Backend, is_culture_code
from locres.classes import LanguageInfo, ResourceEntry, ResourceFile
from locres.errors import ParseError

logger = logging.getLogger(__name__)

SUFFIX = ".phrases.txt"
FORMAT_KEY = "#format"


class PhrasesBackend(Backend):
    """SourceMod translation files.

    The default language lives in ``<dir>/<base>.phrases.txt``, every other language in
    ``<dir>/<langid>/<base>.phrases.txt``. The ``#format`` string of a phrase is kept as
    the entry comment.
    """

    name = "phrases"
    aliases = ("sourcemod", "vdf")

    @property
    def default_language(self) -> str:
        return self.options.get("default_language", "en")

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        if path.is_file():
            return path.name.endswith(SUFFIX)
        if not path.is_dir():
            return False
        return any(p.name.endswith(SUFFIX) for p in path.iterdir() if p.is_file())

    def language_path(self, directory: Path, base_name: str, code: str) -> Path:
        if not code or code == self.default_language:
            return directory / f"{base_name}{SUFFIX}"
        return directory / code / f"{base_name}{SUFFIX}"

    def describe(self, path: Path) -> LanguageInfo | None:
        if not path.name.endswith(SUFFIX):
            return None
        base_name = path.name[: -len(SUFFIX)]
        langid = path.parent.name
        if is_culture_code(langid) and (path.parent.parent / path.name).is_file():
            return self._language(langid, path, base_name, langid == self.default_language)
        return self._language(self.default_language, path, base_name, True)

    def discover(self, directory: Path) -> list[LanguageInfo]:
        directory = Path(directory)
        languages = []
        for file in sorted(directory.glob(f"*{SUFFIX}")):
            base_name = file.name[: -len(SUFFIX)]
            languages.append(self._language(self.default_language, file, base_name, True))

        for folder in sorted(p for p in directory.iterdir() if p.is_dir()):
            if not is_culture_code(folder.name) or folder.name == self.default_language:
                continue
            for file in sorted(folder.glob(f"*{SUFFIX}")):
                base_name = file.name[: -len(SUFFIX)]
                languages.append(self._language(folder.name, file, base_name, False))
        return languages

    def parse(self, text: str, language: LanguageInfo) -> list[ResourceEntry]:
        try:
            phrases = vdf.loads(text, mapper=vdf.VDFDict, merge_duplicate_keys=False)
        except SyntaxError as ex:
            raise ParseError(
                ex.msg or str(ex), language.path, getattr(ex, "lineno", None), getattr(ex, "offset", None)
            ) from ex

        if "Phrases" not in phrases:
            raise ParseError('File does not start with a "Phrases" section', language.path)

        entries = []
        for phrase_ident, raw_translations in phrases["Phrases"].items():
            if not isinstance(raw_translations, dict):
                raise ParseError(f'Phrase "{phrase_ident}" is not a section', language.path)
            value = ""
            format_special = None
            for child_langid, translation in raw_translations.items():
                if child_langid == FORMAT_KEY:
                    format_special = translation
                elif child_langid == language.code:
                    value = translation
                else:
                    logger.debug(
                        f'{language.path.name}: "{phrase_ident}" includes a translation for "{child_langid}"'
                    )
            entries.append(ResourceEntry(phrase_ident, value, format_special or None))
        return entries

    def render(self, file: ResourceFile) -> str:
        phrases = {}
        for entry in file.entries:
            translations = {}
            if entry.comment:
                translations[FORMAT_KEY] = entry.comment
            translations[file.language.code or self.default_language] = entry.value
            phrases[entry.key] = translations
        return vdf.dumps({"Phrases": phrases}, pretty=True)
