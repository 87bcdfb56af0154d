import json
import logging
from pathlib import Path
from typing import Any

from locres.backends.base import Backend, is_culture_code
from locres.classes import LanguageInfo, ResourceEntry, ResourceFile
from locres.errors import ParseError

logger = logging.getLogger(__name__)

# JSON files that commonly sit next to sources but are never catalogs.
MANIFEST_FILES = {
    "package.json",
    "package-lock.json",
    "tsconfig.json",
    "jsconfig.json",
    "composer.json",
    "appsettings.json",
    "launchsettings.json",
}


def _has_key_prefix(key: str, keys: set[str]) -> bool:
    """True when a leading part of the dotted ``key`` is itself a key ("a" for "a.b")."""
    parts = key.split(".")
    return any(".".join(parts[:end]) in keys for end in range(1, len(parts)))


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, ensure_ascii=False)


class JsonBackend(Backend):
    """Flat or nested JSON catalogs.

    ``{"buttons": {"ok": "OK"}}`` and ``{"buttons.ok": "OK"}`` both declare the key
    ``buttons.ok``. An entry with a comment is written as ``{"_value": .., "_comment": ..}``.
    Keys starting with ``_`` are metadata.
    """

    name = "json"
    aliases = ("jsonlocalization",)
    extension = ".json"

    @classmethod
    def _is_candidate(cls, path: Path) -> bool:
        return path.suffix.lower() == cls.extension and path.name.lower() not in MANIFEST_FILES

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        if path.is_file():
            return cls._is_candidate(path)
        if not path.is_dir():
            return False
        return any(cls._is_candidate(p) for p in path.iterdir() if p.is_file())

    def language_path(self, directory: Path, base_name: str, code: str) -> Path:
        if not code:
            return directory / f"{base_name}{self.extension}"
        return directory / f"{base_name}.{code}{self.extension}"

    def describe(self, path: Path) -> LanguageInfo | None:
        if not self._is_candidate(path):
            return None
        stem = path.name[: -len(path.suffix)]
        base_name, _, code = stem.rpartition(".")
        if base_name and is_culture_code(code):
            return self._language(code, path, base_name, False)
        return self._language("", path, stem, True)

    def discover(self, directory: Path) -> list[LanguageInfo]:
        languages = []
        for path in sorted(Path(directory).iterdir()):
            if path.is_file() and (language := self.describe(path)) is not None:
                languages.append(language)
        return languages

    def parse(self, text: str, language: LanguageInfo) -> list[ResourceEntry]:
        def reject_duplicates(pairs: list[tuple[str, Any]]) -> dict:
            result: dict[str, Any] = {}
            for name, value in pairs:
                if name in result:
                    raise ParseError(f"Duplicate key '{name}'", language.path)
                result[name] = value
            return result

        try:
            document = json.loads(text, object_pairs_hook=reject_duplicates)
        except json.JSONDecodeError as ex:
            raise ParseError(ex.msg, language.path, ex.lineno, ex.colno) from ex

        if not isinstance(document, dict):
            raise ParseError("Root element must be an object", language.path, 1, 1)

        entries: list[ResourceEntry] = []
        self._flatten(document, "", entries, language.path)
        return entries

    def _flatten(
        self, node: dict, prefix: str, entries: list[ResourceEntry], path: Path
    ) -> None:
        for name, value in node.items():
            if name.startswith("_"):
                continue
            if not name:
                raise ParseError("Empty key", path)
            key = f"{prefix}.{name}" if prefix else name

            if isinstance(value, dict):
                if "_value" in value:
                    comment = value.get("_comment")
                    entries.append(
                        ResourceEntry(key, _text(value["_value"]), _text(comment) or None)
                    )
                else:
                    self._flatten(value, key, entries, path)
            else:
                entries.append(ResourceEntry(key, _text(value)))

    def render(self, file: ResourceFile) -> str:
        root: dict[str, Any] = {}
        if self.options.get("include_meta", True) and file.language.code:
            root["_meta"] = {"culture": file.language.code}

        nested = self.options.get("nested_keys", True)
        keys = {entry.key for entry in file.entries}
        for entry in file.entries:
            value: Any = entry.value
            if entry.comment:
                value = {"_value": entry.value, "_comment": entry.comment}
            if nested and "." in entry.key and not _has_key_prefix(entry.key, keys):
                self._place(root, entry.key, value)
            else:
                root[entry.key] = value

        return json.dumps(root, indent=int(self.options.get("indent", 2)), ensure_ascii=False) + "\n"

    @staticmethod
    def _place(root: dict, key: str, value: Any) -> None:
        # Only descend into the object written last, so the document order stays the
        # entry order; anything else is written as a flat dotted key.
        parts = key.split(".")
        if any(not part or part.startswith("_") for part in parts):
            root[key] = value
            return

        node = root
        while len(parts) > 1:
            head = parts[0]
            child = node.get(head)
            if child is None:
                child = node[head] = {}
            elif not (
                isinstance(child, dict) and "_value" not in child and next(reversed(node)) == head
            ):
                break
            node = child
            parts = parts[1:]

        remainder = ".".join(parts)
        if remainder in node:
            root[key] = value
        else:
            node[remainder] = value
