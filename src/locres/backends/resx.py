import io
import logging
import xml.etree.ElementTree as ET
import xml.sax
import xml.sax.handler
from pathlib import Path

from locres.backends.base import Backend, is_culture_code
from locres.classes import LanguageInfo, ResourceEntry, ResourceFile
from locres.errors import ParseError

logger = logging.getLogger(__name__)

XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"

RESHEADERS = (
    ("resmimetype", "text/microsoft-resx"),
    ("version", "2.0"),
    (
        "reader",
        "System.Resources.ResXResourceReader, System.Windows.Forms, Version=4.0.0.0, "
        "Culture=neutral, PublicKeyToken=b77a5c561934e089",
    ),
    (
        "writer",
        "System.Resources.ResXResourceWriter, System.Windows.Forms, Version=4.0.0.0, "
        "Culture=neutral, PublicKeyToken=b77a5c561934e089",
    ),
)


class _ResxHandler(xml.sax.handler.ContentHandler):
    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self.entries: list[ResourceEntry] = []
        self._locator = None
        self._depth = 0
        self._lines: dict[str, int] = {}
        self._current: dict | None = None
        self._field: str | None = None
        self._buffer: list[str] = []

    def setDocumentLocator(self, locator) -> None:
        self._locator = locator

    def _position(self) -> tuple[int | None, int | None]:
        if self._locator is None:
            return None, None
        return self._locator.getLineNumber(), self._locator.getColumnNumber()

    def startElement(self, name, attrs) -> None:
        self._depth += 1
        if name == "data" and self._depth == 2:
            line, column = self._position()
            key = attrs.get("name")
            if not key:
                raise ParseError("<data> element without a name", self.path, line, column)
            if key in self._lines:
                raise ParseError(
                    f"Duplicate key '{key}' (first defined on line {self._lines[key]})",
                    self.path,
                    line,
                    column,
                )
            self._lines[key] = line
            self._current = {"key": key, "value": "", "comment": None}
        elif self._current is not None and self._depth == 3 and name in ("value", "comment"):
            self._field = name
            self._buffer = []

    def characters(self, content) -> None:
        if self._field is not None:
            self._buffer.append(content)

    def endElement(self, name) -> None:
        if self._field == name and self._depth == 3:
            self._current[name] = "".join(self._buffer)
            self._field = None
        elif name == "data" and self._depth == 2 and self._current is not None:
            self.entries.append(
                ResourceEntry(
                    self._current["key"],
                    self._current["value"],
                    self._current["comment"] or None,
                )
            )
            self._current = None
        self._depth -= 1


class ResxBackend(Backend):
    name = "resx"
    aliases = ("xml",)
    extension = ".resx"

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        if path.is_file():
            return path.suffix.lower() == cls.extension
        if not path.is_dir():
            return False
        return any(p.suffix.lower() == cls.extension for p in path.iterdir() if p.is_file())

    def language_path(self, directory: Path, base_name: str, code: str) -> Path:
        if not code:
            return directory / f"{base_name}{self.extension}"
        return directory / f"{base_name}.{code}{self.extension}"

    def describe(self, path: Path) -> LanguageInfo | None:
        if path.suffix.lower() != self.extension:
            return None
        stem = path.name[: -len(path.suffix)]
        base_name, _, code = stem.rpartition(".")
        if base_name and is_culture_code(code):
            return self._language(code, path, base_name, False)
        return self._language("", path, stem, True)

    def discover(self, directory: Path) -> list[LanguageInfo]:
        languages = []
        for path in sorted(Path(directory).iterdir()):
            if not path.is_file():
                continue
            language = self.describe(path)
            if language is not None:
                languages.append(language)
        return languages

    def parse(self, text: str, language: LanguageInfo) -> list[ResourceEntry]:
        handler = _ResxHandler(language.path)
        parser = xml.sax.make_parser()
        parser.setFeature(xml.sax.handler.feature_external_ges, False)
        parser.setContentHandler(handler)
        try:
            parser.parse(io.BytesIO(text.encode("utf-8")))
        except xml.sax.SAXParseException as ex:
            raise ParseError(
                ex.getMessage(), language.path, ex.getLineNumber(), ex.getColumnNumber()
            ) from ex
        return handler.entries

    def render(self, file: ResourceFile) -> str:
        root = ET.Element("root")
        for name, value in RESHEADERS:
            header = ET.SubElement(root, "resheader", name=name)
            ET.SubElement(header, "value").text = value

        for entry in file.entries:
            data = ET.SubElement(root, "data", {"name": entry.key, XML_SPACE: "preserve"})
            ET.SubElement(data, "value").text = entry.value
            if entry.comment:
                ET.SubElement(data, "comment").text = entry.comment

        ET.indent(root, space=" " * int(self.options.get("indent", 2)))
        # a raw carriage return would be read back as a plain line feed
        body = ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
        return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'
