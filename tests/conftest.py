from pathlib import Path

import pytest

from locres.backends.jsonfile import JsonBackend
from locres.backends.phrases import PhrasesBackend
from locres.backends.resx import ResxBackend
from locres.classes import LanguageInfo, ResourceEntry, ResourceFile

ENTRIES = [
    ("Hello", "Hello", "Greeting on the start page"),
    ("Goodbye", "Goodbye", None),
    ("Status_Active", "Active", None),
    ("Status_Disabled", "Disabled", None),
    ("Welcome", "Welcome {0}", None),
]


def make_file(path: Path, code: str = "", entries=ENTRIES, is_default: bool | None = None) -> ResourceFile:
    language = LanguageInfo(
        code=code,
        path=path,
        base_name="Strings",
        is_default=not code if is_default is None else is_default,
    )
    return ResourceFile(language, [ResourceEntry(key, value, comment) for key, value, comment in entries])


@pytest.fixture
def resx_backend() -> ResxBackend:
    return ResxBackend()


@pytest.fixture
def json_backend() -> JsonBackend:
    return JsonBackend()


@pytest.fixture
def phrases_backend() -> PhrasesBackend:
    return PhrasesBackend()


@pytest.fixture
def resx_catalog(tmp_path: Path, resx_backend: ResxBackend) -> Path:
    """Strings.resx with a partial French translation."""
    directory = tmp_path / "Resources"
    directory.mkdir()
    resx_backend.write(make_file(directory / "Strings.resx"))
    resx_backend.write(
        make_file(
            directory / "Strings.fr.resx",
            "fr",
            [
                ("Hello", "Bonjour", "Greeting on the start page"),
                ("Goodbye", "", None),
                ("Status_Active", "Actif", None),
                ("Welcome", "Bienvenue", None),
                ("Legacy", "Ancien", None),
            ],
        )
    )
    return directory
