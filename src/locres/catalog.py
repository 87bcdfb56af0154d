import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from locres.backends.base import Backend
from locres.cancellation import CancellationToken, check
from locres.classes import LanguageInfo, ResourceFile
from locres.errors import NotFoundError, ParseError

logger = logging.getLogger(__name__)


@dataclass
class Catalog:
    base_name: str
    files: list[ResourceFile] = field(default_factory=list)

    @property
    def languages(self) -> list[LanguageInfo]:
        return [file.language for file in self.files]

    @property
    def default_file(self) -> ResourceFile | None:
        return next((file for file in self.files if file.language.is_default), None)

    def file_for(self, code: str) -> ResourceFile | None:
        return next((file for file in self.files if file.language.code == code), None)

    def declared_keys(self) -> set[str]:
        """Keys present in any language of the catalog."""
        return {entry.key for file in self.files for entry in file.entries}


@dataclass
class LoadFailure:
    language: LanguageInfo
    error: ParseError | NotFoundError


def load_catalogs(
    directory: str | Path,
    backend: Backend,
    token: CancellationToken | None = None,
    strict: bool = False,
) -> tuple[list[Catalog], list[LoadFailure]]:
    """Load every catalog found in ``directory``.

    A language that fails to load is left out of its catalog and reported in the returned
    failures, unless ``strict`` is set, in which case the error is raised.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotFoundError(f"Resource directory not found: {directory}")

    grouped: dict[str, list[ResourceFile]] = defaultdict(list)
    failures: list[LoadFailure] = []
    for language in backend.discover(directory):
        check(token)
        try:
            grouped[language.base_name].append(backend.load(language, token))
        except (ParseError, NotFoundError) as ex:
            if strict:
                raise
            logger.error(f"Skipping {language.path.name}: {ex}")
            failures.append(LoadFailure(language, ex))

    catalogs = [
        Catalog(
            base_name,
            sorted(files, key=lambda file: (not file.language.is_default, file.language.code)),
        )
        for base_name, files in sorted(grouped.items())
    ]
    logger.info(f"Loaded {len(catalogs)} catalogs from {directory}")
    return catalogs, failures


def find_catalog(catalogs: list[Catalog], base_name: str | None) -> Catalog:
    if base_name is None:
        if len(catalogs) == 1:
            return catalogs[0]
        names = ", ".join(catalog.base_name for catalog in catalogs) or "none"
        raise NotFoundError(f"Specify a catalog base name (found: {names})")
    for catalog in catalogs:
        if catalog.base_name == base_name:
            return catalog
    raise NotFoundError(f"Catalog '{base_name}' not found")
