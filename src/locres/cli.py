import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml

from locres import checker, config as locres_config, factory
from locres.backends.base import Backend
from locres.catalog import Catalog, find_catalog, load_catalogs
from locres.errors import LocresError
from locres.report import EXPORT_FORMATS, dump_report
from locres.scanner import ScannerOptions, scan

logger = logging.getLogger(__name__)

config_folder_option = click.option(
    "--config-folder", default="config", help="Configuration folder path."
)
resources_option = click.option(
    "--resources",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder holding the resource catalogs.",
)
backend_option = click.option(
    "--backend", default=None, help="Catalog format, detected from the folder when omitted."
)
catalog_option = click.option(
    "--catalog", "base_name", default=None, help="Catalog base name, needed when there are several."
)


def _load_config(config_folder: str) -> dict[str, Any]:
    try:
        config = locres_config.load_config(config_folder)
    except yaml.YAMLError as exc:
        logger.error(f"Invalid configuration: {exc}")
        sys.exit(1)
    locres_config.setup_logging(config)
    return config


def _backend(config: dict[str, Any], config_folder: str, resources: Path, name: str | None) -> Backend:
    try:
        language_names = locres_config.load_language_names(config_folder)
    except SyntaxError as exc:
        logger.error(f"Invalid languages.cfg: {exc}")
        sys.exit(1)
    if name:
        return factory.get_backend(name, config["backend"], language_names)
    return factory.resolve_from_path(resources, config["backend"], language_names)


def _catalogs(backend: Backend, resources: Path) -> list[Catalog]:
    catalogs, failures = load_catalogs(resources, backend)
    for failure in failures:
        click.echo(f"Skipped {failure.language.path}: {failure.error}", err=True)
    return catalogs


@click.group()
@click.version_option()
def cli() -> None:
    pass


@cli.command("scan")
@config_folder_option
@resources_option
@backend_option
@catalog_option
@click.option(
    "--source",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Source file or folder to scan for key references.",
)
@click.option("--strict", is_flag=True, help="Drop low confidence references.")
@click.option("--workers", type=int, default=None, help="Number of files scanned in parallel.")
@click.option("--format", "fmt", type=click.Choice(EXPORT_FORMATS), default="markdown")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def scan_command(
    config_folder: str,
    resources: Path,
    backend: str | None,
    base_name: str | None,
    source: Path,
    strict: bool,
    workers: int | None,
    fmt: str,
    output: Path | None,
) -> None:
    """Reconcile resource keys used in source code with a catalog."""
    config = _load_config(config_folder)
    options = ScannerOptions.from_config(config.get("scanner"))
    options.strict = options.strict or strict
    if workers:
        options.workers = workers

    try:
        driver = _backend(config, config_folder, resources, backend)
        catalog = find_catalog(_catalogs(driver, resources), base_name)
        report = scan(source, catalog, options)
    except LocresError as ex:
        logger.error(str(ex))
        sys.exit(1)

    content = dump_report(report, fmt)
    if output:
        output.write_text(content, "utf-8")
        logger.info(f"Report written to {output}")
    else:
        click.echo(content, nl=False)

    if report.missing:
        logger.error(f"Found {len(report.missing)} keys missing from {catalog.base_name}")
        sys.exit(1)


@cli.command("check")
@config_folder_option
@resources_option
@backend_option
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
def check(config_folder: str, resources: Path, backend: str | None, output: Path | None) -> None:
    """Compare every language with the default language."""
    config = _load_config(config_folder)
    try:
        driver = _backend(config, config_folder, resources, backend)
        catalogs = _catalogs(driver, resources)
    except LocresError as ex:
        logger.error(str(ex))
        sys.exit(1)

    reports = [report for catalog in catalogs for report in checker.check_catalog(catalog)]
    markdown = checker.render_markdown(reports)
    if output:
        output.write_text(markdown, "utf-8")
    else:
        click.echo(markdown, nl=False)


@cli.command("stats")
@config_folder_option
@resources_option
@backend_option
def stats(config_folder: str, resources: Path, backend: str | None) -> None:
    """Show translation progress per language."""
    config = _load_config(config_folder)
    try:
        driver = _backend(config, config_folder, resources, backend)
        catalogs = _catalogs(driver, resources)
    except LocresError as ex:
        logger.error(str(ex))
        sys.exit(1)

    for catalog in catalogs:
        click.echo(f"{catalog.base_name}:")
        for file in catalog.files:
            click.echo(
                f"  {file.language.label}: {file.completed_count}/{file.entry_count}"
                f" ({file.completion_percentage:.1f}%)"
            )


@cli.command("add-language")
@config_folder_option
@resources_option
@backend_option
@catalog_option
@click.option("--culture", required=True, help="Culture code of the new language, e.g. fr or pt-BR.")
@click.option("--no-copy", is_flag=True, help="Create the file without the default language keys.")
def add_language(
    config_folder: str,
    resources: Path,
    backend: str | None,
    base_name: str | None,
    culture: str,
    no_copy: bool,
) -> None:
    """Create a language file seeded with the keys of the default language."""
    config = _load_config(config_folder)
    try:
        driver = _backend(config, config_folder, resources, backend)
        catalog = find_catalog(_catalogs(driver, resources), base_name)
        file = driver.create_language_file(
            catalog.base_name,
            culture,
            resources,
            source_file=catalog.default_file,
            copy_entries=not no_copy,
        )
    except (LocresError, ValueError) as ex:
        logger.error(str(ex))
        sys.exit(1)
    click.echo(f"Created {file.language.path} with {file.entry_count} keys")


@cli.command("remove-language")
@config_folder_option
@resources_option
@backend_option
@catalog_option
@click.option("--culture", required=True, help="Culture code of the language to remove.")
def remove_language(
    config_folder: str,
    resources: Path,
    backend: str | None,
    base_name: str | None,
    culture: str,
) -> None:
    """Delete the file of one language."""
    config = _load_config(config_folder)
    try:
        driver = _backend(config, config_folder, resources, backend)
        catalog = find_catalog(_catalogs(driver, resources), base_name)
        file = catalog.file_for(culture)
        if file is None:
            raise LocresError(f"Catalog {catalog.base_name} has no '{culture}' language")
        driver.delete_language_file(file.language)
    except (LocresError, ValueError) as ex:
        logger.error(str(ex))
        sys.exit(1)
    click.echo(f"Removed {file.language.path}")


@cli.command("backends")
@config_folder_option
def backends(config_folder: str) -> None:
    """List the supported catalog formats."""
    _load_config(config_folder)
    for name in factory.get_available_backends():
        click.echo(name)
