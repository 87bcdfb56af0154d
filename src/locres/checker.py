import logging
import re
from collections import defaultdict

from locres.catalog import Catalog
from locres.classes import Report

logger = logging.getLogger(__name__)

# .NET composite ({0}, {0:N2}), named ({name}), printf (%s, %1$d) and template (${var}) placeholders
PLACEHOLDER_REGEX = re.compile(
    r"\$\{[A-Za-z_][\w.]*\}"
    r"|(?<!\{)\{\d+(?:,-?\d+)?(?::[^{}]+)?\}(?!\})"
    r"|(?<!\{)\{[A-Za-z_]\w*(?::[^{}]+)?\}(?!\})"
    r"|%(?:\d+\$)?[-+0#]*\d*(?:\.\d+)?[sdifFeEgGxXoc]",
    re.MULTILINE,
)


def count_placeholders(text: str) -> int:
    return len(PLACEHOLDER_REGEX.findall(text))


def check_catalog(catalog: Catalog) -> list[Report]:
    """Compare every language of ``catalog`` with its default language."""
    default = catalog.default_file
    if default is None:
        logger.error(f"Catalog {catalog.base_name} has no default language file")
        return [Report("", catalog.base_name, file_warning="Default language file missing")]

    default_entries = {entry.key: entry for entry in default.entries}
    reports: list[Report] = []
    for file in catalog.files:
        if file is default:
            continue
        langid = file.language.code
        filename = file.language.path.name
        found: list[Report] = []

        if not file.entries:
            found.append(Report(langid, filename, file_warning="File is empty"))
        else:
            # See if this language has anything that the default language doesn't
            for entry in file.entries:
                default_entry = default_entries.get(entry.key)
                if default_entry is None:
                    found.append(
                        Report(
                            langid,
                            filename,
                            phrase_key=entry.key,
                            phrase_warning="Key doesn't exist in the default language",
                        )
                    )
                    continue
                if entry.is_empty:
                    if not default_entry.is_empty:
                        found.append(
                            Report(
                                langid,
                                filename,
                                phrase_key=entry.key,
                                phrase_warning="Key available, but translation missing",
                            )
                        )
                    continue
                count = count_placeholders(entry.value)
                expected = count_placeholders(default_entry.value)
                if count != expected:
                    found.append(
                        Report(
                            langid,
                            filename,
                            phrase_key=entry.key,
                            phrase_warning=f"Has {count} format parameters, but the default language has {expected}",
                        )
                    )

            # See if this language is missing anything that the default language has
            keys = set(file.keys)
            for entry in default.entries:
                if entry.key not in keys:
                    found.append(
                        Report(langid, filename, phrase_key=entry.key, phrase_warning="Key missing")
                    )

        if found:
            logger.error(f"Found {len(found)} issues for {file.language.label} ({langid})")
        else:
            logger.info(f"No issues found for {file.language.label} ({langid})")
        reports.extend(found)
    return reports


def render_markdown(reports: list[Report]) -> str:
    if not reports:
        return "No issues found\n"

    grouped: dict[str, dict[str, list[Report]]] = defaultdict(lambda: defaultdict(list))
    for report in reports:
        grouped[report.langid][report.filename].append(report)

    markdown = ""
    for langid, files in grouped.items():
        markdown += f"# {langid or 'default'}\n\n"
        for filename, problems in files.items():
            markdown += f"## {filename}\n"
            added_phrase_warning = False
            for report in problems:
                if report.file_warning:
                    markdown += f"**{report.file_warning}**\n"
                if report.phrase_warning:
                    if not added_phrase_warning:
                        markdown += "| Key | Issue |\n| ------- | --------- |\n"
                        added_phrase_warning = True
                    markdown += f"| `{report.phrase_key}` | {report.phrase_warning} |\n"
            markdown += "\n"
    return markdown
