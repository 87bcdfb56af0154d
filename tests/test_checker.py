from pathlib import Path

import pytest

from locres.backends.resx import ResxBackend
from locres.catalog import Catalog, load_catalogs
from locres.checker import check_catalog, count_placeholders, render_markdown
from locres.classes import LanguageInfo, ResourceEntry, ResourceFile


@pytest.mark.parametrize(
    "text, count",
    [
        ("Hello {0}, you have {1:N0} messages", 2),
        ("Hello {name}", 1),
        ("{{escaped}} braces", 0),
        ("%s has %1$d items", 2),
        ("Total: ${amount}", 1),
        ("100% sure", 0),
        ("plain", 0),
    ],
)
def test_count_placeholders(text, count):
    assert count_placeholders(text) == count


class TestCheckCatalog:
    """Comparison of translations with the default language."""

    def test_reports_problems(self, resx_catalog):
        catalogs, _ = load_catalogs(resx_catalog, ResxBackend())
        reports = check_catalog(catalogs[0])
        found = {(report.phrase_key, report.phrase_warning) for report in reports}
        assert found == {
            ("Goodbye", "Key available, but translation missing"),
            ("Welcome", "Has 0 format parameters, but the default language has 1"),
            ("Legacy", "Key doesn't exist in the default language"),
            ("Status_Disabled", "Key missing"),
        }
        assert {report.langid for report in reports} == {"fr"}

    def test_empty_language_file(self):
        default = ResourceFile(LanguageInfo("", Path("S.resx"), "S", is_default=True), [ResourceEntry("A", "a")])
        empty = ResourceFile(LanguageInfo("de", Path("S.de.resx"), "S"))
        reports = check_catalog(Catalog("S", [default, empty]))
        assert [(r.filename, r.file_warning) for r in reports] == [("S.de.resx", "File is empty")]

    def test_missing_default_language(self):
        file = ResourceFile(LanguageInfo("de", Path("S.de.resx"), "S"), [ResourceEntry("A", "a")])
        reports = check_catalog(Catalog("S", [file]))
        assert reports[0].file_warning == "Default language file missing"

    def test_markdown(self, resx_catalog):
        catalogs, _ = load_catalogs(resx_catalog, ResxBackend())
        markdown = render_markdown(check_catalog(catalogs[0]))
        assert markdown.startswith("# fr\n\n## Strings.fr.resx\n| Key | Issue |")
        assert "| `Status_Disabled` | Key missing |" in markdown

    def test_markdown_without_issues(self):
        assert render_markdown([]) == "No issues found\n"
