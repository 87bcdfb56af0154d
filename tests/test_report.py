import json

import pytest
import yaml

from locres.classes import AccessPattern, Confidence, FileScanResult, UsageReference
from locres.report import build_report, dump_report, report_to_dict, wildcard_regex


def reference(path, line, key, confidence=Confidence.HIGH, dynamic=False, fragments=()):
    return UsageReference(path, line, 1, key, AccessPattern.INDEXER, confidence, dynamic, fragments)


@pytest.fixture
def results():
    return [
        FileScanResult("b.cs", [reference("b.cs", 2, "Title"), reference("b.cs", 5, "Nope")]),
        FileScanResult(
            "a.cs",
            [
                reference("a.cs", 1, "Guessed", Confidence.LOW),
                reference("a.cs", 3, "Menu_*", Confidence.LOW, True, ("Menu_",)),
                reference("a.cs", 4, "Body", Confidence.MEDIUM),
            ],
            warnings=["a.cs: Unterminated string literal on line 9"],
            partial=True,
        ),
    ]


class TestReconciliation:
    """Missing and unused keys are set differences over qualifying references."""

    def test_missing_and_unused(self, results):
        report = build_report("Strings", {"Title", "Body", "Menu_File", "Menu_Edit", "Guessed"}, results)
        assert report.missing == ["Nope"]
        # Low confidence references do not count as a use
        assert report.unused == ["Guessed", "Menu_Edit", "Menu_File"]

    def test_everything_matches(self):
        files = [FileScanResult("a.cs", [reference("a.cs", 1, "A"), reference("a.cs", 2, "B")])]
        report = build_report("Strings", {"A", "B"}, files)
        assert report.missing == []
        assert report.unused == []

    def test_review_candidates(self, results):
        report = build_report("Strings", {"Menu_File", "Menu_Edit", "Title"}, results)
        reviews = {review.reference.key: review.candidates for review in report.needs_review}
        assert reviews == {"Guessed": [], "Menu_*": ["Menu_Edit", "Menu_File"]}

    def test_files_sorted_by_path(self, results):
        report = build_report("Strings", set(), results)
        assert [result.path for result in report.files] == ["a.cs", "b.cs"]

    def test_wildcard_regex_escapes_literals(self):
        pattern = wildcard_regex("Menu.*[x]")
        assert pattern.fullmatch("Menu.Open[x]")
        assert not pattern.fullmatch("MenuXOpen[x]")


class TestExport:
    """Serialized scan reports."""

    def test_to_dict(self, results):
        data = report_to_dict(build_report("Strings", {"Title"}, results))
        assert data["catalog"] == "Strings"
        assert [file["path"] for file in data["files"]] == ["a.cs", "b.cs"]
        assert data["files"][0]["partial"] is True
        assert data["files"][0]["references"][1] == {
            "line": 3,
            "column": 1,
            "key": "Menu_*",
            "pattern": "indexer",
            "confidence": "low",
            "is_dynamic": True,
        }
        assert data["missing"] == ["Body", "Nope"]

    def test_export_is_stable_under_input_order(self, results):
        forward = dump_report(build_report("Strings", {"Title"}, results))
        backward = dump_report(build_report("Strings", {"Title"}, list(reversed(results))))
        assert forward == backward

    def test_json_and_yaml_agree(self, results):
        report = build_report("Strings", {"Title"}, results)
        assert json.loads(dump_report(report, "json")) == yaml.safe_load(dump_report(report, "yaml"))

    def test_markdown(self, results):
        markdown = dump_report(build_report("Strings", {"Title", "Unused"}, results), "markdown")
        assert markdown.startswith("# Strings\n")
        assert "| `Nope` | `b.cs:5` |" in markdown
        assert "- `Unused`" in markdown
        assert "## Needs review" in markdown
        assert "Unterminated string literal" in markdown

    def test_unknown_format(self, results):
        with pytest.raises(ValueError):
            dump_report(build_report("Strings", set(), results), "xml")
