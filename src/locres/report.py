import json
import re
from collections import defaultdict

import yaml

from locres.classes import (
    Confidence,
    DynamicReview,
    FileScanResult,
    ScanReport,
    UsageReference,
)

EXPORT_FORMATS = ("json", "yaml", "markdown")


def wildcard_regex(key: str) -> re.Pattern:
    """Regex for a dynamic key template where ``*`` stands for an unknown part."""
    return re.compile(".*".join(re.escape(part) for part in key.split("*")))


def review_candidates(reference: UsageReference, declared: set[str]) -> list[str]:
    if not reference.key or not reference.fragments:
        return []
    pattern = wildcard_regex(reference.key)
    return sorted(key for key in declared if pattern.fullmatch(key))


def build_report(
    base_name: str,
    declared: set[str],
    results: list[FileScanResult],
    cancelled: bool = False,
) -> ScanReport:
    """Reconcile scanned references against the keys a catalog declares.

    Only literal references of at least medium confidence count as a key being used;
    dynamic and low confidence references are listed for review instead.
    """
    files = sorted(results, key=lambda result: result.path)
    report = ScanReport(base_name=base_name, files=files, cancelled=cancelled)

    referenced = set()
    for reference in report.references:
        if reference.is_dynamic or reference.confidence is Confidence.LOW:
            report.needs_review.append(
                DynamicReview(reference, review_candidates(reference, declared))
            )
        else:
            referenced.add(reference.key)

    report.missing = sorted(referenced - declared)
    report.unused = sorted(declared - referenced)
    return report


def report_to_dict(report: ScanReport) -> dict:
    return {
        "catalog": report.base_name,
        "cancelled": report.cancelled,
        "files": [
            {
                "path": result.path,
                "partial": result.partial,
                "skipped": result.skipped,
                "warnings": list(result.warnings),
                "references": [reference.to_dict() for reference in result.references],
            }
            for result in report.files
        ],
        "missing": list(report.missing),
        "unused": list(report.unused),
        "needs_review": [
            {
                "path": review.reference.path,
                **review.reference.to_dict(),
                "candidates": list(review.candidates),
            }
            for review in report.needs_review
        ],
    }


def render_markdown(report: ScanReport) -> str:
    markdown = f"# {report.base_name}\n\n"
    if report.cancelled:
        markdown += "**Scan was cancelled, results are incomplete**\n\n"

    references_by_key: dict[str, list[UsageReference]] = defaultdict(list)
    for reference in report.references:
        references_by_key[reference.key].append(reference)

    markdown += "## Missing keys\n"
    if report.missing:
        markdown += "| Key | Referenced at |\n| ------- | --------- |\n"
        for key in report.missing:
            places = ", ".join(
                f"`{ref.path}:{ref.line}`" for ref in references_by_key[key] if not ref.is_dynamic
            )
            markdown += f"| `{key}` | {places} |\n"
    else:
        markdown += "None\n"

    markdown += "\n## Unused keys\n"
    if report.unused:
        markdown += "".join(f"- `{key}`\n" for key in report.unused)
    else:
        markdown += "None\n"

    if report.needs_review:
        markdown += "\n## Needs review\n| Location | Expression | Candidates |\n| ------- | --------- | --------- |\n"
        for review in report.needs_review:
            ref = review.reference
            candidates = ", ".join(f"`{key}`" for key in review.candidates) or "-"
            markdown += f"| `{ref.path}:{ref.line}:{ref.column}` | `{ref.key or '?'}` | {candidates} |\n"

    warnings = report.warnings
    if warnings:
        markdown += "\n## Warnings\n" + "".join(f"- {warning}\n" for warning in warnings)
    return markdown


def dump_report(report: ScanReport, fmt: str = "json") -> str:
    if fmt == "json":
        return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(report_to_dict(report), sort_keys=False, allow_unicode=True)
    if fmt == "markdown":
        return render_markdown(report)
    raise ValueError(f"Unknown report format '{fmt}', expected one of {', '.join(EXPORT_FORMATS)}")
