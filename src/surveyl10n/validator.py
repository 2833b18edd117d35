"""
Survey Validator: read-only diagnostics of a multilingual survey document.

This module inspects a survey after (or before) a merge:
    - Localizable node inventory
    - Language coverage per language code
    - Nodes lacking an English baseline (fatal)
    - HTML-bearing values
    - Duplicate identifiers (ambiguous merge targets)
    - Language keys not in canonical form

IMPORTANT: It does NOT modify the survey. It only produces reports.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from surveyl10n.languages import has_english_baseline, is_language_key, normalize_language_code
from surveyl10n.walker import collect_localizable_nodes

_HTML_TAG_RE = re.compile(r"<[a-zA-Z/][^>]*>")


@dataclass
class SurveyReport:
    """Diagnostics for one survey document."""

    survey_name: str
    total_nodes: int = 0

    # language -> number of nodes carrying a non-empty value
    language_counts: Dict[str, int] = field(default_factory=dict)

    missing_baseline: List[str] = field(default_factory=list)
    html_values: List[str] = field(default_factory=list)
    duplicate_identifiers: List[str] = field(default_factory=list)
    noncanonical_keys: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def ok(self) -> bool:
        """False iff a fatal issue (a node without English baseline) exists."""
        return not self.missing_baseline

    @property
    def languages(self) -> List[str]:
        return sorted(self.language_counts)

    def coverage(self, language: str) -> float:
        """Share of nodes with a value in ``language``, as a percentage."""
        if self.total_nodes == 0:
            return 0.0
        return 100.0 * self.language_counts.get(language, 0) / self.total_nodes


def analyze_survey(survey: Dict[str, Any], name: str = "") -> SurveyReport:
    """
    Inspect every localizable node of a survey.

    Returns a SurveyReport with counts, findings and warnings.
    """
    report = SurveyReport(survey_name=name)
    nodes = collect_localizable_nodes(survey)
    report.total_nodes = len(nodes)

    counts: Counter = Counter()
    for found in nodes:
        for key, value in found.node.items():
            if not is_language_key(key):
                continue
            if normalize_language_code(key) != key:
                report.noncanonical_keys.add(key)
            if isinstance(value, str) and value.strip():
                counts[key] += 1
                if _HTML_TAG_RE.search(value) and found.identifier not in report.html_values:
                    report.html_values.append(found.identifier)

        if not has_english_baseline(found.node):
            report.missing_baseline.append(found.identifier)

    report.language_counts = dict(counts)

    id_counts = Counter(n.identifier for n in nodes)
    report.duplicate_identifiers = sorted(i for i, c in id_counts.items() if c > 1)

    # =========================================================================
    # WARNINGS
    # =========================================================================

    for identifier in report.missing_baseline:
        report.add_warning(f"No English baseline (en-US/en/default): {identifier}")

    if report.duplicate_identifiers:
        report.add_warning(
            f"Duplicate identifiers (merged by source-text tie-break): {', '.join(report.duplicate_identifiers)}"
        )

    if report.noncanonical_keys:
        report.add_warning(
            f"Non-canonical language keys: {', '.join(sorted(report.noncanonical_keys))}"
        )

    return report


def format_report(report: SurveyReport) -> str:
    """Render a SurveyReport for the terminal."""
    lines = [
        f"{report.survey_name or 'survey'}: {report.total_nodes} localizable node(s), "
        f"{'OK' if report.ok else 'FAILED'}",
    ]
    for language in report.languages:
        lines.append(f"  {language}: {report.language_counts[language]} ({report.coverage(language):.0f}%)")
    if report.html_values:
        lines.append(f"  HTML values: {len(report.html_values)}")
    for warning in report.warnings:
        lines.append(f"  ! {warning}")
    return "\n".join(lines)


__all__ = ["SurveyReport", "analyze_survey", "format_report"]
