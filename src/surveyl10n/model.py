"""
Core Merge Model Objects

Defines the data structures shared by every stage of a merge run.

These are plain data classes representing:
    - Localizable nodes (live references into a survey tree)
    - Translation records (flattened rows / trans-units)
    - Bundle sections and units (parsed XLIFF)
    - Reconciliation results and the run report

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about CSV or XML syntax
        - Hold no module-level state
        - Are threaded explicitly through function calls
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LocalizableNode:
    """
    A localizable node found in a survey tree.

    Properties:
        identifier:
            Derived, human-legible path
            Example: "school_page.q.schoolfun.title"

        node:
            The live mapping inside the survey document.
            Mutating it mutates the survey; there is no write-back step.

        path:
            JSON path to the node
            Example: "pages[1].elements[2].title"

        field_name:
            Key under which the node sits in its parent ("title", "text", ...)
    """

    identifier: str
    node: Dict[str, Any]
    path: str
    field_name: str = ""

    @property
    def is_html(self) -> bool:
        return self.identifier.lower().endswith(".html")


@dataclass
class TranslationRecord:
    """
    One translation for one language, from a table row or a trans-unit.

    Several records may share an identifier when the source schema has
    no per-node key. The reconciler breaks those ties on ``source``.

    Properties:
        identifier: Identifier the record claims (or "#<row>" when absent)
        language: Canonical destination language code
        source: English/source text the translation was made from
        target: Translated text
        row_index: 1-based data row (tables) or unit position (bundles)
        path: JSON path when the source carried one (XLIFF trans-unit id)
        state: XLIFF target state, if any
    """

    identifier: str
    language: str
    source: str = ""
    target: str = ""
    row_index: Optional[int] = None
    path: Optional[str] = None
    state: Optional[str] = None


@dataclass
class BundleUnit:
    """A single XLIFF trans-unit, text already decoded."""

    id: str
    resname: Optional[str] = None
    source: str = ""
    target: Optional[str] = None
    state: Optional[str] = None
    context_hint: Optional[str] = None

    @property
    def needs_translation(self) -> bool:
        return bool(self.state) and "needs-translation" in self.state.lower()


@dataclass
class BundleSection:
    """
    One <file> section of an XLIFF bundle.

    A bundle may hold one section per survey document and/or per
    target language.
    """

    original: Optional[str] = None
    source_language: Optional[str] = None
    target_language: Optional[str] = None
    units: List[BundleUnit] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """
    Outcome of one reconciliation attempt.

    ``language`` is None when the node had no candidate record at all.
    ``match_type`` is "single", "exact_text", "first" or "navigation".
    """

    identifier: str
    updated: bool
    language: Optional[str] = None
    reason: Optional[str] = None
    match_type: Optional[str] = None


@dataclass
class MergeReport:
    """
    Accumulator for one survey document's merge.

    This is the only audit trail of a run. Pass the same instance through
    several ``reconcile`` calls to merge more than one source into a
    single document.
    """

    name: str = ""
    output_path: Optional[str] = None
    results: List[ReconcileResult] = field(default_factory=list)

    def add(self, result: ReconcileResult) -> None:
        self.results.append(result)

    @property
    def updated_count(self) -> int:
        return sum(1 for r in self.results if r.updated)

    @property
    def not_updated_count(self) -> int:
        return sum(1 for r in self.results if not r.updated)

    def count_reason(self, reason: str) -> int:
        return sum(1 for r in self.results if r.reason == reason)

    def updated_languages(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for r in self.results:
            if r.updated and r.language:
                counts[r.language] = counts.get(r.language, 0) + 1
        return counts

    def summary(self) -> str:
        """Human-readable summary for the end of a run."""
        lines = [f"{self.name or 'survey'}: {self.updated_count} updated, {self.not_updated_count} not updated"]
        reasons: Dict[str, int] = {}
        for r in self.results:
            if not r.updated and r.reason:
                reasons[r.reason] = reasons.get(r.reason, 0) + 1
        for reason, count in sorted(reasons.items()):
            lines.append(f"  - {reason}: {count}")
        for lang, count in sorted(self.updated_languages().items()):
            lines.append(f"  + {lang}: {count}")
        if self.output_path:
            lines.append(f"  -> {self.output_path}")
        return "\n".join(lines)


@dataclass
class BatchSummary:
    """Aggregate of a multi-file run: successes, skips and failures."""

    reports: List[MergeReport] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def succeeded_count(self) -> int:
        return len(self.reports)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        lines = [report.summary() for report in self.reports]
        for name in self.skipped:
            lines.append(f"skipped: {name}")
        for name, error in self.failed.items():
            lines.append(f"failed: {name}: {error}")
        total = sum(r.updated_count for r in self.reports)
        lines.append(
            f"Total: {total} updates across {self.succeeded_count} file(s), "
            f"{len(self.skipped)} skipped, {self.failed_count} failed"
        )
        return "\n".join(lines)
