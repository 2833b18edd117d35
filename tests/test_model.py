"""
Tests for the merge model objects.

These tests verify:
    - Basic model creation and defaults
    - Derived properties
    - Report accumulation and summaries
"""

from surveyl10n.model import (
    BatchSummary,
    BundleUnit,
    LocalizableNode,
    MergeReport,
    ReconcileResult,
    TranslationRecord,
)


class TestLocalizableNode:
    """Test LocalizableNode objects."""

    def test_is_html(self):
        node = LocalizableNode("intro.q.welcome.html", {"default": "<p>Hi</p>"}, "pages[0].elements[0].html")
        assert node.is_html

    def test_not_html(self):
        node = LocalizableNode("intro.q.age.title", {"default": "Age"}, "pages[0].elements[1].title")
        assert not node.is_html

    def test_node_is_live_reference(self):
        """Mutating node mutates the mapping it was built from."""
        mapping = {"default": "Age"}
        node = LocalizableNode("q.age.title", mapping, "elements[0].title")
        node.node["de"] = "Alter"
        assert mapping["de"] == "Alter"


class TestTranslationRecord:
    def test_defaults(self):
        record = TranslationRecord(identifier="q.age.title", language="es-CO")
        assert record.source == ""
        assert record.target == ""
        assert record.row_index is None
        assert record.path is None


class TestBundleUnit:
    def test_needs_translation(self):
        assert BundleUnit(id="1", state="needs-translation").needs_translation
        assert BundleUnit(id="1", state="Needs-Translation").needs_translation

    def test_translated(self):
        assert not BundleUnit(id="1", state="translated").needs_translation
        assert not BundleUnit(id="1").needs_translation


class TestMergeReport:
    """Test MergeReport accumulation."""

    def _report(self):
        report = MergeReport(name="child_survey.json")
        report.add(ReconcileResult("a.title", True, "es-CO", match_type="single"))
        report.add(ReconcileResult("b.title", True, "de", match_type="single"))
        report.add(ReconcileResult("c.title", True, "de", match_type="exact_text"))
        report.add(ReconcileResult("d.title", False, reason="No matching translation found"))
        report.add(ReconcileResult("e.title", False, "en", reason="Protected language"))
        return report

    def test_counts(self):
        report = self._report()
        assert report.updated_count == 3
        assert report.not_updated_count == 2
        assert report.count_reason("Protected language") == 1

    def test_updated_languages(self):
        assert self._report().updated_languages() == {"es-CO": 1, "de": 2}

    def test_summary(self):
        report = self._report()
        report.output_path = "surveys/child_survey_updated.json"
        text = report.summary()
        assert text.splitlines()[0] == "child_survey.json: 3 updated, 2 not updated"
        assert "  - No matching translation found: 1" in text
        assert "  + de: 2" in text
        assert text.endswith("  -> surveys/child_survey_updated.json")


class TestBatchSummary:
    def test_empty_is_ok(self):
        batch = BatchSummary()
        assert batch.ok
        assert batch.summary() == "Total: 0 updates across 0 file(s), 0 skipped, 0 failed"

    def test_failures(self):
        report = MergeReport(name="one.json")
        report.add(ReconcileResult("a", True, "de"))
        batch = BatchSummary(reports=[report], skipped=["gone.json"], failed={"bad.json": "boom"})
        assert not batch.ok
        assert batch.failed_count == 1
        text = batch.summary()
        assert "skipped: gone.json" in text
        assert "failed: bad.json: boom" in text
        assert text.endswith("Total: 1 updates across 1 file(s), 1 skipped, 1 failed")
