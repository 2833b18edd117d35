"""
Tests for survey JSON I/O and report serialization.

Survey documents must keep key order and literal non-ASCII text;
reports must survive a JSON/YAML round-trip.
"""

import json

import pytest
import yaml
from surveyl10n.model import BatchSummary, MergeReport, ReconcileResult
from surveyl10n.serialization import (
    dump_survey,
    load_survey,
    load_survey_string,
    report_from_dict,
    report_from_yaml,
    report_to_dict,
    report_to_json,
    report_to_yaml,
)


def build_sample_report() -> MergeReport:
    report = MergeReport(name="child_survey.json", output_path="surveys/child_survey_updated.json")
    report.add(ReconcileResult("title", True, "es-CO", match_type="single"))
    report.add(ReconcileResult("q.age.title", False, reason="No matching translation found"))
    return report


class TestSurveyJson:
    def test_dump_keeps_order_and_unicode(self):
        text = dump_survey({"b": {"default": "Ñandú"}, "a": 1})
        assert text == '{\n  "b": {\n    "default": "Ñandú"\n  },\n  "a": 1\n}\n'

    def test_load(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text('{"title": {"default": "Hi"}}', encoding="utf-8")
        assert load_survey(str(path)) == {"title": {"default": "Hi"}}

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_survey(str(tmp_path / "missing.json"))

    def test_load_invalid(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_survey(str(path))

    def test_load_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            load_survey_string("[1, 2]")


class TestReportSerialization:
    def test_dict_round_trip(self):
        report = build_sample_report()
        restored = report_from_dict(report_to_dict(report))
        assert restored == report

    def test_dict_counts(self):
        d = report_to_dict(build_sample_report())
        assert d["updated"] == 1
        assert d["not_updated"] == 1
        assert d["languages"] == {"es-CO": 1}

    def test_json(self):
        d = json.loads(report_to_json(build_sample_report()))
        assert d["results"][0]["identifier"] == "title"

    def test_yaml_round_trip(self):
        report = build_sample_report()
        assert report_from_yaml(report_to_yaml(report)) == report

    def test_batch(self):
        batch = BatchSummary(reports=[build_sample_report()], skipped=["x.json"], failed={"y.json": "bad"})
        d = yaml.safe_load(report_to_yaml(batch))
        assert d["skipped"] == ["x.json"]
        assert d["failed"] == {"y.json": "bad"}
        assert d["reports"][0]["name"] == "child_survey.json"
