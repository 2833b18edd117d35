"""
Serialization helpers for survey documents and merge reports.

Survey documents are JSON; key insertion order is part of the document
and is preserved on the way in and out. Reports go to dict/JSON/YAML via
an intermediate dict representation.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from surveyl10n.model import BatchSummary, MergeReport, ReconcileResult


def load_survey(path: str) -> Dict[str, Any]:
    """
    Read a UTF-8 survey JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the content is not valid JSON or not an object
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            survey = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Survey file not found: {path}")
    if not isinstance(survey, dict):
        raise ValueError(f"Survey document must be a JSON object: {path}")
    return survey


def load_survey_string(content: str) -> Dict[str, Any]:
    survey = json.loads(content)
    if not isinstance(survey, dict):
        raise ValueError("Survey document must be a JSON object")
    return survey


def dump_survey(survey: Dict[str, Any]) -> str:
    """Pretty JSON, 2-space indent, insertion order kept, non-ASCII kept literal."""
    return json.dumps(survey, indent=2, ensure_ascii=False, sort_keys=False) + "\n"


def result_to_dict(r: ReconcileResult) -> Dict[str, Any]:
    return {
        "identifier": r.identifier,
        "language": r.language,
        "updated": r.updated,
        "reason": r.reason,
        "match_type": r.match_type,
    }


def result_from_dict(d: Dict[str, Any]) -> ReconcileResult:
    return ReconcileResult(
        identifier=d["identifier"],
        updated=bool(d.get("updated")),
        language=d.get("language"),
        reason=d.get("reason"),
        match_type=d.get("match_type"),
    )


def report_to_dict(report: MergeReport) -> Dict[str, Any]:
    return {
        "name": report.name,
        "output_path": report.output_path,
        "updated": report.updated_count,
        "not_updated": report.not_updated_count,
        "languages": report.updated_languages(),
        "results": [result_to_dict(r) for r in report.results],
    }


def report_from_dict(d: Dict[str, Any]) -> MergeReport:
    return MergeReport(
        name=d.get("name", ""),
        output_path=d.get("output_path"),
        results=[result_from_dict(r) for r in d.get("results", [])],
    )


def batch_to_dict(batch: BatchSummary) -> Dict[str, Any]:
    return {
        "reports": [report_to_dict(r) for r in batch.reports],
        "skipped": list(batch.skipped),
        "failed": dict(batch.failed),
    }


def report_to_json(report: MergeReport | BatchSummary, indent: int = 2) -> str:
    d = batch_to_dict(report) if isinstance(report, BatchSummary) else report_to_dict(report)
    return json.dumps(d, indent=indent, ensure_ascii=False)


def report_to_yaml(report: MergeReport | BatchSummary) -> str:
    d = batch_to_dict(report) if isinstance(report, BatchSummary) else report_to_dict(report)
    return yaml.safe_dump(d, sort_keys=False, allow_unicode=True)


def report_from_yaml(s: str) -> MergeReport:
    return report_from_dict(yaml.safe_load(s))


__all__ = [
    "load_survey",
    "load_survey_string",
    "dump_survey",
    "report_to_dict",
    "report_from_dict",
    "batch_to_dict",
    "report_to_json",
    "report_to_yaml",
    "report_from_yaml",
]
