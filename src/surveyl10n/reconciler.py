"""
Matcher / reconciler (Translation Records -> Survey Tree).

Applies TranslationRecords onto the live LocalizableNodes of a survey.

Per node and language:
    1. Candidates are the records sharing the node's identifier
    2. One candidate is used as-is; several are tie-broken on source text
    3. The winner is written unless a rule refuses it

Refusal rules:
    - PROTECTED: default / en / en-US are never written
    - NO-CLOBBER: an existing non-empty value that differs from the English
      baseline is a deliberate translation and is left alone

ARCHITECTURAL RULE:
    Every attempt produces exactly one ReconcileResult in the MergeReport
    passed in. Misses and refusals are results, never exceptions.
"""

import logging
import re
from dataclasses import replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from surveyl10n.bundle_parser import decode_entities
from surveyl10n.languages import english_baseline, is_protected, normalize_language_code
from surveyl10n.model import LocalizableNode, MergeReport, ReconcileResult, TranslationRecord

logger = logging.getLogger(__name__)


class MatchStrategy(Enum):
    """How candidates sharing an identifier are chosen between."""
    IDENTIFIER_ONLY = "identifier"                # First candidate wins
    IDENTIFIER_TEXT_TIEBREAK = "identifier-text"  # Source text breaks ties
    NAVIGATION = "navigation"                     # Tie-break + survey navigation buttons


# Outcomes of apply_translation
UPDATED = "updated"
PROTECTED = "protected"
DIVERGENT = "divergent"
UNCHANGED = "unchanged"
EMPTY = "empty"

NO_MATCH_REASON = "No matching translation found"
NO_SUITABLE_MATCH_REASON = "No suitable translation match found"

OUTCOME_REASONS = {
    PROTECTED: "Protected language",
    DIVERGENT: "Existing translation differs from English baseline",
    UNCHANGED: "Already up to date",
    EMPTY: "Empty translation",
}

# English button text -> survey-level property
NAVIGATION_FIELDS = {
    "Start Survey": "startSurveyText",
    "Previous": "pagePrevText",
    "Next": "pageNextText",
    "Finish": "completeText",
}

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_PARAGRAPH_BREAK_RE = re.compile(r"\n{2,}")
_LEADING_MARKUP_RE = re.compile(r"^(?:\s*<[^>]+>)+")


def normalize_for_match(text: Optional[str]) -> str:
    """
    Reduce text to a comparison key.

    <br> becomes a space, other tags are dropped, entities decoded,
    whitespace collapsed, result lowercased.
    """
    if not text:
        return ""
    text = _BR_RE.sub(" ", text)
    text = _TAG_RE.sub("", text)
    text = decode_entities(text).replace("\xa0", " ")
    return _WS_RE.sub(" ", text).strip().lower()


def normalize_html_text(text: str, baseline: str = "") -> str:
    """
    Prepare a translation for an HTML-valued node.

    Blank-line runs become <br><br>, single newlines become spaces. If the
    English baseline opens with markup (e.g. "<h3>") and the translation
    does not, the baseline's leading markup is prepended.
    """
    text = text.replace("\r\n", "\n").strip()
    text = _PARAGRAPH_BREAK_RE.sub("<br><br>", text)
    text = text.replace("\n", " ")
    lead = _LEADING_MARKUP_RE.match(baseline or "")
    if lead and not text.startswith("<"):
        text = lead.group(0).strip() + text
    return text


def align_records(records: Iterable[TranslationRecord], nodes: Iterable[LocalizableNode]) -> List[TranslationRecord]:
    """
    Re-key records whose identifier names no node.

    Tried in order:
        identifier + ".value"     (tables exported before leaf segments existed)
        record path / identifier as a JSON path   (XLIFF unit ids)

    Records that still match nothing are returned unchanged.
    """
    nodes = list(nodes)
    known = {n.identifier for n in nodes}
    by_path = {n.path: n.identifier for n in nodes}

    aligned: List[TranslationRecord] = []
    for record in records:
        identifier = record.identifier
        if identifier not in known:
            if f"{identifier}.value" in known:
                identifier = f"{identifier}.value"
            elif record.path and record.path in by_path:
                identifier = by_path[record.path]
            elif identifier in by_path:
                identifier = by_path[identifier]
        aligned.append(record if identifier == record.identifier else replace(record, identifier=identifier))
    return aligned


def group_records(records: Iterable[TranslationRecord]) -> Dict[str, Dict[str, List[TranslationRecord]]]:
    """identifier -> language -> candidates, in input order."""
    grouped: Dict[str, Dict[str, List[TranslationRecord]]] = {}
    for record in records:
        language = normalize_language_code(record.language)
        grouped.setdefault(record.identifier, {}).setdefault(language, []).append(record)
    return grouped


def select_candidate(
    candidates: List[TranslationRecord],
    node: Dict[str, Any],
    strategy: MatchStrategy = MatchStrategy.IDENTIFIER_TEXT_TIEBREAK,
) -> Tuple[Optional[TranslationRecord], Optional[str]]:
    """
    Pick the record to apply to a node.

    Returns:
        (record, match_type), or (None, None) when no candidate qualifies
    """
    if not candidates:
        return None, None
    if len(candidates) == 1:
        return candidates[0], "single"
    if strategy is MatchStrategy.IDENTIFIER_ONLY:
        return candidates[0], "first"

    wanted = normalize_for_match(english_baseline(node))
    if not wanted:
        return None, None
    for candidate in candidates:
        if normalize_for_match(candidate.source) == wanted:
            return candidate, "exact_text"
    return None, None


def apply_translation(node: Dict[str, Any], language: str, text: Optional[str], html: bool = False) -> str:
    """
    Write one translation into a localizable node, subject to the refusal rules.

    ``html`` nodes get their newlines turned into markup and inherit the
    baseline's leading tags.

    Returns:
        One of UPDATED, PROTECTED, DIVERGENT, UNCHANGED, EMPTY
    """
    language = normalize_language_code(language)
    if is_protected(language):
        return PROTECTED
    if not text or not text.strip():
        return EMPTY

    baseline = english_baseline(node)
    if html:
        text = normalize_html_text(text, baseline)
    else:
        text = text.strip()

    existing = node.get(language)
    if isinstance(existing, str) and existing.strip():
        if existing == text:
            return UNCHANGED
        if existing != baseline:
            return DIVERGENT

    node[language] = text
    return UPDATED


def _record_outcome(report: MergeReport, identifier: str, language: str, outcome: str, match_type: str) -> None:
    report.add(ReconcileResult(
        identifier=identifier,
        updated=outcome == UPDATED,
        language=language,
        reason=OUTCOME_REASONS.get(outcome),
        match_type=match_type,
    ))


def reconcile_navigation(
    survey: Dict[str, Any],
    records: Iterable[TranslationRecord],
    report: MergeReport,
) -> MergeReport:
    """
    Apply ``navigation.*`` records to the survey's button texts.

    The record's English source picks the property (see NAVIGATION_FIELDS).
    Only properties already present as localizable mappings are written.
    """
    for record in records:
        if not record.identifier.startswith("navigation."):
            continue
        field_name = NAVIGATION_FIELDS.get(record.source.strip())
        if not field_name:
            continue
        identifier = f"navigation.{field_name}"
        target = survey.get(field_name)
        if not isinstance(target, dict):
            report.add(ReconcileResult(identifier, False, record.language, NO_MATCH_REASON, "navigation"))
            continue
        outcome = apply_translation(target, record.language, record.target)
        _record_outcome(report, identifier, normalize_language_code(record.language), outcome, "navigation")
    return report


def reconcile(
    nodes: List[LocalizableNode],
    records: Iterable[TranslationRecord],
    strategy: MatchStrategy = MatchStrategy.IDENTIFIER_TEXT_TIEBREAK,
    report: Optional[MergeReport] = None,
    survey: Optional[Dict[str, Any]] = None,
) -> MergeReport:
    """
    Reconcile records against nodes, mutating the nodes in place.

    Args:
        nodes: Output of collect_localizable_nodes (live references)
        records: Translation records from any parser
        strategy: Candidate selection strategy
        report: Accumulator to append to; a new one is created if None
        survey: Survey root, needed only for MatchStrategy.NAVIGATION

    Returns:
        The report, with one result per node/language attempt and one
        "not updated" result per node that had no candidates at all
    """
    if report is None:
        report = MergeReport()
    records = list(records)

    grouped = group_records(align_records(records, nodes))
    for found in nodes:
        by_language = grouped.get(found.identifier)
        if not by_language:
            report.add(ReconcileResult(found.identifier, False, reason=NO_MATCH_REASON))
            continue
        for language, candidates in by_language.items():
            chosen, match_type = select_candidate(candidates, found.node, strategy)
            if chosen is None:
                report.add(ReconcileResult(found.identifier, False, language, NO_SUITABLE_MATCH_REASON))
                continue
            outcome = apply_translation(found.node, language, chosen.target, html=found.is_html)
            _record_outcome(report, found.identifier, language, outcome, match_type)

    if strategy is MatchStrategy.NAVIGATION and survey is not None:
        reconcile_navigation(survey, records, report)

    logger.debug("Reconciled %d node(s): %d updated", len(nodes), report.updated_count)
    return report


__all__ = [
    "MatchStrategy",
    "normalize_for_match",
    "normalize_html_text",
    "align_records",
    "group_records",
    "select_candidate",
    "apply_translation",
    "reconcile",
    "reconcile_navigation",
    "NAVIGATION_FIELDS",
    "NO_MATCH_REASON",
    "NO_SUITABLE_MATCH_REASON",
]
