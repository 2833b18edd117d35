"""
Tests for the XLIFF 1.2 generator.

Exported bundles must parse back with the bundle parser and merge
into a survey without losing anything.
"""

import copy

from surveyl10n.backends.xliff_export import export_survey, generate_xliff, survey_languages
from surveyl10n.bundle_parser import parse_bundle_file, parse_bundle_string, records_from_section
from surveyl10n.examples import build_example_survey
from surveyl10n.reconciler import reconcile
from surveyl10n.walker import collect_localizable_nodes


def test_source_only_bundle():
    content = generate_xliff(build_example_survey(), "child_survey")
    assert content.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    section = parse_bundle_string(content)[0]
    assert section.original == "child_survey.json"
    assert section.source_language == "en-US"
    assert section.target_language is None
    assert len(section.units) == 13
    unit = section.units[0]
    assert unit.id == "title"
    assert unit.resname == "title"
    assert unit.source == "Child Survey"
    assert unit.target is None
    assert unit.context_hint == "child_survey.json"


def test_bilingual_bundle():
    section = parse_bundle_string(generate_xliff(build_example_survey(), "child_survey", target_language="de"))[0]
    assert section.target_language == "de"
    by_resname = {u.resname: u for u in section.units}
    fun = by_resname["school_page.q.schoolfun.title"]
    assert fun.id == "pages[1].elements[0].title"
    assert fun.target == "Macht die Schule Spaß?"
    assert fun.state == "translated"
    missing = by_resname["school_page.q.schoolfun.choice.no.text"]
    assert missing.needs_translation
    assert missing.target == ""


def test_html_survives():
    section = parse_bundle_string(generate_xliff(build_example_survey(), "child_survey", target_language="de"))[0]
    unit = next(u for u in section.units if u.resname == "intro_page.q.welcome.html")
    assert unit.source == "<h3>Welcome!</h3> Thanks for joining."


def test_merge_back_into_fresh_survey():
    """Export de from one survey, import into a copy that lacks de."""
    source = build_example_survey()
    stripped = copy.deepcopy(source)
    for found in collect_localizable_nodes(stripped):
        found.node.pop("de", None)

    section = parse_bundle_string(generate_xliff(source, "child_survey", target_language="de"))[0]
    reconcile(collect_localizable_nodes(stripped), records_from_section(section))
    assert stripped == source


def test_escaped_markup_round_trips():
    """Literal entity text in a translation is not unescaped on the way back in."""
    value = "<p>Tom &amp; Jerry&nbsp;sagen &lt;hallo&gt;</p>"
    source = {"pages": [{"name": "p", "elements": [
        {"type": "html", "name": "note", "html": {"default": "<p>Tom and Jerry</p>", "de": value}},
    ]}]}
    stripped = copy.deepcopy(source)
    del stripped["pages"][0]["elements"][0]["html"]["de"]

    section = parse_bundle_string(generate_xliff(source, "notes", target_language="de"))[0]
    assert section.units[0].target == value
    reconcile(collect_localizable_nodes(stripped), records_from_section(section))
    assert stripped == source


def test_survey_languages():
    assert survey_languages(build_example_survey()) == ["es-CO", "de"]


def test_export_survey(tmp_path):
    paths = export_survey(build_example_survey(), "child_survey", tmp_path)
    assert [p.name for p in paths] == ["child_survey-source.xliff", "child_survey-es-CO.xliff", "child_survey-de.xliff"]
    assert parse_bundle_file(str(paths[1]))[0].target_language == "es-CO"
