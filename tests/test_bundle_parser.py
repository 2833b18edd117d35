"""
Tests for the XLIFF bundle parser.
"""

from pathlib import Path

import pytest
from surveyl10n.bundle_parser import (
    BundleParseError,
    decode_entities,
    decode_text,
    implied_language_from_filename,
    parse_bundle_file,
    parse_bundle_string,
    records_from_section,
    resolve_destination,
)
from surveyl10n.model import BundleSection, BundleUnit

BUNDLE = """<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file original="child_survey.json" source-language="en-US" target-language="es_co" datatype="plaintext">
    <body>
      <trans-unit id="pages[0].elements[0].title" resname="intro.q.age.title">
        <source>What is your age?</source>
        <target state="translated">&#191;Cu&#225;l es tu edad?</target>
      </trans-unit>
      <trans-unit id="pages[0].elements[1].title" resname="intro.q.fun.title">
        <source><![CDATA[Fun &amp; games]]></source>
        <target state="needs-translation"></target>
      </trans-unit>
      <trans-unit id="3">
        <source>Untargeted</source>
      </trans-unit>
    </body>
  </file>
  <file original="parent_survey-source.xliff" source-language="en-US" target-language="de">
    <body>
      <trans-unit id="p.title">
        <source>Parent&nbsp;Survey</source>
        <target>Eltern&nbsp;Umfrage</target>
        <context-group><context context-type="sourcefile">surveys/parent_survey.json</context></context-group>
      </trans-unit>
    </body>
  </file>
</xliff>
"""


class TestParseBundle:
    """Test section and unit extraction."""

    def test_sections(self):
        sections = parse_bundle_string(BUNDLE)
        assert len(sections) == 2
        assert sections[0].original == "child_survey.json"
        assert sections[0].source_language == "en-US"
        assert sections[0].target_language == "es-CO"
        assert sections[1].target_language == "de"

    def test_units(self):
        units = parse_bundle_string(BUNDLE)[0].units
        assert [u.id for u in units] == ["pages[0].elements[0].title", "pages[0].elements[1].title", "3"]
        assert units[0].resname == "intro.q.age.title"
        assert units[0].target == "¿Cuál es tu edad?"
        assert units[0].state == "translated"
        assert units[1].source == "Fun &amp; games"
        assert units[1].needs_translation
        assert units[2].target is None
        assert units[2].resname is None

    def test_nbsp_and_context(self):
        unit = parse_bundle_string(BUNDLE)[1].units[0]
        assert unit.source == "Parent\u00a0Survey"
        assert unit.target == "Eltern\u00a0Umfrage"
        assert unit.context_hint == "parent_survey.json"

    def test_without_namespace(self):
        content = '<xliff version="1.2"><file original="a.json" source-language="en-US"><body>' \
                  '<trans-unit id="x"><source>Hi</source></trans-unit></body></file></xliff>'
        sections = parse_bundle_string(content)
        assert sections[0].target_language is None
        assert sections[0].units[0].source == "Hi"

    def test_malformed(self):
        with pytest.raises(BundleParseError, match="Malformed"):
            parse_bundle_string("<xliff><file></xliff>")

    def test_entity_expansion_rejected(self):
        content = (
            '<?xml version="1.0"?>\n'
            '<!DOCTYPE xliff [<!ENTITY lol "lol"><!ENTITY lol2 "&lol;&lol;&lol;">]>\n'
            '<xliff><file original="a.json" source-language="en-US"><body>'
            '<trans-unit id="x"><source>&lol2;</source></trans-unit></body></file></xliff>'
        )
        with pytest.raises(BundleParseError, match="Rejected"):
            parse_bundle_string(content)

    def test_implied_language(self):
        content = '<xliff><file original="a.json" source-language="en-US" target-language="en"><body/></file></xliff>'
        sections = parse_bundle_string(content, implied_language="en_gh")
        assert sections[0].target_language == "en-GH"

    def test_implied_language_from_filename(self):
        assert implied_language_from_filename("exports/en-GH-surveys.xliff") == "en-GH"
        assert implied_language_from_filename("surveys.xliff") is None

    def test_parse_file(self, tmp_path):
        path = tmp_path / "en-GH-surveys.xliff"
        path.write_text(
            '<xliff><file original="a.json" source-language="en-US"><body/></file></xliff>', encoding="utf-8"
        )
        assert parse_bundle_file(str(path))[0].target_language == "en-GH"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_bundle_file(str(tmp_path / "missing.xliff"))


class TestDecodeText:
    def test_parsed_text_not_unescaped_again(self):
        assert decode_text("  a &amp; b &lt;i&gt; ") == "a &amp; b &lt;i&gt;"

    def test_decode_entities(self):
        assert decode_entities("a &amp; b &lt;i&gt; &quot;q&quot; &apos;s&apos; &#65;&#x42;") == "a & b <i> \"q\" 's' AB"

    def test_cdata_wrapper(self):
        assert decode_text("<![CDATA[Hello]]>") == "Hello"

    def test_unknown_entity_kept(self):
        assert decode_entities("&bogus;") == "&bogus;"


class TestRecordsFromSection:
    """Approved units become records; unapproved ones only fall back for selected languages."""

    def _section(self, language):
        return BundleSection(
            original="child_survey.json",
            source_language="en-US",
            target_language=language,
            units=[
                BundleUnit(id="pages[0].elements[0].title", resname="intro.q.age.title",
                           source="What is your age?", target="", state="needs-translation"),
                BundleUnit(id="pages[0].elements[1].title", source="Fun", target="Spass", state="translated"),
            ],
        )

    def test_needs_translation_skipped(self):
        records = records_from_section(self._section("de"))
        assert [(r.identifier, r.target) for r in records] == [("pages[0].elements[1].title", "Spass")]

    def test_fallback_language_uses_source(self):
        section = parse_bundle_string(
            '<xliff><file original="child_survey.json" source-language="en-US" target-language="en_gh"><body>'
            '<trans-unit id="pages[0].elements[0].title" resname="intro.q.age.title">'
            '<source>What is your age?</source><target state="needs-translation"></target>'
            '</trans-unit></body></file></xliff>'
        )[0]
        records = records_from_section(section)
        assert len(records) == 1
        assert records[0].language == "en-GH"
        assert records[0].target == "What is your age?"
        assert records[0].identifier == "intro.q.age.title"
        assert records[0].path == "pages[0].elements[0].title"

    def test_fallback_configurable(self):
        assert len(records_from_section(self._section("de"), fallback_languages=["de"])) == 2

    def test_no_target_language(self):
        assert records_from_section(self._section(None)) == []


class TestResolveDestination:
    def test_context_hint_wins(self):
        section = BundleSection(original="other.json")
        unit = BundleUnit(id="1", context_hint="child_survey.json")
        assert resolve_destination(section, unit, "surveys") == Path("surveys") / "child_survey.json"

    @pytest.mark.parametrize("original,expected", [
        ("/surveys/parent_survey_child-source.xliff", "parent_survey_child.json"),
        ("child_survey-en-US.xliff", "child_survey.json"),
        ("child_survey.json", "child_survey.json"),
    ])
    def test_from_original(self, original, expected):
        assert resolve_destination(BundleSection(original=original), None, "s") == Path("s") / expected

    @pytest.mark.parametrize("original", ["item-bank-en.xliff", "translations.xlsx", None])
    def test_unresolvable(self, original):
        assert resolve_destination(BundleSection(original=original), None, "s") is None
