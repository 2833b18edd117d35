"""
XLIFF 1.2 bundle parser (Raw Input -> Bundle Sections -> Translation Records).

A bundle holds one <file> section per survey document and/or target
language. Each section declares ``original``, ``source-language`` and an
optional ``target-language``; its trans-units carry ``id``, optional
``resname``, a <source> and an optional <target state="...">.

Parsing uses defusedxml, so entity-expansion and external-entity tricks
in downloaded bundles are rejected. Element names are matched by local name,
so bundles with and without the XLIFF namespace are both accepted.
"""

import logging
import os
import re
from pathlib import Path
from typing import Iterable, List, Optional
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from surveyl10n.languages import normalize_language_code
from surveyl10n.model import BundleSection, BundleUnit, TranslationRecord

logger = logging.getLogger(__name__)


class BundleParseError(Exception):
    """Raised when an XLIFF bundle cannot be parsed."""
    pass


# Languages for which an untranslated unit may fall back to its own source text
DEFAULT_FALLBACK_LANGUAGES = ("en-US", "en-GH")

KNOWN_LOCALES = ("en-US", "en-GH", "de-CH", "de-DE", "es-AR", "es-CO", "fr-CA", "nl-NL")

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_ENTITY_RE = re.compile(r"&(#[xX][0-9a-fA-F]+|#[0-9]+|[a-zA-Z]+);")
_NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": " ",
}
_JSON_HINT_RE = re.compile(r"([A-Za-z0-9_\-]+\.json)")
_ORIGINAL_SUFFIX_RE = re.compile(r"-(source|[a-z]{2}(?:[-_][a-z]{2})?)$", re.IGNORECASE)
_IMPLIED_LOCALE_RE = re.compile(
    r"(?:^|[^a-zA-Z])(" + "|".join(KNOWN_LOCALES) + r")(?:[^a-zA-Z]|$)", re.IGNORECASE
)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _children(elem: Element, name: str) -> Iterable[Element]:
    return (child for child in elem if _local(child.tag) == name)


def _first(elem: Element, name: str) -> Optional[Element]:
    return next(iter(_children(elem, name)), None)


def decode_entities(text: str) -> str:
    """Decode HTML-style named entities plus numeric references in raw markup text."""
    def repl(m: "re.Match[str]") -> str:
        name = m.group(1)
        if name[0] == "#":
            try:
                code = int(name[2:], 16) if name[1] in "xX" else int(name[1:])
                return chr(code)
            except (ValueError, OverflowError):
                return m.group(0)
        return _NAMED_ENTITIES.get(name.lower(), m.group(0))

    return _ENTITY_RE.sub(repl, text)


def decode_text(text: Optional[str]) -> str:
    """
    Strip literal CDATA wrappers and trim.

    Text coming out of the XML parser is already unescaped; a remaining
    "&amp;" or "&lt;" was escaped twice in the bundle and is kept literally.
    """
    if text is None:
        return ""
    return _CDATA_RE.sub(r"\1", text).strip()


def _element_text(elem: Optional[Element]) -> Optional[str]:
    if elem is None:
        return None
    return decode_text("".join(elem.itertext()))


def _context_hint(unit_elem: Element) -> Optional[str]:
    for ctx in unit_elem.iter():
        if _local(ctx.tag) != "context":
            continue
        m = _JSON_HINT_RE.search("".join(ctx.itertext()))
        if m:
            return os.path.basename(m.group(1))
    return None


def implied_language_from_filename(filename: str) -> Optional[str]:
    """Pick up a locale embedded in a bundle filename, e.g. ``en-GH-surveys.xliff``."""
    m = _IMPLIED_LOCALE_RE.search(os.path.basename(filename))
    return normalize_language_code(m.group(1)) if m else None


def parse_bundle_string(content: str, implied_language: Optional[str] = None) -> List[BundleSection]:
    """
    Parse XLIFF content into BundleSections.

    Args:
        content: XLIFF document as string
        implied_language: Used when a section's target-language is missing or a bare "en"

    Returns:
        One BundleSection per <file> element, in document order

    Raises:
        BundleParseError: If the document is not well-formed XML
    """
    # &nbsp; is an HTML entity, not an XML one
    content = content.replace("&nbsp;", "&#160;")
    try:
        root = ET.fromstring(content.encode("utf-8"))
    except ET.ParseError as e:
        raise BundleParseError(f"Malformed XLIFF: {e}")
    except DefusedXmlException as e:
        raise BundleParseError(f"Rejected XLIFF: {e!r}")

    file_elems = [root] if _local(root.tag) == "file" else [e for e in root.iter() if _local(e.tag) == "file"]

    sections: List[BundleSection] = []
    for file_elem in file_elems:
        target_language = normalize_language_code(file_elem.get("target-language"))
        if (not target_language or target_language == "en") and implied_language:
            target_language = normalize_language_code(implied_language)

        section = BundleSection(
            original=file_elem.get("original"),
            source_language=normalize_language_code(file_elem.get("source-language")),
            target_language=target_language or None,
        )

        for unit_elem in file_elem.iter():
            if _local(unit_elem.tag) != "trans-unit":
                continue
            target_elem = _first(unit_elem, "target")
            section.units.append(BundleUnit(
                id=unit_elem.get("id", ""),
                resname=unit_elem.get("resname") or None,
                source=_element_text(_first(unit_elem, "source")) or "",
                target=_element_text(target_elem),
                state=target_elem.get("state") if target_elem is not None else None,
                context_hint=_context_hint(unit_elem),
            ))

        logger.debug(
            "Section %s (%s): %d unit(s)", section.original, section.target_language, len(section.units)
        )
        sections.append(section)

    return sections


def parse_bundle_file(filepath: str) -> List[BundleSection]:
    """
    Parse an XLIFF file. The filename may imply the target language.

    Raises:
        FileNotFoundError: If file doesn't exist
        BundleParseError: If parsing fails
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"XLIFF file not found: {filepath}")

    return parse_bundle_string(content, implied_language=implied_language_from_filename(filepath))


def records_from_section(
    section: BundleSection,
    fallback_languages: Iterable[str] = DEFAULT_FALLBACK_LANGUAGES,
    units: Optional[Iterable[BundleUnit]] = None,
) -> List[TranslationRecord]:
    """
    Turn a section's approved units into TranslationRecords.

    A unit with no target text, or whose target state is needs-translation,
    is not an approved translation. For a language in ``fallback_languages``
    the unit's own source text is used instead (an untouched English copy);
    for every other language the unit yields nothing.
    """
    language = section.target_language
    if not language:
        return []
    fallback = {normalize_language_code(code) for code in fallback_languages}

    records: List[TranslationRecord] = []
    for position, unit in enumerate(section.units if units is None else units, start=1):
        text = unit.target or ""
        if not text or unit.needs_translation:
            if language not in fallback:
                continue
            text = unit.source
        if not text:
            continue
        records.append(TranslationRecord(
            identifier=unit.resname or unit.id,
            language=language,
            source=unit.source,
            target=text,
            row_index=position,
            path=unit.id or None,
            state=unit.state,
        ))
    return records


def resolve_destination(section: BundleSection, unit: Optional[BundleUnit], surveys_dir: str) -> Optional[Path]:
    """
    Work out which survey JSON a unit belongs to.

    The unit's <context> hint wins; otherwise the section's ``original``
    attribute is reduced to a survey name:
        /surveys/parent_survey_child-source.xliff -> parent_survey_child.json
        child_survey-en-US.xliff                   -> child_survey.json

    Returns None for item-bank / spreadsheet originals or when nothing is declared.
    """
    if unit is not None and unit.context_hint:
        return Path(surveys_dir) / unit.context_hint

    if not section.original:
        return None
    base = os.path.basename(section.original.strip())
    if re.search(r"item-bank", base, re.IGNORECASE) or base.lower().endswith(".xlsx"):
        return None
    name = re.sub(r"\.(xliff|json)$", "", base, flags=re.IGNORECASE)
    name = _ORIGINAL_SUFFIX_RE.sub("", name)
    if not name:
        return None
    return Path(surveys_dir) / f"{name}.json"


__all__ = [
    "parse_bundle_string",
    "parse_bundle_file",
    "records_from_section",
    "resolve_destination",
    "implied_language_from_filename",
    "decode_text",
    "decode_entities",
    "BundleParseError",
    "DEFAULT_FALLBACK_LANGUAGES",
]
