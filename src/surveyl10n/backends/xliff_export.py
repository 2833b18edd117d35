"""
XLIFF 1.2 generator for surveys.

Emits bundles the bundle_parser reads back:

    <file original="<survey>.json" source-language="en-US" [target-language="xx-YY"]>
      <trans-unit id="<JSON path>" resname="<identifier>">
        <source>English baseline</source>
        <target state="translated">Translation</target>
      </trans-unit>

Supports two kinds of output:
    - source-only: no target-language, no <target> elements
    - bilingual: one bundle per target language; nodes lacking that
      language get an empty <target state="needs-translation">
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from surveyl10n.languages import english_baseline, is_language_key, is_protected, normalize_language_code
from surveyl10n.walker import collect_localizable_nodes

logger = logging.getLogger(__name__)

XLIFF_NAMESPACE = "urn:oasis:names:tc:xliff:document:1.2"


def _target_text(node: Dict[str, Any], language: str) -> str:
    for key, value in node.items():
        if is_language_key(key) and normalize_language_code(key) == language and isinstance(value, str):
            return value
    return ""


def survey_languages(survey: Dict[str, Any]) -> List[str]:
    """Non-protected languages present anywhere in the survey, first-seen order."""
    seen: List[str] = []
    for found in collect_localizable_nodes(survey):
        for key in found.node:
            if not is_language_key(key):
                continue
            code = normalize_language_code(key)
            if not is_protected(code) and code not in seen:
                seen.append(code)
    return seen


def generate_xliff(
    survey: Dict[str, Any],
    survey_name: str,
    source_language: str = "en-US",
    target_language: Optional[str] = None,
) -> str:
    """
    Render one XLIFF 1.2 document for a survey.

    Args:
        survey: Survey document
        survey_name: Name without extension; ``original`` becomes "<name>.json"
        source_language: Language of <source> text
        target_language: None for a source-only bundle
    """
    target_language = normalize_language_code(target_language) if target_language else None

    root = ET.Element("xliff", {"version": "1.2", "xmlns": XLIFF_NAMESPACE})
    file_attrs = {
        "original": f"{survey_name}.json",
        "source-language": normalize_language_code(source_language),
        "datatype": "plaintext",
    }
    if target_language:
        file_attrs["target-language"] = target_language
    file_elem = ET.SubElement(root, "file", file_attrs)
    body = ET.SubElement(file_elem, "body")

    count = 0
    for found in collect_localizable_nodes(survey):
        source = english_baseline(found.node)
        if not source:
            continue
        unit = ET.SubElement(body, "trans-unit", {"id": found.path, "resname": found.identifier})
        ET.SubElement(unit, "source").text = source
        if target_language:
            text = _target_text(found.node, target_language)
            target = ET.SubElement(unit, "target", {"state": "translated" if text else "needs-translation"})
            target.text = text
        group = ET.SubElement(unit, "context-group", {"purpose": "location"})
        ET.SubElement(group, "context", {"context-type": "sourcefile"}).text = f"{survey_name}.json"
        count += 1

    logger.debug("XLIFF for %s (%s): %d unit(s)", survey_name, target_language or "source", count)
    ET.indent(root, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def save_xliff_file(content: str, filepath: Union[str, Path]) -> Path:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(content)
    return filepath


def export_survey(
    survey: Dict[str, Any],
    survey_name: str,
    out_dir: Union[str, Path],
    source_language: str = "en-US",
    target_languages: Optional[List[str]] = None,
) -> List[Path]:
    """
    Write a source-only bundle plus one bilingual bundle per target language.

    Files:
        <out_dir>/<name>-source.xliff
        <out_dir>/<name>-<lang>.xliff

    Returns:
        Paths written, source bundle first
    """
    out_dir = Path(out_dir)
    written = [
        save_xliff_file(
            generate_xliff(survey, survey_name, source_language),
            out_dir / f"{survey_name}-source.xliff",
        )
    ]
    languages = target_languages if target_languages is not None else survey_languages(survey)
    for language in languages:
        written.append(save_xliff_file(
            generate_xliff(survey, survey_name, source_language, language),
            out_dir / f"{survey_name}-{normalize_language_code(language)}.xliff",
        ))
    return written


__all__ = ["generate_xliff", "save_xliff_file", "export_survey", "survey_languages"]
