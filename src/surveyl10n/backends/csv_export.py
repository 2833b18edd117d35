"""
Translation table generator for surveys.

Converts a survey document into a multi-language CSV table that the
csv_parser reads back, one row per localizable node:

    identifier,labels,en,en-US,<other languages...>

Column rules:
    - "default" is exported under "en"
    - "en" and "en-US" are always present; en-US is seeded from en/default
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from surveyl10n.csv_parser import rows_to_csv
from surveyl10n.languages import is_language_key, normalize_language_code
from surveyl10n.walker import collect_localizable_nodes

ENGLISH_COLUMNS = ["en", "en-US"]


def _languages(nodes) -> List[str]:
    seen: List[str] = []
    for found in nodes:
        for key in found.node:
            if not is_language_key(key):
                continue
            code = "en" if key == "default" else normalize_language_code(key)
            if code not in seen and code not in ENGLISH_COLUMNS:
                seen.append(code)
    return seen


def _cell(node: Dict[str, Any], key: str) -> str:
    value = node.get(key)
    return value if isinstance(value, str) else ""


def _value_for(node: Dict[str, Any], language: str) -> str:
    if language == "en":
        return _cell(node, "en") or _cell(node, "default")
    if language == "en-US":
        return _cell(node, "en-US") or _cell(node, "en") or _cell(node, "default")
    for key in node:
        if is_language_key(key) and key != "default" and normalize_language_code(key) == language:
            return _cell(node, key)
    return ""


def extract_rows(survey: Dict[str, Any], labels: str = "") -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Flatten a survey into table rows.

    Returns:
        (header, rows). Nodes without any text are left out.
    """
    nodes = collect_localizable_nodes(survey)
    languages = ENGLISH_COLUMNS + _languages(nodes)
    header = ["identifier", "labels"] + languages

    rows = []
    for found in nodes:
        row = {"identifier": found.identifier, "labels": labels}
        for language in languages:
            row[language] = _value_for(found.node, language)
        if any(row[language] for language in languages):
            rows.append(row)
    return header, rows


def generate_csv(survey: Dict[str, Any], labels: str = "") -> str:
    """Render a survey's translation content as CSV text."""
    header, rows = extract_rows(survey, labels)
    return rows_to_csv(header, rows)


def save_csv_file(survey: Dict[str, Any], filepath: Union[str, Path], labels: str = "") -> Path:
    """
    Generate the CSV table and save it to a file.

    Returns:
        Path written
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8", newline="") as f:
        f.write(generate_csv(survey, labels))
    return filepath


__all__ = ["extract_rows", "generate_csv", "save_csv_file"]
