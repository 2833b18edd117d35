"""
CSV Parser for translation tables (Raw Input -> Translation Records).

Converts Crowdin/GitHub translation exports into TranslationRecord objects.

CSV Formats:
    identifier, labels, <language columns...>      (multi-language)
    identifier, source, translation                 (single-language)

Syntax Notes:
    - Standard CSV quoting: "" escapes a quote, commas/newlines allowed inside quotes
    - Language columns may be spelled es_co, es-CO, ES-CO; all are canonicalized
    - Blank lines are tolerated and produce no row
"""

import csv
import warnings
from io import StringIO
from typing import Dict, List, Optional, Sequence

from surveyl10n.languages import is_language_key, normalize_language_code
from surveyl10n.model import TranslationRecord


class CSVParseError(Exception):
    """Raised when CSV parsing fails."""
    pass


META_COLUMNS = frozenset({"identifier", "labels", "source", "translation", "context", "elementName"})

# Where a multi-language row's English source text comes from, first non-empty wins
SOURCE_COLUMNS = ("source", "en-US", "en", "default")


def parse_csv_string(csv_content: str) -> List[Dict[str, str]]:
    """
    Parse CSV content into rows keyed by header name.

    Args:
        csv_content: CSV as string; the first non-blank line is the header

    Returns:
        List of dicts, one per data row. Missing trailing fields are ''.
        An input with no non-blank lines yields [].
    """
    if csv_content.startswith("\ufeff"):
        csv_content = csv_content[1:]

    reader = csv.reader(StringIO(csv_content))
    header: Optional[List[str]] = None
    rows: List[Dict[str, str]] = []

    for line_num, fields in enumerate(reader, start=1):
        if not fields:
            continue  # blank line
        if header is None:
            if len(fields) == 1 and not fields[0].strip():
                continue
            header = [h.strip() for h in fields]
            continue

        if len(fields) > len(header):
            warnings.warn(
                f"Row at line {line_num} has {len(fields)} fields, header has {len(header)}; extra fields dropped",
                UserWarning,
            )
        row = {}
        for idx, name in enumerate(header):
            row[name] = fields[idx] if idx < len(fields) else ""
        rows.append(row)

    return rows


def parse_csv_file(filepath: str) -> List[Dict[str, str]]:
    """
    Parse CSV file into rows.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    try:
        with open(filepath, "r", encoding="utf-8", newline="") as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"CSV file not found: {filepath}")

    return parse_csv_string(content)


def rows_to_csv(header: Sequence[str], rows: Sequence[Dict[str, str]]) -> str:
    """Serialize rows back to CSV text with minimal quoting."""
    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(list(header))
    for row in rows:
        writer.writerow([row.get(name, "") for name in header])
    return out.getvalue()


def language_columns(header: Sequence[str]) -> Dict[str, str]:
    """Map raw header names of language columns to canonical codes."""
    columns = {}
    for name in header:
        if name in META_COLUMNS:
            continue
        if is_language_key(name):
            columns[name] = normalize_language_code(name)
    return columns


def _row_source(row: Dict[str, str], lang_columns: Dict[str, str]) -> str:
    if row.get("source", "").strip():
        return row["source"].strip()
    by_code = {code: raw for raw, code in lang_columns.items()}
    for code in SOURCE_COLUMNS[1:]:
        raw = by_code.get(code)
        if raw and row.get(raw, "").strip():
            return row[raw].strip()
    return ""


def records_from_rows(
    rows: Sequence[Dict[str, str]],
    language: Optional[str] = None,
    labels: Optional[str] = None,
) -> List[TranslationRecord]:
    """
    Flatten table rows into TranslationRecords, one per non-empty translation cell.

    Args:
        rows: Output of parse_csv_string / parse_csv_file
        language: Destination language for identifier,source,translation tables
        labels: If given, keep only rows whose ``labels`` cell matches (case-insensitive)

    Raises:
        CSVParseError: If the identifier column is missing, or a single-language
            table is given without a destination language
    """
    if not rows:
        return []

    header = list(rows[0].keys())
    if "identifier" not in header:
        raise CSVParseError(f"Missing required column: 'identifier' (columns: {header})")

    single_language = "translation" in header
    if single_language and not language:
        raise CSVParseError("Table has a 'translation' column; a destination language is required")

    all_columns = {} if single_language else language_columns(header)
    lang_columns = all_columns
    if language and not single_language:
        wanted = normalize_language_code(language)
        lang_columns = {raw: code for raw, code in all_columns.items() if code == wanted}

    records: List[TranslationRecord] = []
    for row_num, row in enumerate(rows, start=1):
        if labels is not None and row.get("labels", "").strip().lower() != labels.strip().lower():
            continue

        identifier = row.get("identifier", "").strip() or f"#{row_num}"

        if single_language:
            target = row.get("translation", "").strip()
            if target:
                records.append(TranslationRecord(
                    identifier=identifier,
                    language=normalize_language_code(language),
                    source=row.get("source", "").strip(),
                    target=target,
                    row_index=row_num,
                ))
            continue

        source = _row_source(row, all_columns)
        for raw, code in lang_columns.items():
            target = row.get(raw, "").strip()
            if not target:
                continue
            records.append(TranslationRecord(
                identifier=identifier,
                language=code,
                source=source,
                target=target,
                row_index=row_num,
            ))

    return records


def parse_translation_table(
    filepath: str,
    language: Optional[str] = None,
    labels: Optional[str] = None,
) -> List[TranslationRecord]:
    """Read a translation table file straight into records."""
    return records_from_rows(parse_csv_file(filepath), language=language, labels=labels)


__all__ = [
    "parse_csv_string",
    "parse_csv_file",
    "rows_to_csv",
    "language_columns",
    "records_from_rows",
    "parse_translation_table",
    "CSVParseError",
]
