"""
Merge orchestration: parsers -> walker -> reconciler -> writer.

Each entry point reads its survey document(s) once, mutates them in
memory and writes each result exactly once.

    merge_table   one survey + one translation table      -> MergeReport
    merge_bundle  one XLIFF bundle, many survey documents -> BatchSummary
    merge_tables  many (survey, table) pairs              -> BatchSummary

Input problems with one document are logged and counted; they never stop
the remaining documents of a batch.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from surveyl10n.bundle_parser import (
    BundleParseError,
    parse_bundle_file,
    records_from_section,
    resolve_destination,
)
from surveyl10n.config import MergeConfig
from surveyl10n.csv_parser import CSVParseError, parse_translation_table
from surveyl10n.model import BatchSummary, BundleUnit, MergeReport, TranslationRecord
from surveyl10n.reconciler import reconcile
from surveyl10n.serialization import load_survey
from surveyl10n.walker import (
    collect_localizable_nodes,
    normalize_defaults_from_values,
    normalize_language_keys,
)
from surveyl10n.writer import default_output_path, write_survey

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Per-file errors a batch run records and moves past
INPUT_ERRORS = (CSVParseError, BundleParseError, OSError, ValueError)


def _apply_records(
    survey_path: Path,
    records: List[TranslationRecord],
    config: MergeConfig,
    out_path: Optional[Path],
    inplace: bool,
    dry_run: bool,
) -> MergeReport:
    survey = load_survey(str(survey_path))
    renamed = normalize_language_keys(survey)
    if renamed:
        logger.debug("%s: canonicalized %d language key(s)", survey_path.name, renamed)
    if config.normalize_defaults:
        filled = normalize_defaults_from_values(survey)
        logger.debug("%s: filled %d default text(s) from values", survey_path.name, filled)

    nodes = collect_localizable_nodes(survey)
    report = MergeReport(name=survey_path.name)
    reconcile(nodes, records, config.strategy, report, survey=survey)

    dest = out_path or default_output_path(survey_path, inplace)
    if dry_run:
        logger.info("%s: dry run, %d update(s) not written", survey_path.name, report.updated_count)
        return report

    write_survey(
        survey,
        dest,
        backup=dest.resolve() == survey_path.resolve(),
        backups_dir=config.backups_dir,
        root_dir=config.surveys_dir,
        keep=config.backup_retention,
    )
    report.output_path = str(dest)
    return report


def merge_table(
    survey_path: PathLike,
    table_path: PathLike,
    config: Optional[MergeConfig] = None,
    out_path: Optional[PathLike] = None,
    language: Optional[str] = None,
    inplace: bool = False,
    dry_run: bool = False,
) -> MergeReport:
    """
    Merge one translation table into one survey document.

    Args:
        survey_path: Survey JSON to read
        table_path: CSV translation table
        config: Run configuration (defaults if None)
        out_path: Destination; default is <name>_updated.json
        language: Destination language for identifier,source,translation tables
        inplace: Overwrite the survey itself (backed up first)
        dry_run: Reconcile and report without writing

    Raises:
        FileNotFoundError, CSVParseError, ValueError: On unreadable input
    """
    config = config or MergeConfig()
    survey_path = Path(survey_path)
    records = parse_translation_table(str(table_path), language=language, labels=config.labels)
    logger.info("%s: %d translation record(s) from %s", survey_path.name, len(records), Path(table_path).name)
    return _apply_records(
        survey_path, records, config, Path(out_path) if out_path else None, inplace, dry_run
    )


def group_bundle_records(
    bundle_path: PathLike,
    config: MergeConfig,
) -> Tuple[Dict[Path, List[TranslationRecord]], List[str]]:
    """
    Parse a bundle and group its records by destination survey document.

    Returns:
        (destination -> records in bundle order, unresolved section names)
    """
    sections = parse_bundle_file(str(bundle_path))
    grouped: Dict[Path, List[TranslationRecord]] = {}
    unresolved: List[str] = []

    for section in sections:
        by_dest: Dict[Path, List[BundleUnit]] = {}
        for unit in section.units:
            dest = resolve_destination(section, unit, config.surveys_dir)
            if dest is None:
                continue
            by_dest.setdefault(dest, []).append(unit)
        if not by_dest:
            name = section.original or "<unnamed section>"
            logger.warning("No destination survey for section %s; skipped", name)
            unresolved.append(name)
            continue
        for dest, units in by_dest.items():
            records = records_from_section(section, config.source_fallback_languages, units=units)
            grouped.setdefault(dest, []).extend(records)

    return grouped, unresolved


def merge_bundle(
    bundle_path: PathLike,
    config: Optional[MergeConfig] = None,
    out_dir: Optional[PathLike] = None,
    inplace: bool = False,
    dry_run: bool = False,
) -> BatchSummary:
    """
    Merge an XLIFF bundle into every survey document it addresses.

    All sections for one document are applied to a single in-memory copy,
    which is written once. Destinations that do not exist are logged and
    skipped.

    Raises:
        FileNotFoundError, BundleParseError: If the bundle itself is unreadable
    """
    config = config or MergeConfig()
    grouped, unresolved = group_bundle_records(bundle_path, config)
    summary = BatchSummary(skipped=list(unresolved))

    for dest, records in grouped.items():
        if not dest.exists():
            logger.warning("Survey %s not found; skipped", dest)
            summary.skipped.append(str(dest))
            continue
        out_path = None
        if out_dir is not None and not inplace:
            out_path = Path(out_dir) / default_output_path(dest).name
        try:
            summary.reports.append(_apply_records(dest, records, config, out_path, inplace, dry_run))
        except INPUT_ERRORS as e:
            logger.error("Failed to merge into %s: %s", dest, e)
            summary.failed[str(dest)] = str(e)

    return summary


def merge_tables(
    pairs: Iterable[Tuple[PathLike, PathLike]],
    config: Optional[MergeConfig] = None,
    language: Optional[str] = None,
    out_dir: Optional[PathLike] = None,
    inplace: bool = False,
    dry_run: bool = False,
) -> BatchSummary:
    """Run merge_table over (survey, table) pairs, recording failures per file."""
    config = config or MergeConfig()
    summary = BatchSummary()
    for survey_path, table_path in pairs:
        out_path = None
        if out_dir is not None and not inplace:
            out_path = Path(out_dir) / default_output_path(survey_path).name
        try:
            summary.reports.append(
                merge_table(survey_path, table_path, config, out_path, language, inplace, dry_run)
            )
        except INPUT_ERRORS as e:
            logger.error("Failed to merge %s into %s: %s", table_path, survey_path, e)
            summary.failed[str(survey_path)] = str(e)
    return summary


__all__ = [
    "merge_table",
    "merge_bundle",
    "merge_tables",
    "group_bundle_records",
]
