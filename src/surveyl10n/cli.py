"""
Command-line interface.

    surveyl10n merge-csv SURVEY TABLE [--language L] [--labels X] [--out P | --inplace] [--dry-run] [--strategy S]
    surveyl10n merge-xliff BUNDLE [--surveys-dir D] [--out-dir D] [--inplace] [--dry-run]
    surveyl10n extract SURVEY [--out P] [--labels X]
    surveyl10n export-xliff SURVEY [--out-dir D] [--source-lang L]
    surveyl10n validate SURVEY...
    surveyl10n backup FILE [--keep N]
    surveyl10n ensure-english SURVEY... [--keep N] [--backups-dir D]

Global options: --config PATH, -v/--verbose.
Exit status is 1 when any input could not be processed, else 0.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from surveyl10n import __version__
from surveyl10n.backends.csv_export import generate_csv, save_csv_file
from surveyl10n.backends.xliff_export import export_survey
from surveyl10n.config import ConfigError, MergeConfig, load_config, merge_cli_args
from surveyl10n.merge import INPUT_ERRORS, merge_bundle, merge_table
from surveyl10n.reconciler import MatchStrategy
from surveyl10n.serialization import load_survey
from surveyl10n.validator import analyze_survey, format_report
from surveyl10n.walker import ensure_english_keys
from surveyl10n.writer import backup_and_prune, write_survey

logger = logging.getLogger("surveyl10n")


def _cmd_merge_csv(args: argparse.Namespace, config: MergeConfig) -> int:
    report = merge_table(
        args.survey,
        args.table,
        config,
        out_path=args.out,
        language=args.language,
        inplace=args.inplace,
        dry_run=args.dry_run,
    )
    print(report.summary())
    return 0


def _cmd_merge_xliff(args: argparse.Namespace, config: MergeConfig) -> int:
    summary = merge_bundle(
        args.bundle,
        config,
        out_dir=args.out_dir,
        inplace=args.inplace,
        dry_run=args.dry_run,
    )
    print(summary.summary())
    return 0 if summary.ok else 1


def _cmd_extract(args: argparse.Namespace, config: MergeConfig) -> int:
    survey = load_survey(args.survey)
    labels = args.labels or config.labels or Path(args.survey).stem
    if args.out:
        path = save_csv_file(survey, args.out, labels)
        logger.info("Wrote %s", path)
    else:
        sys.stdout.write(generate_csv(survey, labels))
    return 0


def _cmd_export_xliff(args: argparse.Namespace, config: MergeConfig) -> int:
    survey = load_survey(args.survey)
    out_dir = args.out_dir or Path(args.survey).parent
    for path in export_survey(survey, Path(args.survey).stem, out_dir, args.source_lang):
        print(path)
    return 0


def _cmd_validate(args: argparse.Namespace, config: MergeConfig) -> int:
    status = 0
    for path in args.surveys:
        try:
            report = analyze_survey(load_survey(path), name=Path(path).name)
        except (OSError, ValueError) as e:
            logger.error("Cannot read %s: %s", path, e)
            status = 1
            continue
        print(format_report(report))
        if not report.ok:
            status = 1
    return status


def _cmd_backup(args: argparse.Namespace, config: MergeConfig) -> int:
    result = backup_and_prune(
        args.file,
        backups_dir=config.backups_dir,
        root_dir=config.surveys_dir,
        keep=config.backup_retention,
    )
    print(f"Backup: {result.backup_path}")
    for path in result.pruned:
        print(f"Pruned: {path}")
    return 0


def _cmd_ensure_english(args: argparse.Namespace, config: MergeConfig) -> int:
    for path in args.surveys:
        survey = load_survey(path)
        changed = ensure_english_keys(survey)
        result = write_survey(
            survey,
            path,
            backup=True,
            backups_dir=config.backups_dir,
            root_dir=config.surveys_dir,
            keep=config.backup_retention,
        )
        print(f"{Path(path).name}: {changed} English key(s) added (backup: {result.backup_path})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="surveyl10n",
        description="Merge translation tables and XLIFF bundles into multilingual SurveyJS documents.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Config file (default: .surveyl10n.yaml / surveyl10n.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    strategies = [s.value for s in MatchStrategy]

    p = sub.add_parser("merge-csv", help="Merge a CSV translation table into a survey")
    p.add_argument("survey")
    p.add_argument("table")
    p.add_argument("--language", help="Destination language for identifier,source,translation tables")
    p.add_argument("--labels", help="Only rows with this labels value")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--out", help="Output path (default: <name>_updated.json)")
    target.add_argument("--inplace", action="store_true", help="Overwrite the survey (backed up first)")
    p.add_argument("--dry-run", action="store_true", help="Report without writing")
    p.add_argument("--strategy", choices=strategies)
    p.add_argument("--normalize-defaults", action="store_true", help="Fill text.default from choice values")
    p.set_defaults(func=_cmd_merge_csv)

    p = sub.add_parser("merge-xliff", help="Merge an XLIFF bundle into the surveys it addresses")
    p.add_argument("bundle")
    p.add_argument("--surveys-dir")
    p.add_argument("--out-dir", help="Write <name>_updated.json files here")
    p.add_argument("--inplace", action="store_true")
    p.add_argument("--dry-run", action="store_true")
    p.add_argument("--strategy", choices=strategies)
    p.set_defaults(func=_cmd_merge_xliff)

    p = sub.add_parser("extract", help="Extract a survey's translations as CSV")
    p.add_argument("survey")
    p.add_argument("--out")
    p.add_argument("--labels")
    p.set_defaults(func=_cmd_extract)

    p = sub.add_parser("export-xliff", help="Export a survey as XLIFF 1.2 bundles")
    p.add_argument("survey")
    p.add_argument("--out-dir")
    p.add_argument("--source-lang", default="en-US")
    p.set_defaults(func=_cmd_export_xliff)

    p = sub.add_parser("validate", help="Check surveys for missing baselines and other issues")
    p.add_argument("surveys", nargs="+")
    p.set_defaults(func=_cmd_validate)

    p = sub.add_parser("backup", help="Back up a file and prune old backups")
    p.add_argument("file")
    p.add_argument("--keep", type=int)
    p.add_argument("--backups-dir")
    p.set_defaults(func=_cmd_backup)

    p = sub.add_parser("ensure-english", help="Seed en / en-US from default on every localizable node")
    p.add_argument("surveys", nargs="+")
    p.add_argument("--keep", type=int)
    p.add_argument("--backups-dir")
    p.set_defaults(func=_cmd_ensure_english)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = merge_cli_args(load_config(args.config), args)
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    try:
        return args.func(args, config)
    except INPUT_ERRORS as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
