"""
Survey Translation Merge Toolkit

Moves translation content between multilingual SurveyJS documents and
flat translation sources (CSV tables, XLIFF 1.2 bundles).

PIPELINE:
---------
    1. Extraction      walker       survey tree -> localizable nodes + identifiers
    2. Ingestion       csv_parser   CSV table   -> translation records
                       bundle_parser XLIFF      -> translation records
    3. Reconciliation  reconciler   nodes x records -> mutated survey + report
    4. Persistence     writer       survey -> <name>_updated.json (+ backups)

The English baseline (default / en / en-US) is authoritative.
Nothing in the merge path ever writes it.
"""

__version__ = "0.1.0"
