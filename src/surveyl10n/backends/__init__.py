"""Backends for exporting survey translation content (CSV tables, XLIFF bundles)."""

from .csv_export import extract_rows, generate_csv, save_csv_file
from .xliff_export import export_survey, generate_xliff, save_xliff_file

__all__ = [
    "extract_rows",
    "generate_csv",
    "save_csv_file",
    "generate_xliff",
    "save_xliff_file",
    "export_survey",
]
