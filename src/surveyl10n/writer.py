"""
Writer and backup rotation (Survey Tree -> Disk).

Output convention:
    surveys/child_survey.json -> surveys/child_survey_updated.json
    (in place only when explicitly asked for)

Backups:
    <backups_dir>/<path relative to root_dir, separators -> "__">.backup.<YYYY-MM-DD_HH-MM-SS>
    Example: backups/nested__child_survey.json.backup.2024-09-01_12-30-00

ARCHITECTURAL RULE:
    Timestamps sort lexicographically in time order, so pruning keeps the
    lexicographically greatest names.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from surveyl10n.serialization import dump_survey

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_RETENTION = 3
BACKUP_MARKER = ".backup."
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

PathLike = Union[str, Path]


@dataclass
class BackupResult:
    """Where the backup went and which older backups were removed."""
    backup_path: Path
    pruned: List[Path] = field(default_factory=list)


def default_output_path(source: PathLike, inplace: bool = False) -> Path:
    """``foo.json`` -> ``foo_updated.json`` (or ``foo.json`` itself when in place)."""
    source = Path(source)
    if inplace:
        return source
    return source.with_name(f"{source.stem}_updated{source.suffix or '.json'}")


def backup_base_name(path: PathLike, root_dir: Optional[PathLike] = None) -> str:
    """Flatten ``path`` relative to ``root_dir`` into a single file name."""
    path = Path(path).resolve()
    rel = Path(path.name)
    if root_dir is not None:
        try:
            rel = path.relative_to(Path(root_dir).resolve())
        except ValueError:
            pass
    return "__".join(rel.parts)


def default_backups_dir(path: PathLike) -> Path:
    return Path(path).resolve().parent / "backups"


def write_backup(
    path: PathLike,
    backups_dir: Optional[PathLike] = None,
    root_dir: Optional[PathLike] = None,
    timestamp: Optional[str] = None,
) -> Path:
    """
    Copy ``path`` into the backups directory under a timestamped name.

    Raises:
        FileNotFoundError: If ``path`` doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cannot back up missing file: {path}")
    backups = Path(backups_dir) if backups_dir else default_backups_dir(path)
    backups.mkdir(parents=True, exist_ok=True)

    stamp = timestamp or datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)
    name = f"{backup_base_name(path, root_dir)}{BACKUP_MARKER}{stamp}"
    dest = backups / name
    counter = 1
    while dest.exists():
        dest = backups / f"{name}_{counter:02d}"
        counter += 1

    shutil.copyfile(path, dest)
    logger.debug("Backed up %s -> %s", path, dest)
    return dest


def list_backups(
    path: PathLike,
    backups_dir: Optional[PathLike] = None,
    root_dir: Optional[PathLike] = None,
) -> List[Path]:
    """Backups of ``path``, newest first."""
    backups = Path(backups_dir) if backups_dir else default_backups_dir(path)
    if not backups.is_dir():
        return []
    prefix = backup_base_name(path, root_dir) + BACKUP_MARKER
    names = sorted((f for f in os.listdir(backups) if f.startswith(prefix)), reverse=True)
    return [backups / f for f in names]


def prune_backups(
    path: PathLike,
    backups_dir: Optional[PathLike] = None,
    root_dir: Optional[PathLike] = None,
    keep: int = DEFAULT_BACKUP_RETENTION,
) -> List[Path]:
    """
    Delete all but the ``keep`` newest backups of ``path``.

    Returns:
        Paths that were deleted
    """
    existing = list_backups(path, backups_dir, root_dir)
    doomed = existing[max(keep, 0):]
    deleted = []
    for backup in doomed:
        try:
            backup.unlink()
        except OSError as e:
            logger.warning("Could not delete backup %s: %s", backup, e)
            continue
        deleted.append(backup)
    if deleted:
        logger.debug("Pruned %d backup(s) of %s", len(deleted), path)
    return deleted


def backup_and_prune(
    path: PathLike,
    backups_dir: Optional[PathLike] = None,
    root_dir: Optional[PathLike] = None,
    keep: int = DEFAULT_BACKUP_RETENTION,
) -> BackupResult:
    dest = write_backup(path, backups_dir, root_dir)
    return BackupResult(backup_path=dest, pruned=prune_backups(path, backups_dir, root_dir, keep))


def write_survey(
    survey: Dict[str, Any],
    path: PathLike,
    backup: bool = False,
    backups_dir: Optional[PathLike] = None,
    root_dir: Optional[PathLike] = None,
    keep: int = DEFAULT_BACKUP_RETENTION,
) -> Optional[BackupResult]:
    """
    Write a survey document as pretty JSON, creating parent directories.

    Args:
        survey: Document to write
        path: Destination
        backup: Back up an existing destination first (and prune old backups)

    Returns:
        BackupResult when a backup was taken, else None
    """
    path = Path(path)
    result = None
    if backup and path.exists():
        result = backup_and_prune(path, backups_dir, root_dir, keep)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dump_survey(survey))
    logger.info("Wrote %s", path)
    return result


__all__ = [
    "BackupResult",
    "DEFAULT_BACKUP_RETENTION",
    "default_output_path",
    "backup_base_name",
    "write_backup",
    "list_backups",
    "prune_backups",
    "backup_and_prune",
    "write_survey",
]
