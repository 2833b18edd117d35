"""
Configuration file support for surveyl10n.

Supports per-project configuration via:
- .surveyl10n.yaml (hidden file)
- surveyl10n.yaml (visible file)
- an explicit path (--config, or the SURVEYL10N_CONFIG environment variable)

Configuration Options:
    strategy: Candidate selection ("identifier", "identifier-text", "navigation")
    surveysDir: Directory holding the survey JSON documents
    backupsDir: Where backups go (default: a "backups" folder next to each file)
    backupRetention: Backups kept per file
    sourceFallbackLanguages: Bundle languages whose untranslated units fall back to source text
    normalizeDefaults: Fill text.default from choice values before merging
    labels: Only merge table rows with this labels value

Example .surveyl10n.yaml:
    strategy: identifier-text
    surveysDir: surveys
    backupRetention: 3
    sourceFallbackLanguages: [en-US, en-GH]
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from surveyl10n.bundle_parser import DEFAULT_FALLBACK_LANGUAGES
from surveyl10n.reconciler import MatchStrategy
from surveyl10n.writer import DEFAULT_BACKUP_RETENTION


class ConfigError(Exception):
    """Raised when a configuration file is unreadable or invalid."""
    pass


CONFIG_FILENAMES = [".surveyl10n.yaml", "surveyl10n.yaml"]
CONFIG_ENV_VAR = "SURVEYL10N_CONFIG"


@dataclass
class MergeConfig:
    """Configuration for a merge run"""

    strategy: MatchStrategy = MatchStrategy.IDENTIFIER_TEXT_TIEBREAK

    # Locations
    surveys_dir: str = "surveys"
    backups_dir: Optional[str] = None  # None -> <file folder>/backups

    backup_retention: int = DEFAULT_BACKUP_RETENTION
    source_fallback_languages: List[str] = field(default_factory=lambda: list(DEFAULT_FALLBACK_LANGUAGES))
    normalize_defaults: bool = False
    labels: Optional[str] = None

    # Config file location (set after loading)
    _config_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to file representation (excludes internal fields)"""
        d = asdict(self)
        d.pop("_config_path", None)
        return {
            "strategy": self.strategy.value,
            "surveysDir": d["surveys_dir"],
            "backupsDir": d["backups_dir"],
            "backupRetention": d["backup_retention"],
            "sourceFallbackLanguages": d["source_fallback_languages"],
            "normalizeDefaults": d["normalize_defaults"],
            "labels": d["labels"],
        }


def parse_strategy(value: Any) -> MatchStrategy:
    if isinstance(value, MatchStrategy):
        return value
    try:
        return MatchStrategy(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in MatchStrategy)
        raise ConfigError(f"Unknown strategy '{value}' (expected one of: {choices})")


def find_config_file(directory: str = ".") -> Optional[str]:
    """
    Find a configuration file.

    The SURVEYL10N_CONFIG environment variable wins; otherwise the
    known file names are tried in ``directory``.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    for filename in CONFIG_FILENAMES:
        config_path = os.path.join(directory, filename)
        if os.path.exists(config_path):
            return config_path
    return None


def config_from_dict(data: Dict[str, Any]) -> MergeConfig:
    defaults = MergeConfig()
    retention = data.get("backupRetention", defaults.backup_retention)
    if not isinstance(retention, int) or isinstance(retention, bool) or retention < 0:
        raise ConfigError(f"backupRetention must be a non-negative integer, got {retention!r}")
    fallback = data.get("sourceFallbackLanguages", defaults.source_fallback_languages)
    if isinstance(fallback, str):
        fallback = [fallback]
    return MergeConfig(
        strategy=parse_strategy(data.get("strategy", defaults.strategy)),
        surveys_dir=str(data.get("surveysDir", defaults.surveys_dir)),
        backups_dir=data.get("backupsDir"),
        backup_retention=retention,
        source_fallback_languages=list(fallback or []),
        normalize_defaults=bool(data.get("normalizeDefaults", False)),
        labels=data.get("labels"),
    )


def load_config(path: Optional[str] = None, directory: str = ".") -> MergeConfig:
    """
    Load configuration.

    Args:
        path: Explicit config file; if None, find_config_file(directory) is used

    Returns:
        MergeConfig (defaults if no config file found)

    Raises:
        ConfigError: If the file is missing (explicit path), not valid YAML,
            or holds invalid values
    """
    config_path = path or find_config_file(directory)
    if config_path is None:
        return MergeConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config file {config_path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must hold a mapping")

    config = config_from_dict(data)
    config._config_path = config_path
    return config


def save_config(config: MergeConfig, directory: str = ".", filename: str = ".surveyl10n.yaml") -> str:
    """
    Save configuration to a directory.

    Returns:
        Path to saved config file
    """
    config_path = os.path.join(directory, filename)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
    return config_path


def merge_cli_args(config: MergeConfig, args: Any) -> MergeConfig:
    """
    Merge CLI arguments with config file settings.
    CLI arguments take precedence over config file.
    """
    if getattr(args, "strategy", None):
        config.strategy = parse_strategy(args.strategy)

    if getattr(args, "surveys_dir", None):
        config.surveys_dir = args.surveys_dir

    if getattr(args, "backups_dir", None):
        config.backups_dir = args.backups_dir

    if getattr(args, "keep", None) is not None:
        config.backup_retention = args.keep

    if getattr(args, "labels", None):
        config.labels = args.labels

    if getattr(args, "normalize_defaults", False):
        config.normalize_defaults = True

    return config


__all__ = [
    "MergeConfig",
    "ConfigError",
    "CONFIG_FILENAMES",
    "find_config_file",
    "load_config",
    "save_config",
    "merge_cli_args",
    "parse_strategy",
]
