"""
Language codes and localizable-node classification.

Survey documents, CSV headers and XLIFF sections all spell language
codes differently (es_co, es-CO, ES-CO). Every module goes through
this one place to canonicalize them and to decide whether a mapping
is a localizable node.

ARCHITECTURAL RULE:
    The English baseline keys (default, en, en-US) are PROTECTED.
    They are read for matching but never written by a merge.
"""

import re
from typing import Any, Mapping, Optional

DEFAULT_KEY = "default"

PROTECTED_KEYS = frozenset({"default", "en", "en-US"})

# First present, non-empty value wins
ENGLISH_BASELINE_ORDER = ("en-US", "en", "default")

_LANGUAGE_KEY_RE = re.compile(r"^[a-z]{2}(?:[-_][a-z]{2})?$", re.IGNORECASE)
_REGIONAL_RE = re.compile(r"^([a-z]{2})[-_]([a-z]{2})$", re.IGNORECASE)
_BARE_RE = re.compile(r"^[a-z]{2}$", re.IGNORECASE)


def is_language_key(key: Any) -> bool:
    """True for ``default`` and two-letter codes with an optional region."""
    if not isinstance(key, str):
        return False
    return key == DEFAULT_KEY or bool(_LANGUAGE_KEY_RE.match(key))


def is_localizable(value: Any) -> bool:
    """
    Decide whether a value is a localizable node.

    A mapping is localizable iff at least one of its keys is a language
    key (see ``is_language_key``). Lists and scalars never are.
    """
    if not isinstance(value, dict):
        return False
    return any(is_language_key(k) for k in value.keys())


def normalize_language_code(code: Optional[str]) -> Optional[str]:
    """
    Canonicalize a language code.

    Examples:
        es_co  -> es-CO
        ES-CO  -> es-CO
        EN     -> en
        default -> default

    Codes of any other shape are returned trimmed but otherwise untouched.
    """
    if code is None:
        return None
    code = code.strip()
    if not code or code == DEFAULT_KEY:
        return code
    m = _REGIONAL_RE.match(code)
    if m:
        return f"{m.group(1).lower()}-{m.group(2).upper()}"
    if _BARE_RE.match(code):
        return code.lower()
    return code


def is_protected(language: Optional[str]) -> bool:
    return normalize_language_code(language) in PROTECTED_KEYS


def english_baseline(node: Mapping[str, Any]) -> str:
    """Return the node's English baseline text (en-US -> en -> default), or ''."""
    for key in ENGLISH_BASELINE_ORDER:
        value = node.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def has_english_baseline(node: Mapping[str, Any]) -> bool:
    return english_baseline(node) != ""


__all__ = [
    "DEFAULT_KEY",
    "PROTECTED_KEYS",
    "ENGLISH_BASELINE_ORDER",
    "is_language_key",
    "is_localizable",
    "normalize_language_code",
    "is_protected",
    "english_baseline",
    "has_english_baseline",
]
