"""
Survey tree walker and identifier builder.

Walks a SurveyJS document and yields every localizable node together
with a derived identifier and its JSON path.

Identifier rules (nearest structural names, joined with "."):
    pages[]           -> <page slug>
    elements[]        -> q.<name>
    choices[]         -> choice.<value | name | #index>
    rows[]            -> row.<value | name | #index>
    columns[]         -> col.<value | name | #index>
    any other list    -> <parent key>.<name | value | #index>
    localizable leaf  -> <slug of the field holding it>   (title, text, html, ...)

Example:
    pages[1] named "School Page", elements[2] named "SchoolFun", its title
    -> "school_page.q.schoolfun.title"

Identifiers are a pure function of tree position and name fields.
"""

import re
from typing import Any, Dict, Iterator, List, Optional

from surveyl10n.languages import is_language_key, is_localizable, normalize_language_code
from surveyl10n.model import LocalizableNode

STRUCTURAL_PREFIXES = {
    "elements": "q",
    "choices": "choice",
    "rows": "row",
    "columns": "col",
}

UNNAMED = "unnamed"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_PATH_TOKEN_RE = re.compile(r"(\w+)|\[(\d+)\]")


def slugify(text: Any) -> str:
    """Lowercase, collapse non-alphanumeric runs to '_', trim underscores."""
    return _NON_ALNUM_RE.sub("_", str(text).strip().lower()).strip("_")


def _segment(kind: str, value: Any) -> str:
    slug = slugify(value) if value not in (None, "") else ""
    return f"{kind}.{slug or UNNAMED}"


def _has_name(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("name"), str) and item["name"].strip() != ""


def _has_value(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("value"), (str, int, float)) \
        and not isinstance(item.get("value"), bool)


def _item_segment(parent_key: str, item: Any, index: int) -> str:
    positional = f"#{index}"
    if parent_key == "pages":
        slug = slugify(item["name"] if _has_name(item) else positional)
        return slug or UNNAMED
    if parent_key == "elements":
        return _segment("q", item["name"] if _has_name(item) else positional)
    if parent_key in STRUCTURAL_PREFIXES:
        if _has_value(item):
            key = item["value"]
        elif _has_name(item):
            key = item["name"]
        else:
            key = positional
        return _segment(STRUCTURAL_PREFIXES[parent_key], key)
    if _has_name(item):
        key = item["name"]
    elif _has_value(item):
        key = item["value"]
    else:
        key = positional
    return _segment(parent_key or "item", key)


def iter_localizable_nodes(
    obj: Any,
    path: str = "",
    semantic: Optional[List[str]] = None,
    parent_key: str = "",
) -> Iterator[LocalizableNode]:
    """
    Depth-first walk yielding LocalizableNodes in document order.

    A localizable node is not descended into; nested dicts under a
    language key are text, not structure.
    """
    semantic = semantic or []

    if isinstance(obj, list):
        for idx, item in enumerate(obj):
            item_path = f"{path}[{idx}]" if path else f"[{idx}]"
            part = _item_segment(parent_key, item, idx)
            yield from iter_localizable_nodes(item, item_path, semantic + [part], parent_key)
        return

    if not isinstance(obj, dict):
        return

    if is_localizable(obj):
        leaf = slugify(parent_key) if parent_key else "value"
        yield LocalizableNode(
            identifier=".".join(semantic + [leaf or UNNAMED]),
            node=obj,
            path=path,
            field_name=parent_key,
        )
        return

    for key, value in obj.items():
        child_path = f"{path}.{key}" if path else key
        yield from iter_localizable_nodes(value, child_path, semantic, key)


def collect_localizable_nodes(survey: Any) -> List[LocalizableNode]:
    """Return every localizable node in the survey as a list of live references."""
    return list(iter_localizable_nodes(survey))


def index_by_identifier(nodes: List[LocalizableNode]) -> Dict[str, List[LocalizableNode]]:
    index: Dict[str, List[LocalizableNode]] = {}
    for node in nodes:
        index.setdefault(node.identifier, []).append(node)
    return index


def get_by_path(root: Any, path: str) -> Any:
    """
    Resolve a JSON path such as ``pages[0].elements[1].title``.

    Returns None when any step is missing.
    """
    cur = root
    for m in _PATH_TOKEN_RE.finditer(path):
        if cur is None:
            return None
        name, index = m.group(1), m.group(2)
        try:
            if index is not None:
                cur = cur[int(index)] if isinstance(cur, list) else None
            else:
                cur = cur.get(name) if isinstance(cur, dict) else None
        except IndexError:
            return None
    return cur


def normalize_defaults_from_values(root: Any) -> int:
    """
    Give choice-like items a ``text.default`` taken from their string ``value``.

    - ``text`` missing or null  -> {"default": value}
    - ``text`` without default  -> default added (appended, existing order kept)

    Returns:
        Number of items updated
    """
    updated = 0
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, list):
            stack.extend(node)
            continue
        if not isinstance(node, dict):
            continue
        value = node.get("value")
        if isinstance(value, str) and "value" in node:
            text = node.get("text")
            if text is None:
                node["text"] = {"default": value}
                updated += 1
            elif isinstance(text, dict) and "default" not in text:
                text["default"] = value
                updated += 1
        stack.extend(v for v in node.values() if isinstance(v, (dict, list)))
    return updated


def _is_blank(value: Any) -> bool:
    return not (isinstance(value, str) and value.strip())


def normalize_language_keys(root: Any) -> int:
    """
    Rename language keys of every localizable node to canonical form (es_co -> es-CO).

    Key order is preserved. If both spellings exist, the canonical one wins
    unless it is blank, in which case the non-blank alias value is kept.

    Returns:
        Number of keys renamed
    """
    renamed = 0
    for found in iter_localizable_nodes(root):
        node = found.node
        if all(normalize_language_code(k) == k for k in node if is_language_key(k)):
            continue
        merged: Dict[str, Any] = {}
        for key, value in node.items():
            canonical = normalize_language_code(key) if is_language_key(key) else key
            if canonical != key:
                renamed += 1
            if canonical not in merged or _is_blank(merged[canonical]):
                merged[canonical] = value
            elif key == canonical and not _is_blank(value):
                merged[canonical] = value
        node.clear()
        node.update(merged)
    return renamed


def ensure_english_keys(root: Any) -> int:
    """
    Seed missing English keys on every localizable node.

    - ``en`` blank or missing, ``default`` present  -> en = default
    - ``en-US`` blank or missing                    -> en-US = en, else default

    Nodes with no English text at all are left alone.

    Returns:
        Number of keys written
    """
    updated = 0
    for found in iter_localizable_nodes(root):
        node = found.node
        if _is_blank(node.get("en")) and not _is_blank(node.get("default")):
            node["en"] = node["default"]
            updated += 1
        if _is_blank(node.get("en-US")):
            seed = next((node[k] for k in ("en", "default") if not _is_blank(node.get(k))), None)
            if seed is not None:
                node["en-US"] = seed
                updated += 1
    return updated


__all__ = [
    "slugify",
    "iter_localizable_nodes",
    "collect_localizable_nodes",
    "index_by_identifier",
    "get_by_path",
    "normalize_defaults_from_values",
    "normalize_language_keys",
    "ensure_english_keys",
]
