"""
Field Extraction Helpers
=======================

Content documents are loosely typed: keys may be missing, values may carry
stray whitespace or a layer of quotes copied from a portal export, and
metadata may sit one level down (Parser.Title, Normalization.Schema).

These helpers read such documents without ever raising on absence. A missing
key yields an empty string and a missing tag yields None, so the mapper can
build tag lists by filtering out the gaps.
"""

from typing import Any, Dict, List, Optional

_QUOTE_CHARACTERS = ('"', "'")


def clean_value(value: str) -> str:
    """
    Trim whitespace and strip one layer of matching surrounding quotes.

    Example:
        clean_value("  'Contoso Parser'  ")  # -> "Contoso Parser"
    """
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTE_CHARACTERS:
        value = value[1:-1].strip()
    return value


def get_value(doc: Any, key: str, sub_key: Optional[str] = None, clean: bool = False) -> Any:
    """
    Read a possibly-missing, possibly-nested value from a document.

    Args:
        doc: Parsed document (anything that is not a mapping yields "")
        key: Top-level key
        sub_key: Optional key inside the mapping found at `key`
        clean: Strip one layer of surrounding quotes from string values

    Returns:
        The value, trimmed if it is a string, or "" when missing or null
    """
    if not isinstance(doc, dict) or key not in doc:
        return ""

    value = doc[key]
    if sub_key is not None:
        if not isinstance(value, dict) or sub_key not in value:
            return ""
        value = value[sub_key]

    if value is None:
        return ""
    if isinstance(value, str):
        return clean_value(value) if clean else value.strip()
    return value


def get_tag(doc: Any, key: str, sub_key: Optional[str] = None,
            tag_name: Optional[str] = None, clean: bool = False) -> Optional[Dict[str, str]]:
    """
    Read a value and wrap it as a saved-search tag.

    Lists are rendered as comma-joined strings of their non-empty items, other
    scalars with str().

    Args:
        doc: Parsed document
        key: Top-level key
        sub_key: Optional nested key
        tag_name: Tag name to emit (defaults to `sub_key` or `key`)
        clean: Strip surrounding quotes from string values

    Returns:
        {"name": ..., "value": ...} or None when the value is empty
    """
    value = get_value(doc, key, sub_key, clean)
    rendered = _render_tag_value(value, clean)
    if not rendered:
        return None
    return {"name": tag_name or sub_key or key, "value": rendered}


def build_tags(*tags: Optional[Dict[str, str]]) -> List[Dict[str, str]]:
    """Drop absent tags, keeping the order of the rest."""
    return [tag for tag in tags if tag]


def is_blank(value: Any) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _render_tag_value(value: Any, clean: bool) -> str:
    if isinstance(value, list):
        items = []
        for item in value:
            if item is None:
                continue
            text = clean_value(str(item)) if clean else str(item).strip()
            if text:
                items.append(text)
        return ",".join(items)
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, dict):
        return ""
    return str(value).strip()
