import re
import unicodedata
from typing import Optional

GUID_REGEX = re.compile(r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$')


def normalize_for_sort(text: Optional[str]) -> str:
    """Sort key for display names: lower-cased, diacritics removed (NFKD, then combining marks dropped) and
    punctuation stripped. "Élan-App" and "elanapp" compare equal."""
    if not text:
        return ''
    decomposed = unicodedata.normalize('NFKD', text.lower())
    chars = []
    for ch in decomposed:
        if unicodedata.combining(ch):
            continue
        if unicodedata.category(ch).startswith('P'):
            continue
        chars.append(ch)
    return ''.join(chars)


def escape_filter_value(value: str) -> str:
    """Escapes a value for use inside a single-quoted OData string literal"""
    return value.replace("'", "''")


def is_guid(value: Optional[str]) -> bool:
    if not value:
        return False
    return GUID_REGEX.match(value.strip()) is not None
