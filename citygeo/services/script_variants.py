"""Pick the Simplified Chinese rendering out of multi-script place labels.

Nominatim returns localized names such as ``"大倫敦;大伦敦"``, ``"英格兰;英格蘭"``
or ``"东京都/東京都"``, with no stable ordering between the variants. For
semicolon pairs we count a small set of Traditional-only glyphs and keep the
half with fewer of them. This is a best-effort tie-breaker between two forms
the provider already supplied, not a Traditional-to-Simplified converter.
"""

from __future__ import annotations

# Traditional glyphs whose Simplified form differs (倫->伦, 國->国, 蘭->兰, ...).
TRADITIONAL_CHARS = frozenset(
    "倫國蘭東會爲齊實與歲學書電機業專門開關區圖體廣"
)


def count_traditional(text: str) -> int:
    return sum(1 for char in text if char in TRADITIONAL_CHARS)


def is_more_simplified(first: str, second: str) -> bool:
    """Return True when ``first`` carries strictly fewer Traditional glyphs."""

    return count_traditional(first) < count_traditional(second)


def select_preferred_variant(label: str) -> str:
    label = (label or "").strip()

    index = label.find(";")
    if 0 < index < len(label) - 1:
        first = label[:index].strip()
        second = label[index + 1 :].strip()
        # Equal counts keep the second form.
        if is_more_simplified(first, second):
            return first
        return second

    # Slash-delimited forms list the conventional spelling first.
    index = label.find("/")
    if index > 0:
        return label[:index].strip()

    return label


__all__ = [
    "TRADITIONAL_CHARS",
    "count_traditional",
    "is_more_simplified",
    "select_preferred_variant",
]
