"""
Name Normalization Module

String keys used to match speedrun.com names against the leaderboard's own
categories, platforms, levels and player accounts.

Examples:
    - "100% (No Cuts)"  → normalize: "100% (no cuts)", fuzzy_key: "100nocuts"
    - "  PlayStation 2" → normalize: "playstation 2",  fuzzy_key: "playstation2"
"""

import re
from typing import Optional

_NON_ALNUM = re.compile(r'[^a-z0-9]')

# Legacy rows marked unclaimed imports with this literal instead of an empty id
LEGACY_UNCLAIMED_MARKER = "imported"


def normalize(value: Optional[str]) -> str:
    """Trim and lowercase; None becomes the empty string."""
    if value is None:
        return ""
    return str(value).strip().lower()


def fuzzy_key(value: Optional[str]) -> str:
    """Normalized form with every non-alphanumeric character removed."""
    return _NON_ALNUM.sub('', normalize(value))


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Positional similarity in [0, 1].

    Counts character positions that differ, measured against the longer
    string; the tail of the longer string past the shorter one counts as
    mismatches. Order-sensitive and coarse: "abcd" vs "bcda" scores 0.
    """
    a = a or ""
    b = b or ""
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    if not longer:
        return 1.0

    mismatches = len(longer) - len(shorter)
    for i, char in enumerate(shorter):
        if char != longer[i]:
            mismatches += 1

    return (len(longer) - mismatches) / len(longer)


def is_unclaimed(player_id: Optional[str]) -> bool:
    """True for every representation of "no owning player" found in the store."""
    if player_id is None:
        return True
    value = str(player_id).strip()
    return value == "" or value == LEGACY_UNCLAIMED_MARKER
