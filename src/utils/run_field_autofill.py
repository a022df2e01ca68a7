"""Re-resolve category/platform/level ids of an entry from its preserved external names"""
from typing import Dict, List

from src.base import CatalogEntry, LeaderboardEntry
from src.utils.name_normalizer import normalize


def _leaderboard_type(value) -> str:
    return value if value in ('individual-level', 'community-golds') else 'regular'


def autofill_run_fields(
    entry: LeaderboardEntry,
    categories: List[CatalogEntry],
    platforms: List[CatalogEntry],
    levels: List[CatalogEntry],
) -> Dict[str, str]:
    """
    Compute field updates for one entry.

    Ids that no longer exist, or a category belonging to another leaderboard
    type, are treated as missing and re-matched by exact normalized name.
    Regular runs always end up with an empty level.

    Returns:
        Only the fields whose value changes
    """
    board_type = _leaderboard_type(entry.leaderboard_type)
    updates: Dict[str, str] = {}

    category = entry.category or ""
    if category:
        current = next((c for c in categories if c.id == category), None)
        if current is None or _leaderboard_type(current.leaderboard_type) != board_type:
            category = ""
    if not category and entry.external_category_name:
        wanted = normalize(entry.external_category_name)
        match = next(
            (c for c in categories
             if _leaderboard_type(c.leaderboard_type) == board_type and normalize(c.name) == wanted),
            None,
        )
        if match:
            category = match.id
    if category and category != (entry.category or ""):
        updates['category'] = category

    platform = entry.platform or ""
    if platform and not any(p.id == platform for p in platforms):
        platform = ""
    if not platform and entry.external_platform_name:
        wanted = normalize(entry.external_platform_name)
        match = next((p for p in platforms if normalize(p.name) == wanted), None)
        if match:
            platform = match.id
    if platform and platform != (entry.platform or ""):
        updates['platform'] = platform

    if board_type == 'regular':
        if (entry.level or "").strip():
            updates['level'] = ""
    elif not entry.level and entry.external_level_name:
        wanted = normalize(entry.external_level_name)
        match = next((lvl for lvl in levels if normalize(lvl.name) == wanted), None)
        if match:
            updates['level'] = match.id

    return updates
