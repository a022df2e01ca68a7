"""Parse speedrun.com API v1 payloads into ExternalRun records"""
import logging
from typing import Dict, List, Optional, Tuple

from src.base import ExternalRun, ExternalCategory, ExternalLevel

logger = logging.getLogger(__name__)


def _embedded(value) -> Optional[Dict]:
    """Return the embedded object of an `{"data": {...}}` wrapper, if any."""
    if isinstance(value, dict):
        data = value.get('data')
        if isinstance(data, dict):
            return data
        # Not embedded but already an object
        if 'id' in value:
            return value
    return None


def _international_name(data: Dict) -> str:
    names = data.get('names')
    if isinstance(names, dict) and names.get('international'):
        return str(names['international']).strip()
    if data.get('name'):
        return str(data['name']).strip()
    return ""


def parse_player_names(players) -> Tuple[str, ...]:
    """
    Extract display names from the `players` field.

    Handles both the embedded form (`{"data": [...]}`) and the plain list of
    `{"rel": "user"|"guest", ...}` references. A user without an embedded name
    yields an empty string so the player count (solo vs co-op) is preserved.
    """
    if isinstance(players, dict):
        players = players.get('data')
    if not isinstance(players, list):
        return ()

    names: List[str] = []
    for player in players:
        if not isinstance(player, dict):
            continue
        if player.get('rel') == 'guest':
            name = str(player.get('name') or '').strip()
        else:
            name = _international_name(player)
        names.append(name)
    return tuple(names)


def _parse_ref(value) -> Tuple[str, str]:
    """(id, name) for a category/level/platform reference"""
    if isinstance(value, str):
        return value, ""
    data = _embedded(value)
    if data is None:
        return "", ""
    return str(data.get('id') or ''), _international_name(data)


def parse_run(raw: Dict) -> ExternalRun:
    """Build an ExternalRun from one element of the /runs response."""
    if not isinstance(raw, dict) or not raw.get('id'):
        raise ValueError("Run payload is missing an id")

    category_id, category_name = _parse_ref(raw.get('category'))
    category_type = ""
    category_data = _embedded(raw.get('category'))
    if category_data:
        category_type = str(category_data.get('type') or '')

    # An embedded absent level comes back as {"data": []}
    level_id, level_name = _parse_ref(raw.get('level'))

    platform_id, platform_name = _parse_ref(raw.get('platform'))
    if not platform_id:
        system = raw.get('system') or {}
        platform_id, platform_name = _parse_ref(system.get('platform'))

    times = raw.get('times') or {}
    primary_seconds = times.get('primary_t')
    if primary_seconds is not None:
        try:
            primary_seconds = float(primary_seconds)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric primary_t on run {raw.get('id')}: {primary_seconds}")
            primary_seconds = None

    return ExternalRun(
        run_id=str(raw['id']),
        player_names=parse_player_names(raw.get('players')),
        category_id=category_id,
        category_name=category_name,
        category_type=category_type,
        level_id=level_id,
        level_name=level_name,
        platform_id=platform_id,
        platform_name=platform_name,
        primary_time=str(times.get('primary') or ''),
        primary_seconds=primary_seconds,
        date=raw.get('date') or None,
        submitted=raw.get('submitted') or None,
    )


def parse_runs(payload: List[Dict]) -> List[ExternalRun]:
    """Parse a list of raw runs, dropping (and logging) unparseable entries."""
    runs = []
    for raw in payload:
        try:
            runs.append(parse_run(raw))
        except ValueError as e:
            logger.warning(f"Skipping malformed run payload: {e}")
    return runs


def parse_category(raw: Dict) -> ExternalCategory:
    return ExternalCategory(
        id=str(raw.get('id') or ''),
        name=str(raw.get('name') or '').strip(),
        type=str(raw.get('type') or 'per-game'),
    )


def parse_level(raw: Dict) -> ExternalLevel:
    return ExternalLevel(id=str(raw.get('id') or ''), name=_international_name(raw))
