"""Map an ExternalRun onto a candidate LeaderboardEntry"""
from src.base import ExternalRun, LeaderboardEntry
from src.models.taxonomy_mapper import TaxonomyMapping, expected_leaderboard_type
from src.utils.name_normalizer import normalize
from src.utils.time_codec import iso_duration_to_time


def map_external_run(run: ExternalRun, mapping: TaxonomyMapping) -> LeaderboardEntry:
    """
    Build the unclaimed, unverified entry for one external run.

    Time comes from the ISO duration only; the import pipeline repairs it from
    primary_seconds when the conversion is empty or zero.
    """
    player_name = run.player_names[0] if run.player_names else ""
    is_coop = run.is_coop
    player2_name = run.player_names[1] if is_coop else None

    category_type = mapping.category_type_for(run)
    if run.level_id or category_type == 'per-level':
        leaderboard_type = 'individual-level'
    else:
        leaderboard_type = expected_leaderboard_type(category_type)

    category_name = mapping.category_name_for(run)
    platform_name = mapping.platform_name_for(run)
    level_name = mapping.level_name_for(run)

    return LeaderboardEntry(
        player_name=player_name,
        player2_name=player2_name,
        category=mapping.category_for(run),
        platform=mapping.platform_for(run),
        level=mapping.level_for(run) if leaderboard_type != 'regular' else "",
        run_type='co-op' if is_coop else 'solo',
        leaderboard_type=leaderboard_type,
        time=iso_duration_to_time(run.primary_time) or "",
        date=run.date or "",
        player_id="",
        verified=False,
        imported_from_external=True,
        external_run_id=run.run_id,
        external_player_name=normalize(player_name) or None,
        external_player2_name=normalize(player2_name) or None,
        external_category_name=category_name or None,
        external_platform_name=platform_name or None,
        external_level_name=level_name or None,
        submitted_at=run.submitted,
    )
