"""
Taxonomy mapping between speedrun.com ids and the leaderboard's own
categories, platforms and levels.

Matching strategy per external entity (first hit wins):
1. Exact normalized name, preferring an agreeing leaderboard type (categories)
2. Exact normalized name, any type
3. Fuzzy key equality (alphanumerics only)
4. Best positional similarity over fuzzy keys, above a per-kind floor
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from config.settings import IMPORT_CONFIG, MATCHING_CONFIG
from src.base import CatalogEntry, ExternalCategory, ExternalLevel, ExternalRun
from src.utils.import_exceptions import ConfigError, ExternalServiceError, MappingError
from src.utils.name_normalizer import normalize, fuzzy_key, similarity

logger = logging.getLogger(__name__)


def expected_leaderboard_type(category_type: Optional[str]) -> str:
    """Leaderboard type implied by a speedrun.com category type"""
    return 'individual-level' if category_type == 'per-level' else 'regular'


@dataclass
class TaxonomyMapping:
    """Lookup tables for one import run. Never cached across runs."""
    category_ids: Dict[str, str] = field(default_factory=dict)
    platform_ids: Dict[str, str] = field(default_factory=dict)
    level_ids: Dict[str, str] = field(default_factory=dict)
    category_names: Dict[str, str] = field(default_factory=dict)
    platform_names: Dict[str, str] = field(default_factory=dict)
    level_names: Dict[str, str] = field(default_factory=dict)
    # external id -> external name, for fallback display
    external_category_names: Dict[str, str] = field(default_factory=dict)
    external_platform_names: Dict[str, str] = field(default_factory=dict)
    external_level_names: Dict[str, str] = field(default_factory=dict)
    external_category_types: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def _resolve(ids: Dict[str, str], names: Dict[str, str],
                 external_id: str, external_name: str) -> str:
        if external_id and external_id in ids:
            return ids[external_id]
        for key in (normalize(external_name), fuzzy_key(external_name)):
            if key and key in names:
                return names[key]
        return ""

    def category_for(self, run: ExternalRun) -> str:
        return self._resolve(self.category_ids, self.category_names,
                             run.category_id, self.category_name_for(run))

    def platform_for(self, run: ExternalRun) -> str:
        return self._resolve(self.platform_ids, self.platform_names,
                             run.platform_id, self.platform_name_for(run))

    def level_for(self, run: ExternalRun) -> str:
        return self._resolve(self.level_ids, self.level_names,
                             run.level_id, self.level_name_for(run))

    def category_name_for(self, run: ExternalRun) -> str:
        return run.category_name or self.external_category_names.get(run.category_id, "")

    def platform_name_for(self, run: ExternalRun) -> str:
        return run.platform_name or self.external_platform_names.get(run.platform_id, "")

    def level_name_for(self, run: ExternalRun) -> str:
        return run.level_name or self.external_level_names.get(run.level_id, "")

    def category_type_for(self, run: ExternalRun) -> str:
        return run.category_type or self.external_category_types.get(run.category_id, "")


def match_catalog_entry(
    name: str,
    catalog: List[CatalogEntry],
    floor: float,
    min_key_length: int,
    preferred_type: Optional[str] = None,
) -> Optional[CatalogEntry]:
    """
    Find the catalog entry matching an external name.

    Args:
        name: External display name
        catalog: Internal entries to match against
        floor: Minimum similarity for the last-resort scan (inclusive)
        min_key_length: Fuzzy keys shorter than this skip the similarity scan
        preferred_type: Leaderboard type to prefer on exact name matches

    Returns:
        Matching entry, or None. Ties on similarity keep the first entry.
    """
    normalized = normalize(name)
    key = fuzzy_key(name)
    if not normalized:
        return None

    if preferred_type is not None:
        for entry in catalog:
            if normalize(entry.name) == normalized and (entry.leaderboard_type or 'regular') == preferred_type:
                return entry

    for entry in catalog:
        if normalize(entry.name) == normalized:
            return entry

    if key:
        for entry in catalog:
            if fuzzy_key(entry.name) == key:
                return entry

    if len(key) < min_key_length:
        return None

    best_match = None
    best_score = 0.0
    for entry in catalog:
        score = similarity(fuzzy_key(entry.name), key)
        if score >= floor and score > best_score:
            best_match = entry
            best_score = score

    if best_match:
        logger.debug(f"Similarity match '{name}' -> '{best_match.name}' ({best_score:.2f})")
    return best_match


class TaxonomyMapper:
    """
    Builds a TaxonomyMapping for a batch of external runs.

    Usage:
        mapper = TaxonomyMapper(store, client)
        mapping = await mapper.build_mappings(runs, game_id)
        category_id = mapping.category_for(run)
    """

    def __init__(self, store, client, config: Optional[Dict] = None,
                 lookup_concurrency: int = IMPORT_CONFIG['lookup_concurrency']):
        self.store = store
        self.client = client
        self.config = {**MATCHING_CONFIG, **(config or {})}
        self.lookup_concurrency = max(1, lookup_concurrency)

    async def build_mappings(self, external_runs: List[ExternalRun], external_game_id: str) -> TaxonomyMapping:
        if not external_game_id:
            raise ConfigError("External game id is required to build mappings")
        if not isinstance(external_runs, list) or not all(isinstance(r, ExternalRun) for r in external_runs):
            raise ConfigError("external_runs must be a list of ExternalRun")

        try:
            (categories, platforms, levels,
             external_categories, external_levels) = await asyncio.gather(
                asyncio.to_thread(self.store.get_categories),
                asyncio.to_thread(self.store.get_platforms),
                asyncio.to_thread(self.store.get_levels),
                asyncio.to_thread(self.client.fetch_categories, external_game_id),
                asyncio.to_thread(self.client.fetch_levels, external_game_id),
            )
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to load catalogs: {e}")
            raise MappingError(str(e)) from e

        mapping = TaxonomyMapping()

        self._map_categories(mapping, self._merge_categories(external_categories, external_runs), categories)
        self._map_levels(mapping, self._merge_levels(external_levels, external_runs), levels)

        used_platforms = await self._resolve_used_platforms(external_runs)
        self._map_platforms(mapping, used_platforms, platforms)

        logger.info(
            f"📋 Mappings: {len(mapping.category_ids)} categories, "
            f"{len(mapping.platform_ids)} platforms, {len(mapping.level_ids)} levels"
        )
        return mapping

    @staticmethod
    def _merge_categories(external: List[ExternalCategory], runs: Iterable[ExternalRun]) -> List[ExternalCategory]:
        """Game categories plus any embedded on runs but missing from the listing"""
        merged = {c.id: c for c in external if c.id}
        for run in runs:
            if run.category_id and run.category_id not in merged and run.category_name:
                merged[run.category_id] = ExternalCategory(
                    id=run.category_id, name=run.category_name, type=run.category_type or 'per-game'
                )
        return list(merged.values())

    @staticmethod
    def _merge_levels(external: List[ExternalLevel], runs: Iterable[ExternalRun]) -> List[ExternalLevel]:
        merged = {level.id: level for level in external if level.id}
        for run in runs:
            if run.level_id and run.level_id not in merged and run.level_name:
                merged[run.level_id] = ExternalLevel(id=run.level_id, name=run.level_name)
        return list(merged.values())

    async def _resolve_used_platforms(self, runs: Iterable[ExternalRun]) -> Dict[str, str]:
        """Platform id -> name for platforms the batch actually references"""
        used: Dict[str, str] = {}
        for run in runs:
            if run.platform_id and not used.get(run.platform_id):
                used[run.platform_id] = run.platform_name

        missing = [platform_id for platform_id, name in used.items() if not name]
        if missing:
            semaphore = asyncio.Semaphore(self.lookup_concurrency)

            async def fetch(platform_id: str) -> Tuple[str, Optional[str]]:
                async with semaphore:
                    try:
                        return platform_id, await asyncio.to_thread(self.client.fetch_platform_name, platform_id)
                    except Exception as e:
                        logger.warning(f"Platform lookup failed for {platform_id}: {e}")
                        return platform_id, None

            for platform_id, name in await asyncio.gather(*(fetch(p) for p in missing)):
                if name:
                    used[platform_id] = name
                else:
                    logger.warning(f"Could not resolve name for platform {platform_id}")

        return {platform_id: name for platform_id, name in used.items() if name}

    def _map_categories(self, mapping: TaxonomyMapping, external: List[ExternalCategory],
                        catalog: List[CatalogEntry]) -> None:
        for category in external:
            if not category.id or not category.name:
                continue
            mapping.external_category_names[category.id] = category.name
            mapping.external_category_types[category.id] = category.type or 'per-game'

            match = match_catalog_entry(
                category.name, catalog,
                floor=self.config['category_similarity_floor'],
                min_key_length=self.config['category_min_key_length'],
                preferred_type=expected_leaderboard_type(category.type),
            )
            if match:
                self._record(mapping.category_ids, mapping.category_names, category.id, category.name, match.id)
            else:
                logger.warning(f"Category \"{category.name}\" (type: {category.type}) not found in local categories")

    def _map_levels(self, mapping: TaxonomyMapping, external: List[ExternalLevel],
                    catalog: List[CatalogEntry]) -> None:
        for level in external:
            if not level.id or not level.name:
                continue
            mapping.external_level_names[level.id] = level.name

            match = match_catalog_entry(
                level.name, catalog,
                floor=self.config['level_similarity_floor'],
                min_key_length=self.config['level_min_key_length'],
            )
            if match:
                self._record(mapping.level_ids, mapping.level_names, level.id, level.name, match.id)
            else:
                logger.warning(f"Level \"{level.name}\" not found in local levels")

    def _map_platforms(self, mapping: TaxonomyMapping, used: Dict[str, str],
                       catalog: List[CatalogEntry]) -> None:
        for platform_id, name in used.items():
            mapping.external_platform_names[platform_id] = name

            match = match_catalog_entry(
                name, catalog,
                floor=self.config['platform_similarity_floor'],
                min_key_length=self.config['platform_min_key_length'],
            )
            if match:
                self._record(mapping.platform_ids, mapping.platform_names, platform_id, name, match.id)
            else:
                logger.warning(f"Platform \"{name}\" not found in local platforms")

    @staticmethod
    def _record(ids: Dict[str, str], names: Dict[str, str],
                external_id: str, external_name: str, internal_id: str) -> None:
        ids[external_id] = internal_id
        names[normalize(external_name)] = internal_id
        key = fuzzy_key(external_name)
        if key:
            names[key] = internal_id
