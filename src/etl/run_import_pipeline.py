"""Import pipeline for speedrun.com runs with dedup, repair and validation"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from config.settings import IMPORT_CONFIG
from src.base import ExternalRun, LeaderboardEntry, Player
from src.models.autoclaim import AutoclaimReconciler
from src.models.run_mapper import map_external_run
from src.models.taxonomy_mapper import TaxonomyMapper, TaxonomyMapping
from src.utils.import_exceptions import RecordError
from src.utils.run_validators import RunValidator, critical_issues, warning_issues
from src.utils.time_codec import seconds_to_time, iso_duration_to_time

logger = logging.getLogger(__name__)

UNKNOWN_PLATFORM_PLACEHOLDER = "Unknown Platform (from speedrun.com)"
ZERO_TIME = "00:00:00"


@dataclass
class ImportProgress:
    total: int
    imported: int
    skipped: int


@dataclass
class ImportResult:
    """Outcome of one import invocation. Never persisted."""
    imported: int = 0
    skipped: int = 0
    # persisted entry id -> {'player1': name, 'player2': name}
    unmatched_players: Dict[str, Dict[str, str]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    processing_time_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'imported': self.imported,
            'skipped': self.skipped,
            'unmatched_players': self.unmatched_players,
            'errors': self.errors,
            'processing_time_seconds': round(self.processing_time_seconds, 2),
        }


ProgressCallback = Callable[[ImportProgress], None]


class RunImportPipeline:
    """
    Pulls recent runs from speedrun.com and writes new ones as unclaimed,
    unverified leaderboard entries.

    Hard-boundary failures (game lookup, existing-id fetch, candidate fetch,
    mapping) end the import with a single error. After that, every candidate
    is processed independently: a failing record is counted as skipped with an
    error naming its run id and the loop moves on.
    """

    def __init__(
        self,
        store,
        client,
        dry_run: bool = False,
        fetch_limit: int = IMPORT_CONFIG['fetch_limit'],
        batch_size: int = IMPORT_CONFIG['batch_size'],
        lookup_concurrency: int = IMPORT_CONFIG['lookup_concurrency'],
        run_autoclaim: bool = IMPORT_CONFIG['run_autoclaim'],
        mapper: Optional[TaxonomyMapper] = None,
        reconciler: Optional[AutoclaimReconciler] = None,
    ):
        self.store = store
        self.client = client
        self.dry_run = dry_run
        self.fetch_limit = fetch_limit
        self.batch_size = batch_size
        self.lookup_concurrency = max(1, lookup_concurrency)
        self.run_autoclaim = run_autoclaim
        self.mapper = mapper or TaxonomyMapper(store, client, lookup_concurrency=self.lookup_concurrency)
        self.reconciler = reconciler or AutoclaimReconciler(store)
        self.validator = RunValidator()

    async def import_external_runs(self, progress_callback: Optional[ProgressCallback] = None) -> ImportResult:
        start_time = time.time()
        result = ImportResult()

        def report(total: int) -> None:
            if progress_callback:
                progress_callback(ImportProgress(total=total, imported=result.imported, skipped=result.skipped))

        # Step 1: Resolve game
        try:
            game_id = await asyncio.to_thread(self.client.resolve_game_id)
        except Exception as e:
            logger.error(f"❌ Could not resolve speedrun.com game: {e}")
            result.errors.append(f"Failed to resolve speedrun.com game: {e}")
            return self._finish(result, start_time)
        if not game_id:
            result.errors.append("Failed to resolve speedrun.com game: no game id")
            return self._finish(result, start_time)

        # Step 2: Already-linked external ids
        try:
            existing_ids: Set[str] = set(await asyncio.to_thread(self.store.get_existing_external_run_ids))
        except Exception as e:
            logger.error(f"❌ Could not load existing run ids: {e}")
            result.errors.append(f"Failed to load existing imported runs: {e}")
            return self._finish(result, start_time)
        logger.info(f"Found {len(existing_ids)} previously imported runs")

        # Step 3: Candidates
        try:
            fetched = await asyncio.to_thread(self.client.fetch_candidate_runs, game_id, self.fetch_limit)
        except Exception as e:
            logger.error(f"❌ Could not fetch runs: {e}")
            result.errors.append(f"Failed to fetch runs from speedrun.com: {e}")
            return self._finish(result, start_time)

        if not fetched:
            result.errors.append("No runs found to import")
            return self._finish(result, start_time)

        candidates = [run for run in fetched if run.run_id not in existing_ids][:self.batch_size]
        if not candidates:
            result.errors.append("No new runs to import - all recent runs are already linked")
            return self._finish(result, start_time)
        logger.info(f"📥 {len(candidates)} new runs to import (of {len(fetched)} fetched)")

        # Step 4: Mappings
        try:
            mapping = await self.mapper.build_mappings(candidates, game_id)
        except Exception as e:
            logger.error(f"❌ Mapping failed: {e}")
            result.errors.append(f"Failed to create mappings: {e}")
            return self._finish(result, start_time)

        total = len(candidates)
        report(total)

        # Step 5: Player lookups
        player_cache = await self._preload_players(candidates)

        # Step 6: Per-record processing
        for run in candidates:
            try:
                if run.run_id in existing_ids:
                    result.skipped += 1
                    continue
                self._import_run(run, mapping, player_cache, existing_ids, result)
            except RecordError as e:
                result.skipped += 1
                result.errors.append(str(e))
            except Exception as e:
                result.skipped += 1
                result.errors.append(f"Run {run.run_id}: {e}")
                logger.error(f"Error processing run {run.run_id}: {e}")
            finally:
                report(total)

        # Step 7: Autoclaim
        if self.run_autoclaim and not self.dry_run:
            try:
                summary = await asyncio.to_thread(self.reconciler.autoclaim_all)
                if summary.runs_updated:
                    logger.info(
                        f"🔗 Autoclaimed {summary.runs_updated} runs for {summary.players_updated} players"
                    )
                for error in summary.errors:
                    logger.warning(f"Autoclaim: {error}")
            except Exception as e:
                logger.error(f"Autoclaim after import failed: {e}")

        return self._finish(result, start_time)

    def _import_run(
        self,
        run: ExternalRun,
        mapping: TaxonomyMapping,
        player_cache: Dict[str, Player],
        existing_ids: Set[str],
        result: ImportResult,
    ) -> None:
        entry = map_external_run(run, mapping)

        # Import metadata and defaults
        entry.imported_from_external = True
        entry.external_run_id = run.run_id
        entry.verified = False
        entry.player_id = ""
        if not entry.run_type:
            entry.run_type = 'solo'
        if not entry.leaderboard_type:
            entry.leaderboard_type = 'regular'
        if not (entry.player_name or "").strip():
            entry.player_name = "Unknown"

        self._repair_time(entry, run)

        issues = self.validator.validate(entry)
        critical = critical_issues(issues)
        if critical:
            raise RecordError(run.run_id, ', '.join(issue.message for issue in critical))
        warnings = warning_issues(issues)
        if warnings:
            logger.warning(f"Run {run.run_id} has warnings: {', '.join(issue.message for issue in warnings)}")

        # Unmapped platform stays empty; the external name is kept for display
        if not entry.platform:
            entry.platform = ""
            if not entry.external_platform_name:
                entry.external_platform_name = UNKNOWN_PLATFORM_PLACEHOLDER
                result.errors.append(f"Run {run.run_id}: missing platform (using placeholder)")

        entry.player_name = entry.player_name.strip()
        if entry.run_type == 'co-op':
            entry.player2_name = (entry.player2_name or "").strip()
        else:
            entry.player2_name = None

        unmatched: Dict[str, str] = {}
        if entry.player_name.lower() not in player_cache:
            unmatched['player1'] = entry.player_name
        if entry.player2_name and entry.player2_name.lower() not in player_cache:
            unmatched['player2'] = entry.player2_name

        if self.dry_run:
            entry_id = f"dry-run:{run.run_id}"
        else:
            entry_id = self.store.insert_entry(entry)
        existing_ids.add(run.run_id)

        if unmatched:
            result.unmatched_players[entry_id] = unmatched
        result.imported += 1

    @staticmethod
    def _repair_time(entry: LeaderboardEntry, run: ExternalRun) -> None:
        """Recover a missing or zero time from the source's numeric/ISO fields"""
        if entry.time and entry.time.strip() and entry.time != ZERO_TIME:
            return

        fixed = None
        if run.primary_seconds and run.primary_seconds > 0:
            fixed = seconds_to_time(run.primary_seconds)
        elif run.primary_time and run.primary_time.strip():
            fixed = iso_duration_to_time(run.primary_time)

        if fixed and fixed != ZERO_TIME:
            entry.time = fixed
            logger.warning(f"Fixed missing time for run {run.run_id}: {fixed}")
        else:
            # Left empty so validation rejects the run with a "Missing time" error
            entry.time = ""
            logger.error(f"No usable time data for run {run.run_id}")

    async def _preload_players(self, runs: List[ExternalRun]) -> Dict[str, Player]:
        """Lowercased display name -> Player for every name appearing in the batch"""
        names = {name.strip() for run in runs for name in run.player_names if name and name.strip()}
        if not names:
            return {}

        semaphore = asyncio.Semaphore(self.lookup_concurrency)

        async def lookup(name: str):
            async with semaphore:
                try:
                    return name, await asyncio.to_thread(self.store.find_player_by_display_name, name)
                except Exception as e:
                    logger.debug(f"Player lookup failed for '{name}': {e}")
                    return name, None

        cache: Dict[str, Player] = {}
        for name, player in await asyncio.gather(*(lookup(n) for n in sorted(names))):
            if player is not None:
                cache[name.lower()] = player

        logger.info(f"👥 Matched {len(cache)} of {len(names)} player names to accounts")
        return cache

    def _finish(self, result: ImportResult, start_time: float) -> ImportResult:
        result.processing_time_seconds = time.time() - start_time
        mode = "DRY RUN " if self.dry_run else ""
        logger.info(
            f"✅ {mode}Import complete: {result.imported} imported, {result.skipped} skipped, "
            f"{len(result.errors)} errors in {result.processing_time_seconds:.1f}s"
        )
        return result
