"""Bulk maintenance over imported leaderboard entries"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from config.settings import MAINTENANCE_CONFIG
from src.base import LeaderboardEntry
from src.storage.leaderboard_store import chunks
from src.utils.name_normalizer import is_unclaimed, normalize
from src.utils.run_field_autofill import autofill_run_fields

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class DeleteResult:
    deleted: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'deleted': self.deleted, 'errors': self.errors}


@dataclass
class UnclaimedDeleteResult:
    success: bool = True
    deleted_runs: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'success': self.success, 'deleted_runs': self.deleted_runs}
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class UpdateResult:
    updated: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'updated': self.updated, 'errors': self.errors}


class BulkMaintenance:
    """
    Chunked admin operations over imported entries.

    Deletes are committed one chunk at a time, in order, with the cumulative
    count reported after each commit. A failing chunk stops the operation;
    re-running it picks up whatever is left, since each run re-queries the
    matching set.
    """

    def __init__(self, store, batch_size: int = MAINTENANCE_CONFIG['write_batch_size']):
        self.store = store
        self.batch_size = batch_size

    def delete_all_imported(self, progress_callback: Optional[ProgressCallback] = None) -> DeleteResult:
        """Delete every entry that came from the external service"""
        result = DeleteResult()
        try:
            ids = [row['id'] for row in self.store.get_imported_entries('id')]
        except Exception as e:
            logger.error(f"❌ Could not load imported entries: {e}")
            result.errors.append(f"Failed to load imported runs: {e}")
            return result

        if not ids:
            logger.info("No imported entries to delete")
            return result

        deleted = 0
        for chunk in chunks(ids, self.batch_size):
            try:
                self.store.delete_entries(chunk)
            except Exception as e:
                logger.error(f"❌ Delete batch failed after {deleted} entries: {e}")
                result.errors.append(f"Failed to delete batch: {e}")
                break
            deleted += len(chunk)
            result.deleted = deleted
            logger.info(f"🗑️  Deleted {deleted}/{len(ids)} imported entries")
            if progress_callback:
                progress_callback(deleted)

        return result

    def delete_all_unclaimed(self, progress_callback: Optional[ProgressCallback] = None) -> UnclaimedDeleteResult:
        """Delete imported entries that no player has claimed"""
        try:
            rows = self.store.get_imported_entries('id, player_id')
        except Exception as e:
            logger.error(f"❌ Could not load imported entries: {e}")
            return UnclaimedDeleteResult(success=False, deleted_runs=0, error=str(e))

        ids = [row['id'] for row in rows if is_unclaimed(row.get('player_id'))]
        if not ids:
            return UnclaimedDeleteResult(success=True, deleted_runs=0)

        result = UnclaimedDeleteResult()
        for chunk in chunks(ids, self.batch_size):
            try:
                self.store.delete_entries(chunk)
            except Exception as e:
                logger.error(f"❌ Delete batch failed after {result.deleted_runs} entries: {e}")
                result.success = False
                result.error = str(e)
                break
            result.deleted_runs += len(chunk)
            logger.info(f"🗑️  Deleted {result.deleted_runs}/{len(ids)} unclaimed entries")
            if progress_callback:
                progress_callback(result.deleted_runs)

        return result

    def normalize_external_player_names(self, progress_callback: Optional[ProgressCallback] = None) -> UpdateResult:
        """Lowercase and trim stored external usernames on legacy rows"""
        result = UpdateResult()
        try:
            rows = self.store.get_imported_entries('id, external_player_name, external_player2_name')
        except Exception as e:
            result.errors.append(f"Fatal error: {e}")
            return result

        for row in rows:
            updates = {}
            for column in ('external_player_name', 'external_player2_name'):
                value = row.get(column)
                if value and value != normalize(value):
                    updates[column] = normalize(value)
            if not updates:
                continue

            try:
                self.store.update_entry(row['id'], updates)
            except Exception as e:
                result.errors.append(f"Run {row['id']}: {e}")
                continue
            result.updated += 1
            if progress_callback and result.updated % 100 == 0:
                progress_callback(result.updated)

        if progress_callback and result.updated % 100:
            progress_callback(result.updated)
        logger.info(f"Normalized external names on {result.updated} entries")
        return result

    def autofill_imported_runs(self) -> UpdateResult:
        """Fill empty category/platform/level ids from the preserved external names"""
        result = UpdateResult()
        try:
            categories = self.store.get_categories()
            platforms = self.store.get_platforms()
            levels = self.store.get_levels()
            rows = self.store.get_imported_entries('*')
        except Exception as e:
            result.errors.append(f"Fatal error: {e}")
            return result

        for row in rows:
            entry = LeaderboardEntry.from_record(row)
            updates = autofill_run_fields(entry, categories, platforms, levels)
            if not updates:
                continue
            try:
                self.store.update_entry(entry.id, updates)
            except Exception as e:
                result.errors.append(f"Run {entry.id}: {e}")
                continue
            result.updated += 1

        logger.info(f"Autofilled fields on {result.updated} imported entries")
        return result
