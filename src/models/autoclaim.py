"""Link unclaimed imported runs to player accounts by external username"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.settings import MAINTENANCE_CONFIG
from src.base import LeaderboardEntry
from src.storage.leaderboard_store import chunks
from src.utils.import_exceptions import ReconciliationError
from src.utils.name_normalizer import normalize, is_unclaimed

logger = logging.getLogger(__name__)

CLAIM_FIELDS = 'id, player_id, external_player_name'


@dataclass
class AutoclaimSummary:
    runs_updated: int = 0
    players_updated: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'runs_updated': self.runs_updated,
            'players_updated': self.players_updated,
            'errors': self.errors,
        }


class AutoclaimReconciler:
    """
    Assigns imported runs to the player whose declared speedrun.com username
    matches the run's stored external player name.

    Only unclaimed runs are touched (empty, blank or legacy "imported" owner);
    a run claimed by anyone is never reassigned.

    Usage:
        reconciler = AutoclaimReconciler(store)
        claimed = reconciler.autoclaim(player_uid, "SomeRunner")
        summary = reconciler.autoclaim_all()
    """

    def __init__(self, store, batch_size: int = MAINTENANCE_CONFIG['write_batch_size']):
        self.store = store
        self.batch_size = batch_size

    def _matching_unclaimed(self, rows: List[Dict], normalized_username: str) -> List[Dict]:
        return [
            row for row in rows
            if normalize(row.get('external_player_name')) == normalized_username
            and is_unclaimed(row.get('player_id'))
        ]

    def autoclaim(self, player_id: str, external_username: str,
                  imported_rows: Optional[List[Dict]] = None) -> int:
        """
        Claim every unclaimed imported run whose external player name matches.

        Args:
            player_id: Account to assign
            external_username: The account's speedrun.com username (any case)
            imported_rows: Pre-fetched imported rows (id, player_id, external_player_name);
                queried by username from the store when omitted

        Returns:
            Number of runs claimed
        """
        if not player_id or not str(player_id).strip():
            raise ValueError("player_id is required")
        normalized_username = normalize(external_username)
        if not normalized_username:
            raise ValueError("external_username is required")

        if imported_rows is None:
            imported_rows = self.store.get_imported_entries_by_external_player(normalized_username, CLAIM_FIELDS)

        targets = self._matching_unclaimed(imported_rows, normalized_username)
        if not targets:
            return 0

        claimed = 0
        for chunk in chunks(targets, self.batch_size):
            self.store.update_entries([row['id'] for row in chunk], {'player_id': player_id})
            for row in chunk:
                row['player_id'] = player_id
            claimed += len(chunk)

        logger.info(f"🔗 Claimed {claimed} runs for '{normalized_username}' -> {player_id}")
        return claimed

    def autoclaim_all(self) -> AutoclaimSummary:
        """Run autoclaim for every player with a declared external username"""
        summary = AutoclaimSummary()

        try:
            players = self.store.get_players_with_external_usernames()
            imported_rows = self.store.get_imported_entries(CLAIM_FIELDS)
        except Exception as e:
            logger.error(f"❌ Autoclaim aborted: {e}")
            summary.errors.append(f"Fatal error: {e}")
            return summary

        for player in players:
            try:
                claimed = self.autoclaim(player.uid, player.external_username, imported_rows)
            except Exception as e:
                error = ReconciliationError(player.external_username, str(e))
                logger.warning(str(error))
                summary.errors.append(str(error))
                continue
            if claimed > 0:
                summary.runs_updated += claimed
                summary.players_updated += 1

        logger.info(
            f"✅ Autoclaim complete: {summary.runs_updated} runs for "
            f"{summary.players_updated} players ({len(summary.errors)} errors)"
        )
        return summary

    def get_unclaimed_runs(self, external_username: str) -> List[LeaderboardEntry]:
        """Unclaimed imported runs whose external player name matches"""
        normalized_username = normalize(external_username)
        if not normalized_username:
            return []
        rows = self.store.get_imported_entries_by_external_player(normalized_username)
        return [LeaderboardEntry.from_record(row) for row in self._matching_unclaimed(rows, normalized_username)]

    def get_unclaimed_imported_runs(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        rows = [row for row in self.store.get_imported_entries('*') if is_unclaimed(row.get('player_id'))]
        if limit is not None:
            rows = rows[:limit]
        return [LeaderboardEntry.from_record(row) for row in rows]

    def claim_run(self, run_id: str, user_id: str) -> bool:
        """
        Manually claim one imported run.

        Refuses runs that were not imported and runs already owned by a
        different user. Claiming a run you already own succeeds.
        """
        if not run_id or not user_id:
            return False

        entry = self.store.get_entry(run_id)
        if entry is None:
            logger.error(f"Run {run_id} does not exist")
            return False
        if not entry.imported_from_external:
            logger.error(f"Run {run_id} is not an imported run")
            return False
        if not is_unclaimed(entry.player_id) and entry.player_id != user_id:
            logger.error(f"Run {run_id} is already claimed by another user")
            return False

        self.store.update_entry(run_id, {'player_id': user_id})
        return True

    def try_auto_assign_run(self, run_id: str, entry: LeaderboardEntry) -> bool:
        """Assign a single freshly imported entry if its player has linked their username"""
        if not entry.external_player_name or not is_unclaimed(entry.player_id):
            return False

        player = self.store.find_player_by_external_username(normalize(entry.external_player_name))
        if player is None:
            return False

        self.store.update_entry(run_id, {'player_id': player.uid})
        logger.debug(f"Auto-assigned run {run_id} to {player.uid}")
        return True
