"""Supabase-backed persistence for leaderboard entries, players and catalog tables"""
import logging
from typing import Dict, Iterator, List, Optional, Set

from supabase import Client, create_client

from config.settings import (
    TABLES,
    MAINTENANCE_CONFIG,
    SUPABASE_URL,
    SUPABASE_KEY,
    SUPABASE_SERVICE_ROLE_KEY,
)
from src.utils.import_exceptions import ConfigError
from src.base import CatalogEntry, LeaderboardEntry, Player

logger = logging.getLogger(__name__)


def chunks(lst: List, size: int) -> Iterator[List]:
    """Yield successive chunks from list"""
    for i in range(0, len(lst), size):
        yield lst[i:i + size]


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so ilike behaves as a case-insensitive equality"""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class SupabaseLeaderboardStore:
    """
    Thin adapter over the Supabase tables the import engine reads and writes.

    Every method is synchronous; async callers wrap them in asyncio.to_thread
    where they fan out.
    """

    def __init__(self, supabase_client: Client, tables: Optional[Dict] = None,
                 page_size: int = MAINTENANCE_CONFIG['page_size']):
        self.supabase = supabase_client
        self.tables = {**TABLES, **(tables or {})}
        self.page_size = page_size

    def _paginated_fetch(self, table: str, select_fields: str, filters=None, ilike_filters=None,
                         order_by: str = 'id') -> List[Dict]:
        """Fetch every matching row, page by page; pages need a stable order to not skip rows"""
        all_data = []
        offset = 0
        while True:
            query = self.supabase.table(table).select(select_fields)
            if filters:
                for col, val in filters:
                    query = query.eq(col, val)
            if ilike_filters:
                for col, pattern in ilike_filters:
                    query = query.ilike(col, pattern)
            result = query.order(order_by).range(offset, offset + self.page_size - 1).execute()
            if not result.data:
                break
            all_data.extend(result.data)
            if len(result.data) < self.page_size:
                break
            offset += self.page_size
        return all_data

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def get_categories(self) -> List[CatalogEntry]:
        rows = self._paginated_fetch(self.tables['categories'], 'id, name, leaderboard_type')
        return [
            CatalogEntry(
                id=str(row['id']),
                name=row.get('name') or '',
                leaderboard_type=row.get('leaderboard_type') or 'regular',
            )
            for row in rows
        ]

    def get_platforms(self) -> List[CatalogEntry]:
        rows = self._paginated_fetch(self.tables['platforms'], 'id, name')
        return [CatalogEntry(id=str(row['id']), name=row.get('name') or '') for row in rows]

    def get_levels(self) -> List[CatalogEntry]:
        """All levels, across individual-level and community-golds boards"""
        rows = self._paginated_fetch(self.tables['levels'], 'id, name')
        return [CatalogEntry(id=str(row['id']), name=row.get('name') or '') for row in rows]

    # ------------------------------------------------------------------
    # Leaderboard entries
    # ------------------------------------------------------------------

    def get_existing_external_run_ids(self) -> Set[str]:
        """External run ids already linked to an entry (id column only)"""
        rows = self._paginated_fetch(
            self.tables['entries'], 'external_run_id',
            filters=[('imported_from_external', True)],
        )
        return {row['external_run_id'] for row in rows if row.get('external_run_id')}

    def insert_entry(self, entry: LeaderboardEntry) -> str:
        """Insert an entry and return its store-assigned id"""
        result = self.supabase.table(self.tables['entries']).insert(entry.to_record()).execute()
        if not result.data:
            raise RuntimeError("Insert returned no row")
        return str(result.data[0]['id'])

    def get_entry(self, entry_id: str) -> Optional[LeaderboardEntry]:
        result = self.supabase.table(self.tables['entries']).select('*').eq('id', entry_id).limit(1).execute()
        if not result.data:
            return None
        return LeaderboardEntry.from_record(result.data[0])

    def get_imported_entries(self, select_fields: str = '*') -> List[Dict]:
        return self._paginated_fetch(
            self.tables['entries'], select_fields,
            filters=[('imported_from_external', True)],
        )

    def get_imported_entries_by_external_player(self, username: str, select_fields: str = '*') -> List[Dict]:
        """
        Imported rows whose stored external player name contains the username,
        ignoring case. Callers narrow the result to exact normalized matches.
        """
        username = (username or '').strip()
        if not username:
            return []
        return self._paginated_fetch(
            self.tables['entries'], select_fields,
            filters=[('imported_from_external', True)],
            ilike_filters=[('external_player_name', f"%{_escape_like(username)}%")],
        )

    def update_entries(self, entry_ids: List[str], values: Dict) -> None:
        """Apply the same field values to one batch of entries"""
        if not entry_ids:
            return
        self.supabase.table(self.tables['entries']).update(values).in_('id', entry_ids).execute()

    def update_entry(self, entry_id: str, values: Dict) -> None:
        self.supabase.table(self.tables['entries']).update(values).eq('id', entry_id).execute()

    def delete_entries(self, entry_ids: List[str]) -> None:
        """Delete one batch of entries"""
        if not entry_ids:
            return
        self.supabase.table(self.tables['entries']).delete().in_('id', entry_ids).execute()

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    @staticmethod
    def _to_player(row: Dict) -> Player:
        return Player(
            uid=str(row['uid']),
            display_name=row.get('display_name') or '',
            external_username=row.get('external_username'),
        )

    def find_player_by_display_name(self, name: str) -> Optional[Player]:
        """
        Case-insensitive display name lookup, falling back to the email prefix
        for accounts that never set a display name.
        """
        name = (name or '').strip()
        if not name:
            return None

        table = self.supabase.table(self.tables['players'])
        pattern = _escape_like(name)
        result = table.select('uid, display_name, external_username').ilike(
            'display_name', pattern
        ).limit(1).execute()
        if result.data:
            return self._to_player(result.data[0])

        result = self.supabase.table(self.tables['players']).select(
            'uid, display_name, external_username'
        ).ilike('email', f"{pattern}@%").limit(1).execute()
        if result.data:
            return self._to_player(result.data[0])
        return None

    def find_player_by_external_username(self, username: str) -> Optional[Player]:
        username = (username or '').strip()
        if not username:
            return None
        result = self.supabase.table(self.tables['players']).select(
            'uid, display_name, external_username'
        ).ilike('external_username', _escape_like(username)).limit(1).execute()
        if result.data:
            return self._to_player(result.data[0])
        return None

    def get_players_with_external_usernames(self) -> List[Player]:
        rows = self._paginated_fetch(
            self.tables['players'], 'uid, display_name, external_username', order_by='uid'
        )
        return [
            self._to_player(row) for row in rows
            if (row.get('external_username') or '').strip()
        ]



def create_store(url: Optional[str] = None, key: Optional[str] = None) -> SupabaseLeaderboardStore:
    """Build a store from explicit credentials or the service-role settings"""
    url = url or SUPABASE_URL
    key = key or SUPABASE_SERVICE_ROLE_KEY or SUPABASE_KEY
    if not url or not key:
        raise ConfigError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set",
            "Error: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in .env"
        )
    return SupabaseLeaderboardStore(create_client(url, key))
