"""Shared fixtures: in-memory store and speedrun.com client"""
from typing import Dict, List, Optional

import pytest

from src.base import CatalogEntry, ExternalCategory, ExternalLevel, ExternalRun, LeaderboardEntry, Player
from src.utils.name_normalizer import normalize


class FakeStore:
    """In-memory stand-in for SupabaseLeaderboardStore"""

    def __init__(self):
        self.categories: List[CatalogEntry] = []
        self.platforms: List[CatalogEntry] = []
        self.levels: List[CatalogEntry] = []
        self.entries: Dict[str, Dict] = {}
        self.players: List[Player] = []
        self.delete_calls: List[List[str]] = []
        self.update_calls: List[List[str]] = []
        self.by_player_queries: List[str] = []
        self.fail_insert_for: set = set()
        self.fail_delete_on_call: Optional[int] = None
        self._next_id = 1

    def add_entry(self, **fields) -> str:
        entry_id = fields.pop('id', None) or f"entry-{self._next_id}"
        self._next_id += 1
        self.entries[entry_id] = {'id': entry_id, **fields}
        return entry_id

    def get_categories(self):
        return list(self.categories)

    def get_platforms(self):
        return list(self.platforms)

    def get_levels(self):
        return list(self.levels)

    def get_existing_external_run_ids(self):
        return {
            row['external_run_id'] for row in self.entries.values()
            if row.get('imported_from_external') and row.get('external_run_id')
        }

    def insert_entry(self, entry: LeaderboardEntry) -> str:
        if entry.external_run_id in self.fail_insert_for:
            raise RuntimeError("insert rejected")
        return self.add_entry(**entry.to_record())

    def get_entry(self, entry_id):
        row = self.entries.get(entry_id)
        return LeaderboardEntry.from_record(row) if row else None

    def get_imported_entries(self, select_fields='*'):
        # Copies, like rows coming back from the API
        return [dict(row) for row in self.entries.values() if row.get('imported_from_external')]

    def get_imported_entries_by_external_player(self, username, select_fields='*'):
        self.by_player_queries.append(username)
        needle = (username or '').strip().lower()
        return [
            dict(row) for row in self.entries.values()
            if row.get('imported_from_external') and needle and needle in (row.get('external_player_name') or '').lower()
        ]

    def update_entries(self, entry_ids, values):
        self.update_calls.append(list(entry_ids))
        for entry_id in entry_ids:
            self.entries[entry_id].update(values)

    def update_entry(self, entry_id, values):
        self.entries[entry_id].update(values)

    def delete_entries(self, entry_ids):
        if self.fail_delete_on_call is not None and len(self.delete_calls) == self.fail_delete_on_call:
            raise RuntimeError("commit failed")
        self.delete_calls.append(list(entry_ids))
        for entry_id in entry_ids:
            self.entries.pop(entry_id, None)

    def find_player_by_display_name(self, name):
        for player in self.players:
            if normalize(player.display_name) == normalize(name):
                return player
        return None

    def find_player_by_external_username(self, username):
        for player in self.players:
            if normalize(player.external_username) == normalize(username):
                return player
        return None

    def get_players_with_external_usernames(self):
        return [p for p in self.players if (p.external_username or '').strip()]


class FakeClient:
    """In-memory stand-in for SpeedrunComClient"""

    def __init__(self, game_id='game-1'):
        self.game_id = game_id
        self.runs: List[ExternalRun] = []
        self.categories: List[ExternalCategory] = []
        self.levels: List[ExternalLevel] = []
        self.platform_names: Dict[str, Optional[str]] = {}
        self.platform_requests: List[str] = []
        self.fail_platform_for: set = set()
        self.fail_runs = False

    def resolve_game_id(self):
        return self.game_id

    def fetch_candidate_runs(self, game_id, limit):
        if self.fail_runs:
            raise RuntimeError("speedrun.com unavailable")
        return self.runs[:limit]

    def fetch_categories(self, game_id):
        return list(self.categories)

    def fetch_levels(self, game_id):
        return list(self.levels)

    def fetch_platform_name(self, platform_id):
        self.platform_requests.append(platform_id)
        if platform_id in self.fail_platform_for:
            raise AttributeError("'list' object has no attribute 'get'")
        return self.platform_names.get(platform_id)


def make_run(run_id: str, **overrides) -> ExternalRun:
    fields = dict(
        run_id=run_id,
        player_names=("RunnerOne",),
        category_id="cat-any",
        category_name="Any%",
        category_type="per-game",
        platform_id="plat-pc",
        platform_name="PC",
        primary_time="PT1H2M3S",
        primary_seconds=3723.0,
        date="2024-03-01",
        submitted="2024-03-02T10:00:00Z",
    )
    fields.update(overrides)
    return ExternalRun(**fields)


@pytest.fixture
def fake_store():
    store = FakeStore()
    store.categories = [
        CatalogEntry(id='c-any', name='Any%', leaderboard_type='regular'),
        CatalogEntry(id='c-100', name='100 No Cuts', leaderboard_type='regular'),
        CatalogEntry(id='c-il-any', name='Any%', leaderboard_type='individual-level'),
    ]
    store.platforms = [
        CatalogEntry(id='p-pc', name='PC'),
        CatalogEntry(id='p-ps2', name='PlayStation 2'),
    ]
    store.levels = [CatalogEntry(id='l-1', name='Negotiations')]
    return store


@pytest.fixture
def fake_client():
    client = FakeClient()
    client.categories = [
        ExternalCategory(id='cat-any', name='Any%', type='per-game'),
        ExternalCategory(id='cat-100', name='100% (No Cuts)', type='per-game'),
        ExternalCategory(id='cat-il', name='Any%', type='per-level'),
    ]
    client.levels = [ExternalLevel(id='lvl-1', name='Negotiations')]
    return client


@pytest.fixture
def run_factory():
    return make_run
