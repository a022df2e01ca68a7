"""
Tests for the Supabase store adapter (client mocked)
"""

import pytest
from unittest.mock import Mock

from src.base import LeaderboardEntry
from src.storage.leaderboard_store import SupabaseLeaderboardStore, chunks, create_store
from src.utils.import_exceptions import ConfigError


def _result(data):
    result = Mock()
    result.data = data
    return result


@pytest.fixture
def mock_supabase():
    return Mock()


class TestChunks:

    def test_chunks(self):
        assert [len(c) for c in chunks(list(range(1200)), 500)] == [500, 500, 200]
        assert list(chunks([], 500)) == []


class TestSupabaseLeaderboardStore:

    def test_existing_ids_paginated(self, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value.eq.return_value
        ordered = query.order.return_value
        ordered.range.return_value.execute.side_effect = [
            _result([{'external_run_id': 'a'}, {'external_run_id': 'b'}]),
            _result([{'external_run_id': None}]),
        ]
        store = SupabaseLeaderboardStore(mock_supabase, page_size=2)

        assert store.get_existing_external_run_ids() == {'a', 'b'}
        mock_supabase.table.return_value.select.assert_called_with('external_run_id')
        query.order.assert_called_with('id')
        ordered.range.assert_any_call(0, 1)
        ordered.range.assert_any_call(2, 3)

    def test_insert_returns_id(self, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.return_value = _result([{'id': 42}])
        store = SupabaseLeaderboardStore(mock_supabase)

        entry_id = store.insert_entry(LeaderboardEntry(player_name="RunnerOne", external_run_id="r1"))

        assert entry_id == "42"
        payload = mock_supabase.table.return_value.insert.call_args.args[0]
        assert payload['external_run_id'] == "r1"
        assert 'id' not in payload

    def test_insert_without_row_raises(self, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.return_value = _result([])
        with pytest.raises(RuntimeError):
            SupabaseLeaderboardStore(mock_supabase).insert_entry(LeaderboardEntry())

    def test_delete_entries_uses_in_filter(self, mock_supabase):
        store = SupabaseLeaderboardStore(mock_supabase)
        store.delete_entries(['x', 'y'])
        mock_supabase.table.return_value.delete.return_value.in_.assert_called_once_with('id', ['x', 'y'])

    def test_delete_nothing_is_noop(self, mock_supabase):
        SupabaseLeaderboardStore(mock_supabase).delete_entries([])
        mock_supabase.table.assert_not_called()

    def test_imported_entries_by_external_player(self, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value.eq.return_value
        ordered = query.ilike.return_value.order.return_value
        ordered.range.return_value.execute.return_value = _result([{'id': 'e1'}])

        rows = SupabaseLeaderboardStore(mock_supabase).get_imported_entries_by_external_player(" speedy_1 ")

        assert rows == [{'id': 'e1'}]
        query.ilike.assert_called_once_with('external_player_name', '%speedy\\_1%')

    def test_imported_entries_by_blank_player(self, mock_supabase):
        assert SupabaseLeaderboardStore(mock_supabase).get_imported_entries_by_external_player("  ") == []
        mock_supabase.table.assert_not_called()

    def test_update_entries(self, mock_supabase):
        SupabaseLeaderboardStore(mock_supabase).update_entries(['x'], {'player_id': 'p1'})
        mock_supabase.table.return_value.update.assert_called_once_with({'player_id': 'p1'})
        mock_supabase.table.return_value.update.return_value.in_.assert_called_once_with('id', ['x'])

    def test_find_player_escapes_wildcards(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.ilike.return_value.limit.return_value.execute.return_value = _result(
            [{'uid': 'u1', 'display_name': 'Run_ner', 'external_username': None}]
        )

        player = SupabaseLeaderboardStore(mock_supabase).find_player_by_display_name(" Run_ner ")

        assert player.uid == 'u1'
        select.ilike.assert_called_with('display_name', 'Run\\_ner')

    def test_find_player_blank_name(self, mock_supabase):
        assert SupabaseLeaderboardStore(mock_supabase).find_player_by_display_name("  ") is None
        mock_supabase.table.assert_not_called()

    def test_players_with_usernames_filters_blank(self, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value.order.return_value
        query.range.return_value.execute.return_value = _result([
            {'uid': 'u1', 'display_name': 'A', 'external_username': 'alpha'},
            {'uid': 'u2', 'display_name': 'B', 'external_username': '  '},
            {'uid': 'u3', 'display_name': 'C', 'external_username': None},
        ])
        players = SupabaseLeaderboardStore(mock_supabase).get_players_with_external_usernames()
        assert [p.uid for p in players] == ['u1']


def test_create_store_requires_credentials(monkeypatch):
    monkeypatch.setattr('src.storage.leaderboard_store.SUPABASE_URL', None)
    with pytest.raises(ConfigError):
        create_store(None, None)
