"""
Tests for taxonomy mapping between speedrun.com and internal catalogs
"""

import pytest
from src.base import CatalogEntry
from src.models.taxonomy_mapper import TaxonomyMapper, match_catalog_entry
from src.utils.import_exceptions import ConfigError, ExternalServiceError, MappingError


class TestMatchCatalogEntry:
    """Tests for the per-entity matching strategy"""

    def test_prefers_agreeing_leaderboard_type(self):
        catalog = [
            CatalogEntry(id='il', name='Any%', leaderboard_type='individual-level'),
            CatalogEntry(id='full', name='Any%', leaderboard_type='regular'),
        ]
        assert match_catalog_entry('Any%', catalog, 0.8, 4, preferred_type='regular').id == 'full'
        assert match_catalog_entry('Any%', catalog, 0.8, 4, preferred_type='individual-level').id == 'il'

    def test_falls_back_to_any_type(self):
        catalog = [CatalogEntry(id='il', name='Any%', leaderboard_type='individual-level')]
        assert match_catalog_entry('any%', catalog, 0.8, 4, preferred_type='regular').id == 'il'

    def test_fuzzy_key_match(self):
        catalog = [CatalogEntry(id='c-100', name='100 No Cuts')]
        assert match_catalog_entry('100% (No Cuts)', catalog, 0.8, 4).id == 'c-100'

    def test_similarity_floor_is_inclusive(self):
        catalog = [CatalogEntry(id='p', name='abcdefghijklmnopqrst')]
        assert match_catalog_entry('abcdefghijklmnopqxyz', catalog, 0.85, 3).id == 'p'

    def test_similarity_below_floor(self):
        catalog = [CatalogEntry(id='p', name='abcdefghijklmnopqrstuvwxy')]
        assert match_catalog_entry('abcdefghijklmnopqrstuwxyz', catalog, 0.85, 3) is None

    def test_short_keys_skip_similarity(self):
        catalog = [CatalogEntry(id='x', name='abcd')]
        # "abce" scores 0.75 but is also below the minimum key length of 5
        assert match_catalog_entry('abce', catalog, 0.5, 5) is None
        assert match_catalog_entry('abce', catalog, 0.5, 4).id == 'x'

    def test_ties_keep_first(self):
        catalog = [CatalogEntry(id='first', name='abcdx'), CatalogEntry(id='second', name='abcdy')]
        assert match_catalog_entry('abcdz', catalog, 0.8, 4).id == 'first'


class TestTaxonomyMapper:
    """Tests for build_mappings"""

    @pytest.mark.asyncio
    async def test_rejects_empty_game_id(self, fake_store, fake_client):
        mapper = TaxonomyMapper(fake_store, fake_client)
        with pytest.raises(ConfigError):
            await mapper.build_mappings([], "")

    @pytest.mark.asyncio
    async def test_rejects_non_list(self, fake_store, fake_client, run_factory):
        mapper = TaxonomyMapper(fake_store, fake_client)
        with pytest.raises(ConfigError):
            await mapper.build_mappings((run_factory('r1'),), "game-1")

    @pytest.mark.asyncio
    async def test_category_mapping_by_type(self, fake_store, fake_client, run_factory):
        mapping = await TaxonomyMapper(fake_store, fake_client).build_mappings([run_factory('r1')], "game-1")

        assert mapping.category_ids['cat-any'] == 'c-any'
        assert mapping.category_ids['cat-il'] == 'c-il-any'
        assert mapping.category_ids['cat-100'] == 'c-100'
        assert mapping.external_category_names['cat-100'] == '100% (No Cuts)'
        assert mapping.category_names['100nocuts'] == 'c-100'

    @pytest.mark.asyncio
    async def test_levels_mapped(self, fake_store, fake_client, run_factory):
        mapping = await TaxonomyMapper(fake_store, fake_client).build_mappings([run_factory('r1')], "game-1")
        assert mapping.level_ids == {'lvl-1': 'l-1'}

    @pytest.mark.asyncio
    async def test_platforms_scoped_to_batch(self, fake_store, fake_client, run_factory):
        """Only platforms referenced by the runs are mapped"""
        runs = [run_factory('r1')]
        mapping = await TaxonomyMapper(fake_store, fake_client).build_mappings(runs, "game-1")

        assert mapping.platform_ids == {'plat-pc': 'p-pc'}
        assert 'p-ps2' not in mapping.platform_ids.values()

    @pytest.mark.asyncio
    async def test_missing_platform_names_fetched(self, fake_store, fake_client, run_factory):
        fake_client.platform_names = {'plat-ps2': 'PlayStation 2', 'plat-gone': None}
        runs = [
            run_factory('r1', platform_id='plat-ps2', platform_name=''),
            run_factory('r2', platform_id='plat-ps2', platform_name=''),
            run_factory('r3', platform_id='plat-gone', platform_name=''),
        ]
        mapping = await TaxonomyMapper(fake_store, fake_client).build_mappings(runs, "game-1")

        assert sorted(fake_client.platform_requests) == ['plat-gone', 'plat-ps2']
        assert mapping.platform_ids == {'plat-ps2': 'p-ps2'}
        assert mapping.external_platform_names == {'plat-ps2': 'PlayStation 2'}

    @pytest.mark.asyncio
    async def test_platform_lookup_error_drops_only_that_platform(self, fake_store, fake_client, run_factory):
        fake_client.platform_names = {'plat-ps2': 'PlayStation 2'}
        fake_client.fail_platform_for = {'plat-bad'}
        runs = [
            run_factory('r1', platform_id='plat-ps2', platform_name=''),
            run_factory('r2', platform_id='plat-bad', platform_name=''),
        ]
        mapping = await TaxonomyMapper(fake_store, fake_client).build_mappings(runs, "game-1")

        assert mapping.platform_ids == {'plat-ps2': 'p-ps2'}
        assert 'plat-bad' not in mapping.external_platform_names

    @pytest.mark.asyncio
    async def test_platform_below_floor_keeps_external_name(self, fake_store, fake_client, run_factory):
        fake_store.platforms = [CatalogEntry(id='p-long', name='abcdefghijklmnopqrstuvwxy')]
        run = run_factory('r1', platform_id='plat-x', platform_name='abcdefghijklmnopqrstuwxyz')
        mapping = await TaxonomyMapper(fake_store, fake_client).build_mappings([run], "game-1")

        assert mapping.platform_for(run) == ""
        assert mapping.platform_name_for(run) == 'abcdefghijklmnopqrstuwxyz'

    @pytest.mark.asyncio
    async def test_store_failure_is_mapping_error(self, fake_store, fake_client, run_factory):
        def boom():
            raise RuntimeError("db down")
        fake_store.get_categories = boom
        with pytest.raises(MappingError):
            await TaxonomyMapper(fake_store, fake_client).build_mappings([run_factory('r1')], "game-1")

    @pytest.mark.asyncio
    async def test_external_failure_propagates(self, fake_store, fake_client, run_factory):
        def boom(game_id):
            raise ExternalServiceError("category fetch", "HTTP 503")
        fake_client.fetch_categories = boom
        with pytest.raises(ExternalServiceError):
            await TaxonomyMapper(fake_store, fake_client).build_mappings([run_factory('r1')], "game-1")
