"""
Tests for name normalization and similarity used by taxonomy matching
"""

import pytest
from src.utils.name_normalizer import normalize, fuzzy_key, similarity, is_unclaimed


class TestNormalize:
    """Tests for normalize / fuzzy_key"""

    def test_trim_and_lowercase(self):
        assert normalize("  Any% ") == "any%"
        assert normalize("PlayStation 2") == "playstation 2"

    def test_none_is_empty(self):
        assert normalize(None) == ""
        assert fuzzy_key(None) == ""

    def test_fuzzy_key_strips_punctuation(self):
        """Test that punctuation and spaces disappear from the fuzzy key"""
        assert fuzzy_key("100% (No Cuts)") == "100nocuts"
        assert fuzzy_key("100 No Cuts") == "100nocuts"
        assert fuzzy_key("Nintendo GameCube") == "nintendogamecube"


class TestSimilarity:
    """Tests for positional similarity"""

    def test_identical(self):
        assert similarity("gamecube", "gamecube") == 1.0

    def test_both_empty(self):
        assert similarity("", "") == 1.0

    def test_one_empty(self):
        assert similarity("abc", "") == 0.0

    def test_tail_counts_as_mismatch(self):
        # 4 matching positions out of 5
        assert similarity("abcde", "abcd") == pytest.approx(0.8)

    def test_positional_not_edit_distance(self):
        """Shifted strings score low even though they share characters"""
        assert similarity("abcd", "bcda") == 0.0

    def test_symmetric(self):
        assert similarity("xbox360", "xbox one") == similarity("xbox one", "xbox360")

    def test_exact_threshold_values(self):
        assert similarity("abcdefghijklmnopqrst", "abcdefghijklmnopqxyz") == 0.85
        assert similarity("abcdefghijklmnopqrstuvwxy", "abcdefghijklmnopqrstuwxyz") < 0.85


class TestIsUnclaimed:
    """All representations of an unclaimed owner"""

    @pytest.mark.parametrize("value", [None, "", "   ", "imported", " imported "])
    def test_unclaimed_values(self, value):
        assert is_unclaimed(value)

    @pytest.mark.parametrize("value", ["user-123", "Imported-User"])
    def test_claimed_values(self, value):
        assert not is_unclaimed(value)
