"""Tests for trellis.core.similarity module."""

import pytest

from trellis.core.similarity import find_similar, levenshtein, similarity


class TestLevenshtein:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("Order", "Orderr", 1),
            ("flaw", "lawn", 2),
        ],
    )
    def test_distance(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("customer", "costumer") == levenshtein("costumer", "customer")


class TestSimilarity:
    def test_case_insensitive_match_is_one(self):
        assert similarity("Order", "order") == 1.0

    def test_empty_vs_empty_is_one(self):
        assert similarity("", "") == 1.0

    def test_near_duplicate(self):
        assert similarity("Order", "Orderr") == pytest.approx(0.8333, abs=1e-3)

    def test_unrelated(self):
        assert similarity("Order", "Invoice") < 0.5

    def test_bounds(self):
        assert similarity("abc", "") == 0.0
        assert 0.0 <= similarity("Widget", "Gadget") <= 1.0


class TestFindSimilar:
    def test_threshold_filters_and_sorts(self):
        matches = find_similar("Orderr", ["Order", "Orders", "Invoice"], 0.8)
        assert [name for name, _ in matches] == ["Order", "Orders"]
        assert all(score >= 0.8 for _, score in matches)

    def test_no_match(self):
        assert find_similar("Widget", ["Order"], 0.8) == []
