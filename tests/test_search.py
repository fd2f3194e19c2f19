"""Tests for wine list filter parsing."""

from wine_journal.core.schema import WineSearch
from wine_journal.core.search import parse_wine_search


class TestParseWineSearch:
    """Tests for parse_wine_search."""

    def test_empty_params(self) -> None:
        assert parse_wine_search({}) == WineSearch()

    def test_all_filters(self) -> None:
        search = parse_wine_search({"type": "red", "ratingMin": "90", "label": "true", "ai": "true"})

        assert search.wine_type == "red"
        assert search.rating_min == 90
        assert search.has_label is True
        assert search.has_ai is True

    def test_flags_only_literal_true(self) -> None:
        search = parse_wine_search({"label": "1", "ai": "TRUE"})

        assert search.has_label is False
        assert search.has_ai is False

    def test_unknown_keys_ignored(self) -> None:
        assert parse_wine_search({"page": "2", "type": "white"}).wine_type == "white"

    def test_non_numeric_rating_drops_all_filters(self) -> None:
        assert parse_wine_search({"type": "red", "ratingMin": "lots"}) == WineSearch()

    def test_out_of_range_rating_drops_all_filters(self) -> None:
        assert parse_wine_search({"type": "red", "ratingMin": "150"}) == WineSearch()

    def test_non_finite_rating_drops_all_filters(self) -> None:
        assert parse_wine_search({"ratingMin": "nan"}) == WineSearch()
        assert parse_wine_search({"ratingMin": "inf"}) == WineSearch()
