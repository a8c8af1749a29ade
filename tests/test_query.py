"""Unit tests for query classification and validation."""

import pytest

from tiersearch.errors import InvalidQueryError
from tiersearch.query import FreeTextQuery, ProximityQuery, parse_proximity, parse_query


class TestParseQuery:
    def test_free_text(self):
        query = parse_query("  Apple Orange ")
        assert query == FreeTextQuery(text="apple orange", terms=["apple", "orange"])

    def test_proximity(self):
        assert parse_query("apple /3 orange") == ProximityQuery("apple", "orange", 3)

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "apple orange /3",
            "/3 apple orange",
            "apple / orange",
            "apple /x orange",
            "_term /2 orange",
            "apple /2 orange pear",
        ],
    )
    def test_invalid(self, text: str):
        with pytest.raises(InvalidQueryError):
            parse_query(text)

    @pytest.mark.parametrize("marker", ["/²", "/٣", "/３"])
    def test_distance_must_be_ascii_digits(self, marker: str):
        with pytest.raises(InvalidQueryError):
            parse_query(f"cat {marker} sat")

    def test_error_message_names_the_query(self):
        with pytest.raises(InvalidQueryError, match="The query '/3 a b' is invalid"):
            parse_query("/3 a b")


class TestParseProximity:
    def test_two_terms_default_to_distance_one(self):
        assert parse_proximity("cat sat") == ProximityQuery("cat", "sat", 1)

    def test_explicit_distance(self):
        assert parse_proximity("cat /0 sat") == ProximityQuery("cat", "sat", 0)

    @pytest.mark.parametrize("text", ["cat", "cat /2", "/2 cat", "a b c d", "-cat dog"])
    def test_invalid(self, text: str):
        with pytest.raises(InvalidQueryError):
            parse_proximity(text)
