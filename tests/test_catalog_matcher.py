"""Tests for catalog keyword scoring."""

import pytest

from toolsmith.catalog import classify_band, load_catalog, score, score_tool
from toolsmith.catalog.loader import Catalog
from toolsmith.types import MatchBand, ToolDescriptor


class TestScoreTool:
    """Tests for score_tool."""

    def test_base64_request_scores_each_block(self, small_catalog):
        """Description contains query, alias overlap, and token bonuses add up."""
        tool = small_catalog.get("base64-text")
        # 40 (description) + 45 (alias "base64" in query)
        # + encode 18 + text 8 + base64 30
        assert score_tool("encode text to base64", tool) == 141

    def test_exact_name_match(self):
        tool = ToolDescriptor(slug="json-formatter", name="JSON Formatter")
        # 100 exact + 10 + 10 token bonuses
        assert score_tool("json formatter", tool) == 120

    def test_query_is_trimmed_and_lowercased(self):
        tool = ToolDescriptor(slug="json-formatter", name="JSON Formatter")
        assert score_tool("  JSON Formatter  ", tool) == score_tool("json formatter", tool)

    def test_empty_query_scores_zero(self, small_catalog):
        assert score_tool("", small_catalog.get("base64-text")) == 0
        assert score_tool("   ", small_catalog.get("base64-text")) == 0

    def test_short_tokens_earn_no_bonus(self):
        tool = ToolDescriptor(slug="x", name="Unrelated", description="to be")
        # "to" is in the description but too short for any bonus
        assert score_tool("to", tool) == 40

    def test_exact_name_beats_alias_only(self):
        by_name = ToolDescriptor(slug="a", name="uuid", description="Random identifiers")
        by_alias = ToolDescriptor(
            slug="b",
            name="Guid Generator",
            description="Random identifiers",
            aliases=("uuid",),
        )
        assert score_tool("uuid", by_name) == 110
        assert score_tool("uuid", by_alias) == 102


class TestScore:
    """Tests for ranking the catalog."""

    def test_base64_request_ranks_base64_first(self, small_catalog):
        matches = score("encode text to base64", small_catalog)

        assert matches[0].slug == "base64-text"
        assert matches[0].match_score >= 140

    def test_base64_request_against_bundled_catalog(self):
        matches = score("encode text to base64", load_catalog())

        assert matches[0].slug == "base64-text"
        assert matches[0].match_score >= 140

    def test_zero_scores_are_dropped(self, small_catalog):
        matches = score("encode text to base64", small_catalog)
        slugs = [m.slug for m in matches]

        assert "uuid-generator" not in slugs
        assert all(m.match_score > 0 for m in matches)

    def test_unmatched_query_returns_empty(self, small_catalog):
        assert score("zzzz qqqq", small_catalog) == []

    def test_limit(self, small_catalog):
        assert len(score("generate random identifiers", small_catalog, limit=1)) == 1

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit(self, small_catalog, limit):
        assert score("base64", small_catalog, limit=limit) == []

    def test_ties_keep_catalog_order(self):
        catalog = Catalog(
            (
                ToolDescriptor(slug="first", name="Word Counter"),
                ToolDescriptor(slug="second", name="Word Counter"),
            )
        )
        assert [m.slug for m in score("word counter", catalog)] == ["first", "second"]

    @pytest.mark.parametrize(
        "query",
        ["hash", "convert color", "json", "generate password", "text diff", "url"],
    )
    def test_scores_are_non_increasing(self, query):
        """Bundled catalog rankings are best first, positive only, within limit."""
        matches = score(query, load_catalog(), limit=5)

        scores = [m.match_score for m in matches]
        assert scores == sorted(scores, reverse=True)
        assert all(s > 0 for s in scores)
        assert len(matches) <= 5


class TestClassifyBand:
    """Tests for reuse bands."""

    @pytest.mark.parametrize(
        "match_score,band",
        [
            (200, MatchBand.CLOSE),
            (150, MatchBand.CLOSE),
            (149, MatchBand.SIMILAR),
            (60, MatchBand.SIMILAR),
            (59, MatchBand.UNRELATED),
            (0, MatchBand.UNRELATED),
        ],
    )
    def test_default_thresholds(self, match_score, band):
        assert classify_band(match_score, 150, 60) is band
