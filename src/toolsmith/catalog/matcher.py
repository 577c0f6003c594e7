"""
Keyword scoring of free-text queries against the tool catalog.

Scores are additive across three blocks (name, description, aliases)
plus per-token bonuses. The result is advisory: it tells the
orchestrator and collaborator which existing tools look like the
request, it never blocks generation on its own.

Example:
    ```python
    matches = score("encode text to base64", catalog, limit=5)
    for match in matches:
        print(f"{match.tool.name}: {match.match_score}")
    ```
"""

from collections.abc import Iterable

from toolsmith.types import MatchBand, ScoredMatch, ToolDescriptor

# Name block
NAME_EXACT = 100
NAME_CONTAINS_QUERY = 50
QUERY_CONTAINS_NAME = 30

# Description block
DESCRIPTION_CONTAINS_QUERY = 40
DESCRIPTION_HAS_WORD = 20
DESCRIPTION_WORD_MIN_LEN = 4

# Alias block
ALIAS_EXACT = 90
ALIAS_OVERLAP = 45

# Per-token bonuses
TOKEN_MIN_LEN = 3
TOKEN_IN_NAME = 10
TOKEN_IN_DESCRIPTION = 8
TOKEN_IN_ALIAS = 12


def score_tool(query: str, tool: ToolDescriptor) -> int:
    """
    Score a single catalog entry against a query.

    Args:
        query: Free-text query (trimmed and lowercased here)
        tool: Catalog entry to score

    Returns:
        Non-negative score; 0 means unrelated
    """
    q = query.strip().lower()
    if not q:
        return 0

    name = tool.name.lower()
    description = tool.description.lower()
    aliases = [alias.lower() for alias in tool.aliases]
    tokens = q.split()

    total = 0

    if name == q:
        total += NAME_EXACT
    elif q in name:
        total += NAME_CONTAINS_QUERY
    elif name in q:
        total += QUERY_CONTAINS_NAME

    if q in description:
        total += DESCRIPTION_CONTAINS_QUERY
    elif any(
        len(word) >= DESCRIPTION_WORD_MIN_LEN and word in description for word in tokens
    ):
        total += DESCRIPTION_HAS_WORD

    if any(alias == q for alias in aliases):
        total += ALIAS_EXACT
    elif any(alias in q or q in alias for alias in aliases):
        total += ALIAS_OVERLAP

    for token in tokens:
        if len(token) < TOKEN_MIN_LEN:
            continue
        if token in name:
            total += TOKEN_IN_NAME
        if token in description:
            total += TOKEN_IN_DESCRIPTION
        if any(token in alias for alias in aliases):
            total += TOKEN_IN_ALIAS

    return total


def score(
    query: str, catalog: Iterable[ToolDescriptor], limit: int = 5
) -> list[ScoredMatch]:
    """
    Rank catalog entries against a query.

    Zero-score entries are dropped. Sorting is stable, so ties keep
    catalog order.

    Args:
        query: Free-text query
        catalog: Catalog entries in iteration order
        limit: Maximum number of matches to return

    Returns:
        At most `limit` matches, best first
    """
    if limit <= 0:
        return []

    scored = [ScoredMatch(tool=tool, match_score=score_tool(query, tool)) for tool in catalog]
    ranked = sorted(
        (match for match in scored if match.match_score > 0),
        key=lambda match: match.match_score,
        reverse=True,
    )
    return ranked[:limit]


def classify_band(
    match_score: int, redirect_threshold: int, reference_threshold: int
) -> MatchBand:
    """
    Place a score in a reuse band.

    Args:
        match_score: Score from score_tool
        redirect_threshold: Lowest score considered a close match
        reference_threshold: Lowest score considered similar

    Returns:
        CLOSE, SIMILAR, or UNRELATED
    """
    if match_score >= redirect_threshold:
        return MatchBand.CLOSE
    if match_score >= reference_threshold:
        return MatchBand.SIMILAR
    return MatchBand.UNRELATED
