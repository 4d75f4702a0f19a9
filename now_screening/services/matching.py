"""
Matching Logic for movie listings

Provides title normalization and approximate title search:
- normalize_title: shared with the extractor (see utils.text)
- fold_case: length-preserving lowercase used for comparison
- fuzzy_score: subsequence score of a query against one title
- match: rank a snapshot's entries against a free-text query

Query characters must appear in the title in order (case-insensitive).
Contiguous runs, word starts and early matches score higher, so a query
with a dropped or extra letter still ranks the intended title first.
"""
from typing import List, Optional, Sequence, Tuple

from now_screening.scrapers.base import ListingEntry
from now_screening.utils.text import normalize_title

# Scoring weights
FIRST_CHAR_MATCH_BONUS = 10
SEPARATOR_MATCH_BONUS = 20
CAMEL_CASE_MATCH_BONUS = 20
ADJACENT_MATCH_BONUS = 5
UNMATCHED_LEADING_CHAR_PENALTY = -5
MAX_UNMATCHED_LEADING_CHAR_PENALTY = -15
UNMATCHED_CHAR_PENALTY = -1

SEPARATORS = frozenset(" -_:./'(")


def fold_case(text: str) -> str:
    """Lowercase one character at a time, keeping the length of text.

    Some characters lowercase to more than one code point (e.g. "\u0130");
    only the first is kept so positions line up with the original text.

    Examples:
        >>> len(fold_case("\u0130a")) == 2
        True
    """
    return "".join(char.lower()[:1] for char in text)


def fuzzy_score(query: str, title: str) -> Optional[int]:
    """
    Score a query against a title as an in-order subsequence.

    Both strings are compared case-insensitively. Characters are matched
    greedily from left to right.

    Args:
        query: Normalized, non-empty query
        title: Normalized title

    Returns:
        Integer score (higher is better), or None if the query is not a
        subsequence of the title.

    Examples:
        >>> fuzzy_score("balerina", "Ballerina") is not None
        True
        >>> fuzzy_score("balerina", "Sinners") is None
        True
    """
    if not query:
        return 0

    pattern = fold_case(query)
    lowered = fold_case(title)

    score = 0
    pattern_index = 0
    last_match: Optional[int] = None
    first_match: Optional[int] = None
    matched = 0

    for index, char in enumerate(lowered):
        if pattern_index == len(pattern):
            break
        if char != pattern[pattern_index]:
            continue

        if first_match is None:
            first_match = index
        if index == 0:
            score += FIRST_CHAR_MATCH_BONUS
        else:
            previous = title[index - 1]
            if previous in SEPARATORS:
                score += SEPARATOR_MATCH_BONUS
            elif previous.islower() and title[index].isupper():
                score += CAMEL_CASE_MATCH_BONUS
        if last_match is not None and index == last_match + 1:
            score += ADJACENT_MATCH_BONUS

        last_match = index
        pattern_index += 1
        matched += 1

    if pattern_index < len(pattern):
        return None

    leading_penalty = max(
        UNMATCHED_LEADING_CHAR_PENALTY * (first_match or 0),
        MAX_UNMATCHED_LEADING_CHAR_PENALTY,
    )
    score += leading_penalty
    score += UNMATCHED_CHAR_PENALTY * (len(title) - matched)
    return score


def rank(entries: Sequence[ListingEntry], query: str) -> List[Tuple[ListingEntry, int]]:
    """Return (entry, score) pairs for matching entries, best first.

    Ties keep snapshot order (sorted() is stable).
    """
    scored = []
    for entry in entries:
        score = fuzzy_score(query, entry.title)
        if score is not None:
            scored.append((entry, score))
    return sorted(scored, key=lambda pair: -pair[1])


def match(entries: Sequence[ListingEntry], query: Optional[str]) -> List[ListingEntry]:
    """
    Filter and order a snapshot's entries by relevance to a query.

    Args:
        entries: Snapshot entries in extraction order
        query: Free-text query; normalized before scoring

    Returns:
        The entries unchanged (same order) for an empty query, otherwise
        only the matching entries ordered by descending score. An empty
        list is a valid result.

    Examples:
        >>> films = [ListingEntry("Ballerina", "a"), ListingEntry("Sinners", "b")]
        >>> [e.title for e in match(films, "balerina")]
        ['Ballerina']
    """
    normalized = normalize_title(query)
    if not normalized:
        return list(entries)

    return [entry for entry, _ in rank(entries, normalized)]
