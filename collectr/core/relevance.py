"""Relevance scoring — tiered title matching with an edit-distance fallback."""

from __future__ import annotations

import re

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.9
WORD_SCORE = 0.8
SUBSTRING_SCORE = 0.7
# Fuzzy matches are scaled so they stay below every structural tier.
FUZZY_WEIGHT = 0.6


def normalize(text: str) -> str:
    """Lowercase and trim a query or title for comparison."""
    return text.strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Case-insensitive unit-cost edit distance between two strings."""
    a, b = a.lower(), b.lower()
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """``1 - distance / len(longer)``; two empty strings are identical."""
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    if not longer:
        return 1.0
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def score(query: str, title: str) -> float:
    """Score how well ``title`` answers ``query``, in [0, 1].

    Tiers are checked in order and the first hit wins: exact match, prefix,
    whole word, substring, then scaled edit-distance similarity.
    """
    q = normalize(query)
    t = normalize(title)

    if q == t:
        return EXACT_SCORE
    if t.startswith(q):
        return PREFIX_SCORE
    if re.search(rf"\b{re.escape(q)}\b", t):
        return WORD_SCORE
    if q in t:
        return SUBSTRING_SCORE
    return string_similarity(q, t) * FUZZY_WEIGHT
