"""
Edit-distance similarity used to catch near-duplicate entity names.
"""

from __future__ import annotations

from collections.abc import Iterable


def levenshtein(a: str, b: str) -> int:
    """
    Classic insert/delete/substitute edit distance.

    Keeps only two rows of the DP table, so working space is O(len(b)).
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    curr = [0] * (len(b) + 1)
    for i, ca in enumerate(a, start=1):
        curr[0] = i
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
        prev, curr = curr, prev
    return prev[len(b)]


def similarity(a: str, b: str) -> float:
    """
    Similarity ratio in [0, 1].

    1.0 for a case-insensitive match (including empty vs empty), otherwise
    ``1 - distance / max(len(a), len(b))`` on the lower-cased inputs.
    """
    la, lb = a.lower(), b.lower()
    if la == lb:
        return 1.0
    longest = max(len(la), len(lb))
    return 1.0 - levenshtein(la, lb) / longest


def find_similar(candidate: str, names: Iterable[str], threshold: float) -> list[tuple[str, float]]:
    """Return ``(name, score)`` for every name scoring at least ``threshold``, in sorted name order."""
    matches = []
    for name in sorted(names):
        score = similarity(candidate, name)
        if score >= threshold:
            matches.append((name, score))
    return matches
