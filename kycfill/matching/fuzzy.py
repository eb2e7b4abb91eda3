"""Normalized edit-distance similarity used to match dropdown option text.

Scores follow ``1 - distance / max(len(a), len(b))`` over lowercased input, so
identical strings (ignoring case) score ``1.0`` and two empty strings are
treated as identical.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from rapidfuzz.distance import Levenshtein

DEFAULT_THRESHOLD = 0.95


def similarity(first: str, second: str) -> float:
    """Return the case-insensitive normalized Levenshtein similarity."""

    left = (first or "").lower()
    right = (second or "").lower()
    if not left and not right:
        return 1.0
    return float(Levenshtein.normalized_similarity(left, right))


@dataclass(frozen=True, slots=True)
class OptionMatch:
    """Position and quality of the option chosen for a target text."""

    index: int
    text: str
    score: float
    method: str  # exact, case_insensitive, fuzzy


def best_option_match(
    target: str,
    options: Sequence[str],
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[OptionMatch]:
    """Pick the option that best represents ``target``.

    Precedence is exact text, then case-insensitive equality, then the highest
    fuzzy score at or above ``threshold``. Ties keep the earliest option.
    """

    wanted = (target or "").strip()
    cleaned = [(option or "").strip() for option in options]

    for index, text in enumerate(cleaned):
        if text == wanted:
            return OptionMatch(index=index, text=text, score=1.0, method="exact")

    folded = wanted.casefold()
    for index, text in enumerate(cleaned):
        if text.casefold() == folded:
            return OptionMatch(index=index, text=text, score=1.0, method="case_insensitive")

    best: Optional[OptionMatch] = None
    for index, text in enumerate(cleaned):
        score = similarity(text, wanted)
        if score < threshold:
            continue
        if best is None or score > best.score:
            best = OptionMatch(index=index, text=text, score=score, method="fuzzy")
    return best


__all__ = ["DEFAULT_THRESHOLD", "OptionMatch", "best_option_match", "similarity"]
