"""FairSlot — Ranking & Selection of scored suggestions."""

from __future__ import annotations

from fairslot.data.models import Suggestion


def rank_suggestions(suggestions: list[Suggestion], top_k: int = 5) -> list[Suggestion]:
    """Return the top_k suggestions by descending score.

    The sort is stable, so ties keep the input (chronological) order.
    No de-duplication or minimum spacing between picks is applied.
    """
    ranked = sorted(suggestions, key=lambda s: s.score, reverse=True)
    return ranked[:top_k]
