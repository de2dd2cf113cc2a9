"""Hybrid scoring and top-N ranking."""

from typing import NamedTuple

from campusride.core.config import ScoringWeights
from campusride.core.schemas import ScoredCandidate


class RankedCandidate(NamedTuple):
    candidate: ScoredCandidate
    hybrid_score: float


def hybrid_score(candidate: ScoredCandidate, weights: ScoringWeights) -> float:
    """Weighted combination of the route, price and reputation scores."""
    return (
        weights.route * candidate.route_score
        + weights.price * candidate.price_score
        + weights.reputation * candidate.reputation_score
    )


def rank_candidates(
    candidates: list[ScoredCandidate],
    weights: ScoringWeights,
    top_n: int,
) -> list[RankedCandidate]:
    """Sort by hybrid score descending and keep the best ``top_n``.

    The sort is stable, so equal scores keep their fetch order.
    """
    if top_n < 1:
        msg = f"top_n must be at least 1, got {top_n}"
        raise ValueError(msg)
    ranked = [RankedCandidate(c, hybrid_score(c, weights)) for c in candidates]
    ranked.sort(key=lambda r: r.hybrid_score, reverse=True)
    return ranked[:top_n]
