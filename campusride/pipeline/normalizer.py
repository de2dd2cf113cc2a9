"""Min-max normalization of candidate scores across a result set."""

import logging

from campusride.core.schemas import ScoredCandidate

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("route_score", "price_score", "reputation_score")


def normalize_scores(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Rescale each score dimension to [0, 1] across the candidate set.

    A single candidate keeps its absolute scores. A dimension where every
    candidate has the same value is set to 1.0 for all of them.
    """
    if len(candidates) <= 1:
        logger.debug("Skipped normalization (%d candidate(s))", len(candidates))
        return list(candidates)

    updates: list[dict[str, float]] = [{} for _ in candidates]
    for field in SCORE_FIELDS:
        values = [getattr(c, field) for c in candidates]
        low, high = min(values), max(values)
        for update, value in zip(updates, values):
            update[field] = 1.0 if high == low else (value - low) / (high - low)

    logger.debug("Normalized scores across %d candidates", len(candidates))
    return [c.model_copy(update=u) for c, u in zip(candidates, updates)]
