"""Orchestrator: wires ride fetch, scoring, normalization and ranking.

Data flow:
  1. Fetch candidate rides from the source
  2. Score every ride concurrently (gates + raw scores)
  3. Normalize scores across survivors
  4. Hybrid score + top-N ranking
  5. Map to MatchResult

Any failure in steps 1-2 (including a lookup timeout) is logged and the
search returns an empty list.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone

from campusride.core.config import ScoringWeights, Settings
from campusride.core.schemas import GeoPoint, MatchResult, PassengerRequest, ScoredCandidate
from campusride.pipeline.eligibility import EligibilityChecker
from campusride.pipeline.normalizer import normalize_scores
from campusride.pipeline.ranker import RankedCandidate, rank_candidates
from campusride.pipeline.scorer import ScoringEngine
from campusride.sources.base import RideSource

logger = logging.getLogger(__name__)


class MatchEngine:
    """Finds and ranks the best rides for a passenger.

    Weights are an immutable ScoringWeights value; ``update_weights`` swaps
    in a new one and every search reads it once at start.

    Usage::

        engine = MatchEngine(SQLiteRideSource(conn), settings)
        matches = await engine.find_best_matches(pickup, destination, 1, 15.0)
    """

    def __init__(self, source: RideSource, settings: Settings | None = None) -> None:
        self._source = source
        self._settings = settings or Settings()
        self._weights = self._settings.weights
        self._eligibility = EligibilityChecker(
            source, self._settings.eligibility, self._settings.lookup,
        )
        self._scorer = ScoringEngine(source, self._settings, self._eligibility)

    @property
    def weights(self) -> ScoringWeights:
        return self._weights

    def update_weights(
        self,
        route: float | None = None,
        price: float | None = None,
        reputation: float | None = None,
    ) -> ScoringWeights:
        """Replace the engine's default weights, re-normalized to sum to 1.0."""
        self._weights = self._weights.updated(route=route, price=price, reputation=reputation)
        logger.info(
            "Weights updated: route=%.2f price=%.2f reputation=%.2f",
            self._weights.route, self._weights.price, self._weights.reputation,
        )
        return self._weights

    async def find_best_matches(
        self,
        passenger_pickup: GeoPoint,
        passenger_destination: GeoPoint,
        seats_required: int,
        max_willingness_to_pay: float,
        min_rating_threshold: float | None = None,
        top_n: int | None = None,
        max_distance_km: float | None = None,
        *,
        passenger_id: str | None = None,
        weights: ScoringWeights | None = None,
        now: datetime | None = None,
    ) -> list[MatchResult]:
        """Return up to ``top_n`` matches ordered by hybrid score, best first.

        Omitted search parameters fall back to ``Settings.search``.

        Raises:
            pydantic.ValidationError: If the search parameters are invalid.
        """
        defaults = self._settings.search
        request = PassengerRequest(
            pickup=passenger_pickup,
            destination=passenger_destination,
            seats_required=seats_required,
            max_willingness_to_pay=max_willingness_to_pay,
            min_rating_threshold=(
                defaults.min_rating_threshold
                if min_rating_threshold is None else min_rating_threshold
            ),
            top_n=defaults.top_n if top_n is None else top_n,
            max_distance_km=defaults.max_distance_km if max_distance_km is None else max_distance_km,
            passenger_id=passenger_id,
        )
        return await self.search(request, weights=weights, now=now)

    async def search(
        self,
        request: PassengerRequest,
        *,
        weights: ScoringWeights | None = None,
        now: datetime | None = None,
    ) -> list[MatchResult]:
        """Run the full pipeline for a validated request."""
        weights = weights or self._weights
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        logger.info(
            "Searching: pickup=(%.4f, %.4f) destination=(%.4f, %.4f) seats=%d max_pay=RM%.2f",
            request.pickup.lat, request.pickup.lng,
            request.destination.lat, request.destination.lng,
            request.seats_required, request.max_willingness_to_pay,
        )

        try:
            scored = await self._collect_candidates(request, now)
        except Exception:
            logger.exception("Smart matching failed, returning no matches")
            return []

        if not scored:
            logger.info("No rides passed the filtering criteria")
            return []

        normalized = normalize_scores(scored)
        ranked = rank_candidates(normalized, weights, request.top_n)
        logger.info("Returning top %d of %d matches", len(ranked), len(scored))
        return [_to_match_result(r) for r in ranked]

    async def _collect_candidates(
        self,
        request: PassengerRequest,
        now: datetime,
    ) -> list[ScoredCandidate]:
        rides = await asyncio.wait_for(
            self._source.fetch_candidate_rides(request.seats_required),
            self._settings.lookup.timeout_seconds,
        )
        logger.info("Rides fetched: %d", len(rides))
        if not rides:
            return []

        # gather keeps fetch order regardless of completion order
        results = await asyncio.gather(
            *(self._scorer.score_ride(ride, request, now) for ride in rides),
        )
        scored = [r for r in results if r is not None]
        logger.info("%d of %d rides passed filtering", len(scored), len(rides))
        return scored


def _to_match_result(ranked: RankedCandidate) -> MatchResult:
    c = ranked.candidate
    return MatchResult(
        ride=c.ride,
        driver=c.driver,
        fare=c.fare,
        hybrid_score=ranked.hybrid_score,
        route_score=c.route_score,
        price_score=c.price_score,
        reputation_score=c.reputation_score,
        pickup_distance_km=c.pickup_distance_km,
        dest_distance_km=c.dest_distance_km,
    )


def export_matches_json(matches: list[MatchResult]) -> str:
    """Export match results as a JSON string."""
    data = []
    for m in matches:
        vehicle = m.driver.vehicle
        data.append({
            "ride_id": m.ride.id,
            "driver_id": m.driver.id,
            "driver_name": m.driver.name,
            "driver_rating": round(m.driver.average_rating, 2),
            "driver_total_ratings": m.driver.rating_count,
            "is_verified": m.driver.is_verified,
            "vehicle_model": vehicle.model if vehicle else None,
            "vehicle_color": vehicle.color if vehicle else None,
            "vehicle_plate_number": vehicle.plate_number if vehicle else None,
            "from_location": m.ride.from_location,
            "to_location": m.ride.to_location,
            "scheduled_time": (
                m.ride.scheduled_time.isoformat() if m.ride.scheduled_time else None
            ),
            "available_seats": m.ride.available_seats,
            "fare": round(m.fare, 2),
            "hybrid_score": round(m.hybrid_score, 4),
            "route_score": round(m.route_score, 4),
            "price_score": round(m.price_score, 4),
            "reputation_score": round(m.reputation_score, 4),
            "pickup_distance_km": round(m.pickup_distance_km, 3),
            "dest_distance_km": round(m.dest_distance_km, 3),
            "match_quality": m.match_quality,
        })
    return json.dumps(data, indent=2)
