"""Tests for hybrid scoring, weight updates and top-N ranking."""

import pytest
from pydantic import ValidationError

from campusride.core.config import ScoringWeights
from campusride.core.schemas import DriverProfile, RideOffer, ScoredCandidate
from campusride.pipeline.ranker import hybrid_score, rank_candidates


def _scored(ride_id: str, route: float, price: float, reputation: float) -> ScoredCandidate:
    return ScoredCandidate(
        ride=RideOffer(id=ride_id, driver_id=f"d-{ride_id}"),
        driver=DriverProfile(id=f"d-{ride_id}"),
        fare=10.0,
        route_score=route,
        price_score=price,
        reputation_score=reputation,
        pickup_distance_km=1.0,
        dest_distance_km=0.1,
    )


class TestScoringWeights:
    def test_defaults(self) -> None:
        w = ScoringWeights()
        assert (w.route, w.price, w.reputation) == pytest.approx((0.4, 0.3, 0.3))

    def test_normalized_on_construction(self) -> None:
        w = ScoringWeights(route=2.0, price=1.0, reputation=1.0)
        assert (w.route, w.price, w.reputation) == pytest.approx((0.5, 0.25, 0.25))

    @pytest.mark.parametrize(
        "update",
        [
            {"route": 0.8},
            {"price": 5.0, "reputation": 1.0},
            {"route": 0.0, "price": 0.0},
            {"route": 1.0, "price": 1.0, "reputation": 1.0},
        ],
    )
    def test_updated_sums_to_one(self, update: dict[str, float]) -> None:
        w = ScoringWeights().updated(**update)
        assert w.total == pytest.approx(1.0)

    def test_updated_returns_new_instance(self) -> None:
        original = ScoringWeights()
        changed = original.updated(route=1.0)
        assert original.route == pytest.approx(0.4)
        assert changed.route > original.route

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            ScoringWeights().route = 1.0  # type: ignore[misc]

    def test_all_zero_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScoringWeights(route=0.0, price=0.0, reputation=0.0)

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScoringWeights(route=-0.1)


class TestHybridScore:
    def test_weighted_sum(self) -> None:
        c = _scored("a", 1.0, 0.5, 0.0)
        assert hybrid_score(c, ScoringWeights()) == pytest.approx(0.4 + 0.15)

    def test_all_ones_is_one(self) -> None:
        c = _scored("a", 1.0, 1.0, 1.0)
        assert hybrid_score(c, ScoringWeights(route=3, price=2, reputation=5)) == pytest.approx(1.0)


class TestRankCandidates:
    def test_sorted_descending(self) -> None:
        ranked = rank_candidates(
            [_scored("a", 0.2, 0.2, 0.2), _scored("b", 0.9, 0.9, 0.9), _scored("c", 0.5, 0.5, 0.5)],
            ScoringWeights(),
            top_n=5,
        )
        assert [r.candidate.ride.id for r in ranked] == ["b", "c", "a"]
        scores = [r.hybrid_score for r in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_truncates_without_reordering(self) -> None:
        candidates = [_scored(str(i), i / 10, i / 10, i / 10) for i in range(6)]
        full = rank_candidates(candidates, ScoringWeights(), top_n=6)
        top = rank_candidates(candidates, ScoringWeights(), top_n=3)
        assert len(top) == 3
        assert top == full[:3]

    def test_top_n_larger_than_set(self) -> None:
        ranked = rank_candidates([_scored("a", 0.5, 0.5, 0.5)], ScoringWeights(), top_n=10)
        assert len(ranked) == 1

    def test_ties_keep_input_order(self) -> None:
        candidates = [_scored(x, 0.5, 0.5, 0.5) for x in ("first", "second", "third")]
        ranked = rank_candidates(candidates, ScoringWeights(), top_n=3)
        assert [r.candidate.ride.id for r in ranked] == ["first", "second", "third"]

    def test_weights_change_order(self) -> None:
        close = _scored("close", 1.0, 0.5, 0.0)
        trusted = _scored("trusted", 0.0, 0.5, 1.0)
        by_route = rank_candidates([close, trusted], ScoringWeights(route=1, price=0, reputation=0), 2)
        by_rep = rank_candidates([close, trusted], ScoringWeights(route=0, price=0, reputation=1), 2)
        assert by_route[0].candidate.ride.id == "close"
        assert by_rep[0].candidate.ride.id == "trusted"

    def test_invalid_top_n(self) -> None:
        with pytest.raises(ValueError, match="top_n"):
            rank_candidates([], ScoringWeights(), top_n=0)
