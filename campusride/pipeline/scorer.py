"""Candidate gating and raw scoring for ride matching.

Gate order (cheap checks first, first failure rejects):
  1. Status         - active/in_progress, or scheduled in the future
  2. Coordinates    - both ride points present
  3. Pickup cutoff  - pickup within max_pickup_km
  4. Destination    - destination within max_destination_km
  5. Radius         - both distances within the caller's max_distance_km
  6. Fare           - computed fare within willingness to pay
  7. Seats          - enough seats left
  8. Rating         - driver rating at or above the threshold
  9. Eligibility    - gender preferences compatible
 10. Route score    - zero route score is a rejection

Scores are raw values in [0, 1]; normalization happens across the
surviving set afterwards.
"""

import asyncio
import logging
import math
from datetime import datetime

from campusride.core.config import MatchingConfig, Settings
from campusride.core.geo import distance_km
from campusride.core.schemas import (
    DriverProfile,
    GeoPoint,
    PassengerRequest,
    RideOffer,
    RideStatus,
    ScoredCandidate,
    VehicleInfo,
)
from campusride.pipeline.eligibility import EligibilityChecker
from campusride.pricing.fare import calculate_fare
from campusride.sources.base import RideSource

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (RideStatus.ACTIVE, RideStatus.IN_PROGRESS)


class CandidateRejected(Exception):
    """Raised by a gate when a ride cannot be offered to the passenger."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------


def check_status(ride: RideOffer, now: datetime) -> None:
    if ride.status in _OPEN_STATUSES:
        return
    if ride.status is RideStatus.SCHEDULED:
        if ride.scheduled_time is None:
            raise CandidateRejected("missing scheduled time")
        if ride.scheduled_time <= now:
            raise CandidateRejected("scheduled time already passed")
        return
    raise CandidateRejected(f"ride is {ride.status.value}")


def check_coordinates(ride: RideOffer) -> tuple[GeoPoint, GeoPoint]:
    """Return (pickup, destination), rejecting rides with missing coordinates."""
    if ride.pickup is None or ride.destination is None:
        raise CandidateRejected("missing coordinates")
    return ride.pickup, ride.destination


def check_distances(
    pickup_km: float,
    dest_km: float,
    max_distance_km: float,
    config: MatchingConfig,
) -> None:
    if pickup_km > config.max_pickup_km:
        raise CandidateRejected(
            f"pickup too far ({pickup_km:.2f}km > {config.max_pickup_km}km)"
        )
    if dest_km > config.max_destination_km:
        raise CandidateRejected(
            f"destination not on route ({dest_km:.2f}km > {config.max_destination_km}km)"
        )
    if pickup_km > max_distance_km or dest_km > max_distance_km:
        raise CandidateRejected(f"outside search radius ({max_distance_km}km)")


def check_fare(fare: float, max_willingness_to_pay: float) -> None:
    if fare > max_willingness_to_pay:
        raise CandidateRejected(
            f"too expensive (RM {fare:.2f} > RM {max_willingness_to_pay:.2f})"
        )


def check_seats(ride: RideOffer, seats_required: int) -> None:
    if ride.available_seats < seats_required:
        raise CandidateRejected(
            f"not enough seats ({ride.available_seats} < {seats_required})"
        )


def check_rating(rating: float, min_rating_threshold: float) -> None:
    if rating < min_rating_threshold:
        raise CandidateRejected(f"rating too low ({rating:.2f} < {min_rating_threshold})")


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


def route_score(pickup_km: float, dest_km: float, config: MatchingConfig) -> float:
    """Geometric alignment in [0, 1]; destination proximity dominates.

    Returns 0.0 when destinations diverge beyond route_destination_gate_km.
    """
    if dest_km > config.route_destination_gate_km:
        return 0.0
    dest = math.exp(-dest_km / config.destination_decay_km)
    pickup = math.exp(-pickup_km / config.pickup_decay_km)
    combined = config.destination_weight * dest + (1.0 - config.destination_weight) * pickup
    return min(1.0, max(0.0, combined))


def price_score(fare: float, config: MatchingConfig) -> float:
    """Cheaper is better: 1.0 at the price floor, 0.0 at the ceiling."""
    if fare <= config.price_floor:
        return 1.0
    if fare >= config.price_ceiling:
        return 0.0
    return 1.0 - (fare - config.price_floor) / (config.price_ceiling - config.price_floor)


def reputation_score(rating: float, config: MatchingConfig) -> float:
    return min(1.0, max(0.0, rating / config.max_rating))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class ScoringEngine:
    """Runs one ride through every gate and computes its raw scores.

    Profile lookup failures propagate to the caller; a missing profile skips
    the ride and vehicle lookup failures only drop the vehicle details. Each
    lookup is bounded by the configured timeout.
    """

    def __init__(
        self,
        source: RideSource,
        settings: Settings,
        eligibility: EligibilityChecker,
    ) -> None:
        self._source = source
        self._settings = settings
        self._eligibility = eligibility
        self._timeout = settings.lookup.timeout_seconds

    async def score_ride(
        self,
        ride: RideOffer,
        request: PassengerRequest,
        now: datetime,
    ) -> ScoredCandidate | None:
        """Return the scored candidate, or None if any gate rejects the ride."""
        try:
            return await self._evaluate(ride, request, now)
        except CandidateRejected as e:
            logger.debug("Ride %s skipped: %s", ride.id, e.reason)
            return None

    async def _evaluate(
        self,
        ride: RideOffer,
        request: PassengerRequest,
        now: datetime,
    ) -> ScoredCandidate:
        config = self._settings.matching

        check_status(ride, now)
        ride_pickup, ride_destination = check_coordinates(ride)

        pickup_km = distance_km(request.pickup, ride_pickup)
        dest_km = distance_km(request.destination, ride_destination)
        check_distances(pickup_km, dest_km, request.max_distance_km, config)

        # Fare follows the passenger's own trip at the ride's departure time
        trip_km = distance_km(request.pickup, request.destination)
        departure = ride.scheduled_time or now
        fare = calculate_fare(trip_km, departure, self._settings.fare)
        check_fare(fare, request.max_willingness_to_pay)

        check_seats(ride, request.seats_required)

        driver = await self._lookup_driver(ride.driver_id)
        check_rating(driver.average_rating, request.min_rating_threshold)

        if not await self._eligibility.check(request.passenger_id, ride.driver_id):
            raise CandidateRejected("gender preference mismatch")

        route = route_score(pickup_km, dest_km, config)
        if route <= 0.0:
            raise CandidateRejected("destinations not compatible for carpooling")

        return ScoredCandidate(
            ride=ride,
            driver=driver,
            fare=fare,
            route_score=route,
            price_score=price_score(fare, config),
            reputation_score=reputation_score(driver.average_rating, config),
            pickup_distance_km=pickup_km,
            dest_distance_km=dest_km,
        )

    async def _lookup_driver(self, driver_id: str) -> DriverProfile:
        """Fetch profile and vehicle concurrently and merge them into one snapshot."""
        profile, vehicle = await asyncio.gather(
            asyncio.wait_for(self._source.get_driver_profile(driver_id), self._timeout),
            self._lookup_vehicle(driver_id),
        )
        if profile is None:
            raise CandidateRejected(f"no profile for driver {driver_id}")
        if vehicle is None:
            return profile
        return profile.model_copy(
            update={"vehicle": vehicle, "is_verified": profile.is_verified or vehicle.verified},
        )

    async def _lookup_vehicle(self, driver_id: str) -> VehicleInfo | None:
        """Vehicle details are display-only.

        A failed or timed-out lookup leaves them unset and keeps the candidate.
        """
        try:
            return await asyncio.wait_for(self._source.get_vehicle(driver_id), self._timeout)
        except Exception:
            logger.warning("Vehicle lookup failed for driver %s", driver_id, exc_info=True)
            return None
