"""RideSource backed by the local SQLite store."""

import logging
import sqlite3
from datetime import datetime, timezone

from campusride.core.config import LookupConfig
from campusride.core.db import fetch_open_rides, get_profile, get_rating_stats, get_verification
from campusride.core.schemas import (
    DriverProfile,
    GenderProfile,
    GeoPoint,
    RideOffer,
    RideStatus,
    VehicleInfo,
)
from campusride.sources.base import RideSource

logger = logging.getLogger(__name__)


class SQLiteRideSource(RideSource):
    """Reads rides and driver data from a connection created by ``init_db``.

    Drivers without ratings get ``LookupConfig.default_rating``. Rows that
    fail to parse (bad coordinates, timestamps or status) are skipped.

    The sqlite3 calls block the event loop, so the engine's lookup timeout
    does not bound reads from this source.
    """

    def __init__(self, conn: sqlite3.Connection, lookup: LookupConfig | None = None) -> None:
        self._conn = conn
        self._lookup = lookup or LookupConfig()

    async def fetch_candidate_rides(self, seats_required: int) -> list[RideOffer]:
        rows = fetch_open_rides(self._conn, seats_required)
        rides = []
        for row in rows:
            try:
                rides.append(_row_to_ride(row))
            except ValueError as e:
                logger.debug("Skipping malformed ride %s: %s", row["id"], e)
        logger.debug("Fetched %d open rides with >= %d seats", len(rides), seats_required)
        return rides

    async def get_driver_profile(self, driver_id: str) -> DriverProfile | None:
        row = get_profile(self._conn, driver_id)
        if row is None:
            logger.debug("No profile for driver %s", driver_id)
            return None
        average, total = get_rating_stats(self._conn, driver_id)
        verification = get_verification(self._conn, driver_id)
        return DriverProfile(
            id=driver_id,
            name=row["full_name"] or "Driver",
            photo_url=row["avatar_url"],
            average_rating=self._lookup.default_rating if average is None else average,
            rating_count=total,
            gender=row["gender"],
            is_verified=(
                verification is not None
                and verification["verification_status"] == "verified"
            ),
        )

    async def get_vehicle(self, driver_id: str) -> VehicleInfo | None:
        row = get_verification(self._conn, driver_id)
        if row is None:
            return None
        return VehicleInfo(
            model=row["vehicle_model"],
            color=row["vehicle_color"],
            plate_number=row["vehicle_plate_number"],
            verified=row["verification_status"] == "verified",
        )

    async def get_gender_profile(self, user_id: str) -> GenderProfile:
        row = get_profile(self._conn, user_id)
        if row is None:
            msg = f"No profile for user {user_id}"
            raise LookupError(msg)
        return GenderProfile(
            user_id=user_id,
            gender=row["gender"],
            passenger_preference=row["passenger_gender_preference"],
            driver_preference=row["driver_gender_preference"],
        )


def _row_to_ride(row: sqlite3.Row) -> RideOffer:
    pickup = _point(row["from_lat"], row["from_lng"])
    destination = _point(row["to_lat"], row["to_lng"])
    return RideOffer(
        id=row["id"],
        driver_id=row["driver_id"],
        pickup=pickup,
        destination=destination,
        from_location=row["from_location"],
        to_location=row["to_location"],
        scheduled_time=_parse_time(row["scheduled_time"]),
        available_seats=row["available_seats"],
        status=RideStatus(row["ride_status"]),
        is_activated=bool(row["is_activated"]),
        created_at=_parse_time(row["created_at"]),
    )


def _point(lat: float | None, lng: float | None) -> GeoPoint | None:
    if lat is None or lng is None:
        return None
    return GeoPoint(lat=lat, lng=lng)


def _parse_time(value: str | None) -> datetime | None:
    """Parse a stored ISO timestamp; naive values are stored in UTC."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
