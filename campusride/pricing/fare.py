"""Student fare calculation with distance bands and time-of-day surge.

Pipeline: tiered base fare -> student discount -> surge multiplier keyed to
the trip's scheduled local time -> minimum fare floor.
"""

import logging
from datetime import datetime, timedelta, timezone

from campusride.core.config import FareConfig

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = FareConfig()


def base_fare(distance_km: float, config: FareConfig = _DEFAULT_CONFIG) -> float:
    """Undiscounted fare: flat charge for the first km plus cumulative bands."""
    distance_km = max(0.0, distance_km)
    fare = config.base_fare
    for band in config.bands:
        upper = distance_km if band.end_km is None else min(distance_km, band.end_km)
        billed_km = upper - band.start_km
        if billed_km <= 0:
            break
        fare += billed_km * band.rate_per_km
    return fare


def surge_multiplier(trip_time: datetime, config: FareConfig = _DEFAULT_CONFIG) -> float:
    """Surge factor for a trip departing at ``trip_time`` (platform local time)."""
    local = _to_local(trip_time, config)
    hour = local.hour
    is_weekday = local.weekday() < 5

    is_morning_rush = 7 <= hour <= 9
    is_evening_rush = 17 <= hour <= 19
    is_late_night = hour >= 23 or hour <= 2
    is_lunch = 12 <= hour <= 14

    if is_weekday and (is_morning_rush or is_evening_rush):
        return config.surge.rush_hour
    if is_late_night:
        return config.surge.late_night
    if is_weekday and is_lunch:
        return config.surge.moderate
    if not is_weekday and is_evening_rush:
        return config.surge.moderate
    return 1.0


def calculate_fare(
    distance_km: float,
    trip_time: datetime,
    config: FareConfig = _DEFAULT_CONFIG,
) -> float:
    """Fare per seat for a trip of ``distance_km`` departing at ``trip_time``."""
    fare = base_fare(distance_km, config) * config.discount_multiplier
    multiplier = surge_multiplier(trip_time, config)
    if multiplier > 1.0:
        fare *= multiplier
        logger.debug("Surge pricing applied: %.1fx", multiplier)
    fare = max(fare, config.minimum_fare)
    logger.debug(
        "Fare RM %.2f (distance %.2fkm, surge %.1fx)", fare, distance_km, multiplier,
    )
    return fare


def surge_label(trip_time: datetime, config: FareConfig = _DEFAULT_CONFIG) -> str:
    """Describe the demand tier for display next to a fare."""
    multiplier = surge_multiplier(trip_time, config)
    if multiplier >= config.surge.rush_hour:
        return f"High Demand - {multiplier:.1f}x"
    if multiplier >= config.surge.late_night:
        return f"Increased Demand - {multiplier:.1f}x"
    if multiplier >= config.surge.moderate and multiplier > 1.0:
        return f"Moderate Demand - {multiplier:.1f}x"
    return "Normal Pricing"


def is_peak_time(trip_time: datetime, config: FareConfig = _DEFAULT_CONFIG) -> bool:
    return surge_multiplier(trip_time, config) > 1.0


def format_fare(fare: float) -> str:
    return f"RM {fare:.2f}"


def total_fare(fare_per_seat: float, seats: int) -> float:
    """Total for booking several seats on the same ride."""
    if seats < 1:
        msg = f"seats must be at least 1, got {seats}"
        raise ValueError(msg)
    return fare_per_seat * seats


def _to_local(moment: datetime, config: FareConfig) -> datetime:
    # Naive datetimes are taken to be local already
    if moment.tzinfo is None:
        return moment
    local_tz = timezone(timedelta(hours=config.utc_offset_hours))
    return moment.astimezone(local_tz)
