"""Core data models for the carpool matching engine."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class RideStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RideOffer(BaseModel):
    """A ride published by a driver.

    pickup/destination are None when the stored record lacks coordinates.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    driver_id: str
    pickup: GeoPoint | None = None
    destination: GeoPoint | None = None
    from_location: str = ""
    to_location: str = ""
    scheduled_time: AwareDatetime | None = None
    available_seats: int = Field(default=0, ge=0)
    status: RideStatus = RideStatus.SCHEDULED
    is_activated: bool = False
    created_at: AwareDatetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PassengerRequest(BaseModel):
    """Search parameters for a single findBestMatches call."""

    model_config = ConfigDict(frozen=True)

    pickup: GeoPoint
    destination: GeoPoint
    seats_required: int = Field(default=1, ge=1)
    max_willingness_to_pay: float = Field(ge=0.0)
    min_rating_threshold: float = Field(default=0.0, ge=0.0, le=5.0)
    max_distance_km: float = Field(default=20.0, gt=0.0)
    top_n: int = Field(default=5, ge=1)
    passenger_id: str | None = None


class VehicleInfo(BaseModel):
    """Vehicle details from the driver's verification record."""

    model_config = ConfigDict(frozen=True)

    model: str | None = None
    color: str | None = None
    plate_number: str | None = None
    verified: bool = False


class DriverProfile(BaseModel):
    """Read-only snapshot of a driver's public profile."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = "Driver"
    photo_url: str | None = None
    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    rating_count: int = Field(default=0, ge=0)
    gender: str | None = None
    is_verified: bool = False
    vehicle: VehicleInfo | None = None


class GenderProfile(BaseModel):
    """Gender and matching preferences of a user, as stored."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    gender: str | None = None
    passenger_preference: str | None = None
    driver_preference: str | None = None


class ScoredCandidate(BaseModel):
    """A ride that passed every gate, with its raw component scores."""

    model_config = ConfigDict(frozen=True)

    ride: RideOffer
    driver: DriverProfile
    fare: float = Field(ge=0.0)
    route_score: float = Field(ge=0.0, le=1.0)
    price_score: float = Field(ge=0.0, le=1.0)
    reputation_score: float = Field(ge=0.0, le=1.0)
    pickup_distance_km: float = Field(ge=0.0)
    dest_distance_km: float = Field(ge=0.0)


class MatchResult(BaseModel):
    """A ranked match returned to the caller."""

    model_config = ConfigDict(frozen=True)

    ride: RideOffer
    driver: DriverProfile
    fare: float
    hybrid_score: float
    route_score: float
    price_score: float
    reputation_score: float
    pickup_distance_km: float
    dest_distance_km: float

    @property
    def ride_id(self) -> str:
        return self.ride.id

    @property
    def driver_id(self) -> str:
        return self.driver.id

    @property
    def match_quality(self) -> str:
        if self.hybrid_score >= 0.8:
            return "Best Match"
        if self.hybrid_score >= 0.6:
            return "Great Match"
        if self.hybrid_score >= 0.4:
            return "Good Match"
        return "Fair Match"

    @property
    def score_percentage(self) -> str:
        return f"{self.hybrid_score * 100:.0f}%"
