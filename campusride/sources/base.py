"""Abstract base class for ride data sources."""

from abc import ABC, abstractmethod

from campusride.core.schemas import DriverProfile, GenderProfile, RideOffer, VehicleInfo


class RideSource(ABC):
    """Read-only access to the external ride and profile store."""

    @abstractmethod
    async def fetch_candidate_rides(self, seats_required: int) -> list[RideOffer]:
        """Return rides that may still take passengers, newest first."""

    @abstractmethod
    async def get_driver_profile(self, driver_id: str) -> DriverProfile | None:
        """Return the driver's profile with aggregated rating, or None if unknown."""

    @abstractmethod
    async def get_vehicle(self, driver_id: str) -> VehicleInfo | None:
        """Return the driver's vehicle, preferring a verified record."""

    @abstractmethod
    async def get_gender_profile(self, user_id: str) -> GenderProfile:
        """Return gender and preferences for a user.

        Raises:
            LookupError: If the user has no profile.
        """
