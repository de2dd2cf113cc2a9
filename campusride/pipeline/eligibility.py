"""Gender-preference eligibility between a passenger and a driver.

Rules are evaluated in order and the first failing rule rejects:
  1. Passenger prefers female drivers only  -> driver must be female
  2. Passenger prefers same gender only     -> genders must be equal
  3. Driver accepts women/non-binary only   -> passenger must be one of those

When a profile lookup fails the checker returns the configured policy
(fail_open=True permits the match).
"""

import asyncio
import logging
from enum import Enum

from campusride.core.config import EligibilityConfig, LookupConfig
from campusride.sources.base import RideSource

logger = logging.getLogger(__name__)


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non_binary"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"

    @classmethod
    def parse(cls, value: str | None) -> "Gender | None":
        """None stays None; unrecognised values map to PREFER_NOT_TO_SAY."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return cls.PREFER_NOT_TO_SAY


class PassengerGenderPreference(str, Enum):
    FEMALE_ONLY = "female_only"
    SAME_GENDER_ONLY = "same_gender_only"
    NO_PREFERENCE = "no_preference"

    @classmethod
    def parse(cls, value: str | None) -> "PassengerGenderPreference":
        if value is None:
            return cls.NO_PREFERENCE
        try:
            return cls(value)
        except ValueError:
            return cls.NO_PREFERENCE

    @property
    def display_name(self) -> str:
        return {
            PassengerGenderPreference.FEMALE_ONLY: "Female Driver Only",
            PassengerGenderPreference.SAME_GENDER_ONLY: "Same Gender Only",
            PassengerGenderPreference.NO_PREFERENCE: "No Preference",
        }[self]


class DriverGenderPreference(str, Enum):
    WOMEN_NON_BINARY_ONLY = "women_non_binary_only"
    NO_PREFERENCE = "no_preference"

    @classmethod
    def parse(cls, value: str | None) -> "DriverGenderPreference":
        if value is None:
            return cls.NO_PREFERENCE
        try:
            return cls(value)
        except ValueError:
            return cls.NO_PREFERENCE

    @property
    def display_name(self) -> str:
        return {
            DriverGenderPreference.WOMEN_NON_BINARY_ONLY: "Women/Non-Binary Only",
            DriverGenderPreference.NO_PREFERENCE: "No Preference",
        }[self]


def can_match(
    passenger_pref: PassengerGenderPreference,
    passenger_gender: Gender | None,
    driver_pref: DriverGenderPreference,
    driver_gender: Gender | None,
) -> bool:
    """Return True if the passenger and driver preferences are compatible."""
    if passenger_pref is PassengerGenderPreference.FEMALE_ONLY:
        if driver_gender is not Gender.FEMALE:
            logger.debug("Match rejected: passenger requires a female driver")
            return False
    elif passenger_pref is PassengerGenderPreference.SAME_GENDER_ONLY:
        if passenger_gender is not driver_gender:
            logger.debug("Match rejected: passenger requires same gender")
            return False

    if driver_pref is DriverGenderPreference.WOMEN_NON_BINARY_ONLY:
        if passenger_gender not in (Gender.FEMALE, Gender.NON_BINARY):
            logger.debug("Match rejected: driver accepts only women/non-binary passengers")
            return False

    return True


class EligibilityChecker:
    """Looks up both gender profiles and applies :func:`can_match`.

    Usage::

        checker = EligibilityChecker(source, EligibilityConfig(), LookupConfig())
        if await checker.check(passenger_id, driver_id):
            ...
    """

    def __init__(
        self,
        source: RideSource,
        config: EligibilityConfig,
        lookup: LookupConfig,
    ) -> None:
        self._source = source
        self._config = config
        self._timeout = lookup.timeout_seconds

    @property
    def fail_open(self) -> bool:
        return self._config.fail_open

    async def check(self, passenger_id: str | None, driver_id: str) -> bool:
        """Return whether the passenger may be matched with the driver.

        Anonymous searches (no passenger_id) are not filtered.
        """
        if passenger_id is None:
            return True

        try:
            passenger, driver = await asyncio.wait_for(
                asyncio.gather(
                    self._source.get_gender_profile(passenger_id),
                    self._source.get_gender_profile(driver_id),
                ),
                timeout=self._timeout,
            )
        except Exception:
            logger.warning(
                "Gender profile lookup failed for passenger %s / driver %s, %s match",
                passenger_id,
                driver_id,
                "permitting" if self._config.fail_open else "rejecting",
                exc_info=True,
            )
            return self._config.fail_open

        return can_match(
            PassengerGenderPreference.parse(passenger.passenger_preference),
            Gender.parse(passenger.gender),
            DriverGenderPreference.parse(driver.driver_preference),
            Gender.parse(driver.gender),
        )
