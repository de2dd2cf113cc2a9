"""Configuration models and YAML loader for the carpool matching engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/campusride.db"


class FareBand(BaseModel):
    """A distance band billed at its own per-km rate.

    ``end_km`` of None means the band is open-ended.
    """

    start_km: float = Field(ge=0.0)
    end_km: float | None = None
    rate_per_km: float = Field(ge=0.0)

    @model_validator(mode="after")
    def end_after_start(self) -> "FareBand":
        if self.end_km is not None and self.end_km <= self.start_km:
            msg = f"fare band end ({self.end_km}) must be greater than start ({self.start_km})"
            raise ValueError(msg)
        return self


class SurgeConfig(BaseModel):
    """Surge multipliers per demand tier."""

    rush_hour: float = Field(default=2.0, ge=1.0)
    late_night: float = Field(default=1.5, ge=1.0)
    moderate: float = Field(default=1.3, ge=1.0)


def _default_bands() -> list[FareBand]:
    return [
        FareBand(start_km=1.0, end_km=10.0, rate_per_km=1.80),
        FareBand(start_km=10.0, end_km=20.0, rate_per_km=1.50),
        FareBand(start_km=20.0, end_km=35.0, rate_per_km=1.20),
        FareBand(start_km=35.0, end_km=None, rate_per_km=1.00),
    ]


class FareConfig(BaseModel):
    """Student fare pricing (amounts in Malaysian Ringgit)."""

    base_fare: float = Field(default=4.00, ge=0.0)
    bands: list[FareBand] = Field(default_factory=_default_bands)
    discount_multiplier: float = Field(default=0.60, gt=0.0, le=1.0)
    minimum_fare: float = Field(default=6.00, ge=0.0)
    surge: SurgeConfig = Field(default_factory=SurgeConfig)
    utc_offset_hours: float = Field(default=8.0, ge=-12.0, le=14.0)

    @field_validator("bands")
    @classmethod
    def bands_ordered(cls, v: list[FareBand]) -> list[FareBand]:
        for prev, nxt in zip(v, v[1:]):
            if prev.end_km is None or nxt.start_km < prev.end_km:
                msg = "fare bands must be ordered and non-overlapping"
                raise ValueError(msg)
        return v


class MatchingConfig(BaseModel):
    """Hard cutoffs and decay constants for candidate scoring."""

    max_pickup_km: float = Field(default=3.0, gt=0.0)
    max_destination_km: float = Field(default=0.5, gt=0.0)
    route_destination_gate_km: float = Field(default=2.0, gt=0.0)
    destination_decay_km: float = Field(default=1.0, gt=0.0)
    pickup_decay_km: float = Field(default=10.0, gt=0.0)
    destination_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    price_floor: float = Field(default=6.0, ge=0.0)
    price_ceiling: float = Field(default=80.0, gt=0.0)
    max_rating: float = Field(default=5.0, gt=0.0)

    @model_validator(mode="after")
    def price_range_valid(self) -> "MatchingConfig":
        if self.price_ceiling <= self.price_floor:
            msg = "price_ceiling must be greater than price_floor"
            raise ValueError(msg)
        return self


_DEFAULT_WEIGHTS = {"route": 0.4, "price": 0.3, "reputation": 0.3}


class ScoringWeights(BaseModel):
    """Hybrid score weights, always normalized to sum to 1.0.

    Frozen: use :meth:`updated` to derive a new set of weights.
    """

    model_config = ConfigDict(frozen=True)

    route: float = Field(default=0.4, ge=0.0)
    price: float = Field(default=0.3, ge=0.0)
    reputation: float = Field(default=0.3, ge=0.0)

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            values = {k: float(data.get(k, d)) for k, d in _DEFAULT_WEIGHTS.items()}
        except (TypeError, ValueError):
            return data
        if any(v < 0 for v in values.values()):
            # Field validation reports the offending value
            return data
        total = sum(values.values())
        if total <= 0:
            msg = "scoring weights must not all be zero"
            raise ValueError(msg)
        return {k: v / total for k, v in values.items()}

    @property
    def total(self) -> float:
        return self.route + self.price + self.reputation

    def updated(
        self,
        route: float | None = None,
        price: float | None = None,
        reputation: float | None = None,
    ) -> "ScoringWeights":
        """Return new weights with the given components replaced, re-normalized."""
        return ScoringWeights(
            route=self.route if route is None else route,
            price=self.price if price is None else price,
            reputation=self.reputation if reputation is None else reputation,
        )


class EligibilityConfig(BaseModel):
    """Gender-preference eligibility policy.

    fail_open=True permits the match when a profile lookup fails.
    """

    fail_open: bool = True


class LookupConfig(BaseModel):
    """Deadline applied to every external store lookup."""

    timeout_seconds: float = Field(default=5.0, gt=0.0)
    default_rating: float = Field(default=4.5, ge=0.0, le=5.0)


class SearchDefaults(BaseModel):
    """Defaults for search parameters the caller leaves out."""

    min_rating_threshold: float = Field(default=0.0, ge=0.0, le=5.0)
    top_n: int = Field(default=5, ge=1)
    max_distance_km: float = Field(default=20.0, gt=0.0)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    fare: FareConfig = Field(default_factory=FareConfig)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    eligibility: EligibilityConfig = Field(default_factory=EligibilityConfig)
    lookup: LookupConfig = Field(default_factory=LookupConfig)
    search: SearchDefaults = Field(default_factory=SearchDefaults)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
