"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from campusride.core.config import (
    DatabaseConfig,
    EligibilityConfig,
    FareBand,
    FareConfig,
    LookupConfig,
    MatchingConfig,
    SearchDefaults,
    Settings,
)


class TestFareConfig:
    def test_defaults(self) -> None:
        f = FareConfig()
        assert f.base_fare == 4.0
        assert f.discount_multiplier == 0.6
        assert f.minimum_fare == 6.0
        assert [b.rate_per_km for b in f.bands] == [1.80, 1.50, 1.20, 1.00]
        assert f.bands[-1].end_km is None

    def test_band_end_must_follow_start(self) -> None:
        with pytest.raises(ValidationError):
            FareBand(start_km=10.0, end_km=5.0, rate_per_km=1.0)

    def test_overlapping_bands_rejected(self) -> None:
        with pytest.raises(ValidationError, match="non-overlapping"):
            FareConfig(bands=[
                FareBand(start_km=1.0, end_km=10.0, rate_per_km=1.8),
                FareBand(start_km=5.0, end_km=20.0, rate_per_km=1.5),
            ])

    def test_open_band_must_be_last(self) -> None:
        with pytest.raises(ValidationError):
            FareConfig(bands=[
                FareBand(start_km=1.0, rate_per_km=1.8),
                FareBand(start_km=10.0, end_km=20.0, rate_per_km=1.5),
            ])

    def test_discount_bounds(self) -> None:
        with pytest.raises(ValidationError):
            FareConfig(discount_multiplier=0.0)
        with pytest.raises(ValidationError):
            FareConfig(discount_multiplier=1.5)


class TestMatchingConfig:
    def test_defaults(self) -> None:
        m = MatchingConfig()
        assert m.max_pickup_km == 3.0
        assert m.max_destination_km == 0.5
        assert m.route_destination_gate_km == 2.0
        assert m.price_floor == 6.0
        assert m.price_ceiling == 80.0

    def test_price_range(self) -> None:
        with pytest.raises(ValidationError, match="price_ceiling"):
            MatchingConfig(price_floor=50.0, price_ceiling=40.0)


class TestSmallConfigs:
    def test_eligibility_fails_open_by_default(self) -> None:
        assert EligibilityConfig().fail_open is True

    def test_lookup_defaults(self) -> None:
        lookup = LookupConfig()
        assert lookup.timeout_seconds == 5.0
        assert lookup.default_rating == 4.5

    def test_lookup_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            LookupConfig(timeout_seconds=0)

    def test_search_defaults(self) -> None:
        s = SearchDefaults()
        assert (s.min_rating_threshold, s.top_n, s.max_distance_km) == (0.0, 5, 20.0)

    def test_database_default_path(self) -> None:
        assert DatabaseConfig().path == "data/campusride.db"


class TestSettings:
    def test_all_defaults(self) -> None:
        s = Settings()
        assert s.weights.total == pytest.approx(1.0)
        assert s.matching.max_pickup_km == 3.0

    def test_from_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "settings.yaml"
        p.write_text(dedent("""\
            database:
              path: /tmp/rides.db
            weights:
              route: 2
              price: 1
              reputation: 1
            eligibility:
              fail_open: false
            fare:
              minimum_fare: 5.0
              surge:
                rush_hour: 1.8
        """))
        s = Settings.from_yaml(p)
        assert s.database.path == "/tmp/rides.db"
        assert s.weights.route == pytest.approx(0.5)
        assert s.eligibility.fail_open is False
        assert s.fare.minimum_fare == 5.0
        assert s.fare.surge.rush_hour == 1.8
        assert s.fare.surge.late_night == 1.5

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert Settings.from_yaml(p) == Settings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yaml"
        p.write_text("matching:\n  max_pickup_km: -1\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(p)

    def test_shipped_config_loads(self) -> None:
        path = Path(__file__).parent.parent.parent / "config" / "settings.yaml"
        s = Settings.from_yaml(path)
        assert s == Settings()
