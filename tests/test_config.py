"""Tests for configuration handling.

Author: João Pedro Cunha
"""

import pytest

from pitstrategy.compounds import select_compound_class
from pitstrategy.config import OptimizerConfig, RaceConfig
from pitstrategy.errors import InvalidConfig


class TestRaceConfig:
    """Tests for race input parsing and validation."""

    def test_from_camel_case(self):
        race = RaceConfig.from_dict(
            {
                "totalLaps": "57",
                "baseLapTime": 92.5,
                "fuelLoad": 110,
                "pitStopLoss": "21.5",
                "degradation": "high",
                "temperature": 33,
                "totalRainfall": 0,
            }
        )

        assert race.total_laps == 57
        assert race.base_lap_time == 92.5
        assert race.pit_stop_loss == 21.5
        assert race.degradation_level == "High"
        assert race.out_lap_penalty is None

    def test_from_snake_case(self):
        race = RaceConfig.from_dict(
            {"total_laps": 44, "base_lap_time": 105.0, "out_lap_penalty": 1.5}
        )

        assert race.total_laps == 44
        assert race.out_lap_penalty == 1.5

    def test_defaults_and_clamping(self):
        """Test that bad optional values fall back and negatives clamp to zero."""
        race = RaceConfig.from_dict(
            {
                "totalLaps": 50,
                "baseLapTime": 90,
                "fuelLoad": -10,
                "pitStopLoss": "fast",
                "degradation": "extreme",
                "temperature": None,
            }
        )

        assert race.fuel_load == 0.0
        assert race.pit_stop_loss == 0.0
        assert race.degradation_level == "Medium"
        assert race.temperature == 25.0

    @pytest.mark.parametrize(
        "payload",
        [
            {"totalLaps": 0, "baseLapTime": 90},
            {"totalLaps": -5, "baseLapTime": 90},
            {"totalLaps": 50, "baseLapTime": 0},
            {"baseLapTime": 90},
            {},
        ],
    )
    def test_invalid_inputs(self, payload):
        with pytest.raises(InvalidConfig):
            RaceConfig.from_dict(payload)

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            RaceConfig(total_laps=0, base_lap_time=90.0)

    def test_dict_round_trip(self):
        race = RaceConfig(
            total_laps=57,
            base_lap_time=92.0,
            fuel_load=110.0,
            pit_stop_loss=20.0,
            degradation_level="Low",
            temperature=31.0,
            total_rainfall=5.0,
            wear_reject_threshold=6.0,
        )

        assert RaceConfig.from_dict(race.to_dict()) == race

    def test_average_rainfall(self):
        race = RaceConfig(total_laps=40, base_lap_time=90.0, total_rainfall=30.0)

        assert race.avg_rainfall_per_lap == pytest.approx(0.75)


class TestCompoundClass:
    """Tests for rainfall-based compound selection."""

    @pytest.mark.parametrize(
        "rainfall, expected, compounds",
        [
            (0.0, "dry", ("Soft", "Medium", "Hard")),
            (19.9, "dry", ("Soft", "Medium", "Hard")),
            (20.0, "intermediate", ("Intermediate",)),
            (32.0, "mixed_wet", ("Intermediate", "Wet")),
            (139.9, "mixed_wet", ("Intermediate", "Wet")),
            (140.0, "full_wet", ("Wet",)),
        ],
    )
    def test_thresholds(self, rainfall, expected, compounds):
        race = RaceConfig(total_laps=40, base_lap_time=90.0, total_rainfall=rainfall)
        compound_class = select_compound_class(race)

        assert compound_class.name == expected
        assert compound_class.compounds == compounds
        assert compound_class.require_two_distinct == (expected == "dry")


class TestOptimizerConfig:
    """Tests for optimizer settings validation."""

    def test_defaults(self):
        config = OptimizerConfig()

        assert config.fuel_per_kg_benefit == 0.005
        assert config.wear_reject_threshold == 8.0
        assert config.stop_counts == (1, 2, 3)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_stint_laps": 0},
            {"stop_counts": ()},
            {"wear_reject_threshold": 0},
            {"env_factor_bounds": (1.5, 0.9)},
            {"dry_rain_limit": 1.0, "intermediate_rain_limit": 0.8},
        ],
    )
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            OptimizerConfig(**kwargs)
