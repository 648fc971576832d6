"""Tests for the lap time model.

Author: João Pedro Cunha
"""

import math

import pytest

from pitstrategy.config import RaceConfig
from pitstrategy.degrade_model import tyre_wear_penalty
from pitstrategy.laptime import LapTimeEngine, calc_lap_time


def create_race(**overrides):
    """Create a standard dry race."""
    params = dict(
        total_laps=50,
        base_lap_time=90.0,
        fuel_load=100.0,
        pit_stop_loss=20.0,
        degradation_level="Medium",
        temperature=25.0,
    )
    params.update(overrides)
    return RaceConfig(**params)


class TestCalcLapTime:
    """Tests for the explicit lap time function."""

    def test_first_lap_components(self):
        """Test lap 1: base + offset + wear, no fuel benefit yet."""
        result = calc_lap_time(
            "Soft",
            age=1,
            base_lap_time=90.0,
            base_offset=-0.75,
            total_laps=50,
            lap_number=1,
            fuel_load=100.0,
        )

        assert not result.invalid
        assert result.fuel_load == pytest.approx(100.0)
        assert result.time == pytest.approx(90.0 - 0.75 + tyre_wear_penalty("Soft", 1))

    def test_fuel_benefit_grows_each_lap(self):
        """Test that burned fuel makes later laps faster on equal tyres."""
        kwargs = dict(
            compound="Medium",
            age=5,
            base_lap_time=90.0,
            base_offset=0.0,
            total_laps=50,
            fuel_load=100.0,
        )
        early = calc_lap_time(lap_number=5, **kwargs)
        late = calc_lap_time(lap_number=45, **kwargs)

        # 2 kg per lap, 0.005 s per kg
        assert early.time - late.time == pytest.approx(40 * 2.0 * 0.005)
        assert late.fuel_load == pytest.approx(100.0 - 44 * 2.0)

    def test_out_lap_penalty(self):
        """Test that an out-lap costs exactly the out-lap penalty."""
        kwargs = dict(
            compound="Hard",
            age=1,
            base_lap_time=90.0,
            base_offset=0.25,
            total_laps=50,
            lap_number=20,
            fuel_load=50.0,
            out_lap_penalty=1.5,
        )
        normal = calc_lap_time(out_lap=False, **kwargs)
        out_lap = calc_lap_time(out_lap=True, **kwargs)

        assert out_lap.time - normal.time == pytest.approx(1.5)

    def test_worn_tyre_is_invalid(self):
        """Test that wear above the reject threshold invalidates the lap."""
        result = calc_lap_time(
            "Soft",
            age=10,
            base_lap_time=90.0,
            base_offset=-0.75,
            total_laps=50,
            lap_number=10,
            fuel_load=0.0,
            reject_threshold=0.5,
        )

        assert result.invalid
        assert math.isinf(result.time)
        assert result.wear_penalty > 0.5


class TestLapTimeEngine:
    """Tests for the race-bound lap time engine."""

    def test_deterministic_and_memoised(self):
        """Test that identical inputs give the identical result."""
        engine = LapTimeEngine(create_race())

        first = engine.lap_time("Medium", 12, 30)
        second = engine.lap_time("Medium", 12, 30)

        assert first is second
        assert LapTimeEngine(create_race()).lap_time("Medium", 12, 30) == first

    def test_race_overrides_defaults(self):
        """Test that race-level overrides win over optimizer defaults."""
        engine = LapTimeEngine(
            create_race(out_lap_penalty=3.0, wear_reject_threshold=2.0, max_stint_lap=20)
        )

        assert engine.out_lap_penalty == 3.0
        assert engine.reject_threshold == 2.0
        assert engine.max_stint_lap == 20

    def test_hot_track_wears_more(self):
        """Test that temperature raises the wear component."""
        cool = LapTimeEngine(create_race(temperature=20.0)).lap_time("Soft", 15, 15)
        hot = LapTimeEngine(create_race(temperature=41.0)).lap_time("Soft", 15, 15)

        assert hot.wear_penalty > cool.wear_penalty
        assert hot.time > cool.time
