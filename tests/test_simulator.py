"""Tests for race simulator.

Author: João Pedro Cunha
"""

import pytest

from pitstrategy.compounds import DEFAULT_COMPOUNDS
from pitstrategy.config import RaceConfig
from pitstrategy.errors import InfeasibleStint, RegulationViolation, UnknownCompound
from pitstrategy.simulator import (
    Stint,
    check_plan,
    compare_strategies,
    describe_plan,
    simulate_strategy,
)


def create_race(**overrides):
    """Create a standard dry race."""
    params = dict(
        total_laps=50,
        base_lap_time=90.0,
        fuel_load=100.0,
        pit_stop_loss=20.0,
    )
    params.update(overrides)
    return RaceConfig(**params)


class TestCheckPlan:
    """Tests for stint plan validation."""

    def test_valid_plan(self):
        stints = [Stint("Soft", 1, 20), Stint("Medium", 21, 50)]

        check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)

    def test_gap_between_stints(self):
        stints = [Stint("Soft", 1, 20), Stint("Medium", 22, 50)]

        with pytest.raises(InfeasibleStint):
            check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)

    def test_wrong_total_laps(self):
        """Test validation fails when stints do not cover the race."""
        stints = [Stint("Soft", 1, 20), Stint("Medium", 21, 48)]

        with pytest.raises(InfeasibleStint):
            check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)

    def test_stint_beyond_useful_life(self):
        """Test that a Soft stint longer than 20 laps is rejected."""
        stints = [Stint("Soft", 1, 25), Stint("Medium", 26, 50)]

        with pytest.raises(InfeasibleStint):
            check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)

    def test_stint_too_short(self):
        stints = [Stint("Soft", 1, 3), Stint("Hard", 4, 40), Stint("Medium", 41, 50)]

        with pytest.raises(InfeasibleStint):
            check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)

    def test_single_compound_in_the_dry(self):
        stints = [Stint("Medium", 1, 25), Stint("Medium", 26, 50)]

        with pytest.raises(RegulationViolation):
            check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)

        check_plan(stints, 50, 5, DEFAULT_COMPOUNDS, require_two_distinct=False)

    def test_unknown_compound(self):
        stints = [Stint("Hypersoft", 1, 20), Stint("Medium", 21, 50)]

        with pytest.raises(UnknownCompound):
            check_plan(stints, 50, 5, DEFAULT_COMPOUNDS)


class TestSimulation:
    """Tests for race simulation."""

    def test_simulation_is_deterministic(self):
        """Test that the same plan always gives the same total."""
        stints = [Stint("Soft", 1, 20), Stint("Medium", 21, 50)]
        race = create_race()

        result1 = simulate_strategy(race, stints, 5)
        result2 = simulate_strategy(race, stints, 5)

        assert result1.total_time == result2.total_time

    def test_simulation_returns_correct_laps(self):
        """Test simulation returns one record per race lap."""
        stints = [Stint("Soft", 1, 18), Stint("Hard", 19, 50)]
        result = simulate_strategy(create_race(), stints, 5)

        assert len(result.laps) == 50
        assert [r.lap for r in result.laps] == list(range(1, 51))
        assert result.total_time > 0

    def test_total_includes_pit_losses(self):
        """Test that total = sum of lap times + stops x pit loss."""
        stints = [Stint("Soft", 1, 15), Stint("Medium", 16, 35), Stint("Hard", 36, 50)]
        race = create_race(pit_stop_loss=22.5)
        result = simulate_strategy(race, stints, 5)

        lap_sum = sum(r.time for r in result.laps)
        assert result.num_stops == 2
        assert result.total_time == pytest.approx(lap_sum + 2 * 22.5, abs=1e-6)

    def test_out_lap_only_after_stops(self):
        """Test that the out-lap penalty hits the first lap of later stints only."""
        stints = [Stint("Medium", 1, 25), Stint("Hard", 26, 50)]
        slow = simulate_strategy(create_race(out_lap_penalty=2.0), stints, 5)
        fast = simulate_strategy(create_race(out_lap_penalty=0.0), stints, 5)

        diffs = [a.time - b.time for a, b in zip(slow.laps, fast.laps)]
        assert diffs[25] == pytest.approx(2.0)
        assert sum(diffs) == pytest.approx(2.0)

    def test_worn_out_plan_returns_none(self):
        """Test that a plan with an invalid lap is discarded."""
        stints = [Stint("Soft", 1, 20), Stint("Medium", 21, 50)]
        race = create_race(wear_reject_threshold=1.0)

        assert simulate_strategy(race, stints, 5) is None

    def test_rule_violation_returns_none(self):
        stints = [Stint("Medium", 1, 25), Stint("Medium", 26, 50)]

        assert simulate_strategy(create_race(), stints, 5) is None

    def test_telemetry_and_export(self):
        """Test per-lap telemetry, fastest lap and tyre life in the export."""
        stints = [Stint("Soft", 1, 15), Stint("Hard", 16, 50)]
        result = simulate_strategy(create_race(), stints, 5)

        frame = result.to_frame()
        assert list(frame["Stint"].unique()) == [1, 2]
        assert frame["FuelLoad"].is_monotonic_decreasing

        fastest = result.fastest_lap
        assert fastest.time == min(r.time for r in result.laps)

        data = result.to_dict()
        assert data["pit_laps"] == [15]
        assert data["stints"][0]["tyre_life_remaining_pct"] == 25.0
        assert data["stints"][1]["tyre_life_remaining_pct"] == 12.5
        assert len(data["lap_series"]) == 50


class TestComparison:
    """Tests for strategy comparison."""

    def test_describe_plan(self):
        stints = [Stint("Soft", 1, 15), Stint("Medium", 16, 38), Stint("Hard", 39, 57)]

        assert describe_plan(stints) == "2-stop: Soft -> Medium -> Hard (L15, L38)"

    def test_gap_to_best(self):
        race = create_race()
        one_stop = simulate_strategy(race, [Stint("Medium", 1, 25), Stint("Hard", 26, 50)], 5)
        two_stop = simulate_strategy(
            race, [Stint("Soft", 1, 15), Stint("Medium", 16, 35), Stint("Soft", 36, 50)], 5
        )

        df = compare_strategies({1: one_stop, 2: two_stop})

        assert list(df["Stops"]) == [1, 2]
        assert df["Gap to Best (s)"].min() == pytest.approx(0.0)
        assert (df["Gap to Best (s)"] >= 0).all()

    def test_empty_comparison(self):
        assert compare_strategies({}).empty
