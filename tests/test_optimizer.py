"""Tests for the dynamic-programming stint optimizer.

Author: João Pedro Cunha
"""

import threading

import pytest

from pitstrategy.brute_force import brute_force_optimize
from pitstrategy.config import OptimizerConfig, RaceConfig
from pitstrategy.errors import OptimizationCancelled
from pitstrategy.laptime import LapTimeEngine
from pitstrategy.optimizer import StintCostTable, optimize_stop_count
from pitstrategy.simulator import simulate_strategy


def create_race(**overrides):
    """Create the reference 57-lap dry race."""
    params = dict(
        total_laps=57,
        base_lap_time=92.0,
        fuel_load=110.0,
        pit_stop_loss=20.0,
        degradation_level="Medium",
        temperature=25.0,
    )
    params.update(overrides)
    return RaceConfig(**params)


class TestStintCostTable:
    """Tests for memoised stint costs."""

    def test_cost_matches_lap_sum(self):
        """Test that a stint cost equals the sum of its lap times."""
        engine = LapTimeEngine(create_race())
        table = StintCostTable(engine, ["Soft", "Medium", "Hard"])

        expected = sum(
            engine.lap_time("Medium", age, 10 + age - 1, out_lap=age == 1).time
            for age in range(1, 21)
        )
        assert table.cost(10, 20, 1) == pytest.approx(expected)

    def test_out_of_race_is_infinite(self):
        engine = LapTimeEngine(create_race())
        table = StintCostTable(engine, ["Soft"])

        assert table.cost(50, 10, 0) == float("inf")
        assert table.cost(1, 0, 0) == float("inf")

    def test_invalid_lap_makes_longer_runs_infinite(self):
        """Test that every run containing a worn-out lap costs inf."""
        engine = LapTimeEngine(create_race(wear_reject_threshold=1.0))
        table = StintCostTable(engine, ["Soft"])

        # Soft wear passes 1.0s at age 12
        assert table.cost(1, 11, 0) < float("inf")
        assert table.cost(1, 12, 0) == float("inf")
        assert table.cost(1, 20, 0) == float("inf")


class TestOptimizeStopCount:
    """Tests for the per-stop-count DP."""

    @pytest.mark.parametrize("stop_count", [1, 2])
    def test_matches_brute_force(self, stop_count):
        """Test that the DP optimum equals exhaustive enumeration."""
        race = create_race()

        plan = optimize_stop_count(race, stop_count)
        best = brute_force_optimize(race, stop_count)

        assert plan is not None and best is not None
        assert plan.total_time == pytest.approx(best.total_time, abs=1e-6)

    def test_matches_brute_force_on_hot_track(self):
        race = create_race(total_laps=40, degradation_level="High", temperature=38.0)

        plan = optimize_stop_count(race, 2)
        best = brute_force_optimize(race, 2)

        assert plan.total_time == pytest.approx(best.total_time, abs=1e-6)

    def test_plan_replays_to_same_total(self):
        """Test that the simulator reproduces the DP total."""
        race = create_race()
        plan = optimize_stop_count(race, 2)

        strategy = simulate_strategy(race, plan.stints, 5)

        assert strategy is not None
        assert strategy.total_time == pytest.approx(plan.total_time, abs=1e-6)

    def test_plan_shape(self):
        """Test that the plan partitions the race and uses two compounds."""
        plan = optimize_stop_count(create_race(), 2)

        assert plan.num_stops == 2
        assert plan.stints[0].start_lap == 1
        assert plan.stints[-1].end_lap == 57
        for previous, current in zip(plan.stints, plan.stints[1:]):
            assert current.start_lap == previous.end_lap + 1
        assert len({s.compound for s in plan.stints}) >= 2
        assert all(s.length >= 5 for s in plan.stints)

    def test_no_room_returns_none(self):
        """Test that 4 stints of 8+ laps over 10 laps is infeasible."""
        race = create_race(total_laps=10)
        config = OptimizerConfig(min_stint_laps=8)

        assert optimize_stop_count(race, 3, config) is None
        assert brute_force_optimize(race, 3, config) is None

    def test_wet_race_allows_single_compound(self):
        """Test that a full-wet race may run Wets throughout."""
        race = create_race(total_laps=30, total_rainfall=150.0)
        plan = optimize_stop_count(race, 1)

        assert plan is not None
        assert {s.compound for s in plan.stints} == {"Wet"}

    def test_cancelled_before_start(self):
        event = threading.Event()
        event.set()

        with pytest.raises(OptimizationCancelled):
            optimize_stop_count(create_race(), 2, cancel_event=event)
