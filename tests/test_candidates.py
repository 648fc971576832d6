"""Tests for candidate strategy enumeration.

Author: João Pedro Cunha
"""

import itertools

import pytest

from pitstrategy.candidates import (
    generate_compound_assignments,
    generate_pit_windows,
    min_stint_length,
    stints_from_pit_laps,
)
from pitstrategy.config import OptimizerConfig


def naive_pit_windows(total_laps, min_stint, max_stint, stop_count):
    """Reference enumeration by filtering every combination of pit laps."""
    windows = []
    for pits in itertools.combinations(range(2, total_laps), stop_count):
        bounds = (0,) + pits + (total_laps,)
        lengths = [b - a for a, b in zip(bounds, bounds[1:])]
        if all(min_stint <= length <= max_stint for length in lengths):
            windows.append(pits)
    return windows


class TestMinStint:
    """Tests for the minimum stint length."""

    def test_tenth_of_race(self):
        assert min_stint_length(57) == 5
        assert min_stint_length(9) == 1

    def test_explicit_override(self):
        assert min_stint_length(57, OptimizerConfig(min_stint_laps=8)) == 8


class TestPitWindows:
    """Tests for pit lap enumeration."""

    @pytest.mark.parametrize("stop_count", [1, 2, 3])
    def test_matches_reference_enumeration(self, stop_count):
        """Test that pruned enumeration yields exactly the valid windows, in order."""
        windows = generate_pit_windows(30, 3, 12, stop_count)

        assert windows == naive_pit_windows(30, 3, 12, stop_count)
        assert windows == sorted(windows)

    def test_no_room_for_stints(self):
        """Test that 4 stints of 8+ laps cannot fit into 10 laps."""
        assert generate_pit_windows(10, 8, 10, 3) == []

    def test_never_pits_on_first_or_last_lap(self):
        windows = generate_pit_windows(12, 1, 12, 1)

        assert (1,) not in windows
        assert (12,) not in windows
        assert windows[0] == (2,)
        assert windows[-1] == (11,)


class TestCompoundAssignments:
    """Tests for compound sequences."""

    def test_two_distinct_required(self):
        """Test that uniform sequences are dropped in the dry."""
        combos = generate_compound_assignments(2, ["Soft", "Medium", "Hard"], True)

        assert len(combos) == 6
        assert all(len(set(c)) == 2 for c in combos)

    def test_uniform_allowed(self):
        combos = generate_compound_assignments(2, ["Intermediate", "Wet"], False)

        assert len(combos) == 4
        assert ("Wet", "Wet") in combos


class TestStintsFromPitLaps:
    """Tests for stint construction."""

    def test_contiguous_partition(self):
        stints = stints_from_pit_laps(50, [18, 35], ["Soft", "Medium", "Hard"])

        assert [(s.start_lap, s.end_lap) for s in stints] == [(1, 18), (19, 35), (36, 50)]
        assert sum(s.length for s in stints) == 50

    def test_compound_count_mismatch(self):
        with pytest.raises(ValueError):
            stints_from_pit_laps(50, [25], ["Soft"])
