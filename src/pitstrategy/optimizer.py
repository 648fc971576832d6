"""Dynamic-programming stint optimizer for the pit strategy optimizer.

Finds the minimal-time compound/stint assignment for a fixed number of pit
stops. DP state is ``(stint index k, end lap L, compound C, diversity D)``:

- ``k``: stint being placed (0-based)
- ``L``: last lap of that stint
- ``C``: compound run in that stint
- ``D``: UNIFORM while every stint so far used the same compound, DIVERSE
  once two compounds have appeared

The two-compound rule is a property of the whole race, so the DP carries it
forward as the D tag instead of checking it only on the final state. Every
cell stores the predecessor it was reached from, which makes backtracking a
pointer walk.

Author: João Pedro Cunha
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from pitstrategy.candidates import min_stint_length
from pitstrategy.compounds import CompoundClass, available_compounds, select_compound_class
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, RaceConfig
from pitstrategy.errors import OptimizationCancelled
from pitstrategy.laptime import LapTimeEngine
from pitstrategy.simulator import Stint, describe_plan

logger = logging.getLogger(__name__)

UNIFORM = 0
DIVERSE = 1

# Cell predecessor: (previous end lap, previous compound index, previous flag)
_Pointer = tuple[int, int, int]


@dataclass
class StintPlan:
    """Optimal stint layout for one stop count, before telemetry replay."""

    stints: list[Stint]
    total_time: float  # seconds, including pit stop losses

    @property
    def num_stops(self) -> int:
        return len(self.stints) - 1

    @property
    def pit_laps(self) -> list[int]:
        return [stint.end_lap for stint in self.stints[:-1]]


class StintCostTable:
    """Memoised time of a contiguous run of laps on one compound.

    ``cost(start_lap, length, c)`` is the sum of lap times for laps
    start_lap .. start_lap + length - 1 on fresh compound ``c`` (an index into
    ``compounds``). The first lap is an out-lap unless the stint starts the
    race. A run containing an invalid lap costs ``inf``.

    Rows are filled incrementally per (compound, start lap), so each lap
    time is fetched once per row. One table belongs to one optimization call.
    """

    def __init__(self, engine: LapTimeEngine, compounds: Sequence[str]):
        self.engine = engine
        self.compounds = list(compounds)
        self.total_laps = engine.race.total_laps
        # _rows[c][start] -> list of costs indexed by length, or None if not built yet
        self._rows: list[list[Optional[list[float]]]] = [
            [None] * (self.total_laps + 2) for _ in self.compounds
        ]

    def cost(self, start_lap: int, length: int, compound_index: int) -> float:
        if length < 1 or start_lap < 1 or start_lap + length - 1 > self.total_laps:
            return math.inf

        row = self._rows[compound_index][start_lap]
        if row is None:
            row = self._build_row(start_lap, compound_index)
            self._rows[compound_index][start_lap] = row
        return row[length]

    def _build_row(self, start_lap: int, compound_index: int) -> list[float]:
        compound = self.compounds[compound_index]
        max_length = self.total_laps - start_lap + 1
        out_lap = start_lap > 1

        row = [math.inf] * (max_length + 1)
        running = 0.0
        for age in range(1, max_length + 1):
            result = self.engine.lap_time(compound, age, start_lap + age - 1, out_lap and age == 1)
            if result.invalid:
                # Every longer run contains this lap too
                break
            running += result.time
            row[age] = running
        return row


def _check_cancel(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OptimizationCancelled("Optimization cancelled")


def optimize_stop_count(
    race: RaceConfig,
    stop_count: int,
    config: OptimizerConfig = DEFAULT_CONFIG,
    engine: Optional[LapTimeEngine] = None,
    compound_class: Optional[CompoundClass] = None,
    cost_table: Optional[StintCostTable] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Optional[StintPlan]:
    """Minimal-time stint plan with exactly ``stop_count`` pit stops.

    Args:
        race: Race parameters
        stop_count: Number of pit stops (stints = stop_count + 1)
        config: Optimizer configuration
        engine: Lap time engine for this call (built if omitted)
        compound_class: Allowed compounds (derived from rainfall if omitted)
        cost_table: Stint cost table to reuse across stop counts of one call
        cancel_event: Checked at loop boundaries; raises when set

    Returns:
        StintPlan, or None when no feasible plan exists for this stop count

    Raises:
        OptimizationCancelled: If ``cancel_event`` is set during the search
    """
    if engine is None:
        engine = LapTimeEngine(race, config=config)
    if compound_class is None:
        compound_class = select_compound_class(race, config)

    compounds = available_compounds(compound_class, engine.profiles)
    if cost_table is None or cost_table.compounds != compounds:
        cost_table = StintCostTable(engine, compounds)

    n = race.total_laps
    n_stints = stop_count + 1
    n_compounds = len(compounds)
    min_stint = min_stint_length(n, config)
    max_len = [min(engine.profile(c).max_useful_laps, n) for c in compounds]
    pit_loss = race.pit_stop_loss

    if stop_count < 0 or n_compounds == 0 or n_stints * min_stint > n:
        logger.debug(f"{stop_count}-stop: no room for {n_stints} stints of {min_stint}+ laps")
        return None

    def blank_layer() -> tuple[list, list]:
        costs = [[[math.inf, math.inf] for _ in range(n_compounds)] for _ in range(n + 1)]
        pointers: list = [[[None, None] for _ in range(n_compounds)] for _ in range(n + 1)]
        return costs, pointers

    def end_range(k: int) -> range:
        """Feasible end laps for stint k."""
        if k == n_stints - 1:
            return range(n, n + 1)
        lo = max((k + 1) * min_stint, 2)  # no pit on lap 1
        hi = n - (n_stints - 1 - k) * min_stint
        return range(lo, hi + 1)

    layers_cost = []
    layers_pointer = []

    # Base case: first stint, starting on lap 1
    _check_cancel(cancel_event)
    costs, pointers = blank_layer()
    for end in end_range(0):
        for c in range(n_compounds):
            if not min_stint <= end <= max_len[c]:
                continue
            stint_cost = cost_table.cost(1, end, c)
            if stint_cost < costs[end][c][UNIFORM]:
                costs[end][c][UNIFORM] = stint_cost
    layers_cost.append(costs)
    layers_pointer.append(pointers)

    # Transitions: place stint k after stint k - 1
    for k in range(1, n_stints):
        _check_cancel(cancel_event)
        prev_costs = layers_cost[k - 1]
        costs, pointers = blank_layer()

        for end in end_range(k):
            for c in range(n_compounds):
                for length in range(min_stint, max_len[c] + 1):
                    prev_end = end - length
                    if prev_end < k * min_stint:
                        break
                    stint_cost = cost_table.cost(prev_end + 1, length, c)
                    if stint_cost == math.inf:
                        continue

                    for pc in range(n_compounds):
                        for flag in (UNIFORM, DIVERSE):
                            prev = prev_costs[prev_end][pc][flag]
                            if prev == math.inf:
                                continue

                            new_flag = DIVERSE if (c != pc or flag == DIVERSE) else UNIFORM
                            candidate = prev + stint_cost + pit_loss
                            if candidate < costs[end][c][new_flag]:
                                costs[end][c][new_flag] = candidate
                                pointers[end][c][new_flag] = (prev_end, pc, flag)

        layers_cost.append(costs)
        layers_pointer.append(pointers)

    # Accepting states: last stint ends on the final lap
    accepted_flags = (DIVERSE,) if compound_class.require_two_distinct else (UNIFORM, DIVERSE)
    final_costs = layers_cost[-1][n]

    best_cost = math.inf
    best_state: Optional[tuple[int, int]] = None
    for c in range(n_compounds):
        for flag in accepted_flags:
            if final_costs[c][flag] < best_cost:
                best_cost = final_costs[c][flag]
                best_state = (c, flag)

    if best_state is None:
        logger.debug(f"{stop_count}-stop: no accepting state reached")
        return None

    stints = _backtrack(layers_pointer, n, best_state, compounds)
    plan = StintPlan(stints=stints, total_time=best_cost)
    logger.debug(f"DP best {describe_plan(stints)}: {best_cost:.3f}s")
    return plan


def _backtrack(
    layers_pointer: list,
    total_laps: int,
    final_state: tuple[int, int],
    compounds: Sequence[str],
) -> list[Stint]:
    """Walk predecessor pointers from the accepting state back to lap 1."""
    end = total_laps
    c, flag = final_state
    segments = []

    for k in range(len(layers_pointer) - 1, -1, -1):
        pointer: Optional[_Pointer] = layers_pointer[k][end][c][flag]
        start = 1 if pointer is None else pointer[0] + 1
        segments.append(Stint(compounds[c], start, end))
        if pointer is None:
            break
        end, c, flag = pointer

    segments.reverse()
    return segments
