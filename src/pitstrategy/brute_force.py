"""Exhaustive strategy search for the pit strategy optimizer.

Enumerates every feasible pit window and every compound assignment that
satisfies the diversity rule, simulates each candidate and keeps the fastest.
Used to cross-check the dynamic program and as the orchestrator's fallback.

Author: João Pedro Cunha
"""

import logging
import threading
from typing import Optional

from tqdm import tqdm

from pitstrategy.candidates import (
    generate_compound_assignments,
    generate_pit_windows,
    min_stint_length,
    stints_from_pit_laps,
)
from pitstrategy.compounds import CompoundClass, available_compounds, select_compound_class
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, RaceConfig
from pitstrategy.errors import OptimizationCancelled
from pitstrategy.laptime import LapTimeEngine
from pitstrategy.simulator import Strategy, simulate_strategy

logger = logging.getLogger(__name__)


def brute_force_optimize(
    race: RaceConfig,
    stop_count: int = 2,
    config: OptimizerConfig = DEFAULT_CONFIG,
    engine: Optional[LapTimeEngine] = None,
    compound_class: Optional[CompoundClass] = None,
    candidate_limit: Optional[int] = None,
    show_progress: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> Optional[Strategy]:
    """Find the fastest strategy for ``stop_count`` stops by full enumeration.

    Args:
        race: Race parameters
        stop_count: Number of pit stops, two by default
        config: Optimizer configuration
        engine: Lap time engine for this call (built if omitted)
        compound_class: Allowed compounds (derived from rainfall if omitted)
        candidate_limit: Stop after simulating this many candidates
        show_progress: Show a progress bar over pit windows
        cancel_event: Checked once per pit window; raises when set

    Returns:
        Fastest simulated Strategy, or None if no candidate is feasible
    """
    if engine is None:
        engine = LapTimeEngine(race, config=config)
    if compound_class is None:
        compound_class = select_compound_class(race, config)

    compounds = available_compounds(compound_class, engine.profiles)
    if not compounds:
        return None

    total_laps = race.total_laps
    min_stint = min_stint_length(total_laps, config)
    max_stint = min(max(engine.profile(c).max_useful_laps for c in compounds), total_laps)

    windows = generate_pit_windows(total_laps, min_stint, max_stint, stop_count)
    assignments = generate_compound_assignments(
        stop_count + 1, compounds, compound_class.require_two_distinct
    )

    logger.info(
        f"{stop_count}-stop brute force: {len(windows)} pit windows x "
        f"{len(assignments)} compound assignments"
    )

    iterator = windows
    if show_progress:
        iterator = tqdm(windows, desc=f"Enumerating {stop_count}-stop strategies")

    best: Optional[Strategy] = None
    evaluated = 0

    for pit_laps in iterator:
        if cancel_event is not None and cancel_event.is_set():
            raise OptimizationCancelled("Optimization cancelled")

        for combo in assignments:
            if candidate_limit is not None and evaluated >= candidate_limit:
                logger.warning(
                    f"Candidate limit {candidate_limit} reached for {stop_count}-stop search, "
                    f"result may not be optimal"
                )
                return best

            evaluated += 1
            stints = stints_from_pit_laps(total_laps, pit_laps, combo)
            result = simulate_strategy(
                race,
                stints,
                min_stint,
                compound_class.require_two_distinct,
                engine=engine,
                config=config,
            )
            if result is None:
                continue
            if best is None or result.total_time < best.total_time - 1e-9:
                best = result

    if best is None:
        logger.info(f"{stop_count}-stop brute force: no feasible candidate")
    else:
        logger.info(f"{stop_count}-stop brute force best: {best.description} ({best.total_time:.3f}s)")

    return best
