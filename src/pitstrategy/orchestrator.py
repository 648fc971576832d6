"""Strategy orchestration for the pit strategy optimizer.

Runs the stint optimizer for every candidate stop count, falls back to
constrained enumeration when the dynamic program finds nothing, and picks
the overall fastest strategy.

Author: João Pedro Cunha
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Mapping, Optional

import pandas as pd

from pitstrategy.brute_force import brute_force_optimize
from pitstrategy.candidates import min_stint_length
from pitstrategy.compounds import (
    CompoundClass,
    CompoundProfile,
    available_compounds,
    select_compound_class,
)
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, RaceConfig
from pitstrategy.errors import NoFeasibleStrategy, OptimizationCancelled
from pitstrategy.laptime import LapTimeEngine
from pitstrategy.optimizer import StintCostTable, optimize_stop_count
from pitstrategy.simulator import Strategy, compare_strategies, simulate_strategy

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """Best strategy per stop count plus the overall winner."""

    race: RaceConfig
    compound_class: CompoundClass
    min_stint: int
    best_by_stops: dict[int, Strategy]
    overall_best: Strategy
    solver_by_stops: dict[int, str] = field(default_factory=dict)  # "dp" or "enumeration"

    def comparison(self) -> pd.DataFrame:
        return compare_strategies(self.best_by_stops)

    def to_dict(self) -> dict:
        return {
            "race": self.race.to_dict(),
            "compound_class": self.compound_class.name,
            "min_stint": self.min_stint,
            "best": {str(stops): s.to_dict() for stops, s in sorted(self.best_by_stops.items())},
            "solver": {str(stops): name for stops, name in sorted(self.solver_by_stops.items())},
            "overall_best": self.overall_best.to_dict(),
        }


def _solve(
    race: RaceConfig,
    stop_count: int,
    config: OptimizerConfig,
    engine: LapTimeEngine,
    compound_class: CompoundClass,
    cost_table: StintCostTable,
    cancel_event: Optional[threading.Event],
    show_progress: bool,
) -> tuple[Optional[Strategy], str]:
    plan = optimize_stop_count(
        race,
        stop_count,
        config,
        engine=engine,
        compound_class=compound_class,
        cost_table=cost_table,
        cancel_event=cancel_event,
    )

    if plan is not None:
        strategy = simulate_strategy(
            race,
            plan.stints,
            min_stint_length(race.total_laps, config),
            compound_class.require_two_distinct,
            engine=engine,
            config=config,
        )
        if strategy is not None:
            return strategy, "dp"
        logger.warning(f"{stop_count}-stop DP plan failed replay, falling back to enumeration")

    logger.info(f"{stop_count}-stop: DP found no plan, falling back to enumeration")
    strategy = brute_force_optimize(
        race,
        stop_count,
        config,
        engine=engine,
        compound_class=compound_class,
        candidate_limit=config.fallback_candidate_limit,
        show_progress=show_progress,
        cancel_event=cancel_event,
    )
    return strategy, "enumeration"


def solve_stop_count(
    race: RaceConfig,
    stop_count: int,
    config: OptimizerConfig = DEFAULT_CONFIG,
    profiles: Optional[Mapping[str, CompoundProfile]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Strategy:
    """Best strategy for exactly ``stop_count`` stops.

    Raises:
        NoFeasibleStrategy: If neither the DP nor enumeration finds a plan
    """
    engine = LapTimeEngine(race, profiles, config)
    compound_class = select_compound_class(race, config)
    cost_table = StintCostTable(engine, available_compounds(compound_class, engine.profiles))

    strategy, _ = _solve(
        race, stop_count, config, engine, compound_class, cost_table, cancel_event, False
    )
    if strategy is None:
        raise NoFeasibleStrategy(f"No {stop_count}-stop strategy found for these inputs")
    return strategy


def optimize_race(
    race: RaceConfig,
    config: OptimizerConfig = DEFAULT_CONFIG,
    profiles: Optional[Mapping[str, CompoundProfile]] = None,
    cancel_event: Optional[threading.Event] = None,
    show_progress: bool = False,
) -> OptimizationResult:
    """Find the optimal strategy across all configured stop counts.

    Each call builds its own lap time memo and stint cost table, so calls
    are independent and safe to run concurrently.

    Raises:
        NoFeasibleStrategy: If no stop count yields a valid strategy
        OptimizationCancelled: If ``cancel_event`` is set during the search
        UnknownCompound: If a user-supplied profile set is inconsistent
    """
    engine = LapTimeEngine(race, profiles, config)
    compound_class = select_compound_class(race, config)
    compounds = available_compounds(compound_class, engine.profiles)
    cost_table = StintCostTable(engine, compounds)
    min_stint = min_stint_length(race.total_laps, config)

    logger.info(
        f"Optimizing {race.total_laps} laps, {compound_class.name} compounds {compounds}, "
        f"min stint {min_stint}, env factor {engine.env_factor:.3f}"
    )

    best_by_stops: dict[int, Strategy] = {}
    solver_by_stops: dict[int, str] = {}

    for stop_count in config.stop_counts:
        if cancel_event is not None and cancel_event.is_set():
            raise OptimizationCancelled("Optimization cancelled")

        strategy, solver = _solve(
            race,
            stop_count,
            config,
            engine,
            compound_class,
            cost_table,
            cancel_event,
            show_progress,
        )
        if strategy is None:
            logger.info(f"{stop_count}-stop: no feasible strategy")
            continue

        best_by_stops[stop_count] = strategy
        solver_by_stops[stop_count] = solver
        logger.info(
            f"{stop_count}-stop best: {strategy.description} "
            f"({strategy.total_time:.3f}s via {solver})"
        )

    if not best_by_stops:
        raise NoFeasibleStrategy()

    overall_stops = min(best_by_stops, key=lambda stops: (best_by_stops[stops].total_time, stops))
    overall_best = best_by_stops[overall_stops]

    logger.info(f"Best strategy: {overall_best.description} ({overall_best.total_time:.3f}s)")

    return OptimizationResult(
        race=race,
        compound_class=compound_class,
        min_stint=min_stint,
        best_by_stops=best_by_stops,
        overall_best=overall_best,
        solver_by_stops=solver_by_stops,
    )
