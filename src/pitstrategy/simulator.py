"""Deterministic race replay for the pit strategy optimizer.

Replays a candidate strategy lap by lap through the lap time model, adds the
pit stop loss at every stint boundary and records per-lap telemetry.

Author: João Pedro Cunha
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from pitstrategy.compounds import CompoundProfile, get_profile
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, RaceConfig
from pitstrategy.errors import InfeasibleStint, RegulationViolation
from pitstrategy.laptime import LapTimeEngine

logger = logging.getLogger(__name__)


@dataclass
class Stint:
    """Represents a racing stint."""

    compound: str
    start_lap: int
    end_lap: int

    @property
    def length(self) -> int:
        return self.end_lap - self.start_lap + 1


@dataclass
class LapRecord:
    """Telemetry for one race lap."""

    lap: int
    time: float  # seconds
    wear_penalty: float  # seconds
    fuel_load: float  # kg on board
    compound: str
    stint_index: int
    stint_lap: int  # tyre age on this lap


@dataclass
class Strategy:
    """A fully simulated pit strategy."""

    stints: list[Stint]
    total_time: float  # seconds, including pit stop losses
    laps: list[LapRecord] = field(default_factory=list)
    nominal_life: list[int] = field(default_factory=list)  # max useful laps per stint
    description: str = ""

    @property
    def num_stops(self) -> int:
        return len(self.stints) - 1

    @property
    def pit_laps(self) -> list[int]:
        return [stint.end_lap for stint in self.stints[:-1]]

    @property
    def compounds(self) -> list[str]:
        return [stint.compound for stint in self.stints]

    @property
    def fastest_lap(self) -> Optional[LapRecord]:
        """Quickest lap of the race; the earliest one wins a tie."""
        if not self.laps:
            return None
        return min(self.laps, key=lambda record: (record.time, record.lap))

    def stint_laps(self, index: int) -> list[LapRecord]:
        return [record for record in self.laps if record.stint_index == index]

    def to_frame(self) -> pd.DataFrame:
        """Per-lap telemetry as a DataFrame."""
        return pd.DataFrame(
            {
                "Lap": [r.lap for r in self.laps],
                "LapTime": [r.time for r in self.laps],
                "WearPenalty": [r.wear_penalty for r in self.laps],
                "FuelLoad": [r.fuel_load for r in self.laps],
                "Compound": [r.compound for r in self.laps],
                "Stint": [r.stint_index + 1 for r in self.laps],
                "StintAge": [r.stint_lap for r in self.laps],
            }
        )

    def to_dict(self) -> dict:
        """Plain structure for JSON export."""
        stints = []
        for index, stint in enumerate(self.stints):
            records = self.stint_laps(index)
            life = self.nominal_life[index] if index < len(self.nominal_life) else 0
            remaining = max(0, life - stint.length)
            stints.append(
                {
                    "stint": index + 1,
                    "compound": stint.compound,
                    "start_lap": stint.start_lap,
                    "end_lap": stint.end_lap,
                    "laps": stint.length,
                    "lap_times": [r.time for r in records],
                    "wear_penalties": [r.wear_penalty for r in records],
                    "fuel_loads": [r.fuel_load for r in records],
                    "nominal_life": life,
                    "tyre_life_remaining_pct": round(remaining / life * 100, 1) if life else 0.0,
                }
            )

        fastest = self.fastest_lap
        return {
            "description": self.description,
            "stops": self.num_stops,
            "pit_laps": self.pit_laps,
            "total_time": self.total_time,
            "stints": stints,
            "fastest_lap": None
            if fastest is None
            else {
                "lap": fastest.lap,
                "time": fastest.time,
                "compound": fastest.compound,
                "stint": fastest.stint_index + 1,
                "stint_lap": fastest.stint_lap,
            },
            "lap_series": [
                {
                    "lap": r.lap,
                    "time": r.time,
                    "wear_penalty": r.wear_penalty,
                    "fuel_load": r.fuel_load,
                    "compound": r.compound,
                }
                for r in self.laps
            ],
        }


def describe_plan(stints: Sequence[Stint]) -> str:
    """Short label such as ``2-stop: Soft -> Medium -> Hard (L15, L38)``."""
    stops = len(stints) - 1
    chain = " -> ".join(stint.compound for stint in stints)
    if stops == 0:
        return f"0-stop: {chain}"
    pits = ", ".join(f"L{stint.end_lap}" for stint in stints[:-1])
    return f"{stops}-stop: {chain} ({pits})"


def check_plan(
    stints: Sequence[Stint],
    total_laps: int,
    min_stint: int,
    profiles: Mapping[str, CompoundProfile],
    require_two_distinct: bool = True,
) -> None:
    """Validate a stint plan against the race rules.

    Raises:
        InfeasibleStint: Stints do not partition the race, a pit falls on lap
            1 or a stint length is outside [min_stint, max useful laps]
        RegulationViolation: Fewer than two compounds where two are required
        UnknownCompound: A stint uses a compound outside ``profiles``
    """
    if not stints:
        raise InfeasibleStint("Strategy has no stints")

    if stints[0].start_lap != 1:
        raise InfeasibleStint(f"First stint must start on lap 1, not {stints[0].start_lap}")
    if stints[-1].end_lap != total_laps:
        raise InfeasibleStint(
            f"Last stint must end on lap {total_laps}, not {stints[-1].end_lap}"
        )
    for previous, current in zip(stints, stints[1:]):
        if previous.end_lap + 1 != current.start_lap:
            raise InfeasibleStint(
                f"Stints must be contiguous: lap {previous.end_lap} followed by {current.start_lap}"
            )
        if previous.end_lap <= 1:
            raise InfeasibleStint("Cannot pit on lap 1")

    for stint in stints:
        profile = get_profile(stint.compound, profiles)
        if stint.length < min_stint:
            raise InfeasibleStint(
                f"{stint.compound} stint of {stint.length} laps is shorter than {min_stint}"
            )
        if stint.length > profile.max_useful_laps:
            raise InfeasibleStint(
                f"{stint.compound} stint of {stint.length} laps exceeds "
                f"{profile.max_useful_laps} useful laps"
            )

    if require_two_distinct and len({stint.compound for stint in stints}) < 2:
        raise RegulationViolation("At least two different compounds must be used")


def simulate_strategy(
    race: RaceConfig,
    stints: Sequence[Stint],
    min_stint: int,
    require_two_distinct: bool = True,
    engine: Optional[LapTimeEngine] = None,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> Optional[Strategy]:
    """Replay a stint plan lap by lap.

    Returns None when the plan breaks a stint-length or diversity rule, or
    when any lap is invalid because the tyres are worn past the reject
    threshold. Infeasibility is routine during enumeration and is not raised.
    """
    if engine is None:
        engine = LapTimeEngine(race, config=config)

    try:
        check_plan(stints, race.total_laps, min_stint, engine.profiles, require_two_distinct)
    except (InfeasibleStint, RegulationViolation) as e:
        logger.debug(f"Rejected {describe_plan(stints)}: {e}")
        return None

    laps = []
    total_time = 0.0
    last_index = len(stints) - 1

    for index, stint in enumerate(stints):
        for age in range(1, stint.length + 1):
            lap = stint.start_lap + age - 1
            result = engine.lap_time(stint.compound, age, lap, out_lap=(age == 1 and index > 0))

            if result.invalid:
                logger.debug(
                    f"Rejected {describe_plan(stints)}: {stint.compound} worn out "
                    f"at age {age} ({result.wear_penalty:.2f}s)"
                )
                return None

            total_time += result.time
            laps.append(
                LapRecord(
                    lap=lap,
                    time=result.time,
                    wear_penalty=result.wear_penalty,
                    fuel_load=result.fuel_load,
                    compound=stint.compound,
                    stint_index=index,
                    stint_lap=age,
                )
            )

        # Add pit stop time (if not last stint)
        if index < last_index:
            total_time += race.pit_stop_loss

    return Strategy(
        stints=list(stints),
        total_time=total_time,
        laps=laps,
        nominal_life=[engine.profile(stint.compound).max_useful_laps for stint in stints],
        description=describe_plan(stints),
    )


def compare_strategies(best_by_stops: Mapping[int, Strategy]) -> pd.DataFrame:
    """Compare the best strategy of each stop count."""
    if not best_by_stops:
        return pd.DataFrame()

    best_time = np.min([s.total_time for s in best_by_stops.values()])
    comparison_data = []

    for stops, strategy in sorted(best_by_stops.items()):
        fastest = strategy.fastest_lap
        comparison_data.append(
            {
                "Stops": stops,
                "Strategy": strategy.description,
                "Pit Laps": ", ".join(str(p) for p in strategy.pit_laps),
                "Total Time (s)": strategy.total_time,
                "Gap to Best (s)": strategy.total_time - best_time,
                "Fastest Lap (s)": fastest.time if fastest else np.nan,
                "Mean Lap (s)": float(np.mean([r.time for r in strategy.laps])),
            }
        )

    return pd.DataFrame(comparison_data)
