"""Lap time model for the pit strategy optimizer.

lap_time = base_lap_time + compound offset + wear penalty + out-lap penalty
           - fuel benefit

Fuel burns linearly over the race distance, so the car gets lighter (and
faster) every lap. A lap whose wear penalty exceeds the reject threshold is
invalid: the tyre is considered unusable and any strategy that needs that
lap is discarded.

Author: João Pedro Cunha
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

from pitstrategy.compounds import DEFAULT_COMPOUNDS, CompoundProfile, get_profile
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, RaceConfig
from pitstrategy.degrade_model import environment_factor, tyre_wear_penalty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LapResult:
    """Outcome of one lap on one set of tyres."""

    time: float  # seconds, inf when invalid
    wear_penalty: float  # seconds
    fuel_load: float  # kg on board at the start of the lap
    invalid: bool


def calc_lap_time(
    compound: str,
    age: int,
    base_lap_time: float,
    base_offset: float,
    total_laps: int,
    lap_number: int,
    fuel_load: float,
    env_factor: float = 1.0,
    max_stint_lap: int = 35,
    reject_threshold: float = 8.0,
    out_lap: bool = False,
    out_lap_penalty: float = 0.0,
    fuel_per_kg_benefit: float = 0.005,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> LapResult:
    """Compute a single lap time from fully explicit inputs.

    Args:
        compound: Compound fitted to the car
        age: Laps on this set of tyres, counting the current lap (>= 1)
        base_lap_time: Reference pace on Medium tyres with no fuel effect
        base_offset: Compound pace offset vs. Medium
        total_laps: Race distance, used for the fuel burn rate
        lap_number: Global lap number (1-based)
        fuel_load: Fuel at race start (kg)
        env_factor: Track/temperature wear multiplier
        max_stint_lap: Tyre age past which the overage term applies
        reject_threshold: Wear penalty above which the lap is invalid
        out_lap: True for the first lap after a pit stop
        out_lap_penalty: Warm-up cost of an out-lap
        fuel_per_kg_benefit: Seconds gained per kg of fuel burned

    Returns:
        LapResult; ``time`` is ``inf`` when ``invalid`` is set
    """
    burn_per_lap = fuel_load / total_laps if total_laps > 0 else 0.0
    burned = burn_per_lap * (lap_number - 1)
    fuel_on_board = max(0.0, fuel_load - burned)
    fuel_benefit = fuel_per_kg_benefit * max(0.0, burned)

    wear = tyre_wear_penalty(compound, age, env_factor, max_stint_lap, profiles, config)

    if wear > reject_threshold:
        return LapResult(time=math.inf, wear_penalty=wear, fuel_load=fuel_on_board, invalid=True)

    time = base_lap_time + base_offset + wear - fuel_benefit
    if out_lap:
        time += out_lap_penalty

    return LapResult(time=time, wear_penalty=wear, fuel_load=fuel_on_board, invalid=False)


class LapTimeEngine:
    """Lap time model bound to one race.

    Resolves the race-level inputs (environment factor, cutoffs, penalties)
    once and memoises lap results. Build one engine per optimization call;
    the memo is never shared between calls.
    """

    def __init__(
        self,
        race: RaceConfig,
        profiles: Optional[Mapping[str, CompoundProfile]] = None,
        config: OptimizerConfig = DEFAULT_CONFIG,
    ):
        self.race = race
        self.profiles = DEFAULT_COMPOUNDS if profiles is None else profiles
        self.config = config

        self.env_factor = environment_factor(race.degradation_level, race.temperature, config)
        self.max_stint_lap = race.max_stint_lap or config.max_stint_lap
        self.reject_threshold = (
            config.wear_reject_threshold
            if race.wear_reject_threshold is None
            else race.wear_reject_threshold
        )
        self.out_lap_penalty = (
            config.out_lap_penalty if race.out_lap_penalty is None else race.out_lap_penalty
        )

        self._cache: dict[tuple[str, int, int, bool], LapResult] = {}

        logger.debug(
            f"Lap time engine: env_factor={self.env_factor:.3f}, "
            f"max_stint_lap={self.max_stint_lap}, reject>{self.reject_threshold}s, "
            f"out_lap={self.out_lap_penalty}s"
        )

    def profile(self, compound: str) -> CompoundProfile:
        return get_profile(compound, self.profiles)

    def lap_time(self, compound: str, age: int, lap_number: int, out_lap: bool = False) -> LapResult:
        """Lap result for ``compound`` at tyre ``age`` on global lap ``lap_number``."""
        key = (compound, age, lap_number, out_lap)
        result = self._cache.get(key)
        if result is None:
            profile = self.profile(compound)
            result = calc_lap_time(
                compound=profile.name,
                age=age,
                base_lap_time=self.race.base_lap_time,
                base_offset=profile.base_offset,
                total_laps=self.race.total_laps,
                lap_number=lap_number,
                fuel_load=self.race.fuel_load,
                env_factor=self.env_factor,
                max_stint_lap=self.max_stint_lap,
                reject_threshold=self.reject_threshold,
                out_lap=out_lap,
                out_lap_penalty=self.out_lap_penalty,
                fuel_per_kg_benefit=self.config.fuel_per_kg_benefit,
                profiles=self.profiles,
                config=self.config,
            )
            self._cache[key] = result
        return result
