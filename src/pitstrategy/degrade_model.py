"""Tyre wear modeling for the pit strategy optimizer.

Per-lap wear penalty as a function of compound and tyre age. The curve is
piecewise:

- Linear: constant grip loss from the first lap
- Exponential: accelerating loss once the tyre passes its wear onset lap
- Cliff: a second, steeper exponential once the tyre falls off the cliff
- Overage: rapidly compounding penalty past the max-stint cutoff

The whole sum is scaled by an environment factor derived from the track's
degradation level and temperature.

Author: João Pedro Cunha
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from pitstrategy.compounds import DEFAULT_COMPOUNDS, CompoundProfile, get_profile
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, normalize_degradation_level

logger = logging.getLogger(__name__)


@dataclass
class WearBreakdown:
    """Individual terms of one wear penalty evaluation."""

    compound: str
    age: int
    linear: float
    curve: float  # exponential phase
    cliff: float
    overage: float
    env_factor: float

    @property
    def raw(self) -> float:
        return self.linear + self.curve + self.cliff + self.overage

    @property
    def total(self) -> float:
        return self.raw * self.env_factor


def environment_factor(
    degradation_level: str,
    temperature: float,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> float:
    """Scalar multiplier on tyre wear for the track conditions.

    Physics reasoning: abrasive, high-energy tracks and hot asphalt both
    speed up thermal degradation. Temperature steps compound, so a 40C
    track gets all three step multipliers.
    """
    level = normalize_degradation_level(degradation_level)
    factor = config.degradation_multipliers.get(level, 1.0)

    for threshold, multiplier in config.temperature_steps:
        if temperature >= threshold:
            factor *= multiplier

    low, high = config.env_factor_bounds
    return max(low, min(high, factor))


def wear_breakdown(
    compound: str,
    age: int,
    env_factor: float = 1.0,
    max_stint_lap: Optional[int] = None,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> WearBreakdown:
    """Evaluate the wear curve and keep each term separate."""
    profile = get_profile(compound, profiles)
    cutoff = config.max_stint_lap if max_stint_lap is None else max_stint_lap
    age = max(1, int(age))

    linear = profile.linear_rate * age

    curve = 0.0
    if age > profile.wear_onset:
        curve = profile.beta * (math.exp(profile.gamma * (age - profile.wear_onset)) - 1)

    cliff = 0.0
    if age > profile.cliff_onset:
        cliff = profile.cliff_beta * (
            math.exp(profile.cliff_gamma * (age - profile.cliff_onset)) - 1
        )

    overage = 0.0
    if age > cutoff:
        overage = config.overage_scale * config.overage_base ** (age - cutoff)

    return WearBreakdown(
        compound=profile.name,
        age=age,
        linear=linear,
        curve=curve,
        cliff=cliff,
        overage=overage,
        env_factor=env_factor,
    )


def tyre_wear_penalty(
    compound: str,
    age: int,
    env_factor: float = 1.0,
    max_stint_lap: Optional[int] = None,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> float:
    """Per-lap wear penalty in seconds (not cumulative) at the given tyre age.

    Non-negative and non-decreasing in age for a fixed compound and
    environment.

    Raises:
        UnknownCompound: If the compound is not in ``profiles``.
    """
    return wear_breakdown(compound, age, env_factor, max_stint_lap, profiles, config).total


def wear_curve(
    compound: str,
    max_age: int,
    env_factor: float = 1.0,
    max_stint_lap: Optional[int] = None,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Wear penalty for ages 1..max_age as an array."""
    return np.array(
        [
            tyre_wear_penalty(compound, age, env_factor, max_stint_lap, profiles, config)
            for age in range(1, max_age + 1)
        ]
    )


def wear_breakdown_table(
    compound: str,
    max_age: int,
    env_factor: float = 1.0,
    max_stint_lap: Optional[int] = None,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> pd.DataFrame:
    """Lap-by-lap decomposition of the wear curve for one compound."""
    rows = []
    for age in range(1, max_age + 1):
        terms = wear_breakdown(compound, age, env_factor, max_stint_lap, profiles, config)
        rows.append(
            {
                "Age": age,
                "Linear (s)": terms.linear,
                "Curve (s)": terms.curve,
                "Cliff (s)": terms.cliff,
                "Overage (s)": terms.overage,
                "Factor": terms.env_factor,
                "Total (s)": terms.total,
            }
        )

    table = pd.DataFrame(rows)
    if table.empty:
        return table

    logger.info(
        f"{compound}: wear at age {max_age} = {table['Total (s)'].iloc[-1]:.3f}s "
        f"(factor {env_factor:.3f})"
    )
    return table
