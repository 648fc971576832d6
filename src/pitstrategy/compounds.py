"""Tyre compound profiles and compound class selection.

Each compound carries a pace offset relative to the Medium and the parameters
of its wear curve: a linear build-up, an exponential phase after the wear
onset lap and a steeper cliff phase later on.

Author: João Pedro Cunha
"""

import logging
from dataclasses import dataclass
from typing import Mapping

from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig, RaceConfig
from pitstrategy.errors import UnknownCompound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompoundProfile:
    """Pace and wear characteristics of one tyre compound."""

    name: str
    base_offset: float  # seconds vs. Medium
    linear_rate: float  # seconds per lap of tyre age
    wear_onset: int  # age where the exponential phase starts
    beta: float
    gamma: float
    cliff_onset: int  # age where the cliff phase starts
    cliff_beta: float
    cliff_gamma: float
    max_useful_laps: int

    @property
    def is_wet(self) -> bool:
        return self.name in WET_COMPOUNDS


DRY_COMPOUNDS: tuple[str, ...] = ("Soft", "Medium", "Hard")
WET_COMPOUNDS: tuple[str, ...] = ("Intermediate", "Wet")

DEFAULT_COMPOUNDS: dict[str, CompoundProfile] = {
    "Soft": CompoundProfile(
        name="Soft",
        base_offset=-0.75,
        linear_rate=0.07,
        wear_onset=6,
        beta=0.10,
        gamma=0.20,
        cliff_onset=16,
        cliff_beta=0.20,
        cliff_gamma=0.25,
        max_useful_laps=20,
    ),
    "Medium": CompoundProfile(
        name="Medium",
        base_offset=0.0,
        linear_rate=0.05,
        wear_onset=10,
        beta=0.08,
        gamma=0.18,
        cliff_onset=24,
        cliff_beta=0.14,
        cliff_gamma=0.22,
        max_useful_laps=30,
    ),
    "Hard": CompoundProfile(
        name="Hard",
        base_offset=0.25,
        linear_rate=0.035,
        wear_onset=14,
        beta=0.06,
        gamma=0.16,
        cliff_onset=34,
        cliff_beta=0.10,
        cliff_gamma=0.20,
        max_useful_laps=40,
    ),
    "Intermediate": CompoundProfile(
        name="Intermediate",
        base_offset=2.0,
        linear_rate=0.06,
        wear_onset=8,
        beta=0.08,
        gamma=0.18,
        cliff_onset=20,
        cliff_beta=0.14,
        cliff_gamma=0.22,
        max_useful_laps=35,
    ),
    "Wet": CompoundProfile(
        name="Wet",
        base_offset=5.0,
        linear_rate=0.03,
        wear_onset=12,
        beta=0.05,
        gamma=0.14,
        cliff_onset=28,
        cliff_beta=0.10,
        cliff_gamma=0.18,
        max_useful_laps=50,
    ),
}


@dataclass(frozen=True)
class CompoundClass:
    """Set of compounds allowed for a race and whether two must be used."""

    name: str
    compounds: tuple[str, ...]
    require_two_distinct: bool

    @property
    def allows_uniform(self) -> bool:
        return not self.require_two_distinct


def get_profile(
    compound: str,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
) -> CompoundProfile:
    """Look up a compound profile, tolerating case differences in the name."""
    profile = profiles.get(compound)
    if profile is not None:
        return profile

    wanted = str(compound).strip().lower()
    for name, candidate in profiles.items():
        if name.lower() == wanted:
            return candidate

    raise UnknownCompound(compound)


def available_compounds(
    compound_class: CompoundClass,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
) -> list[str]:
    """Compounds of the class that have a profile, in class order."""
    names = []
    for compound in compound_class.compounds:
        try:
            names.append(get_profile(compound, profiles).name)
        except UnknownCompound:
            logger.warning(f"No profile for {compound}, leaving it out of the search")
    return names


def select_compound_class(
    race: RaceConfig,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> CompoundClass:
    """Pick the allowed compounds from the average rainfall per lap.

    < dry limit            -> Soft/Medium/Hard, two distinct compounds required
    dry .. intermediate    -> Intermediate only
    intermediate .. wet    -> Intermediate and Wet
    >= full wet limit      -> Wet only

    Wet classes may run a single compound for the whole race.
    """
    rain = race.avg_rainfall_per_lap

    if rain < config.dry_rain_limit:
        compound_class = CompoundClass("dry", DRY_COMPOUNDS, require_two_distinct=True)
    elif rain < config.intermediate_rain_limit:
        compound_class = CompoundClass("intermediate", ("Intermediate",), require_two_distinct=False)
    elif rain < config.full_wet_rain_limit:
        compound_class = CompoundClass("mixed_wet", WET_COMPOUNDS, require_two_distinct=False)
    else:
        compound_class = CompoundClass("full_wet", ("Wet",), require_two_distinct=False)

    logger.debug(
        f"Average rainfall {rain:.3f} mm/lap -> {compound_class.name} "
        f"compounds {list(compound_class.compounds)}"
    )
    return compound_class
