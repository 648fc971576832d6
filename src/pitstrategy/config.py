"""Configuration module for the pit strategy optimizer.

Holds the race input record (RaceConfig) and the tunable optimizer settings
(OptimizerConfig). Wear-curve constants, MIN_STINT derivation and rainfall
thresholds are settings rather than hard-coded values so they can be tuned
per track without touching the model.

Author: João Pedro Cunha
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

from pitstrategy.errors import InvalidConfig

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

DegradationLevel = Literal["Low", "Medium", "High"]
DEGRADATION_LEVELS: tuple[str, ...] = ("Low", "Medium", "High")


def to_number(value: Any, fallback: float) -> float:
    """Coerce a loosely typed value to a finite float, else return fallback."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def to_int(value: Any, fallback: int) -> int:
    """Coerce a loosely typed value to an int, else return fallback."""
    number = to_number(value, float("nan"))
    if math.isnan(number):
        return fallback
    return int(number)


def normalize_degradation_level(value: Any) -> str:
    """Map free-form degradation input onto Low/Medium/High."""
    text = str(value or "").strip().capitalize()
    if text in DEGRADATION_LEVELS:
        return text
    if text:
        logger.warning(f"Unknown degradation level {value!r}, using Medium")
    return "Medium"


@dataclass(frozen=True)
class RaceConfig:
    """Race parameters for one optimization run."""

    total_laps: int
    base_lap_time: float  # seconds
    fuel_load: float = 0.0  # kg at race start
    pit_stop_loss: float = 0.0  # seconds lost per stop
    degradation_level: DegradationLevel = "Medium"
    temperature: float = 25.0  # track temperature, deg C
    total_rainfall: float = 0.0  # mm over the whole race
    out_lap_penalty: Optional[float] = None  # seconds, None = optimizer default
    max_stint_lap: Optional[int] = None  # wear overage cutoff, None = optimizer default
    wear_reject_threshold: Optional[float] = None  # seconds, None = optimizer default

    def __post_init__(self) -> None:
        """Reject the clearly invalid cases; everything else is accepted as is."""
        if not isinstance(self.total_laps, int) or self.total_laps <= 0:
            raise InvalidConfig(f"total_laps must be a positive integer, got {self.total_laps!r}")
        if not self.base_lap_time > 0:
            raise InvalidConfig(f"base_lap_time must be positive, got {self.base_lap_time!r}")

    @property
    def avg_rainfall_per_lap(self) -> float:
        return self.total_rainfall / self.total_laps

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RaceConfig":
        """Build a RaceConfig from loosely typed request data.

        Accepts both camelCase keys (as sent by the web form) and snake_case
        keys. Missing or malformed optional values fall back to defaults and
        negative loads are clamped to zero. Only a non-positive lap count or
        base lap time raises InvalidConfig.
        """

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in payload and payload[key] not in (None, ""):
                    return payload[key]
            return None

        out_lap = pick("outLapPenalty", "out_lap_penalty")
        max_stint = pick("maxStintLap", "max_stint_lap")
        threshold = pick("degThreshold", "wear_reject_threshold")

        return cls(
            total_laps=to_int(pick("totalLaps", "total_laps"), 0),
            base_lap_time=to_number(pick("baseLapTime", "base_lap_time"), 0.0),
            fuel_load=max(0.0, to_number(pick("fuelLoad", "fuel_load"), 0.0)),
            pit_stop_loss=max(0.0, to_number(pick("pitStopLoss", "pit_stop_loss"), 0.0)),
            degradation_level=normalize_degradation_level(
                pick("degradation", "degradationLevel", "degradation_level")
            ),
            temperature=to_number(pick("temperature"), 25.0),
            total_rainfall=max(0.0, to_number(pick("totalRainfall", "total_rainfall"), 0.0)),
            out_lap_penalty=None if out_lap is None else max(0.0, to_number(out_lap, 0.0)),
            max_stint_lap=None if max_stint is None else to_int(max_stint, 35) or None,
            wear_reject_threshold=None if threshold is None else to_number(threshold, 8.0),
        )

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys used by the request layer."""
        data = {
            "totalLaps": self.total_laps,
            "baseLapTime": self.base_lap_time,
            "fuelLoad": self.fuel_load,
            "pitStopLoss": self.pit_stop_loss,
            "degradation": self.degradation_level,
            "temperature": self.temperature,
            "totalRainfall": self.total_rainfall,
        }
        if self.out_lap_penalty is not None:
            data["outLapPenalty"] = self.out_lap_penalty
        if self.max_stint_lap is not None:
            data["maxStintLap"] = self.max_stint_lap
        if self.wear_reject_threshold is not None:
            data["degThreshold"] = self.wear_reject_threshold
        return data


@dataclass
class OptimizerConfig:
    """Tunable settings for the lap-time model and the stint search."""

    # Fuel model
    fuel_per_kg_benefit: float = 0.005  # seconds gained per kg burned

    # Tyre model
    out_lap_penalty: float = 1.0  # seconds on the first lap after a stop
    max_stint_lap: int = 35  # overage term kicks in past this tyre age
    wear_reject_threshold: float = 8.0  # seconds of wear that invalidate a lap
    overage_base: float = 1.25  # growth per lap past max_stint_lap
    overage_scale: float = 5.0  # seconds at the first overage lap / overage_base

    # Environment factor
    degradation_multipliers: dict[str, float] = field(
        default_factory=lambda: {"Low": 0.9, "Medium": 1.0, "High": 1.25}
    )
    temperature_steps: tuple[tuple[float, float], ...] = (
        (30.0, 1.05),
        (35.0, 1.10),
        (40.0, 1.15),
    )
    env_factor_bounds: tuple[float, float] = (0.9, 1.5)

    # Compound class selection, mm of rain per lap
    dry_rain_limit: float = 0.5
    intermediate_rain_limit: float = 0.8
    full_wet_rain_limit: float = 3.5

    # Stint constraints
    min_stint_divisor: int = 10  # MIN_STINT = total_laps // divisor
    min_stint_laps: Optional[int] = None  # explicit MIN_STINT override

    # Search
    stop_counts: tuple[int, ...] = (1, 2, 3)
    fallback_candidate_limit: int = 50_000

    # Output settings
    output_dir: Path = field(default_factory=lambda: Path("outputs"))
    store_path: Path = field(default_factory=lambda: Path("data") / "saved_configs.db")
    plot_width: int = 1200
    plot_height: int = 600
    plot_theme: str = "plotly_dark"

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.output_dir = Path(self.output_dir)
        self.store_path = Path(self.store_path)

        if self.fuel_per_kg_benefit < 0:
            raise ValueError("fuel_per_kg_benefit cannot be negative")
        if self.max_stint_lap < 1:
            raise ValueError("max_stint_lap must be positive")
        if self.wear_reject_threshold <= 0:
            raise ValueError("wear_reject_threshold must be positive")
        if self.min_stint_divisor < 1:
            raise ValueError("min_stint_divisor must be positive")
        if self.min_stint_laps is not None and self.min_stint_laps < 1:
            raise ValueError("min_stint_laps must be positive")
        if not self.stop_counts or min(self.stop_counts) < 1:
            raise ValueError("stop_counts must contain positive stop counts")
        low, high = self.env_factor_bounds
        if low <= 0 or high < low:
            raise ValueError("env_factor_bounds must be an increasing positive pair")
        if not (self.dry_rain_limit <= self.intermediate_rain_limit <= self.full_wet_rain_limit):
            raise ValueError("rainfall limits must be non-decreasing")

        logger.debug("Optimizer configuration initialized")


DEFAULT_CONFIG = OptimizerConfig()
