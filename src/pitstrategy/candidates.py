"""Candidate strategy enumeration for the pit strategy optimizer.

Author: João Pedro Cunha
"""

import itertools
import logging
from typing import Iterator, Sequence

from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig
from pitstrategy.simulator import Stint

logger = logging.getLogger(__name__)


def min_stint_length(total_laps: int, config: OptimizerConfig = DEFAULT_CONFIG) -> int:
    """Shortest allowed stint (MIN_STINT) for a race of ``total_laps``."""
    if config.min_stint_laps is not None:
        return config.min_stint_laps
    return max(1, total_laps // config.min_stint_divisor)


def iter_pit_windows(
    total_laps: int,
    min_stint: int,
    max_stint: int,
    stop_count: int,
) -> Iterator[tuple[int, ...]]:
    """Yield strictly increasing pit-lap tuples in lexicographic order.

    Every stint length lies in [min_stint, max_stint]; nobody pits on lap 1
    or on the final lap.
    """
    if stop_count < 0 or min_stint > max_stint:
        return

    def extend(prev_pit: int, stops_left: int) -> Iterator[tuple[int, ...]]:
        if stops_left == 0:
            if min_stint <= total_laps - prev_pit <= max_stint:
                yield ()
            return

        lo = max(prev_pit + min_stint, total_laps - stops_left * max_stint, 2)
        hi = min(prev_pit + max_stint, total_laps - stops_left * min_stint, total_laps - 1)
        for pit in range(lo, hi + 1):
            for rest in extend(pit, stops_left - 1):
                yield (pit,) + rest

    yield from extend(0, stop_count)


def generate_pit_windows(
    total_laps: int,
    min_stint: int,
    max_stint: int,
    stop_count: int,
) -> list[tuple[int, ...]]:
    """All valid pit-lap tuples for ``stop_count`` stops."""
    windows = list(iter_pit_windows(total_laps, min_stint, max_stint, stop_count))
    logger.debug(
        f"{len(windows)} pit windows for {stop_count} stop(s) over {total_laps} laps "
        f"(stint {min_stint}-{max_stint})"
    )
    return windows


def generate_compound_assignments(
    stint_count: int,
    allowed_compounds: Sequence[str],
    require_two_distinct: bool,
) -> list[tuple[str, ...]]:
    """Ordered compound sequences of length ``stint_count``.

    Single-compound sequences are dropped when two distinct compounds are
    required.
    """
    assignments = []
    for combo in itertools.product(allowed_compounds, repeat=stint_count):
        if require_two_distinct and len(set(combo)) < 2:
            continue
        assignments.append(combo)
    return assignments


def stints_from_pit_laps(
    total_laps: int,
    pit_laps: Sequence[int],
    compounds: Sequence[str],
) -> list[Stint]:
    """Turn pit laps plus compounds into contiguous stints.

    A pit on lap p ends the stint at p; the next stint starts on p + 1.
    """
    if len(compounds) != len(pit_laps) + 1:
        raise ValueError(
            f"{len(pit_laps)} pit stop(s) need {len(pit_laps) + 1} compounds, got {len(compounds)}"
        )

    stints = []
    start = 1
    for pit, compound in zip(pit_laps, compounds):
        stints.append(Stint(compound, start, pit))
        start = pit + 1
    stints.append(Stint(compounds[-1], start, total_laps))
    return stints
