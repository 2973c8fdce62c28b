"""
Phase transition statistics per ROI.

For each ROI accumulator two records are derived, phase 1 -> 2 and phase 2 -> 3,
and the whole collection is sorted on (ROI name, phase start, phase end).
"""

from __future__ import annotations

import logging
import math
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field

import pandas as pd

from .accumulator import ROIAccumulator
from .differencer import pairwise_difference
from .errors import InsufficientData

# Transitions derived for every ROI
TRANSITIONS = ((1, 2), (2, 3))

# Output keys, in serialization order
STAT_KEYS = {
    "roi_name": "ROI",
    "avg_vol_phase_start": "Volume Phase start",
    "phase_start": "Phase start",
    "phase_end": "Phase end",
    "avg": "average",
    "std_dev": "std_dev",
    "n": "n",
}


@dataclass(frozen=True, eq=False)
class PhaseTransitionStat:
    """
    Volume change statistics of one ROI between two phases.

    Attributes:
        roi_name: Name of the ROI.
        phase_start: Phase at which the initial volumes were acquired.
        phase_end: Phase at which the final volumes were acquired.
        avg_vol_phase_start: Average volume at `phase_start` over all stored patients.
        avg: Average volume difference (start minus end).
        std_dev: Sample standard deviation of the volume differences.
        n: Number of patients the difference statistics were computed from.

    Equality, hashing and ordering only look at (roi_name, phase_start, phase_end).
    """

    roi_name: str
    phase_start: int
    phase_end: int
    avg_vol_phase_start: float = field(default=float("nan"))
    avg: float = field(default=float("nan"))
    std_dev: float = field(default=float("nan"))
    n: int = 0

    @property
    def identity(self) -> tuple[str, int, int]:
        return self.roi_name, self.phase_start, self.phase_end

    def __eq__(self, other):
        if not isinstance(other, PhaseTransitionStat):
            return NotImplemented
        return self.identity == other.identity

    def __lt__(self, other):
        if not isinstance(other, PhaseTransitionStat):
            return NotImplemented
        return self.identity < other.identity

    def __hash__(self):
        return hash(self.identity)

    def as_dict(self) -> dict[str, typing.Any]:
        """Serializable mapping using the output keys; non-finite numbers become None."""
        return {
            "ROI": self.roi_name,
            "Volume Phase start": _finite_or_none(self.avg_vol_phase_start),
            "Phase start": self.phase_start,
            "Phase end": self.phase_end,
            "average": _finite_or_none(self.avg),
            "std_dev": _finite_or_none(self.std_dev),
            "n": self.n,
        }

    @classmethod
    def from_dict(cls, payload: typing.Mapping[str, typing.Any]) -> "PhaseTransitionStat":
        """Inverse of `as_dict`; None numbers are read back as NaN."""
        missing = sorted(set(STAT_KEYS.values()) - set(payload))
        if missing:
            raise ValueError(f"Statistics record missing keys: {missing}")
        return cls(
            roi_name=str(payload["ROI"]),
            phase_start=int(payload["Phase start"]),
            phase_end=int(payload["Phase end"]),
            avg_vol_phase_start=_none_to_nan(payload["Volume Phase start"]),
            avg=_none_to_nan(payload["average"]),
            std_dev=_none_to_nan(payload["std_dev"]),
            n=int(payload["n"]),
        )


def _finite_or_none(value: float) -> typing.Optional[float]:
    return value if math.isfinite(value) else None


def _none_to_nan(value: typing.Optional[float]) -> float:
    return float("nan") if value is None else float(value)


def stat_sort_key(stat: PhaseTransitionStat) -> tuple[str, int, int]:
    """Sort key of a statistics record: its identity tuple only."""
    return stat.identity


def transition_stat(
    accumulator: ROIAccumulator, phase_start: int, phase_end: int, strict: bool = False
) -> PhaseTransitionStat:
    """
    Derive the statistics of `accumulator` between two phases.

    The start-phase average uses every stored volume; the difference statistics
    come from the pairwise differencer on (start phase, end phase).
    """
    start_volumes = accumulator.phase(phase_start)
    end_volumes = accumulator.phase(phase_end)

    # mean of an empty Series is NaN
    avg_vol = float(pd.Series(start_volumes, dtype="float64").mean())

    try:
        average, std_dev, n = pairwise_difference(start_volumes, end_volumes, strict=strict)
    except InsufficientData as e:
        raise InsufficientData(
            e.n, f"{accumulator.name} phase {phase_start} -> {phase_end}"
        ) from e

    return PhaseTransitionStat(
        roi_name=accumulator.name,
        phase_start=phase_start,
        phase_end=phase_end,
        avg_vol_phase_start=avg_vol,
        avg=average,
        std_dev=std_dev,
        n=n,
    )


def dataset_to_stats(
    accumulators: typing.Iterable[ROIAccumulator], strict: bool = False
) -> list[PhaseTransitionStat]:
    """
    Derive the 1 -> 2 and 2 -> 3 statistics of every accumulator, sorted by identity.
    Accepts the accumulators themselves or a mapping of ROI to accumulator.
    Any failure aborts the whole aggregation.
    """
    if isinstance(accumulators, Mapping):
        accumulators = accumulators.values()

    stats: list[PhaseTransitionStat] = []
    for accumulator in accumulators:
        for phase_start, phase_end in TRANSITIONS:
            stat = transition_stat(accumulator, phase_start, phase_end, strict=strict)
            logging.debug(
                f"{stat.roi_name} {phase_start}->{phase_end}: n={stat.n}, "
                f"average={stat.avg}, std_dev={stat.std_dev}"
            )
            stats.append(stat)
    return sorted(stats, key=stat_sort_key)
