"""
Per-ROI volume accumulator.

Collects the phase 1, 2 and 3 volumes of one ROI over all patients. The three
phase sequences always have the same length: a patient is appended to all of
them or to none.
"""

import math
import typing

from .roi import ROI

OptionalVolume = typing.Optional[float]


def _usable(value: OptionalVolume) -> bool:
    return value is not None and not math.isnan(value)


class ROIAccumulator:
    """Volumes of one ROI, one entry per admitted patient, per phase."""

    def __init__(self, roi: ROI):
        self.roi = roi
        self._phases: tuple[list[OptionalVolume], ...] = ([], [], [])

    @property
    def name(self) -> str:
        return self.roi.value

    def add(self, v1: OptionalVolume, v2: OptionalVolume, v3: OptionalVolume) -> bool:
        """
        Add the volumes of one patient.

        The triple is discarded when any value is None or NaN. Returns True if
        the volumes were stored.
        """
        if not (_usable(v1) and _usable(v2) and _usable(v3)):
            return False
        for sequence, value in zip(self._phases, (v1, v2, v3)):
            sequence.append(float(value))
        return True

    def clear(self) -> None:
        """Drop every stored volume."""
        for sequence in self._phases:
            sequence.clear()

    def phase(self, index: int) -> list[OptionalVolume]:
        """Copy of the stored volumes for phase `index` (1, 2 or 3)."""
        if index not in (1, 2, 3):
            raise ValueError(f"Phase must be 1, 2 or 3, got {index!r}")
        return list(self._phases[index - 1])

    def __len__(self) -> int:
        return len(self._phases[0])

    def __repr__(self) -> str:
        return f"ROIAccumulator({self.name!r}, entries={len(self)})"
