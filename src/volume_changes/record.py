"""
Input record domain model.

Defines the InputRecord class holding one patient's row of the volume table.
"""

import math
from dataclasses import dataclass, fields
from typing import Optional

from .roi import ROI


@dataclass(frozen=True)
class InputRecord:
    """
    Represents the per-phase volumes measured for one patient.

    Attributes:
        patient_id: Patient identifier as written in the `Patient ID` column.
        gtv_phase_1 … ptv_dp_phase_3: Volume of the ROI at the given phase,
            or None when the measurement is missing.
    """

    patient_id: str
    gtv_phase_1: Optional[float] = None
    gtv_phase_2: Optional[float] = None
    gtv_phase_3: Optional[float] = None
    gtv_n_phase_1: Optional[float] = None
    gtv_n_phase_2: Optional[float] = None
    gtv_n_phase_3: Optional[float] = None
    ptv_dp_phase_1: Optional[float] = None
    ptv_dp_phase_2: Optional[float] = None
    ptv_dp_phase_3: Optional[float] = None

    def __post_init__(self):
        # Validate patient ID
        if not isinstance(self.patient_id, str):
            raise ValueError(
                f"patient_id must be a string, got {type(self.patient_id).__name__}"
            )

        # Validate volumes: None or a real number (bool is rejected)
        for field in fields(self)[1:]:
            value = getattr(self, field.name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(
                    f"{field.name} must be a number or None, got {value!r}"
                )

    def volumes_for(self, roi: ROI) -> tuple[Optional[float], Optional[float], Optional[float]]:
        """Return the phase 1, 2 and 3 volumes of `roi` for this patient."""
        prefix = roi.value.lower()
        return (
            getattr(self, f"{prefix}_phase_1"),
            getattr(self, f"{prefix}_phase_2"),
            getattr(self, f"{prefix}_phase_3"),
        )

    def missing_phases(self, roi: ROI) -> list[int]:
        """Phases of `roi` with no usable volume (absent or NaN)."""
        return [
            phase
            for phase, value in enumerate(self.volumes_for(roi), start=1)
            if value is None or math.isnan(value)
        ]
