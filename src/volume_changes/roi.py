"""
Region of interest domain model.

Defines the fixed set of ROIs whose volumes are tracked across treatment phases.
"""

from enum import Enum

PHASES = (1, 2, 3)


class ROI(Enum):
    """
    Enumeration of the regions of interest present in the volume table.
    The enum value is the ROI name used in input headers and in the output.
    """
    GTV = "GTV"
    GTV_N = "GTV_N"
    PTV_DP = "PTV_DP"

    @classmethod
    def from_label(cls, label: str) -> "ROI":
        """
        Convert a human-readable label into the corresponding enum.
        Normalizes spacing, dashes and casing ("gtv-n" -> GTV_N).
        """
        key = label.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown ROI label: {label!r}")

    def column_names(self) -> tuple[str, str, str]:
        """Input headers holding this ROI's volume for phase 1, 2 and 3."""
        return tuple(f"{self.value}_phase_{phase}" for phase in PHASES)
