"""
Exception types raised while reading volumes and deriving phase statistics.
"""


class VolumeChangesError(Exception):
    """Base class for every failure the CLI reports and exits on."""


class ParseError(VolumeChangesError, ValueError):
    """The input table is unreadable, malformed or holds a non-numeric volume."""


class LengthMismatch(VolumeChangesError, ValueError):
    """Two volume sequences that must be paired have different lengths."""

    def __init__(self, first: int, second: int):
        super().__init__(
            f"Expected the same number of entries in v1 [{first}] and v2 [{second}]."
        )
        self.first = first
        self.second = second


class InsufficientData(VolumeChangesError, ArithmeticError):
    """Fewer than two valid pairs remain for a phase transition (strict mode only)."""

    def __init__(self, n: int, context: str = ""):
        where = f" for {context}" if context else ""
        super().__init__(
            f"Need at least 2 valid volume pairs{where}, found {n}."
        )
        self.n = n
