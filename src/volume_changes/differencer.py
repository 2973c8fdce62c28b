"""
Pairwise difference statistics between two volume sequences.

The differencer pairs two equally long sequences of optional volumes by
position, keeps the pairs where both values are usable, and reports the
average and sample standard deviation of `v1 - v2`.

Missing entries (None) and NaN are handled identically: either one removes
the pair. With fewer than two retained pairs the statistics are undefined:
by default they come back as NaN, with `strict=True` an InsufficientData
error is raised instead.
"""

from __future__ import annotations

import logging
import typing
from collections import namedtuple

import pandas as pd

from .errors import InsufficientData, LengthMismatch

DifferenceSummary = namedtuple("DifferenceSummary", ["average", "std_dev", "n"])


def pairwise_difference(
    v1: typing.Sequence[typing.Optional[float]],
    v2: typing.Sequence[typing.Optional[float]],
    strict: bool = False,
) -> DifferenceSummary:
    """
    Compute the average and standard deviation of the difference v1 - v2.

    Both sequences must have the same length, otherwise LengthMismatch is raised
    before anything else is looked at. Returns (average, std_dev, n) where `n` is
    the number of pairs that actually contributed.
    """
    if len(v1) != len(v2):
        raise LengthMismatch(len(v1), len(v2))

    # None becomes NaN, so a single dropna() removes missing and invalid pairs alike
    first = pd.Series(v1, dtype="float64")
    second = pd.Series(v2, dtype="float64")
    differences = (first - second).dropna()

    n = len(differences)
    if n != len(v1):
        logging.debug(f"Retained {n} of {len(v1)} volume pairs")
        logging.debug(f"Differences: {differences.tolist()}")

    if strict and n < 2:
        raise InsufficientData(n)

    # Series.std uses ddof=1 (Bessel's correction) and yields NaN below two values
    average = float(differences.mean()) if n else float("nan")
    std_dev = float(differences.std(ddof=1)) if n > 1 else float("nan")
    return DifferenceSummary(average=average, std_dev=std_dev, n=n)
