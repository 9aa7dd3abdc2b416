# salestrend/trends.py
from __future__ import annotations
from typing import List, Sequence, Tuple

import numpy as np

from .domain import TrendPoint

MIN_POINTS_FOR_FIT = 3
MAX_DEGREE = 2
NEXT_LABEL = "Next"


def project_next(values: Sequence[float]) -> float:
    """
    Project the value of the period after the last one.

    - no points: 0
    - fewer than 3 points: the last value is carried forward
    - otherwise: least-squares polynomial of degree min(2, N-1) over x = 1..N,
      evaluated at x = N+1

    Projections are rounded to cents.
    """
    n = len(values)
    if n == 0:
        return 0.0
    if n < MIN_POINTS_FOR_FIT:
        return round(float(values[-1]), 2)

    x = np.arange(1, n + 1, dtype=float)
    y = np.asarray(values, dtype=float)
    degree = min(MAX_DEGREE, n - 1)
    coefficients = np.polyfit(x, y, degree)
    return round(float(np.polyval(coefficients, n + 1)), 2)


def build_trend(points: Sequence[Tuple[str, float]]) -> List[TrendPoint]:
    """Chronological (label, value) pairs plus a trailing projected "Next" point."""
    trend = [TrendPoint(label=label, value=float(value)) for label, value in points]
    projection = project_next([p.value for p in trend])
    trend.append(TrendPoint(label=NEXT_LABEL, value=projection, projected=True))
    return trend
