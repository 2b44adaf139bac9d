"""Descriptive statistics computed once over a finite sample."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np


@dataclass(frozen=True)
class StatisticSummary:
    """Batch summary of a numeric sample.

    ``min`` and ``max`` pick the element with the smallest/largest absolute
    value, so for a sample mixing signs they are magnitude extrema rather than
    signed ones. Both notions agree on non-negative samples (lengths, gaps,
    durations), which is all the flow modules ever feed in.

    Every field but ``count`` and ``sum`` is ``None`` for an empty sample.
    """

    count: int = 0
    sum: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    variance: Optional[float] = None
    standard_deviation: Optional[float] = None

    @classmethod
    def of(cls, values: Iterable[float]) -> "StatisticSummary":
        data = np.fromiter(values, dtype=float)
        if data.size == 0:
            return cls()

        magnitudes = np.abs(data)
        # ties: min keeps the first element, max the last one
        min_index = int(np.argmin(magnitudes))
        max_index = data.size - 1 - int(np.argmax(magnitudes[::-1]))

        total = float(data.sum())
        mean = total / data.size
        # population variance
        variance = float(np.mean(np.square(data - mean)))
        return cls(
            count=int(data.size),
            sum=total,
            min=float(data[min_index]),
            max=float(data[max_index]),
            mean=mean,
            variance=variance,
            standard_deviation=float(np.sqrt(variance)),
        )

    @property
    def is_empty(self) -> bool:
        return self.count == 0


__all__ = ["StatisticSummary"]
