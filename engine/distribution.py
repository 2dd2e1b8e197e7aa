"""
Empirical distribution helpers shared by the risk analyzer and the
Monte Carlo engine.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Sequence, Union

import numpy as np
from scipy import stats as sp_stats

from .results import NotApplicable, Stat


def quantile(values: Union[Sequence[float], np.ndarray], q: float) -> Stat:
    """
    Linear-interpolated empirical quantile.

    Sorts ascending, takes position (n - 1) * q and interpolates between the
    floor and ceiling order statistics (numpy's default 'linear' method).

    Args:
        values: Sample
        q: Probability in [0, 1]

    Returns:
        Quantile value, or NotApplicable for an empty sample
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return NotApplicable("empty sample")
    if not 0.0 <= q <= 1.0:
        raise ValueError(f"q must be in [0, 1], got {q}")
    return float(np.quantile(arr, q))


@dataclass(frozen=True)
class DistributionSummary:
    """Summary of one simulated quantity across all paths."""
    mean: float
    p05: float
    p50: float
    p95: float
    probability_profit: float   # Fraction of paths > 0 (meaningful for P&L)
    std_error: float            # Standard error of the mean

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def summarize_distribution(values: np.ndarray) -> DistributionSummary:
    """
    Mean, 5/50/95th percentiles and fraction of positive samples.

    The fraction positive is an empirical frequency over the simulated paths,
    not a probability estimate with a confidence interval.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise ValueError("Cannot summarize an empty sample")
    p05, p50, p95 = np.quantile(arr, [0.05, 0.50, 0.95])
    std_error = float(sp_stats.sem(arr)) if arr.size > 1 else 0.0
    return DistributionSummary(
        mean=float(np.mean(arr)),
        p05=float(p05),
        p50=float(p50),
        p95=float(p95),
        probability_profit=float(np.mean(arr > 0)),
        std_error=std_error,
    )
