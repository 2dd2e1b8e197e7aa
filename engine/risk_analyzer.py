"""
Return-Risk Analyzer

Turns an ordered daily close series into a drawdown / volatility / tail
summary and the composite "pain score":

    depth  = |MaxDD| / depth_basis            (clamped to [0, 1])
    length = MaxDD duration / length_basis    (clamped to [0, 1])
    jitter = daily vol / jitter_basis         (clamped to [0, 1])
    pain   = round(100 * (w_d * depth + w_l * length + w_j * jitter))

Basis values and weights come from config.settings.PainScoreConfig.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from config.settings import PainScoreConfig
from .dates import parse_iso_date
from .distribution import quantile
from .errors import InsufficientDataError, InvalidNumericInputError
from .results import NotApplicable, Stat, format_stat, is_applicable, stat_or_none

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricePoint:
    """One daily close."""
    date: date
    close: float


@dataclass(frozen=True)
class WorstDay:
    """Entry in the ranked worst-days list."""
    rank: int
    date: date
    return_pct: float           # Daily return in percent (-3.2 = -3.2%)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rank': self.rank,
            'date': self.date.isoformat(),
            'return_pct': self.return_pct,
        }


@dataclass(frozen=True)
class PainBreakdown:
    """Normalised pain components, each in [0, 1]."""
    depth: float
    length: float
    jitter: float


@dataclass(frozen=True)
class RiskSummary:
    """Risk summary of a price series."""
    max_drawdown: float             # <= 0
    max_dd_duration: int            # Observations spent below the running peak
    max_lose_streak: int            # Longest run of strictly negative returns
    daily_vol: Stat                 # Sample stdev of daily returns
    worst10_avg: Stat               # Mean of the 10 worst returns
    worst_year_quantile: Stat       # 1/252 quantile of daily returns
    pain_score: int                 # 0-100
    pain_breakdown: PainBreakdown
    worst_days: List[WorstDay]

    # Supporting series
    dates: List[date] = field(repr=False)
    returns: np.ndarray = field(repr=False)         # len(prices) - 1
    equity: np.ndarray = field(repr=False)          # len(prices), starts at 1
    drawdown: np.ndarray = field(repr=False)        # len(prices), <= 0

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload; NotApplicable statistics become None."""
        return {
            'max_drawdown': self.max_drawdown,
            'max_dd_duration': self.max_dd_duration,
            'max_lose_streak': self.max_lose_streak,
            'daily_vol': stat_or_none(self.daily_vol),
            'worst10_avg': stat_or_none(self.worst10_avg),
            'worst_year_quantile': stat_or_none(self.worst_year_quantile),
            'pain_score': self.pain_score,
            'pain_breakdown': {
                'depth': self.pain_breakdown.depth,
                'length': self.pain_breakdown.length,
                'jitter': self.pain_breakdown.jitter,
            },
            'worst_days': [w.to_dict() for w in self.worst_days],
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Per-date chart series (equity and drawdown in percent)."""
        returns = np.concatenate([[np.nan], self.returns])
        return pd.DataFrame({
            'date': self.dates,
            'return': returns,
            'equity': self.equity,
            'drawdown_pct': self.drawdown * 100.0,
        })

    def summary(self) -> str:
        """Formatted text report."""
        pct = "{:.2%}"
        lines = [
            "Return Risk Report",
            "=" * 50,
            f"Observations:          {len(self.dates)}",
            f"Pain Score:            {self.pain_score}/100",
            f"  depth / length / jitter: {self.pain_breakdown.depth:.3f} / "
            f"{self.pain_breakdown.length:.3f} / {self.pain_breakdown.jitter:.3f}",
            "",
            f"Max Drawdown:          {self.max_drawdown:.2%}",
            f"Max DD Duration:       {self.max_dd_duration} days",
            f"Max Losing Streak:     {self.max_lose_streak} days",
            f"Daily Volatility:      {format_stat(self.daily_vol, pct)}",
            f"Worst 10 Days Avg:     {format_stat(self.worst10_avg, pct)}",
            f"Year-level Worst Day:  {format_stat(self.worst_year_quantile, pct)}",
            "",
            "--- Worst Days ---",
        ]
        for w in self.worst_days:
            lines.append(f"{w.rank:>3}. {w.date.isoformat()}  {w.return_pct:+.2f}%")
        return "\n".join(lines)


def _clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, x))


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


PriceInput = Union[pd.DataFrame, Sequence[Union[PricePoint, Mapping[str, Any]]]]


def coerce_price_points(prices: PriceInput) -> List[PricePoint]:
    """
    Normalise caller input into PricePoints without re-ordering.

    Accepts PricePoint objects, {date, close} mappings, or a DataFrame with
    'date' and 'close' columns.

    Raises:
        InsufficientDataError: fewer than 2 points
        InvalidNumericInputError: non-finite or non-positive close
        InvalidDateError: malformed date
    """
    if isinstance(prices, pd.DataFrame):
        missing = [c for c in ('date', 'close') if c not in prices.columns]
        if missing:
            raise InvalidNumericInputError(
                f"price frame is missing columns: {missing}", field="prices"
            )
        rows = prices[['date', 'close']].to_dict('records')
    else:
        rows = list(prices) if prices is not None else []

    if len(rows) < 2:
        raise InsufficientDataError(
            f"Need at least 2 price points, got {len(rows)}", field="prices"
        )

    points = []
    for i, row in enumerate(rows):
        if isinstance(row, PricePoint):
            raw_date, raw_close = row.date, row.close
        else:
            raw_date, raw_close = row['date'], row['close']
        try:
            close = float(raw_close)
        except (TypeError, ValueError):
            raise InvalidNumericInputError(
                f"close at index {i} is not numeric: {raw_close!r}", field="close"
            )
        if not math.isfinite(close) or close <= 0:
            raise InvalidNumericInputError(
                f"close at index {i} must be positive and finite, got {close}", field="close"
            )
        points.append(PricePoint(date=parse_iso_date(raw_date, field="date"), close=close))

    return points


class ReturnSeriesAnalyzer:
    """
    Risk analytics for a single ascending price series.

    The analyzer is stateless apart from its pain-score configuration; each
    call to analyze() builds a fresh RiskSummary.
    """

    def __init__(self, config: Optional[PainScoreConfig] = None):
        self.config = config or PainScoreConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid pain score config: {errors}")

    def analyze(self, prices: PriceInput) -> RiskSummary:
        """
        Compute the risk summary.

        Args:
            prices: Ascending price points (>= 2). Not re-sorted.

        Returns:
            RiskSummary
        """
        points = coerce_price_points(prices)
        cfg = self.config

        closes = np.array([p.close for p in points], dtype=float)
        dates = [p.date for p in points]
        returns = closes[1:] / closes[:-1] - 1.0

        equity = np.empty(len(closes))
        equity[0] = 1.0
        for i, r in enumerate(returns, start=1):
            equity[i] = equity[i - 1] * (1.0 + r)

        # Drawdown and duration in one forward pass
        drawdown = np.empty(len(equity))
        peak = equity[0]
        duration = 0
        max_duration = 0
        for i, e in enumerate(equity):
            if e >= peak:
                peak = e
                duration = 0
            else:
                duration += 1
                max_duration = max(max_duration, duration)
            drawdown[i] = e / peak - 1.0
        max_dd = float(min(0.0, drawdown.min()))

        # Longest losing streak
        streak = 0
        max_streak = 0
        for r in returns:
            if r < 0:
                streak += 1
                max_streak = max(max_streak, streak)
            else:
                streak = 0

        n = len(returns)
        if n >= 2:
            daily_vol: Stat = float(np.std(returns, ddof=1))
        else:
            daily_vol = NotApplicable("volatility needs at least 2 returns")

        worst10_avg = worst_n_average(returns, cfg.worst_n)

        if n >= cfg.year_quantile_min_returns:
            worst_year: Stat = quantile(returns, 1.0 / 252.0)
        else:
            worst_year = NotApplicable(
                f"needs at least {cfg.year_quantile_min_returns} returns"
            )

        ranked = sorted(zip(dates[1:], returns), key=lambda item: item[1])
        worst_days = [
            WorstDay(rank=k + 1, date=d, return_pct=float(r) * 100.0)
            for k, (d, r) in enumerate(ranked[:min(cfg.worst_n, n)])
        ]

        breakdown = self.pain_breakdown(max_dd, max_duration, daily_vol)
        pain = self.pain_score(breakdown)

        logger.debug(
            f"Analyzed {len(points)} points: maxDD={max_dd:.4f}, "
            f"duration={max_duration}, pain={pain}"
        )

        return RiskSummary(
            max_drawdown=max_dd,
            max_dd_duration=max_duration,
            max_lose_streak=max_streak,
            daily_vol=daily_vol,
            worst10_avg=worst10_avg,
            worst_year_quantile=worst_year,
            pain_score=pain,
            pain_breakdown=breakdown,
            worst_days=worst_days,
            dates=dates,
            returns=returns,
            equity=equity,
            drawdown=drawdown,
        )

    def pain_breakdown(self, max_dd: float, max_dd_duration: int, daily_vol: Stat) -> PainBreakdown:
        """Normalise depth, length and jitter into [0, 1]."""
        cfg = self.config
        depth = _clamp(abs(max_dd) / cfg.depth_basis)
        length = _clamp(max_dd_duration / cfg.length_basis_days)
        # Undefined volatility contributes no jitter
        if is_applicable(daily_vol):
            jitter = _clamp(daily_vol / cfg.jitter_basis)
        else:
            jitter = 0.0
        return PainBreakdown(depth=depth, length=length, jitter=jitter)

    def pain_score(self, breakdown: PainBreakdown) -> int:
        """Weighted 0-100 composite, rounded half up."""
        cfg = self.config
        raw = 100.0 * (
            cfg.depth_weight * breakdown.depth
            + cfg.length_weight * breakdown.length
            + cfg.jitter_weight * breakdown.jitter
        )
        return int(_clamp(_round_half_up(raw), 0, 100))


def analyze(prices: PriceInput, config: Optional[PainScoreConfig] = None) -> RiskSummary:
    """Convenience wrapper around ReturnSeriesAnalyzer.analyze()."""
    return ReturnSeriesAnalyzer(config).analyze(prices)


def worst_n_average(returns: Sequence[float], n: int = 10) -> Stat:
    """Mean of the n smallest returns, NotApplicable if fewer than n exist."""
    arr = np.asarray(returns, dtype=float)
    if arr.size < n:
        return NotApplicable(f"needs at least {n} returns")
    return float(np.mean(np.sort(arr)[:n]))
