"""
Tests for the return-risk analyzer and shared quantile helper.
"""

from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest

from config.settings import PainScoreConfig
from engine.distribution import quantile
from engine.errors import InsufficientDataError, InvalidDateError, InvalidNumericInputError
from engine.results import NotApplicable, is_applicable
from engine.risk_analyzer import (
    PricePoint,
    ReturnSeriesAnalyzer,
    analyze,
    coerce_price_points,
    worst_n_average,
)


# ─────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────

def make_points(closes, start=date(2024, 1, 1)):
    return [
        {'date': (start + timedelta(days=i)).isoformat(), 'close': c}
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def worked_example():
    return make_points([100, 90, 99, 108])


@pytest.fixture
def long_series():
    """~3 years of synthetic closes."""
    rng = np.random.default_rng(42)
    returns = rng.normal(0.0003, 0.012, size=800)
    closes = 100 * np.cumprod(1 + returns)
    return make_points(np.concatenate([[100.0], closes]).tolist())


# ─────────────────────────────────────────────────────────────────────
# Worked example
# ─────────────────────────────────────────────────────────────────────

class TestWorkedExample:
    """prices [100, 90, 99, 108]"""

    def test_returns(self, worked_example):
        s = analyze(worked_example)
        np.testing.assert_allclose(s.returns, [-0.10, 0.10, 108 / 99 - 1])

    def test_equity(self, worked_example):
        s = analyze(worked_example)
        np.testing.assert_allclose(s.equity, [1.0, 0.9, 0.99, 1.08])

    def test_drawdown(self, worked_example):
        s = analyze(worked_example)
        np.testing.assert_allclose(s.drawdown, [0.0, -0.10, -0.01, 0.0], atol=1e-12)
        assert s.max_drawdown == pytest.approx(-0.10)

    def test_duration_and_streak(self, worked_example):
        s = analyze(worked_example)
        assert s.max_dd_duration == 2
        assert s.max_lose_streak == 1

    def test_small_sample_stats(self, worked_example):
        s = analyze(worked_example)
        assert is_applicable(s.daily_vol)
        assert s.daily_vol == pytest.approx(np.std(s.returns, ddof=1))
        assert isinstance(s.worst10_avg, NotApplicable)
        assert isinstance(s.worst_year_quantile, NotApplicable)

    def test_pain_score(self, worked_example):
        s = analyze(worked_example)
        assert s.pain_breakdown.depth == pytest.approx(0.10 / 0.60)
        assert s.pain_breakdown.length == pytest.approx(2 / 252)
        assert s.pain_breakdown.jitter == 1.0
        assert s.pain_score == 24

    def test_worst_days(self, worked_example):
        s = analyze(worked_example)
        assert [w.rank for w in s.worst_days] == [1, 2, 3]
        assert s.worst_days[0].date == date(2024, 1, 2)
        assert s.worst_days[0].return_pct == pytest.approx(-10.0)
        assert s.worst_days[1].date == date(2024, 1, 4)


# ─────────────────────────────────────────────────────────────────────
# Properties
# ─────────────────────────────────────────────────────────────────────

class TestSeriesProperties:

    def test_equity_recurrence(self, long_series):
        s = analyze(long_series)
        assert len(s.equity) == len(long_series)
        assert len(s.returns) == len(long_series) - 1
        assert s.equity[0] == 1.0
        np.testing.assert_allclose(s.equity[1:], s.equity[:-1] * (1 + s.returns))

    def test_drawdown_non_positive(self, long_series):
        s = analyze(long_series)
        assert len(s.drawdown) == len(long_series)
        assert np.all(s.drawdown <= 0)
        assert s.max_drawdown == pytest.approx(s.drawdown.min())

    def test_pain_score_range(self, long_series):
        s = analyze(long_series)
        assert isinstance(s.pain_score, int)
        assert 0 <= s.pain_score <= 100
        for v in (s.pain_breakdown.depth, s.pain_breakdown.length, s.pain_breakdown.jitter):
            assert 0.0 <= v <= 1.0

    def test_worst10_average(self, long_series):
        s = analyze(long_series)
        assert s.worst10_avg == pytest.approx(np.mean(np.sort(s.returns)[:10]))
        assert len(s.worst_days) == 10
        assert s.worst_days[0].return_pct == pytest.approx(s.returns.min() * 100)

    def test_year_quantile(self, long_series):
        s = analyze(long_series)
        assert s.worst_year_quantile == pytest.approx(np.quantile(s.returns, 1 / 252))

    def test_year_quantile_needs_252_returns(self):
        closes = 100 * np.cumprod(np.full(251, 1.001))
        s = analyze(make_points([100.0] + closes.tolist()))
        assert len(s.returns) == 251
        assert isinstance(s.worst_year_quantile, NotApplicable)

    def test_monotonic_rise_has_no_pain_from_depth(self):
        s = analyze(make_points([100, 101, 102, 103, 104]))
        assert s.max_drawdown == 0.0
        assert s.max_dd_duration == 0
        assert s.max_lose_streak == 0
        assert s.pain_breakdown.depth == 0.0

    def test_losing_streak(self):
        s = analyze(make_points([100, 99, 98, 97, 98, 97]))
        assert s.max_lose_streak == 3

    def test_flat_day_breaks_streak(self):
        s = analyze(make_points([100, 99, 99, 98]))
        assert s.max_lose_streak == 1

    def test_deep_long_drawdown_scores_high(self):
        closes = np.linspace(100, 30, 320)
        s = analyze(make_points(closes.tolist()))
        assert s.pain_breakdown.depth == 1.0
        assert s.pain_breakdown.length == 1.0
        assert s.pain_score >= 85

    def test_two_points_vol_not_applicable(self):
        """One return: volatility undefined, jitter contributes zero."""
        s = analyze(make_points([100, 70]))
        assert isinstance(s.daily_vol, NotApplicable)
        assert s.pain_breakdown.jitter == 0.0
        assert s.pain_score == round(100 * 0.55 * 0.5 + 100 * 0.30 / 252)

    def test_input_not_resorted(self):
        pts = make_points([100, 110])
        pts.reverse()
        s = analyze(pts)
        assert s.dates[0] == date(2024, 1, 2)
        assert s.returns[0] == pytest.approx(100 / 110 - 1)


class TestInputs:

    def test_insufficient_data(self):
        with pytest.raises(InsufficientDataError):
            analyze(make_points([100]))
        with pytest.raises(InsufficientDataError):
            analyze([])

    def test_non_positive_close(self):
        with pytest.raises(InvalidNumericInputError):
            analyze(make_points([100, 0, 90]))

    def test_nan_close(self):
        with pytest.raises(InvalidNumericInputError):
            analyze(make_points([100, float('nan'), 90]))

    def test_bad_date(self):
        with pytest.raises(InvalidDateError):
            analyze([{'date': '2024-13-01', 'close': 1.0}, {'date': '2024-01-02', 'close': 2.0}])

    def test_dataframe_input(self):
        df = pd.DataFrame({
            'date': pd.to_datetime(['2024-01-01', '2024-01-02', '2024-01-03']),
            'close': [100.0, 90.0, 99.0],
        })
        s = analyze(df)
        assert s.dates == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert s.max_drawdown == pytest.approx(-0.10)

    def test_price_point_input(self):
        pts = [PricePoint(date(2024, 1, 1), 10.0), PricePoint(date(2024, 1, 2), 11.0)]
        assert coerce_price_points(pts) == pts


class TestPainConfig:

    def test_custom_basis_raises_score(self):
        pts = make_points([100, 90, 99, 108])
        default = ReturnSeriesAnalyzer().analyze(pts)
        harsh = ReturnSeriesAnalyzer(PainScoreConfig(depth_basis=0.05)).analyze(pts)
        assert harsh.pain_breakdown.depth == 1.0
        assert harsh.pain_score > default.pain_score

    def test_invalid_weights_rejected(self):
        with pytest.raises(ValueError):
            ReturnSeriesAnalyzer(PainScoreConfig(depth_weight=0.9))


class TestReporting:

    def test_to_dict_uses_none_for_not_applicable(self, worked_example):
        d = analyze(worked_example).to_dict()
        assert d['worst10_avg'] is None
        assert d['worst_year_quantile'] is None
        assert d['pain_score'] == 24
        assert d['worst_days'][0]['date'] == '2024-01-02'

    def test_summary_shows_na(self, worked_example):
        text = analyze(worked_example).summary()
        assert "N/A" in text
        assert "24/100" in text

    def test_to_dataframe(self, worked_example):
        df = analyze(worked_example).to_dataframe()
        assert list(df.columns) == ['date', 'return', 'equity', 'drawdown_pct']
        assert len(df) == 4
        assert np.isnan(df['return'].iloc[0])
        assert df['drawdown_pct'].iloc[1] == pytest.approx(-10.0)


class TestQuantile:

    def test_median_odd(self):
        assert quantile([3, 1, 2], 0.5) == 2

    def test_median_even(self):
        assert quantile([4, 1, 3, 2], 0.5) == 2.5

    def test_interpolation(self):
        assert quantile([0, 10], 0.25) == pytest.approx(2.5)

    def test_monotonic_in_q(self):
        arr = np.random.default_rng(0).normal(size=37)
        qs = np.linspace(0, 1, 51)
        values = [quantile(arr, q) for q in qs]
        assert all(a <= b for a, b in zip(values, values[1:]))

    def test_extremes(self):
        arr = [5, -2, 9]
        assert quantile(arr, 0) == -2
        assert quantile(arr, 1) == 9

    def test_empty_is_not_applicable(self):
        assert isinstance(quantile([], 0.5), NotApplicable)

    def test_worst_n_average(self):
        assert isinstance(worst_n_average([0.1] * 9, 10), NotApplicable)
        assert worst_n_average(list(range(12)), 10) == pytest.approx(4.5)
