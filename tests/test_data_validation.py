"""
Tests for data validation module.
"""

from datetime import date

import pytest
import pandas as pd
import numpy as np

from engine.risk_analyzer import PricePoint, analyze
from utils.data_validation import (
    validate_and_normalize_iv,
    validate_price_points,
    ValidationSeverity
)


class TestIVValidation:
    """Tests for IV validation and normalization."""

    def test_normal_iv(self):
        """Normal IV values should pass through unchanged."""
        iv, warning = validate_and_normalize_iv(0.25)
        assert iv == 0.25
        assert warning is None

    def test_negative_iv(self):
        """Negative IV should return None."""
        iv, warning = validate_and_normalize_iv(-0.25)
        assert iv is None
        assert "negative" in warning

    def test_nan_iv(self):
        iv, warning = validate_and_normalize_iv(float('nan'))
        assert iv is None
        assert "missing" in warning

    def test_none_iv(self):
        iv, warning = validate_and_normalize_iv(None)
        assert iv is None

    def test_percentage_format_iv(self):
        """IV in percentage format (>10) should be normalized."""
        iv, warning = validate_and_normalize_iv(25.0)
        assert iv == pytest.approx(0.25)
        assert "percentage" in warning

    def test_high_iv_warning(self):
        iv, warning = validate_and_normalize_iv(3.5)
        assert iv == 3.5
        assert "high" in warning

    def test_zero_iv_kept_with_warning(self):
        """Zero IV is passed on; the scenario pricer declines to price it."""
        iv, warning = validate_and_normalize_iv(0.0)
        assert iv == 0.0
        assert "zero" in warning


class TestPricePointValidation:

    @pytest.fixture
    def clean_df(self):
        return pd.DataFrame({
            'date': ['2024-01-02', '2024-01-03', '2024-01-04', '2024-01-05'],
            'close': [100.0, 101.5, 99.0, 102.0],
        })

    def test_clean_data(self, clean_df):
        result = validate_price_points(clean_df)
        assert result.is_valid
        assert len(result.valid_df) == 4
        assert result.valid_df['date'].iloc[0] == date(2024, 1, 2)
        assert result.issues == []

    def test_missing_columns(self):
        result = validate_price_points(pd.DataFrame({'date': ['2024-01-02'], 'price': [1.0]}))
        assert not result.is_valid
        assert result.error_count == 1
        assert "close" in result.issues[0].message

    def test_empty(self):
        result = validate_price_points(pd.DataFrame())
        assert not result.is_valid

    def test_bad_rows_removed(self, clean_df):
        clean_df.loc[1, 'close'] = np.nan
        clean_df.loc[2, 'close'] = -5.0
        clean_df.loc[3, 'date'] = 'not a date'
        result = validate_price_points(clean_df)
        assert len(result.invalid_df) == 3
        assert len(result.valid_df) == 1
        assert result.warning_count == 2
        assert result.error_count == 1     # fewer than two rows left

    def test_unsorted_rows_sorted(self, clean_df):
        shuffled = clean_df.iloc[[2, 0, 3, 1]]
        result = validate_price_points(shuffled)
        assert list(result.valid_df['close']) == [100.0, 101.5, 99.0, 102.0]
        assert any(i.severity == ValidationSeverity.INFO for i in result.issues)
        assert result.is_valid

    def test_duplicates_keep_last(self):
        df = pd.DataFrame({
            'date': ['2024-01-02', '2024-01-03', '2024-01-03', '2024-01-04'],
            'close': [100.0, 101.0, 105.0, 104.0],
        })
        result = validate_price_points(df)
        assert list(result.valid_df['close']) == [100.0, 105.0, 104.0]
        assert result.warning_count == 1

    def test_feeds_analyzer(self, clean_df):
        points = validate_price_points(clean_df.iloc[::-1]).to_price_points()
        assert points[0] == PricePoint(date(2024, 1, 2), 100.0)
        summary = analyze(points)
        assert len(summary.returns) == 3
        assert summary.max_drawdown == pytest.approx(99.0 / 101.5 - 1)
