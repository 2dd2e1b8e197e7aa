"""
Tests for Black-Scholes option pricing and the normal CDF approximation.
"""

import pytest
import numpy as np
from scipy.stats import norm

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from engine.option_pricer import (
    norm_cdf,
    black_scholes_price,
    black_scholes_delta,
    estimate_option_price_from_iv
)


class TestNormCdf:
    """Tests for the Abramowitz-Stegun CDF."""

    def test_close_to_exact_cdf(self):
        """Approximation error stays well below 1e-6 across the real line."""
        x = np.linspace(-8, 8, 1601)
        assert np.max(np.abs(norm_cdf(x) - norm.cdf(x))) < 5e-7

    def test_symmetry(self):
        """N(x) + N(-x) == 1 away from zero."""
        for x in (0.1, 0.5, 1.3, 2.7, 5.0):
            assert norm_cdf(x) + norm_cdf(-x) == pytest.approx(1.0, abs=1e-15)

    def test_scalar_returns_float(self):
        assert isinstance(norm_cdf(0.3), float)

    def test_array_shape_preserved(self):
        x = np.array([[-1.0, 0.0], [1.0, 2.0]])
        assert norm_cdf(x).shape == (2, 2)

    def test_tails(self):
        assert norm_cdf(-10) < 1e-10
        assert norm_cdf(10) > 1 - 1e-10


class TestBlackScholesPrice:
    """Tests for Black-Scholes pricing."""

    def test_reference_call(self):
        """Textbook example: S=K=100, T=1, r=5%, sigma=20%."""
        price = black_scholes_price(S=100, K=100, T=1.0, r=0.05, sigma=0.20, option_type='call')
        assert price == pytest.approx(10.45, abs=0.01)

    def test_reference_put(self):
        price = black_scholes_price(S=100, K=100, T=1.0, r=0.05, sigma=0.20, option_type='put')
        assert price == pytest.approx(5.57, abs=0.01)

    @pytest.mark.parametrize("S,K,T,r,q,sigma", [
        (100, 100, 1.0, 0.05, 0.0, 0.20),
        (150, 120, 2.5, 0.04, 0.015, 0.35),
        (80, 100, 0.3, 0.01, 0.03, 0.60),
        (250, 200, 1.75, 0.05, 0.0, 0.25),
    ])
    def test_put_call_parity(self, S, K, T, r, q, sigma):
        """C - P = S*e^(-qT) - K*e^(-rT)."""
        call = black_scholes_price(S, K, T, r, sigma, 'call', q=q)
        put = black_scholes_price(S, K, T, r, sigma, 'put', q=q)
        expected_diff = S * np.exp(-q * T) - K * np.exp(-r * T)
        assert abs(call - put - expected_diff) < 1e-6

    def test_expired_call_itm(self):
        """Expired ITM call should equal intrinsic value."""
        price = black_scholes_price(S=110, K=100, T=0, r=0.05, sigma=0.20, option_type='call')
        assert price == 10

    def test_expired_call_otm(self):
        price = black_scholes_price(S=90, K=100, T=0, r=0.05, sigma=0.20, option_type='call')
        assert price == 0

    def test_expired_put_itm(self):
        price = black_scholes_price(S=90, K=100, T=0, r=0.05, sigma=0.20, option_type='put')
        assert price == 10

    def test_negative_time_is_intrinsic(self):
        price = black_scholes_price(S=120, K=100, T=-0.1, r=0.05, sigma=0.20, option_type='call')
        assert price == 20

    def test_zero_volatility_call(self):
        """Zero vol call is the discounted payoff on the forward."""
        S, K, T, r, q = 110, 100, 1.0, 0.05, 0.02
        price = black_scholes_price(S, K, T, r, sigma=0, option_type='call', q=q)
        forward = S * np.exp((r - q) * T)
        expected = max(forward - K, 0) * np.exp(-r * T)
        assert price == pytest.approx(expected, abs=1e-12)

    def test_zero_volatility_put_otm_forward(self):
        """Put whose strike is below the forward is worthless at zero vol."""
        price = black_scholes_price(100, 100, 1.0, 0.05, sigma=0, option_type='put')
        assert price == 0

    def test_dividend_yield_reduces_call_price(self):
        no_div = black_scholes_price(100, 100, 0.5, 0.05, 0.20, 'call', q=0)
        with_div = black_scholes_price(100, 100, 0.5, 0.05, 0.20, 'call', q=0.03)
        assert with_div < no_div

    def test_dividend_yield_increases_put_price(self):
        no_div = black_scholes_price(100, 100, 0.5, 0.05, 0.20, 'put', q=0)
        with_div = black_scholes_price(100, 100, 0.5, 0.05, 0.20, 'put', q=0.03)
        assert with_div > no_div

    def test_vectorized_spot(self):
        """Array of spots prices element-wise."""
        spots = np.array([80.0, 100.0, 120.0])
        prices = black_scholes_price(spots, 100, 1.0, 0.05, 0.20, 'call')
        assert isinstance(prices, np.ndarray)
        for s, p in zip(spots, prices):
            assert p == pytest.approx(black_scholes_price(s, 100, 1.0, 0.05, 0.20, 'call'))

    def test_vectorized_expiry(self):
        spots = np.array([80.0, 120.0])
        np.testing.assert_array_equal(
            black_scholes_price(spots, 100, 0, 0.05, 0.2, 'put'), [20.0, 0.0]
        )

    def test_price_non_negative(self):
        spots = np.linspace(20, 400, 200)
        assert np.all(black_scholes_price(spots, 100, 2.0, 0.05, 0.5, 'call') >= 0)
        assert np.all(black_scholes_price(spots, 100, 2.0, 0.05, 0.5, 'put') >= 0)


class TestDeltaAndHelpers:

    def test_call_delta_range(self):
        delta = black_scholes_delta(100, 100, 0.25, 0.05, 0.20, 'call')
        assert 0 <= delta <= 1

    def test_put_delta_range(self):
        delta = black_scholes_delta(100, 100, 0.25, 0.05, 0.20, 'put')
        assert -1 <= delta <= 0

    def test_expired_delta(self):
        assert black_scholes_delta(110, 100, 0, 0.05, 0.2, 'call') == 1.0
        assert black_scholes_delta(90, 100, 0, 0.05, 0.2, 'put') == -1.0

    def test_estimate_from_iv_uses_calendar_basis(self):
        """365 calendar days is one year."""
        est = estimate_option_price_from_iv(100, 100, 365, 0.20, 0.05, 'call')
        direct = black_scholes_price(100, 100, 1.0, 0.05, 0.20, 'call')
        assert est == pytest.approx(direct)
