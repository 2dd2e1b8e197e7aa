"""
Black-Scholes Option Pricing
European options with continuous dividend yield (Merton).

The normal CDF is the Abramowitz-Stegun rational approximation rather than
an exact erf, so prices reproduce the reference figures of the web tool to
within ~7.5e-8. All functions accept numpy arrays for the spot argument.
"""

import numpy as np
from typing import Literal, Union

ArrayLike = Union[float, np.ndarray]

# Abramowitz & Stegun 26.2.17
_AS_P = 0.2316419
_AS_PDF = 0.3989423
_AS_B = (0.3193815, -0.3565638, 1.781478, -1.821256, 1.330274)


def _as_output(value):
    if np.ndim(value) == 0:
        return float(value)
    return value


def norm_cdf(x: ArrayLike) -> ArrayLike:
    """
    Standard normal CDF, Abramowitz-Stegun approximation.

    Max absolute error is about 7.5e-8.

    Args:
        x: Scalar or array

    Returns:
        Probability (same shape as x)
    """
    x = np.asarray(x, dtype=float)
    t = 1.0 / (1.0 + _AS_P * np.abs(x))
    d = _AS_PDF * np.exp(-x * x / 2.0)
    b1, b2, b3, b4, b5 = _AS_B
    tail = d * t * (b1 + t * (b2 + t * (b3 + t * (b4 + t * b5))))
    return _as_output(np.where(x > 0, 1.0 - tail, tail))


def black_scholes_price(
    S: ArrayLike,
    K: float,
    T: float,
    r: float,
    sigma: float,
    option_type: Literal['call', 'put'],
    q: float = 0.0
) -> ArrayLike:
    """
    Black-Scholes closed-form solution for European options.

    Inputs are not validated: S > 0, K > 0 and sigma >= 0 are the caller's
    contract.

    Args:
        S: Current stock price (scalar or array of prices)
        K: Strike price
        T: Time to expiration (years)
        r: Risk-free rate (annualized)
        sigma: Implied volatility (annualized)
        option_type: 'call' or 'put'
        q: Continuous dividend yield (annualized, default 0.0)

    Returns:
        Option price (float, or array when S is an array)
    """
    S = np.asarray(S, dtype=float)

    if T <= 0:
        # At expiration, return intrinsic value
        if option_type == 'call':
            return _as_output(np.maximum(S - K, 0.0))
        return _as_output(np.maximum(K - S, 0.0))

    if sigma <= 0:
        # Zero volatility: deterministic payoff on the forward
        forward = S * np.exp((r - q) * T)
        disc = np.exp(-r * T)
        if option_type == 'call':
            return _as_output(np.maximum(forward - K, 0.0) * disc)
        return _as_output(np.maximum(K - forward, 0.0) * disc)

    sqrt_t = np.sqrt(T)
    d1 = (np.log(S / K) + (r - q + 0.5 * sigma**2) * T) / (sigma * sqrt_t)
    d2 = d1 - sigma * sqrt_t
    disc_q = np.exp(-q * T)
    disc_r = np.exp(-r * T)

    if option_type == 'call':
        price = S * disc_q * norm_cdf(d1) - K * disc_r * norm_cdf(d2)
    else:
        price = K * disc_r * norm_cdf(-d2) - S * disc_q * norm_cdf(-d1)

    return _as_output(price)


def black_scholes_delta(
    S: ArrayLike,
    K: float,
    T: float,
    r: float,
    sigma: float,
    option_type: Literal['call', 'put'],
    q: float = 0.0
) -> ArrayLike:
    """Calculate option delta"""
    S = np.asarray(S, dtype=float)
    if T <= 0 or sigma <= 0:
        if option_type == 'call':
            return _as_output(np.where(S > K, 1.0, 0.0))
        return _as_output(np.where(S < K, -1.0, 0.0))

    d1 = (np.log(S / K) + (r - q + 0.5 * sigma**2) * T) / (sigma * np.sqrt(T))
    if option_type == 'call':
        return _as_output(np.exp(-q * T) * norm_cdf(d1))
    return _as_output(np.exp(-q * T) * (norm_cdf(d1) - 1.0))


def estimate_option_price_from_iv(
    underlying_price: float,
    strike: float,
    dte: int,
    iv: float,
    risk_free_rate: float,
    option_type: Literal['call', 'put'],
    dividend_yield: float = 0.0,
    year_basis: float = 365.0
) -> float:
    """
    Convenience wrapper: estimate option price given IV and calendar DTE.

    LIMITATION: European pricing (no early exercise premium).

    Args:
        underlying_price: Current stock price
        strike: Strike price
        dte: Calendar days to expiration
        iv: Implied volatility (annualized, e.g., 0.25 = 25%)
        risk_free_rate: Risk-free rate (annualized)
        option_type: 'call' or 'put'
        dividend_yield: Continuous dividend yield (default 0.0)
        year_basis: Days per year for T (calendar, 365)

    Returns:
        Estimated option price per share
    """
    T = max(dte, 0) / year_basis
    return black_scholes_price(
        underlying_price, strike, T, risk_free_rate, iv, option_type, q=dividend_yield
    )
