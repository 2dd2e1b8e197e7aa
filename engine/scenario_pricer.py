"""
Scenario Pricer

"If the underlying is at S on date D, what is this contract worth?"

Values one listed contract at one hypothesised (date, spot) with
Black-Scholes, holding IV at the contract's current IV plus a user shift.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Literal, Optional, Union

from config.settings import ScenarioConfig
from .dates import DateLike, days_between, dte_to_years, parse_iso_date
from .errors import InputValidationError, InvalidHorizonError, InvalidNumericInputError
from .option_pricer import black_scholes_price
from .results import NotApplicable, Stat, format_stat, is_applicable, stat_or_none

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptionContract:
    """A listed contract as delivered by the option-chain provider."""
    strike: float
    expiry: date
    option_type: Literal['call', 'put']
    implied_volatility: float
    contract_symbol: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'expiry', parse_iso_date(self.expiry, field="expiry"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OptionContract':
        """Build from a chain row ({strike, expiry, option_type, implied_volatility})."""
        return cls(
            strike=data['strike'],
            expiry=data['expiry'],
            option_type=data.get('option_type', 'call'),
            implied_volatility=data['implied_volatility'],
            contract_symbol=data.get('contract_symbol'),
        )


@dataclass(frozen=True)
class ScenarioResult:
    """Theoretical value of one contract under one scenario."""
    contract: OptionContract
    scenario_date: date
    scenario_spot: float
    days_to_expiry: int
    time_years: float
    iv_current: float
    iv_used: float
    theoretical_price: Stat            # Per share
    pnl_per_share: Optional[Stat] = None      # None when no premium was supplied
    pnl_per_contract: Optional[Stat] = None

    @property
    def is_priced(self) -> bool:
        return is_applicable(self.theoretical_price)

    def to_dict(self) -> Dict[str, Any]:
        pnl_share = None if self.pnl_per_share is None else stat_or_none(self.pnl_per_share)
        pnl_contract = None if self.pnl_per_contract is None else stat_or_none(self.pnl_per_contract)
        return {
            'contract_symbol': self.contract.contract_symbol,
            'option_type': self.contract.option_type,
            'strike': self.contract.strike,
            'expiry': self.contract.expiry.isoformat(),
            'scenario_date': self.scenario_date.isoformat(),
            'scenario_spot': self.scenario_spot,
            'days_to_expiry': self.days_to_expiry,
            'time_years': self.time_years,
            'iv_current': self.iv_current,
            'iv_used': self.iv_used,
            'theoretical_price': stat_or_none(self.theoretical_price),
            'pnl_per_share': pnl_share,
            'pnl_per_contract': pnl_contract,
        }

    def summary(self) -> str:
        """Formatted text report."""
        lines = [
            f"Theoretical price:     {format_stat(self.theoretical_price)}",
            f"Scenario:              {self.scenario_date.isoformat()} @ S={self.scenario_spot}",
            f"Expiry:                {self.contract.expiry.isoformat()}",
            f"Days to expiry:        {self.days_to_expiry}",
            f"T (years):             {self.time_years:.6f}",
            f"IV current / used:     {self.iv_current:.6f} / {self.iv_used:.6f}",
        ]
        if self.pnl_per_contract is not None:
            lines.append(f"PnL per contract:      {format_stat(self.pnl_per_contract, '{:,.2f}')}")
        return "\n".join(lines)


def _require_finite(value: Any, name: str) -> float:
    try:
        x = float(value)
    except (TypeError, ValueError):
        raise InvalidNumericInputError(f"{name} must be a number, got {value!r}", field=name)
    if not math.isfinite(x):
        raise InvalidNumericInputError(f"{name} must be finite, got {value!r}", field=name)
    return x


class ScenarioPointEvaluator:
    """Deterministic single-point valuation of a contract."""

    def __init__(self, config: Optional[ScenarioConfig] = None):
        self.config = config or ScenarioConfig()

    def evaluate(
        self,
        contract: OptionContract,
        scenario_date: DateLike,
        scenario_spot: float,
        rate: float,
        dividend_yield: float = 0.0,
        iv_shift: float = 0.0,
        premium_paid: Optional[float] = None,
        current_date: Optional[DateLike] = None
    ) -> ScenarioResult:
        """
        Price the contract at (scenario_date, scenario_spot).

        Args:
            contract: Contract to value
            scenario_date: Hypothesised valuation date (YYYY-MM-DD)
            scenario_spot: Hypothesised underlying price
            rate: Risk-free rate r
            dividend_yield: Continuous dividend yield q
            iv_shift: Absolute shift added to the contract's IV
            premium_paid: Optional entry premium per share, enables P&L
            current_date: Optional "today"; the scenario may not precede it

        Returns:
            ScenarioResult (theoretical_price is NotApplicable when the
            shifted IV is below the materiality threshold)

        Raises:
            InvalidDateError, InvalidHorizonError, InvalidNumericInputError
        """
        cfg = self.config

        scen = parse_iso_date(scenario_date, field="scenario_date")
        if current_date is not None:
            cur = parse_iso_date(current_date, field="current_date")
            if scen < cur:
                raise InvalidHorizonError(
                    "scenario_date must be today or later", field="scenario_date"
                )
        if scen > contract.expiry:
            raise InvalidHorizonError(
                "scenario_date must be on/before expiration", field="scenario_date"
            )

        S = _require_finite(scenario_spot, "scenario_spot")
        if S <= 0:
            raise InvalidNumericInputError("scenario_spot must be > 0", field="scenario_spot")
        K = _require_finite(contract.strike, "strike")
        if K <= 0:
            raise InvalidNumericInputError("strike must be > 0", field="strike")
        r = _require_finite(rate, "rate")
        q = _require_finite(dividend_yield, "dividend_yield")
        shift = _require_finite(iv_shift, "iv_shift")
        iv0 = _require_finite(contract.implied_volatility, "implied_volatility")
        if contract.option_type not in ('call', 'put'):
            raise InputValidationError(
                f"option_type must be 'call' or 'put', got {contract.option_type!r}",
                field="option_type"
            )

        paid = None
        if premium_paid is not None:
            paid = _require_finite(premium_paid, "premium_paid")
            if paid < 0:
                raise InvalidNumericInputError("premium_paid cannot be negative", field="premium_paid")

        days = days_between(scen, contract.expiry)
        T = dte_to_years(days, cfg.year_basis)
        sigma = max(0.0, iv0 + shift)

        if sigma < cfg.iv_materiality_threshold:
            logger.warning(
                f"IV {sigma:.6f} below materiality threshold "
                f"{cfg.iv_materiality_threshold}; declining to price "
                f"{contract.contract_symbol or contract.option_type}"
            )
            theo: Stat = NotApplicable("implied volatility unavailable")
        else:
            theo = black_scholes_price(S, K, T, r, sigma, contract.option_type, q=q)

        pnl_share: Optional[Stat] = None
        pnl_contract: Optional[Stat] = None
        if paid is not None:
            if is_applicable(theo):
                pnl_share = theo - paid
                pnl_contract = pnl_share * cfg.contract_multiplier
            else:
                pnl_share = theo
                pnl_contract = theo

        return ScenarioResult(
            contract=contract,
            scenario_date=scen,
            scenario_spot=S,
            days_to_expiry=days,
            time_years=T,
            iv_current=iv0,
            iv_used=sigma,
            theoretical_price=theo,
            pnl_per_share=pnl_share,
            pnl_per_contract=pnl_contract,
        )


def evaluate_scenario(
    contract: Union[OptionContract, Dict[str, Any]],
    scenario_date: DateLike,
    scenario_spot: float,
    rate: float,
    dividend_yield: float = 0.0,
    iv_shift: float = 0.0,
    premium_paid: Optional[float] = None,
    current_date: Optional[DateLike] = None,
    config: Optional[ScenarioConfig] = None
) -> ScenarioResult:
    """Convenience wrapper around ScenarioPointEvaluator.evaluate()."""
    if isinstance(contract, dict):
        contract = OptionContract.from_dict(contract)
    return ScenarioPointEvaluator(config).evaluate(
        contract,
        scenario_date,
        scenario_spot,
        rate,
        dividend_yield=dividend_yield,
        iv_shift=iv_shift,
        premium_paid=premium_paid,
        current_date=current_date,
    )
