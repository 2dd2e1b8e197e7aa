"""
Monte Carlo LEAPS Simulator

Projects the full outcome distribution of a long-dated option position:

1. Build a checkpoint schedule (day offsets from today, always ending at
   expiry).
2. Simulate GBM paths under the risk-neutral drift (r - q) from checkpoint
   to checkpoint:
       S <- S * exp((r - q - 0.5*sigma^2)*dt + sigma*sqrt(dt)*Z)
   with Z drawn by Box-Muller from two uniform(0, 1] draws.
3. Revalue the option with Black-Scholes at every checkpoint using the
   time remaining to expiry, and convert to position P&L
   (value - premium) * 100 * contracts.
4. Reduce each checkpoint to mean / p05 / p50 / p95 / fraction positive.

Paths are generated in fixed-size batches. Each batch draws from its own
child of one SeedSequence, so a seeded run gives identical numbers whether
batches run sequentially or on a thread pool.
"""

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from config.settings import SimulationConfig
from .dates import DateLike, add_days, days_between, parse_date_list, parse_iso_date
from .distribution import DistributionSummary, summarize_distribution
from .errors import (
    InputValidationError,
    InvalidHorizonError,
    InvalidNumericInputError,
    SimulationCancelledError,
)
from .option_pricer import black_scholes_price

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, np.random.SeedSequence]


# ─────────────────────────────────────────────────────────────────────
# Inputs
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OptionSpec:
    """Position to simulate."""
    spot: float                 # S0
    strike: float               # K
    sigma: float                # Constant IV used for paths and revaluation
    rate: float = 0.05          # r
    dividend: float = 0.0       # q
    option_type: Literal['call', 'put'] = 'call'
    premium_paid: float = 0.0   # Per share
    contracts: int = 1

    def validate(self, max_sigma: float = 5.0) -> 'OptionSpec':
        """
        Check every field and return a normalised copy.

        Raises:
            InvalidNumericInputError: non-finite or out-of-domain number
            InputValidationError: unknown option type
        """
        values = {}
        for name in ('spot', 'strike', 'sigma', 'rate', 'dividend', 'premium_paid'):
            raw = getattr(self, name)
            try:
                x = float(raw)
            except (TypeError, ValueError):
                raise InvalidNumericInputError(f"{name} must be a number, got {raw!r}", field=name)
            if not math.isfinite(x):
                raise InvalidNumericInputError(f"{name} must be finite, got {raw!r}", field=name)
            values[name] = x

        if values['spot'] <= 0:
            raise InvalidNumericInputError("spot must be > 0", field="spot")
        if values['strike'] <= 0:
            raise InvalidNumericInputError("strike must be > 0", field="strike")
        if not 0.0 <= values['sigma'] <= max_sigma:
            raise InvalidNumericInputError(
                f"IV must be between 0 and {max_sigma:g} (i.e., 0% to {max_sigma:.0%}).",
                field="sigma"
            )
        if values['premium_paid'] < 0:
            raise InvalidNumericInputError("premium_paid cannot be negative", field="premium_paid")

        option_type = str(self.option_type).lower()
        if option_type not in ('call', 'put'):
            raise InputValidationError(
                f"option_type must be 'call' or 'put', got {self.option_type!r}",
                field="option_type"
            )

        contracts = self.contracts
        if isinstance(contracts, bool) or not isinstance(contracts, (int, np.integer, float)):
            raise InvalidNumericInputError(
                f"contracts must be an integer, got {contracts!r}", field="contracts"
            )
        if not float(contracts).is_integer() or contracts < 1:
            raise InvalidNumericInputError(
                f"contracts must be a whole number >= 1, got {contracts!r}", field="contracts"
            )

        return OptionSpec(
            option_type=option_type, contracts=int(contracts), **values
        )


@dataclass(frozen=True)
class CheckpointSchedule:
    """Strictly increasing day offsets ending at the horizon."""
    current_date: date
    day_offsets: Tuple[int, ...]
    horizon_days: int
    year_basis: float = 365.0

    @property
    def dates(self) -> List[date]:
        return [add_days(self.current_date, d) for d in self.day_offsets]

    @property
    def time_years(self) -> np.ndarray:
        return np.array(self.day_offsets, dtype=float) / self.year_basis

    @property
    def dt_years(self) -> np.ndarray:
        """Length of each segment; the first starts at t = 0."""
        return np.diff(self.time_years, prepend=0.0)

    @property
    def time_remaining(self) -> np.ndarray:
        """Years from each checkpoint to the horizon."""
        t = self.time_years
        return np.maximum(t[-1] - t, 0.0)


def _parse_day_offsets(values: Union[str, Iterable, None]) -> List[int]:
    """Floor day offsets to ints and keep the positive ones."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [v.strip() for v in values.split(',') if v.strip()]
    elif isinstance(values, (int, float, np.integer, np.floating)):
        values = [values]

    days = []
    for v in values:
        try:
            x = float(v)
        except (TypeError, ValueError):
            raise InvalidNumericInputError(
                f"checkpoint day must be a number, got {v!r}", field="checkpoint_days"
            )
        if not math.isfinite(x):
            raise InvalidNumericInputError(
                f"checkpoint day must be finite, got {v!r}", field="checkpoint_days"
            )
        n = math.floor(x)
        if n > 0:
            days.append(n)
    return days


def build_checkpoints(
    current_date: DateLike,
    expiry_date: DateLike,
    checkpoint_days: Union[str, Iterable, None] = None,
    checkpoint_dates: Union[str, Iterable, None] = None,
    default_days: Sequence[int] = (30, 90, 180, 365),
    year_basis: float = 365.0
) -> CheckpointSchedule:
    """
    Normalise checkpoint specs into a schedule.

    Day offsets and ISO dates may be mixed, given as lists or comma-delimited
    strings. Offsets are clamped into [1, horizon]; an empty result falls
    back to default_days; the horizon itself is always included.

    Raises:
        InvalidDateError: malformed date
        InvalidHorizonError: expiry not after current date
    """
    cur = parse_iso_date(current_date, field="current_date")
    exp = parse_iso_date(expiry_date, field="expiry_date")

    horizon = days_between(cur, exp)
    if horizon < 1:
        raise InvalidHorizonError("expiryDate must be after currentDate.", field="expiry_date")

    offsets = _parse_day_offsets(checkpoint_days)
    for d in parse_date_list(checkpoint_dates, field="checkpoint_dates"):
        delta = days_between(cur, d)
        if delta > 0:
            offsets.append(delta)

    offsets = sorted({min(max(d, 1), horizon) for d in offsets})
    if not offsets:
        offsets = sorted({min(max(int(d), 1), horizon) for d in default_days})
    if horizon not in offsets:
        offsets.append(horizon)

    return CheckpointSchedule(
        current_date=cur,
        day_offsets=tuple(sorted(offsets)),
        horizon_days=horizon,
        year_basis=year_basis,
    )


# ─────────────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CheckpointSummary:
    """Distribution of the position at one checkpoint."""
    day_offset: int
    date: date
    underlying: DistributionSummary
    option_value: DistributionSummary
    pnl: DistributionSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            'day_offset': self.day_offset,
            'date': self.date.isoformat(),
            'underlying': self.underlying.to_dict(),
            'option_value': self.option_value.to_dict(),
            'pnl': self.pnl.to_dict(),
        }


@dataclass(frozen=True)
class SampledCheckpoint:
    """Raw values of the sample paths at one checkpoint (parallel lists)."""
    day_offset: int
    date: date
    underlying: List[float]
    option_value: List[float]
    pnl: List[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'day_offset': self.day_offset,
            'date': self.date.isoformat(),
            'underlying': self.underlying,
            'option_value': self.option_value,
            'pnl': self.pnl,
        }


@dataclass(frozen=True)
class MonteCarloResult:
    """Result of a LEAPS simulation run."""
    spec: OptionSpec
    schedule: CheckpointSchedule
    expiry_date: date
    n_sims: int
    checkpoints: List[CheckpointSummary]
    sampled_paths: List[SampledCheckpoint]
    # Full path values: (n_checkpoints, n_sims)
    underlying_paths: np.ndarray = field(repr=False)
    value_paths: np.ndarray = field(repr=False)
    pnl_paths: np.ndarray = field(repr=False)

    @property
    def terminal(self) -> CheckpointSummary:
        return self.checkpoints[-1]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload (paths other than the samples are omitted)."""
        return {
            'ok': True,
            'inputs': {
                'spot': self.spec.spot,
                'strike': self.spec.strike,
                'iv': self.spec.sigma,
                'rate': self.spec.rate,
                'dividend': self.spec.dividend,
                'type': self.spec.option_type,
                'premium_paid': self.spec.premium_paid,
                'contracts': self.spec.contracts,
                'current_date': self.schedule.current_date.isoformat(),
                'expiry_date': self.expiry_date.isoformat(),
                'n_sims': self.n_sims,
                'checkpoint_days': list(self.schedule.day_offsets),
            },
            'checkpoints': [c.to_dict() for c in self.checkpoints],
            'sampled': [s.to_dict() for s in self.sampled_paths],
            'notes': {
                'model': (
                    "GBM risk-neutral drift (r-q), constant IV; option valued "
                    "by Black-Scholes at each checkpoint."
                ),
                'year_basis': self.schedule.year_basis,
            },
        }

    def to_dataframe(self) -> pd.DataFrame:
        """One row per checkpoint, distribution fields flattened."""
        rows = []
        for c in self.checkpoints:
            row = {'day_offset': c.day_offset, 'date': c.date}
            for prefix, dist in (('underlying', c.underlying),
                                 ('value', c.option_value),
                                 ('pnl', c.pnl)):
                for key, val in dist.to_dict().items():
                    row[f"{prefix}_{key}"] = val
            rows.append(row)
        return pd.DataFrame(rows)

    def summary(self) -> str:
        """Formatted text report."""
        spec = self.spec
        lines = [
            "LEAPS Monte Carlo Report",
            "=" * 50,
            f"Position:              {spec.contracts}x {spec.option_type.upper()} "
            f"K={spec.strike:,.2f} exp {self.expiry_date.isoformat()}",
            f"Spot / IV:             {spec.spot:,.2f} / {spec.sigma:.1%}",
            f"Premium Paid:          {spec.premium_paid:,.2f}",
            f"Paths Simulated:       {self.n_sims:,}",
            "",
            f"{'Day':>5} {'Date':>11} {'S p50':>10} {'V mean':>9} {'PnL p05':>11} "
            f"{'PnL p50':>11} {'PnL p95':>11} {'P(profit)':>9}",
        ]
        for c in self.checkpoints:
            lines.append(
                f"{c.day_offset:>5} {c.date.isoformat():>11} {c.underlying.p50:>10,.2f} "
                f"{c.option_value.mean:>9,.2f} {c.pnl.p05:>11,.0f} {c.pnl.p50:>11,.0f} "
                f"{c.pnl.p95:>11,.0f} {c.pnl.probability_profit:>9.1%}"
            )
        return "\n".join(lines)


# ─────────────────────────────────────────────────────────────────────
# Engine
# ─────────────────────────────────────────────────────────────────────

def box_muller(rng: np.random.Generator, size) -> np.ndarray:
    """Standard normal draws via Box-Muller from two uniform(0, 1] draws."""
    u = 1.0 - rng.random(size)
    v = 1.0 - rng.random(size)
    return np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)


class MonteCarloScenarioEngine:
    """
    GBM path simulator with Black-Scholes revaluation at checkpoints.

    Args:
        config: SimulationConfig (path bounds, batching, defaults)
        seed: int or SeedSequence for reproducible runs; None draws fresh
              entropy. Falls back to config.random_seed.
        n_workers: Threads used for batches (default from config)
        batch_size: Paths per batch (default from config)
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        seed: SeedLike = None,
        n_workers: Optional[int] = None,
        batch_size: Optional[int] = None
    ):
        self.config = config or SimulationConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid simulation config: {errors}")
        if seed is None:
            seed = self.config.random_seed
        if isinstance(seed, np.random.SeedSequence):
            self._seed_seq = seed
        else:
            self._seed_seq = np.random.SeedSequence(seed)
        self.n_workers = max(1, n_workers or self.config.n_workers)
        self.batch_size = max(1, batch_size or self.config.batch_size)

    def resolve_n_sims(self, n_sims: Any) -> int:
        """Default, floor and clamp the path count into the configured bounds."""
        cfg = self.config
        if n_sims is None:
            return cfg.default_n_sims
        if isinstance(n_sims, bool):
            raise InvalidNumericInputError(f"nSims must be numeric, got {n_sims!r}", field="n_sims")
        try:
            x = float(n_sims)
        except (TypeError, ValueError):
            raise InvalidNumericInputError(f"nSims must be numeric, got {n_sims!r}", field="n_sims")
        if math.isnan(x):
            raise InvalidNumericInputError("nSims must be numeric, got NaN", field="n_sims")

        if x == math.inf:
            clamped = cfg.max_n_sims
        elif x == -math.inf:
            clamped = cfg.min_n_sims
        else:
            clamped = int(min(max(math.floor(x), cfg.min_n_sims), cfg.max_n_sims))
        if clamped != x:
            logger.warning(f"nSims {n_sims} clamped to {clamped}")
        return clamped

    def simulate(
        self,
        spec: OptionSpec,
        current_date: DateLike,
        expiry_date: DateLike,
        checkpoint_days: Union[str, Iterable, None] = None,
        checkpoint_dates: Union[str, Iterable, None] = None,
        n_sims: Any = None,
        deadline: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> MonteCarloResult:
        """
        Run the simulation.

        Args:
            spec: Position and market inputs
            current_date: Valuation date (YYYY-MM-DD)
            expiry_date: Contract expiry (YYYY-MM-DD)
            checkpoint_days: Day offsets (list or "30,90,180")
            checkpoint_dates: ISO dates (list or "2026-03-01,2026-06-01")
            n_sims: Path count, clamped into [min_n_sims, max_n_sims]
            deadline: Wall-clock budget in seconds
            cancel_event: Set from another thread to abort the run

        Returns:
            MonteCarloResult

        Raises:
            InvalidNumericInputError, InvalidDateError, InvalidHorizonError,
            SimulationCancelledError
        """
        cfg = self.config
        spec = spec.validate(max_sigma=cfg.max_sigma)
        schedule = build_checkpoints(
            current_date,
            expiry_date,
            checkpoint_days=checkpoint_days,
            checkpoint_dates=checkpoint_dates,
            default_days=cfg.default_checkpoint_days,
            year_basis=cfg.year_basis,
        )
        expiry = parse_iso_date(expiry_date, field="expiry_date")
        n = self.resolve_n_sims(n_sims)

        n_cp = len(schedule.day_offsets)
        S_at = np.empty((n_cp, n))
        V_at = np.empty((n_cp, n))

        starts = list(range(0, n, self.batch_size))
        run_seq = self._seed_seq.spawn(1)[0]
        batch_seqs = run_seq.spawn(len(starts))

        logger.info(
            f"Simulating {n:,} paths over {n_cp} checkpoints "
            f"({len(starts)} batches, {self.n_workers} workers)"
        )

        deadline_at = time.monotonic() + deadline if deadline is not None else None

        def run_batch(k: int) -> None:
            if cancel_event is not None and cancel_event.is_set():
                raise SimulationCancelledError("Simulation cancelled")
            if deadline_at is not None and time.monotonic() >= deadline_at:
                raise SimulationCancelledError(f"Simulation exceeded its {deadline}s deadline")
            lo = starts[k]
            hi = min(lo + self.batch_size, n)
            rng = np.random.default_rng(batch_seqs[k])
            S_at[:, lo:hi], V_at[:, lo:hi] = self._simulate_batch(spec, schedule, hi - lo, rng)

        if self.n_workers == 1 or len(starts) == 1:
            for k in range(len(starts)):
                run_batch(k)
        else:
            with ThreadPoolExecutor(max_workers=self.n_workers) as pool:
                futures = [pool.submit(run_batch, k) for k in range(len(starts))]
                for future in futures:
                    future.result()

        multiplier = cfg.contract_multiplier * spec.contracts
        PnL_at = (V_at - spec.premium_paid) * multiplier

        dates = schedule.dates
        checkpoints = [
            CheckpointSummary(
                day_offset=d,
                date=dates[i],
                underlying=summarize_distribution(S_at[i]),
                option_value=summarize_distribution(V_at[i]),
                pnl=summarize_distribution(PnL_at[i]),
            )
            for i, d in enumerate(schedule.day_offsets)
        ]

        n_sample = min(cfg.sample_paths, n)
        sampled = [
            SampledCheckpoint(
                day_offset=d,
                date=dates[i],
                underlying=S_at[i, :n_sample].tolist(),
                option_value=V_at[i, :n_sample].tolist(),
                pnl=PnL_at[i, :n_sample].tolist(),
            )
            for i, d in enumerate(schedule.day_offsets)
        ]

        logger.debug(
            f"Terminal P(profit)={checkpoints[-1].pnl.probability_profit:.3f}, "
            f"mean value={checkpoints[-1].option_value.mean:.4f}"
        )

        return MonteCarloResult(
            spec=spec,
            schedule=schedule,
            expiry_date=expiry,
            n_sims=n,
            checkpoints=checkpoints,
            sampled_paths=sampled,
            underlying_paths=S_at,
            value_paths=V_at,
            pnl_paths=PnL_at,
        )

    @staticmethod
    def _simulate_batch(
        spec: OptionSpec,
        schedule: CheckpointSchedule,
        n_paths: int,
        rng: np.random.Generator
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Simulate one batch of paths.

        Returns:
            (S, V) arrays of shape (n_checkpoints, n_paths)
        """
        sigma = spec.sigma
        dt = schedule.dt_years
        z = box_muller(rng, (n_paths, len(dt)))

        log_steps = (spec.rate - spec.dividend - 0.5 * sigma**2) * dt + sigma * np.sqrt(dt) * z
        S = spec.spot * np.cumprod(np.exp(log_steps), axis=1)

        V = np.empty_like(S)
        for i, t_remain in enumerate(schedule.time_remaining):
            V[:, i] = black_scholes_price(
                S[:, i], spec.strike, float(t_remain), spec.rate, sigma,
                spec.option_type, q=spec.dividend
            )
        return S.T, V.T


def run_leaps_simulation(
    spot: float,
    strike: float,
    iv: float,
    rate: float,
    dividend: float,
    option_type: str,
    premium_paid: float,
    current_date: DateLike,
    expiry_date: DateLike,
    contracts: int = 1,
    checkpoint_days: Union[str, Iterable, None] = None,
    checkpoint_dates: Union[str, Iterable, None] = None,
    n_sims: Any = None,
    seed: SeedLike = None,
    config: Optional[SimulationConfig] = None
) -> MonteCarloResult:
    """
    Convenience wrapper: flat request fields in, MonteCarloResult out.

    Example:
        >>> result = run_leaps_simulation(
        ...     spot=200, strike=220, iv=0.30, rate=0.05, dividend=0.0,
        ...     option_type='call', premium_paid=25.0,
        ...     current_date='2026-01-02', expiry_date='2027-12-17',
        ...     checkpoint_days='90,180,365', n_sims=20000, seed=7)
        >>> print(result.summary())
    """
    spec = OptionSpec(
        spot=spot,
        strike=strike,
        sigma=iv,
        rate=rate,
        dividend=dividend,
        option_type=option_type,
        premium_paid=premium_paid,
        contracts=contracts,
    )
    engine = MonteCarloScenarioEngine(config=config, seed=seed)
    return engine.simulate(
        spec,
        current_date,
        expiry_date,
        checkpoint_days=checkpoint_days,
        checkpoint_dates=checkpoint_dates,
        n_sims=n_sims,
    )
