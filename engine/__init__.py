"""
Sigmora Engine - Quantitative Analytics Core

This module provides the pure computational components:
- Return-risk analysis (drawdown, volatility, tail stats, pain score)
- Black-Scholes pricing with the Abramowitz-Stegun normal CDF
- Single-point scenario pricing of listed contracts
- Monte Carlo LEAPS outcome simulation
- Structured errors and NotApplicable statistics
"""

from .errors import (
    EngineError,
    InputValidationError,
    InsufficientDataError,
    InvalidNumericInputError,
    InvalidDateError,
    InvalidHorizonError,
    SimulationCancelledError
)
from .results import NotApplicable, is_applicable, stat_or_none, format_stat
from .option_pricer import (
    norm_cdf,
    black_scholes_price,
    black_scholes_delta,
    estimate_option_price_from_iv
)
from .distribution import quantile, summarize_distribution, DistributionSummary
from .risk_analyzer import (
    ReturnSeriesAnalyzer,
    RiskSummary,
    PricePoint,
    WorstDay,
    PainBreakdown,
    analyze,
    worst_n_average
)
from .scenario_pricer import (
    ScenarioPointEvaluator,
    ScenarioResult,
    OptionContract,
    evaluate_scenario
)
from .monte_carlo import (
    MonteCarloScenarioEngine,
    MonteCarloResult,
    OptionSpec,
    CheckpointSchedule,
    CheckpointSummary,
    SampledCheckpoint,
    build_checkpoints,
    run_leaps_simulation
)

__all__ = [
    # Errors
    'EngineError', 'InputValidationError', 'InsufficientDataError',
    'InvalidNumericInputError', 'InvalidDateError', 'InvalidHorizonError',
    'SimulationCancelledError',

    # Results
    'NotApplicable', 'is_applicable', 'stat_or_none', 'format_stat',

    # Pricing
    'norm_cdf', 'black_scholes_price', 'black_scholes_delta',
    'estimate_option_price_from_iv',

    # Distribution
    'quantile', 'summarize_distribution', 'DistributionSummary',

    # Risk
    'ReturnSeriesAnalyzer', 'RiskSummary', 'PricePoint', 'WorstDay',
    'PainBreakdown', 'analyze', 'worst_n_average',

    # Scenario
    'ScenarioPointEvaluator', 'ScenarioResult', 'OptionContract',
    'evaluate_scenario',

    # Monte Carlo
    'MonteCarloScenarioEngine', 'MonteCarloResult', 'OptionSpec',
    'CheckpointSchedule', 'CheckpointSummary', 'SampledCheckpoint',
    'build_checkpoints', 'run_leaps_simulation'
]
