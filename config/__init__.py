"""Configuration module for the Sigmora analytics engine."""

from .settings import (
    Config,
    ConfigManager,
    PainScoreConfig,
    ScenarioConfig,
    SimulationConfig,
    LoggingConfig,
    Environment,
    get_test_config,
    get_high_precision_config
)

__all__ = [
    'Config',
    'ConfigManager',
    'PainScoreConfig',
    'ScenarioConfig',
    'SimulationConfig',
    'LoggingConfig',
    'Environment',
    'get_test_config',
    'get_high_precision_config'
]
