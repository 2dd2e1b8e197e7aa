"""
Configuration Management System

Centralized configuration for the Sigmora analytics engine:
- Pain score basis constants and weights
- Scenario pricer thresholds
- Monte Carlo run parameters
- Logging settings
- Environment-specific overrides

Configuration hierarchy:
1. Default values (this file)
2. Config file overrides (YAML/JSON)
3. Environment variables
4. Runtime overrides
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import os
import json
import yaml
from enum import Enum


class Environment(Enum):
    """Deployment environment."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class PainScoreConfig:
    """
    Pain score heuristic (0-100).

    Each component is normalised against a basis value and clamped to
    [0, 1], then combined with the weights below.
    """
    depth_basis: float = 0.60           # |MaxDD| of 60% counts as maximal depth
    length_basis_days: float = 252.0    # ~1 trading year underwater is maximal length
    jitter_basis: float = 0.03          # 3% daily vol is maximal jitter

    depth_weight: float = 0.55
    length_weight: float = 0.30
    jitter_weight: float = 0.15

    worst_n: int = 10                   # Worst-N average and worst-days list size
    year_quantile_min_returns: int = 252

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors = []
        for name in ('depth_basis', 'length_basis_days', 'jitter_basis'):
            if getattr(self, name) <= 0:
                errors.append(f"{name} must be positive")
        weights = (self.depth_weight, self.length_weight, self.jitter_weight)
        if any(w < 0 for w in weights):
            errors.append("pain score weights cannot be negative")
        if abs(sum(weights) - 1.0) > 1e-9:
            errors.append(f"pain score weights must sum to 1, got {sum(weights):.4f}")
        if self.worst_n < 1:
            errors.append("worst_n must be at least 1")
        if self.year_quantile_min_returns < 1:
            errors.append("year_quantile_min_returns must be at least 1")
        return errors


@dataclass
class ScenarioConfig:
    """Single-point scenario pricer settings."""
    year_basis: float = 365.0
    # Chains often report a rounded or missing IV as ~0; below this we decline to price
    iv_materiality_threshold: float = 0.0005
    contract_multiplier: int = 100

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors = []
        if self.year_basis <= 0:
            errors.append("year_basis must be positive")
        if self.iv_materiality_threshold < 0:
            errors.append("iv_materiality_threshold cannot be negative")
        if self.contract_multiplier < 1:
            errors.append("contract_multiplier must be at least 1")
        return errors


@dataclass
class SimulationConfig:
    """Monte Carlo LEAPS simulation settings."""
    default_n_sims: int = 20000
    min_n_sims: int = 500
    max_n_sims: int = 200000
    sample_paths: int = 20
    default_checkpoint_days: Tuple[int, ...] = (30, 90, 180, 365)
    max_sigma: float = 5.0              # 500% IV
    year_basis: float = 365.0
    contract_multiplier: int = 100

    # Execution
    batch_size: int = 5000
    n_workers: int = 1
    random_seed: Optional[int] = None

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors = []
        if not 0 < self.min_n_sims <= self.default_n_sims <= self.max_n_sims:
            errors.append("need 0 < min_n_sims <= default_n_sims <= max_n_sims")
        if self.sample_paths < 0:
            errors.append("sample_paths cannot be negative")
        if not self.default_checkpoint_days or any(d <= 0 for d in self.default_checkpoint_days):
            errors.append("default_checkpoint_days must be non-empty positive day counts")
        if self.max_sigma <= 0:
            errors.append("max_sigma must be positive")
        if self.year_basis <= 0:
            errors.append("year_basis must be positive")
        if self.batch_size < 1:
            errors.append("batch_size must be at least 1")
        if self.n_workers < 1:
            errors.append("n_workers must be at least 1")
        return errors


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    log_dir: str = "logs"
    log_file: Optional[str] = None

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors = []
        if self.level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"unknown log level {self.level}")
        return errors


@dataclass
class Config:
    """Master configuration container."""
    environment: Environment = Environment.DEVELOPMENT
    pain: PainScoreConfig = field(default_factory=PainScoreConfig)
    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Market assumptions
    risk_free_rate: float = 0.05        # 5% risk-free rate
    default_dividend_yield: float = 0.0

    def validate(self) -> List[str]:
        """Validate all configuration sections."""
        errors = []
        errors.extend(self.pain.validate())
        errors.extend(self.scenario.validate())
        errors.extend(self.simulation.validate())
        errors.extend(self.logging.validate())
        return errors

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        simulation = asdict(self.simulation)
        simulation['default_checkpoint_days'] = list(self.simulation.default_checkpoint_days)
        return {
            'environment': self.environment.value,
            'pain': asdict(self.pain),
            'scenario': asdict(self.scenario),
            'simulation': simulation,
            'logging': asdict(self.logging),
            'risk_free_rate': self.risk_free_rate,
            'default_dividend_yield': self.default_dividend_yield
        }

    def save(self, filepath: str) -> None:
        """Save configuration to file."""
        data = self.to_dict()
        path = Path(filepath)

        if path.suffix == '.yaml' or path.suffix == '.yml':
            with open(filepath, 'w') as f:
                yaml.dump(data, f, default_flow_style=False)
        else:
            with open(filepath, 'w') as f:
                json.dump(data, f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'Config':
        """Load configuration from file."""
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {filepath}")

        if path.suffix == '.yaml' or path.suffix == '.yml':
            with open(filepath) as f:
                data = yaml.safe_load(f) or {}
        else:
            with open(filepath) as f:
                data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Config':
        """Create config from dictionary."""
        config = cls()

        if 'environment' in data:
            config.environment = Environment(data['environment'])

        for section in ('pain', 'scenario', 'simulation', 'logging'):
            if section in data:
                target = getattr(config, section)
                for key, value in data[section].items():
                    if hasattr(target, key):
                        setattr(target, key, value)

        if isinstance(config.simulation.default_checkpoint_days, list):
            config.simulation.default_checkpoint_days = tuple(
                config.simulation.default_checkpoint_days
            )

        if 'risk_free_rate' in data:
            config.risk_free_rate = data['risk_free_rate']
        if 'default_dividend_yield' in data:
            config.default_dividend_yield = data['default_dividend_yield']

        return config

    @classmethod
    def from_environment(cls) -> 'Config':
        """Create config from environment variables."""
        config = cls()
        config.apply_environment()
        return config

    def apply_environment(self) -> None:
        """Apply SIGMORA_* environment variable overrides in place."""
        if os.getenv('SIGMORA_ENV'):
            self.environment = Environment(os.getenv('SIGMORA_ENV'))

        if os.getenv('SIGMORA_RISK_FREE_RATE'):
            self.risk_free_rate = float(os.getenv('SIGMORA_RISK_FREE_RATE'))

        # Simulation overrides
        if os.getenv('SIGMORA_N_SIMS'):
            self.simulation.default_n_sims = int(os.getenv('SIGMORA_N_SIMS'))
        if os.getenv('SIGMORA_N_WORKERS'):
            self.simulation.n_workers = int(os.getenv('SIGMORA_N_WORKERS'))
        if os.getenv('SIGMORA_SEED'):
            self.simulation.random_seed = int(os.getenv('SIGMORA_SEED'))

        # Logging overrides
        if os.getenv('SIGMORA_LOG_LEVEL'):
            self.logging.level = os.getenv('SIGMORA_LOG_LEVEL')
        if os.getenv('SIGMORA_LOG_DIR'):
            self.logging.log_dir = os.getenv('SIGMORA_LOG_DIR')


class ConfigManager:
    """
    Configuration management with layered overrides.

    Hierarchy: defaults < config file < environment < runtime
    """

    _instance: Optional['ConfigManager'] = None
    _config: Optional[Config] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_config(cls) -> Config:
        """Get current configuration."""
        if cls._config is None:
            cls._config = Config()
        return cls._config

    @classmethod
    def load_config(
        cls,
        config_file: Optional[str] = None,
        use_env: bool = True
    ) -> Config:
        """
        Load configuration with all overrides.

        Args:
            config_file: Path to config file (YAML or JSON)
            use_env: Whether to apply environment variable overrides
        """
        config = Config()

        if config_file and Path(config_file).exists():
            config = Config.load(config_file)

        if use_env:
            config.apply_environment()

        errors = config.validate()
        if errors:
            raise ValueError(f"Configuration errors: {errors}")

        cls._config = config
        return config

    @classmethod
    def update(cls, **kwargs) -> Config:
        """
        Update configuration at runtime.

        Nested keys use double underscores, e.g.
        ``ConfigManager.update(pain__depth_basis=0.5)``.
        """
        config = cls.get_config()

        for key, value in kwargs.items():
            if '__' in key:
                parts = key.split('__')
                obj = config
                for part in parts[:-1]:
                    obj = getattr(obj, part)
                if not hasattr(obj, parts[-1]):
                    raise AttributeError(f"Unknown config key: {key}")
                setattr(obj, parts[-1], value)
            elif hasattr(config, key):
                setattr(config, key, value)
            else:
                raise AttributeError(f"Unknown config key: {key}")

        errors = config.validate()
        if errors:
            raise ValueError(f"Configuration errors after update: {errors}")

        return config

    @classmethod
    def reset(cls) -> None:
        """Drop the current configuration (defaults on next access)."""
        cls._config = None


# Preset configurations
def get_test_config(seed: int = 42) -> Config:
    """Reproducible, fast configuration for tests."""
    config = Config()
    config.environment = Environment.TEST
    config.simulation.random_seed = seed
    config.simulation.default_n_sims = 2000
    config.simulation.batch_size = 1000
    config.logging.level = "DEBUG"
    return config


def get_high_precision_config() -> Config:
    """Maximum path count with parallel batches."""
    config = Config()
    config.simulation.default_n_sims = config.simulation.max_n_sims
    config.simulation.batch_size = 20000
    config.simulation.n_workers = max(1, min(8, os.cpu_count() or 1))
    return config
