"""
Utility modules for the Sigmora engine.
"""
from .logging_config import setup_logging, setup_logging_from_config, get_logger
from .data_validation import (
    validate_price_points,
    validate_and_normalize_iv,
    ValidationResult,
    ValidationIssue,
    ValidationSeverity
)
