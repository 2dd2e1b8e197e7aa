"""
Data validation for provider payloads entering the engine.

The engine itself assumes clean, ascending price points; this module is the
boundary that turns raw provider rows into that shape and reports what it
had to drop.
"""
import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from typing import List, Tuple, Optional
from enum import Enum
import logging

from engine.risk_analyzer import PricePoint

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Data is unusable
    WARNING = "warning"  # Data is suspicious but usable
    INFO = "info"        # Minor issue


@dataclass
class ValidationIssue:
    """Single validation issue."""
    field: str
    severity: ValidationSeverity
    message: str
    row_count: int = 0
    sample_values: List = field(default_factory=list)


@dataclass
class ValidationResult:
    """Result of data validation."""
    valid_df: pd.DataFrame
    invalid_df: pd.DataFrame
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.invalid_df) == 0 and not any(
            i.severity == ValidationSeverity.ERROR for i in self.issues
        )

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.WARNING)

    def to_price_points(self) -> List[PricePoint]:
        """Valid rows as engine PricePoints, ascending by date."""
        return [
            PricePoint(date=row.date, close=float(row.close))
            for row in self.valid_df.itertuples(index=False)
        ]

    def log_summary(self):
        """Log validation summary."""
        logger.info(f"Validation: {len(self.valid_df)} valid, {len(self.invalid_df)} invalid")
        for issue in self.issues:
            if issue.severity == ValidationSeverity.ERROR:
                logger.error(f"{issue.field}: {issue.message} ({issue.row_count} rows)")
            elif issue.severity == ValidationSeverity.WARNING:
                logger.warning(f"{issue.field}: {issue.message} ({issue.row_count} rows)")
            else:
                logger.info(f"{issue.field}: {issue.message}")


def validate_and_normalize_iv(iv: float) -> Tuple[Optional[float], Optional[str]]:
    """
    Validate and normalize implied volatility to decimal form.

    Args:
        iv: Implied volatility value as reported by the chain provider

    Returns:
        Tuple of (normalized_iv, warning_message)
        Returns (None, error_message) if invalid
    """
    if iv is None or pd.isna(iv):
        return None, "IV is missing"

    if iv < 0:
        return None, f"IV is negative: {iv}"

    # Likely percentage format (e.g., 25 instead of 0.25)
    if iv > 10.0:
        normalized = iv / 100.0
        return normalized, f"IV appears to be percentage format, converted {iv} -> {normalized}"

    # Very high but plausible IV (>200%)
    if iv > 2.0:
        return iv, f"Unusually high IV: {iv:.1%}"

    # Rounded-to-zero IVs are common in chain snapshots; the pricer declines these
    if iv < 0.0005:
        return iv, f"IV effectively zero: {iv}"

    return iv, None


def validate_price_points(df: pd.DataFrame) -> ValidationResult:
    """
    Validate and normalize a daily close series.

    Rows with an unparseable date or a non-finite / non-positive close are
    moved to invalid_df. Valid rows are sorted ascending by date and
    duplicate dates keep their last observation.

    Args:
        df: DataFrame with 'date' and 'close' columns

    Returns:
        ValidationResult with valid/invalid splits and issues list
    """
    if df.empty:
        return ValidationResult(df, pd.DataFrame(), [
            ValidationIssue(
                field="rows",
                severity=ValidationSeverity.ERROR,
                message="No price points"
            )
        ])

    df = df.copy()
    issues = []

    # 1. Required columns
    required_cols = ['date', 'close']
    missing_cols = [c for c in required_cols if c not in df.columns]
    if missing_cols:
        issues.append(ValidationIssue(
            field="columns",
            severity=ValidationSeverity.ERROR,
            message=f"Missing required columns: {missing_cols}"
        ))
        return ValidationResult(pd.DataFrame(), df, issues)

    invalid_mask = pd.Series(False, index=df.index)

    # 2. Dates
    parsed = pd.to_datetime(df['date'], errors='coerce')
    invalid_date = parsed.isna()
    if invalid_date.any():
        issues.append(ValidationIssue(
            field="date",
            severity=ValidationSeverity.WARNING,
            message="Unparseable dates removed",
            row_count=int(invalid_date.sum()),
            sample_values=df.loc[invalid_date, 'date'].head(5).tolist()
        ))
        invalid_mask |= invalid_date

    # 3. Closes must be positive and finite
    closes = pd.to_numeric(df['close'], errors='coerce')
    bad_close = ~np.isfinite(closes) | (closes <= 0)
    bad_close = bad_close.fillna(True)
    if bad_close.any():
        issues.append(ValidationIssue(
            field="close",
            severity=ValidationSeverity.WARNING,
            message="Non-finite or non-positive closes removed",
            row_count=int(bad_close.sum()),
            sample_values=df.loc[bad_close, 'close'].head(5).tolist()
        ))
        invalid_mask |= bad_close

    invalid_df = df[invalid_mask].copy()

    valid_df = pd.DataFrame({
        'date': parsed[~invalid_mask].dt.date,
        'close': closes[~invalid_mask].astype(float),
    })

    # 4. Order and duplicates
    if not valid_df['date'].is_monotonic_increasing:
        issues.append(ValidationIssue(
            field="date",
            severity=ValidationSeverity.INFO,
            message="Rows were not in ascending date order; sorted"
        ))
    valid_df = valid_df.sort_values('date', kind='mergesort')

    duplicated = valid_df['date'].duplicated(keep='last')
    if duplicated.any():
        issues.append(ValidationIssue(
            field="date",
            severity=ValidationSeverity.WARNING,
            message="Duplicate dates collapsed to last observation",
            row_count=int(duplicated.sum())
        ))
        valid_df = valid_df[~duplicated]

    if len(valid_df) < 2:
        issues.append(ValidationIssue(
            field="rows",
            severity=ValidationSeverity.ERROR,
            message=f"Not enough data points ({len(valid_df)})",
            row_count=len(valid_df)
        ))

    return ValidationResult(valid_df.reset_index(drop=True), invalid_df, issues)
