"""
Shared result types.

NotApplicable marks a statistic that is mathematically undefined for the
sample at hand (volatility of a single return, a worst-10 average over five
returns, ...). It is a value, not an error, and it refuses to take part in
arithmetic so it can never be silently read as zero.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class NotApplicable:
    """Explicit "not applicable" marker carrying the reason it applies."""
    reason: str = ""

    def __bool__(self) -> bool:
        return False

    def __float__(self) -> float:
        raise TypeError(f"NotApplicable has no numeric value ({self.reason})")

    def __str__(self) -> str:
        return "N/A"

    def _refuse(self, *args):
        raise TypeError(f"Cannot do arithmetic with NotApplicable ({self.reason})")

    __add__ = __radd__ = __sub__ = __rsub__ = _refuse
    __mul__ = __rmul__ = __truediv__ = __rtruediv__ = _refuse
    __lt__ = __le__ = __gt__ = __ge__ = _refuse
    __neg__ = __abs__ = _refuse


# A statistic is either a float or an explicit NotApplicable
Stat = Union[float, NotApplicable]


def is_applicable(value) -> bool:
    """True if value carries a number rather than a NotApplicable marker."""
    return not isinstance(value, NotApplicable)


def stat_or_none(value: Stat) -> Optional[float]:
    """Serialise a Stat for JSON payloads (NotApplicable -> None)."""
    if isinstance(value, NotApplicable):
        return None
    return float(value)


def format_stat(value: Stat, fmt: str = "{:.4f}") -> str:
    """Render a Stat for text reports (NotApplicable -> 'N/A')."""
    if isinstance(value, NotApplicable):
        return str(value)
    return fmt.format(value)
