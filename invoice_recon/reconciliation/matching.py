"""
Amount Matching and Candidate Scoring.

Author: Finance Automation Team
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from invoice_recon.utils.helpers import round_half_up
from .models import PaymentRecord

Number = Union[int, float, Decimal]

DEFAULT_AMOUNT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class AmountMatch:
    """
    Result of comparing an invoice amount with a register amount.

    Attributes:
        match: True when the relative difference is within tolerance
        discrepancy: Absolute difference, regardless of match outcome
        percent_diff: Relative difference in whole percent (half rounds up)
    """
    match: bool
    discrepancy: Decimal
    percent_diff: int = 0

    @property
    def fraction(self) -> float:
        """percent_diff as a 0-1 fraction, used for scoring."""
        return self.percent_diff / 100


def amount_match(
    invoice_amount: Number,
    record_amount: Number,
    tolerance: Number = DEFAULT_AMOUNT_TOLERANCE
) -> AmountMatch:
    """
    Compare two amounts with a relative tolerance.

    The difference is measured against the larger amount. Two zero
    amounts match with no discrepancy.

    Args:
        invoice_amount: Normalized invoice total.
        record_amount: Normalized register amount.
        tolerance: Maximum relative difference (0.01 = 1%).

    Returns:
        AmountMatch.

    Example:
        >>> amount_match(Decimal("100"), Decimal("100")).match
        True
        >>> amount_match(Decimal("100"), Decimal("89")).match
        False
    """
    a = Decimal(str(invoice_amount))
    b = Decimal(str(record_amount))
    diff = abs(a - b)
    bigger = max(a, b)

    if bigger == 0:
        return AmountMatch(match=True, discrepancy=Decimal("0"))

    relative = diff / bigger
    return AmountMatch(
        match=relative <= Decimal(str(tolerance)),
        discrepancy=diff,
        percent_diff=round_half_up(relative * 100),
    )


@dataclass(frozen=True)
class ScoredCandidate:
    """
    A payment record scored against one invoice.

    Lower combined_score is better; confidence is its 0-100 complement.
    """
    record: PaymentRecord
    amount: AmountMatch
    vendor_score: float
    combined_score: float
    confidence: int
    is_used: bool


def combined_score(
    vendor_score: float,
    amount: AmountMatch,
    vendor_weight: float = 0.6,
    amount_weight: float = 0.4
) -> float:
    """Blend vendor and amount distances; 0 is a perfect candidate."""
    return vendor_score * vendor_weight + amount.fraction * amount_weight


def score_to_confidence(score: float) -> int:
    """Turn a 0-1 distance into a 0-100 confidence."""
    return round_half_up((1 - score) * 100)
