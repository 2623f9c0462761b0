"""Invariant checks shared by both engines and by callers.

Every check raises a typed error instead of returning a flag, so an engine
can't hand back a breakdown or plan that silently fails one of them.
"""

import logging
from decimal import Decimal

from .exceptions import (
    BillSplitError,
    ConservationViolationError,
    InvalidPolicyError,
    TotalMismatchError,
    UnbalancedBalancesError,
)
from .models import Breakdown
from .money import from_cents, to_cents

logger = logging.getLogger(__name__)


def assert_conservation(
    breakdown: Breakdown, total: Decimal, tolerance_cents: int = 0
) -> None:
    """
    Verify that a breakdown accounts for the total.

    Args:
        breakdown: Computed breakdown
        total: Amount the entries must add up to
        tolerance_cents: Allowed absolute drift in cents (0 = exact)

    Raises:
        ConservationViolationError: If the drift exceeds the tolerance
    """
    allocated = sum(to_cents(entry.amount) for entry in breakdown.entries)
    residual = to_cents(total) - allocated

    if abs(residual) > tolerance_cents:
        logger.error(
            f"Conservation violated for {breakdown.split_type.value} split: "
            f"total {total}, allocated {from_cents(allocated)}, "
            f"residual {residual} cents"
        )
        raise ConservationViolationError(
            f"Breakdown does not account for the total:\n"
            f"  Total:     {total}\n"
            f"  Allocated: {from_cents(allocated)}\n"
            f"  Residual:  {residual} cents (tolerance {tolerance_cents})",
            context={
                "total": str(total),
                "breakdown": breakdown.model_dump(mode="json"),
            },
        )


def assert_non_negative(
    amount: Decimal,
    label: str = "amount",
    error: type[BillSplitError] = InvalidPolicyError,
) -> None:
    """Raise ``error`` if ``amount`` is below zero."""
    if amount < 0:
        raise error(f"{label} must not be negative, got {amount}")


def assert_balances_close_to_zero(total: Decimal, tolerance_cents: int = 1) -> None:
    """
    Verify that a closed group's balances net to (almost) zero.

    Raises:
        UnbalancedBalancesError: If the net sum is off by more than the tolerance
    """
    residual = to_cents(total)
    if abs(residual) > tolerance_cents:
        raise UnbalancedBalancesError(
            f"Balances net to {from_cents(residual)} instead of zero; "
            f"the excess is left unmatched"
        )


def assert_total_matches(
    expected: Decimal, actual: Decimal, tolerance_cents: int = 1
) -> None:
    """
    Verify that a supplied receipt total agrees with the computed one.

    Raises:
        TotalMismatchError: If they differ by more than the tolerance
    """
    residual = to_cents(expected) - to_cents(actual)
    if abs(residual) > tolerance_cents:
        raise TotalMismatchError(
            f"Item total {actual} does not match receipt total {expected} "
            f"(difference {from_cents(residual)})"
        )
