"""Custom exceptions for bill-split."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable error kinds that callers map onto their transport."""

    INVALID_POLICY = "InvalidPolicy"
    EMPTY_PARTICIPANTS = "EmptyParticipants"
    NON_POSITIVE_TOTAL = "NonPositiveTotal"
    TOTAL_MISMATCH = "TotalMismatch"
    UNBALANCED_BALANCES = "UnbalancedBalances"
    CONSERVATION_VIOLATION = "ConservationViolation"
    INVALID_SPLIT_STATE = "InvalidSplitState"
    INVALID_SETTLEMENT_STATE = "InvalidSettlementState"
    INVALID_PAYMENT = "InvalidPayment"
    UNKNOWN_PARTICIPANT = "UnknownParticipant"
    INVALID_INPUT = "InvalidInput"
    CONFIGURATION = "Configuration"


class BillSplitError(Exception):
    """Base exception for all bill-split errors."""

    kind: ErrorKind = ErrorKind.INVALID_POLICY

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Structured form for callers that serialize errors."""
        return {"kind": self.kind.value, "message": self.message}


class ConfigurationError(BillSplitError):
    """Raised when configuration is invalid or missing."""

    kind = ErrorKind.CONFIGURATION


# ============================================================================
# Caller input errors
# ============================================================================


class InvalidPolicyError(BillSplitError):
    """Raised when percentages or custom amounts don't reconcile with the total."""

    kind = ErrorKind.INVALID_POLICY


class EmptyParticipantsError(BillSplitError):
    """Raised when a split is requested for nobody."""

    kind = ErrorKind.EMPTY_PARTICIPANTS

    def __init__(self, message: str | None = None):
        super().__init__(message or "A split needs at least one participant")


class NonPositiveTotalError(BillSplitError):
    """Raised when the total to split is not positive."""

    kind = ErrorKind.NON_POSITIVE_TOTAL


class SplitStateError(BillSplitError):
    """Raised when a split lifecycle transition is not allowed."""

    kind = ErrorKind.INVALID_SPLIT_STATE


class StaleSplitError(SplitStateError):
    """Raised when a split changed since the caller read it."""

    def __init__(self, split_id: str, expected: int, actual: int):
        self.split_id = split_id
        self.expected_version = expected
        self.actual_version = actual
        super().__init__(
            f"Split {split_id} is at version {actual}, expected {expected}"
        )


class SettlementStateError(BillSplitError):
    """Raised when a settlement lifecycle transition is not allowed."""

    kind = ErrorKind.INVALID_SETTLEMENT_STATE


class InvalidPaymentError(BillSplitError):
    """Raised when a recorded payment is negative or exceeds the share."""

    kind = ErrorKind.INVALID_PAYMENT


class UnknownParticipantError(BillSplitError):
    """Raised when a participant id is not part of a breakdown or settlement."""

    kind = ErrorKind.UNKNOWN_PARTICIPANT


class InvalidInputError(BillSplitError):
    """Raised when boundary input (JSON files, tool arguments) is malformed."""

    kind = ErrorKind.INVALID_INPUT


# ============================================================================
# Warnings
# ============================================================================


class EngineWarningError(BillSplitError):
    """Base class for non-fatal conditions that are reported next to a result."""

    def to_warning(self):
        """Convert into an EngineWarning record."""
        from .models import EngineWarning

        return EngineWarning(kind=self.kind.value, message=self.message)


class TotalMismatchError(EngineWarningError):
    """Raised when item totals don't match the receipt total."""

    kind = ErrorKind.TOTAL_MISMATCH


class UnbalancedBalancesError(EngineWarningError):
    """Raised when settlement balances don't net to zero."""

    kind = ErrorKind.UNBALANCED_BALANCES


# ============================================================================
# Defects
# ============================================================================


class ConservationViolationError(BillSplitError):
    """Raised when a computed breakdown doesn't account for the total.

    This is always an engine bug. The offending input is kept on the
    exception so it can be logged and replayed.
    """

    kind = ErrorKind.CONSERVATION_VIOLATION

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.context = context or {}
        super().__init__(message)
