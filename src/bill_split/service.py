"""Service layer that composes the split and settlement engines.

This module provides a higher-level API for callers (API handlers, the CLI,
the MCP server). It performs no storage of its own: every method takes the
current state and returns the next one.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from .config import Settings
from .models import (
    Breakdown,
    LedgerEntry,
    ParticipantBalance,
    ParticipantRef,
    PaymentRecord,
    Settlement,
    SettlementPlan,
    Split,
    SplitPolicy,
)
from .settle import payments, tracker
from .settle.engine import SettlementEngine, balances_from_ledger
from .split import lifecycle
from .split.engine import SplitEngine

logger = logging.getLogger(__name__)


class BillSplitService:
    """Splits bills and settles group balances."""

    def __init__(self, settings: Settings):
        """Initialize the service and its engines from settings."""
        self.settings = settings
        self.split_engine = SplitEngine(tolerance=settings.policy_tolerance)
        self.settlement_engine = SettlementEngine(
            tolerance=settings.settlement_tolerance
        )

    def compute_breakdown(
        self,
        total: Decimal | None,
        policy: SplitPolicy,
        participants: Sequence[ParticipantRef],
    ) -> Breakdown:
        """Compute a breakdown without creating a split."""
        breakdown = self.split_engine.compute(total, policy, participants)
        logger.info(
            f"Computed {breakdown.split_type.value} breakdown of {breakdown.total} "
            f"for {len(breakdown.entries)} participant(s)"
        )
        for warning in breakdown.warnings:
            logger.warning(f"{warning.kind}: {warning.message}")
        return breakdown

    def create_split(
        self,
        total: Decimal | None,
        policy: SplitPolicy,
        participants: Sequence[ParticipantRef],
        name: str = "",
    ) -> Split:
        """
        Create a split and calculate its breakdown.

        Returns:
            A split in the ``calculated`` state
        """
        breakdown = self.compute_breakdown(total, policy, participants)
        split = lifecycle.new_split(breakdown.split_type, breakdown.total, name=name)
        return lifecycle.calculate(split, breakdown)

    def recalculate_split(
        self,
        split: Split,
        total: Decimal | None,
        policy: SplitPolicy,
        participants: Sequence[ParticipantRef],
    ) -> Split:
        """Recompute the breakdown of a split that is not yet finalized."""
        breakdown = self.compute_breakdown(total, policy, participants)
        return lifecycle.calculate(split, breakdown)

    def finalize_split(
        self,
        split: Split,
        ledger: Sequence[LedgerEntry],
        expected_version: int | None = None,
    ) -> tuple[Split, list[LedgerEntry]]:
        """Finalize a split, returning it with the updated ledger snapshot."""
        return lifecycle.finalize(split, ledger, expected_version=expected_version)

    def plan_settlement(self, ledger: Sequence[LedgerEntry]) -> SettlementPlan:
        """Plan the payments that settle a ledger snapshot."""
        return self.plan_settlement_for_balances(balances_from_ledger(ledger))

    def plan_settlement_for_balances(
        self, balances: Sequence[ParticipantBalance]
    ) -> SettlementPlan:
        """Plan the payments that settle a set of net balances."""
        plan = self.settlement_engine.plan(balances)
        logger.info(
            f"Planned {len(plan.transactions)} transaction(s) "
            f"for {len(balances)} balance(s)"
        )
        return plan

    def open_settlement(self, split: Split, session_id: str) -> Settlement:
        """Open a payment-tracking settlement for a finalized split."""
        return tracker.open_settlement(split, session_id)

    def record_settlement_payment(
        self,
        settlement: Settlement,
        participant_id: str,
        amount: Decimal | None = None,
    ) -> Settlement:
        """Record a full (default) or partial payment against a settlement."""
        return tracker.mark_paid(settlement, participant_id, amount)

    def record_payments(
        self, plan: SettlementPlan, session_id: str
    ) -> list[PaymentRecord]:
        """Turn a settlement plan into pending payment records."""
        return payments.record_transactions(plan, session_id)

    def mark_payment_paid(
        self, record: PaymentRecord, notes: str | None = None
    ) -> PaymentRecord:
        """Mark a pending payment as paid by the debtor."""
        return payments.mark_transaction_paid(record, notes=notes)

    def verify_payment(self, record: PaymentRecord) -> PaymentRecord:
        """Confirm that the creditor received a paid payment."""
        return payments.verify(record)

    def cancel_payment(self, record: PaymentRecord) -> PaymentRecord:
        """Cancel a payment that is still pending."""
        return payments.cancel(record)
