"""Reduce signed net balances to a list of debtor -> creditor payments.

The matching is a greedy two-pointer walk over creditors and debtors in the
caller's input order. It is linear and deterministic, but not guaranteed to
find the smallest possible number of payments for every debt graph.
"""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from ..config import DEFAULT_SETTLEMENT_TOLERANCE
from ..exceptions import ConservationViolationError, UnbalancedBalancesError
from ..models import (
    EngineWarning,
    LedgerEntry,
    ParticipantBalance,
    SettlementPlan,
    Transaction,
)
from ..money import from_cents, to_cents
from ..validation import assert_balances_close_to_zero, assert_non_negative

logger = logging.getLogger(__name__)


def balances_from_ledger(ledger: Iterable[LedgerEntry]) -> list[ParticipantBalance]:
    """Derive net balances (paid - owed) from ledger snapshots, keeping order."""
    return [
        ParticipantBalance(participant_id=entry.participant_id, net_balance=entry.balance)
        for entry in ledger
    ]


class SettlementEngine:
    """Turns a set of net balances into proposed payments."""

    def __init__(self, tolerance: Decimal = DEFAULT_SETTLEMENT_TOLERANCE):
        """Initialize the engine with the settled-balance tolerance."""
        self.tolerance = tolerance
        self.tolerance_cents = to_cents(tolerance)
        # Remaining balances below this many cents count as settled
        self.settled_below = max(self.tolerance_cents, 1)

    def minimize(self, balances: Sequence[ParticipantBalance]) -> list[Transaction]:
        """Transactions that zero out ``balances`` (warnings are only logged)."""
        return self.plan(balances).transactions

    def plan(self, balances: Sequence[ParticipantBalance]) -> SettlementPlan:
        """
        Match debtors to creditors.

        Steps:
        1. Round every balance to cents and check that the group nets to zero
        2. Split into creditors (> 0) and debtors (< 0), dropping settled ones
        3. Pay min(|debtor|, creditor) from the current debtor to the current
           creditor, then move past whichever side is settled
        4. Report anything left once either side runs out as unmatched

        Args:
            balances: Net balances in the caller's canonical order

        Returns:
            Settlement plan with transactions, warnings and unmatched residuals
        """
        cents = [(b.participant_id, to_cents(b.net_balance)) for b in balances]

        warnings: list[EngineWarning] = []
        try:
            assert_balances_close_to_zero(
                from_cents(sum(c for _, c in cents)), self.tolerance_cents
            )
        except UnbalancedBalancesError as e:
            logger.warning(e.message)
            warnings.append(e.to_warning())

        creditors = [[pid, c] for pid, c in cents if c >= self.settled_below]
        debtors = [[pid, -c] for pid, c in cents if -c >= self.settled_below]

        transactions = []
        i = 0
        j = 0
        while i < len(debtors) and j < len(creditors):
            debtor = debtors[i]
            creditor = creditors[j]

            amount = min(debtor[1], creditor[1])
            transactions.append(self._transaction(debtor[0], creditor[0], amount))

            debtor[1] -= amount
            creditor[1] -= amount

            if debtor[1] < self.settled_below:
                i += 1
            if creditor[1] < self.settled_below:
                j += 1

        unmatched = {
            pid: from_cents(-remaining) for pid, remaining in debtors[i:] if remaining
        }
        unmatched.update(
            {pid: from_cents(remaining) for pid, remaining in creditors[j:] if remaining}
        )
        if unmatched:
            logger.info(f"Left unmatched after settlement: {unmatched}")

        logger.debug(
            f"Settled {len(cents)} balances with {len(transactions)} transaction(s)"
        )
        return SettlementPlan(
            transactions=transactions, warnings=warnings, unmatched=unmatched
        )

    def plan_from_ledger(self, ledger: Iterable[LedgerEntry]) -> SettlementPlan:
        """Plan settlement for ledger snapshots."""
        return self.plan(balances_from_ledger(ledger))

    def _transaction(self, debtor: str, creditor: str, cents: int) -> Transaction:
        amount = from_cents(cents)
        assert_non_negative(amount, "Settlement amount", ConservationViolationError)
        if cents == 0:
            raise ConservationViolationError(
                f"Zero-amount transaction from {debtor} to {creditor}",
                context={"from": debtor, "to": creditor},
            )
        return Transaction(from_participant=debtor, to_participant=creditor, amount=amount)
