"""Tests for split lifecycle transitions."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from bill_split.exceptions import (
    ErrorKind,
    InvalidPaymentError,
    SplitStateError,
    StaleSplitError,
    UnknownParticipantError,
)
from bill_split.models import (
    EqualPolicy,
    LedgerEntry,
    ParticipantRef,
    PaymentStatus,
    ShareEntry,
    SplitStatus,
    SplitType,
)
from bill_split.settle.engine import SettlementEngine, balances_from_ledger
from bill_split.split import lifecycle
from bill_split.split.engine import SplitEngine

NOW = datetime(2026, 3, 14, 19, 30, tzinfo=UTC)


@pytest.fixture
def participants():
    return [ParticipantRef(id=pid) for pid in ("A", "B", "C")]


@pytest.fixture
def breakdown(participants):
    return SplitEngine().compute(Decimal("100"), EqualPolicy(), participants)


@pytest.fixture
def calculated(breakdown):
    split = lifecycle.new_split(SplitType.EQUAL, Decimal("100"), name="Dinner")
    return lifecycle.calculate(split, breakdown, now=NOW)


@pytest.fixture
def ledger():
    """A paid the whole bill."""
    return [LedgerEntry(participant_id="A", total_paid=Decimal("100"))]


class TestCalculate:
    """Attaching a breakdown."""

    def test_new_split_is_pending(self):
        split = lifecycle.new_split("equal", Decimal("100"))

        assert split.status == SplitStatus.PENDING
        assert split.version == 0
        assert split.breakdown is None

    def test_calculate_moves_to_calculated(self, calculated, breakdown):
        assert calculated.status == SplitStatus.CALCULATED
        assert calculated.breakdown == breakdown
        assert calculated.calculated_at == NOW
        assert calculated.version == 1
        assert calculated.name == "Dinner"

    def test_recalculating_a_calculated_split_is_allowed(self, calculated, participants):
        new_breakdown = SplitEngine().compute(Decimal("90"), EqualPolicy(), participants)

        recalculated = lifecycle.calculate(calculated, new_breakdown)

        assert recalculated.total == Decimal("90.00")
        assert recalculated.version == 2

    def test_calculate_does_not_mutate_input(self, breakdown):
        split = lifecycle.new_split(SplitType.EQUAL, Decimal("100"))

        lifecycle.calculate(split, breakdown)

        assert split.status == SplitStatus.PENDING
        assert split.breakdown is None


class TestFinalize:
    """Finalizing commits shares into the ledger exactly once."""

    def test_finalize_commits_owed_totals(self, calculated, ledger):
        finalized, updated = lifecycle.finalize(calculated, ledger, now=NOW)

        assert finalized.status == SplitStatus.FINALIZED
        assert finalized.finalized_at == NOW
        owed = {entry.participant_id: entry.total_owed for entry in updated}
        assert owed == {
            "A": Decimal("33.34"),
            "B": Decimal("33.33"),
            "C": Decimal("33.33"),
        }
        assert updated[0].total_paid == Decimal("100")

    def test_finalize_leaves_inputs_untouched(self, calculated, ledger):
        lifecycle.finalize(calculated, ledger)

        assert calculated.status == SplitStatus.CALCULATED
        assert ledger[0].total_owed == Decimal("0")

    def test_finalizing_twice_is_rejected(self, calculated, ledger):
        finalized, _ = lifecycle.finalize(calculated, ledger)

        with pytest.raises(SplitStateError, match="already finalized"):
            lifecycle.finalize(finalized, ledger)

        assert finalized.breakdown == calculated.breakdown

    def test_pending_split_cannot_be_finalized(self, ledger):
        split = lifecycle.new_split(SplitType.EQUAL, Decimal("100"))

        with pytest.raises(SplitStateError, match="Only calculated splits"):
            lifecycle.finalize(split, ledger)

    def test_stale_version_rejected(self, calculated, ledger):
        """Of two writers that read version 1, only the first one wins."""
        finalized, _ = lifecycle.finalize(calculated, ledger, expected_version=1)

        with pytest.raises(StaleSplitError) as exc_info:
            lifecycle.finalize(finalized, ledger, expected_version=1)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2

    def test_finalized_split_is_never_recalculated(self, calculated, ledger, breakdown):
        finalized, _ = lifecycle.finalize(calculated, ledger)

        with pytest.raises(SplitStateError, match="cannot be recalculated"):
            lifecycle.calculate(finalized, breakdown)

    def test_finalized_ledger_settles(self, calculated, ledger):
        """End to end: A paid 100 for three people; B and C each owe A."""
        _, updated = lifecycle.finalize(calculated, ledger)

        transactions = SettlementEngine().minimize(balances_from_ledger(updated))

        assert [(t.from_participant, t.to_participant, t.amount) for t in transactions] == [
            ("B", "A", Decimal("33.33")),
            ("C", "A", Decimal("33.33")),
        ]


class TestCancel:
    """Cancelling is only possible before finalization."""

    def test_cancel_calculated(self, calculated):
        cancelled = lifecycle.cancel(calculated, now=NOW)

        assert cancelled.status == SplitStatus.CANCELLED
        assert cancelled.cancelled_at == NOW

    def test_cancelled_split_cannot_be_recalculated(self, calculated, breakdown):
        cancelled = lifecycle.cancel(calculated)

        with pytest.raises(SplitStateError):
            lifecycle.calculate(cancelled, breakdown)

    def test_finalized_split_cannot_be_cancelled(self, calculated, ledger):
        finalized, _ = lifecycle.finalize(calculated, ledger)

        with pytest.raises(SplitStateError):
            lifecycle.cancel(finalized)


class TestRecordPayment:
    """Per-share payment progress."""

    def test_partial_payment(self, calculated):
        split = lifecycle.record_payment(calculated, "B", Decimal("10"))

        entry = split.breakdown.get_entry("B")
        assert entry.amount_paid == Decimal("10.00")
        assert entry.payment_status == PaymentStatus.PARTIAL

    def test_full_payment(self, calculated):
        split = lifecycle.record_payment(calculated, "A", Decimal("33.34"))

        assert split.breakdown.get_entry("A").payment_status == PaymentStatus.PAID
        assert split.breakdown.get_entry("B").payment_status == PaymentStatus.UNPAID

    def test_reset_to_unpaid(self, calculated):
        split = lifecycle.record_payment(calculated, "B", Decimal("10"))
        split = lifecycle.record_payment(split, "B", Decimal("0"))

        assert split.breakdown.get_entry("B").payment_status == PaymentStatus.UNPAID

    def test_overpayment_rejected(self, calculated):
        with pytest.raises(InvalidPaymentError, match="exceeds"):
            lifecycle.record_payment(calculated, "B", Decimal("33.34"))

    def test_negative_payment_rejected(self, calculated):
        with pytest.raises(InvalidPaymentError):
            lifecycle.record_payment(calculated, "B", Decimal("-1"))

    def test_unknown_participant(self, calculated):
        with pytest.raises(UnknownParticipantError) as exc_info:
            lifecycle.record_payment(calculated, "Z", Decimal("1"))

        assert exc_info.value.to_dict()["kind"] == ErrorKind.UNKNOWN_PARTICIPANT.value

    def test_pending_split_has_nothing_to_pay(self):
        split = lifecycle.new_split(SplitType.EQUAL, Decimal("100"))

        with pytest.raises(SplitStateError):
            lifecycle.record_payment(split, "A", Decimal("1"))


class TestShareEntryInvariant:
    """amount_paid never exceeds amount."""

    def test_construction_rejects_overpayment(self):
        with pytest.raises(ValidationError):
            ShareEntry(participant_id="A", amount=Decimal("10"), amount_paid=Decimal("11"))

    def test_zero_share_with_nothing_paid_is_unpaid(self):
        entry = ShareEntry(participant_id="A", amount=Decimal("0"))

        assert entry.payment_status == PaymentStatus.UNPAID

    @pytest.mark.parametrize(
        ("paid", "status"),
        [
            ("0", PaymentStatus.UNPAID),
            ("0.01", PaymentStatus.PARTIAL),
            ("9.99", PaymentStatus.PARTIAL),
            ("10", PaymentStatus.PAID),
        ],
    )
    def test_status_follows_amount_paid(self, paid, status):
        entry = ShareEntry(participant_id="A", amount=Decimal("10"), amount_paid=Decimal(paid))

        assert entry.payment_status == status


class TestRecordPaid:
    """Money put in by participants."""

    def test_adds_to_existing_entry(self, ledger):
        updated = lifecycle.record_paid(ledger, "A", Decimal("20"))

        assert updated[0].total_paid == Decimal("120.00")
        assert ledger[0].total_paid == Decimal("100")

    def test_creates_missing_entry(self, ledger):
        updated = lifecycle.record_paid(ledger, "B", Decimal("5"))

        assert [entry.participant_id for entry in updated] == ["A", "B"]
        assert updated[1].balance == Decimal("5.00")

    def test_non_positive_rejected(self, ledger):
        with pytest.raises(InvalidPaymentError):
            lifecycle.record_paid(ledger, "A", Decimal("0"))
