"""Split lifecycle transitions and per-share payment recording.

Every function returns new objects and leaves its inputs untouched, so a
caller can persist the result with a version-guarded write.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

from ..exceptions import InvalidPaymentError, SplitStateError, StaleSplitError
from ..models import Breakdown, LedgerEntry, Split, SplitStatus, SplitType
from ..money import quantize

logger = logging.getLogger(__name__)


def new_split(split_type: SplitType | str, total: Decimal, name: str = "") -> Split:
    """Create a pending split."""
    return Split(name=name, split_type=SplitType(split_type), total=quantize(total))


def calculate(split: Split, breakdown: Breakdown, now: datetime | None = None) -> Split:
    """
    Attach a computed breakdown and move the split to ``calculated``.

    Recalculating a calculated split is allowed; finalized and cancelled
    splits are never recalculated.

    Raises:
        SplitStateError: If the split is finalized or cancelled
    """
    if split.status in (SplitStatus.FINALIZED, SplitStatus.CANCELLED):
        raise SplitStateError(
            f"Split {split.id} is {split.status.value} and cannot be recalculated"
        )

    return split.model_copy(
        update={
            "split_type": breakdown.split_type,
            "total": breakdown.total,
            "breakdown": breakdown,
            "status": SplitStatus.CALCULATED,
            "calculated_at": now or datetime.now(UTC),
            "version": split.version + 1,
        }
    )


def finalize(
    split: Split,
    ledger: Iterable[LedgerEntry],
    expected_version: int | None = None,
    now: datetime | None = None,
) -> tuple[Split, list[LedgerEntry]]:
    """
    Finalize a calculated split and commit its shares into the ledger.

    Each entry's amount is added to the participant's ``total_owed``.
    Participants missing from the ledger snapshot get a fresh entry.

    Args:
        split: Split to finalize
        ledger: Ledger snapshot before finalization
        expected_version: Version the caller read; a mismatch means another
                          writer got there first
        now: Timestamp override

    Returns:
        Tuple of (finalized split, ledger snapshot after finalization)

    Raises:
        StaleSplitError: If ``expected_version`` doesn't match
        SplitStateError: If the split is not ``calculated``
    """
    if expected_version is not None and expected_version != split.version:
        raise StaleSplitError(split.id, expected_version, split.version)

    if split.status == SplitStatus.FINALIZED:
        raise SplitStateError(f"Split {split.id} already finalized")
    if split.status != SplitStatus.CALCULATED or split.breakdown is None:
        raise SplitStateError(
            f"Only calculated splits can be finalized (split {split.id} is "
            f"{split.status.value})"
        )

    updated = {entry.participant_id: entry.model_copy() for entry in ledger}
    for share in split.breakdown.entries:
        current = updated.get(share.participant_id)
        if current is None:
            current = LedgerEntry(participant_id=share.participant_id)
        updated[share.participant_id] = current.model_copy(
            update={"total_owed": current.total_owed + share.amount}
        )

    finalized = split.model_copy(
        update={
            "status": SplitStatus.FINALIZED,
            "finalized_at": now or datetime.now(UTC),
            "version": split.version + 1,
        }
    )

    logger.info(
        f"Finalized split {split.id}: committed {split.breakdown.allocated()} "
        f"across {len(split.breakdown.entries)} participant(s)"
    )
    return finalized, list(updated.values())


def cancel(split: Split, now: datetime | None = None) -> Split:
    """
    Cancel a pending or calculated split.

    Raises:
        SplitStateError: If the split is already finalized or cancelled
    """
    if split.status in (SplitStatus.FINALIZED, SplitStatus.CANCELLED):
        raise SplitStateError(f"Split {split.id} is {split.status.value}")

    return split.model_copy(
        update={
            "status": SplitStatus.CANCELLED,
            "cancelled_at": now or datetime.now(UTC),
            "version": split.version + 1,
        }
    )


def record_payment(split: Split, participant_id: str, amount_paid: Decimal) -> Split:
    """
    Set how much a participant has paid towards their share.

    The payment status follows from the amount.

    Raises:
        SplitStateError: If the split has no breakdown or is cancelled
        InvalidPaymentError: If the amount is negative or exceeds the share
        UnknownParticipantError: If the participant is not in the breakdown
    """
    if split.breakdown is None or split.status == SplitStatus.CANCELLED:
        raise SplitStateError(f"Split {split.id} has no payable breakdown")

    share = split.breakdown.get_entry(participant_id)
    amount_paid = quantize(amount_paid)
    if amount_paid < 0:
        raise InvalidPaymentError(f"Payment must not be negative, got {amount_paid}")
    if amount_paid > share.amount:
        raise InvalidPaymentError(
            f"Payment {amount_paid} exceeds {participant_id}'s share of {share.amount}"
        )

    entries = [
        entry.model_copy(update={"amount_paid": amount_paid})
        if entry.participant_id == participant_id
        else entry
        for entry in split.breakdown.entries
    ]
    breakdown = split.breakdown.model_copy(update={"entries": entries})
    return split.model_copy(
        update={"breakdown": breakdown, "version": split.version + 1}
    )


def record_paid(
    ledger: Iterable[LedgerEntry], participant_id: str, amount: Decimal
) -> list[LedgerEntry]:
    """
    Add money a participant put in (e.g. paid the bill) to their ``total_paid``.

    Raises:
        InvalidPaymentError: If the amount is not positive
    """
    amount = quantize(amount)
    if amount <= 0:
        raise InvalidPaymentError(f"Paid amount must be positive, got {amount}")

    updated = []
    found = False
    for entry in ledger:
        if entry.participant_id == participant_id:
            entry = entry.model_copy(update={"total_paid": entry.total_paid + amount})
            found = True
        updated.append(entry)
    if not found:
        updated.append(LedgerEntry(participant_id=participant_id, total_paid=amount))
    return updated
