"""Track each planned transaction as a payment record.

A record starts ``pending`` when the plan is accepted, becomes ``paid`` when
the debtor reports the transfer and ``verified`` once the creditor confirms
it. Only pending records can be cancelled.
"""

import logging
from datetime import UTC, datetime

from ..exceptions import SettlementStateError
from ..models import PaymentRecord, PaymentRecordStatus, SettlementPlan

logger = logging.getLogger(__name__)


def record_transactions(plan: SettlementPlan, session_id: str) -> list[PaymentRecord]:
    """Create one pending record per planned transaction, in plan order."""
    records = [
        PaymentRecord(
            session_id=session_id,
            from_participant=tx.from_participant,
            to_participant=tx.to_participant,
            amount=tx.amount,
        )
        for tx in plan.transactions
    ]
    logger.info(f"Recorded {len(records)} pending payment(s) for session {session_id}")
    return records


def mark_transaction_paid(
    record: PaymentRecord, notes: str | None = None, now: datetime | None = None
) -> PaymentRecord:
    """
    Mark a pending payment as paid by the debtor.

    Raises:
        SettlementStateError: If the record is not pending
    """
    _require_status(record, PaymentRecordStatus.PENDING, "marked paid")
    update = {
        "status": PaymentRecordStatus.PAID,
        "paid_at": now or datetime.now(UTC),
    }
    if notes is not None:
        update["notes"] = notes
    return record.model_copy(update=update)


def verify(record: PaymentRecord, now: datetime | None = None) -> PaymentRecord:
    """
    Confirm receipt of a paid payment.

    Raises:
        SettlementStateError: If the record is not paid
    """
    _require_status(record, PaymentRecordStatus.PAID, "verified")
    return record.model_copy(
        update={
            "status": PaymentRecordStatus.VERIFIED,
            "verified_at": now or datetime.now(UTC),
        }
    )


def cancel(record: PaymentRecord, now: datetime | None = None) -> PaymentRecord:
    """
    Cancel a payment that hasn't been made yet.

    Raises:
        SettlementStateError: If the record is not pending
    """
    _require_status(record, PaymentRecordStatus.PENDING, "cancelled")
    return record.model_copy(
        update={
            "status": PaymentRecordStatus.CANCELLED,
            "cancelled_at": now or datetime.now(UTC),
        }
    )


def _require_status(
    record: PaymentRecord, expected: PaymentRecordStatus, action: str
) -> None:
    if record.status != expected:
        raise SettlementStateError(
            f"Payment {record.id} is {record.status.value} and cannot be {action}"
        )
