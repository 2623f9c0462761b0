"""Track payments collected against a finalized split."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from ..exceptions import (
    InvalidPaymentError,
    SettlementStateError,
    UnknownParticipantError,
)
from ..models import (
    ParticipantSettlementStatus,
    Settlement,
    SettlementParticipant,
    SettlementStatus,
    Split,
    SplitStatus,
)
from ..money import ZERO, quantize

logger = logging.getLogger(__name__)


def open_settlement(
    split: Split, session_id: str, settlement_id: str | None = None
) -> Settlement:
    """
    Open a settlement from a finalized split's breakdown.

    Raises:
        SettlementStateError: If the split is not finalized
    """
    if split.status != SplitStatus.FINALIZED or split.breakdown is None:
        raise SettlementStateError(
            "Split must be finalized before creating a settlement"
        )

    participants = [
        SettlementParticipant(
            participant_id=entry.participant_id,
            name=entry.name or "Participant",
            share=entry.amount,
            paid=ZERO,
            due=entry.amount,
        )
        for entry in split.breakdown.entries
    ]

    extra = {"id": settlement_id} if settlement_id else {}
    settlement = Settlement(
        session_id=session_id,
        split_id=split.id,
        total_expense=split.total,
        total_collected=ZERO,
        remaining=split.total,
        participants=participants,
        **extra,
    )
    logger.info(
        f"Opened settlement {settlement.id} for split {split.id} "
        f"({len(participants)} participants, {split.total} total)"
    )
    return settlement


def mark_paid(
    settlement: Settlement,
    participant_id: str,
    amount: Decimal | None = None,
    now: datetime | None = None,
) -> Settlement:
    """
    Record a full or partial payment from one participant.

    Without ``amount`` the participant's whole outstanding due is paid.
    Paid amounts are capped at the share.

    Raises:
        SettlementStateError: If the settlement is archived
        InvalidPaymentError: If the amount is not positive
        UnknownParticipantError: If the participant is not part of the settlement
    """
    if settlement.status == SettlementStatus.ARCHIVED:
        raise SettlementStateError(f"Settlement {settlement.id} is archived")

    target = next(
        (p for p in settlement.participants if p.participant_id == participant_id),
        None,
    )
    if target is None:
        raise UnknownParticipantError(
            f"Participant {participant_id} not in settlement {settlement.id}"
        )

    payment = target.due if amount is None else quantize(amount)
    if payment <= 0 and amount is not None:
        raise InvalidPaymentError(f"Payment must be positive, got {payment}")

    paid = min(target.paid + payment, target.share)
    due = max(target.share - paid, ZERO)
    settled = due <= 0
    already_paid = target.status == ParticipantSettlementStatus.PAID
    updated_target = target.model_copy(
        update={
            "paid": paid,
            "due": due,
            "status": (
                ParticipantSettlementStatus.PAID
                if settled
                else ParticipantSettlementStatus.DUE
            ),
            "paid_at": (
                (now or datetime.now(UTC))
                if settled and not already_paid
                else target.paid_at
            ),
        }
    )

    participants = [
        updated_target if p.participant_id == participant_id else p
        for p in settlement.participants
    ]
    total_collected = sum((p.paid for p in participants), ZERO)

    return settlement.model_copy(
        update={
            "participants": participants,
            "total_collected": total_collected,
            "remaining": settlement.total_expense - total_collected,
        }
    )


def archive(settlement: Settlement, now: datetime | None = None) -> Settlement:
    """
    Archive a settlement (one-way).

    Raises:
        SettlementStateError: If the settlement is already archived
    """
    if settlement.status == SettlementStatus.ARCHIVED:
        raise SettlementStateError(f"Settlement {settlement.id} is already archived")

    return settlement.model_copy(
        update={
            "status": SettlementStatus.ARCHIVED,
            "archived_at": now or datetime.now(UTC),
        }
    )
