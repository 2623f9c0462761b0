"""Core split logic: turn a total and a split policy into exact per-participant shares."""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from ..config import DEFAULT_POLICY_TOLERANCE
from ..exceptions import (
    ConservationViolationError,
    EmptyParticipantsError,
    InvalidPolicyError,
    NonPositiveTotalError,
    TotalMismatchError,
)
from ..models import (
    Breakdown,
    CustomPolicy,
    EngineWarning,
    EqualPolicy,
    ItemBasedPolicy,
    ParticipantRef,
    PercentagePolicy,
    Receipt,
    ShareEntry,
    SplitPolicy,
    SplitType,
)
from ..money import from_cents, percentage_of, quantize, to_cents
from ..validation import assert_conservation, assert_non_negative, assert_total_matches

logger = logging.getLogger(__name__)


def _as_decimal(value: Any) -> Decimal:
    """Coerce ints, strings and floats to Decimal without binary drift."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class SplitEngine:
    """Divides a total among participants under a split policy.

    The engine is stateless; one instance can serve any number of
    concurrent computations.
    """

    def __init__(self, tolerance: Decimal = DEFAULT_POLICY_TOLERANCE):
        """Initialize the engine with the reconciliation tolerance."""
        self.tolerance = tolerance
        self.tolerance_cents = to_cents(tolerance)

    def compute(
        self,
        total: Decimal | None,
        policy: SplitPolicy,
        participants: Sequence[ParticipantRef],
    ) -> Breakdown:
        """
        Compute a breakdown of ``total`` under ``policy``.

        Args:
            total: Amount to divide. Optional for item-based splits, where the
                   item sum is the effective total.
            policy: Split policy with its per-participant hints
            participants: Participants in their canonical (input) order

        Returns:
            Breakdown whose entries account for every cent of the total

        Raises:
            EmptyParticipantsError: If no participants are given
            NonPositiveTotalError: If the total is negative, or zero for
                                   equal/percentage splits
            InvalidPolicyError: If the hints don't reconcile with the total
            ConservationViolationError: If the result fails the conservation
                                        check (engine defect)
        """
        participants = list(participants)
        if not participants:
            raise EmptyParticipantsError()
        _check_unique_participants(participants)

        amount = None if total is None else _as_decimal(total)
        self._validate_total(amount, policy)

        if isinstance(policy, EqualPolicy):
            breakdown = self._split_equal(amount, participants)
            tolerance = 0
        elif isinstance(policy, PercentagePolicy):
            breakdown = self._split_percentage(amount, policy, participants)
            tolerance = 0
        elif isinstance(policy, CustomPolicy):
            breakdown = self._split_custom(amount, policy, participants)
            tolerance = self.tolerance_cents
        elif isinstance(policy, ItemBasedPolicy):
            breakdown = self._split_items(amount, policy, participants)
            tolerance = 0
        else:
            raise InvalidPolicyError(f"Unknown split policy: {policy!r}")

        try:
            assert_conservation(breakdown, breakdown.total, tolerance)
        except ConservationViolationError as e:
            e.context["input"] = {
                "total": None if amount is None else str(amount),
                "policy": policy.model_dump(mode="json"),
                "participants": [p.id for p in participants],
            }
            logger.error(f"Inconsistent breakdown, input for replay: {e.context['input']}")
            raise

        return breakdown

    def compute_for_receipt(
        self,
        receipt: Receipt,
        policy: SplitPolicy,
        participants: Sequence[ParticipantRef],
    ) -> Breakdown:
        """Compute a breakdown using the receipt's total amount."""
        return self.compute(receipt.total_amount, policy, participants)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_total(self, total: Decimal | None, policy: SplitPolicy) -> None:
        """Reject totals the policy can't work with."""
        if total is None:
            if isinstance(policy, ItemBasedPolicy):
                return
            raise NonPositiveTotalError(
                f"A total is required for {policy.split_type} splits"
            )

        if total < 0:
            raise NonPositiveTotalError(f"Total must be positive, got {total}")

        # Zero is a legitimate boundary for caller-priced splits only.
        # Compared in cents: a sub-cent total rounds to an empty split.
        if to_cents(total) == 0 and isinstance(policy, EqualPolicy | PercentagePolicy):
            raise NonPositiveTotalError(
                f"Total must be positive for {policy.split_type} splits, got {total}"
            )

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def _split_equal(
        self, total: Decimal, participants: list[ParticipantRef]
    ) -> Breakdown:
        """Equal shares; leftover cents go to the first participants in order."""
        total_cents = to_cents(total)
        base, remainder = divmod(total_cents, len(participants))

        entries = []
        for index, participant in enumerate(participants):
            cents = base + 1 if index < remainder else base
            entries.append(_entry(participant, cents, total))

        if remainder:
            logger.debug(
                f"Equal split of {total} leaves {remainder} odd cent(s) "
                f"for the first {remainder} participant(s)"
            )

        return Breakdown(split_type=SplitType.EQUAL, total=quantize(total), entries=entries)

    def _split_percentage(
        self,
        total: Decimal,
        policy: PercentagePolicy,
        participants: list[ParticipantRef],
    ) -> Breakdown:
        """Percentage shares with the rounding residual on the largest share."""
        hints = _index_hints(policy.shares, participants, "percentage")

        for participant_id, share in hints.items():
            assert_non_negative(share.percentage, f"Percentage for {participant_id}")

        percent_total = sum((share.percentage for share in hints.values()), Decimal("0"))
        if abs(percent_total - 100) > self.tolerance:
            raise InvalidPolicyError(
                f"Percentages must add up to 100 (±{self.tolerance}), got {percent_total}"
            )

        total_cents = to_cents(total)
        cents = []
        for participant in participants:
            share = hints.get(participant.id)
            pct = share.percentage if share else Decimal("0")
            cents.append(to_cents(total * pct / 100))

        residual = total_cents - sum(cents)
        if residual != 0:
            # max() keeps the first of equal candidates, so ties resolve by input order
            largest = max(range(len(cents)), key=lambda i: cents[i])
            cents[largest] += residual
            logger.info(
                f"Applied rounding adjustment: {residual} cent(s) "
                f"to participant {participants[largest].id}"
            )

        entries = []
        for participant, amount_cents in zip(participants, cents, strict=True):
            share = hints.get(participant.id)
            entry = _entry(participant, amount_cents, total)
            entry.percentage = quantize(share.percentage) if share else Decimal("0.00")
            entries.append(entry)

        return Breakdown(
            split_type=SplitType.PERCENTAGE, total=quantize(total), entries=entries
        )

    def _split_custom(
        self,
        total: Decimal,
        policy: CustomPolicy,
        participants: list[ParticipantRef],
    ) -> Breakdown:
        """Caller-supplied amounts, accepted verbatim once they reconcile."""
        hints = _index_hints(policy.shares, participants, "custom")

        for participant_id, share in hints.items():
            assert_non_negative(share.amount, f"Amount for {participant_id}")

        cents = [
            to_cents(hints[p.id].amount) if p.id in hints else 0 for p in participants
        ]
        residual = to_cents(total) - sum(cents)
        if abs(residual) > self.tolerance_cents:
            raise InvalidPolicyError(
                f"Custom amounts add up to {from_cents(sum(cents))}, "
                f"expected {quantize(total)} (±{self.tolerance})"
            )

        entries = [
            _entry(participant, amount_cents, total)
            for participant, amount_cents in zip(participants, cents, strict=True)
        ]
        return Breakdown(split_type=SplitType.CUSTOM, total=quantize(total), entries=entries)

    def _split_items(
        self,
        total: Decimal | None,
        policy: ItemBasedPolicy,
        participants: list[ParticipantRef],
    ) -> Breakdown:
        """Each participant's share is the sum of their assigned items."""
        hints = _index_hints(policy.assignments, participants, "item")

        cents = []
        for participant in participants:
            assignment = hints.get(participant.id)
            line_total = Decimal("0")
            for item in (assignment.items if assignment else []):
                label = f"Item '{item.item_name}' for {participant.id}"
                assert_non_negative(item.item_price, f"{label}: price")
                assert_non_negative(item.quantity, f"{label}: quantity")
                line_total += item.line_total
            cents.append(to_cents(line_total))

        effective_total = from_cents(sum(cents))

        warnings: list[EngineWarning] = []
        if total is not None:
            try:
                assert_total_matches(total, effective_total, self.tolerance_cents)
            except TotalMismatchError as e:
                logger.warning(e.message)
                warnings.append(e.to_warning())

        entries = []
        for participant, amount_cents in zip(participants, cents, strict=True):
            entry = _entry(participant, amount_cents, effective_total)
            assignment = hints.get(participant.id)
            entry.items = list(assignment.items) if assignment else []
            entries.append(entry)

        return Breakdown(
            split_type=SplitType.ITEM_BASED,
            total=effective_total,
            entries=entries,
            receipt_total=None if total is None else quantize(total),
            warnings=warnings,
        )


# ============================================================================
# Helpers
# ============================================================================


def _entry(participant: ParticipantRef, cents: int, total: Decimal) -> ShareEntry:
    amount = from_cents(cents)
    return ShareEntry(
        participant_id=participant.id,
        name=participant.name,
        amount=amount,
        percentage=percentage_of(amount, total),
    )


def _check_unique_participants(participants: list[ParticipantRef]) -> None:
    seen: set[str] = set()
    for participant in participants:
        if participant.id in seen:
            raise InvalidPolicyError(f"Participant {participant.id} is listed twice")
        seen.add(participant.id)


def _index_hints(hints: Iterable, participants: list[ParticipantRef], label: str) -> dict:
    """Map participant id -> hint, rejecting unknown and duplicate participants."""
    known = {participant.id for participant in participants}
    indexed: dict = {}
    for hint in hints:
        if hint.participant_id not in known:
            raise InvalidPolicyError(
                f"{label.capitalize()} hint for unknown participant {hint.participant_id}"
            )
        if hint.participant_id in indexed:
            raise InvalidPolicyError(
                f"Duplicate {label} hint for participant {hint.participant_id}"
            )
        indexed[hint.participant_id] = hint
    return indexed
