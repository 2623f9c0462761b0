"""Pydantic domain models for bill-split."""

import hashlib
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    computed_field,
    model_validator,
)

from .exceptions import InvalidPolicyError, UnknownParticipantError
from .money import ZERO

# ============================================================================
# Enums
# ============================================================================


class SplitType(str, Enum):
    """How a total is divided."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"
    ITEM_BASED = "item_based"


class SplitStatus(str, Enum):
    """Split lifecycle: pending -> calculated -> finalized, or cancelled."""

    PENDING = "pending"
    CALCULATED = "calculated"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment progress of a single share."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class SettlementStatus(str, Enum):
    """Settlement lifecycle: active -> archived, one-way."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class ParticipantSettlementStatus(str, Enum):
    """Per-participant status inside a settlement."""

    DUE = "due"
    PAID = "paid"


class PaymentRecordStatus(str, Enum):
    """Proposed payment lifecycle: pending -> paid -> verified, or cancelled."""

    PENDING = "pending"
    PAID = "paid"
    VERIFIED = "verified"
    CANCELLED = "cancelled"


# ============================================================================
# Input Models
# ============================================================================


class ParticipantRef(BaseModel):
    """A fully-resolved participant handed in by the caller."""

    id: str = Field(validation_alias=AliasChoices("id", "_id", "participant_id"))
    name: str | None = None
    email: str | None = None


class ReceiptItem(BaseModel):
    """A line on a receipt."""

    name: str
    price: Decimal = Field(ge=0)
    quantity: Decimal = Field(default=Decimal("1"), ge=0)


class Receipt(BaseModel):
    """A receipt: total plus optional itemized lines."""

    total_amount: Decimal = Field(
        validation_alias=AliasChoices("total_amount", "totalAmount")
    )
    items: list[ReceiptItem] = Field(default_factory=list)
    restaurant: str = ""


class AssignedItem(BaseModel):
    """An item (or part of one) assigned to a participant."""

    item_name: str = Field(
        default="", validation_alias=AliasChoices("item_name", "itemName", "name")
    )
    item_price: Decimal = Field(
        validation_alias=AliasChoices("item_price", "itemPrice", "price")
    )
    quantity: Decimal = Decimal("1")
    item_id: str | None = Field(
        default=None, validation_alias=AliasChoices("item_id", "itemId")
    )

    @property
    def line_total(self) -> Decimal:
        """Price times quantity, unrounded."""
        return self.item_price * self.quantity


_PARTICIPANT_ID = AliasChoices("participant_id", "participantId")


class PercentageShare(BaseModel):
    """Percentage hint for one participant."""

    participant_id: str = Field(validation_alias=_PARTICIPANT_ID)
    percentage: Decimal


class CustomShare(BaseModel):
    """Absolute amount hint for one participant."""

    participant_id: str = Field(validation_alias=_PARTICIPANT_ID)
    amount: Decimal


class ItemAssignment(BaseModel):
    """Items assigned to one participant."""

    participant_id: str = Field(validation_alias=_PARTICIPANT_ID)
    items: list[AssignedItem] = Field(default_factory=list)


# ============================================================================
# Split Policies
# ============================================================================


class EqualPolicy(BaseModel):
    """Divide the total evenly."""

    split_type: Literal["equal"] = "equal"


class PercentagePolicy(BaseModel):
    """Divide the total by per-participant percentages."""

    split_type: Literal["percentage"] = "percentage"
    shares: list[PercentageShare]


class CustomPolicy(BaseModel):
    """Caller-supplied absolute amounts."""

    split_type: Literal["custom"] = "custom"
    shares: list[CustomShare]


class ItemBasedPolicy(BaseModel):
    """Each participant pays for the items assigned to them."""

    split_type: Literal["item_based"] = "item_based"
    assignments: list[ItemAssignment]


SplitPolicy = Annotated[
    EqualPolicy | PercentagePolicy | CustomPolicy | ItemBasedPolicy,
    Field(discriminator="split_type"),
]

_policy_adapter: TypeAdapter[Any] = TypeAdapter(SplitPolicy)

# Key that holds list-shaped hints for each split type
_HINT_KEYS = {
    SplitType.PERCENTAGE: "shares",
    SplitType.CUSTOM: "shares",
    SplitType.ITEM_BASED: "assignments",
}


def build_policy(
    split_type: str | SplitType, hints: list[dict] | dict | None = None
) -> EqualPolicy | PercentagePolicy | CustomPolicy | ItemBasedPolicy:
    """
    Build a split policy from boundary input.

    Hints may be a mapping with the policy fields, or a plain list of
    per-participant entries (``[{"participantId": ..., "percentage": ...}]``).

    Raises:
        InvalidPolicyError: If the split type is unknown or the hints are malformed
    """
    try:
        kind = SplitType(split_type)
    except ValueError as e:
        raise InvalidPolicyError(f"Unknown split type: {split_type}") from e

    payload: dict[str, Any] = {"split_type": kind.value}
    if isinstance(hints, list):
        if kind is not SplitType.EQUAL:
            payload[_HINT_KEYS[kind]] = hints
    elif hints:
        payload.update(hints)

    try:
        return _policy_adapter.validate_python(payload)
    except ValidationError as e:
        raise InvalidPolicyError(
            f"Invalid {kind.value} split hints: {e.error_count()} error(s)\n{e}"
        ) from e


# ============================================================================
# Breakdown Models
# ============================================================================


class EngineWarning(BaseModel):
    """A non-fatal condition reported alongside a result."""

    kind: str
    message: str


class ShareEntry(BaseModel):
    """One participant's row in a breakdown."""

    participant_id: str
    name: str | None = None
    amount: Decimal
    percentage: Decimal = ZERO  # informational only
    items: list[AssignedItem] = Field(default_factory=list)
    amount_paid: Decimal = ZERO

    @model_validator(mode="after")
    def _check_amount_paid(self) -> "ShareEntry":
        if self.amount_paid < 0 or self.amount_paid > self.amount:
            raise ValueError(
                f"amount_paid {self.amount_paid} must be between 0 and {self.amount}"
            )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def payment_status(self) -> PaymentStatus:
        """
        Derived from amount_paid vs amount.

        Nothing paid is always ``unpaid``, including on a zero share.
        """
        if self.amount_paid == 0:
            return PaymentStatus.UNPAID
        if self.amount_paid < self.amount:
            return PaymentStatus.PARTIAL
        return PaymentStatus.PAID


class Breakdown(BaseModel):
    """Ordered per-participant shares of a total."""

    split_type: SplitType
    total: Decimal
    entries: list[ShareEntry]
    receipt_total: Decimal | None = None  # item-based only
    warnings: list[EngineWarning] = Field(default_factory=list)

    def allocated(self) -> Decimal:
        """Sum of all entry amounts."""
        return sum((entry.amount for entry in self.entries), ZERO)

    def get_entry(self, participant_id: str) -> ShareEntry:
        """
        Get the entry for a participant.

        Raises:
            UnknownParticipantError: If the participant is not in the breakdown
        """
        for entry in self.entries:
            if entry.participant_id == participant_id:
                return entry
        raise UnknownParticipantError(f"Participant {participant_id} not in breakdown")

    def fingerprint(self) -> str:
        """
        SHA256 over split type, total and ordered entry amounts.

        Two computations over identical input must produce the same value.
        """
        parts = [self.split_type.value, str(self.total)]
        for entry in self.entries:
            parts.append(f"{entry.participant_id}:{entry.amount}")
        combined = "|".join(parts)
        return hashlib.sha256(combined.encode()).hexdigest()


class Split(BaseModel):
    """A bill-division computation and its lifecycle state."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = ""
    split_type: SplitType
    status: SplitStatus = SplitStatus.PENDING
    total: Decimal
    breakdown: Breakdown | None = None
    version: int = 0
    calculated_at: datetime | None = None
    finalized_at: datetime | None = None
    cancelled_at: datetime | None = None
    notes: str | None = None


# ============================================================================
# Balance Models
# ============================================================================


class LedgerEntry(BaseModel):
    """A participant's running totals, as a snapshot."""

    participant_id: str
    total_owed: Decimal = ZERO
    total_paid: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        """Paid minus owed: positive is owed money, negative owes money."""
        return self.total_paid - self.total_owed


class ParticipantBalance(BaseModel):
    """Signed net balance fed into the settlement engine."""

    participant_id: str
    net_balance: Decimal


class Transaction(BaseModel):
    """A proposed payment from a debtor to a creditor."""

    from_participant: str
    to_participant: str
    amount: Decimal = Field(gt=0)


class SettlementPlan(BaseModel):
    """Result of reducing a set of balances to payments."""

    transactions: list[Transaction] = Field(default_factory=list)
    warnings: list[EngineWarning] = Field(default_factory=list)
    unmatched: dict[str, Decimal] = Field(default_factory=dict)


# ============================================================================
# Settlement Models
# ============================================================================


class SettlementParticipant(BaseModel):
    """Payment progress of one participant inside a settlement."""

    participant_id: str
    name: str = "Participant"
    email: str = ""
    share: Decimal
    paid: Decimal = ZERO
    due: Decimal = ZERO
    status: ParticipantSettlementStatus = ParticipantSettlementStatus.DUE
    paid_at: datetime | None = None


class Settlement(BaseModel):
    """Session-scoped record of payments collected against a finalized split."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    split_id: str
    total_expense: Decimal
    total_collected: Decimal = ZERO
    remaining: Decimal = ZERO
    participants: list[SettlementParticipant]
    status: SettlementStatus = SettlementStatus.ACTIVE
    archived_at: datetime | None = None


class PaymentRecord(BaseModel):
    """A planned transaction tracked until the money has actually moved."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    from_participant: str
    to_participant: str
    amount: Decimal = Field(gt=0)
    status: PaymentRecordStatus = PaymentRecordStatus.PENDING
    paid_at: datetime | None = None
    verified_at: datetime | None = None
    cancelled_at: datetime | None = None
    notes: str | None = None
