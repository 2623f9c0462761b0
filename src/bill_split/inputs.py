"""Parse boundary input (JSON documents) into engine arguments."""

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from .exceptions import InvalidInputError
from .models import (
    LedgerEntry,
    ParticipantBalance,
    ParticipantRef,
    SplitType,
    build_policy,
)


class SplitRequest(BaseModel):
    """A split request as sent by callers.

    ``participants`` may be plain ids or objects; ``hints`` carries the
    policy-specific breakdown hints (percentages, amounts or item
    assignments).
    """

    total: Decimal | None = Field(
        default=None, validation_alias=AliasChoices("total", "totalAmount")
    )
    split_type: SplitType = Field(
        default=SplitType.EQUAL, validation_alias=AliasChoices("split_type", "splitType")
    )
    participants: list[ParticipantRef]
    hints: list[dict[str, Any]] | dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("hints", "breakdown", "breakdownHints"),
    )
    name: str = ""

    @field_validator("participants", mode="before")
    @classmethod
    def _ids_as_refs(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"id": v} if isinstance(v, str) else v for v in value]
        return value

    def policy(self):
        """Build the split policy for this request."""
        return build_policy(self.split_type, self.hints)


def parse_split_request(data: Any) -> SplitRequest:
    """
    Validate a decoded split request.

    Raises:
        InvalidInputError: If the request is malformed
    """
    try:
        return SplitRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid split request:\n{e}") from e


def parse_balances(data: Any) -> list[ParticipantBalance]:
    """
    Turn decoded balance input into net balances, keeping input order.

    Accepted shapes:
    - ``{"A": "-50", "B": "30"}`` (id -> net balance)
    - ``[{"participant_id": "A", "net_balance": "-50"}, ...]``
    - ``[{"participant_id": "A", "total_owed": "50", "total_paid": "0"}, ...]``

    Raises:
        InvalidInputError: If the input has none of these shapes
    """
    try:
        if isinstance(data, dict):
            return [
                ParticipantBalance(participant_id=pid, net_balance=balance)
                for pid, balance in data.items()
            ]
        if isinstance(data, list):
            balances = []
            for row in data:
                if isinstance(row, dict) and "net_balance" in row:
                    balances.append(ParticipantBalance.model_validate(row))
                else:
                    entry = LedgerEntry.model_validate(row)
                    balances.append(
                        ParticipantBalance(
                            participant_id=entry.participant_id,
                            net_balance=entry.balance,
                        )
                    )
            return balances
    except ValidationError as e:
        raise InvalidInputError(f"Invalid balances:\n{e}") from e

    raise InvalidInputError(
        f"Balances must be a mapping or a list, got {type(data).__name__}"
    )


def load_json(path: Path) -> Any:
    """
    Read a JSON document.

    Numbers are decoded as Decimal so amounts never pass through float.
    """
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"{path} is not valid JSON: {e}") from e


def loads_json(text: str) -> Any:
    """Decode a JSON string, with Decimal numbers."""
    try:
        return json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON: {e}") from e
