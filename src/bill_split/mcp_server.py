"""MCP server for bill-split: exposes split and settlement planning as tools."""

import logging
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .exceptions import BillSplitError, ConservationViolationError
from .inputs import loads_json, parse_balances, parse_split_request
from .money import format_money
from .service import BillSplitService

logger = logging.getLogger(__name__)

mcp_app = FastMCP("bill-split")

WORKFLOW_INSTRUCTIONS = """\
You are helping a group split a bill and settle up. Follow this workflow:

1. SPLIT: Ask for the total, the participants (in order) and how to split
   (equal, percentage, custom amounts, or by item). Call compute_split.
   Show every participant's share and confirm the shares add up.

2. SETTLE: Once everyone's paid/owed totals are known, call plan_settlement
   with each participant's net balance (paid minus owed).
   Show the payments as "X pays Y $amount".

Never invent amounts. If a tool reports an error, explain it and ask the
user to correct the input.\
"""


@dataclass
class SessionState:
    """Holds state between MCP tool calls within a single conversation."""

    service: BillSplitService | None = None


_state = SessionState()


def _ensure_service() -> BillSplitService:
    """Lazily initialize the BillSplitService (loads .env config)."""
    if _state.service is None:
        _state.service = BillSplitService(load_settings())
    return _state.service


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def compute_split(
    total: str, split_type: str, participants: list[str], hints_json: str = ""
) -> str:
    """Split a total among participants.

    Args:
        total: Amount to split, e.g. "100.00". Use "" for item-based splits
               without a receipt total.
        split_type: One of equal, percentage, custom, item_based.
        participants: Participant ids in order; leftover cents go to the first ones.
        hints_json: JSON list of per-participant hints, e.g.
            [{"participant_id": "A", "percentage": 60}] or
            [{"participant_id": "A", "amount": "70"}] or
            [{"participant_id": "A", "items": [{"item_name": "Pizza", "item_price": "10", "quantity": 2}]}]
    """
    try:
        service = _ensure_service()
        request = parse_split_request(
            {
                "total": total or None,
                "split_type": split_type,
                "participants": participants,
                "hints": loads_json(hints_json) if hints_json else None,
            }
        )
        breakdown = service.compute_breakdown(
            request.total, request.policy(), request.participants
        )

        lines = [f"{breakdown.split_type.value} split of {format_money(breakdown.total)}:"]
        for entry in breakdown.entries:
            lines.append(
                f"  - {entry.participant_id}: {format_money(entry.amount)} "
                f"({entry.percentage}%)"
            )
        for warning in breakdown.warnings:
            lines.append(f"Warning ({warning.kind}): {warning.message}")
        lines.append(f"Allocated: {format_money(breakdown.allocated())}")
        return "\n".join(lines)
    except ConservationViolationError as e:
        logger.error(f"Conservation check failed, context: {e.context}")
        return f"Internal error ({e.kind.value}): {e}"
    except BillSplitError as e:
        return f"Error ({e.kind.value}): {e}"
    except Exception as e:
        logger.exception("compute_split failed")
        return f"Failed to compute split: {e}"


@mcp_app.tool()
def plan_settlement(balances_json: str) -> str:
    """Plan the payments that settle a group.

    Args:
        balances_json: JSON mapping of participant id to net balance
            (paid minus owed), e.g. {"A": "-50", "B": "30", "C": "20"}, or a
            list of {"participant_id", "total_owed", "total_paid"} rows.
    """
    try:
        service = _ensure_service()
        balances = parse_balances(loads_json(balances_json))
        plan = service.plan_settlement_for_balances(balances)

        if not plan.transactions:
            lines = ["Everyone is settled up."]
        else:
            lines = [f"Payments ({len(plan.transactions)}):"]
            for tx in plan.transactions:
                lines.append(
                    f"  - {tx.from_participant} pays {tx.to_participant} "
                    f"{format_money(tx.amount)}"
                )
        for warning in plan.warnings:
            lines.append(f"Warning ({warning.kind}): {warning.message}")
        for participant_id, balance in plan.unmatched.items():
            lines.append(f"Unmatched: {participant_id} {format_money(balance)}")
        return "\n".join(lines)
    except ConservationViolationError as e:
        logger.error(f"Settlement check failed, context: {e.context}")
        return f"Internal error ({e.kind.value}): {e}"
    except BillSplitError as e:
        return f"Error ({e.kind.value}): {e}"
    except Exception as e:
        logger.exception("plan_settlement failed")
        return f"Failed to plan settlement: {e}"


# ---------------------------------------------------------------------------
# MCP Prompt
# ---------------------------------------------------------------------------


@mcp_app.prompt()
def split_workflow() -> str:
    """Orchestration instructions for splitting a bill and settling up."""
    return WORKFLOW_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
