"""Settlement planning and payment tracking."""

from .engine import SettlementEngine, balances_from_ledger
from .payments import record_transactions

__all__ = ["SettlementEngine", "balances_from_ledger", "record_transactions"]
