"""bill-split - Split shared bills to the cent and settle group balances."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .exceptions import BillSplitError, ErrorKind
from .models import (
    Breakdown,
    LedgerEntry,
    ParticipantBalance,
    ParticipantRef,
    PaymentRecord,
    Settlement,
    SettlementPlan,
    ShareEntry,
    Split,
    Transaction,
    build_policy,
)
from .service import BillSplitService
from .settle.engine import SettlementEngine
from .split.engine import SplitEngine

__all__ = [
    "Settings",
    "load_settings",
    "BillSplitError",
    "ErrorKind",
    "Breakdown",
    "LedgerEntry",
    "ParticipantBalance",
    "ParticipantRef",
    "PaymentRecord",
    "Settlement",
    "SettlementPlan",
    "ShareEntry",
    "Split",
    "Transaction",
    "build_policy",
    "BillSplitService",
    "SettlementEngine",
    "SplitEngine",
]
