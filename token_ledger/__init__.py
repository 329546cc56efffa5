"""
Multi-Token Ledger

This module provides:
- Per-token balances for any number of accounts
- Operator approvals that delegate transfer rights for all tokens
- Single and batch transfers that commit atomically or not at all
- Mint and burn expressed as transfers from / to the null account
- An owner who mints, pauses, sets the metadata URI and hands over ownership
- Structured errors and events for every operation
"""

from .models import (
    MAX_UINT256,
    NULL_ACCOUNT,
    ApprovalForAll,
    BalanceView,
    CallContext,
    LedgerInfo,
    OwnershipTransferred,
    Paused,
    TokenInfo,
    TransferBatch,
    TransferSingle,
    Unpaused,
    URIChanged,
)
from .service import (
    BalanceOverflow,
    InsufficientBalance,
    InvalidApprover,
    InvalidArrayLength,
    InvalidOperator,
    InvalidOwner,
    InvalidReceiver,
    InvalidSender,
    LedgerError,
    LedgerNotPaused,
    LedgerPaused,
    LedgerService,
    MissingApprovalForAll,
    NotOwner,
)
from .storage import InMemoryStorage, LedgerStorage, WorkingSet
from .events import EventSink, FanOutEventSink, InMemoryEventSink, LoggingEventSink
from .observability import configure_logging

__all__ = [
    "MAX_UINT256",
    "NULL_ACCOUNT",
    "ApprovalForAll",
    "BalanceView",
    "CallContext",
    "LedgerInfo",
    "OwnershipTransferred",
    "Paused",
    "TokenInfo",
    "TransferBatch",
    "TransferSingle",
    "Unpaused",
    "URIChanged",
    "BalanceOverflow",
    "InsufficientBalance",
    "InvalidApprover",
    "InvalidArrayLength",
    "InvalidOperator",
    "InvalidOwner",
    "InvalidReceiver",
    "InvalidSender",
    "LedgerError",
    "LedgerNotPaused",
    "LedgerPaused",
    "LedgerService",
    "MissingApprovalForAll",
    "NotOwner",
    "InMemoryStorage",
    "LedgerStorage",
    "WorkingSet",
    "EventSink",
    "FanOutEventSink",
    "InMemoryEventSink",
    "LoggingEventSink",
    "configure_logging",
]
