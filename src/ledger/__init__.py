"""Ledgers: native value с receive hooks и fixed-supply settlement currency."""

from .currency import CurrencyConfig, SettlementCurrency
from .native import NativeLedger, ReceiveHook, TransferResult, TransferStatus

__all__ = [
    "NativeLedger",
    "ReceiveHook",
    "TransferResult",
    "TransferStatus",
    "SettlementCurrency",
    "CurrencyConfig",
]
