"""Sale — кампания: whitelist, взносы, bonus, finalize/refund."""

from .engine import (
    FinishResult,
    InvestorRecord,
    PurchaseResult,
    SaleConfig,
    SaleEngine,
    SalePolicy,
)

__all__ = [
    "SaleEngine",
    "SaleConfig",
    "SalePolicy",
    "InvestorRecord",
    "PurchaseResult",
    "FinishResult",
]
