"""
Domain models and value objects.

Единицы и адреса, immutable снапшоты кампании, токенов и escrow.
"""

from src.core.domain.snapshots import (
    CampaignPhase,
    CampaignSnapshot,
    EscrowDepositSnapshot,
    EscrowSnapshot,
    EscrowVariant,
    HolderSnapshot,
    InvestorSnapshot,
    SettlementTokenSnapshot,
)
from src.core.domain.units import (
    MAX_BONUS_RATE_PER_MILLE,
    PER_MILLE,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_WEEK,
    STIPEND_GAS,
    ZERO_ADDRESS,
    derive_address,
    is_null_address,
    require_address,
    require_non_negative,
    require_positive_amount,
)

__all__ = [
    # Units module
    "SECONDS_PER_HOUR",
    "SECONDS_PER_DAY",
    "SECONDS_PER_WEEK",
    "PER_MILLE",
    "MAX_BONUS_RATE_PER_MILLE",
    "STIPEND_GAS",
    "ZERO_ADDRESS",
    "is_null_address",
    "require_address",
    "derive_address",
    "require_positive_amount",
    "require_non_negative",
    # Snapshots
    "CampaignPhase",
    "EscrowVariant",
    "InvestorSnapshot",
    "CampaignSnapshot",
    "HolderSnapshot",
    "SettlementTokenSnapshot",
    "EscrowDepositSnapshot",
    "EscrowSnapshot",
]
