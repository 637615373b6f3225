"""
Contract Validation Module

Валидация JSON снапшотов ledger против схем в contracts/schema/.
"""

from .validators import (
    CampaignStateValidator,
    ContractValidator,
    EscrowStateValidator,
    SchemaLoader,
    SettlementTokenStateValidator,
    validate_campaign_state,
    validate_escrow_state,
    validate_settlement_token_state,
    validate_snapshot,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CampaignStateValidator",
    "SettlementTokenStateValidator",
    "EscrowStateValidator",
    # Functions
    "validate_campaign_state",
    "validate_settlement_token_state",
    "validate_escrow_state",
    "validate_snapshot",
]
