"""
Snapshots — immutable read-модели состояния ledger

Pydantic модели, представляющие снапшоты Sale Engine, Settlement Token и Escrow.
Совместимы с JSON Schema (contracts/schema/*.json) через model_dump(mode="json").

Снапшоты — только для чтения: мутация состояния идёт исключительно через
операции соответствующих классов.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.core.domain.units import MAX_BONUS_RATE_PER_MILLE


# =============================================================================
# ENUMS
# =============================================================================


class CampaignPhase(str, Enum):
    """
    Фаза кампании (производная от времени и флагов).

    NOT_STARTED: now < start_time
    OPEN: окно взносов открыто
    CLOSED: окно закончилось или hard cap достигнут, finish ещё не вызван
    SUCCEEDED: finish выполнен, soft cap достигнут
    REFUNDING: finish выполнен, soft cap не достигнут
    """

    NOT_STARTED = "NOT_STARTED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    SUCCEEDED = "SUCCEEDED"
    REFUNDING = "REFUNDING"


class EscrowVariant(str, Enum):
    """Вариант escrow: cap-gated (approve в wallet) или KYC-gated (approve в sale)."""

    CAP = "CAP"
    KYC = "KYC"


# =============================================================================
# SALE ENGINE
# =============================================================================


class InvestorSnapshot(BaseModel):
    """Запись инвестора."""

    address: str = Field(..., min_length=1, description="Адрес инвестора")
    bonus_threshold: int = Field(..., ge=0, description="Порог bonus (кумулятивный депозит)")
    whitelist_cap: int = Field(..., ge=0, description="Максимальный кумулятивный депозит")
    bonus_rate_per_mille: int = Field(
        ..., ge=0, le=MAX_BONUS_RATE_PER_MILLE, description="Ставка bonus (‰)"
    )
    direct_deposit: int = Field(..., ge=0, description="Депозит native value")
    alt_deposit: int = Field(..., ge=0, description="Депозит, зарегистрированный через alt currency")
    total_deposit: int = Field(..., ge=0, description="direct_deposit + alt_deposit")

    model_config = {"frozen": True}

    @field_validator("total_deposit")
    @classmethod
    def validate_total_deposit(cls, v: int, info) -> int:
        """total_deposit == direct_deposit + alt_deposit"""
        if "direct_deposit" in info.data and "alt_deposit" in info.data:
            expected = info.data["direct_deposit"] + info.data["alt_deposit"]
            if v != expected:
                raise ValueError(f"total_deposit {v} must equal direct + alt deposit {expected}")
        return v


class CampaignSnapshot(BaseModel):
    """Снапшот Sale Engine."""

    address: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    wallet: str = Field(..., min_length=1, description="Beneficiary wallet")
    phase: CampaignPhase

    # Caps
    soft_cap: int = Field(..., gt=0)
    hard_cap: int = Field(..., gt=0)
    cap_flex: int = Field(..., description="Знаковая поправка caps (‰)")
    effective_soft_cap: int = Field(..., ge=0)
    effective_hard_cap: int = Field(..., ge=0)

    # Окно
    start_time: int = Field(..., ge=0)
    end_time: int = Field(..., ge=0)
    time_extended: int = Field(..., ge=0, description="Однократное продление (сек)")

    rate: int = Field(..., gt=0, description="Sale token units за единицу взноса")

    # Флаги
    paused: bool
    finished: bool
    refunding: bool
    finished_at: Optional[int] = Field(None, ge=0)

    # Учёт
    total_raised: int = Field(..., ge=0)
    total_refunded: int = Field(..., ge=0)
    balance: int = Field(..., ge=0, description="Native value на счёте engine")
    soft_cap_reached: bool
    hard_cap_reached: bool

    sale_token: str = Field(..., min_length=1)
    bonus_token: str = Field(..., min_length=1)
    investors: List[InvestorSnapshot] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("end_time")
    @classmethod
    def validate_end_after_start(cls, v: int, info) -> int:
        """end_time > start_time"""
        if "start_time" in info.data and v <= info.data["start_time"]:
            raise ValueError(f"end_time {v} must be after start_time {info.data['start_time']}")
        return v

    @field_validator("refunding")
    @classmethod
    def validate_refunding_requires_finished(cls, v: bool, info) -> bool:
        """refunding возможен только после finish"""
        if v and not info.data.get("finished", False):
            raise ValueError("refunding requires finished")
        return v


# =============================================================================
# SETTLEMENT TOKEN
# =============================================================================


class HolderSnapshot(BaseModel):
    """Держатель settlement токена."""

    address: str = Field(..., min_length=1)
    balance: int = Field(..., ge=0)
    redeemed: int = Field(..., ge=0, description="Уже полученная settlement currency")

    model_config = {"frozen": True}


class SettlementTokenSnapshot(BaseModel):
    """Снапшот Redeemable Settlement Token."""

    address: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    total_supply: int = Field(..., ge=0)
    total_redeemed: int = Field(..., ge=0)
    settlement_pool: int = Field(..., ge=0, description="Баланс currency + уже выплаченное")
    minting_finished: bool
    vesting_start: int = Field(..., ge=0)
    vesting_duration: int = Field(..., ge=0)
    holders: List[HolderSnapshot] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("settlement_pool")
    @classmethod
    def validate_pool_covers_redeemed(cls, v: int, info) -> int:
        """Выплачено не больше пула"""
        if "total_redeemed" in info.data and info.data["total_redeemed"] > v:
            raise ValueError(f"total_redeemed {info.data['total_redeemed']} exceeds settlement_pool {v}")
        return v

    @field_validator("holders")
    @classmethod
    def validate_conservation(cls, v: List[HolderSnapshot], info) -> List[HolderSnapshot]:
        """sum(balance) == total_supply"""
        if "total_supply" in info.data:
            total = sum(h.balance for h in v)
            if total != info.data["total_supply"]:
                raise ValueError(f"sum of balances {total} != total_supply {info.data['total_supply']}")
        return v


# =============================================================================
# ESCROW
# =============================================================================


class EscrowDepositSnapshot(BaseModel):
    """Удерживаемый депозит участника."""

    address: str = Field(..., min_length=1)
    held: int = Field(..., ge=0)

    model_config = {"frozen": True}


class EscrowSnapshot(BaseModel):
    """Снапшот Escrow."""

    address: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    variant: EscrowVariant
    target: str = Field(..., min_length=1, description="Wallet (CAP) или адрес sale (KYC)")
    closed: bool
    balance: int = Field(..., ge=0)
    total_held: int = Field(..., ge=0)
    participants: List[EscrowDepositSnapshot] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("participants")
    @classmethod
    def validate_total_held(cls, v: List[EscrowDepositSnapshot], info) -> List[EscrowDepositSnapshot]:
        """sum(held) == total_held"""
        if "total_held" in info.data:
            total = sum(p.held for p in v)
            if total != info.data["total_held"]:
                raise ValueError(f"sum of held deposits {total} != total_held {info.data['total_held']}")
        return v
