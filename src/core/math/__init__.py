"""
Core math — целочисленная арифметика распределения.

Bonus accrual, cap flex, pro-rata доли, vesting, раздел пула.
"""

from src.core.math.allocation import (
    PoolSplit,
    bonus_delta,
    bonus_owed,
    flexed_cap,
    per_mille,
    pro_rata_share,
    split_pool,
    vested_amount,
)

__all__ = [
    "PoolSplit",
    "per_mille",
    "bonus_owed",
    "bonus_delta",
    "flexed_cap",
    "pro_rata_share",
    "vested_amount",
    "split_pool",
]
