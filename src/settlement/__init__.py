"""Settlement — redeemable токены с pro-rata и vesting выплатой settlement currency."""

from .redeemable_token import RedeemableToken

__all__ = [
    "RedeemableToken",
]
