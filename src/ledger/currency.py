"""
SettlementCurrency — реальная settlement валюта с фиксированным supply

Стандартный transferable-balance ledger: transfer / balance_of / approve /
transfer_from / allowance. Весь supply при создании принадлежит distributor.
Sale Engine и Settlement Token используют его как внешнюю зависимость.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from src.core.domain.units import require_address, require_non_negative
from src.core.errors import LimitViolation


@dataclass(frozen=True)
class CurrencyConfig:
    """Параметры валюты. total_supply — в минимальных единицах."""

    name: str = "Telcoin"
    symbol: str = "TEL"
    decimals: int = 2
    total_supply: int = 10_000_000_000_000


class SettlementCurrency:
    """Fixed-supply currency, весь supply у distributor."""

    def __init__(self, distributor: str, config: CurrencyConfig | None = None):
        require_address(distributor, "distributor")
        self.config = config or CurrencyConfig()

        self._balances: Dict[str, int] = {distributor: self.config.total_supply}
        self._allowances: Dict[Tuple[str, str], int] = {}

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def symbol(self) -> str:
        return self.config.symbol

    @property
    def decimals(self) -> int:
        return self.config.decimals

    @property
    def total_supply(self) -> int:
        return self.config.total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def transfer(self, caller: str, to: str, amount: int) -> None:
        """
        Перевод со счёта caller.

        Raises:
            InvalidInput: null получатель или отрицательная сумма
            LimitViolation: сумма больше баланса
        """
        require_address(to, "recipient")
        require_non_negative(amount)
        self._debit(caller, amount)
        self._balances[to] = self.balance_of(to) + amount

    def approve(self, caller: str, spender: str, amount: int) -> None:
        require_address(spender, "spender")
        require_non_negative(amount)
        self._allowances[(caller, spender)] = amount

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> None:
        """
        Перевод со счёта owner в пределах allowance, выданного caller.

        Raises:
            LimitViolation: сумма больше allowance или баланса owner
        """
        require_address(to, "recipient")
        require_non_negative(amount)

        allowed = self.allowance(owner, caller)
        if amount > allowed:
            raise LimitViolation(
                f"amount {amount} exceeds allowance {allowed}", reason="insufficient_allowance"
            )

        self._debit(owner, amount)
        self._allowances[(owner, caller)] = allowed - amount
        self._balances[to] = self.balance_of(to) + amount

    def _debit(self, holder: str, amount: int) -> None:
        balance = self.balance_of(holder)
        if amount > balance:
            raise LimitViolation(
                f"amount {amount} exceeds balance {balance} of {holder}", reason="insufficient_balance"
            )
        self._balances[holder] = balance - amount
