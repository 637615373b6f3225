"""
RedeemableToken — settlement токен с pro-rata и vesting выплатой

Жизненный цикл:
1. mint (owner, до freeze) → баланс держателя, держатель в roster при первом mint
2. finish_minting (owner, один раз) → supply заморожен
3. В токен переводится settlement currency (пул)
4. redeem(holder) (кто угодно) → выплата доступной части доли

Пул = текущий баланс currency токена + уже выплаченное, поэтому пополнение
пула после freeze пропорционально увеличивает entitlement всех держателей.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. sum(balance) == total_supply
2. redeemed[holder] <= entitlement(holder, now)
3. Сумма всех выплат <= пул
4. Повторный redeem в тот же момент выплачивает 0
"""

import logging
from typing import Dict, Iterable, List

from src.core.access import Ownable
from src.core.batch import BatchResult, run_batch
from src.core.domain.snapshots import HolderSnapshot, SettlementTokenSnapshot
from src.core.domain.units import require_address, require_non_negative, require_positive_amount
from src.core.errors import LedgerError, LimitViolation, StateGuardViolation
from src.core.math.allocation import pro_rata_share, vested_amount
from src.ledger.currency import SettlementCurrency

logger = logging.getLogger(__name__)


class RedeemableToken(Ownable):
    """Mintable-then-frozen ledger с выплатой доли settlement пула."""

    def __init__(
        self,
        address: str,
        owner: str,
        currency: SettlementCurrency,
        vesting_start: int = 0,
        vesting_duration: int = 0,
    ):
        """
        Args:
            address: Адрес токена (счёт в settlement currency)
            owner: Владелец (mint / finish_minting / burn)
            currency: Settlement currency пула
            vesting_start: Начало vesting (сек)
            vesting_duration: Длительность vesting (сек), 0 — всё доступно с vesting_start
        """
        super().__init__(owner)
        self.address = require_address(address)
        self.currency = currency
        self.vesting_start = require_non_negative(vesting_start, "vesting_start")
        self.vesting_duration = require_non_negative(vesting_duration, "vesting_duration")

        self._balances: Dict[str, int] = {}
        self._redeemed: Dict[str, int] = {}
        self._holders: List[str] = []
        self._total_supply = 0
        self._total_redeemed = 0
        self._minting_finished = False

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def total_redeemed(self) -> int:
        return self._total_redeemed

    @property
    def minting_finished(self) -> bool:
        return self._minting_finished

    @property
    def holders(self) -> List[str]:
        """Roster держателей в порядке первого mint."""
        return list(self._holders)

    @property
    def settlement_pool(self) -> int:
        return self.currency.balance_of(self.address) + self._total_redeemed

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def redeemed(self, holder: str) -> int:
        return self._redeemed.get(holder, 0)

    def entitlement(self, holder: str, now: int) -> int:
        """
        Доля пула держателя, доступная к моменту now.

        floor(floor(pool * balance / supply) * vested_fraction(now))
        """
        share = pro_rata_share(self.settlement_pool, self.balance_of(holder), self._total_supply)
        return vested_amount(share, now, self.vesting_start, self.vesting_duration)

    def redeemable(self, holder: str, now: int) -> int:
        """Сколько будет выплачено redeem(holder) в момент now."""
        if not self._minting_finished:
            return 0
        return max(0, self.entitlement(holder, now) - self.redeemed(holder))

    # =========================================================================
    # MINTING
    # =========================================================================

    def mint(self, caller: str, recipient: str, amount: int) -> None:
        """
        Выпуск токенов.

        Raises:
            AuthorizationError: caller не owner
            StateGuardViolation: minting уже завершён
            InvalidInput: null recipient или нулевая сумма
        """
        self._require_owner(caller)
        self._require_minting()
        require_address(recipient, "recipient")
        require_positive_amount(amount)

        if recipient not in self._balances:
            self._holders.append(recipient)
        self._balances[recipient] = self.balance_of(recipient) + amount
        self._total_supply += amount

        logger.debug(
            "Tokens minted",
            extra={"event": "token.minted", "token": self.address, "recipient": recipient, "amount": amount},
        )

    def burn(self, caller: str, holder: str, amount: int) -> None:
        """
        Сжигание токенов держателя (до freeze).

        Raises:
            LimitViolation: amount больше баланса
        """
        self._require_owner(caller)
        self._require_minting()
        require_address(holder, "holder")
        require_positive_amount(amount)

        balance = self.balance_of(holder)
        if amount > balance:
            raise LimitViolation(f"burn amount {amount} exceeds balance {balance}", reason="burn_exceeds_balance")

        self._balances[holder] = balance - amount
        self._total_supply -= amount

        logger.debug(
            "Tokens burned",
            extra={"event": "token.burned", "token": self.address, "holder": holder, "amount": amount},
        )

    def finish_minting(self, caller: str) -> None:
        """Заморозка supply (один раз)."""
        self._require_owner(caller)
        self._require_minting()
        self._minting_finished = True
        logger.info(
            "Minting finished",
            extra={"event": "token.minting_finished", "token": self.address, "total_supply": self._total_supply},
        )

    def _require_minting(self) -> None:
        if self._minting_finished:
            raise StateGuardViolation("minting is finished", reason="minting_finished")

    # =========================================================================
    # REDEMPTION
    # =========================================================================

    def redeem(self, caller: str, holder: str, now: int) -> int:
        """
        Выплата доступной части доли держателю.

        Может вызывать кто угодно для любого держателя. Нулевой баланс — no-op (0).

        Args:
            caller: Вызывающий
            holder: Держатель
            now: Текущее время (сек)

        Returns:
            Выплаченная сумма settlement currency

        Raises:
            StateGuardViolation: minting не завершён
            InvalidInput: null holder
        """
        if not self._minting_finished:
            raise StateGuardViolation("redemption requires finished minting", reason="minting_not_finished")
        require_address(holder, "holder")

        payment = self.redeemable(holder, now)
        if payment == 0:
            return 0

        # Effects
        self._redeemed[holder] = self.redeemed(holder) + payment
        self._total_redeemed += payment

        # Transfer
        try:
            self.currency.transfer(self.address, holder, payment)
        except LedgerError:
            self._redeemed[holder] -= payment
            self._total_redeemed -= payment
            raise

        logger.info(
            "Redeemed",
            extra={
                "event": "token.redeemed",
                "token": self.address,
                "holder": holder,
                "caller": caller,
                "amount": payment,
            },
        )
        return payment

    def redeem_many(self, caller: str, holders: Iterable[str], now: int) -> BatchResult:
        """
        Пакетный redeem: каждый держатель независимо.

        Raises:
            StateGuardViolation: minting не завершён (для всего пакета)
        """
        if not self._minting_finished:
            raise StateGuardViolation("redemption requires finished minting", reason="minting_not_finished")
        return run_batch(holders, lambda holder: self.redeem(caller, holder, now))

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def snapshot(self) -> SettlementTokenSnapshot:
        return SettlementTokenSnapshot(
            address=self.address,
            owner=self.owner,
            total_supply=self._total_supply,
            total_redeemed=self._total_redeemed,
            settlement_pool=self.settlement_pool,
            minting_finished=self._minting_finished,
            vesting_start=self.vesting_start,
            vesting_duration=self.vesting_duration,
            holders=[
                HolderSnapshot(address=h, balance=self.balance_of(h), redeemed=self.redeemed(h))
                for h in self._holders
            ],
        )
