"""
SaleEngine — кампания сбора средств с whitelist, bonus и finalize/refund

Поток:
- owner добавляет инвесторов в whitelist (порог bonus, cap, ставка bonus)
- инвесторы вносят native value (buy_tokens / receive), owner регистрирует
  взносы в alt currency (register_alt_purchase)
- за каждый взнос: sale токены = amount * rate, bonus токены = прирост owed * rate
- finish (owner, после окна или по hard cap, один раз):
  * soft cap достигнут → value в wallet, пул settlement currency делится между
    sale и bonus токенами пропорционально supply, владение токенами → owner
  * soft cap не достигнут → refunding, каждый инвестор возвращает direct deposit

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. total_deposit инвестора <= whitelist_cap после любого принятого взноса
2. total_raised <= effective_hard_cap для прямых взносов (alt взносы — bypass)
3. finished: false → true ровно один раз; refunding ⇒ finished
4. Refund выплачивает только direct deposit и обнуляет его до перевода
5. Любой отказ (в т.ч. внешнего перевода) не оставляет частичных изменений
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from src.core.access import Pausable
from src.core.batch import BatchResult, run_batch
from src.core.domain.snapshots import CampaignPhase, CampaignSnapshot, InvestorSnapshot
from src.core.domain.units import (
    MAX_BONUS_RATE_PER_MILLE,
    SECONDS_PER_WEEK,
    STIPEND_GAS,
    derive_address,
    require_address,
    require_non_negative,
    require_positive_amount,
)
from src.core.errors import InvalidInput, LedgerError, LimitViolation, StateGuardViolation
from src.core.math.allocation import bonus_delta, flexed_cap, split_pool
from src.ledger.currency import SettlementCurrency
from src.ledger.native import NativeLedger
from src.settlement.redeemable_token import RedeemableToken

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class SaleConfig:
    """
    Параметры кампании.

    Caps и взносы — в native value, rate — sale token units за единицу взноса.
    cap_flex — знаковая поправка caps в ‰ от номинала.
    """

    soft_cap: int
    hard_cap: int
    start_time: int
    end_time: int
    rate: int
    wallet: str
    cap_flex: int = 0
    bonus_vesting_start: int = 0
    bonus_vesting_duration: int = 0


@dataclass(frozen=True)
class SalePolicy:
    """Политики Sale Engine."""

    max_bonus_rate_per_mille: int = MAX_BONUS_RATE_PER_MILLE
    max_time_extension_sec: int = SECONDS_PER_WEEK
    withdraw_failsafe_delay_sec: int = 2 * SECONDS_PER_WEEK
    payout_gas_budget: int = STIPEND_GAS


# =============================================================================
# RECORDS / RESULTS
# =============================================================================


@dataclass
class InvestorRecord:
    """Изменяемая запись инвестора (наружу отдаётся только InvestorSnapshot)."""

    bonus_threshold: int = 0
    whitelist_cap: int = 0
    bonus_rate_per_mille: int = 0
    direct_deposit: int = 0
    alt_deposit: int = 0

    @property
    def total_deposit(self) -> int:
        return self.direct_deposit + self.alt_deposit


@dataclass(frozen=True)
class PurchaseResult:
    """Результат принятого взноса."""

    beneficiary: str
    amount: int
    tokens: int
    bonus_tokens: int
    total_deposit: int

    # Только для alt взносов
    currency_code: Optional[str] = None
    external_tx_id: Optional[str] = None


@dataclass(frozen=True)
class FinishResult:
    """Результат finish."""

    refunding: bool
    finished_at: int
    forwarded_value: int
    sale_pool: int
    bonus_pool: int
    returned_currency: int


# =============================================================================
# ENGINE
# =============================================================================


class SaleEngine(Pausable):
    """Sale Engine: владеет sale и bonus токенами, ведёт учёт взносов и finalize/refund."""

    def __init__(
        self,
        address: str,
        owner: str,
        config: SaleConfig,
        ledger: NativeLedger,
        currency: SettlementCurrency,
        now: int,
        wallet_test_value: int,
        policy: Optional[SalePolicy] = None,
    ):
        """
        Args:
            address: Адрес engine (счёт native value и settlement currency)
            owner: Владелец кампании
            config: Параметры кампании
            ledger: Native value ledger
            currency: Settlement currency
            now: Время создания (сек)
            wallet_test_value: Ненулевой value, переводимый owner → wallet (подтверждение wallet)
            policy: Политики (по умолчанию SalePolicy())

        Raises:
            InvalidInput: Некорректные параметры кампании
            TransferFailed: wallet не принял test value
        """
        super().__init__(owner)
        self.address = require_address(address)
        self.policy = policy or SalePolicy()
        self.ledger = ledger
        self.currency = currency

        require_positive_amount(config.rate, "rate")
        require_positive_amount(config.soft_cap, "soft_cap")
        require_positive_amount(config.hard_cap, "hard_cap")
        if config.hard_cap < config.soft_cap:
            raise InvalidInput(
                f"hard_cap {config.hard_cap} below soft_cap {config.soft_cap}", reason="hard_cap_below_soft_cap"
            )
        require_address(config.wallet, "wallet")
        if config.start_time < now:
            raise InvalidInput(f"start_time {config.start_time} is in the past", reason="start_in_past")
        if config.end_time <= config.start_time:
            raise InvalidInput(
                f"end_time {config.end_time} must be after start_time {config.start_time}",
                reason="end_before_start",
            )
        self._require_cap_flex(config.cap_flex)
        require_positive_amount(wallet_test_value, "wallet_test_value")

        self.config = config
        self.start_time = config.start_time
        self.rate = config.rate
        self._soft_cap = config.soft_cap
        self._hard_cap = config.hard_cap
        self._cap_flex = config.cap_flex
        self._end_time = config.end_time
        self._time_extended = 0
        self._extended = False
        self._wallet = config.wallet

        self._finished = False
        self._refunding = False
        self._finished_at: Optional[int] = None
        self._total_raised = 0
        self._total_refunded = 0

        self._investors: Dict[str, InvestorRecord] = {}
        self._roster: List[str] = []
        self._alt_purchases: Set[Tuple[str, str]] = set()

        self.sale_token = RedeemableToken(
            address=derive_address(self.address, "sale-token"),
            owner=self.address,
            currency=currency,
        )
        self.bonus_token = RedeemableToken(
            address=derive_address(self.address, "bonus-token"),
            owner=self.address,
            currency=currency,
            vesting_start=config.bonus_vesting_start,
            vesting_duration=config.bonus_vesting_duration,
        )

        self.ledger.move(owner, self._wallet, wallet_test_value, self.policy.payout_gas_budget)

        logger.info(
            "Sale created",
            extra={
                "event": "sale.created",
                "sale": self.address,
                "soft_cap": config.soft_cap,
                "hard_cap": config.hard_cap,
                "start_time": config.start_time,
                "end_time": config.end_time,
            },
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def soft_cap(self) -> int:
        return self._soft_cap

    @property
    def hard_cap(self) -> int:
        return self._hard_cap

    @property
    def cap_flex(self) -> int:
        return self._cap_flex

    @property
    def end_time(self) -> int:
        return self._end_time

    @property
    def time_extended(self) -> int:
        return self._time_extended

    @property
    def wallet(self) -> str:
        return self._wallet

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def refunding(self) -> bool:
        return self._refunding

    @property
    def finished_at(self) -> Optional[int]:
        return self._finished_at

    @property
    def total_raised(self) -> int:
        return self._total_raised

    @property
    def total_refunded(self) -> int:
        return self._total_refunded

    @property
    def balance(self) -> int:
        return self.ledger.balance_of(self.address)

    @property
    def effective_soft_cap(self) -> int:
        return flexed_cap(self._soft_cap, self._cap_flex)

    @property
    def effective_hard_cap(self) -> int:
        return flexed_cap(self._hard_cap, self._cap_flex)

    @property
    def soft_cap_reached(self) -> bool:
        return self._total_raised >= self.effective_soft_cap

    @property
    def hard_cap_reached(self) -> bool:
        return self._total_raised >= self.effective_hard_cap

    @property
    def investors(self) -> List[str]:
        """Roster инвесторов в порядке первого ненулевого депозита."""
        return list(self._roster)

    def investor(self, address: str) -> InvestorSnapshot:
        record = self._investors.get(address, InvestorRecord())
        return InvestorSnapshot(
            address=address,
            bonus_threshold=record.bonus_threshold,
            whitelist_cap=record.whitelist_cap,
            bonus_rate_per_mille=record.bonus_rate_per_mille,
            direct_deposit=record.direct_deposit,
            alt_deposit=record.alt_deposit,
            total_deposit=record.total_deposit,
        )

    def whitelist_cap(self, address: str) -> int:
        record = self._investors.get(address)
        return record.whitelist_cap if record else 0

    def deposited(self, address: str) -> int:
        record = self._investors.get(address)
        return record.direct_deposit if record else 0

    def alt_deposited(self, address: str) -> int:
        record = self._investors.get(address)
        return record.alt_deposit if record else 0

    def phase(self, now: int) -> CampaignPhase:
        if self._finished:
            return CampaignPhase.REFUNDING if self._refunding else CampaignPhase.SUCCEEDED
        if now < self.start_time:
            return CampaignPhase.NOT_STARTED
        if now > self._end_time or self.hard_cap_reached:
            return CampaignPhase.CLOSED
        return CampaignPhase.OPEN

    # =========================================================================
    # GUARDS
    # =========================================================================

    def _require_not_finished(self) -> None:
        if self._finished:
            raise StateGuardViolation("sale is finished", reason="sale_finished")

    def _require_cap_flex(self, cap_flex: int) -> None:
        if isinstance(cap_flex, bool) or not isinstance(cap_flex, int):
            raise InvalidInput(f"cap_flex must be an integer, got {cap_flex!r}", reason="invalid_cap_flex")

    def _validate_contribution(
        self, beneficiary: str, amount: int, now: int, enforce_hard_cap: bool
    ) -> InvestorRecord:
        self._require_not_paused()
        self._require_not_finished()
        if now < self.start_time:
            raise StateGuardViolation("sale has not started", reason="sale_not_started")
        if now > self._end_time:
            raise StateGuardViolation("sale has ended", reason="sale_ended")

        require_address(beneficiary, "beneficiary")
        require_positive_amount(amount)

        record = self._investors.get(beneficiary)
        if record is None or record.whitelist_cap == 0:
            raise LimitViolation(f"{beneficiary} is not whitelisted", reason="not_whitelisted")
        if record.total_deposit + amount > record.whitelist_cap:
            raise LimitViolation(
                f"deposit {record.total_deposit} + {amount} exceeds whitelist cap {record.whitelist_cap}",
                reason="whitelist_cap_exceeded",
            )
        if enforce_hard_cap and self._total_raised + amount > self.effective_hard_cap:
            raise LimitViolation(
                f"raised {self._total_raised} + {amount} exceeds hard cap {self.effective_hard_cap}",
                reason="hard_cap_exceeded",
            )
        return record

    def _validate_whitelist_entry(self, investor: str, bonus_threshold: int, cap: int, bonus_rate_per_mille: int) -> None:
        require_address(investor, "investor")
        require_non_negative(bonus_threshold, "bonus_threshold")
        require_non_negative(cap, "cap")
        require_non_negative(bonus_rate_per_mille, "bonus_rate_per_mille")
        if bonus_rate_per_mille > self.policy.max_bonus_rate_per_mille:
            raise InvalidInput(
                f"bonus rate {bonus_rate_per_mille} exceeds {self.policy.max_bonus_rate_per_mille}",
                reason="bonus_rate_too_high",
            )

    # =========================================================================
    # WHITELIST
    # =========================================================================

    def whitelist(
        self,
        caller: str,
        investor: str,
        bonus_threshold: int,
        cap: int,
        bonus_rate_per_mille: int,
    ) -> None:
        """
        Добавление/изменение записи whitelist.

        Cap и ставку можно поднимать и опускать в любой момент до finish,
        включая cap = 0 (мягкий отзыв без удаления истории).

        Raises:
            AuthorizationError: caller не owner
            StateGuardViolation: sale завершён
            InvalidInput: null investor или ставка > 400‰
        """
        self._require_owner(caller)
        self._require_not_finished()
        self._validate_whitelist_entry(investor, bonus_threshold, cap, bonus_rate_per_mille)
        self._apply_whitelist(investor, bonus_threshold, cap, bonus_rate_per_mille)

    def whitelist_many(
        self,
        caller: str,
        investors: Iterable[str],
        bonus_threshold: int,
        cap: int,
        bonus_rate_per_mille: int,
    ) -> None:
        """Пакетный whitelist: все элементы проверяются до любого изменения."""
        self._require_owner(caller)
        self._require_not_finished()
        investors = list(investors)
        for investor in investors:
            self._validate_whitelist_entry(investor, bonus_threshold, cap, bonus_rate_per_mille)
        for investor in investors:
            self._apply_whitelist(investor, bonus_threshold, cap, bonus_rate_per_mille)

    def _apply_whitelist(self, investor: str, bonus_threshold: int, cap: int, bonus_rate_per_mille: int) -> None:
        record = self._investors.setdefault(investor, InvestorRecord())
        record.bonus_threshold = bonus_threshold
        record.whitelist_cap = cap
        record.bonus_rate_per_mille = bonus_rate_per_mille
        logger.info(
            "Investor whitelisted",
            extra={
                "event": "sale.whitelisted",
                "investor": investor,
                "bonus_threshold": bonus_threshold,
                "cap": cap,
                "bonus_rate_per_mille": bonus_rate_per_mille,
            },
        )

    # =========================================================================
    # CONTRIBUTIONS
    # =========================================================================

    def buy_tokens(self, caller: str, beneficiary: str, value: int, now: int) -> PurchaseResult:
        """
        Прямой взнос: value переводится со счёта caller на engine.

        Args:
            caller: Отправитель value
            beneficiary: Получатель токенов (должен быть в whitelist)
            value: Сумма взноса
            now: Текущее время (сек)

        Returns:
            PurchaseResult

        Raises:
            StateGuardViolation: пауза, вне окна, sale завершён
            InvalidInput: null beneficiary или нулевой value
            LimitViolation: whitelist cap, hard cap, недостаточно средств у caller
        """
        record = self._validate_contribution(beneficiary, value, now, enforce_hard_cap=True)
        self.ledger.move(caller, self.address, value, gas_budget=None)
        return self._credit_purchase(beneficiary, record, value, direct=True)

    def receive(self, caller: str, value: int, now: int) -> PurchaseResult:
        """Взнос без явного beneficiary: получатель токенов — caller."""
        return self.buy_tokens(caller, caller, value, now)

    def register_alt_purchase(
        self,
        caller: str,
        beneficiary: str,
        currency_code: str,
        external_tx_id: str,
        amount: int,
        now: int,
    ) -> PurchaseResult:
        """
        Регистрация взноса, полученного в другой валюте вне ledger.

        Учитывается в total_raised и alt deposit, но не в direct deposit (не
        возвращается при refund). Hard cap не проверяется: курс alt валюты
        определяется вне ledger. Пара (currency_code, external_tx_id)
        регистрируется один раз.

        Raises:
            AuthorizationError: caller не owner
            InvalidInput: пустой код/tx id, повторная регистрация
        """
        self._require_owner(caller)
        if not currency_code or not external_tx_id:
            raise InvalidInput("currency code and external tx id are required", reason="missing_alt_reference")
        key = (currency_code, external_tx_id)
        if key in self._alt_purchases:
            raise InvalidInput(
                f"alt purchase {currency_code}:{external_tx_id} already registered", reason="duplicate_alt_purchase"
            )

        record = self._validate_contribution(beneficiary, amount, now, enforce_hard_cap=False)
        self._alt_purchases.add(key)
        result = self._credit_purchase(beneficiary, record, amount, direct=False)
        return PurchaseResult(
            beneficiary=result.beneficiary,
            amount=result.amount,
            tokens=result.tokens,
            bonus_tokens=result.bonus_tokens,
            total_deposit=result.total_deposit,
            currency_code=currency_code,
            external_tx_id=external_tx_id,
        )

    def _credit_purchase(self, beneficiary: str, record: InvestorRecord, amount: int, direct: bool) -> PurchaseResult:
        deposit_before = record.total_deposit
        tokens = amount * self.rate
        bonus_tokens = (
            bonus_delta(deposit_before, amount, record.bonus_threshold, record.bonus_rate_per_mille) * self.rate
        )

        if deposit_before == 0 and beneficiary not in self._roster:
            self._roster.append(beneficiary)
        if direct:
            record.direct_deposit += amount
        else:
            record.alt_deposit += amount
        self._total_raised += amount

        self.sale_token.mint(self.address, beneficiary, tokens)
        if bonus_tokens > 0:
            self.bonus_token.mint(self.address, beneficiary, bonus_tokens)

        logger.debug(
            "Contribution accepted",
            extra={
                "event": "sale.contribution",
                "beneficiary": beneficiary,
                "amount": amount,
                "direct": direct,
                "tokens": tokens,
                "bonus_tokens": bonus_tokens,
                "total_raised": self._total_raised,
            },
        )
        return PurchaseResult(
            beneficiary=beneficiary,
            amount=amount,
            tokens=tokens,
            bonus_tokens=bonus_tokens,
            total_deposit=record.total_deposit,
        )

    # =========================================================================
    # CAMPAIGN ADMINISTRATION
    # =========================================================================

    def extend_time(self, caller: str, duration: int, now: int) -> int:
        """
        Продление окна кампании (один раз).

        Продление не больше max_time_extension_sec, только строго до end_time
        и до finish. Отклонённый вызов не расходует право на продление.

        Returns:
            Новый end_time

        Raises:
            StateGuardViolation: уже продлено, окно закончилось или sale завершён
            LimitViolation: duration больше max_time_extension_sec
        """
        self._require_owner(caller)
        require_positive_amount(duration, "duration")
        self._require_not_finished()
        if self._extended:
            raise StateGuardViolation("end time already extended", reason="already_extended")
        if now >= self._end_time:
            raise StateGuardViolation("cannot extend after end time", reason="sale_ended")
        if duration > self.policy.max_time_extension_sec:
            raise LimitViolation(
                f"extension {duration} exceeds {self.policy.max_time_extension_sec}",
                reason="extension_limit_exceeded",
            )

        self._extended = True
        self._time_extended = duration
        self._end_time += duration
        logger.info(
            "Sale extended",
            extra={"event": "sale.extended", "duration": duration, "end_time": self._end_time},
        )
        return self._end_time

    def update_cap_flex(self, caller: str, cap_flex: int) -> None:
        """Установка знаковой поправки caps (‰ от номинала)."""
        self._require_owner(caller)
        self._require_not_finished()
        self._require_cap_flex(cap_flex)
        self._cap_flex = cap_flex
        logger.info(
            "Cap flex updated",
            extra={
                "event": "sale.cap_flex_updated",
                "cap_flex": cap_flex,
                "effective_soft_cap": self.effective_soft_cap,
                "effective_hard_cap": self.effective_hard_cap,
            },
        )

    def change_wallet(self, caller: str, new_wallet: str, value: int) -> None:
        """
        Смена beneficiary wallet.

        Ненулевой value переводится caller → new_wallet как подтверждение
        контроля над wallet.

        Raises:
            StateGuardViolation: sale завершён
            InvalidInput: null wallet или нулевой value
            TransferFailed: new_wallet не принял value
        """
        self._require_owner(caller)
        self._require_not_finished()
        require_address(new_wallet, "wallet")
        require_positive_amount(value, "value")

        previous = self._wallet
        self._wallet = new_wallet
        try:
            self.ledger.move(caller, new_wallet, value, self.policy.payout_gas_budget)
        except LedgerError:
            self._wallet = previous
            raise

        logger.info(
            "Wallet changed",
            extra={"event": "sale.wallet_changed", "previous_wallet": previous, "wallet": new_wallet},
        )

    def withdraw(self, caller: str, now: int) -> int:
        """
        Вывод текущего баланса engine в wallet.

        Разрешён при достигнутом soft cap, либо безусловно через
        withdraw_failsafe_delay_sec после finished_at. total_raised не меняется.

        Returns:
            Выведенная сумма (0 при пустом балансе)

        Raises:
            StateGuardViolation: условия вывода не выполнены
            TransferFailed: wallet не принял value
        """
        self._require_owner(caller)
        failsafe = (
            self._finished
            and self._finished_at is not None
            and now >= self._finished_at + self.policy.withdraw_failsafe_delay_sec
        )
        if not (self.soft_cap_reached or failsafe):
            raise StateGuardViolation("withdrawal is not allowed yet", reason="withdraw_not_allowed")

        amount = self.balance
        if amount == 0:
            return 0

        self.ledger.move(self.address, self._wallet, amount, self.policy.payout_gas_budget)
        logger.info(
            "Withdrawal",
            extra={"event": "sale.withdrawal", "wallet": self._wallet, "amount": amount, "failsafe": failsafe},
        )
        return amount

    # =========================================================================
    # FINALIZE
    # =========================================================================

    def finish(self, caller: str, now: int) -> FinishResult:
        """
        Завершение кампании (один раз).

        Разрешено после end_time или при достигнутом hard cap.

        Soft cap не достигнут:
            refunding = True, minting токенов заморожен, native value остаётся
            для refund, settlement currency engine возвращается в wallet.
        Soft cap достигнут:
            minting заморожен, весь native value → wallet, settlement currency
            делится между sale и bonus токенами по supply, владение токенами → owner.

        Raises:
            StateGuardViolation: уже завершено или окно ещё открыто
            TransferFailed: wallet не принял value (состояние не меняется)
        """
        self._require_owner(caller)
        if self._finished:
            raise StateGuardViolation("sale already finished", reason="already_finished")
        if not (now > self._end_time or self.hard_cap_reached):
            raise StateGuardViolation("sale has not ended", reason="sale_not_ended")

        if not self.soft_cap_reached:
            return self._finish_refunding(now)
        return self._finish_success(now)

    def _finish_refunding(self, now: int) -> FinishResult:
        self._finished = True
        self._refunding = True
        self._finished_at = now

        self.sale_token.finish_minting(self.address)
        self.bonus_token.finish_minting(self.address)

        returned = self.currency.balance_of(self.address)
        if returned > 0:
            self.currency.transfer(self.address, self._wallet, returned)

        logger.info(
            "Sale finished, soft cap not reached, refunding",
            extra={
                "event": "sale.finished",
                "refunding": True,
                "total_raised": self._total_raised,
                "effective_soft_cap": self.effective_soft_cap,
            },
        )
        return FinishResult(
            refunding=True,
            finished_at=now,
            forwarded_value=0,
            sale_pool=0,
            bonus_pool=0,
            returned_currency=returned,
        )

    def _finish_success(self, now: int) -> FinishResult:
        self._finished = True
        self._finished_at = now

        forwarded = self.balance
        try:
            self.ledger.move(self.address, self._wallet, forwarded, self.policy.payout_gas_budget)
        except LedgerError:
            self._finished = False
            self._finished_at = None
            raise

        self.sale_token.finish_minting(self.address)
        self.bonus_token.finish_minting(self.address)

        split = split_pool(
            self.currency.balance_of(self.address),
            self.sale_token.total_supply,
            self.bonus_token.total_supply,
        )
        if split.sale_share > 0:
            self.currency.transfer(self.address, self.sale_token.address, split.sale_share)
        if split.bonus_share > 0:
            self.currency.transfer(self.address, self.bonus_token.address, split.bonus_share)

        self.sale_token.transfer_ownership(self.address, self.owner)
        self.bonus_token.transfer_ownership(self.address, self.owner)

        logger.info(
            "Sale finished successfully",
            extra={
                "event": "sale.finished",
                "refunding": False,
                "total_raised": self._total_raised,
                "forwarded_value": forwarded,
                "sale_pool": split.sale_share,
                "bonus_pool": split.bonus_share,
            },
        )
        return FinishResult(
            refunding=False,
            finished_at=now,
            forwarded_value=forwarded,
            sale_pool=split.sale_share,
            bonus_pool=split.bonus_share,
            returned_currency=0,
        )

    # =========================================================================
    # REFUNDS
    # =========================================================================

    def refund(self, caller: str, investor: str, now: int) -> int:
        """
        Возврат direct deposit инвестору (режим refunding).

        Вызвать может кто угодно. Alt deposit не возвращается.

        Returns:
            Возвращённая сумма

        Raises:
            StateGuardViolation: sale не в режиме refunding
            InvalidInput: null investor
            LimitViolation: нечего возвращать
            TransferFailed: инвестор не принял value (депозит не меняется)
        """
        self._require_refunding()
        require_address(investor, "investor")

        record = self._investors.get(investor)
        amount = record.direct_deposit if record else 0
        if amount == 0:
            raise LimitViolation(f"nothing to refund for {investor}", reason="nothing_to_refund")

        # Effects
        record.direct_deposit = 0
        self._total_refunded += amount

        # Transfer
        try:
            self.ledger.move(self.address, investor, amount, self.policy.payout_gas_budget)
        except LedgerError:
            record.direct_deposit = amount
            self._total_refunded -= amount
            raise

        logger.info(
            "Refunded",
            extra={"event": "sale.refunded", "investor": investor, "caller": caller, "amount": amount},
        )
        return amount

    def refund_many(self, caller: str, investors: Iterable[str], now: int) -> BatchResult:
        """Пакетный refund: каждый инвестор независимо."""
        self._require_refunding()
        return run_batch(investors, lambda investor: self.refund(caller, investor, now))

    def _require_refunding(self) -> None:
        if not (self._finished and self._refunding):
            raise StateGuardViolation("sale is not refunding", reason="not_refunding")

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def snapshot(self, now: int) -> CampaignSnapshot:
        return CampaignSnapshot(
            address=self.address,
            owner=self.owner,
            wallet=self._wallet,
            phase=self.phase(now),
            soft_cap=self._soft_cap,
            hard_cap=self._hard_cap,
            cap_flex=self._cap_flex,
            effective_soft_cap=self.effective_soft_cap,
            effective_hard_cap=self.effective_hard_cap,
            start_time=self.start_time,
            end_time=self._end_time,
            time_extended=self._time_extended,
            rate=self.rate,
            paused=self.paused,
            finished=self._finished,
            refunding=self._refunding,
            finished_at=self._finished_at,
            total_raised=self._total_raised,
            total_refunded=self._total_refunded,
            balance=self.balance,
            soft_cap_reached=self.soft_cap_reached,
            hard_cap_reached=self.hard_cap_reached,
            sale_token=self.sale_token.address,
            bonus_token=self.bonus_token.address,
            investors=[self.investor(address) for address in self._roster],
        )
