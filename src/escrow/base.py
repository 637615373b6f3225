"""
Escrow — удержание взносов до решения владельца

Участники (или третьи лица от их имени) вносят native value. Owner решает:
- reject: весь удерживаемый депозит возвращается участнику
- approve: депозит уходит дальше (в wallet или в sale, зависит от варианта)

Reject переводит value с большим (но ограниченным) computation budget: дорогой
receive hook получателя проходит, а безусловно отказывающий получатель
приводит к отказу всей операции. Депозит при этом остаётся нетронутым, owner
может повторить reject с большим budget.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from src.core.access import Ownable
from src.core.batch import BatchResult, run_batch
from src.core.domain.snapshots import EscrowDepositSnapshot, EscrowSnapshot, EscrowVariant
from src.core.domain.units import STIPEND_GAS, require_address, require_positive_amount
from src.core.errors import LedgerError, LimitViolation, StateGuardViolation
from src.ledger.native import NativeLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EscrowPolicy:
    """Computation budgets исходящих переводов escrow."""

    refund_gas_budget: int = 100_000
    payout_gas_budget: int = STIPEND_GAS


class Escrow(Ownable, ABC):
    """Базовый escrow: приём, закрытие, reject. Approve реализуют варианты."""

    variant: EscrowVariant

    def __init__(
        self,
        address: str,
        owner: str,
        ledger: NativeLedger,
        policy: Optional[EscrowPolicy] = None,
    ):
        super().__init__(owner)
        self.address = require_address(address)
        self.ledger = ledger
        self.policy = policy or EscrowPolicy()

        self._closed = False
        self._held: Dict[str, int] = {}
        self._participants: List[str] = []

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def balance(self) -> int:
        return self.ledger.balance_of(self.address)

    @property
    def participants(self) -> List[str]:
        """Участники в порядке первого депозита."""
        return list(self._participants)

    @property
    def total_held(self) -> int:
        return sum(self._held.values())

    def deposited(self, participant: str) -> int:
        return self._held.get(participant, 0)

    @abstractmethod
    def _target(self) -> str:
        """Адрес, куда уходит approved депозит."""

    # =========================================================================
    # DEPOSITS
    # =========================================================================

    def place_value(self, caller: str, beneficiary: str, value: int) -> int:
        """
        Депозит value от caller в пользу beneficiary.

        Returns:
            Удерживаемый депозит beneficiary после операции

        Raises:
            StateGuardViolation: escrow закрыт
            InvalidInput: null beneficiary или нулевой value
            LimitViolation: у caller недостаточно средств
        """
        if self._closed:
            raise StateGuardViolation("escrow is closed", reason="escrow_closed")
        require_address(beneficiary, "beneficiary")
        require_positive_amount(value, "value")

        self.ledger.move(caller, self.address, value, gas_budget=None)

        if beneficiary not in self._held:
            self._participants.append(beneficiary)
        self._held[beneficiary] = self.deposited(beneficiary) + value

        logger.debug(
            "Value placed",
            extra={"event": "escrow.value_placed", "escrow": self.address, "beneficiary": beneficiary, "value": value},
        )
        return self._held[beneficiary]

    def receive(self, caller: str, value: int) -> int:
        """Депозит без явного beneficiary: в пользу caller."""
        return self.place_value(caller, caller, value)

    def close(self, caller: str) -> None:
        """Закрытие приёма депозитов (один раз). Reject/approve продолжают работать."""
        self._require_owner(caller)
        if self._closed:
            raise StateGuardViolation("escrow already closed", reason="escrow_closed")
        self._closed = True
        logger.info("Escrow closed", extra={"event": "escrow.closed", "escrow": self.address})

    # =========================================================================
    # REJECT
    # =========================================================================

    def reject(self, caller: str, participant: str, gas_budget: Optional[int] = None) -> int:
        """
        Возврат всего депозита участнику.

        Args:
            caller: Вызывающий (owner)
            participant: Участник
            gas_budget: Budget перевода (по умолчанию policy.refund_gas_budget)

        Returns:
            Возвращённая сумма

        Raises:
            AuthorizationError: caller не owner
            LimitViolation: депозит нулевой
            TransferFailed: получатель отказал или не уложился в budget (депозит не меняется)
        """
        self._require_owner(caller)
        amount = self._take_held(participant)

        budget = self.policy.refund_gas_budget if gas_budget is None else gas_budget
        try:
            self.ledger.move(self.address, participant, amount, budget)
        except LedgerError:
            self._held[participant] = amount
            raise

        logger.info(
            "Participant rejected",
            extra={"event": "escrow.rejected", "escrow": self.address, "participant": participant, "amount": amount},
        )
        return amount

    def reject_many(
        self, caller: str, participants: Iterable[str], gas_budget: Optional[int] = None
    ) -> BatchResult:
        """Пакетный reject: каждый участник атомарно и независимо."""
        self._require_owner(caller)
        return run_batch(participants, lambda participant: self.reject(caller, participant, gas_budget))

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _require_held(self, participant: str) -> int:
        require_address(participant, "participant")
        amount = self.deposited(participant)
        if amount == 0:
            raise LimitViolation(f"no value held for {participant}", reason="nothing_held")
        return amount

    def _take_held(self, participant: str) -> int:
        """Обнуление депозита до внешнего перевода; возвращает снятую сумму."""
        amount = self._require_held(participant)
        self._held[participant] = 0
        return amount

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def snapshot(self) -> EscrowSnapshot:
        return EscrowSnapshot(
            address=self.address,
            owner=self.owner,
            variant=self.variant,
            target=self._target(),
            closed=self._closed,
            balance=self.balance,
            total_held=self.total_held,
            participants=[
                EscrowDepositSnapshot(address=p, held=self.deposited(p)) for p in self._participants
            ],
        )
