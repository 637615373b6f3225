"""
NativeLedger — native value (wei) с receive hooks получателей

Исходящий перевод — единственное место, где управление уходит к логике получателя.
Перевод моделируется как fallible эффект с явным результатом:
- SUCCESS: value зачислен, hook отработал
- FAILED: hook получателя отказал (revert или исключение в hook, в т.ч. при re-entry)
- BUDGET_EXCEEDED: стоимость hook превышает переданный computation budget

При любом не-SUCCESS исходе балансы ledger возвращаются к состоянию до
перевода, включая переводы, которые hook успел сделать сам. Откатываются
только балансы этого ledger: операции других объектов, завершённые внутри
hook, отвечают за свой откат сами.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from src.core.domain.units import STIPEND_GAS, require_address, require_non_negative
from src.core.errors import LedgerError, LimitViolation, TransferFailed

logger = logging.getLogger(__name__)


class TransferStatus(str, Enum):
    """Исход исходящего перевода."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    BUDGET_EXCEEDED = "BUDGET_EXCEEDED"


@dataclass(frozen=True)
class TransferResult:
    """Результат перевода native value."""

    status: TransferStatus
    sender: str
    recipient: str
    amount: int
    gas_budget: Optional[int]
    gas_used: int

    # Детали
    details: str

    @property
    def ok(self) -> bool:
        return self.status == TransferStatus.SUCCESS


@dataclass(frozen=True)
class ReceiveHook:
    """
    Логика получателя, исполняемая при зачислении value.

    Attributes:
        gas_cost: Стоимость исполнения hook (в единицах computation budget)
        reverts: True — hook безусловно отклоняет любое зачисление
        on_receive: Callback(sender, amount); LedgerError внутри → FAILED
    """

    gas_cost: int = 0
    reverts: bool = False
    on_receive: Optional[Callable[[str, int], None]] = None


class NativeLedger:
    """Балансы native value всех адресов (EOA и контрактов)."""

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def credit(self, address: str, amount: int) -> None:
        """Genesis-зачисление (пополнение внешнего аккаунта)."""
        require_address(address)
        require_non_negative(amount)
        self._balances[address] = self.balance_of(address) + amount

    def register_hook(self, address: str, hook: ReceiveHook) -> None:
        require_address(address)
        self._hooks[address] = hook

    def send(
        self,
        sender: str,
        recipient: str,
        amount: int,
        gas_budget: Optional[int] = STIPEND_GAS,
    ) -> TransferResult:
        """
        Перевод value с ограниченным computation budget.

        Args:
            sender: Отправитель
            recipient: Получатель (не null)
            amount: Сумма (>= 0; 0 — no-op SUCCESS без вызова hook)
            gas_budget: Budget для hook получателя; None — без ограничения

        Returns:
            TransferResult

        Raises:
            InvalidInput: Если recipient null или amount некорректен
            LimitViolation: Если у отправителя недостаточно средств
        """
        require_address(recipient, "recipient")
        require_non_negative(amount)

        if amount == 0:
            return self._result(TransferStatus.SUCCESS, sender, recipient, amount, gas_budget, 0, "zero amount")

        if self.balance_of(sender) < amount:
            raise LimitViolation(
                f"insufficient balance: {sender} has {self.balance_of(sender)}, needs {amount}",
                reason="insufficient_balance",
            )

        checkpoint = dict(self._balances)
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        hook = self._hooks.get(recipient)
        if hook is None:
            return self._result(TransferStatus.SUCCESS, sender, recipient, amount, gas_budget, 0, "plain transfer")

        if gas_budget is not None and hook.gas_cost > gas_budget:
            self._restore(checkpoint)
            return self._result(
                TransferStatus.BUDGET_EXCEEDED,
                sender,
                recipient,
                amount,
                gas_budget,
                gas_budget,
                f"receive hook needs {hook.gas_cost}, budget {gas_budget}",
            )

        if hook.reverts:
            self._restore(checkpoint)
            return self._result(
                TransferStatus.FAILED, sender, recipient, amount, gas_budget, hook.gas_cost, "receive hook reverted"
            )

        if hook.on_receive is not None:
            try:
                hook.on_receive(sender, amount)
            except Exception as e:
                # Откатываются и переводы, уже сделанные самим hook
                self._restore(checkpoint)
                reason = e.reason if isinstance(e, LedgerError) else type(e).__name__
                return self._result(
                    TransferStatus.FAILED,
                    sender,
                    recipient,
                    amount,
                    gas_budget,
                    hook.gas_cost,
                    f"receive hook failed: {reason}",
                )

        return self._result(TransferStatus.SUCCESS, sender, recipient, amount, gas_budget, hook.gas_cost, "hook ok")

    def move(
        self,
        sender: str,
        recipient: str,
        amount: int,
        gas_budget: Optional[int] = STIPEND_GAS,
    ) -> TransferResult:
        """
        То же, что send, но не-SUCCESS исход превращается в TransferFailed.

        Raises:
            TransferFailed: Если перевод не выполнен
        """
        result = self.send(sender, recipient, amount, gas_budget)
        if not result.ok:
            raise TransferFailed(
                f"transfer of {amount} to {recipient} failed: {result.details}",
                result=result,
                reason=result.status.value.lower(),
            )
        return result

    def _restore(self, checkpoint: Dict[str, int]) -> None:
        """Возврат всех балансов к состоянию до перевода (включая переводы из hook)."""
        self._balances = checkpoint

    def _result(
        self,
        status: TransferStatus,
        sender: str,
        recipient: str,
        amount: int,
        gas_budget: Optional[int],
        gas_used: int,
        details: str,
    ) -> TransferResult:
        if status != TransferStatus.SUCCESS:
            logger.warning(
                "Value transfer failed",
                extra={
                    "event": "native.transfer_failed",
                    "status": status.value,
                    "recipient": recipient,
                    "amount": amount,
                    "details": details,
                },
            )
        return TransferResult(
            status=status,
            sender=sender,
            recipient=recipient,
            amount=amount,
            gas_budget=gas_budget,
            gas_used=gas_used,
            details=details,
        )
