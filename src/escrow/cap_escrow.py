"""CapEscrow — approve с явной суммой, одобренный value уходит в wallet."""

import logging
from typing import Iterable, Optional

from src.core.batch import BatchResult, run_batch
from src.core.domain.snapshots import EscrowVariant
from src.core.domain.units import require_address, require_positive_amount
from src.core.errors import LedgerError, LimitViolation, StateGuardViolation
from src.escrow.base import Escrow, EscrowPolicy
from src.ledger.native import NativeLedger

logger = logging.getLogger(__name__)


class CapEscrow(Escrow):
    """
    Cap-gated escrow.

    approve(participant, amount) уменьшает депозит ровно на amount и переводит
    его в wallet. Частичные approve допускаются до исчерпания депозита.
    """

    variant = EscrowVariant.CAP

    def __init__(
        self,
        address: str,
        owner: str,
        ledger: NativeLedger,
        wallet: str,
        wallet_test_value: int,
        policy: Optional[EscrowPolicy] = None,
    ):
        """
        Args:
            address: Адрес escrow
            owner: Владелец
            ledger: Native value ledger
            wallet: Получатель одобренных сумм
            wallet_test_value: Ненулевой value owner → wallet (подтверждение wallet)
            policy: Budgets переводов

        Raises:
            InvalidInput: null wallet или нулевой test value
            TransferFailed: wallet не принял test value
        """
        super().__init__(address, owner, ledger, policy)
        self._wallet = require_address(wallet, "wallet")
        require_positive_amount(wallet_test_value, "wallet_test_value")
        self.ledger.move(owner, self._wallet, wallet_test_value, self.policy.payout_gas_budget)

    @property
    def wallet(self) -> str:
        return self._wallet

    def _target(self) -> str:
        return self._wallet

    def change_wallet(self, caller: str, new_wallet: str, value: int) -> None:
        """
        Смена wallet, value caller → new_wallet как подтверждение контроля.

        Raises:
            StateGuardViolation: escrow закрыт
            InvalidInput: null wallet или нулевой value
            TransferFailed: new_wallet не принял value
        """
        self._require_owner(caller)
        if self._closed:
            raise StateGuardViolation("escrow is closed", reason="escrow_closed")
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
            "Escrow wallet changed",
            extra={"event": "escrow.wallet_changed", "escrow": self.address, "wallet": new_wallet},
        )

    def approve(self, caller: str, participant: str, amount: int) -> int:
        """
        Одобрение части депозита: amount уходит в wallet.

        Returns:
            Остаток депозита участника

        Raises:
            AuthorizationError: caller не owner
            InvalidInput: нулевой amount
            LimitViolation: депозит нулевой или amount больше депозита
            TransferFailed: wallet не принял value (депозит не меняется)
        """
        self._require_owner(caller)
        held = self._require_held(participant)
        require_positive_amount(amount)
        if amount > held:
            raise LimitViolation(f"amount {amount} exceeds held {held}", reason="amount_exceeds_held")

        self._held[participant] = held - amount
        try:
            self.ledger.move(self.address, self._wallet, amount, self.policy.payout_gas_budget)
        except LedgerError:
            self._held[participant] = held
            raise

        logger.info(
            "Participant approved",
            extra={"event": "escrow.approved", "escrow": self.address, "participant": participant, "amount": amount},
        )
        return held - amount

    def approve_many(self, caller: str, participants: Iterable[str], amount: int) -> BatchResult:
        """Пакетный approve одной и той же суммы для каждого участника."""
        self._require_owner(caller)

        def approve_one(participant: str) -> int:
            self.approve(caller, participant, amount)
            return amount

        return run_batch(participants, approve_one)
