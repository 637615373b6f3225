"""KYCEscrow — approve переводит весь депозит участника в sale как его взнос."""

import logging
from typing import Iterable, Optional

from src.core.batch import BatchResult, run_batch
from src.core.domain.snapshots import EscrowVariant
from src.core.errors import InvalidInput, LedgerError, LimitViolation
from src.escrow.base import Escrow, EscrowPolicy
from src.ledger.native import NativeLedger
from src.sale.engine import PurchaseResult, SaleEngine

logger = logging.getLogger(__name__)


class KYCEscrow(Escrow):
    """
    KYC-gated escrow.

    Депозиты принимаются до прохождения KYC. approve(participant) требует,
    чтобы sale уже имел участника в whitelist с ненулевым cap, и проводит весь
    депозит через обычный путь взноса sale (окно, pause, caps, bonus).
    """

    variant = EscrowVariant.KYC

    def __init__(
        self,
        address: str,
        owner: str,
        ledger: NativeLedger,
        sale: SaleEngine,
        policy: Optional[EscrowPolicy] = None,
    ):
        super().__init__(address, owner, ledger, policy)
        if sale is None:
            raise InvalidInput("sale must not be null", reason="null_sale")
        self.sale = sale

    def _target(self) -> str:
        return self.sale.address

    def approve(self, caller: str, participant: str, now: int) -> PurchaseResult:
        """
        Одобрение участника: весь депозит становится его взносом в sale.

        Returns:
            PurchaseResult взноса в sale

        Raises:
            AuthorizationError: caller не owner
            LimitViolation: депозит нулевой или участник не в whitelist sale
            LedgerError: любой отказ sale (депозит не меняется)
        """
        self._require_owner(caller)
        self._require_held(participant)
        if self.sale.whitelist_cap(participant) == 0:
            raise LimitViolation(f"{participant} is not whitelisted in sale", reason="not_whitelisted")

        amount = self._take_held(participant)
        try:
            result = self.sale.buy_tokens(self.address, participant, amount, now)
        except LedgerError:
            self._held[participant] = amount
            raise

        logger.info(
            "Participant approved",
            extra={"event": "escrow.approved", "escrow": self.address, "participant": participant, "amount": amount},
        )
        return result

    def approve_many(self, caller: str, participants: Iterable[str], now: int) -> BatchResult:
        """Пакетный approve: каждый участник независимо."""
        self._require_owner(caller)
        return run_batch(participants, lambda participant: self.approve(caller, participant, now).amount)
