"""
Access — single-owner авторизация и pause switch

Owner — явное поле, проверяется в начале каждой привилегированной операции.
Вызывающий передаётся параметром `caller` в каждую операцию.
"""

import logging
from typing import Optional

from src.core.domain.units import require_address
from src.core.errors import AuthorizationError, StateGuardViolation

logger = logging.getLogger(__name__)


class Ownable:
    """Один текущий владелец, передача владения — обычная мутация состояния."""

    def __init__(self, owner: str):
        self._owner = require_address(owner, "owner")

    @property
    def owner(self) -> str:
        return self._owner

    def _require_owner(self, caller: Optional[str]) -> None:
        if caller != self._owner:
            raise AuthorizationError(
                f"caller {caller} is not the owner", reason="not_owner"
            )

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """
        Передача владения.

        Args:
            caller: Вызывающий (должен быть текущим owner)
            new_owner: Новый владелец (не null)

        Raises:
            AuthorizationError: Если caller не owner
            InvalidInput: Если new_owner null
        """
        self._require_owner(caller)
        require_address(new_owner, "new_owner")

        previous = self._owner
        self._owner = new_owner
        logger.info(
            "Ownership transferred",
            extra={"event": "access.ownership_transferred", "previous_owner": previous, "new_owner": new_owner},
        )


class Pausable(Ownable):
    """Ownable с булевым gate для приёма взносов."""

    def __init__(self, owner: str):
        super().__init__(owner)
        self._paused = False

    @property
    def paused(self) -> bool:
        return self._paused

    def _require_not_paused(self) -> None:
        if self._paused:
            raise StateGuardViolation("operation is paused", reason="paused")

    def pause(self, caller: str) -> None:
        self._require_owner(caller)
        if self._paused:
            raise StateGuardViolation("already paused", reason="already_paused")
        self._paused = True
        logger.info("Paused", extra={"event": "access.paused"})

    def unpause(self, caller: str) -> None:
        self._require_owner(caller)
        if not self._paused:
            raise StateGuardViolation("not paused", reason="not_paused")
        self._paused = False
        logger.info("Unpaused", extra={"event": "access.unpaused"})
