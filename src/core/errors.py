"""
Errors — таксономия ошибок ledger-операций

Каждая операция либо выполняется целиком, либо прерывается исключением
из этого модуля без частичных изменений состояния.

Категории:
- AUTHORIZATION: вызывающий не является владельцем (owner-only операции)
- STATE_GUARD: операция вне допустимого окна (до старта, после финиша, пауза, closed)
- LIMIT: превышение whitelist cap, hard cap, баланса или лимита продления
- VALIDATION: null адрес, нулевая сумма, bonus rate > 400, повторная регистрация
- TRANSFER: внешний перевод не прошёл (receive hook упал или превышен budget)
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Категория ошибки (видна вызывающему)."""

    AUTHORIZATION = "AUTHORIZATION"
    STATE_GUARD = "STATE_GUARD"
    LIMIT = "LIMIT"
    VALIDATION = "VALIDATION"
    TRANSFER = "TRANSFER"


class LedgerError(Exception):
    """Базовое исключение для всех отказов ledger-операций."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        # Машиночитаемый код причины (например "sale_paused")
        self.reason = reason or self.kind.value.lower()


class AuthorizationError(LedgerError):
    """Вызывающий не авторизован для операции."""

    kind = ErrorKind.AUTHORIZATION


class StateGuardViolation(LedgerError):
    """Операция вызвана вне своего допустимого состояния/окна."""

    kind = ErrorKind.STATE_GUARD


class LimitViolation(LedgerError):
    """Сумма превышает лимит (cap, баланс, entitlement)."""

    kind = ErrorKind.LIMIT


class InvalidInput(LedgerError, ValueError):
    """Некорректные входные данные (null адрес, нулевая сумма и т.п.)."""

    kind = ErrorKind.VALIDATION


class TransferFailed(LedgerError):
    """
    Исходящий перевод не выполнен.

    Операция, инициировавшая перевод, откатывает свои изменения и пробрасывает
    это исключение. Результат перевода доступен в атрибуте `result`.
    """

    kind = ErrorKind.TRANSFER

    def __init__(self, message: str, *, result: Any = None, reason: Optional[str] = None):
        super().__init__(message, reason=reason)
        self.result = result
