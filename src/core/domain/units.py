"""
Units — единицы, адреса и базовая валидация входных данных

Все суммы — целые числа в минимальных единицах (wei для native value,
минимальная единица settlement currency для токенов). Float не используется.

Время — целые секунды (Unix timestamp), передаются вызывающим явно.

Адреса — строки. Null identity: None, "" или ZERO_ADDRESS.
"""

import hashlib
from typing import Final, Optional

from src.core.errors import InvalidInput


# =============================================================================
# ВРЕМЯ
# =============================================================================

SECONDS_PER_HOUR: Final[int] = 60 * 60
SECONDS_PER_DAY: Final[int] = 24 * SECONDS_PER_HOUR
SECONDS_PER_WEEK: Final[int] = 7 * SECONDS_PER_DAY


# =============================================================================
# ДОЛИ
# =============================================================================

# Знаменатель для bonus rate и cap flex
PER_MILLE: Final[int] = 1000

# Потолок bonus rate: 400‰ = 40%
MAX_BONUS_RATE_PER_MILLE: Final[int] = 400


# =============================================================================
# COMPUTATION BUDGET
# =============================================================================

# Budget для простого перевода value (хватает только на тривиальный receive hook)
STIPEND_GAS: Final[int] = 2300


# =============================================================================
# АДРЕСА
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40


def is_null_address(address: Optional[str]) -> bool:
    """True для None, пустой строки и ZERO_ADDRESS."""
    return not address or address == ZERO_ADDRESS


def require_address(address: Optional[str], name: str = "address") -> str:
    """
    Проверка, что адрес не null.

    Args:
        address: Проверяемый адрес
        name: Имя параметра для сообщения об ошибке

    Returns:
        Тот же адрес

    Raises:
        InvalidInput: Если адрес null
    """
    if is_null_address(address):
        raise InvalidInput(f"{name} must not be the null address", reason=f"null_{name}")
    return address


def derive_address(parent: str, label: str) -> str:
    """
    Детерминированный адрес дочернего объекта (например токена, созданного sale).

    Args:
        parent: Адрес создателя
        label: Метка дочернего объекта

    Returns:
        Адрес вида 0x + 40 hex символов
    """
    digest = hashlib.sha256(f"{parent}:{label}".encode("utf-8")).hexdigest()
    return "0x" + digest[:40]


# =============================================================================
# ВАЛИДАЦИЯ СУММ
# =============================================================================


def require_positive_amount(amount: int, name: str = "amount") -> int:
    """
    Проверка, что сумма — положительное целое.

    Args:
        amount: Проверяемая сумма
        name: Имя параметра для сообщения об ошибке

    Returns:
        Та же сумма

    Raises:
        InvalidInput: Если сумма не int, ноль или отрицательная
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidInput(f"{name} must be an integer, got {type(amount).__name__}", reason=f"invalid_{name}")
    if amount <= 0:
        raise InvalidInput(f"{name} must be positive, got {amount}", reason=f"zero_{name}")
    return amount


def require_non_negative(amount: int, name: str = "amount") -> int:
    """То же, что require_positive_amount, но допускает 0."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidInput(f"{name} must be an integer, got {type(amount).__name__}", reason=f"invalid_{name}")
    if amount < 0:
        raise InvalidInput(f"{name} cannot be negative: {amount}", reason=f"negative_{name}")
    return amount
