"""
Allocation — целочисленная арифметика распределения

Чистые функции без состояния:
- per-mille доли (bonus rate, cap flex)
- bonus accrual по кумулятивному депозиту
- эффективный cap с учётом cap flex
- pro-rata доля пула
- линейный vesting
- раздел settlement пула между sale и bonus токенами

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Только int, округление вниз (floor)
2. bonus_owed монотонна по total → bonus_delta >= 0
3. split_pool: sale_share + bonus_share == pool (остаток округления уходит bonus токену)
4. vested_amount(share, ...) <= share

ФОРМУЛЫ:
    owed(total) = floor(total * rate / 1000)  если total >= threshold, иначе 0
    bonus_delta = owed(T0 + amount) - owed(T0)
    effective_cap = max(0, cap + floor(cap * cap_flex / 1000))
    share = floor(pool * part / whole)
    vested = floor(share * (now - start) / duration), clamp [0, share]
"""

from typing import NamedTuple

from src.core.domain.units import PER_MILLE


# =============================================================================
# PER-MILLE
# =============================================================================


def per_mille(amount: int, rate_per_mille: int) -> int:
    """floor(amount * rate / 1000)."""
    return (amount * rate_per_mille) // PER_MILLE


# =============================================================================
# BONUS
# =============================================================================


def bonus_owed(total: int, threshold: int, rate_per_mille: int) -> int:
    """
    Полный bonus для кумулятивного депозита.

    Args:
        total: Кумулятивный депозит инвестора
        threshold: Порог, начиная с которого начисляется bonus
        rate_per_mille: Ставка bonus (‰)

    Returns:
        floor(total * rate / 1000) если total >= threshold, иначе 0
    """
    if total < threshold:
        return 0
    return per_mille(total, rate_per_mille)


def bonus_delta(deposit_before: int, amount: int, threshold: int, rate_per_mille: int) -> int:
    """
    Bonus, начисляемый за один взнос.

    Пересчитывается с нуля по новому кумулятивному депозиту, поэтому пересечение
    порога точно и не зависит от того, как взносы разбиты на части.

    Args:
        deposit_before: Депозит до взноса (T0)
        amount: Сумма взноса
        threshold: Порог bonus
        rate_per_mille: Ставка bonus (‰)

    Returns:
        owed(T0 + amount) - owed(T0)
    """
    deposit_after = deposit_before + amount
    return bonus_owed(deposit_after, threshold, rate_per_mille) - bonus_owed(
        deposit_before, threshold, rate_per_mille
    )


# =============================================================================
# CAP FLEX
# =============================================================================


def flexed_cap(nominal_cap: int, cap_flex_per_mille: int) -> int:
    """
    Эффективный cap: номинал, сдвинутый на знаковый cap flex (‰ от номинала).

    Положительный flex поднимает cap, отрицательный опускает. Результат не
    опускается ниже нуля.

    Args:
        nominal_cap: Номинальный soft/hard cap
        cap_flex_per_mille: Знаковая поправка (‰)

    Returns:
        max(0, cap + floor(cap * flex / 1000))
    """
    return max(0, nominal_cap + (nominal_cap * cap_flex_per_mille) // PER_MILLE)


# =============================================================================
# PRO-RATA / VESTING
# =============================================================================


def pro_rata_share(pool: int, part: int, whole: int) -> int:
    """
    floor(pool * part / whole); 0 при пустом whole.

    Raises:
        ValueError: Если part > whole или аргументы отрицательные
    """
    if pool < 0 or part < 0 or whole < 0:
        raise ValueError(f"pro_rata_share arguments must be non-negative: {pool}, {part}, {whole}")
    if part > whole:
        raise ValueError(f"part {part} exceeds whole {whole}")
    if whole == 0:
        return 0
    return (pool * part) // whole


def vested_amount(share: int, now: int, vesting_start: int, vesting_duration: int) -> int:
    """
    Линейно разблокированная часть доли.

    - now < vesting_start → 0
    - vesting_duration == 0 и now >= vesting_start → share
    - иначе floor(share * (now - start) / duration), не больше share

    Args:
        share: Полная доля
        now: Текущее время (сек)
        vesting_start: Начало vesting (сек)
        vesting_duration: Длительность vesting (сек)

    Returns:
        Разблокированная часть доли
    """
    if now < vesting_start:
        return 0
    if vesting_duration == 0:
        return share
    elapsed = now - vesting_start
    if elapsed >= vesting_duration:
        return share
    return (share * elapsed) // vesting_duration


class PoolSplit(NamedTuple):
    """Раздел settlement пула между токенами."""

    sale_share: int
    bonus_share: int


def split_pool(pool: int, sale_supply: int, bonus_supply: int) -> PoolSplit:
    """
    Раздел пула пропорционально supply токенов.

    sale_share = floor(pool * sale_supply / (sale_supply + bonus_supply)),
    bonus_share = pool - sale_share. Остаток округления достаётся bonus токену,
    ничего не теряется.

    При нулевом суммарном supply весь пул остаётся за sale токеном.
    """
    whole = sale_supply + bonus_supply
    if whole == 0:
        return PoolSplit(sale_share=pool, bonus_share=0)
    sale_share = pro_rata_share(pool, sale_supply, whole)
    return PoolSplit(sale_share=sale_share, bonus_share=pool - sale_share)
