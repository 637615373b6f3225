"""
Тесты для целочисленной арифметики распределения.

Coverage:
- bonus_owed / bonus_delta (порог, независимость от разбиения взносов)
- flexed_cap (знаковая поправка, clamp в 0)
- pro_rata_share
- vested_amount (границы vesting)
- split_pool (остаток округления у bonus токена)
"""

import pytest

from src.core.math.allocation import (
    bonus_delta,
    bonus_owed,
    flexed_cap,
    per_mille,
    pro_rata_share,
    split_pool,
    vested_amount,
)


# =============================================================================
# BONUS
# =============================================================================


class TestBonus:
    """Bonus accrual по кумулятивному депозиту."""

    def test_per_mille_floors(self):
        assert per_mille(4301, 300) == 1290
        assert per_mille(999, 1) == 0

    def test_owed_zero_below_threshold(self):
        assert bonus_owed(2999, 3000, 300) == 0
        assert bonus_owed(3000, 3000, 300) == 900

    def test_delta_sequence_threshold_3000(self):
        """Взносы 1, 100, 4000, 200 → bonus 0, 0, 1230, 60."""
        deltas = []
        total = 0
        for amount in (1, 100, 4000, 200):
            deltas.append(bonus_delta(total, amount, 3000, 300))
            total += amount

        assert deltas == [0, 0, 1230, 60]
        assert sum(deltas) == bonus_owed(4301, 3000, 300) == 1290

    def test_delta_sequence_threshold_2000(self):
        """Взносы 1, 500, 2000, 1000 → кумулятивный bonus 0, 0, 750, 1050."""
        cumulative = []
        total = 0
        bonus = 0
        for amount in (1, 500, 2000, 1000):
            bonus += bonus_delta(total, amount, 2000, 300)
            total += amount
            cumulative.append(bonus)

        assert cumulative == [0, 0, 750, 1050]

    @pytest.mark.parametrize(
        "split",
        [
            [4301],
            [1, 4300],
            [2999, 1, 1301],
            [1000, 1000, 1000, 1000, 301],
        ],
    )
    def test_delta_independent_of_split(self, split):
        total = 0
        bonus = 0
        for amount in split:
            bonus += bonus_delta(total, amount, 3000, 300)
            total += amount

        assert bonus == 1290

    def test_zero_threshold_accrues_from_first_unit(self):
        assert bonus_delta(0, 1000, 0, 50) == 50


# =============================================================================
# CAP FLEX
# =============================================================================


class TestFlexedCap:
    """Знаковая поправка caps в ‰."""

    def test_zero_flex_is_nominal(self):
        assert flexed_cap(100, 0) == 100

    def test_positive_flex_raises_cap(self):
        assert flexed_cap(100, 1000) == 200
        assert flexed_cap(100, 900) == 190

    def test_negative_flex_lowers_cap(self):
        assert flexed_cap(1000, -250) == 750

    def test_clamped_at_zero(self):
        assert flexed_cap(1000, -5000) == 0


# =============================================================================
# PRO-RATA / VESTING / SPLIT
# =============================================================================


class TestProRata:
    def test_share(self):
        assert pro_rata_share(2000000, 100, 1000) == 200000
        assert pro_rata_share(33, 1, 3) == 11

    def test_empty_whole(self):
        assert pro_rata_share(1000, 0, 0) == 0

    def test_part_exceeds_whole_rejected(self):
        with pytest.raises(ValueError):
            pro_rata_share(1000, 2, 1)


class TestVesting:
    DAY = 86400

    def test_before_start_is_zero(self):
        assert vested_amount(2000000, 99, 100, 10 * self.DAY) == 0

    def test_at_start_is_zero(self):
        assert vested_amount(2000000, 100, 100, 10 * self.DAY) == 0

    def test_linear(self):
        share = 2000000
        assert vested_amount(share, 1 * self.DAY, 0, 10 * self.DAY) == 200000
        assert vested_amount(share, 2 * self.DAY, 0, 10 * self.DAY) == 400000
        assert vested_amount(share, 9 * self.DAY, 0, 10 * self.DAY) == 1800000

    def test_full_at_end_and_after(self):
        assert vested_amount(2000000, 10 * self.DAY, 0, 10 * self.DAY) == 2000000
        assert vested_amount(2000000, 50 * self.DAY, 0, 10 * self.DAY) == 2000000

    def test_zero_duration(self):
        assert vested_amount(500, 99, 100, 0) == 0
        assert vested_amount(500, 100, 100, 0) == 500


class TestSplitPool:
    def test_remainder_goes_to_bonus(self):
        split = split_pool(1000000, 6000, 1550)

        assert split.sale_share == 794701
        assert split.bonus_share == 205299
        assert split.sale_share + split.bonus_share == 1000000

    def test_no_bonus_supply(self):
        split = split_pool(1000, 500, 0)
        assert split.sale_share == 1000
        assert split.bonus_share == 0

    def test_empty_supply_keeps_pool_with_sale_token(self):
        assert split_pool(77, 0, 0) == (77, 0)
