"""
Тесты для NativeLedger и SettlementCurrency.

Coverage:
- send: plain, budget exceeded, reverting hook, failing callback → откат
- move: TransferFailed с результатом
- currency: transfer / approve / transfer_from / allowance
"""

import pytest

from src.core.domain.units import STIPEND_GAS, ZERO_ADDRESS
from src.core.errors import ErrorKind, InvalidInput, LimitViolation, StateGuardViolation, TransferFailed
from src.ledger import CurrencyConfig, NativeLedger, ReceiveHook, SettlementCurrency, TransferStatus


ALICE = "0xalice"
BOB = "0xbob"
CAROL = "0xcarol"


@pytest.fixture
def ledger():
    ledger = NativeLedger()
    ledger.credit(ALICE, 1000)
    return ledger


class TestNativeLedger:
    """Переводы native value."""

    def test_plain_send(self, ledger):
        result = ledger.send(ALICE, BOB, 300)

        assert result.ok
        assert result.status == TransferStatus.SUCCESS
        assert ledger.balance_of(ALICE) == 700
        assert ledger.balance_of(BOB) == 300

    def test_zero_amount_is_noop(self, ledger):
        ledger.register_hook(BOB, ReceiveHook(reverts=True))

        result = ledger.send(ALICE, BOB, 0)

        assert result.ok
        assert ledger.balance_of(ALICE) == 1000

    def test_insufficient_balance(self, ledger):
        with pytest.raises(LimitViolation):
            ledger.send(ALICE, BOB, 1001)

    def test_null_recipient(self, ledger):
        with pytest.raises(InvalidInput):
            ledger.send(ALICE, ZERO_ADDRESS, 1)

    def test_budget_exceeded_rolls_back(self, ledger):
        ledger.register_hook(BOB, ReceiveHook(gas_cost=50_000))

        result = ledger.send(ALICE, BOB, 100, gas_budget=STIPEND_GAS)

        assert result.status == TransferStatus.BUDGET_EXCEEDED
        assert ledger.balance_of(ALICE) == 1000
        assert ledger.balance_of(BOB) == 0

    def test_expensive_hook_with_enough_budget(self, ledger):
        ledger.register_hook(BOB, ReceiveHook(gas_cost=50_000))

        result = ledger.send(ALICE, BOB, 100, gas_budget=100_000)

        assert result.ok
        assert result.gas_used == 50_000
        assert ledger.balance_of(BOB) == 100

    def test_unlimited_budget(self, ledger):
        ledger.register_hook(BOB, ReceiveHook(gas_cost=10**9))
        assert ledger.send(ALICE, BOB, 1, gas_budget=None).ok

    def test_reverting_hook_rolls_back(self, ledger):
        ledger.register_hook(BOB, ReceiveHook(reverts=True))

        result = ledger.send(ALICE, BOB, 100, gas_budget=None)

        assert result.status == TransferStatus.FAILED
        assert ledger.balance_of(ALICE) == 1000
        assert ledger.balance_of(BOB) == 0

    def test_callback_ledger_error_fails_transfer(self, ledger):
        def on_receive(sender, amount):
            raise StateGuardViolation("nope", reason="nope")

        ledger.register_hook(BOB, ReceiveHook(on_receive=on_receive))

        result = ledger.send(ALICE, BOB, 100)

        assert result.status == TransferStatus.FAILED
        assert "nope" in result.details
        assert ledger.balance_of(BOB) == 0

    def test_failed_hook_undoes_its_own_transfers(self, ledger):
        """Hook переслал часть value дальше и упал: откатываются оба перевода."""
        dave = "0xdave"
        ledger.register_hook(CAROL, ReceiveHook(reverts=True))

        def forward(sender, amount):
            ledger.move(BOB, dave, 40)
            ledger.move(BOB, CAROL, 40)

        ledger.register_hook(BOB, ReceiveHook(on_receive=forward))

        result = ledger.send(ALICE, BOB, 100)

        assert result.status == TransferStatus.FAILED
        assert ledger.balance_of(ALICE) == 1000
        assert ledger.balance_of(BOB) == 0
        assert ledger.balance_of(dave) == 0
        assert ledger.balance_of(CAROL) == 0

    def test_non_ledger_exception_in_hook_rolls_back(self, ledger):
        def broken(sender, amount):
            raise RuntimeError("boom")

        ledger.register_hook(BOB, ReceiveHook(on_receive=broken))

        result = ledger.send(ALICE, BOB, 100)

        assert result.status == TransferStatus.FAILED
        assert "RuntimeError" in result.details
        assert ledger.balance_of(ALICE) == 1000
        assert ledger.balance_of(BOB) == 0

    def test_callback_sees_credited_balance(self, ledger):
        seen = []
        ledger.register_hook(BOB, ReceiveHook(on_receive=lambda sender, amount: seen.append(ledger.balance_of(BOB))))

        ledger.send(ALICE, BOB, 100)

        assert seen == [100]

    def test_move_raises_transfer_failed(self, ledger):
        ledger.register_hook(BOB, ReceiveHook(reverts=True))

        with pytest.raises(TransferFailed) as exc_info:
            ledger.move(ALICE, BOB, 100)

        assert exc_info.value.kind == ErrorKind.TRANSFER
        assert exc_info.value.result.status == TransferStatus.FAILED
        assert ledger.balance_of(ALICE) == 1000


class TestSettlementCurrency:
    """Fixed-supply settlement currency."""

    @pytest.fixture
    def currency(self):
        return SettlementCurrency(ALICE)

    def test_entire_supply_to_distributor(self, currency):
        assert currency.total_supply == 10_000_000_000_000
        assert currency.balance_of(ALICE) == currency.total_supply
        assert currency.symbol == "TEL"
        assert currency.decimals == 2

    def test_custom_config(self):
        currency = SettlementCurrency(ALICE, CurrencyConfig(name="Test", symbol="TST", decimals=0, total_supply=5))
        assert currency.balance_of(ALICE) == 5
        assert currency.name == "Test"

    def test_transfer_entire_balance(self, currency):
        currency.transfer(ALICE, BOB, 333)
        currency.transfer(BOB, CAROL, 333)

        assert currency.balance_of(BOB) == 0
        assert currency.balance_of(CAROL) == 333

    def test_transfer_more_than_balance(self, currency):
        currency.transfer(ALICE, BOB, 100)
        currency.transfer(BOB, CAROL, 50)

        with pytest.raises(LimitViolation):
            currency.transfer(BOB, CAROL, 51)

    def test_transfer_to_null(self, currency):
        with pytest.raises(InvalidInput):
            currency.transfer(ALICE, ZERO_ADDRESS, 10)

    def test_transfer_from_within_allowance(self, currency):
        currency.approve(ALICE, BOB, 100)

        currency.transfer_from(BOB, ALICE, CAROL, 60)

        assert currency.balance_of(CAROL) == 60
        assert currency.allowance(ALICE, BOB) == 40

    def test_transfer_from_exceeding_allowance(self, currency):
        currency.approve(ALICE, BOB, 100)

        with pytest.raises(LimitViolation):
            currency.transfer_from(BOB, ALICE, CAROL, 101)

        assert currency.allowance(ALICE, BOB) == 100
