"""
Tests for JSON Schema Contract Validators

Комплексное тестирование JSON Schema валидаторов:
- Валидность самих схем
- Валидация снапшотов, экспортированных из живых объектов
- Детекция нарушений required полей
- Детекция нарушений типов
- Детекция нарушений constraints (min/max/enum/additionalProperties)
"""

import json

import pytest
from jsonschema import Draft202012Validator, ValidationError

from src.core.contracts import (
    CampaignStateValidator,
    EscrowStateValidator,
    SchemaLoader,
    SettlementTokenStateValidator,
    validate_campaign_state,
    validate_escrow_state,
    validate_settlement_token_state,
    validate_snapshot,
)
from src.core.domain.snapshots import HolderSnapshot
from src.core.domain.units import SECONDS_PER_WEEK
from src.escrow import CapEscrow
from src.ledger import NativeLedger, SettlementCurrency
from src.sale import SaleConfig, SaleEngine


NOW = 1_700_000_000
START = NOW + SECONDS_PER_WEEK
END = NOW + 2 * SECONDS_PER_WEEK

OWNER = "0xowner"
WALLET = "0xwallet"
INVESTOR = "0xinvestor"

SCHEMA_NAMES = ["campaign_state", "settlement_token_state", "escrow_state"]


# =============================================================================
# FIXTURES - SNAPSHOTS OF LIVE OBJECTS
# =============================================================================


@pytest.fixture
def ledger():
    ledger = NativeLedger()
    ledger.credit(OWNER, 10**6)
    ledger.credit(INVESTOR, 10**6)
    return ledger


@pytest.fixture
def currency():
    return SettlementCurrency(OWNER)


@pytest.fixture
def sale(ledger, currency):
    config = SaleConfig(soft_cap=1000, hard_cap=5000, start_time=START, end_time=END, rate=1, wallet=WALLET)
    sale = SaleEngine("0xsale", OWNER, config, ledger, currency, now=NOW, wallet_test_value=1)
    sale.whitelist(OWNER, INVESTOR, 100, 3000, 200)
    sale.buy_tokens(INVESTOR, INVESTOR, 1500, now=START)
    sale.register_alt_purchase(OWNER, INVESTOR, "BTC", "tx-1", 500, now=START)
    return sale


@pytest.fixture
def campaign_state(sale):
    """Валидный campaign_state (успешно завершённая кампания)."""
    sale.finish(OWNER, now=END + 1)
    return sale.snapshot(now=END + 1).model_dump(mode="json")


@pytest.fixture
def settlement_token_state(sale, currency):
    """Валидный settlement_token_state (после finish и redeem)."""
    currency.transfer(OWNER, sale.address, 10_000)
    sale.finish(OWNER, now=END + 1)
    sale.sale_token.redeem(INVESTOR, INVESTOR, now=END + 1)
    return sale.sale_token.snapshot().model_dump(mode="json")


@pytest.fixture
def escrow_state(ledger):
    """Валидный escrow_state."""
    escrow = CapEscrow("0xescrow", OWNER, ledger, wallet=WALLET, wallet_test_value=1)
    escrow.receive(INVESTOR, 700)
    escrow.approve(OWNER, INVESTOR, 200)
    return escrow.snapshot().model_dump(mode="json")


# =============================================================================
# SCHEMA LOADER TESTS
# =============================================================================


class TestSchemaLoader:
    """Тесты загрузчика схем."""

    @pytest.mark.parametrize("schema_name", SCHEMA_NAMES)
    def test_load_schema(self, schema_name):
        schema = SchemaLoader().load_schema(schema_name)

        assert schema["title"] == schema_name
        assert schema["additionalProperties"] is False

    @pytest.mark.parametrize("schema_name", SCHEMA_NAMES)
    def test_schema_is_valid_draft_2020_12(self, schema_name):
        loader = SchemaLoader()
        with open(loader.schema_dir / f"{schema_name}.json", "r", encoding="utf-8") as f:
            Draft202012Validator.check_schema(json.load(f))

    def test_cached(self):
        loader = SchemaLoader()
        assert loader.load_schema("campaign_state") is loader.load_schema("campaign_state")

    def test_missing_schema(self):
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("no_such_schema")


# =============================================================================
# CAMPAIGN STATE
# =============================================================================


class TestCampaignStateContract:
    """Валидация campaign_state."""

    def test_valid_snapshot(self, campaign_state):
        validate_campaign_state(campaign_state)

        assert campaign_state["phase"] == "SUCCEEDED"
        assert campaign_state["finished_at"] == END + 1
        assert campaign_state["investors"][0]["alt_deposit"] == 500

    def test_open_campaign_snapshot(self, sale):
        data = sale.snapshot(now=START).model_dump(mode="json")

        validate_campaign_state(data)
        assert data["phase"] == "OPEN"
        assert data["finished_at"] is None

    def test_missing_required_field(self, campaign_state):
        del campaign_state["total_raised"]

        with pytest.raises(ValidationError, match="total_raised"):
            validate_campaign_state(campaign_state)

    def test_unknown_phase(self, campaign_state):
        campaign_state["phase"] = "PAUSED"

        assert not CampaignStateValidator().is_valid(campaign_state)

    def test_extension_above_one_week(self, campaign_state):
        campaign_state["time_extended"] = SECONDS_PER_WEEK + 1

        assert not CampaignStateValidator().is_valid(campaign_state)

    def test_bonus_rate_above_ceiling(self, campaign_state):
        campaign_state["investors"][0]["bonus_rate_per_mille"] = 401

        with pytest.raises(ValidationError):
            validate_campaign_state(campaign_state)

    def test_amount_type(self, campaign_state):
        campaign_state["total_raised"] = "2000"

        errors = list(CampaignStateValidator().iter_errors(campaign_state))
        assert len(errors) == 1

    def test_additional_property(self, campaign_state):
        campaign_state["mood"] = "bullish"

        assert not CampaignStateValidator().is_valid(campaign_state)


# =============================================================================
# SETTLEMENT TOKEN STATE
# =============================================================================


class TestSettlementTokenStateContract:
    """Валидация settlement_token_state."""

    def test_valid_snapshot(self, settlement_token_state):
        validate_settlement_token_state(settlement_token_state)

        assert settlement_token_state["minting_finished"] is True
        assert settlement_token_state["total_supply"] == 2000
        assert settlement_token_state["holders"] == [{"address": INVESTOR, "balance": 2000, "redeemed": 8333}]

    def test_negative_balance(self, settlement_token_state):
        settlement_token_state["holders"][0]["balance"] = -1

        assert not SettlementTokenStateValidator().is_valid(settlement_token_state)

    def test_missing_pool(self, settlement_token_state):
        del settlement_token_state["settlement_pool"]

        with pytest.raises(ValidationError):
            validate_settlement_token_state(settlement_token_state)


# =============================================================================
# ESCROW STATE
# =============================================================================


class TestEscrowStateContract:
    """Валидация escrow_state."""

    def test_valid_snapshot(self, escrow_state):
        validate_escrow_state(escrow_state)

        assert escrow_state["variant"] == "CAP"
        assert escrow_state["total_held"] == 500
        assert escrow_state["balance"] == 500

    def test_unknown_variant(self, escrow_state):
        escrow_state["variant"] = "MULTISIG"

        assert not EscrowStateValidator().is_valid(escrow_state)

    def test_participant_missing_held(self, escrow_state):
        del escrow_state["participants"][0]["held"]

        with pytest.raises(ValidationError):
            validate_escrow_state(escrow_state)


# =============================================================================
# SNAPSHOT MODELS → CONTRACTS
# =============================================================================


class TestValidateSnapshot:
    """Схема выбирается по типу снапшота."""

    def test_campaign(self, sale):
        data = validate_snapshot(sale.snapshot(now=START))

        assert data["phase"] == "OPEN"
        assert data["investors"][0]["address"] == INVESTOR

    def test_settlement_token(self, sale):
        sale.finish(OWNER, now=END + 1)

        data = validate_snapshot(sale.bonus_token.snapshot())
        assert data["minting_finished"] is True

    def test_escrow(self, ledger):
        escrow = CapEscrow("0xescrow", OWNER, ledger, wallet=WALLET, wallet_test_value=1)
        escrow.receive(INVESTOR, 300)

        data = validate_snapshot(escrow.snapshot())
        assert data["variant"] == "CAP"
        assert data["participants"] == [{"address": INVESTOR, "held": 300}]

    def test_unknown_model_rejected(self):
        with pytest.raises(TypeError, match="HolderSnapshot"):
            validate_snapshot(HolderSnapshot(address="0xh", balance=1, redeemed=0))
