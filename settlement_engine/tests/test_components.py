"""
Tests for the supporting components

Covers the Order and Transfer models, validators, configuration, the
exception hierarchy and structured logging.
"""

import dataclasses
import json
import logging
from decimal import Decimal
from fractions import Fraction
from uuid import uuid4

import pytest
from pydantic import ValidationError

from settlement_engine.config import Settings, get_settings
from settlement_engine.core.order import Order
from settlement_engine.core.settlement import SettlementResult, Transfer, TransferKind
from settlement_engine.core.settlement_calculator import compute_settlement
from settlement_engine.utils.exceptions import (
    BalanceNotFoundException,
    BaseSettlementException,
    CrossIncompatibleException,
    InsufficientBalanceException,
    InvalidAmountException,
    InvalidFillAmountException,
    InvalidIdentityException,
    InvalidOrderException,
    LedgerException,
    LedgerUnavailableException,
    PriceIncompatibleException,
    SettlementFailedException,
    SettlementInvariantViolation,
)
from settlement_engine.utils.logger import JSONFormatter, SettlementLogger
from settlement_engine.utils.validators import (
    MAX_UINT256,
    build_order,
    sanitize_amount,
    validate_amount,
    validate_asset,
    validate_identity,
    validate_order_parameters,
)


def make_order(**overrides):
    params = dict(
        maker="alice",
        maker_asset="A",
        taker_asset="B",
        maker_asset_amount=5,
        taker_asset_amount=10,
        fee_recipient="relayer",
    )
    params.update(overrides)
    return Order(**params)


class TestOrder:
    """Test cases for the Order model."""

    def test_order_creation(self):
        """Test basic order creation."""
        order = make_order(maker_fee=2, taker_fee=3)

        assert order.maker == "alice"
        assert order.maker_asset_amount == 5
        assert order.maker_fee == 2
        assert order.order_id is not None
        assert order.has_fees

    def test_default_fees(self):
        order = make_order()

        assert order.maker_fee == 0
        assert order.taker_fee == 0
        assert not order.has_fees

    @pytest.mark.parametrize("overrides", [
        {"maker_asset_amount": 0},
        {"taker_asset_amount": -1},
        {"maker_fee": -1},
        {"taker_fee": -2},
        {"maker_asset_amount": 5.0},
        {"taker_asset_amount": True},
        {"maker": ""},
        {"fee_recipient": "   "},
        {"taker_asset": "A"},
    ])
    def test_order_validation(self, overrides):
        """Test invalid orders are rejected at construction."""
        with pytest.raises(ValueError):
            make_order(**overrides)

    def test_order_is_immutable(self):
        order = make_order()

        with pytest.raises(dataclasses.FrozenInstanceError):
            order.maker_asset_amount = 50

    def test_order_price_is_exact(self):
        order = make_order(maker_asset_amount=1, taker_asset_amount=3)

        assert order.price == Fraction(1, 3)

    def test_trades_against(self):
        left = make_order()
        right = make_order(maker="bob", maker_asset="B", taker_asset="A")
        other = make_order(maker="carol", maker_asset="B", taker_asset="C")

        assert left.trades_against(right)
        assert right.trades_against(left)
        assert not left.trades_against(other)

    def test_equality_by_order_id(self):
        order_id = uuid4()
        first = make_order(order_id=order_id)
        second = make_order(order_id=order_id, maker_asset_amount=7)

        assert first == second
        assert len({first, second, make_order()}) == 2

    def test_order_to_dict(self):
        """Test amounts serialize as strings."""
        order = make_order(maker_asset_amount=2**200)
        data = order.to_dict()

        assert data["maker_asset_amount"] == str(2**200)
        assert data["taker_asset_amount"] == "10"
        assert data["order_id"] == str(order.order_id)


class TestSettlementModels:
    """Test cases for transfers and settlement results."""

    def test_transfer_requires_positive_amount(self):
        with pytest.raises(ValueError):
            Transfer("alice", "bob", "A", 0, TransferKind.LEFT_MAKER_ASSET)
        with pytest.raises(ValueError):
            Transfer("alice", "bob", "A", 1.0, TransferKind.LEFT_MAKER_ASSET)

    def test_transfer_to_dict(self):
        transfer = Transfer("alice", "bob", "A", 3, TransferKind.TAKER_SPREAD)

        assert transfer.to_dict() == {
            "from": "alice",
            "to": "bob",
            "asset": "A",
            "amount": "3",
            "kind": "TAKER_SPREAD",
        }
        assert str(TransferKind.TAKER_SPREAD) == "TAKER_SPREAD"

    def test_plan_helpers(self):
        left = make_order(maker_fee=1)
        right = make_order(maker="bob", maker_asset="B", taker_asset="A",
                           maker_asset_amount=10, taker_asset_amount=2)
        plan = compute_settlement(left, right, 10, "taker", "ZRX")

        assert plan.totals_by_asset() == {"A": 5, "B": 10, "ZRX": 1}
        assert plan.debits_from("alice", "A") == 5
        assert plan.credits_to("taker", "A") == 3
        assert plan.credits_to("relayer", "ZRX") == 1
        assert [t.kind for t in plan] == [
            TransferKind.LEFT_MAKER_ASSET,
            TransferKind.RIGHT_MAKER_ASSET,
            TransferKind.LEFT_MAKER_FEE,
            TransferKind.TAKER_SPREAD,
        ]

    def test_settlement_result_to_dict(self):
        left = make_order()
        right = make_order(maker="bob", maker_asset="B", taker_asset="A",
                           maker_asset_amount=10, taker_asset_amount=2)
        plan = compute_settlement(left, right, 10, "taker", "ZRX")
        result = SettlementResult(
            settlement_id=uuid4(),
            plan=plan,
            left_order_id=left.order_id,
            right_order_id=right.order_id,
            taker="taker",
            attempts=1,
        )

        data = result.to_dict()

        assert result.spread == 3
        assert data["taker"] == "taker"
        assert len(data["transfers"]) == 3
        assert data["amounts"]["left_maker_asset_spread_amount"] == "3"
        assert data["amounts"]["left"]["maker_asset_filled_amount"] == "5"


class TestValidators:
    """Test cases for validators."""

    def test_sanitize_amount(self):
        """Test amount sanitization."""
        assert sanitize_amount(10) == 10
        assert sanitize_amount("10") == 10
        assert sanitize_amount(" 42 ") == 42
        assert sanitize_amount(Decimal("7")) == 7
        assert sanitize_amount("1e3") == 1000
        assert sanitize_amount(str(MAX_UINT256)) == MAX_UINT256

    @pytest.mark.parametrize("value", ["1.5", "abc", 1.0, True, Decimal("NaN"), None])
    def test_sanitize_amount_rejects(self, value):
        with pytest.raises(InvalidAmountException):
            sanitize_amount(value)

    def test_validate_amount(self):
        """Test amount validation."""
        assert validate_amount(0)
        assert validate_amount(MAX_UINT256)

        with pytest.raises(InvalidAmountException):
            validate_amount(0, allow_zero=False)
        with pytest.raises(InvalidAmountException):
            validate_amount(-1)
        with pytest.raises(InvalidAmountException):
            validate_amount(MAX_UINT256 + 1)
        with pytest.raises(InvalidAmountException, match="maker_fee"):
            validate_amount(101, name="maker_fee", max_amount=100)

    def test_validate_identity(self):
        """Test identity validation."""
        assert validate_identity("0xabc")
        assert validate_asset("ZRX")

        for bad in ("", "   ", None, 12, " padded"):
            with pytest.raises(InvalidIdentityException):
                validate_identity(bad)

    def test_validate_order_parameters(self):
        """Test complete order parameter validation."""
        amounts = validate_order_parameters(
            maker="alice",
            maker_asset="A",
            taker_asset="B",
            maker_asset_amount="5",
            taker_asset_amount=10,
            fee_recipient="relayer",
            taker_fee=Decimal("2"),
        )

        assert amounts == (5, 10, 0, 2)

        with pytest.raises(InvalidOrderException):
            validate_order_parameters("alice", "A", "A", 5, 10, "relayer")
        with pytest.raises(InvalidAmountException):
            validate_order_parameters("alice", "A", "B", 0, 10, "relayer")
        with pytest.raises(InvalidAmountException):
            validate_order_parameters("alice", "A", "B", 5, 1000, "relayer", max_amount=100)

    def test_build_order(self):
        order = build_order("alice", "A", "B", "5", "10", "relayer", maker_fee="1")

        assert isinstance(order, Order)
        assert order.maker_asset_amount == 5
        assert order.maker_fee == 1


class TestExceptions:
    """Test the exception hierarchy."""

    def test_details_default_to_empty(self):
        error = CrossIncompatibleException("orders do not cross")

        assert error.message == "orders do not cross"
        assert error.details == {}
        assert str(error) == "orders do not cross"

    def test_hierarchy(self):
        assert issubclass(InvalidFillAmountException, InvalidAmountException)
        assert issubclass(PriceIncompatibleException, BaseSettlementException)
        assert issubclass(SettlementInvariantViolation, BaseSettlementException)
        for ledger_error in (BalanceNotFoundException, InsufficientBalanceException,
                             LedgerUnavailableException):
            assert issubclass(ledger_error, LedgerException)
        assert not issubclass(SettlementFailedException, LedgerException)

    def test_settlement_failed_carries_context(self):
        error = SettlementFailedException("gave up", plan="plan", attempts=3, details={"x": 1})

        assert error.plan == "plan"
        assert error.attempts == 3
        assert error.details == {"x": 1}


class TestConfig:
    """Test cases for configuration."""

    def test_settings_default_values(self):
        """Test default configuration values."""
        settings = Settings()

        assert settings.fee_asset == "ZRX"
        assert settings.max_asset_amount == 2**256 - 1
        assert settings.rounding_error_tolerance_bps == 10
        assert settings.reject_rounding_errors is False
        assert settings.ledger_max_attempts == 3
        assert settings.enable_metrics is True

    def test_get_settings_returns_global_instance(self):
        assert get_settings() is get_settings()

    def test_settings_creation(self):
        """Test creating custom settings."""
        custom_settings = Settings(fee_asset="WETH", ledger_max_attempts=5, log_level="DEBUG")

        assert custom_settings.fee_asset == "WETH"
        assert custom_settings.ledger_max_attempts == 5
        assert custom_settings.log_level == "DEBUG"

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("SETTLEMENT_FEE_ASSET", "DAI")
        monkeypatch.setenv("SETTLEMENT_REJECT_ROUNDING_ERRORS", "true")

        settings = Settings()

        assert settings.fee_asset == "DAI"
        assert settings.reject_rounding_errors is True

    def test_settings_validation(self):
        with pytest.raises(ValidationError):
            Settings(ledger_max_attempts=0)
        with pytest.raises(ValidationError):
            Settings(rounding_error_tolerance_bps=-1)


class TestLogging:
    """Test structured logging."""

    def test_json_formatter_includes_context(self):
        settlement_id = uuid4()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname=__file__, lineno=1,
            msg="Settlement applied", args=(), exc_info=None,
        )
        record.settlement_id = settlement_id
        record.attempt = 2

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Settlement applied"
        assert data["level"] == "INFO"
        assert data["settlement_id"] == str(settlement_id)
        assert data["attempt"] == 2
        assert "taker" not in data

    def test_log_files(self, tmp_path):
        logger = SettlementLogger(name="SettlementEngineTest", log_dir=tmp_path, use_json=True)
        settlement_id = uuid4()

        logger.log_settlement(settlement_id, uuid4(), uuid4(), transfer_count=3, spread=1, attempts=1)
        logger.log_error("Ledger rejected settlement", ValueError("boom"))

        settlement_lines = (tmp_path / "settlements.log").read_text().splitlines()
        assert json.loads(settlement_lines[-1])["settlement_id"] == str(settlement_id)

        error_line = json.loads((tmp_path / "errors.log").read_text().splitlines()[-1])
        assert error_line["level"] == "ERROR"
        assert "boom" in error_line["exception"]
        assert (tmp_path / "application.log").exists()
