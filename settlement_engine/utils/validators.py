"""
Input validation utilities

This module provides validation functions for order amounts, identities and
asset identifiers, and a helper building an Order from loosely typed input.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from ..config import get_settings
from ..core.order import Order
from .exceptions import (
    InvalidAmountException,
    InvalidIdentityException,
    InvalidOrderException,
)

# Largest amount an on-chain uint256 can hold
MAX_UINT256 = 2**256 - 1


def sanitize_amount(value: Union[str, int, Decimal]) -> int:
    """
    Convert a value to an integer amount with proper error handling.

    Accepts ints, integral Decimals and numeric strings. Floats and bools are
    rejected because they cannot carry exact base-unit amounts.

    Args:
        value: Value to convert

    Returns:
        Integer amount

    Raises:
        InvalidAmountException: If value is not an exact integer
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountException(
            f"Invalid amount type: {type(value).__name__}",
            details={"value": repr(value)}
        )
    if isinstance(value, int):
        return value

    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmountException(
            f"Invalid amount value: {value}",
            details={"value": repr(value), "error": str(e)}
        )

    if not decimal_value.is_finite() or decimal_value != decimal_value.to_integral_value():
        raise InvalidAmountException(
            f"Amount must be a whole number of base units, got {value}",
            details={"value": repr(value)}
        )
    return int(decimal_value)


def validate_amount(
    amount: int,
    name: str = "amount",
    allow_zero: bool = True,
    max_amount: int = MAX_UINT256,
) -> bool:
    """
    Validate an integer amount.

    Args:
        amount: Amount to validate
        name: Field name for error messages
        allow_zero: Whether zero is acceptable
        max_amount: Maximum acceptable amount

    Returns:
        True if amount is valid

    Raises:
        InvalidAmountException: If amount is invalid
    """
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmountException(
            f"{name} must be an integer, got {amount!r}",
            details={"field": name, "value": repr(amount)}
        )

    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise InvalidAmountException(
            f"{name} must be {qualifier}, got {amount}",
            details={"field": name, "value": str(amount)}
        )

    if amount > max_amount:
        raise InvalidAmountException(
            f"{name} {amount} exceeds maximum {max_amount}",
            details={"field": name, "value": str(amount), "max": str(max_amount)}
        )

    return True


def validate_identity(identity: Any, name: str = "identity") -> bool:
    """
    Validate an identity or asset identifier.

    Raises:
        InvalidIdentityException: If the identifier is not a non-empty string
    """
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidIdentityException(
            f"Invalid {name}: {identity!r}",
            details={"field": name, "value": repr(identity)}
        )
    if identity != identity.strip():
        raise InvalidIdentityException(
            f"{name} has surrounding whitespace: {identity!r}",
            details={"field": name, "value": identity}
        )
    return True


def validate_asset(asset: Any) -> bool:
    """Validate an asset identifier."""
    return validate_identity(asset, name="asset")


def validate_order_parameters(
    maker: str,
    maker_asset: str,
    taker_asset: str,
    maker_asset_amount: Union[str, int, Decimal],
    taker_asset_amount: Union[str, int, Decimal],
    fee_recipient: str,
    maker_fee: Union[str, int, Decimal] = 0,
    taker_fee: Union[str, int, Decimal] = 0,
    max_amount: Optional[int] = None,
) -> tuple[int, int, int, int]:
    """
    Validate all order parameters together.

    Returns:
        Tuple of (maker_asset_amount, taker_asset_amount, maker_fee, taker_fee)

    Raises:
        InvalidIdentityException: If an identity or asset is invalid
        InvalidAmountException: If any amount is invalid
        InvalidOrderException: If the order trades an asset for itself
    """
    if max_amount is None:
        max_amount = get_settings().max_asset_amount

    validate_identity(maker, name="maker")
    validate_identity(fee_recipient, name="fee_recipient")
    validate_asset(maker_asset)
    validate_asset(taker_asset)

    if maker_asset == taker_asset:
        raise InvalidOrderException(
            f"Order trades {maker_asset} for itself",
            details={"maker_asset": maker_asset, "taker_asset": taker_asset}
        )

    amounts = []
    for name, value, allow_zero in (
        ("maker_asset_amount", maker_asset_amount, False),
        ("taker_asset_amount", taker_asset_amount, False),
        ("maker_fee", maker_fee, True),
        ("taker_fee", taker_fee, True),
    ):
        amount = sanitize_amount(value)
        validate_amount(amount, name=name, allow_zero=allow_zero, max_amount=max_amount)
        amounts.append(amount)

    return tuple(amounts)


def build_order(
    maker: str,
    maker_asset: str,
    taker_asset: str,
    maker_asset_amount: Union[str, int, Decimal],
    taker_asset_amount: Union[str, int, Decimal],
    fee_recipient: str,
    maker_fee: Union[str, int, Decimal] = 0,
    taker_fee: Union[str, int, Decimal] = 0,
    max_amount: Optional[int] = None,
) -> Order:
    """
    Validate parameters and create an Order.

    Returns:
        Order built from the sanitized parameters
    """
    maker_amount, taker_amount, maker_fee_amount, taker_fee_amount = validate_order_parameters(
        maker,
        maker_asset,
        taker_asset,
        maker_asset_amount,
        taker_asset_amount,
        fee_recipient,
        maker_fee,
        taker_fee,
        max_amount,
    )
    return Order(
        maker=maker,
        maker_asset=maker_asset,
        taker_asset=taker_asset,
        maker_asset_amount=maker_amount,
        taker_asset_amount=taker_amount,
        fee_recipient=fee_recipient,
        maker_fee=maker_fee_amount,
        taker_fee=taker_fee_amount,
    )
