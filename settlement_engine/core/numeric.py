"""
Integer arithmetic helpers for settlement calculations.

All proportional amounts are computed as floor(numerator * target / denominator)
on Python integers. Nothing here touches floating point: a float division
would lose precision on 256-bit amounts and could round in the wrong direction.
"""

from ..utils.exceptions import SettlementInvariantViolation

# 0.1%, the tolerance the exchange contract accepts before calling a fill a rounding error
DEFAULT_ROUNDING_TOLERANCE_BPS = 10

BPS_DENOMINATOR = 10_000


def ensure_non_negative(name: str, value: int) -> int:
    """
    Assert that a computed amount is a non-negative integer.

    Args:
        name: Name of the amount, used in the error message
        value: Amount to check

    Returns:
        The value unchanged

    Raises:
        SettlementInvariantViolation: If the value is negative or not an integer
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise SettlementInvariantViolation(
            f"{name} must be an integer, got {value!r}",
            details={"amount": name, "value": repr(value)},
        )
    if value < 0:
        raise SettlementInvariantViolation(
            f"{name} cannot be negative, got {value}",
            details={"amount": name, "value": str(value)},
        )
    return value


def get_partial_amount(numerator: int, denominator: int, target: int) -> int:
    """
    Calculate floor(numerator * target / denominator).

    Args:
        numerator: Numerator of the ratio
        denominator: Denominator of the ratio, must be positive
        target: Amount the ratio is applied to

    Returns:
        The proportional amount, rounded down

    Raises:
        SettlementInvariantViolation: On a zero or negative denominator, or negative operands
    """
    if denominator <= 0:
        raise SettlementInvariantViolation(
            f"Denominator must be positive, got {denominator}",
            details={"numerator": str(numerator), "denominator": str(denominator), "target": str(target)},
        )
    ensure_non_negative("numerator", numerator)
    ensure_non_negative("target", target)
    # Both operands are non-negative so // is truncation toward zero
    return (numerator * target) // denominator


def rounding_error_bps(numerator: int, denominator: int, target: int) -> int:
    """
    Truncation loss of get_partial_amount in basis points of the exact result.

    Returns 0 when the division is exact or the exact result is zero.
    """
    if denominator <= 0:
        raise SettlementInvariantViolation(
            f"Denominator must be positive, got {denominator}",
            details={"denominator": str(denominator)},
        )
    product = numerator * target
    remainder = product % denominator
    if remainder == 0 or product == 0:
        return 0
    # remainder / product is the relative error of floor(product / denominator)
    return (remainder * BPS_DENOMINATOR) // product


def is_rounding_error(
    numerator: int,
    denominator: int,
    target: int,
    tolerance_bps: int = DEFAULT_ROUNDING_TOLERANCE_BPS,
) -> bool:
    """Check if flooring numerator * target / denominator loses more than tolerance_bps."""
    return rounding_error_bps(numerator, denominator, target) > tolerance_bps


def prices_cross(
    left_maker_amount: int,
    left_taker_amount: int,
    right_maker_amount: int,
    right_taker_amount: int,
) -> bool:
    """
    Check that the right order pays the left maker at least the left order's price.

    right_maker / right_taker >= left_taker / left_maker, cross-multiplied.
    """
    return right_maker_amount * left_maker_amount >= left_taker_amount * right_taker_amount
