"""
Cross validation for a pair of orders.

Decides whether two orders can be matched against each other and how much of
the left order a single match may consume. Pure functions, no side effects.
"""

from enum import Enum

from .numeric import get_partial_amount, prices_cross
from .order import Order
from ..utils.exceptions import (
    CrossIncompatibleException,
    InvalidFillAmountException,
    PriceIncompatibleException,
)


class CrossResult(Enum):
    """Outcome of validating a pair of orders."""
    OK = "OK"
    CROSS_INCOMPATIBLE = "CROSS_INCOMPATIBLE"
    PRICE_INCOMPATIBLE = "PRICE_INCOMPATIBLE"

    def __str__(self) -> str:
        return self.value

    @property
    def is_ok(self) -> bool:
        return self is CrossResult.OK


def validate(left: Order, right: Order) -> CrossResult:
    """
    Check that two orders can be matched.

    Args:
        left: Order whose taker asset the right order supplies
        right: Order whose taker asset the left order supplies

    Returns:
        CrossResult.OK, or the reason the pair cannot be matched
    """
    if left.taker_asset != right.maker_asset or left.maker_asset != right.taker_asset:
        return CrossResult.CROSS_INCOMPATIBLE

    if not prices_cross(
        left.maker_asset_amount,
        left.taker_asset_amount,
        right.maker_asset_amount,
        right.taker_asset_amount,
    ):
        return CrossResult.PRICE_INCOMPATIBLE

    return CrossResult.OK


def ensure_crossable(left: Order, right: Order) -> None:
    """
    Raise if two orders cannot be matched.

    Raises:
        CrossIncompatibleException: If the asset pairs do not mirror each other
        PriceIncompatibleException: If the prices do not cross
    """
    result = validate(left, right)
    if result is CrossResult.CROSS_INCOMPATIBLE:
        raise CrossIncompatibleException(
            f"Orders do not trade the same pair: left {left.maker_asset}/{left.taker_asset}, "
            f"right {right.maker_asset}/{right.taker_asset}",
            details={"left_order_id": str(left.order_id), "right_order_id": str(right.order_id)},
        )
    if result is CrossResult.PRICE_INCOMPATIBLE:
        raise PriceIncompatibleException(
            f"Orders do not cross: right offers {right.maker_asset_amount} for "
            f"{right.taker_asset_amount}, left needs {left.taker_asset_amount} for "
            f"{left.maker_asset_amount}",
            details={"left_order_id": str(left.order_id), "right_order_id": str(right.order_id)},
        )


def _check_filled(order: Order, filled: int, side: str) -> None:
    if not isinstance(filled, int) or isinstance(filled, bool) or filled < 0:
        raise InvalidFillAmountException(
            f"Filled amount of {side} order must be a non-negative integer, got {filled!r}",
            details={"order_id": str(order.order_id), "filled": repr(filled)},
        )
    if filled > order.taker_asset_amount:
        raise InvalidFillAmountException(
            f"Filled amount {filled} of {side} order exceeds its taker asset amount "
            f"{order.taker_asset_amount}",
            details={"order_id": str(order.order_id), "filled": str(filled)},
        )


def max_fill_amount(left: Order, right: Order, left_filled: int = 0, right_filled: int = 0) -> int:
    """
    Largest left taker-asset fill a single match can settle.

    Filled amounts are expressed in each order's own taker asset. The result is
    bounded by the left order's remaining taker capacity and by how much maker
    asset the right order can still deliver.

    Args:
        left: Left order
        right: Right order
        left_filled: Taker asset already filled on the left order
        right_filled: Taker asset already filled on the right order

    Returns:
        Bounding fill quantity; 0 if either order is exhausted

    Raises:
        InvalidFillAmountException: If a filled amount is negative or exceeds its order
    """
    _check_filled(left, left_filled, "left")
    _check_filled(right, right_filled, "right")

    left_remaining = left.taker_asset_amount - left_filled
    right_remaining_maker = get_partial_amount(
        right.maker_asset_amount,
        right.taker_asset_amount,
        right.taker_asset_amount - right_filled,
    )
    return min(left_remaining, right_remaining_maker)
