"""
Settlement calculation for a matched pair of orders.

Derives every transfer amount of a match from the left order's fill using
integer floor division. Rounding always favours the taker: truncation losses
end up in the taker spread or stay with the paying maker, never as a
shortfall against a maker or fee recipient.
"""

from typing import List

from .numeric import ensure_non_negative, get_partial_amount
from .order import Order
from .settlement import (
    FillResults,
    MatchedFillResults,
    SettlementPlan,
    Transfer,
    TransferKind,
)
from ..utils.exceptions import (
    InvalidFillAmountException,
    RoundingErrorException,
    SettlementInvariantViolation,
)


def calculate_fill_results(
    left: Order,
    right: Order,
    left_taker_asset_filled_amount: int,
) -> MatchedFillResults:
    """
    Compute filled amounts and fees for both sides of a match.

    The right order is filled for exactly the left maker asset it receives in
    exchange for supplying the left fill. How far either order may be filled
    overall is decided by the caller (see cross_validator.max_fill_amount).

    Args:
        left: Left order
        right: Right order, trading the same pair in the opposite direction
        left_taker_asset_filled_amount: Left taker asset bought by the left maker

    Returns:
        MatchedFillResults for the match

    Raises:
        InvalidFillAmountException: If the fill amount is outside (0, capacity]
        RoundingErrorException: If truncation would pay the left maker below its price
        SettlementInvariantViolation: If any derived amount breaks an invariant
    """
    _check_fill_amount(left, right, left_taker_asset_filled_amount)

    bought_by_left = left_taker_asset_filled_amount
    sold_by_left = get_partial_amount(
        left.maker_asset_amount, left.taker_asset_amount, bought_by_left
    )
    received_by_right = get_partial_amount(
        right.taker_asset_amount, right.maker_asset_amount, bought_by_left
    )
    bought_by_right = received_by_right
    sold_by_right = get_partial_amount(
        right.maker_asset_amount, right.taker_asset_amount, bought_by_right
    )

    if sold_by_left == 0 or sold_by_right == 0:
        raise RoundingErrorException(
            f"Fill {bought_by_left} is too small to move any maker asset",
            details={
                "fill_amount": str(bought_by_left),
                "sold_by_left": str(sold_by_left),
                "sold_by_right": str(sold_by_right),
            },
        )

    spread = sold_by_left - received_by_right
    if spread < 0:
        raise SettlementInvariantViolation(
            f"Negative taker spread {spread}: left sells {sold_by_left}, "
            f"right receives {received_by_right}",
            details={
                "left_order_id": str(left.order_id),
                "right_order_id": str(right.order_id),
                "spread": str(spread),
            },
        )

    # Each maker must receive at least what its own price asks for what it sold
    if sold_by_right * left.maker_asset_amount < sold_by_left * left.taker_asset_amount:
        raise RoundingErrorException(
            f"Fill {bought_by_left} leaves the left maker {sold_by_right} for "
            f"{sold_by_left} sold, below its limit price",
            details={
                "left_order_id": str(left.order_id),
                "right_order_id": str(right.order_id),
                "fill_amount": str(bought_by_left),
                "received_by_left": str(sold_by_right),
            },
        )
    if received_by_right * right.maker_asset_amount < sold_by_right * right.taker_asset_amount:
        raise SettlementInvariantViolation(
            "Right maker receives less than its limit price",
            details={
                "received_by_right": str(received_by_right),
                "sold_by_right": str(sold_by_right),
            },
        )

    if sold_by_left > left.maker_asset_amount or sold_by_right > right.maker_asset_amount:
        raise SettlementInvariantViolation(
            "Maker asset sold exceeds the amount offered",
            details={
                "sold_by_left": str(sold_by_left),
                "sold_by_right": str(sold_by_right),
            },
        )

    left_results = _side_results(left, sold_by_left, bought_by_left)
    right_results = _side_results(right, sold_by_right, bought_by_right)

    return MatchedFillResults(
        left=left_results,
        right=right_results,
        left_maker_asset_spread_amount=ensure_non_negative("spread", spread),
    )


def compute_settlement(
    left: Order,
    right: Order,
    left_taker_asset_filled_amount: int,
    taker: str,
    fee_asset: str,
) -> SettlementPlan:
    """
    Build the settlement plan for a matched pair.

    Args:
        left: Left order
        right: Right order
        left_taker_asset_filled_amount: Left taker asset bought by the left maker
        taker: Identity executing the match; pays taker fees and receives the spread
        fee_asset: Asset fees are denominated in

    Returns:
        SettlementPlan with zero-amount transfers omitted
    """
    amounts = calculate_fill_results(left, right, left_taker_asset_filled_amount)

    candidates = [
        (left.maker, right.maker, left.maker_asset,
         amounts.amount_received_by_right_maker, TransferKind.LEFT_MAKER_ASSET),
        (right.maker, left.maker, right.maker_asset,
         amounts.amount_received_by_left_maker, TransferKind.RIGHT_MAKER_ASSET),
        (left.maker, left.fee_recipient, fee_asset,
         amounts.left.maker_fee_paid, TransferKind.LEFT_MAKER_FEE),
        (right.maker, right.fee_recipient, fee_asset,
         amounts.right.maker_fee_paid, TransferKind.RIGHT_MAKER_FEE),
        (taker, left.fee_recipient, fee_asset,
         amounts.left.taker_fee_paid, TransferKind.LEFT_TAKER_FEE),
        (taker, right.fee_recipient, fee_asset,
         amounts.right.taker_fee_paid, TransferKind.RIGHT_TAKER_FEE),
        (left.maker, taker, left.maker_asset,
         amounts.amount_received_by_taker, TransferKind.TAKER_SPREAD),
    ]

    transfers: List[Transfer] = []
    for from_identity, to_identity, asset, amount, kind in candidates:
        ensure_non_negative(kind.value, amount)
        if amount == 0:
            continue
        transfers.append(Transfer(from_identity, to_identity, asset, amount, kind))

    return SettlementPlan(amounts=amounts, transfers=tuple(transfers))


def _side_results(order: Order, sold: int, bought: int) -> FillResults:
    maker_fee_paid = get_partial_amount(order.maker_fee, order.maker_asset_amount, sold)
    taker_fee_paid = get_partial_amount(order.taker_fee, order.maker_asset_amount, sold)
    return FillResults(
        maker_asset_filled_amount=ensure_non_negative("maker_asset_filled_amount", sold),
        taker_asset_filled_amount=ensure_non_negative("taker_asset_filled_amount", bought),
        maker_fee_paid=ensure_non_negative("maker_fee_paid", maker_fee_paid),
        taker_fee_paid=ensure_non_negative("taker_fee_paid", taker_fee_paid),
    )


def _check_fill_amount(left: Order, right: Order, amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidFillAmountException(
            f"Fill amount must be an integer, got {amount!r}",
            details={"fill_amount": repr(amount)},
        )
    if amount <= 0:
        raise InvalidFillAmountException(
            f"Fill amount must be positive, got {amount}",
            details={"fill_amount": str(amount)},
        )
    if amount > left.taker_asset_amount:
        raise InvalidFillAmountException(
            f"Fill amount {amount} exceeds left taker asset amount {left.taker_asset_amount}",
            details={"fill_amount": str(amount), "left_order_id": str(left.order_id)},
        )
    if amount > right.maker_asset_amount:
        raise InvalidFillAmountException(
            f"Fill amount {amount} exceeds right maker asset amount {right.maker_asset_amount}",
            details={"fill_amount": str(amount), "right_order_id": str(right.order_id)},
        )
