"""
Per-order fill tracking

Records how much of each order's taker asset has already been filled, the
same quantity the exchange stores per order hash. Used to clamp the fill of
the next match.
"""

import threading
from typing import Dict
from uuid import UUID

from .order import Order
from ..utils.exceptions import InvalidFillAmountException


class FillTracker:
    """Thread-safe registry of taker-asset filled amounts keyed by order ID."""

    def __init__(self):
        self._filled: Dict[UUID, int] = {}
        self._lock = threading.Lock()

    def get_filled(self, order: Order) -> int:
        """Taker asset already filled on an order (0 if never matched)."""
        with self._lock:
            return self._filled.get(order.order_id, 0)

    def get_remaining(self, order: Order) -> int:
        """Taker asset still available on an order."""
        return order.taker_asset_amount - self.get_filled(order)

    def is_fully_filled(self, order: Order) -> bool:
        return self.get_remaining(order) == 0

    def record_fill(self, order: Order, amount: int) -> int:
        """
        Add a fill to an order.

        Args:
            order: Order that was filled
            amount: Taker asset filled by this match

        Returns:
            New total filled amount

        Raises:
            InvalidFillAmountException: If the fill is negative or overfills the order
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise InvalidFillAmountException(
                f"Fill amount must be a non-negative integer, got {amount!r}",
                details={"order_id": str(order.order_id)},
            )

        with self._lock:
            filled = self._filled.get(order.order_id, 0) + amount
            if filled > order.taker_asset_amount:
                raise InvalidFillAmountException(
                    f"Fill of {amount} would overfill order {order.order_id}: "
                    f"{filled}/{order.taker_asset_amount}",
                    details={"order_id": str(order.order_id), "filled": str(filled)},
                )
            self._filled[order.order_id] = filled
            return filled

    def __len__(self) -> int:
        return len(self._filled)
