"""
Order domain model

This module defines the immutable limit Order consumed by the settlement engine.
Orders arrive already validated and signed; the engine never mutates them.
"""

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict
from uuid import UUID, uuid4


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class Order:
    """
    Represents a signed limit order offering one asset for another.

    The order's exchange rate is maker_asset_amount / taker_asset_amount.
    Fees are denominated in the engine's fee asset and are charged in
    proportion to how much of the maker asset is sold.

    Attributes:
        maker: Identity of the order's originator
        maker_asset: Asset the maker gives
        taker_asset: Asset the maker wants in return
        maker_asset_amount: Total quantity of maker asset offered
        taker_asset_amount: Total quantity of taker asset requested
        fee_recipient: Identity credited with fees for this order
        maker_fee: Fee owed by the maker for a complete fill
        taker_fee: Fee owed by the taker for a complete fill
        order_id: Unique identifier for the order
    """

    maker: str
    maker_asset: str
    taker_asset: str
    maker_asset_amount: int
    taker_asset_amount: int
    fee_recipient: str
    maker_fee: int = 0
    taker_fee: int = 0
    order_id: UUID = field(default_factory=uuid4)

    def __post_init__(self):
        """
        Post-initialization validation.

        Raises:
            ValueError: If order parameters are invalid
        """
        self.validate()

    def validate(self) -> None:
        """
        Validate order parameters.

        Raises:
            ValueError: If validation fails
        """
        for name in ("maker_asset_amount", "taker_asset_amount", "maker_fee", "taker_fee"):
            value = getattr(self, name)
            if not _is_integer(value):
                raise ValueError(f"{name} must be an integer, got {value!r}")

        if self.maker_asset_amount <= 0:
            raise ValueError(f"Maker asset amount must be positive, got {self.maker_asset_amount}")

        if self.taker_asset_amount <= 0:
            raise ValueError(f"Taker asset amount must be positive, got {self.taker_asset_amount}")

        if self.maker_fee < 0:
            raise ValueError(f"Maker fee cannot be negative, got {self.maker_fee}")

        if self.taker_fee < 0:
            raise ValueError(f"Taker fee cannot be negative, got {self.taker_fee}")

        for name in ("maker", "maker_asset", "taker_asset", "fee_recipient"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} cannot be empty")

        if self.maker_asset == self.taker_asset:
            raise ValueError(f"Maker and taker asset must differ, both are {self.maker_asset}")

    @property
    def price(self) -> Fraction:
        """Exact exchange rate (maker asset per unit of taker asset). Display only."""
        return Fraction(self.maker_asset_amount, self.taker_asset_amount)

    @property
    def has_fees(self) -> bool:
        """Check if the order carries any fee."""
        return self.maker_fee > 0 or self.taker_fee > 0

    def trades_against(self, other: "Order") -> bool:
        """Check if the other order trades the same pair in the opposite direction."""
        return self.maker_asset == other.taker_asset and self.taker_asset == other.maker_asset

    def __repr__(self) -> str:
        """String representation of the order."""
        return (
            f"Order(id={str(self.order_id)[:8]}..., maker={self.maker}, "
            f"{self.maker_asset_amount} {self.maker_asset} for "
            f"{self.taker_asset_amount} {self.taker_asset}, "
            f"fees={self.maker_fee}/{self.taker_fee})"
        )

    def __eq__(self, other) -> bool:
        """Equality based on order ID."""
        if not isinstance(other, Order):
            return False
        return self.order_id == other.order_id

    def __hash__(self) -> int:
        """Hash based on order ID for use in sets/dicts."""
        return hash(self.order_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert order to dictionary for serialization."""
        return {
            "order_id": str(self.order_id),
            "maker": self.maker,
            "maker_asset": self.maker_asset,
            "taker_asset": self.taker_asset,
            "maker_asset_amount": str(self.maker_asset_amount),
            "taker_asset_amount": str(self.taker_asset_amount),
            "maker_fee": str(self.maker_fee),
            "taker_fee": str(self.taker_fee),
            "fee_recipient": self.fee_recipient,
        }
