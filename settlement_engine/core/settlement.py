"""
Settlement plan domain model

This module defines the immutable output of the settlement calculator: the
per-side fill results and the ordered list of asset transfers a ledger must
apply atomically.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Tuple
from uuid import UUID


class TransferKind(Enum):
    """Purpose of a transfer within a settlement plan."""
    LEFT_MAKER_ASSET = "LEFT_MAKER_ASSET"    # left maker -> right maker
    RIGHT_MAKER_ASSET = "RIGHT_MAKER_ASSET"  # right maker -> left maker
    LEFT_MAKER_FEE = "LEFT_MAKER_FEE"        # left maker -> left fee recipient
    RIGHT_MAKER_FEE = "RIGHT_MAKER_FEE"      # right maker -> right fee recipient
    LEFT_TAKER_FEE = "LEFT_TAKER_FEE"        # taker -> left fee recipient
    RIGHT_TAKER_FEE = "RIGHT_TAKER_FEE"      # taker -> right fee recipient
    TAKER_SPREAD = "TAKER_SPREAD"            # left maker -> taker

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Transfer:
    """
    A single movement of an asset between two identities.

    This class is immutable (frozen=True) so a plan can be reused verbatim
    across ledger retries.
    """

    from_identity: str
    to_identity: str
    asset: str
    amount: int
    kind: TransferKind

    def __post_init__(self):
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise ValueError(f"Transfer amount must be an integer, got {self.amount!r}")
        if self.amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {self.amount}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_identity,
            "to": self.to_identity,
            "asset": self.asset,
            "amount": str(self.amount),
            "kind": self.kind.value,
        }

    def __repr__(self) -> str:
        return (
            f"Transfer({self.kind.value}: {self.amount} {self.asset} "
            f"{self.from_identity} -> {self.to_identity})"
        )


@dataclass(frozen=True, slots=True)
class FillResults:
    """
    Amounts filled and fees paid for one side of a match.

    Attributes:
        maker_asset_filled_amount: Maker asset the order's maker sold
        taker_asset_filled_amount: Taker asset the order's maker bought
        maker_fee_paid: Fee debited from the order's maker
        taker_fee_paid: Fee debited from the taker on behalf of this order
    """

    maker_asset_filled_amount: int
    taker_asset_filled_amount: int
    maker_fee_paid: int
    taker_fee_paid: int

    @property
    def fees_received(self) -> int:
        """Total credited to this side's fee recipient."""
        return self.maker_fee_paid + self.taker_fee_paid

    def to_dict(self) -> Dict[str, str]:
        return {
            "maker_asset_filled_amount": str(self.maker_asset_filled_amount),
            "taker_asset_filled_amount": str(self.taker_asset_filled_amount),
            "maker_fee_paid": str(self.maker_fee_paid),
            "taker_fee_paid": str(self.taker_fee_paid),
        }


@dataclass(frozen=True, slots=True)
class MatchedFillResults:
    """Fill results for both sides plus the spread captured by the taker."""

    left: FillResults
    right: FillResults
    left_maker_asset_spread_amount: int

    # Names used by the settlement derivation

    @property
    def amount_bought_by_left_maker(self) -> int:
        return self.left.taker_asset_filled_amount

    @property
    def amount_sold_by_left_maker(self) -> int:
        return self.left.maker_asset_filled_amount

    @property
    def amount_bought_by_right_maker(self) -> int:
        return self.right.taker_asset_filled_amount

    @property
    def amount_sold_by_right_maker(self) -> int:
        return self.right.maker_asset_filled_amount

    @property
    def amount_received_by_left_maker(self) -> int:
        return self.right.maker_asset_filled_amount

    @property
    def amount_received_by_right_maker(self) -> int:
        return self.right.taker_asset_filled_amount

    @property
    def amount_received_by_taker(self) -> int:
        return self.left_maker_asset_spread_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
            "left_maker_asset_spread_amount": str(self.left_maker_asset_spread_amount),
        }


@dataclass(frozen=True, slots=True)
class SettlementPlan:
    """
    Ordered, immutable list of transfers settling one matched pair.

    Identical inputs always produce an equal plan: there are no timestamps or
    generated identifiers in it.
    """

    amounts: MatchedFillResults
    transfers: Tuple[Transfer, ...]

    def __iter__(self) -> Iterator[Transfer]:
        return iter(self.transfers)

    def __len__(self) -> int:
        return len(self.transfers)

    def transfers_of_kind(self, kind: TransferKind) -> Tuple[Transfer, ...]:
        return tuple(t for t in self.transfers if t.kind == kind)

    def net_flows(self) -> Dict[Tuple[str, str], int]:
        """
        Net balance change per (identity, asset).

        Returns:
            Mapping of (identity, asset) to signed delta; zero deltas are dropped
        """
        flows: Dict[Tuple[str, str], int] = defaultdict(int)
        for transfer in self.transfers:
            flows[(transfer.from_identity, transfer.asset)] -= transfer.amount
            flows[(transfer.to_identity, transfer.asset)] += transfer.amount
        return {key: delta for key, delta in flows.items() if delta != 0}

    def totals_by_asset(self) -> Dict[str, int]:
        """Gross amount moved per asset."""
        totals: Dict[str, int] = defaultdict(int)
        for transfer in self.transfers:
            totals[transfer.asset] += transfer.amount
        return dict(totals)

    def credits_to(self, identity: str, asset: str) -> int:
        """Sum of all transfers of an asset into an identity."""
        return sum(
            t.amount for t in self.transfers
            if t.to_identity == identity and t.asset == asset
        )

    def debits_from(self, identity: str, asset: str) -> int:
        """Sum of all transfers of an asset out of an identity."""
        return sum(
            t.amount for t in self.transfers
            if t.from_identity == identity and t.asset == asset
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amounts": self.amounts.to_dict(),
            "transfers": [transfer.to_dict() for transfer in self.transfers],
        }


@dataclass(frozen=True)
class SettlementResult:
    """
    Result of a settlement applied by the settlement service.

    Attributes:
        settlement_id: Unique identifier for this application of the plan
        plan: The settlement plan that was applied
        left_order_id: ID of the left order
        right_order_id: ID of the right order
        taker: Identity that executed the match
        attempts: Number of ledger attempts it took to apply the plan
        timestamp: Time the plan was applied
    """

    settlement_id: UUID
    plan: SettlementPlan
    left_order_id: UUID
    right_order_id: UUID
    taker: str
    attempts: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def spread(self) -> int:
        return self.plan.amounts.left_maker_asset_spread_amount

    def to_dict(self) -> Dict[str, Any]:
        """Convert settlement result to dictionary for serialization."""
        return {
            "settlement_id": str(self.settlement_id),
            "left_order_id": str(self.left_order_id),
            "right_order_id": str(self.right_order_id),
            "taker": self.taker,
            "attempts": self.attempts,
            "timestamp": self.timestamp.isoformat(),
            **self.plan.to_dict(),
        }
