"""
In-memory balance ledger

Holds balances keyed by (identity, asset) and applies settlement plans
atomically: either every transfer of a plan lands or none does.
"""

import threading
from typing import Dict, NamedTuple, Optional, Set

from .settlement import SettlementPlan
from ..utils.exceptions import (
    BalanceNotFoundException,
    InsufficientBalanceException,
    InvalidAmountException,
    InvalidIdentityException,
)


class BalanceKey(NamedTuple):
    """Composite key of a ledger balance."""
    identity: str
    asset: str


class Ledger:
    """
    Thread-safe ledger of integer balances.

    Readers never observe a partially applied plan: apply() builds the new
    balances on a working copy and swaps them in under the lock.
    """

    def __init__(self, initial_balances: Optional[Dict[BalanceKey, int]] = None):
        """
        Initialize the ledger.

        Args:
            initial_balances: Optional mapping of (identity, asset) to balance
        """
        self._balances: Dict[BalanceKey, int] = {}
        self._lock = threading.Lock()
        self.version = 0

        for (identity, asset), amount in (initial_balances or {}).items():
            self.deposit(identity, asset, amount)

    def deposit(self, identity: str, asset: str, amount: int) -> int:
        """
        Credit an identity with an asset.

        Returns:
            New balance
        """
        key = self._key(identity, asset)
        self._check_amount(amount)
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + amount
            self.version += 1
            return self._balances[key]

    def withdraw(self, identity: str, asset: str, amount: int) -> int:
        """
        Debit an identity's asset balance.

        Returns:
            New balance

        Raises:
            BalanceNotFoundException: If there is no balance for the key
            InsufficientBalanceException: If the balance is too small
        """
        key = self._key(identity, asset)
        self._check_amount(amount)
        with self._lock:
            new_balance = self._debit(self._balances, key, amount)
            self._balances[key] = new_balance
            self.version += 1
            return new_balance

    def get_balance(self, identity: str, asset: str) -> Optional[int]:
        """
        Get a balance.

        Returns:
            The balance, or None if the identity has never held the asset
        """
        with self._lock:
            return self._balances.get(BalanceKey(identity, asset))

    def has_balance(self, identity: str, asset: str) -> bool:
        with self._lock:
            return BalanceKey(identity, asset) in self._balances

    def balances_of(self, identity: str) -> Dict[str, int]:
        """All asset balances held by an identity."""
        with self._lock:
            return {
                key.asset: amount
                for key, amount in self._balances.items()
                if key.identity == identity
            }

    def snapshot(self) -> Dict[BalanceKey, int]:
        """Copy of every balance at a single point in time."""
        with self._lock:
            return dict(self._balances)

    def total_supply(self, asset: str) -> int:
        """Sum of all balances of an asset."""
        with self._lock:
            return sum(amount for key, amount in self._balances.items() if key.asset == asset)

    def apply(self, plan: SettlementPlan) -> Set[BalanceKey]:
        """
        Apply every transfer of a plan atomically.

        Transfers are applied in plan order on a working copy; a failure
        anywhere leaves the ledger untouched.

        Args:
            plan: Settlement plan to apply

        Returns:
            Set of balance keys that changed

        Raises:
            BalanceNotFoundException: If a debit targets a missing balance
            InsufficientBalanceException: If a debit would overdraw a balance
        """
        with self._lock:
            working = dict(self._balances)
            touched: Set[BalanceKey] = set()

            for transfer in plan.transfers:
                source = BalanceKey(transfer.from_identity, transfer.asset)
                destination = BalanceKey(transfer.to_identity, transfer.asset)
                working[source] = self._debit(working, source, transfer.amount)
                working[destination] = working.get(destination, 0) + transfer.amount
                touched.update((source, destination))

            self._balances = working
            self.version += 1
            return touched

    @staticmethod
    def _debit(balances: Dict[BalanceKey, int], key: BalanceKey, amount: int) -> int:
        current = balances.get(key)
        if current is None:
            raise BalanceNotFoundException(
                f"No {key.asset} balance for {key.identity}",
                details={"identity": key.identity, "asset": key.asset},
            )
        if current < amount:
            raise InsufficientBalanceException(
                f"Insufficient {key.asset} balance for {key.identity}: "
                f"has {current}, needs {amount}",
                details={
                    "identity": key.identity,
                    "asset": key.asset,
                    "balance": str(current),
                    "required": str(amount),
                },
            )
        return current - amount

    @staticmethod
    def _key(identity: str, asset: str) -> BalanceKey:
        if not isinstance(identity, str) or not identity.strip():
            raise InvalidIdentityException(f"Invalid identity: {identity!r}")
        if not isinstance(asset, str) or not asset.strip():
            raise InvalidIdentityException(f"Invalid asset: {asset!r}")
        return BalanceKey(identity, asset)

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise InvalidAmountException(
                f"Amount must be a non-negative integer, got {amount!r}",
                details={"amount": repr(amount)},
            )

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"Ledger(balances={len(self._balances)}, version={self.version})"
