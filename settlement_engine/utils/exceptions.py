"""
Custom exceptions for the settlement engine

This module defines a hierarchy of exceptions used throughout the settlement engine
to separate recoverable pairing rejections from fatal arithmetic failures and
ledger errors.
"""


class BaseSettlementException(Exception):
    """Base exception class for all settlement engine exceptions."""

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidOrderException(BaseSettlementException):
    """Raised when an order contains invalid parameters or fails validation."""
    pass


class InvalidAmountException(BaseSettlementException):
    """Raised when an amount is not a non-negative integer or exceeds limits."""
    pass


class InvalidFillAmountException(InvalidAmountException):
    """Raised when a fill amount lies outside the range the orders can support."""
    pass


class InvalidIdentityException(BaseSettlementException):
    """Raised when an identity or asset identifier is empty or malformed."""
    pass


class CrossIncompatibleException(BaseSettlementException):
    """Raised when the two orders do not trade the same asset pair in opposite directions."""
    pass


class PriceIncompatibleException(BaseSettlementException):
    """Raised when the right order's price does not cross the left order's price."""
    pass


class NoFillableAmountException(BaseSettlementException):
    """Raised when one of the orders has no remaining capacity to match."""
    pass


class RoundingErrorException(BaseSettlementException):
    """Raised when floor truncation of a fill exceeds the configured tolerance."""
    pass


class SettlementInvariantViolation(BaseSettlementException):
    """
    Raised when an arithmetic invariant fails after validation passed.

    Indicates a logic defect. The match attempt must be aborted and no part
    of the settlement plan may be applied.
    """
    pass


class LedgerException(BaseSettlementException):
    """Raised for general ledger operation errors."""
    pass


class BalanceNotFoundException(LedgerException):
    """Raised when a debit targets an (identity, asset) pair with no balance."""
    pass


class InsufficientBalanceException(LedgerException):
    """Raised when a debit would drive a balance below zero."""
    pass


class LedgerUnavailableException(LedgerException):
    """Raised when the ledger cannot accept a write right now. Safe to retry."""
    pass


class SettlementFailedException(BaseSettlementException):
    """Raised when the executor gives up applying a settlement plan."""

    def __init__(self, message: str, plan=None, attempts: int = 0, details: dict = None):
        super().__init__(message, details)
        self.plan = plan
        self.attempts = attempts
