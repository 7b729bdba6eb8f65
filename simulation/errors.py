"""Exception hierarchy for order execution and persistence.

Every error here is recoverable: the operation that raised it was not
applied and the caller may simply continue.
"""

from __future__ import annotations


class TradingError(Exception):
    """Base class for all simulator errors."""


# ------------------------------------------------------------------
# Order rejection
# ------------------------------------------------------------------

class OrderRejectedError(TradingError):
    """An order failed validation; the account was not modified."""


class UnknownSymbolError(OrderRejectedError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Unknown symbol: {symbol}")
        self.symbol = symbol


class InvalidQuantityError(OrderRejectedError):
    def __init__(self, quantity: int) -> None:
        super().__init__(f"Quantity must be positive, got {quantity}.")
        self.quantity = quantity


class InsufficientFundsError(OrderRejectedError):
    def __init__(self, needed: float, available: float) -> None:
        super().__init__(
            f"Insufficient cash to buy. Needed: {needed:.2f}, Available: {available:.2f}"
        )
        self.needed = needed
        self.available = available


# ------------------------------------------------------------------
# Persistence
# ------------------------------------------------------------------

class PersistenceError(TradingError):
    """Saving or loading account state failed."""


class LocationNotFoundError(PersistenceError):
    def __init__(self, location: str) -> None:
        super().__init__(f"Directory not found: {location}")
        self.location = location


class PersistenceIOError(PersistenceError):
    """Reading or writing one of the data files failed.

    On save, files written before the failing one remain on disk.
    """


class ParseError(PersistenceError):
    """A data file exists but its content could not be parsed."""
