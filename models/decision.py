"""Order and execution models: Side, Order, Trade, CashAdjustment."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Side(str, Enum):
    """Direction of a market order."""

    BUY = "BUY"
    SELL = "SELL"


class Order(BaseModel):
    """Market order request: symbol, side, quantity.

    Quantity is not constrained here; the broker rejects non-positive values
    with ``InvalidQuantityError`` so the caller gets a domain error rather
    than a validation error.
    """

    symbol: str
    quantity: int
    side: Side
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


class Trade(BaseModel):
    """Single executed fill. Immutable once created.

    ``quantity`` is signed: positive for a buy, negative for a sell.
    ``price`` is not range-checked: executed fills take the instrument's
    (always positive) price, while the synthetic trades that rebuild a saved
    ledger carry its average cost, which a covered short can drive negative.
    """

    symbol: str
    quantity: int
    price: float
    time: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def cash_impact(self) -> float:
        """Cash change caused by this trade (negative for buys)."""
        return -self.quantity * self.price

    @property
    def side(self) -> Side | None:
        if self.quantity > 0:
            return Side.BUY
        if self.quantity < 0:
            return Side.SELL
        return None


class CashAdjustment(BaseModel):
    """Ledger-only cash movement with no symbol and no market effect.

    Used for commissions and for restoring a saved cash balance.
    """

    amount: float
    reason: str = ""
    time: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
