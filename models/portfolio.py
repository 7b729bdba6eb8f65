"""Portfolio state models: positions, performance snapshots, account views."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from models.decision import Trade


class Position(BaseModel):
    """Net held quantity and volume-weighted average cost for one symbol.

    Mutated in place by ``simulation.ledger.apply_trade``.  A negative
    ``qty`` is a short holding (no margin model).
    """

    qty: int = 0
    avg_price: float = 0.0


class PortfolioSnapshot(BaseModel):
    """Point-in-time record of cash, market value and total equity."""

    time: datetime = Field(default_factory=datetime.now)
    label: str
    cash: float
    market_value: float
    equity: float

    model_config = {"frozen": True}


class PositionView(BaseModel):
    """One ledger row priced against the current market."""

    symbol: str
    qty: int
    avg_price: float
    last_price: float
    unrealized_pnl: float


class AccountView(BaseModel):
    """Read-only summary of an account, as shown by the portfolio screen."""

    cash: float
    positions: list[PositionView]
    market_value: float
    equity: float
    unrealized_pnl: float
    recent_trades: list[Trade]
