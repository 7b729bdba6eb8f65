"""Trading session facade: the interface the interactive menu calls into.

A session wires one ``MarketBook``, one ``Account`` and one ``Broker``
together.  Every method either returns data for display or raises a
``TradingError`` subclass that the caller renders as a message.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from models.config import SimulatorConfig
from models.decision import Order, Side, Trade
from models.instrument import Instrument
from models.portfolio import AccountView, PortfolioSnapshot
from simulation import data_store
from simulation.account import Account
from simulation.broker import Broker
from simulation.market import MarketBook

logger = logging.getLogger(__name__)

RECENT_TRADES = 10


class TradingSession:
    """Single-user session over a market, an account and a broker."""

    def __init__(self, market: MarketBook, account: Account, broker: Broker) -> None:
        self.market = market
        self.account = account
        self.broker = broker

    @classmethod
    def from_config(cls, config: SimulatorConfig) -> TradingSession:
        """Seed the market from *config* and record the initial snapshot."""
        rng = np.random.default_rng(config.seed)
        market = MarketBook.from_config(config.instruments, rng)
        account = Account(config.broker.initial_cash)
        session = cls(market, account, Broker(market, config.broker))
        account.record_snapshot(market, "INIT")
        return session

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    def list_instruments(self) -> tuple[Instrument, ...]:
        return self.market.all()

    def advance_market(self) -> int:
        """Advance all prices by one tick and return the new tick count."""
        self.market.advance()
        return self.market.ticks

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def place_order(self, symbol: str, quantity: int, side: Side | str) -> Trade:
        """Place a market order and record a ``TRADE`` snapshot on success."""
        order = Order(symbol=symbol, quantity=quantity, side=Side(side.upper()))
        trade = self.broker.place_market_order(self.account, order)
        self.account.record_snapshot(self.market, "TRADE")
        return trade

    # ------------------------------------------------------------------
    # Account views
    # ------------------------------------------------------------------

    def view_account(self) -> AccountView:
        positions = self.account.position_views(self.market)
        market_value = self.account.market_value(self.market)
        return AccountView(
            cash=self.account.cash,
            positions=positions,
            market_value=market_value,
            equity=self.account.cash + market_value,
            unrealized_pnl=sum(p.unrealized_pnl for p in positions),
            recent_trades=self.account.trades[-RECENT_TRADES:],
        )

    def record_snapshot(self, label: str | None = None) -> PortfolioSnapshot:
        """Append a snapshot; the default label is ``T<ticks>``."""
        if label is None:
            label = f"T{self.market.ticks}"
        return self.account.record_snapshot(self.market, label)

    def view_history(self) -> list[PortfolioSnapshot]:
        return self.account.history

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_to(self, path: str | Path) -> None:
        data_store.save(self.account, self.market, path)

    def load_from(self, path: str | Path, restore_market: bool = False) -> None:
        """Load account state from *path*.

        With *restore_market*, saved instrument prices are applied as well.
        ``market.csv`` is parsed before the account is touched, so a bad
        market file leaves both the account and the market unchanged.
        """
        instruments = data_store.read_market(path) if restore_market else None
        data_store.load(self.account, path)
        if instruments is not None:
            data_store.apply_market(self.market, instruments)
