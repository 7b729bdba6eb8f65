"""Account: cash, ledger, trade history and performance snapshots.

``Account.apply`` and ``Account.adjust_cash`` are unconditional mutations.
Validation belongs to the broker; callers must check before applying.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from models.decision import CashAdjustment, Trade
from models.portfolio import PortfolioSnapshot, Position, PositionView
from simulation.ledger import Ledger
from simulation.market import MarketBook

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CASH = 100_000.0


class Account:
    """Single-user trading account.

    Owns its ledger, trade history and snapshot history exclusively.  The
    market is only ever passed in for valuation and is never stored.
    """

    def __init__(self, initial_cash: float = DEFAULT_INITIAL_CASH) -> None:
        self._cash: float = initial_cash
        self._ledger = Ledger()
        self._trades: list[Trade] = []
        self._history: list[PortfolioSnapshot] = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply(self, trade: Trade) -> None:
        """Move cash by ``trade.cash_impact`` and update the ledger."""
        self._cash += trade.cash_impact
        self._ledger.apply(trade)

    def adjust_cash(self, adjustment: CashAdjustment) -> None:
        self._cash += adjustment.amount
        logger.debug("Cash adjusted by %.6f (%s).", adjustment.amount, adjustment.reason)

    def record_trade(self, trade: Trade) -> None:
        self._trades.append(trade)

    def record_snapshot(self, market: MarketBook, label: str) -> PortfolioSnapshot:
        """Append a snapshot of current cash, market value and equity."""
        market_value = self.market_value(market)
        snapshot = PortfolioSnapshot(
            label=label,
            cash=self._cash,
            market_value=market_value,
            equity=self._cash + market_value,
        )
        self._history.append(snapshot)
        return snapshot

    def replace_history(
        self,
        trades: Iterable[Trade],
        snapshots: Iterable[PortfolioSnapshot],
    ) -> None:
        """Discard trade and snapshot history and install the given sequences.

        Nothing is merged and nothing is checked against the ledger.
        """
        self._trades = list(trades)
        self._history = list(snapshots)

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def market_value(self, market: MarketBook) -> float:
        """Sum of ``qty * price`` over the ledger.

        Symbols the market does not list contribute nothing.
        """
        value = 0.0
        for symbol, position in self._ledger.items():
            price = market.price_of(symbol)
            if price is not None:
                value += position.qty * price
        return value

    def total_equity(self, market: MarketBook) -> float:
        return self._cash + self.market_value(market)

    def position_views(self, market: MarketBook) -> list[PositionView]:
        """Ledger rows with last price and unrealized P&L.

        A symbol missing from the market is priced at its own average cost,
        so it shows zero unrealized P&L.
        """
        views = []
        for symbol, position in self._ledger.items():
            price = market.price_of(symbol)
            last = price if price is not None else position.avg_price
            views.append(
                PositionView(
                    symbol=symbol,
                    qty=position.qty,
                    avg_price=position.avg_price,
                    last_price=last,
                    unrealized_pnl=(last - position.avg_price) * position.qty,
                )
            )
        return views

    def unrealized_pnl(self, market: MarketBook) -> float:
        return sum(view.unrealized_pnl for view in self.position_views(market))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def positions(self) -> dict[str, Position]:
        """Sorted copy of the ledger."""
        return self._ledger.to_dict()

    @property
    def trades(self) -> list[Trade]:
        return list(self._trades)

    @property
    def history(self) -> list[PortfolioSnapshot]:
        return list(self._history)
