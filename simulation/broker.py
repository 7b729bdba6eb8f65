"""In-process broker: market-order validation and execution.

The broker validates an order against the market and the account, then
executes it at the instrument's current price using all-or-nothing
semantics.  A rejected order raises before anything is mutated.
"""

from __future__ import annotations

import logging

from models.config import BrokerConfig
from models.decision import CashAdjustment, Order, Side, Trade
from simulation.account import Account
from simulation.errors import (
    InsufficientFundsError,
    InvalidQuantityError,
    UnknownSymbolError,
)
from simulation.market import MarketBook

logger = logging.getLogger(__name__)

CASH_EPSILON = 1e-6


class Broker:
    """Executes market orders for an ``Account`` against a ``MarketBook``.

    The market is referenced, not owned, and is exposed as ``broker.market``
    so callers that only hold the broker can still price the account.
    """

    def __init__(self, market: MarketBook, config: BrokerConfig | None = None) -> None:
        self.market = market
        self._config = config if config is not None else BrokerConfig()

    @property
    def commission_per_trade(self) -> float:
        return self._config.commission_per_trade

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def place_market_order(self, account: Account, order: Order) -> Trade:
        """Validate and execute *order* in full at the current price.

        Raises ``UnknownSymbolError``, ``InvalidQuantityError`` or
        ``InsufficientFundsError``; the account is untouched in each case.

        Only cash is checked.  A sell larger than the held quantity is
        accepted and leaves a short position.
        """
        instrument = self.market.get(order.symbol)
        if instrument is None:
            logger.warning("Rejected order: unknown symbol %s.", order.symbol)
            raise UnknownSymbolError(order.symbol)
        if order.quantity <= 0:
            logger.warning("Rejected order for %s: quantity %d.", order.symbol, order.quantity)
            raise InvalidQuantityError(order.quantity)

        signed_qty = order.quantity if order.side == Side.BUY else -order.quantity
        trade = Trade(symbol=instrument.symbol, quantity=signed_qty, price=instrument.price)

        commission = self.commission_per_trade
        cash_impact = trade.cash_impact - commission
        if account.cash + cash_impact < -CASH_EPSILON:
            logger.warning(
                "Rejected %s %d %s: needs %.2f, has %.2f.",
                order.side.value,
                order.quantity,
                instrument.symbol,
                -cash_impact,
                account.cash,
            )
            raise InsufficientFundsError(needed=-cash_impact, available=account.cash)

        account.apply(trade)
        if commission != 0.0:
            account.adjust_cash(CashAdjustment(amount=-commission, reason="commission"))
        account.record_trade(trade)

        logger.info(
            "Executed %s %d %s @ %.2f (cash now %.2f).",
            order.side.value,
            order.quantity,
            trade.symbol,
            trade.price,
            account.cash,
        )
        return trade
