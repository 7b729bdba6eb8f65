"""Data models for the trading simulator.

The simulation engine, the session facade and the CLI all import from models.
"""

from models.config import BrokerConfig, InstrumentConfig, SimulatorConfig
from models.decision import CashAdjustment, Order, Side, Trade
from models.instrument import Instrument
from models.portfolio import AccountView, PortfolioSnapshot, Position, PositionView

__all__ = [
    # config
    "BrokerConfig",
    "InstrumentConfig",
    "SimulatorConfig",
    # decision
    "CashAdjustment",
    "Order",
    "Side",
    "Trade",
    # instrument
    "Instrument",
    # portfolio
    "AccountView",
    "PortfolioSnapshot",
    "Position",
    "PositionView",
]
