"""Simulator configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
session factory, the broker and the CLI.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class InstrumentConfig(BaseModel):
    """Seed definition for one synthetic instrument."""

    symbol: str = Field(min_length=1, description="Ticker symbol, e.g. 'AAPL'.")
    name: str = Field(default="", description="Display name.")
    price: float = Field(gt=0, description="Initial price.")
    volatility: float = Field(
        default=0.0,
        ge=0.0,
        description="Per-tick log-return standard deviation (0.01 = 1%).",
    )


DEFAULT_INSTRUMENTS: list[InstrumentConfig] = [
    InstrumentConfig(symbol="AAPL", name="Apple Inc.", price=190.00, volatility=0.015),
    InstrumentConfig(symbol="GOOG", name="Alphabet Inc.", price=135.00, volatility=0.018),
    InstrumentConfig(symbol="MSFT", name="Microsoft Corp.", price=340.00, volatility=0.012),
    InstrumentConfig(symbol="AMZN", name="Amazon.com Inc.", price=140.00, volatility=0.02),
    InstrumentConfig(symbol="TSLA", name="Tesla Inc.", price=250.00, volatility=0.035),
    InstrumentConfig(symbol="NFLX", name="Netflix Inc.", price=450.00, volatility=0.03),
    InstrumentConfig(symbol="NVDA", name="NVIDIA Corp.", price=900.00, volatility=0.04),
]


class BrokerConfig(BaseModel):
    """Configuration for the in-process broker."""

    initial_cash: float = Field(
        default=100_000.0,
        gt=0,
        description="Starting cash balance for the account.",
    )
    commission_per_trade: float = Field(
        default=0.0,
        ge=0.0,
        description="Flat fee charged on every executed order.",
    )


class SimulatorConfig(BaseModel):
    """Top-level configuration for a trading session, loaded from YAML."""

    broker: BrokerConfig = Field(
        default_factory=BrokerConfig,
        description="Broker / execution configuration.",
    )
    instruments: list[InstrumentConfig] = Field(
        default_factory=lambda: [i.model_copy() for i in DEFAULT_INSTRUMENTS],
        min_length=1,
        description="Instruments seeded into the market, in display order.",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for the price random walk. None draws fresh entropy.",
    )
    data_dir: str = Field(
        default="data",
        description="Default folder for save/load.",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulatorConfig:
        """Load and validate a ``SimulatorConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
