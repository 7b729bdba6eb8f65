"""Market book: the set of tradable instruments and the tick clock."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from models.config import InstrumentConfig
from models.instrument import Instrument
from simulation import price_process

logger = logging.getLogger(__name__)


class MarketBook:
    """Insertion-ordered mapping of symbol to ``Instrument`` plus a tick counter.

    The random generator is injected so tests can pass a fixed-seed
    ``numpy.random.Generator`` and reproduce a price path exactly.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._instruments: dict[str, Instrument] = {}
        self._rng = rng if rng is not None else np.random.default_rng()
        self._ticks = 0

    @classmethod
    def from_config(
        cls,
        instruments: Iterable[InstrumentConfig],
        rng: np.random.Generator | None = None,
    ) -> MarketBook:
        """Build a market seeded with *instruments* in the given order."""
        market = cls(rng)
        for cfg in instruments:
            market.add(
                Instrument(
                    symbol=cfg.symbol,
                    name=cfg.name,
                    price=cfg.price,
                    volatility=cfg.volatility,
                )
            )
        logger.info("Seeded market with %d instrument(s).", len(market))
        return market

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def add(self, instrument: Instrument) -> None:
        """Insert *instrument*, replacing any existing entry for its symbol."""
        self._instruments[instrument.symbol.upper()] = instrument

    def get(self, symbol: str) -> Instrument | None:
        """Case-insensitive lookup. Returns ``None`` for an unknown symbol."""
        return self._instruments.get(symbol.strip().upper())

    def all(self) -> tuple[Instrument, ...]:
        """All instruments in insertion order."""
        return tuple(self._instruments.values())

    def price_of(self, symbol: str) -> float | None:
        instrument = self.get(symbol)
        return instrument.price if instrument is not None else None

    def advance(self) -> None:
        """Tick every instrument once, then bump the tick counter."""
        for instrument in self._instruments.values():
            price_process.tick(instrument, self._rng)
        self._ticks += 1
        logger.debug("Market advanced to tick %d.", self._ticks)

    @property
    def ticks(self) -> int:
        return self._ticks

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and self.get(symbol) is not None

    def __len__(self) -> int:
        return len(self._instruments)
