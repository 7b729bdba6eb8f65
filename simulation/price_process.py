"""Geometric random-walk price update for synthetic instruments."""

from __future__ import annotations

import math

import numpy as np

from models.instrument import Instrument

PRICE_FLOOR = 0.01
DRIFT = 0.0
DT = 1.0


def tick(instrument: Instrument, rng: np.random.Generator) -> None:
    """Advance *instrument*'s price by one step.

    Draws a standard-normal shock ``z`` and applies the log-return
    ``drift*dt + volatility*z*sqrt(dt)``.  The result is floored at
    ``PRICE_FLOOR`` so prices stay positive.  A zero-volatility instrument
    still consumes one draw, keeping paths aligned across instruments.
    """
    shock = float(rng.standard_normal()) * math.sqrt(DT)
    log_return = DRIFT * DT + instrument.volatility * shock
    instrument.price = max(PRICE_FLOOR, instrument.price * math.exp(log_return))
