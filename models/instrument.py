"""Tradable synthetic instrument model."""

from pydantic import BaseModel, Field, field_validator


class Instrument(BaseModel):
    """A synthetic security with a mutable last price and a fixed volatility.

    ``volatility`` is the per-tick standard deviation of the log-return
    (0.01 = 1%).  Only ``simulation.price_process.tick`` should assign
    ``price`` during a session.
    """

    symbol: str = Field(min_length=1, frozen=True)
    name: str = ""
    price: float = Field(gt=0)
    volatility: float = Field(default=0.0, ge=0, frozen=True)

    model_config = {"validate_assignment": True}

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, v):
        # before min_length, so a blank symbol is rejected
        return v.strip().upper() if isinstance(v, str) else v

    def __str__(self) -> str:
        return f"{self.symbol} ({self.name}) @ {self.price:.2f}"
