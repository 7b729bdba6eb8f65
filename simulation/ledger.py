"""Per-symbol position bookkeeping with weighted-average cost."""

from __future__ import annotations

from collections.abc import Iterator

from models.decision import Trade
from models.portfolio import Position


def apply_trade(position: Position, trade: Trade) -> None:
    """Mutate *position* in place for one fill.

    Buys re-weight the average cost; sells only reduce quantity and leave
    the average cost of the remainder untouched.  A position that lands on
    exactly zero has its average cost reset.
    """
    if trade.quantity > 0:
        cost = position.avg_price * position.qty + trade.price * trade.quantity
        position.qty += trade.quantity
        position.avg_price = cost / position.qty if position.qty != 0 else 0.0
    else:
        # trade.quantity is negative (or zero, which is a no-op)
        position.qty += trade.quantity
        if position.qty == 0:
            position.avg_price = 0.0


class Ledger:
    """Mapping of symbol to ``Position``; never holds zero-quantity entries."""

    def __init__(self) -> None:
        self._positions: dict[str, Position] = {}

    def apply(self, trade: Trade) -> Position | None:
        """Apply *trade* and return the resulting position, or ``None`` if closed."""
        position = self._positions.setdefault(trade.symbol, Position())
        apply_trade(position, trade)
        if position.qty == 0:
            del self._positions[trade.symbol]
            return None
        return position

    def get(self, symbol: str) -> Position | None:
        return self._positions.get(symbol.strip().upper())

    def items(self) -> list[tuple[str, Position]]:
        """(symbol, position) pairs sorted by symbol."""
        return sorted(self._positions.items())

    def to_dict(self) -> dict[str, Position]:
        """Sorted copy of the ledger; mutating it does not affect the ledger."""
        return {sym: pos.model_copy() for sym, pos in self.items()}

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.strip().upper() in self._positions

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._positions))

    def __len__(self) -> int:
        return len(self._positions)
