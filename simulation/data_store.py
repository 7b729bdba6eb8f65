"""Flat-file persistence for account and market state.

One directory holds one saved state::

    {directory}/
    ├── cash.txt         single line, 2 decimals
    ├── positions.csv    symbol,qty,avgPrice
    ├── trades.csv       time,symbol,qty,price,cashImpact
    ├── history.csv      time,label,cash,marketValue,equity
    └── market.csv       symbol,name,price

Every file is written or read whole inside its own ``with`` block.  ``save``
may leave a partial file set behind if a write fails part way; the error
names the file that failed.  ``load`` parses every file before touching the
account, so a failed load leaves the in-memory state as it was.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from models.decision import CashAdjustment, Trade
from models.instrument import Instrument
from models.portfolio import PortfolioSnapshot
from simulation.account import Account
from simulation.errors import LocationNotFoundError, ParseError, PersistenceIOError
from simulation.market import MarketBook

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

CASH_FILE = "cash.txt"
POSITIONS_FILE = "positions.csv"
TRADES_FILE = "trades.csv"
HISTORY_FILE = "history.csv"
MARKET_FILE = "market.csv"

POSITIONS_HEADER = ["symbol", "qty", "avgPrice"]
TRADES_HEADER = ["time", "symbol", "qty", "price", "cashImpact"]
HISTORY_HEADER = ["time", "label", "cash", "marketValue", "equity"]
MARKET_HEADER = ["symbol", "name", "price"]

# Cash deltas at or below this are treated as already equal on load.
CASH_LOAD_TOLERANCE = 1e-8


@dataclass
class SavedState:
    """Parsed contents of a save directory. ``None`` means the file was absent."""

    cash: float | None = None
    positions: list[Trade] | None = None
    trades: list[Trade] | None = None
    snapshots: list[PortfolioSnapshot] | None = None


# ------------------------------------------------------------------
# Save
# ------------------------------------------------------------------

def save(account: Account, market: MarketBook, directory: str | Path) -> None:
    """Write the full account and market state to *directory*.

    Creates the directory if needed.  Raises ``PersistenceIOError`` on the
    first file that cannot be written.
    """
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceIOError(f"Cannot create directory {directory}: {exc}") from exc

    _write_text(directory / CASH_FILE, f"{account.cash:.2f}\n")

    _write_rows(
        directory / POSITIONS_FILE,
        POSITIONS_HEADER,
        [[symbol, str(pos.qty), f"{pos.avg_price:.6f}"] for symbol, pos in account.ledger.items()],
    )

    _write_rows(
        directory / TRADES_FILE,
        TRADES_HEADER,
        [
            [
                t.time.strftime(TIME_FORMAT),
                t.symbol,
                str(t.quantity),
                f"{t.price:.6f}",
                f"{t.cash_impact:.6f}",
            ]
            for t in account.trades
        ],
    )

    _write_rows(
        directory / HISTORY_FILE,
        HISTORY_HEADER,
        [
            [
                s.time.strftime(TIME_FORMAT),
                s.label.replace(",", " "),
                f"{s.cash:.6f}",
                f"{s.market_value:.6f}",
                f"{s.equity:.6f}",
            ]
            for s in account.history
        ],
    )

    _write_rows(
        directory / MARKET_FILE,
        MARKET_HEADER,
        [[i.symbol, i.name.replace(",", " "), f"{i.price:.6f}"] for i in market.all()],
    )

    logger.info(
        "Saved %d position(s), %d trade(s), %d snapshot(s) to %s",
        len(account.ledger),
        len(account.trades),
        len(account.history),
        directory,
    )


# ------------------------------------------------------------------
# Load
# ------------------------------------------------------------------

def load(account: Account, directory: str | Path) -> None:
    """Replace *account*'s state with the contents of *directory*.

    Positions are rebuilt by flattening every current position at its own
    average cost and replaying each saved row as synthetic trades.  Cash
    is then set to the saved value with a single ``CashAdjustment``.  Trade
    and snapshot history are replaced wholesale.  Files that are absent
    leave the matching part of the account unchanged.

    Raises ``LocationNotFoundError``, ``PersistenceIOError`` or ``ParseError``;
    in every case the account is left unmodified.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise LocationNotFoundError(str(directory.absolute()))

    state = read_state(directory)
    _restore(account, state)
    logger.info("Loaded account state from %s", directory)


def read_state(directory: Path) -> SavedState:
    """Parse every data file present in *directory* without applying anything."""
    state = SavedState()

    cash_path = directory / CASH_FILE
    if cash_path.exists():
        state.cash = _read_cash(cash_path)

    positions_path = directory / POSITIONS_FILE
    if positions_path.exists():
        state.positions = [
            _parse(positions_path, line_no, _position_trade, row)
            for line_no, row in _read_rows(positions_path, len(POSITIONS_HEADER))
        ]

    trades_path = directory / TRADES_FILE
    if trades_path.exists():
        state.trades = [
            _parse(trades_path, line_no, _trade, row)
            for line_no, row in _read_rows(trades_path, len(TRADES_HEADER))
        ]

    history_path = directory / HISTORY_FILE
    if history_path.exists():
        state.snapshots = [
            _parse(history_path, line_no, _snapshot, row)
            for line_no, row in _read_rows(history_path, len(HISTORY_HEADER))
        ]

    return state


def load_market(market: MarketBook, directory: str | Path) -> int:
    """Restore instrument prices from ``market.csv`` in *directory*.

    Returns the number of instruments restored (0 if the file is absent).
    """
    instruments = read_market(directory)
    if instruments is None:
        return 0
    apply_market(market, instruments)
    return len(instruments)


def read_market(directory: str | Path) -> list[Instrument] | None:
    """Parse ``market.csv`` in *directory*; ``None`` if the file is absent."""
    directory = Path(directory)
    if not directory.is_dir():
        raise LocationNotFoundError(str(directory.absolute()))

    path = directory / MARKET_FILE
    if not path.exists():
        logger.warning("No %s in %s; market left unchanged.", MARKET_FILE, directory)
        return None

    return [
        _parse(path, line_no, _instrument, row)
        for line_no, row in _read_rows(path, len(MARKET_HEADER))
    ]


def apply_market(market: MarketBook, instruments: list[Instrument]) -> None:
    """Known symbols get the saved price; unknown ones are added with zero volatility."""
    for saved in instruments:
        existing = market.get(saved.symbol)
        if existing is None:
            market.add(saved)
        else:
            existing.price = saved.price
    logger.info("Restored %d instrument price(s).", len(instruments))


def _restore(account: Account, state: SavedState) -> None:
    target_cash = state.cash if state.cash is not None else account.cash

    # Build every synthetic trade up front; applying them cannot fail.
    trades: list[Trade] = []
    if state.positions is not None:
        trades.extend(
            Trade(symbol=symbol, quantity=-position.qty, price=position.avg_price)
            for symbol, position in account.ledger.items()
        )
        for row in state.positions:
            trades.extend(_replay_trades(row))

    for trade in trades:
        account.apply(trade)

    delta = target_cash - account.cash
    if abs(delta) > CASH_LOAD_TOLERANCE:
        account.adjust_cash(CashAdjustment(amount=delta, reason="load"))

    if state.trades is not None or state.snapshots is not None:
        account.replace_history(
            state.trades if state.trades is not None else account.trades,
            state.snapshots if state.snapshots is not None else account.history,
        )


def _replay_trades(row: Trade) -> list[Trade]:
    """Trades that rebuild one saved ``(symbol, qty, avgPrice)`` row on a flat ledger.

    A sell never moves the cost basis, so a short row first opens one unit
    at the saved cost and then sells down to the saved quantity.
    """
    if row.quantity > 0:
        return [row]
    if row.quantity < 0:
        return [
            Trade(symbol=row.symbol, quantity=1, price=row.price),
            Trade(symbol=row.symbol, quantity=row.quantity - 1, price=row.price),
        ]
    return []


# ------------------------------------------------------------------
# Row parsers
# ------------------------------------------------------------------

def _position_trade(row: list[str]) -> Trade:
    return Trade(symbol=row[0].strip(), quantity=int(row[1].strip()), price=float(row[2].strip()))


def _trade(row: list[str]) -> Trade:
    # cashImpact (row[4]) is derived and not read back
    return Trade(
        time=_parse_time(row[0]),
        symbol=row[1].strip(),
        quantity=int(row[2].strip()),
        price=float(row[3].strip()),
    )


def _snapshot(row: list[str]) -> PortfolioSnapshot:
    return PortfolioSnapshot(
        time=_parse_time(row[0]),
        label=row[1],
        cash=float(row[2]),
        market_value=float(row[3]),
        equity=float(row[4]),
    )


def _instrument(row: list[str]) -> Instrument:
    return Instrument(symbol=row[0].strip(), name=row[1].strip(), price=float(row[2].strip()))


def _parse_time(value: str) -> datetime:
    return datetime.strptime(value.strip(), TIME_FORMAT)


def _parse(path: Path, line_no: int, parser, row: list[str]):
    """Run *parser* on *row*, converting ``ValueError`` into ``ParseError``."""
    try:
        return parser(row)
    except ValueError as exc:
        raise ParseError(f"{path.name} line {line_no}: {exc}") from exc


# ------------------------------------------------------------------
# File helpers
# ------------------------------------------------------------------

def _read_cash(path: Path) -> float:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PersistenceIOError(f"Failed to read {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ParseError(f"{path.name}: {exc}") from exc

    lines = text.strip().splitlines()
    if not lines:
        raise ParseError(f"{path.name}: file is empty")
    try:
        return float(lines[0].strip())
    except ValueError as exc:
        raise ParseError(f"{path.name} line 1: {exc}") from exc


def _read_rows(path: Path, min_columns: int) -> list[tuple[int, list[str]]]:
    """Return ``(line_no, row)`` pairs after the header.

    Blank rows and rows with fewer than *min_columns* fields are skipped.
    """
    rows: list[tuple[int, list[str]]] = []
    try:
        with path.open(encoding="utf-8", newline="") as fh:
            reader = csv.reader(fh)
            next(reader, None)  # header
            for row in reader:
                if not row:
                    continue
                if len(row) < min_columns:
                    logger.warning(
                        "Skipping short row at %s line %d.", path.name, reader.line_num
                    )
                    continue
                rows.append((reader.line_num, row))
    except OSError as exc:
        raise PersistenceIOError(f"Failed to read {path}: {exc}") from exc
    except (UnicodeDecodeError, csv.Error) as exc:
        raise ParseError(f"{path.name}: {exc}") from exc
    return rows


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise PersistenceIOError(f"Failed to write {path}: {exc}") from exc


def _write_rows(path: Path, header: list[str], rows: list[list[str]]) -> None:
    try:
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            writer.writerow(header)
            writer.writerows(rows)
    except OSError as exc:
        raise PersistenceIOError(f"Failed to write {path}: {exc}") from exc
