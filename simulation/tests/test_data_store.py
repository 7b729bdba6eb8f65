"""Tests for the flat-file save/load round trip."""

from pathlib import Path

import numpy as np
import pytest

from models.decision import Order, Side, Trade
from models.instrument import Instrument
from simulation import data_store
from simulation.account import Account
from simulation.broker import Broker
from simulation.errors import LocationNotFoundError, ParseError, PersistenceIOError
from simulation.market import MarketBook


@pytest.fixture
def market() -> MarketBook:
    m = MarketBook(np.random.default_rng(3))
    m.add(Instrument(symbol="X", name="Ex, Inc.", price=100.0, volatility=0.0))
    m.add(Instrument(symbol="Y", name="Why Corp", price=101.0, volatility=0.0))
    return m


@pytest.fixture
def traded_account(market: MarketBook) -> Account:
    """10,000 cash; buys 3 X @100, 1 X @101 (via repricing), 4 Y @101, sells 1 Y."""
    account = Account(initial_cash=10_000.0)
    broker = Broker(market)
    broker.place_market_order(account, Order(symbol="X", quantity=3, side=Side.BUY))
    market.get("X").price = 101.0
    broker.place_market_order(account, Order(symbol="X", quantity=1, side=Side.BUY))
    broker.place_market_order(account, Order(symbol="Y", quantity=4, side=Side.BUY))
    broker.place_market_order(account, Order(symbol="Y", quantity=1, side=Side.SELL))
    account.record_snapshot(market, "after, trades")
    return account


def _positions(account: Account) -> dict[str, tuple[int, float]]:
    return {sym: (pos.qty, pos.avg_price) for sym, pos in account.positions.items()}


# =============================================================================
# SAVE
# =============================================================================


class TestSave:

    def test_writes_all_five_files(self, tmp_path: Path, traded_account: Account, market):
        target = tmp_path / "nested" / "data"
        data_store.save(traded_account, market, target)
        assert sorted(p.name for p in target.iterdir()) == [
            "cash.txt", "history.csv", "market.csv", "positions.csv", "trades.csv",
        ]

    def test_file_formats(self, tmp_path: Path, traded_account: Account, market):
        data_store.save(traded_account, market, tmp_path)

        assert (tmp_path / "cash.txt").read_text().strip() == f"{traded_account.cash:.2f}"

        positions = (tmp_path / "positions.csv").read_text().splitlines()
        assert positions[0] == "symbol,qty,avgPrice"
        assert positions[1] == "X,4,100.250000"
        assert positions[2] == "Y,3,101.000000"

        trades = (tmp_path / "trades.csv").read_text().splitlines()
        assert trades[0] == "time,symbol,qty,price,cashImpact"
        first = trades[1].split(",")
        assert len(first[0]) == len("2024-01-01 00:00:00")
        assert first[1:] == ["X", "3", "100.000000", "-300.000000"]
        assert trades[4].split(",")[1:] == ["Y", "-1", "101.000000", "101.000000"]

        history = (tmp_path / "history.csv").read_text().splitlines()
        assert history[0] == "time,label,cash,marketValue,equity"
        assert history[1].split(",")[1] == "after  trades"

        market_rows = (tmp_path / "market.csv").read_text().splitlines()
        assert market_rows == [
            "symbol,name,price",
            "X,Ex  Inc.,101.000000",
            "Y,Why Corp,101.000000",
        ]

    def test_unwritable_location_raises_io_error(self, tmp_path: Path, market):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceIOError):
            data_store.save(Account(), market, blocker)


# =============================================================================
# LOAD
# =============================================================================


class TestLoad:

    def test_round_trip_into_fresh_account(self, tmp_path: Path, traded_account: Account, market):
        data_store.save(traded_account, market, tmp_path)
        fresh = Account()
        data_store.load(fresh, tmp_path)
        assert fresh.cash == pytest.approx(traded_account.cash, abs=1e-6)
        # 100.25 and 101.0 survive the 6-decimal format exactly
        assert _positions(fresh) == _positions(traded_account)

    def test_reloaded_cash_is_not_added_to_default(self, tmp_path: Path, market):
        account = Account(initial_cash=1_500.0)
        Broker(market).place_market_order(account, Order(symbol="X", quantity=10, side=Side.BUY))
        assert account.cash == pytest.approx(500.0)
        data_store.save(account, market, tmp_path)

        fresh = Account()
        data_store.load(fresh, tmp_path)
        assert fresh.cash == pytest.approx(500.0)
        assert _positions(fresh) == {"X": (10, pytest.approx(100.0))}

    def test_load_replaces_existing_positions(self, tmp_path: Path, traded_account, market):
        data_store.save(traded_account, market, tmp_path)
        other = Account(initial_cash=50_000.0)
        other.apply(Trade(symbol="Z", quantity=7, price=12.0))
        other.apply(Trade(symbol="X", quantity=1, price=1.0))
        data_store.load(other, tmp_path)
        assert set(other.positions) == {"X", "Y"}
        assert other.cash == pytest.approx(traded_account.cash, abs=1e-6)

    def test_history_replaced_wholesale(self, tmp_path: Path, traded_account, market):
        data_store.save(traded_account, market, tmp_path)
        other = Account()
        other.record_trade(Trade(symbol="Q", quantity=1, price=1.0))
        other.record_snapshot(market, "local")
        data_store.load(other, tmp_path)

        assert [(t.symbol, t.quantity, t.price) for t in other.trades] == [
            (t.symbol, t.quantity, t.price) for t in traded_account.trades
        ]
        assert [t.time for t in other.trades] == [
            t.time.replace(microsecond=0) for t in traded_account.trades
        ]
        assert [s.label for s in other.history] == ["after  trades"]

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(LocationNotFoundError):
            data_store.load(Account(), tmp_path / "absent")

    def test_missing_files_leave_state_alone(self, tmp_path: Path, market):
        (tmp_path / "cash.txt").write_text("250.00\n")
        account = Account()
        account.apply(Trade(symbol="X", quantity=2, price=10.0))
        account.record_snapshot(market, "keep")
        data_store.load(account, tmp_path)
        assert account.cash == pytest.approx(250.0)
        assert _positions(account) == {"X": (2, 10.0)}
        assert [s.label for s in account.history] == ["keep"]

    def test_positions_without_cash_file_keep_cash(self, tmp_path: Path):
        (tmp_path / "positions.csv").write_text("symbol,qty,avgPrice\nX,5,20.000000\n")
        account = Account(initial_cash=1_000.0)
        data_store.load(account, tmp_path)
        assert account.cash == pytest.approx(1_000.0)
        assert _positions(account) == {"X": (5, 20.0)}

    def test_short_rows_are_skipped(self, tmp_path: Path):
        (tmp_path / "positions.csv").write_text(
            "symbol,qty,avgPrice\nX,5\n\nY,2,3.000000\n"
        )
        account = Account()
        data_store.load(account, tmp_path)
        assert _positions(account) == {"Y": (2, 3.0)}

    def test_parse_error_leaves_account_unchanged(self, tmp_path: Path, traded_account, market):
        data_store.save(traded_account, market, tmp_path)
        with (tmp_path / "trades.csv").open("a") as fh:
            fh.write("2024-01-01 10:00:00,X,abc,1.0,1.0\n")

        account = Account(initial_cash=777.0)
        account.apply(Trade(symbol="Z", quantity=1, price=1.0))
        cash, positions = account.cash, _positions(account)

        with pytest.raises(ParseError, match="trades.csv line"):
            data_store.load(account, tmp_path)
        assert account.cash == cash
        assert _positions(account) == positions
        assert account.trades == []

    def test_bad_timestamp_is_parse_error(self, tmp_path: Path):
        (tmp_path / "history.csv").write_text(
            "time,label,cash,marketValue,equity\nyesterday,T0,1,2,3\n"
        )
        with pytest.raises(ParseError):
            data_store.load(Account(), tmp_path)

    def test_empty_cash_file_is_parse_error(self, tmp_path: Path):
        (tmp_path / "cash.txt").write_text("")
        with pytest.raises(ParseError):
            data_store.load(Account(), tmp_path)

    def test_oversold_short_round_trip(self, tmp_path: Path, market):
        account = Account(initial_cash=1_000.0)
        broker = Broker(market)
        broker.place_market_order(account, Order(symbol="X", quantity=2, side=Side.BUY))
        broker.place_market_order(account, Order(symbol="X", quantity=5, side=Side.SELL))
        assert _positions(account) == {"X": (-3, 100.0)}
        data_store.save(account, market, tmp_path)

        fresh = Account()
        data_store.load(fresh, tmp_path)
        assert _positions(fresh) == {"X": (-3, 100.0)}
        assert fresh.cash == pytest.approx(account.cash)

    def test_covered_short_round_trip(self, tmp_path: Path, market):
        # a buy against a short re-weights the cost below zero
        account = Account(initial_cash=10_000.0)
        broker = Broker(market)
        broker.place_market_order(account, Order(symbol="X", quantity=10, side=Side.SELL))
        broker.place_market_order(account, Order(symbol="X", quantity=5, side=Side.BUY))
        assert _positions(account) == {"X": (-5, -100.0)}
        data_store.save(account, market, tmp_path)
        assert (tmp_path / "positions.csv").read_text().splitlines()[1] == "X,-5,-100.000000"

        fresh = Account()
        data_store.load(fresh, tmp_path)
        assert _positions(fresh) == {"X": (-5, -100.0)}
        assert fresh.cash == pytest.approx(10_500.0)
        assert len(fresh.trades) == 2

    def test_load_over_negative_cost_short(self, tmp_path: Path, traded_account, market):
        data_store.save(traded_account, market, tmp_path)
        account = Account(initial_cash=3_000.0)
        account.apply(Trade(symbol="A", quantity=2, price=50.0))
        account.apply(Trade(symbol="X", quantity=-10, price=100.0))
        account.apply(Trade(symbol="X", quantity=5, price=100.0))
        assert _positions(account) == {"A": (2, 50.0), "X": (-5, -100.0)}

        data_store.load(account, tmp_path)
        assert _positions(account) == _positions(traded_account)
        assert account.cash == pytest.approx(traded_account.cash, abs=1e-6)


# =============================================================================
# MARKET
# =============================================================================


class TestLoadMarket:

    def test_restores_prices_and_adds_unknown(self, tmp_path: Path, market: MarketBook):
        (tmp_path / "market.csv").write_text(
            "symbol,name,price\nX,Ex,123.450000\nNEW,New Co,9.000000\n"
        )
        assert data_store.load_market(market, tmp_path) == 2
        assert market.get("X").price == pytest.approx(123.45)
        assert market.get("X").name == "Ex, Inc."
        assert market.get("NEW").volatility == 0.0
        assert [i.symbol for i in market.all()] == ["X", "Y", "NEW"]

    def test_missing_market_file(self, tmp_path: Path, market: MarketBook):
        assert data_store.load_market(market, tmp_path) == 0

    def test_non_positive_price_is_parse_error(self, tmp_path: Path, market: MarketBook):
        (tmp_path / "market.csv").write_text("symbol,name,price\nX,Ex,0\n")
        with pytest.raises(ParseError):
            data_store.load_market(market, tmp_path)
        assert market.get("X").price == 100.0

    def test_read_market_does_not_touch_market(self, tmp_path: Path, market: MarketBook):
        (tmp_path / "market.csv").write_text("symbol,name,price\nX,Ex,55.000000\n")
        instruments = data_store.read_market(tmp_path)
        assert [(i.symbol, i.price) for i in instruments] == [("X", 55.0)]
        assert market.get("X").price == 100.0

        data_store.apply_market(market, instruments)
        assert market.get("X").price == 55.0
