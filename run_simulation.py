#!/usr/bin/env python3
"""CLI entrypoint for the stock trading simulator.

Usage::

    python run_simulation.py
    python run_simulation.py --config config/example.yaml --seed 7

Seeds a synthetic market (from the YAML config, or the built-in instrument
list when no config is given) and runs the interactive menu until the user
quits.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

from models.config import SimulatorConfig
from models.decision import Side
from simulation.errors import TradingError
from simulation.session import TradingSession

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

MENU = """
================ STOCK SIMULATOR ================
Time: {now}  |  Ticks: {ticks}
1) View market
2) Buy
3) Sell
4) View portfolio
5) Advance market (+1 tick)
6) Record performance snapshot
7) View performance history
8) Save to folder
9) Load from folder
0) Quit"""


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Interactive synthetic-market trading simulator.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to a YAML configuration file (default: built-in instruments).",
    )
    parser.add_argument(
        "--seed",
        default=None,
        type=int,
        help="Seed for the price random walk (overrides the config).",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        type=str,
        help="Default folder for save/load (overrides the config).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser.parse_args(argv)


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt=TIME_FORMAT,
        stream=sys.stderr,
    )


def _load_config(args: argparse.Namespace) -> SimulatorConfig:
    config = SimulatorConfig.from_yaml(args.config) if args.config else SimulatorConfig()
    updates = {}
    if args.seed is not None:
        updates["seed"] = args.seed
    if args.data_dir is not None:
        updates["data_dir"] = args.data_dir
    return config.model_copy(update=updates) if updates else config


# ------------------------------------------------------------------
# Screens
# ------------------------------------------------------------------

def _truncate(text: str, n: int) -> str:
    return text if len(text) <= n else text[: n - 1] + "…"


def show_market(session: TradingSession) -> None:
    print("\n--- Market ---")
    print(f"{'SYM':<6} {'NAME':<22} {'PRICE':>12}")
    for inst in session.list_instruments():
        print(f"{inst.symbol:<6} {_truncate(inst.name, 20):<22} {inst.price:>12.2f}")


def show_portfolio(session: TradingSession) -> None:
    view = session.view_account()
    print("\n--- Portfolio ---")
    print(f"Cash: {view.cash:.2f}")
    print(f"{'SYM':<6} {'QTY':>8} {'AVG PRICE':>12} {'LAST PRICE':>12} {'UNREAL.PnL':>12}")
    for p in view.positions:
        print(
            f"{p.symbol:<6} {p.qty:>8d} {p.avg_price:>12.2f} "
            f"{p.last_price:>12.2f} {p.unrealized_pnl:>12.2f}"
        )
    print(
        f"Market Value: {view.market_value:.2f} | Total Equity: {view.equity:.2f} | "
        f"Unrealized PnL: {view.unrealized_pnl:.2f}"
    )

    if view.recent_trades:
        print("\nRecent Trades:")
        print(f"{'TIME':<19} {'SYM':<6} {'QTY':>6} {'PRICE':>12} {'CASH IMPL':>12}")
        for t in view.recent_trades:
            print(
                f"{t.time.strftime(TIME_FORMAT):<19} {t.symbol:<6} {t.quantity:>6d} "
                f"{t.price:>12.2f} {t.cash_impact:>12.2f}"
            )


def show_history(session: TradingSession) -> None:
    history = session.view_history()
    print("\n--- Performance History ---")
    print(f"{'TIME':<19} {'LABEL':<8} {'CASH':>12} {'MKT VALUE':>12} {'EQUITY':>12}")
    for s in history:
        print(
            f"{s.time.strftime(TIME_FORMAT):<19} {_truncate(s.label, 8):<8} "
            f"{s.cash:>12.2f} {s.market_value:>12.2f} {s.equity:>12.2f}"
        )
    if not history:
        print("(No snapshots yet. Use option 6 to record.)")


def place(session: TradingSession, side: Side) -> None:
    symbol = input("Symbol: ").strip().upper()
    quantity = int(input("Quantity: ").strip())
    trade = session.place_order(symbol, quantity, side)
    print(f"Executed: {side.value} {abs(trade.quantity)} {trade.symbol} @ {trade.price:.2f}")


def _ask_folder(prompt: str, default: str) -> str:
    return input(f"{prompt} (e.g., {default}): ").strip() or default


def save(session: TradingSession, default_dir: str) -> None:
    folder = _ask_folder("Folder to save", default_dir)
    session.save_to(folder)
    print(
        f"Saved to '{folder}'. Files: cash.txt, positions.csv, trades.csv, "
        "history.csv, market.csv"
    )


def load(session: TradingSession, default_dir: str) -> None:
    folder = _ask_folder("Folder to load", default_dir)
    session.load_from(folder)
    print(f"Loaded portfolio and logs from '{folder}'.")


# ------------------------------------------------------------------
# Main loop
# ------------------------------------------------------------------

def run_menu(session: TradingSession, data_dir: str) -> None:
    """Read menu choices until quit or end of input."""
    logger = logging.getLogger(__name__)
    while True:
        print(MENU.format(now=datetime.now().strftime(TIME_FORMAT), ticks=session.market.ticks))
        try:
            choice = input("Select: ").strip()
        except EOFError:
            break

        try:
            if choice == "1":
                show_market(session)
            elif choice == "2":
                place(session, Side.BUY)
            elif choice == "3":
                place(session, Side.SELL)
            elif choice == "4":
                show_portfolio(session)
            elif choice == "5":
                session.advance_market()
                print("Market advanced by one tick.")
            elif choice == "6":
                session.record_snapshot()
                print("Snapshot recorded.")
            elif choice == "7":
                show_history(session)
            elif choice == "8":
                save(session, data_dir)
            elif choice == "9":
                load(session, data_dir)
            elif choice == "0":
                break
            else:
                print("Invalid option.")
        except TradingError as exc:
            logger.info("Operation failed: %s", exc)
            print(f"Error: {exc}")
        except ValueError as exc:
            print(f"Error: invalid input ({exc})")
        except EOFError:
            break

    print("Goodbye!")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    config = _load_config(args)
    logger.info("Config loaded: %d instrument(s), seed=%s", len(config.instruments), config.seed)

    session = TradingSession.from_config(config)
    run_menu(session, config.data_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
