"""
Command-line entry point.

    futures-terminal order BTCUSDT BUY LIMIT 0.01 --price 95000
    futures-terminal grid BTCUSDT 90000 100000 5 0.01 --reference 95000
    futures-terminal cancel BTCUSDT 123456789
    futures-terminal watch BTCUSDT --live

Mode defaults to FT_MODE; --live / --simulated override it. Credentials are
read from the environment only.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import signal
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from futures_terminal.app import Terminal
from futures_terminal.config.config import Settings
from futures_terminal.errors import TerminalError
from futures_terminal.execution.models import (
    CancelResult,
    DispatchReport,
    OrderRequest,
    OrderResult,
    OrderSide,
    OrderType,
)
from futures_terminal.infra.logging_cfg import build_logger, log_event

log = logging.getLogger("futures_terminal")
console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="futures-terminal", description="USDT-M futures order terminal")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--live", action="store_true", help="send orders to the exchange")
    mode.add_argument("--simulated", action="store_true", help="never leave the process")
    sub = parser.add_subparsers(dest="command", required=True)

    order = sub.add_parser("order", help="submit a single order")
    order.add_argument("symbol")
    order.add_argument("side", type=str.upper, choices=[s.value for s in OrderSide])
    order.add_argument("type", type=str.upper, choices=[t.value for t in OrderType])
    order.add_argument("quantity")
    order.add_argument("--price")
    order.add_argument("--stop-price")

    grid = sub.add_parser("grid", help="deploy a limit-order grid")
    grid.add_argument("symbol")
    grid.add_argument("min_price")
    grid.add_argument("max_price")
    grid.add_argument("levels", type=int)
    grid.add_argument("quantity")
    grid.add_argument("--reference", help="reference price (default: live ticker)")

    cancel = sub.add_parser("cancel", help="cancel an order by order id or client order id")
    cancel.add_argument("symbol")
    cancel.add_argument("order_ref")

    watch = sub.add_parser("watch", help="stream prices and order updates until interrupted")
    watch.add_argument("symbol", nargs="?")
    return parser


def settings_for(args: argparse.Namespace, cfg: Settings) -> Settings:
    if args.live:
        cfg = dataclasses.replace(cfg, mode="live")
    elif args.simulated:
        cfg = dataclasses.replace(cfg, mode="simulated")
    symbol = getattr(args, "symbol", None)
    if symbol:
        cfg = dataclasses.replace(cfg, symbol=symbol.strip().upper())
    return cfg


def print_order(result: OrderResult) -> None:
    table = Table(title="Order accepted")
    for col in ("orderId", "clientOrderId", "symbol", "side", "type", "status", "price", "origQty"):
        table.add_column(col)
    table.add_row(
        str(result.order_id),
        result.client_order_id,
        result.symbol,
        result.side,
        result.type,
        result.status,
        result.price,
        result.orig_qty,
    )
    console.print(table)


def print_cancel(result: CancelResult) -> None:
    console.print(f"[yellow]Cancelled[/] {result.symbol} orderId={result.order_id} "
                  f"clientOrderId={result.client_order_id} status={result.status}")


def print_report(report: DispatchReport) -> None:
    table = Table(title=f"Grid: {report.success_count} placed, {report.fail_count} failed")
    table.add_column("#")
    table.add_column("side")
    table.add_column("price")
    table.add_column("result")
    for outcome in report.outcomes:
        status = f"[green]{outcome.result.status}[/]" if outcome.success else f"[red]{outcome.error}[/]"
        table.add_row(str(outcome.index), outcome.order.side.value, outcome.order.price or "", status)
    console.print(table)


async def watch(terminal: Terminal) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass

    async def print_updates() -> None:
        async for update in terminal.order_updates:
            console.print(update.summary())

    printer = asyncio.create_task(print_updates())
    try:
        await stop.wait()
    finally:
        printer.cancel()
        await asyncio.gather(printer, return_exceptions=True)


async def execute(args: argparse.Namespace, terminal: Terminal) -> None:
    if args.command == "order":
        order = OrderRequest(
            symbol=args.symbol,
            side=OrderSide(args.side),
            type=OrderType(args.type),
            quantity=args.quantity,
            price=args.price,
            stop_price=args.stop_price,
        )
        print_order(await terminal.submit_order(order))
    elif args.command == "grid":
        if not args.reference:
            # wait for a price tick so the grid can be split around it
            terminal.set_symbol(args.symbol)
            await terminal.wait_symbol()
            await _wait_for_price(terminal, terminal.cfg.http_timeout)
        report = await terminal.deploy_grid(
            args.symbol,
            args.min_price,
            args.max_price,
            args.levels,
            args.quantity,
            reference_price=args.reference,
        )
        print_report(report)
    elif args.command == "cancel":
        print_cancel(await terminal.cancel_order(args.symbol, args.order_ref))
    elif args.command == "watch":
        await terminal.start()
        await watch(terminal)


async def _wait_for_price(terminal: Terminal, timeout: float) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while terminal.last_price is None and asyncio.get_running_loop().time() < deadline:
        await asyncio.sleep(0.1)


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # handlers must exist before Settings.load() logs config_loaded
    build_logger("futures_terminal", level=os.getenv("FT_LOG_LEVEL", "INFO"), file_path=os.getenv("FT_LOG_FILE") or None)
    cfg = settings_for(args, Settings.load())
    log_event(log, "startup", command=args.command, mode=cfg.mode, symbol=cfg.symbol)

    terminal = Terminal(cfg)
    try:
        await execute(args, terminal)
    except TerminalError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 1
    finally:
        await terminal.close()
    return 0


def run() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    run()
