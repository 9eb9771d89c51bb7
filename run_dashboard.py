#!/usr/bin/env python3
"""
FinePool swap risk dashboard CLI.

Reads the pool, quotes swaps, prints risk analytics and runs slippage-bounded
swaps from the console. Without --config the paper demo pool is used.

Usage:
    python3 run_dashboard.py reserves
    python3 run_dashboard.py quote --amount 100
    python3 run_dashboard.py il --change 50
    python3 run_dashboard.py --config configs/dashboard.yaml swap --amount 1.5 --human
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from tabulate import tabulate

import logging_config
from dex.adapters import create_ledger, quote_swap
from dex.config import ConfigError, DashboardConfig, load_config
from dex.executor import execute_swap, normalize_amount_in
from dex.impermanent_loss import impermanent_loss_curve, impermanent_loss_scenario
from dex.lp_position import analyze_lp_for_wallet
from dex.price_impact import analyze_price_impact, classify_impact, price_impact_curve
from dex.slippage import slippage_bound
from dex.types import SwapDirection
from swap_risk.exceptions import SwapRiskError
from swap_risk.utils import format_pct, from_base_units, to_base_units, to_decimal

CONFIG_ENV_VAR = "SWAP_RISK_CONFIG"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="FinePool swap risk dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quote 100 smallest units of token0 against the demo pool
  python3 run_dashboard.py quote --amount 100

  # Price impact chart data for selling token1
  python3 run_dashboard.py impact --direction 1to0

  # Impermanent loss table from -50% to +200%
  python3 run_dashboard.py il

  # Swap 1.5 whole tokens on the configured chain
  python3 run_dashboard.py --config configs/dashboard.yaml swap --amount 1.5 --human
        """,
    )
    parser.add_argument(
        "--config",
        default=os.getenv(CONFIG_ENV_VAR),
        help=f"Path to config YAML file (default: ${CONFIG_ENV_VAR}, else the paper demo pool)",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("reserves", help="Show pool reserves and LP supply")

    def add_trade_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--direction", default="0to1", help="0to1 or 1to0 (default: 0to1)")
        p.add_argument("--amount", required=True, help="Input amount (smallest units)")
        p.add_argument(
            "--slippage",
            default=None,
            help="Max slippage in percent (default: max_slippage_pct from config)",
        )
        p.add_argument(
            "--human",
            action="store_true",
            help="Treat --amount as whole tokens and scale by token decimals",
        )

    add_trade_args(sub.add_parser("quote", help="Quote a swap with its slippage bound"))

    impact = sub.add_parser("impact", help="Price impact versus trade size")
    impact.add_argument("--direction", default="0to1")
    impact.add_argument("--steps", type=int, default=10)
    impact.add_argument(
        "--max-fraction", default="0.3", help="Largest trade as a fraction of reserve_in"
    )

    il = sub.add_parser("il", help="Impermanent loss for a price change, or the full curve")
    il.add_argument("--change", default=None, help="Price change of token0 in percent")
    il.add_argument("--start", type=int, default=-50)
    il.add_argument("--stop", type=int, default=200)
    il.add_argument("--step", type=int, default=25)

    lp = sub.add_parser("lp", help="Analyze a wallet's LP position")
    lp.add_argument("wallet", help="Wallet address")

    add_trade_args(sub.add_parser("swap", help="Approve if needed, then swap"))

    serve = sub.add_parser("serve", help="Run the dashboard web API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser.parse_args(argv)


def _load(path: Optional[str]) -> DashboardConfig:
    if path:
        return load_config(path)
    return DashboardConfig.demo()


def _amount(args: argparse.Namespace, config: DashboardConfig, direction: SwapDirection):
    if args.human:
        return to_base_units(args.amount, config.decimals_in(direction))
    return to_decimal(args.amount, "amount_in")


def _slippage(args: argparse.Namespace, config: DashboardConfig):
    return args.slippage if args.slippage is not None else config.max_slippage_pct


async def cmd_reserves(config: DashboardConfig, ledger) -> None:
    pool = await ledger.get_reserves()
    rows = []
    for index, raw in enumerate((pool.reserve0, pool.reserve1)):
        token = config.token(index)
        rows.append(
            [f"reserve{index}", token["symbol"], raw, from_base_units(raw, token["decimals"])]
        )
    rows.append(["totalSupply", "LP", pool.total_supply, ""])
    print(tabulate(rows, headers=["Field", "Token", "Raw", "Formatted"], tablefmt="grid"))


async def cmd_quote(args: argparse.Namespace, config: DashboardConfig, ledger) -> None:
    direction = SwapDirection.parse(args.direction)
    amount_in = normalize_amount_in(_amount(args, config, direction))

    pool = await ledger.get_reserves()
    quote = quote_swap(pool.reserves, direction, amount_in, config.fees)
    bound = slippage_bound(quote.amount_out, _slippage(args, config))
    analysis = analyze_price_impact(
        quote.reserve_in, quote.reserve_out, amount_in, config.fees, config.risk_tiers
    )

    symbol_in = config.token(direction.token_in_index)["symbol"]
    symbol_out = config.token(direction.token_out_index)["symbol"]
    rows = [
        ["Direction", f"{symbol_in} -> {symbol_out}"],
        ["Amount in", amount_in],
        ["Amount in after fee", quote.amount_in_with_fee],
        ["Amount out", quote.amount_out],
        ["Min out", f"{bound.min_out} ({bound.slippage_bps} bps)"],
        ["Spot price", f"{quote.spot_price:.6f}"],
        ["Execution price", f"{quote.execution_price:.6f}"],
        ["Price impact", format_pct(analysis.impact_pct)],
        ["Swap safety", analysis.tier.value],
    ]
    print(tabulate(rows, tablefmt="grid"))


async def cmd_impact(args: argparse.Namespace, config: DashboardConfig, ledger) -> None:
    direction = SwapDirection.parse(args.direction)
    pool = await ledger.get_reserves()
    reserve_in, reserve_out = pool.reserves.ordered(direction)
    max_fraction = to_decimal(args.max_fraction, "max_fraction")
    curve = price_impact_curve(reserve_in, reserve_out, max_fraction, args.steps, config.fees)
    if not curve:
        print("Pool has no liquidity")
        return
    rows = [
        [f"{size:.2f}", format_pct(impact), classify_impact(impact, config.risk_tiers).value]
        for size, impact in curve
    ]
    print(tabulate(rows, headers=["Trade size", "Impact", "Tier"], tablefmt="grid"))


def cmd_il(args: argparse.Namespace) -> None:
    if args.change is not None:
        s = impermanent_loss_scenario(args.change)
        rows = [
            ["Price change", format_pct(s.price_change_pct, 2)],
            ["Relative price", f"{s.relative_price:.4f}"],
            ["HODL value", f"{s.hodl_value:.6f}"],
            ["LP value", f"{s.lp_value:.6f}"],
            ["Impermanent loss", format_pct(s.il_pct)],
        ]
        print(tabulate(rows, tablefmt="grid"))
        return

    rows = [
        [f"{pct:+d}%", format_pct(il)]
        for pct, il in impermanent_loss_curve(args.start, args.stop, args.step)
    ]
    print(tabulate(rows, headers=["Price change", "Impermanent loss"], tablefmt="grid"))


async def cmd_lp(args: argparse.Namespace, config: DashboardConfig, ledger) -> None:
    analysis = await analyze_lp_for_wallet(ledger, args.wallet)
    t0, t1 = config.token(0), config.token(1)
    rows = [
        ["LP balance", analysis.lp_balance],
        ["Pool share", f"{analysis.pool_share_pct:.4f}%"],
        [f"Underlying {t0['symbol']}", from_base_units(analysis.underlying0, t0["decimals"])],
        [f"Underlying {t1['symbol']}", from_base_units(analysis.underlying1, t1["decimals"])],
    ]
    print(tabulate(rows, tablefmt="grid"))


async def cmd_swap(args: argparse.Namespace, config: DashboardConfig, ledger) -> int:
    owner = ledger.signer
    if not owner:
        print(f"❌ No signer: set {config.private_key_env} to swap", file=sys.stderr)
        return 1

    direction = SwapDirection.parse(args.direction)
    attempt = await execute_swap(
        ledger,
        owner,
        direction,
        _amount(args, config, direction),
        _slippage(args, config),
        fees=config.fees,
    )

    rows = [
        ["State", attempt.state.value],
        ["Path", " -> ".join(s.value for s in attempt.history)],
        ["Amount in", attempt.amount_in],
        ["Amount out (quoted)", attempt.quote.amount_out if attempt.quote else "-"],
        ["Min out", attempt.bound.min_out if attempt.bound else "-"],
        ["Approval tx", attempt.approval_tx_hash or "-"],
        ["Swap tx", attempt.tx_hash or "-"],
    ]
    if attempt.failed:
        rows.append(["Reason", f"{attempt.reason.value}: {attempt.error}"])
    print(tabulate(rows, tablefmt="grid"))

    if attempt.confirmed:
        print(f"✅ Swap confirmed: {attempt.tx_hash}")
        return 0
    print(f"❌ Swap failed: {attempt.reason.value}", file=sys.stderr)
    return 1


async def dispatch(args: argparse.Namespace, config: DashboardConfig) -> int:
    ledger = create_ledger(config)
    if args.command == "reserves":
        await cmd_reserves(config, ledger)
    elif args.command == "quote":
        await cmd_quote(args, config, ledger)
    elif args.command == "impact":
        await cmd_impact(args, config, ledger)
    elif args.command == "lp":
        await cmd_lp(args, config, ledger)
    elif args.command == "swap":
        return await cmd_swap(args, config, ledger)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    if args.debug:
        logging_config.setup_debug()
    else:
        logging_config.setup_minimal()

    if args.command == "il":
        try:
            cmd_il(args)
        except SwapRiskError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1
        return 0

    # Load config
    try:
        config = _load(args.config)
    except ConfigError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    if args.command == "serve":
        import web_server

        web_server.run(host=args.host, port=args.port, config_path=args.config)
        return 0

    try:
        return asyncio.run(dispatch(args, config))
    except KeyboardInterrupt:
        print("\n\n⏸ Stopped by user")
        return 0
    except SwapRiskError as e:
        print(f"❌ {e.kind}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
