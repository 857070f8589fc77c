#!/usr/bin/env python3
"""
Replay a JSON-lines file of wallet buys and sells through the tracker.

Each line is one event:
    {"action": "buy", "wallet": "...", "token_mint": "...", "token_symbol": "BONK",
     "amount": 1000000, "quote_value": 1.0, "price": 0.000001,
     "timestamp": "2024-05-01T12:00:00Z"}

`price`, `token_symbol` and `timestamp` are optional.
"""

import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import click
from rich.console import Console
from rich.table import Table

from smart_money.alerts import JsonLinesAlertSubscriber, LoggingAlertSubscriber
from smart_money.config import ThresholdConfig
from smart_money.database import InMemoryStorage, get_supabase_client
from smart_money.interfaces import TokenData
from smart_money.ledger import TradeAction
from smart_money.metrics import WalletMetrics
from smart_money.realtime import SmartMoneyTracker
from smart_money.scoring import RiskAppetite, WalletProfile
from smart_money.scrapers import DexScreenerAPI
from smart_money.utils import parse_iso_timestamp, setup_logging, short_address


console = Console()
# Progress and warnings, so --json output on stdout stays parseable
err_console = Console(stderr=True)


class StaticPriceOracle:
    """Prices from a {token_mint: price_usd} JSON file."""

    def __init__(self, prices: dict[str, float]):
        self.prices = prices

    async def get_token_data(self, token_mint: str) -> Optional[TokenData]:
        price = self.prices.get(token_mint)
        if not price:
            return None
        return TokenData(token_mint=token_mint, price_usd=float(price))


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 event time; naive values are taken as UTC."""
    if not value:
        return None
    return parse_iso_timestamp(value)


def parse_price(value) -> Optional[float]:
    return None if value is None else float(value)


def load_events(path: Path) -> list[dict]:
    """Read non-empty lines of a JSON-lines file."""
    events = []
    with open(path) as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise click.ClickException(f"{path}:{line_no}: invalid JSON ({e})")
    return events


async def replay(tracker: SmartMoneyTracker, events: list[dict]) -> dict:
    """Feed events into the tracker in file order."""
    counts = {"buys": 0, "sells": 0, "unmatched": 0, "invalid": 0}

    for event in events:
        try:
            action = TradeAction(event["action"].lower())
            if action == TradeAction.BUY:
                await tracker.record_buy(
                    event["wallet"],
                    event["token_mint"],
                    event.get("token_symbol"),
                    float(event["amount"]),
                    float(event["quote_value"]),
                    price=parse_price(event.get("price")),
                    timestamp=parse_timestamp(event.get("timestamp")),
                )
                counts["buys"] += 1
            else:
                closed = await tracker.record_sell(
                    event["wallet"],
                    event["token_mint"],
                    float(event["amount"]),
                    float(event["quote_value"]),
                    price=parse_price(event.get("price")),
                    timestamp=parse_timestamp(event.get("timestamp")),
                )
                counts["sells" if closed else "unmatched"] += 1
        except (KeyError, TypeError, ValueError) as e:
            err_console.print(f"[yellow]Skipping invalid event {event}: {e}[/yellow]")
            counts["invalid"] += 1

    await tracker.wait_for_effects()
    return counts


def build_tracker(prices: Optional[Path], live_prices: bool, supabase: bool) -> SmartMoneyTracker:
    oracle = None
    if live_prices:
        oracle = DexScreenerAPI()
    elif prices:
        with open(prices) as f:
            oracle = StaticPriceOracle(json.load(f))

    storage = get_supabase_client() if supabase else InMemoryStorage()

    tracker = SmartMoneyTracker(
        price_oracle=oracle,
        storage=storage,
        thresholds=ThresholdConfig.load(),
    )
    return tracker


async def run_replay(tracker: SmartMoneyTracker, events: list[dict], refresh: bool) -> dict:
    try:
        counts = await replay(tracker, events)
        if refresh and tracker.refresher:
            summary = await tracker.refresher.refresh_once()
            err_console.print(
                f"Refreshed open positions: {summary['updated']}/{summary['checked']} "
                f"({summary['failed']} failed)"
            )
        return counts
    finally:
        if isinstance(tracker.ledger.price_oracle, DexScreenerAPI):
            await tracker.ledger.price_oracle.close()


def wallet_name(metrics: WalletMetrics) -> str:
    return metrics.label or f"{short_address(metrics.wallet_address)}..."


def leaderboard_table(entries: list[WalletMetrics], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Wallet", style="cyan")
    table.add_column("Closed", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("ROI", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("PF", justify="right")
    table.add_column("Streak", justify="right")

    for i, m in enumerate(entries, start=1):
        roi_style = "green" if m.total_roi >= 0 else "red"
        table.add_row(
            str(m.rank or i),
            wallet_name(m),
            str(m.closed_trades),
            f"{m.win_rate:.1f}%",
            f"[{roi_style}]{m.total_roi:+.1f}%[/{roi_style}]",
            f"{m.total_pnl:+.4f}",
            f"{m.profit_factor:.2f}",
            f"{m.current_streak:+d}",
        )
    return table


@click.group()
def cli():
    """Smart money trade replay tools."""
    pass


@cli.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--prices", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON map of token mint to USD price for omitted prices")
@click.option("--live-prices", is_flag=True, help="Resolve omitted prices via DexScreener")
@click.option("--supabase", is_flag=True, help="Read watchlists from Supabase")
@click.option("--refresh", is_flag=True, help="Run one open position refresh after replaying")
@click.option("--limit", default=10, help="Leaderboard size")
@click.option("--alerts", is_flag=True, help="Log smart money alerts while replaying")
@click.option("--alerts-json", is_flag=True, help="Write smart money alerts to stdout as JSON lines")
@click.option("--json", "as_json", is_flag=True, help="Print the leaderboard as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def leaderboard(
    events_file: Path,
    prices: Optional[Path],
    live_prices: bool,
    supabase: bool,
    refresh: bool,
    limit: int,
    alerts: bool,
    alerts_json: bool,
    as_json: bool,
    verbose: bool,
):
    """Replay EVENTS_FILE and show the leaderboard and suggestions."""
    setup_logging("DEBUG" if verbose else ("INFO" if alerts else "WARNING"))

    tracker = build_tracker(prices, live_prices, supabase)
    if alerts:
        tracker.subscribe(LoggingAlertSubscriber())
    if alerts_json:
        tracker.subscribe(JsonLinesAlertSubscriber())

    events = load_events(events_file)
    counts = asyncio.run(run_replay(tracker, events, refresh))

    entries = tracker.get_leaderboard(limit)
    if as_json:
        click.echo(json.dumps([m.to_dict() for m in entries], indent=2))
        return

    console.print(
        f"\n[bold blue]Replayed {len(events)} events[/bold blue]: "
        f"{counts['buys']} buys, {counts['sells']} sells, "
        f"{counts['unmatched']} unmatched sells, {counts['invalid']} invalid\n"
    )

    if entries:
        console.print(leaderboard_table(entries, "Leaderboard"))
    else:
        console.print("[yellow]No wallets have enough closed trades to rank[/yellow]")

    suggestions = tracker.suggest_wallets_to_track()
    if suggestions:
        console.print(leaderboard_table(suggestions, "Smart Money Suggestions"))


def profiles_table(profiles: list[WalletProfile]) -> Table:
    table = Table(title="Wallet Profiles")
    table.add_column("Wallet", style="cyan")
    table.add_column("Style")
    table.add_column("Risk")
    table.add_column("Timing")
    table.add_column("Hold (h)", justify="right")
    table.add_column("Confidence", justify="right")

    for p in profiles:
        table.add_row(
            p.wallet_label or f"{short_address(p.wallet_address)}...",
            p.trading_style.value,
            f"{p.risk_appetite.value} ({p.risk_appetite_confidence})",
            p.entry_timing.value,
            f"{p.avg_hold_duration:.1f}",
            f"{p.profile_confidence}%",
        )
    return table


@cli.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--prices", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON map of token mint to USD price for omitted prices")
@click.option("--risk", type=click.Choice([r.value for r in RiskAppetite]),
              help="Only show profiles with this risk appetite")
@click.option("--min-confidence", default=60, help="Minimum risk appetite confidence with --risk")
@click.option("--json", "as_json", is_flag=True, help="Print profiles as JSON")
def profiles(
    events_file: Path,
    prices: Optional[Path],
    risk: Optional[str],
    min_confidence: int,
    as_json: bool,
):
    """Replay EVENTS_FILE and list the behavioral profiles built along the way."""
    setup_logging("WARNING")

    tracker = build_tracker(prices, live_prices=False, supabase=False)
    asyncio.run(run_replay(tracker, load_events(events_file), refresh=False))

    # Profiles built during the replay saw intermediate snapshots
    profiler = tracker.profiler
    asyncio.run(profiler.refresh_all_profiles())

    if risk:
        found = profiler.find_by_risk_appetite(RiskAppetite(risk), min_confidence=min_confidence)
    else:
        found = profiler.get_all_profiles()

    if as_json:
        click.echo(json.dumps([p.to_dict() for p in found], indent=2))
        return

    if not found:
        console.print("[yellow]No wallet profiles match[/yellow]")
        return
    console.print(profiles_table(found))


@cli.command()
@click.argument("chat_id")
@click.argument("address")
@click.option("--label", help="Display label for the wallet")
def track(chat_id: str, address: str, label: Optional[str]):
    """Add ADDRESS to CHAT_ID's Supabase watchlist."""
    setup_logging("WARNING")

    row = get_supabase_client().add_tracked_wallet(chat_id, address, label=label)
    if not row:
        raise click.ClickException(f"Supabase returned no row for {address}")

    console.print(
        f"[green]Tracking {row.get('label') or short_address(address) + '...'} "
        f"for chat {chat_id}[/green]"
    )


@cli.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("wallet1")
@click.argument("wallet2", required=False)
@click.option("--prices", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON map of token mint to USD price for omitted prices")
def compare(events_file: Path, wallet1: str, wallet2: Optional[str], prices: Optional[Path]):
    """Replay EVENTS_FILE, then compare WALLET1 to WALLET2 or to the leader."""
    setup_logging("WARNING")

    tracker = build_tracker(prices, live_prices=False, supabase=False)
    asyncio.run(run_replay(tracker, load_events(events_file), refresh=False))

    if wallet2:
        comparison = tracker.compare_wallets(wallet1, wallet2)
        if not comparison:
            console.print("[red]Neither wallet has any recorded trades[/red]")
            return

        table = Table(title="Wallet Comparison")
        table.add_column("Metric", style="cyan")
        table.add_column("Result", style="green")
        perf = comparison.performance
        table.add_row("Win rate diff", f"{perf.win_rate_diff:+.1f}%")
        table.add_row("ROI diff", f"{perf.roi_diff:+.1f}%")
        table.add_row("P&L diff", f"{perf.pnl_diff:+.4f}")
        table.add_row("Profit factor diff", f"{perf.profit_factor_diff:+.2f}")
        table.add_row("Overall", perf.better)
        table.add_row("Trading style", f"{comparison.trading_style.wallet1} / {comparison.trading_style.wallet2}")
        table.add_row("Risk appetite", f"{comparison.risk_appetite.wallet1} / {comparison.risk_appetite.wallet2}")
        table.add_row("Common tokens", str(comparison.common_tokens.count))
        table.add_row("Strategy similarity", f"{comparison.strategy_similarity:.0f}%")
        for aspect, winner in comparison.better_for.items():
            table.add_row(f"Better for {aspect}", winner)
        console.print(table)
        return

    result = tracker.compare_with_leader(wallet1)
    if not result:
        console.print("[red]Wallet not found or leaderboard is empty[/red]")
        return

    console.print(
        f"\n[bold]{wallet_name(result.wallet.metrics)}[/bold] "
        f"(rank {result.wallet.rank or '-'}) vs leader "
        f"[bold]{wallet_name(result.leader.metrics)}[/bold]\n"
    )
    if result.improvements:
        console.print("[bold red]Improvements:[/bold red]")
        for item in result.improvements:
            console.print(f"  - {item}")
    if result.strengths:
        console.print("[bold green]Strengths:[/bold green]")
        for item in result.strengths:
            console.print(f"  - {item}")


if __name__ == "__main__":
    cli()
