"""CLI entry point for the trading analytics dashboard.

Commands:
  polydash leaderboard          — Copy-trading PnL by followed wallet
  polydash smart-wallets        — Smart-money wallet table
  polydash win-rates            — Human vs AI accuracy on settled markets
  polydash speech               — Posting probability, current Beijing hour
  polydash market-cap           — New-token peak market cap summary
  polydash arbitrage            — Opinion vs Polymarket arbitrage list
  polydash closing              — Opinion markets closing soon
  polydash bundle ADDRESS       — Run a wallet-bundle analysis
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from polydash.config import DashboardConfig, load_config
from polydash.observability.logger import configure_logging, get_logger

load_dotenv()

console = Console()
log = get_logger(__name__)


def _run(coro: Any) -> Any:
    """Run an async coroutine from sync CLI."""
    return asyncio.run(coro)


def _short(address: str) -> str:
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def _pnl(value: float) -> str:
    colour = "green" if value >= 0 else "red"
    sign = "+" if value >= 0 else ""
    return f"[{colour}]{sign}${value:,.2f}[/{colour}]"


def _views(ctx: click.Context):
    from polydash.dashboard.views import DashboardViews
    from polydash.storage.database import Database

    cfg: DashboardConfig = ctx.obj["config"]
    db = Database(cfg.storage)
    db.connect()
    ctx.call_on_close(db.close)
    return DashboardViews(db, cfg)


def _report_error(result: Any) -> None:
    if result.error:
        console.print(f"[yellow]⚠ Data unavailable: {result.error}[/yellow]")


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config.yaml")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """Trading analytics dashboard."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    ctx.obj["config"] = cfg
    configure_logging(
        level=cfg.observability.log_level,
        fmt="console",  # CLI always uses console format
        log_file=cfg.observability.log_file,
    )


# ─── COPY TRADING ────────────────────────────────────────────────────

@cli.command()
@click.option("--trades", "show_trades", is_flag=True, help="List each wallet's trades")
@click.pass_context
def leaderboard(ctx: click.Context, show_trades: bool) -> None:
    """Copy-trading PnL grouped by followed wallet."""
    result = _views(ctx).copy_trading()
    _report_error(result)
    summary = result.data["summary"]

    console.print(
        f"Realized PnL: {_pnl(summary['total_realized_pnl'])}  "
        f"Invested: ${summary['total_invested']:,.2f}  "
        f"Trades: {summary['total_trades']}"
    )

    table = Table(title=f"📊 Copy-Trading Leaderboard ({summary['trader_count']} wallets)")
    table.add_column("Label", style="cyan")
    table.add_column("Wallet", style="dim")
    table.add_column("Trades", justify="right")
    table.add_column("Invested", justify="right")
    table.add_column("Realized PnL", justify="right")

    for t in result.data["traders"]:
        table.add_row(
            t["label"],
            _short(t["proxy_wallet"]),
            str(t["total_trades"]),
            f"${t['total_invested']:,.2f}",
            _pnl(t["total_realized_pnl"]),
        )
        if show_trades:
            for trade in t["trades"]:
                table.add_row(
                    "",
                    trade["timestamp"] or "-",
                    trade["status"],
                    f"${trade['invested_amount']:,.2f}",
                    f"{(trade['title'] or 'Untitled')[:40]} {_pnl(trade['realized_pnl'])}",
                )

    console.print(table)


@cli.command("smart-wallets")
@click.pass_context
def smart_wallets(ctx: click.Context) -> None:
    """Smart-money wallets ranked by total profit."""
    result = _views(ctx).smart_wallets()
    _report_error(result)

    table = Table(title=f"🧠 Smart Wallets ({result.data['count']})")
    table.add_column("Label / Address")
    table.add_column("Total Profit", justify="right")
    table.add_column("Trades", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Avg / Trade", justify="right")
    table.add_column("Avg Profit Rate", justify="right")
    table.add_column("Top5 Share", justify="right")

    for w in result.data["wallets"]:
        table.add_row(
            f"{w['label'] or 'Unknown'}\n[dim]{w['address']}[/dim]",
            _pnl(w["total_profit"]),
            str(w["total_trades"]),
            f"{w['win_rate']:.1%}",
            f"${w['avg_profit_per_trade']:.2f}",
            f"{w['avg_profit_rate']:.1%}",
            f"{w['top5_profit_ratio']:.1%}",
        )

    console.print(table)


# ─── HUMAN VS AI ─────────────────────────────────────────────────────

_BADGES = {True: "[green]✔[/green]", False: "[red]✘[/red]", None: "[dim]-[/dim]"}


@cli.command("win-rates")
@click.option("--exclusive", is_flag=True, help="Drop near-certain markets (human price ≥ ceiling)")
@click.option("--details", is_flag=True, help="Show per-market verdicts")
@click.pass_context
def win_rates(ctx: click.Context, exclusive: bool, details: bool) -> None:
    """Human vs AI win rates on settled markets."""
    result = _views(ctx).human_vs_ai(exclusive=exclusive)
    _report_error(result)
    board = result.data["scoreboard"]

    table = Table(title=f"🏆 Human vs AI ({board['settled_records']} settled markets)")
    table.add_column("Agent", style="cyan")
    table.add_column("Win Rate", justify="right", style="yellow")
    table.add_column("Correct", justify="right")
    table.add_column("Attempts", justify="right")
    for agent, r in board["results"].items():
        table.add_row(agent.removesuffix("_outcome"), f"{r['rate']}%", str(r["correct"]), str(r["total"]))
    console.print(table)

    if not details:
        return

    agents = list(board["results"].keys())
    rows = Table(title="Per-market verdicts")
    rows.add_column("Event", max_width=50)
    rows.add_column("Real Result")
    for agent in agents:
        rows.add_column(agent.removesuffix("_outcome"), justify="center")
    for row in result.data["rows"]:
        rows.add_row(
            row["title"][:50],
            row["real_outcome"] or "-",
            *(_BADGES[row["verdicts"].get(a)] for a in agents),
        )
    console.print(rows)


# ─── SPEECH PROBABILITY ──────────────────────────────────────────────

@cli.command()
@click.option("--category", default=None, help="Tweet category (default from config)")
@click.option("--handle", "handles", multiple=True, help="Handle to include (repeatable)")
@click.pass_context
def speech(ctx: click.Context, category: str | None, handles: tuple[str, ...]) -> None:
    """Posting probability for the current and next Beijing hour."""
    result = _views(ctx).speech_probability(handles=handles or None, category=category)
    _report_error(result)
    data = result.data

    table = Table(
        title=f"🗣 Speech Probability — weekday {data['day_of_week']}, "
              f"{data['hour']:02d}:00 Beijing ({data['category']})"
    )
    table.add_column("Handle", style="cyan")
    table.add_column("This Hour", justify="right", style="yellow")
    table.add_column("Next Hour", justify="right")
    for handle, est in data["estimates"].items():
        table.add_row(handle, f"{est['current']:.1%}", f"{est['next']:.1%}")
    console.print(table)


# ─── MARKET CAP ──────────────────────────────────────────────────────

@cli.command("market-cap")
@click.option("--hours", type=float, default=None, help="Lookback window in hours")
@click.option("--y-max", "y_max", default="", help="Hide points above this value (10k USD)")
@click.pass_context
def market_cap(ctx: click.Context, hours: float | None, y_max: str) -> None:
    """Peak market cap of tokens launched in the window."""
    result = _views(ctx).market_cap_scatter(window_hours=hours, y_ceiling_text=y_max)
    _report_error(result)
    summary = result.data["summary"]

    def _wan(value: float | None) -> str:
        return "-" if value is None else f"{value:.1f} wan"

    console.print(f"Window: {result.data['window_hours']}h  Launches: {summary['launch_count']}")
    console.print(f"Avg (normal): {_wan(summary['avg_normal'])}  Avg (Binance): {_wan(summary['avg_binance'])}")
    console.print(f"Y axis max: {_wan(summary['auto_y_max'])}  Tick step: {result.data['axis']['step_hours']}h")

    table = Table(title="Launches")
    table.add_column("Token", style="cyan")
    table.add_column("Address", style="dim")
    table.add_column("Peak Cap", justify="right")
    table.add_column("Binance", justify="center")
    for p in summary["points"]:
        table.add_row(p["short_name"], _short(p["address"]), _wan(p["y"]), "★" if p["is_binance"] else "")
    console.print(table)


# ─── ARBITRAGE ───────────────────────────────────────────────────────

@cli.command()
@click.option(
    "--sort", "sort_key", default="opinion_volume",
    type=click.Choice(["opinion_volume", "polymarket_volume", "cutoff"]),
)
@click.option("--asc", is_flag=True, help="Ascending order")
@click.pass_context
def arbitrage(ctx: click.Context, sort_key: str, asc: bool) -> None:
    """Events listed on both Opinion and Polymarket."""
    from polydash.analytics.arbitrage import to_number

    result = _views(ctx).arbitrage(sort_key=sort_key, descending=not asc)
    _report_error(result)

    table = Table(title=f"🔀 Opinion Arbitrage ({len(result.data['events'])} events)")
    table.add_column("Event", max_width=50)
    table.add_column("Match", justify="right")
    table.add_column("Opinion 24h", justify="right")
    table.add_column("Polymarket 24h", justify="right")
    for event in result.data["events"]:
        opinion = to_number((event.get("opinion_stats") or {}).get("volume24h"))
        poly = to_number((event.get("polymarket_stats") or {}).get("volume24hr"))
        table.add_row(
            event["event_title"][:50],
            f"{to_number(event.get('match_score')):.2f}",
            f"${opinion:,.0f}",
            f"${poly:,.0f}",
        )
    console.print(table)


@cli.command()
@click.option("--sort", "sort_key", default="cutoff", type=click.Choice(["cutoff", "volume"]))
@click.option(
    "--order", default=None, type=click.Choice(["asc", "desc"]),
    help="Sort direction (default: soonest cutoff or largest volume first)",
)
@click.pass_context
def closing(ctx: click.Context, sort_key: str, order: str | None) -> None:
    """Opinion markets closing soon."""
    descending = None if order is None else order == "desc"
    result = _views(ctx).closing_markets(sort_key=sort_key, descending=descending)
    _report_error(result)

    table = Table(title=f"⏳ Closing Markets ({len(result.data['markets'])})")
    table.add_column("Market", max_width=50)
    table.add_column("Volume", justify="right")
    table.add_column("Cutoff (unix)", justify="right")
    table.add_column("Children", justify="right")
    for m in result.data["markets"]:
        table.add_row(
            m["market_title"][:50],
            str(m["volume"] or "0"),
            f"{m['cutoff_at']:.0f}",
            str(len(m["child_markets"])),
        )
    console.print(table)


# ─── BUNDLE FINDER ───────────────────────────────────────────────────

@cli.command()
@click.argument("address")
@click.option("--chain", "chain_id", default=None, help="Chain id (default from config)")
@click.option("--tokens", "token_count", type=int, default=None, help="Number of tokens to sample")
@click.option("--history", "history_limit", type=int, default=None, help="History rows per token")
@click.pass_context
def bundle(
    ctx: click.Context,
    address: str,
    chain_id: str | None,
    token_count: int | None,
    history_limit: int | None,
) -> None:
    """Find wallets trading in a bundle with ADDRESS."""
    from polydash.connectors.bundle_finder import BundleFinderClient, BundleFinderError

    cfg: DashboardConfig = ctx.obj["config"]

    async def _analyze():
        client = BundleFinderClient(cfg.bundle_finder)
        try:
            return await client.analyze(address, chain_id, token_count, history_limit)
        finally:
            await client.close()

    try:
        analysis = _run(_analyze())
    except BundleFinderError as e:
        console.print(f"[red]Analysis failed: {e}[/red]")
        sys.exit(1)

    for step in analysis.steps:
        console.print(f"[dim]{step.status:>8}[/dim] {step.name}: {step.message}")

    verdict = "[red]Bundle detected[/red]" if analysis.has_bundle else "[green]No bundle[/green]"
    cached = " (cached)" if analysis.from_cache else ""
    console.print(f"{verdict}{cached}")

    table = Table(title=f"Suspects ({len(analysis.suspects)})")
    table.add_column("Address")
    table.add_column("Score", justify="right", style="yellow")
    table.add_column("Shared", justify="right")
    table.add_column("Analyzed", justify="right")
    for s in analysis.suspects:
        table.add_row(s.address, f"{s.score:.2f}", str(s.count), str(s.total_analyzed))
    console.print(table)


if __name__ == "__main__":
    cli()
