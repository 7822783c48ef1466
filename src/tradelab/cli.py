"""Click-based CLI for tradelab.

Thin wrapper around library modules. Every operation
delegates to the acquisition service, the Finnhub source, or the narrative
pipeline.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, timedelta

import click
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from tradelab.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _default_start() -> str:
    return (date.today() - timedelta(days=100)).isoformat()


def _default_end() -> str:
    return date.today().isoformat()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="TRADELAB_CONFIG",
    default=None,
    help="Path to tradelab.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.version_option(package_name="tradelab")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """tradelab: single-ticker backtest metrics with live or demo data."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# backtest
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("ticker")
@click.option("--start", "-s", default=None, help="Start date YYYY-MM-DD (default: 100 days ago).")
@click.option("--end", "-e", default=None, help="End date YYYY-MM-DD (default: today).")
@click.option(
    "--live/--demo",
    "prefer_live",
    default=None,
    help="Try live providers first, or go straight to synthetic data.",
)
@click.option(
    "--narrative",
    is_flag=True,
    default=False,
    help="Also run headline sentiment analysis alongside the backtest.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def backtest(
    ctx: click.Context,
    ticker: str,
    start: str | None,
    end: str | None,
    prefer_live: bool | None,
    narrative: bool,
    output_format: str,
) -> None:
    """Fetch TICKER's daily bars and compute performance metrics."""
    from tradelab.acquisition import BacktestService, make_request
    from tradelab.core import TradelabError

    config = _load_config(ctx)
    live = config.acquisition.prefer_live if prefer_live is None else prefer_live

    try:
        request = make_request(ticker, start or _default_start(), end or _default_end(), live)
    except TradelabError as exc:
        raise click.BadParameter(str(exc)) from exc

    async def _run():
        narrative_task = None
        if narrative:
            narrative_task = asyncio.create_task(_safe_narrative(request.ticker, config))

        result = await BacktestService.from_config(config).run(request)

        if output_format == "json":
            click.echo(json.dumps(result.to_payload(), indent=2))
        else:
            _output_backtest_table(result)

        if narrative_task is not None:
            analysis = await narrative_task
            if analysis is not None:
                _output_narrative(analysis, output_format)

    try:
        _run_async(_run())
    except TradelabError as exc:
        console.print(f"[red]Backtest failed: {exc}[/red]")
        raise SystemExit(1)


async def _safe_narrative(ticker: str, config):
    """Run the narrative pipeline; report failures without raising."""
    from tradelab.core import TradelabError
    from tradelab.narrative import fundamental_analysis

    try:
        return await fundamental_analysis(ticker, config)
    except TradelabError as exc:
        logger.warning("Narrative analysis failed for %s: %s", ticker, exc)
        console.print(f"[yellow]Narrative unavailable: {exc}[/yellow]")
        return None


def _output_backtest_table(result) -> None:
    """Render backtest results as Rich tables."""
    series = result.series
    console.print()
    if series:
        console.print(
            f"[bold]{result.ticker}: {series[0].time} → {series[-1].time}[/bold]"
            f"  ({len(series)} bars)"
        )
    else:
        console.print(f"[bold]{result.ticker}[/bold]: no bars in range")

    if result.provenance == "real":
        console.print(f"  [green]Live data from {result.source}[/green]")
    else:
        console.print("  [yellow]Demo data (synthetic random walk)[/yellow]")
        for attempt in result.attempts:
            console.print(f"    {attempt.provider}: {attempt.error_type} - {attempt.message}")
    console.print()

    m = result.metrics
    table = Table(title="Performance Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total Return", f"{m.total_return_pct:.2f}%")
    table.add_row("Max Drawdown", f"{m.max_drawdown_pct:.2f}%")
    table.add_row("Win Rate", f"{m.win_rate_pct:.2f}%")
    table.add_row("Trades", str(m.trade_count))
    table.add_row("Profitable Trades", str(m.profitable_trade_count))
    console.print(table)


def _output_narrative(analysis, output_format: str) -> None:
    if output_format == "json":
        click.echo(json.dumps(analysis.model_dump(mode="json", by_alias=True), indent=2))
        return

    console.print()
    console.print(
        f"[bold]Sentiment {analysis.sentiment_score:.0f}/100[/bold]  "
        f"Fair value: {analysis.fair_value_estimate}"
    )
    console.print(f"  {analysis.sentiment_summary}")
    if analysis.leading_indicators:
        table = Table(title="Leading Indicators")
        table.add_column("Indicator", style="bold")
        table.add_column("Status")
        table.add_column("Reason")
        for ind in analysis.leading_indicators:
            table.add_row(ind.name, str(ind.status), ind.reason)
        console.print(table)


# ---------------------------------------------------------------------------
# quote
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("ticker")
@click.pass_context
def quote(ctx: click.Context, ticker: str) -> None:
    """Show the real-time Finnhub quote for TICKER."""
    from tradelab.acquisition import clean_ticker
    from tradelab.core import TradelabError
    from tradelab.prices import FinnhubSource

    config = _load_config(ctx)
    try:
        symbol = clean_ticker(ticker)
        snapshot = _run_async(FinnhubSource(config.finnhub).get_quote(symbol))
    except TradelabError as exc:
        console.print(f"[red]Quote failed: {exc}[/red]")
        raise SystemExit(1)

    click.echo(json.dumps(snapshot.model_dump(mode="json", by_alias=True), indent=2))


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("ticker")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def analyze(ctx: click.Context, ticker: str, output_format: str) -> None:
    """Summarize recent headline sentiment for TICKER."""
    from tradelab.acquisition import clean_ticker
    from tradelab.core import TradelabError
    from tradelab.narrative import fundamental_analysis

    config = _load_config(ctx)
    try:
        analysis = _run_async(fundamental_analysis(clean_ticker(ticker), config))
    except TradelabError as exc:
        console.print(f"[red]Analysis failed: {exc}[/red]")
        raise SystemExit(1)

    _output_narrative(analysis, output_format)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", default=None, help="Bind address (default from config).")
@click.option("--port", type=int, default=None, help="Port (default from config).")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from tradelab.api import create_app

    config = _load_config(ctx)
    uvicorn.run(
        create_app(config=config),
        host=host or config.api.host,
        port=port or config.api.port,
    )


if __name__ == "__main__":
    cli()
