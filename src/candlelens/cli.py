"""
Command-line interface for candlelens.

Every command reads candles from a JSON data file laid out as
``{"SYMBOL": {"timeframe": [candle, ...]}}`` and prints the analysis with
rich tables, or as JSON with ``--json``.
"""

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import Config
from .logger import configure_logging
from .models.analysis import BatchAnalysisResult, ComprehensiveAnalysis
from .models.levels import SupportResistanceAnalysis
from .models.market_data import Timeframe
from .models.trends import MultiTimeframeTrend
from .services.alerts import LoggingAlertDispatcher
from .services.analysis_service import AnalysisService
from .services.providers import JsonFileMarketDataProvider
from .services.storage import InMemoryAnalysisStore

console = Console()

TIMEFRAME_CHOICES = [tf.value for tf in Timeframe]

data_option = click.option(
    "--data",
    "-d",
    "data_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON file with candles keyed by symbol and timeframe"
)
json_option = click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")


def _run(ctx: click.Context, data_path: Path, call: Callable[[AnalysisService], Awaitable]):
    """Open the data file, run one service call and close the provider."""
    config: Config = ctx.obj["config"]

    async def runner():
        async with JsonFileMarketDataProvider(data_path) as provider:
            service = AnalysisService(
                provider,
                config=config,
                store=InMemoryAnalysisStore(),
                dispatcher=LoggingAlertDispatcher(ctx.obj["logger"]),
            )
            return await call(service)

    try:
        return asyncio.run(runner())
    except ValueError as e:
        console.print(f"[red]✗[/red] Analysis failed: {e}")
        sys.exit(1)
    except (OSError, LookupError) as e:
        console.print(f"[red]✗[/red] Could not load candles: {e}")
        sys.exit(1)


def _fmt(value: float, digits: int = 2) -> str:
    return f"{value:,.{digits}f}"


@click.group()
@click.version_option(version=__version__, prog_name="candlelens")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to a .env configuration file"
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.pass_context
def main(ctx: click.Context, config: Optional[Path], verbose: bool) -> None:
    """
    candlelens: technical analysis of OHLCV candle series.

    Indicators, support/resistance levels, chart patterns and
    multi-timeframe trend fusion from local candle data.
    """
    ctx.ensure_object(dict)

    try:
        if config:
            ctx.obj["config"] = Config.load_from_env(str(config))
        else:
            ctx.obj["config"] = Config.load_from_env()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if verbose:
        ctx.obj["config"].logging.level = "DEBUG"

    ctx.obj["logger"] = configure_logging(ctx.obj["config"].logging)


@main.command()
@click.argument("symbol")
@data_option
@click.option("--timeframe", "-t", type=click.Choice(TIMEFRAME_CHOICES), default="1h", show_default=True)
@click.option("--limit", "-l", type=int, default=None, help="Number of candles to analyse")
@json_option
@click.pass_context
def analyze(
    ctx: click.Context,
    symbol: str,
    data_path: Path,
    timeframe: str,
    limit: Optional[int],
    as_json: bool
) -> None:
    """Comprehensive single-timeframe analysis of SYMBOL."""
    analysis: ComprehensiveAnalysis = _run(
        ctx, data_path,
        lambda service: service.perform_comprehensive_analysis(symbol, timeframe, limit)
    )

    if as_json:
        click.echo(analysis.model_dump_json(indent=2))
        return

    score = analysis.score
    table = Table(title=f"{analysis.symbol} {analysis.timeframe.value}", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Price", _fmt(analysis.current_price, 4))
    table.add_row("Candles", str(analysis.candle_count))
    table.add_row("Trend", _fmt(score.trend, 0))
    table.add_row("Momentum", _fmt(score.momentum, 0))
    table.add_row("Volatility", _fmt(score.volatility, 0))
    table.add_row("Signal", score.signal.value)
    table.add_row("Confidence", f"{score.confidence:.0f}%")
    console.print(table)

    if analysis.patterns:
        patterns = Table(title="Patterns", show_header=True, header_style="bold blue")
        patterns.add_column("Pattern")
        patterns.add_column("Signal")
        patterns.add_column("Confidence", justify="right")
        patterns.add_column("Description")
        for pattern in analysis.patterns:
            patterns.add_row(pattern.kind.value, pattern.signal.value, f"{pattern.confidence:.0f}", pattern.description)
        console.print(patterns)

    console.print(Panel(analysis.summary, title="Summary", style="green"))
    if analysis.failed_parts:
        console.print(f"[yellow]Skipped: {', '.join(analysis.failed_parts)}[/yellow]")


@main.command()
@click.argument("symbol")
@data_option
@click.option(
    "--timeframe", "-t", "timeframes",
    type=click.Choice(TIMEFRAME_CHOICES), multiple=True,
    help="Timeframes to fuse (repeatable, defaults to configuration)"
)
@json_option
@click.pass_context
def trend(ctx: click.Context, symbol: str, data_path: Path, timeframes: tuple, as_json: bool) -> None:
    """Multi-timeframe trend analysis of SYMBOL."""
    result: MultiTimeframeTrend = _run(
        ctx, data_path,
        lambda service: service.analyze_multi_timeframe_trend(symbol, list(timeframes) or None)
    )

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    table = Table(title=f"{result.symbol} trend", show_header=True, header_style="bold magenta")
    table.add_column("Timeframe", style="cyan")
    table.add_column("Trend")
    table.add_column("Confidence", justify="right")
    table.add_column("Strength", justify="right")
    table.add_column("EMA20", justify="right")
    table.add_column("EMA60", justify="right")
    table.add_column("EMA120", justify="right")
    for timeframe, item in sorted(result.timeframes.items(), key=lambda kv: kv[0].seconds):
        table.add_row(
            timeframe.value,
            item.trend.value,
            f"{item.confidence:.0f}",
            f"{item.trend_strength:.0f}",
            _fmt(item.ema20, 4),
            _fmt(item.ema60, 4),
            _fmt(item.ema120, 4),
        )
    console.print(table)

    suggestion = result.trading_suggestion
    lines = [
        f"Overall: {result.overall_trend.value} ({result.overall_confidence:.0f}%)",
        f"Alignment: {result.alignment.alignment_score:.0f}% "
        f"({'aligned' if result.alignment.is_aligned else 'not aligned'})",
        f"Action: {suggestion.action.value} [{suggestion.risk_level.value} risk]",
        suggestion.reason,
    ]
    console.print(Panel("\n".join(lines), title="Suggestion", style="green"))
    if result.failed_timeframes:
        console.print(f"[yellow]Skipped timeframes: {', '.join(tf.value for tf in result.failed_timeframes)}[/yellow]")


@main.command()
@click.argument("symbol")
@data_option
@click.option(
    "--timeframe", "-t", "timeframes",
    type=click.Choice(TIMEFRAME_CHOICES), multiple=True,
    help="Timeframes to scan (repeatable, defaults to configuration)"
)
@json_option
@click.pass_context
def levels(ctx: click.Context, symbol: str, data_path: Path, timeframes: tuple, as_json: bool) -> None:
    """Support and resistance levels of SYMBOL."""
    result: SupportResistanceAnalysis = _run(
        ctx, data_path,
        lambda service: service.analyze_support_resistance(symbol, list(timeframes) or None)
    )

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    table = Table(title=f"{result.symbol} levels @ {_fmt(result.current_price, 4)}", show_header=True, header_style="bold magenta")
    table.add_column("Type", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Range", justify="right")
    table.add_column("Strength")
    table.add_column("Confidence", justify="right")
    table.add_column("Distance %", justify="right")
    table.add_column("Timeframe")
    for level in result.resistances[::-1] + result.supports:
        table.add_row(
            level.type.value,
            _fmt(level.price, 4),
            f"{_fmt(level.price_range.min, 4)} - {_fmt(level.price_range.max, 4)}",
            level.strength.value,
            f"{level.confidence:.0f}",
            _fmt(level.distance),
            level.timeframe.value,
        )
    console.print(table)

    position = result.current_position
    lines: List[str] = [f"Price action: {position.price_action.value}"]
    for zone in result.trading_zones:
        lines.append(
            f"{zone.type.value}: {_fmt(zone.price_range.min, 4)} - {_fmt(zone.price_range.max, 4)} "
            f"({zone.confidence:.0f}%) {zone.reasoning}"
        )
    console.print(Panel("\n".join(lines), title="Position", style="green"))
    if result.failed_timeframes:
        console.print(f"[yellow]Skipped timeframes: {', '.join(tf.value for tf in result.failed_timeframes)}[/yellow]")


@main.command()
@click.argument("symbols", nargs=-1)
@data_option
@click.option("--timeframe", "-t", type=click.Choice(TIMEFRAME_CHOICES), default="1h", show_default=True)
@json_option
@click.pass_context
def batch(ctx: click.Context, symbols: tuple, data_path: Path, timeframe: str, as_json: bool) -> None:
    """Comprehensive analysis of several SYMBOLS (defaults to configuration)."""
    result: BatchAnalysisResult = _run(
        ctx, data_path,
        lambda service: service.perform_batch_analysis(list(symbols) or None, timeframe)
    )

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    table = Table(title=f"Batch {timeframe}", show_header=True, header_style="bold magenta")
    table.add_column("Symbol", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Signal")
    table.add_column("Confidence", justify="right")
    table.add_column("Patterns", justify="right")
    for symbol, analysis in result.results.items():
        table.add_row(
            symbol,
            _fmt(analysis.current_price, 4),
            analysis.score.signal.value,
            f"{analysis.score.confidence:.0f}%",
            str(len(analysis.patterns)),
        )
    console.print(table)
    if result.failed_symbols:
        console.print(f"[yellow]Failed: {', '.join(result.failed_symbols)}[/yellow]")


if __name__ == "__main__":
    main()
