"""
Command-line interface for the Treasury Intelligence pipeline.

Uses Typer for commands and Rich for output. Loads .env files so API keys
and the SEC contact address can live outside the config file.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
import typer

from .config import AppConfig, load_config
from .core.types import Category, ConversationTurn
from .errors import NoSourceDataError, TreasuryIntelError
from .llm.tracing import flush, setup_langfuse
from .runner import Services, answer, generate_briefing, run_refresh
from .utils.logging import setup_logging

app = typer.Typer(add_completion=False, help="Treasury news intelligence: ingest, classify, brief, chat.")
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Override storage.data_dir."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    api_key: str | None = typer.Option(None, "--api-key", help="Override provider API key."),
):
    """Load configuration and set up logging and tracing."""
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if data_dir is not None:
        cfg.storage.data_dir = str(data_dir)
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file
    if api_key:
        cfg.provider.api_key = api_key

    setup_logging(cfg.logging, Path(cfg.storage.data_dir))
    setup_langfuse(cfg.langfuse)
    ctx.obj = cfg
    ctx.call_on_close(flush)


def _services(ctx: typer.Context) -> Services:
    cfg: AppConfig = ctx.obj
    return Services(cfg)


@app.command()
def refresh(
    ctx: typer.Context,
    company: bool = typer.Option(
        True, "--company/--no-company", help="Check SEC for a newer tracked-company filing."
    ),
):
    """Fetch all sources, update the news cache and classify new items."""
    services = _services(ctx)
    report = run_refresh(services, refresh_company=company)

    table = Table(title="Sources")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    for outcome in report.outcomes:
        status = outcome.status if not outcome.failed else f"[red]failed[/red] {outcome.error or ''}"
        table.add_row(outcome.source.name, status, str(len(outcome.records)))
    console.print(table)

    if report.no_sources:
        console.print("[red]No news items fetched: no sources available. Try again later.[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"Fetched {report.raw} ({report.fetched} after dedup), stored {report.added} new, "
        f"classified {report.classified} "
        f"at {report.timestamp.isoformat(timespec='seconds')}"
    )
    if report.classify_skipped:
        console.print(f"[yellow]Classification skipped: {report.classify_skipped}[/yellow]")
    if report.snapshot_updated:
        console.print("Company snapshot updated from a new SEC filing.")


@app.command()
def news(
    ctx: typer.Context,
    category: str = typer.Option("all", "--category", help="Category filter or 'all'."),
    search: str | None = typer.Option(None, "--search", "-s", help="Substring filter."),
    limit: int = typer.Option(50, "--limit", "-n"),
):
    """List cached news ranked by urgency, then recency."""
    if category != "all" and Category.parse(category) is None:
        valid = ", ".join(["all"] + [c.value for c in Category])
        console.print(f"[red]Unknown category {category!r}. Use one of: {valid}[/red]")
        raise typer.Exit(code=2)

    services = _services(ctx)
    records = services.news.query(category=category, search=search, limit=limit)
    if not records:
        console.print("No news items. Run `treasury-intel refresh` first.")
        return

    table = Table()
    table.add_column("U", justify="right")
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("Source")
    table.add_column("Published")
    for record in records:
        title = record.title if not record.ai_summary else f"{record.title}\n[dim]{record.ai_summary}[/dim]"
        table.add_row(
            str(record.urgency),
            record.category.label,
            title,
            record.source_name,
            record.published_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def briefing(
    ctx: typer.Context,
    day: str | None = typer.Option(None, "--date", help="Briefing date (YYYY-MM-DD), default today."),
    force: bool = typer.Option(False, "--force", help="Regenerate even if cached."),
):
    """Show the daily briefing, generating it when missing."""
    try:
        target = date.fromisoformat(day) if day else None
    except ValueError:
        console.print(f"[red]Invalid date {day!r}; expected YYYY-MM-DD.[/red]")
        raise typer.Exit(code=2)

    services = _services(ctx)
    try:
        result = generate_briefing(services, target, force=force)
    except NoSourceDataError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1)
    except TreasuryIntelError as exc:
        console.print(f"[red]Failed to generate briefing: {exc}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[dim]{result.date} (generated {result.generated_at.isoformat(timespec='minutes')})[/dim]")
    console.print(Markdown(result.content))


@app.command()
def chat(
    ctx: typer.Context,
    message: str | None = typer.Option(None, "--message", "-m", help="Ask one question and exit."),
):
    """Ask the Treasury assistant; interactive when no message is given."""
    services = _services(ctx)
    history: list[ConversationTurn] = []

    if message:
        try:
            console.print(Markdown(answer(services, [ConversationTurn("user", message)])))
        except TreasuryIntelError as exc:
            console.print(f"[red]Chat failed: {exc}[/red]")
            raise typer.Exit(code=1)
        return

    console.print("[dim]Ask a question; empty line or Ctrl-D to exit.[/dim]")
    while True:
        try:
            text = console.input("[bold]> [/bold]").strip()
        except EOFError:
            break
        if not text:
            break
        turn = ConversationTurn("user", text)
        try:
            reply = answer(services, history + [turn])
        except TreasuryIntelError as exc:
            console.print(f"[red]Chat failed: {exc}[/red]")
            continue
        history.extend([turn, ConversationTurn("assistant", reply)])
        console.print(Markdown(reply))


@app.command()
def settings(
    ctx: typer.Context,
    news_feed_days: int | None = typer.Option(
        None, "--news-feed-days", help="Days of news to retain (at least 1)."
    ),
):
    """Show or update persisted settings."""
    services = _services(ctx)
    if news_feed_days is not None:
        try:
            current = services.settings.save(news_feed_days=news_feed_days)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=2)
    else:
        current = services.settings.get()
    console.print(f"news_feed_days: {current.news_feed_days}")


if __name__ == "__main__":
    app()
