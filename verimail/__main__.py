import asyncio
import logging
import typer
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
from rich import box

from verimail.config import settings
from verimail.domain_matcher import DomainMatcher
from verimail.handler import verify_email
from verimail.pipeline import VerificationPipeline

app = typer.Typer(help="verimail - Check whether an email address can receive mail")
console = Console()

STAGE_LABELS = [
    ("syntax", "Syntax"),
    ("disposable", "Disposable domain"),
    ("mxRecord", "MX record"),
    ("smtp", "Mailbox accepted"),
    ("verified", "Verified"),
]


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL")):
    """Configure logging once for every command."""
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def show_result(body: dict):
    """Display a verification result as a table."""
    result = body["result"]
    table = Table(title=result["email"], box=box.ROUNDED)
    table.add_column("Check", style="cyan")
    table.add_column("Result")

    for key, label in STAGE_LABELS:
        value = result[key]
        # Being disposable is the bad outcome, everything else is good when true
        good = not value if key == "disposable" else value
        style = "green" if good else "red"
        table.add_row(label, f"[{style}]{'yes' if value else 'no'}[/{style}]")

    console.print()
    console.print(table)
    if body.get("cached"):
        console.print("[dim]Served from cache[/dim]")


async def _verify_once(email: str):
    pipeline = VerificationPipeline.from_settings(settings)
    try:
        return await verify_email({"email": email}, pipeline=pipeline)
    finally:
        await pipeline.aclose()


async def _refresh_blocklist(pipeline: VerificationPipeline):
    try:
        return await pipeline.blocklist.refresh()
    finally:
        await pipeline.aclose()


@app.command()
def verify(
    email: str = typer.Argument(..., help="Email address to verify"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response body"),
):
    """Verify a single email address."""
    response = asyncio.run(_verify_once(email))

    if as_json:
        console.print_json(response.json())
    elif response.status_code == 200:
        show_result(response.body)
    else:
        console.print(f"[red]{response.body['error']}[/red]")

    if response.status_code != 200:
        raise typer.Exit(1)


@app.command()
def blocklist(
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Check a domain against the list"),
):
    """Refresh the disposable-domain blocklist and report on it."""
    pipeline = VerificationPipeline.from_settings(settings)
    snapshot = asyncio.run(_refresh_blocklist(pipeline))

    style = "green" if snapshot.source == "remote" else "yellow"
    console.print(Panel(
        f"[bold]{len(snapshot)}[/bold] domains loaded from [{style}]{snapshot.source}[/{style}] list\n"
        f"[dim]{pipeline.blocklist.url}[/dim]",
        title="Blocklist",
        border_style=style,
    ))

    if domain:
        if DomainMatcher(pipeline.blocklist).is_disposable(domain):
            console.print(f"[red]✗ {domain} is disposable[/red]")
        else:
            console.print(f"[green]✓ {domain} is not on the blocklist[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
):
    """Run the HTTP API."""
    import uvicorn

    console.print(f"[bold]Serving verimail on[/bold] [cyan]http://{host}:{port}[/cyan]")
    uvicorn.run("verimail.api:app", host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    app()
