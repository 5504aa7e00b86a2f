"""Progress and summary display utilities for Graph OAuth (graphoauth)."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    FileSizeColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
    TotalFileSizeColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from graphoauth.utils.helpers import redact, truncate_path

console = Console()


def create_file_progress(filename, console=console):
    """Create a progress display for a single upload session."""
    return Progress(
        TextColumn(f"[cyan]{truncate_path(filename, 35)}"),
        BarColumn(),
        TaskProgressColumn(),
        "•",
        FileSizeColumn(),
        "/",
        TotalFileSizeColumn(),
        "•",
        TransferSpeedColumn(),
        "•",
        TimeElapsedColumn(),
        "•",
        TimeRemainingColumn(),
        console=console,
    )


def display_token_summary(token, console=console):
    """Display a token with its secrets redacted."""
    table = Table(show_header=False, box=box.SIMPLE, pad_edge=False)
    table.add_column("Field", style="bold cyan", width=18, no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Token type", token.token_type)
    table.add_row("Access token", redact(token.access_token, token.log_pii))
    table.add_row("Expires on", token.expires_on.isoformat())
    table.add_row("Scopes", " ".join(token.scope) or "-")
    table.add_row("Refresh token", "yes" if token.refresh_token else "no")
    table.add_row("ID token", "yes" if token.id_token else "no")

    console.print(
        Panel(table, title="[bold green]🔑 Access Token[/bold green]", border_style="green")
    )


def display_device_code(device_code, console=console):
    """Show the user where to enter the device code."""
    message = device_code.message or (
        f"To sign in, open {device_code.verification_uri} and enter the code {device_code.user_code}"
    )
    console.print(
        Panel(
            f"[bold]{message}[/bold]\n[dim]Code expires in {device_code.expires_in // 60} minutes[/dim]",
            title="[bold blue]📱 Device Sign-in[/bold blue]",
            border_style="blue",
            padding=(1, 2),
        )
    )


def display_drive_item(item, console=console):
    """Display the drive item produced by an upload."""
    table = Table(show_header=False, box=box.SIMPLE, pad_edge=False)
    table.add_column("Field", style="bold cyan", width=12, no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Name", item.name)
    table.add_row("Size", f"{item.size / 1024 / 1024:.2f} MB")
    table.add_row("Id", item.id or "-")
    table.add_row("Web URL", item.web_url or "-")

    console.print(Panel(table, title="[bold green]✅ Upload Complete[/bold green]", border_style="green"))
