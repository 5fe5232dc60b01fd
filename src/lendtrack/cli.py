"""Command-line interface for lendtrack.

Built with Typer for commands and Rich for output.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .catalog import CatalogManager, ItemCreate
from .config import get_config
from .db import get_db
from .errors import LendingError
from .lending import LendingEngine, retry_on_conflict
from .log import configure_logging
from .reports import ReportManager
from .users import UserCreate, UserRegistry
from .utils import utc_now

# Create the main app
app = typer.Typer(
    name="lendtrack",
    help="Track items lent to users: stock, loans, returns and overdue items.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
item_app = typer.Typer(help="Manage the item catalog.")
app.add_typer(item_app, name="item")

user_app = typer.Typer(help="Manage registered users.")
app.add_typer(user_app, name="user")

export_app = typer.Typer(help="Export reports to CSV.")
app.add_typer(export_app, name="export")

# Rich console for pretty output
console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"]


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (default: LENDTRACK_LOG_LEVEL or WARNING)"
    ),
) -> None:
    """Track items lent to users: stock, loans, returns and overdue items."""
    configure_logging(log_level or get_config().log_level)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def _short(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _engine() -> LendingEngine:
    return LendingEngine(get_db(), return_policy=get_config().return_policy)


# ============================================================================
# Item Commands
# ============================================================================


@item_app.command("add")
def item_add(
    name: str = typer.Argument(..., help="Item name (unique)"),
    stock: int = typer.Option(1, "--stock", "-s", min=0, help="Units on the shelf"),
    location: Optional[int] = typer.Option(None, "--location", "-l", help="Shelf number"),
) -> None:
    """Add an item to the catalog."""
    try:
        item = CatalogManager(get_db()).create_item(
            ItemCreate(name=name, stock=stock, location=location)
        )
    except LendingError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Added item {item.id}: {item.name} ({item.stock} in stock)")


@item_app.command("list")
def item_list(
    in_stock: bool = typer.Option(False, "--in-stock", help="Only items with stock left"),
) -> None:
    """List catalog items."""
    items = CatalogManager(get_db()).list_items(in_stock_only=in_stock)
    if not items:
        console.print("[dim]No items found.[/dim]")
        return

    table = Table(title="Items", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Location", justify="center")
    table.add_column("Stock", justify="right", style="green")
    for item in items:
        location = str(item.location) if item.location is not None else "-"
        table.add_row(str(item.id), item.name, location, str(item.stock))
    console.print(table)


@item_app.command("restock")
def item_restock(
    item_id: int = typer.Argument(..., help="Item ID"),
    units: int = typer.Argument(..., help="Units to add"),
) -> None:
    """Add newly acquired units to an item's stock."""
    try:
        item = CatalogManager(get_db()).restock(item_id, units)
    except LendingError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"{item.name} now has {item.stock} in stock")


@item_app.command("remove")
def item_remove(
    item_id: int = typer.Argument(..., help="Item ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove an item along with its loan history."""
    if not yes:
        typer.confirm(f"Delete item {item_id} and all of its loans?", abort=True)

    if not CatalogManager(get_db()).delete_item(item_id):
        print_error(f"Item {item_id} not found")
        raise typer.Exit(1)
    print_success(f"Removed item {item_id}")


# ============================================================================
# User Commands
# ============================================================================


@user_app.command("add")
def user_add(
    name: str = typer.Argument(..., help="Full name"),
    national_id: str = typer.Option(..., "--national-id", "-n", help="National ID (unique)"),
    phone: str = typer.Option(..., "--phone", "-p", help="Phone number"),
    course: str = typer.Option("none", "--course", "-c", help="Course or affiliation"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Email address"),
) -> None:
    """Register a user."""
    try:
        user = UserRegistry(get_db()).create_user(
            UserCreate(
                national_id=national_id,
                name=name,
                phone=phone,
                course=course,
                email=email,
            )
        )
    except LendingError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Registered user {user.id}: {user.name}")


@user_app.command("list")
def user_list(
    course: Optional[str] = typer.Option(None, "--course", "-c", help="Filter by course"),
) -> None:
    """List registered users."""
    users = UserRegistry(get_db()).list_users(course=course)
    if not users:
        console.print("[dim]No users found.[/dim]")
        return

    table = Table(title="Users", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("National ID")
    table.add_column("Phone")
    table.add_column("Course", style="yellow")
    for user in users:
        table.add_row(str(user.id), user.name, user.national_id, user.phone, user.course)
    console.print(table)


@user_app.command("remove")
def user_remove(
    user_id: int = typer.Argument(..., help="User ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove a user along with their loan history."""
    if not yes:
        typer.confirm(f"Delete user {user_id} and all of their loans?", abort=True)

    if not UserRegistry(get_db()).delete_user(user_id):
        print_error(f"User {user_id} not found")
        raise typer.Exit(1)
    print_success(f"Removed user {user_id}")


# ============================================================================
# Lending Commands
# ============================================================================


@app.command()
def borrow(
    user_id: int = typer.Argument(..., help="Borrowing user ID"),
    item_id: int = typer.Argument(..., help="Item ID"),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Units to lend"),
    due: Optional[datetime] = typer.Option(
        None, "--due", "-d", formats=DATE_FORMATS, help="Due date (YYYY-MM-DD)"
    ),
    days: Optional[int] = typer.Option(
        None, "--days", help="Due in N days (default: LENDTRACK_DEFAULT_LOAN_DAYS)"
    ),
) -> None:
    """Lend units of an item to a user."""
    config = get_config()
    if due is None:
        loan_days = config.default_loan_days if days is None else days
        due = utc_now() + timedelta(days=loan_days)

    engine = _engine()
    try:
        loan_id = retry_on_conflict(
            lambda: engine.borrow(user_id, item_id, quantity, due),
            retries=config.retry_max,
            base_delay=config.retry_base_delay,
        )
    except LendingError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(
        f"Loan {loan_id}: user {user_id} borrowed {quantity} of item {item_id}, "
        f"due {due.strftime('%Y-%m-%d')}"
    )


@app.command("return")
def return_cmd(
    user_id: int = typer.Argument(..., help="Returning user ID"),
    item_id: int = typer.Argument(..., help="Item ID"),
) -> None:
    """Return the user's oldest open loan of an item."""
    config = get_config()
    engine = _engine()
    try:
        receipt = retry_on_conflict(
            lambda: engine.return_item(user_id, item_id),
            retries=config.retry_max,
            base_delay=config.retry_base_delay,
        )
    except LendingError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(
        f"Loan {receipt.loan.id} closed: {receipt.units_restored} unit(s) back in stock "
        f"(stock {receipt.item_stock}, user still holds {receipt.units_still_out})"
    )


# ============================================================================
# Report Commands
# ============================================================================


@app.command()
def history() -> None:
    """Show the full loan history."""
    entries = ReportManager(get_db()).list_history()
    if not entries:
        console.print("[dim]No loans recorded.[/dim]")
        return

    table = Table(title="Loan History", show_header=True, header_style="bold magenta")
    table.add_column("Loan", justify="right")
    table.add_column("User", style="cyan")
    table.add_column("Item", style="green")
    table.add_column("Qty", justify="right")
    table.add_column("Borrowed")
    table.add_column("Due")
    table.add_column("Returned")
    for entry in entries:
        table.add_row(
            str(entry.loan_id),
            entry.user_name,
            entry.item_name,
            str(entry.quantity),
            _short(entry.borrowed_at),
            _short(entry.due_at),
            _short(entry.returned_at),
        )
    console.print(table)


@app.command()
def overdue(
    as_of: Optional[datetime] = typer.Option(
        None, "--as-of", formats=DATE_FORMATS, help="Reference date (default: today)"
    ),
) -> None:
    """Show open loans past their due date."""
    report = ReportManager(get_db()).get_overdue_report(as_of.date() if as_of else None)
    if not report.loans:
        console.print(f"[dim]Nothing overdue as of {report.as_of.isoformat()}.[/dim]")
        return

    table = Table(
        title=f"Overdue as of {report.as_of.isoformat()}",
        show_header=True,
        header_style="bold red",
    )
    table.add_column("Loan", justify="right")
    table.add_column("User", style="cyan")
    table.add_column("Item", style="green")
    table.add_column("Qty", justify="right")
    table.add_column("Due")
    table.add_column("Days", justify="right", style="red")
    for entry in report.loans:
        table.add_row(
            str(entry.loan_id),
            entry.user_name,
            entry.item_name,
            str(entry.quantity),
            _short(entry.due_at),
            str(entry.days_overdue),
        )
    console.print(table)
    console.print(
        f"[dim]{report.total_overdue} overdue, oldest {report.oldest_overdue_days} day(s)[/dim]"
    )


@app.command("user-items")
def user_items(
    user_id: int = typer.Argument(..., help="User ID"),
    open_only: bool = typer.Option(False, "--open", help="Only loans not yet returned"),
) -> None:
    """Show the loans of one user."""
    entries = ReportManager(get_db()).list_user_items(user_id, open_only=open_only)
    if not entries:
        console.print(f"[dim]No loans for user {user_id}.[/dim]")
        return

    table = Table(title=f"Loans of user {user_id}", show_header=True, header_style="bold magenta")
    table.add_column("Loan", justify="right")
    table.add_column("Item", style="green")
    table.add_column("Qty", justify="right")
    table.add_column("Borrowed")
    table.add_column("Due")
    table.add_column("Returned")
    for entry in entries:
        table.add_row(
            str(entry.loan_id),
            entry.item_name,
            str(entry.quantity),
            _short(entry.borrowed_at),
            _short(entry.due_at),
            _short(entry.returned_at),
        )
    console.print(table)


@app.command()
def active(
    user_id: Optional[int] = typer.Option(None, "--user", "-u", help="Only this user"),
) -> None:
    """Show units currently out, per user and item."""
    entries = ReportManager(get_db()).list_active_loans(user_id)
    if not entries:
        console.print("[dim]No active loans.[/dim]")
        return

    table = Table(title="Active Loans", show_header=True, header_style="bold magenta")
    table.add_column("User", style="cyan")
    table.add_column("Item", style="green")
    table.add_column("Units out", justify="right")
    for entry in entries:
        table.add_row(entry.user_name, entry.item_name, str(entry.quantity))
    console.print(table)


# ============================================================================
# Export Commands
# ============================================================================


def _run_export(kind, output: Path, as_of: Optional[datetime] = None) -> None:
    from .export import ReportExporter

    exporter = ReportExporter(ReportManager(get_db()))
    console.print(f"[dim]Exporting to {output}...[/dim]")
    result = exporter.export(kind, output, as_of=as_of.date() if as_of else None)

    if result.success:
        print_success(f"Exported {result.records_exported} rows to {result.file_path}")
    else:
        print_error(f"Export failed: {result.error}")
        raise typer.Exit(1)


@export_app.command("history")
def export_history(
    output: Path = typer.Option(
        Path("./loan_history.csv"), "--output", "-o", help="Output file path"
    ),
) -> None:
    """Export the full loan history to CSV."""
    from .export import ReportKind

    _run_export(ReportKind.HISTORY, output)


@export_app.command("overdue")
def export_overdue(
    output: Path = typer.Option(
        Path("./overdue.csv"), "--output", "-o", help="Output file path"
    ),
    as_of: Optional[datetime] = typer.Option(
        None, "--as-of", formats=DATE_FORMATS, help="Reference date (default: today)"
    ),
) -> None:
    """Export overdue loans to CSV."""
    from .export import ReportKind

    _run_export(ReportKind.OVERDUE, output, as_of)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"lendtrack version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


if __name__ == "__main__":
    app()
