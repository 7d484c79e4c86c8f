import logging
import typer
from pathlib import Path
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from finance_dashboard.api.client import FinancesApiClient
from finance_dashboard.config.settings import DashboardSettings
from finance_dashboard.domain.enums import AccountType, TransactionType
from finance_dashboard.parsers.factory import ParserFactory
from finance_dashboard.parsers.records import RecordNormalizer
from finance_dashboard.services.dashboard_service import DashboardService
from finance_dashboard.services.models import DashboardSummary
from finance_dashboard.sources.api_source import ApiSnapshotSource
from finance_dashboard.sources.base import UnauthorizedError
from finance_dashboard.sources.file_source import FileSnapshotSource

app = typer.Typer(
    name="finance-dashboard",
    help="Personal finance dashboard: balances, monthly flows and cash-flow history",
    add_completion=False,
)

console = Console()

BAR_WIDTH = 30

class State:
    verbose: bool = False
    settings: Optional[DashboardSettings] = None


state = State()

@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    )
):
    """
    Finance Dashboard - Fetch accounts and transactions and summarize them.
    """

    if state.settings is None:
        if not ParserFactory.get_available_formats():
            ParserFactory.load_parsers_from_config()
        state.settings = DashboardSettings.load()

    state.verbose = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(
    snapshot: Optional[Path],
    snapshot_format: Optional[str],
    token: Optional[str],
) -> tuple[DashboardService, Optional[FinancesApiClient]]:
    """Wire a DashboardService to either a snapshot file or the API"""
    settings = state.settings
    client = None

    if snapshot is not None:
        format_name = snapshot_format or ParserFactory.format_for_path(snapshot)
        source = FileSnapshotSource(snapshot, ParserFactory.create_parser(format_name))
    else:
        client = FinancesApiClient(
            base_url=settings.api_base_url,
            token=token or settings.api_token,
            timeout=settings.api_timeout,
        )
        source = ApiSnapshotSource(client, per_page=settings.per_page, max_pages=settings.max_pages)

    service = DashboardService(
        source,
        normalizer=RecordNormalizer(settings.credit_balance_sign),
        recent_limit=settings.recent_transactions,
    )
    return service, client


def _parse_reference_date(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a YYYY-MM-DD date", param_hint="--date")


def _load_summary(
    snapshot: Optional[Path],
    snapshot_format: Optional[str],
    token: Optional[str],
    reference_date: date,
) -> DashboardSummary:
    service, client = _build_service(snapshot, snapshot_format, token)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Loading accounts and transactions...", total=None)
            summary = service.build_dashboard(reference_date)
            progress.update(task, completed=True)
    finally:
        if client is not None:
            client.close()
    return summary


def _money(amount: Decimal) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _colored(amount: Decimal) -> str:
    color = "green" if amount >= 0 else "red"
    return f"[{color}]{_money(amount)}[/{color}]"


def _bar(amount: Decimal, largest: Decimal, char: str) -> str:
    if largest <= 0 or amount <= 0:
        return ""
    return char * max(1, int(amount / largest * BAR_WIDTH))


SnapshotOption = typer.Option(
    None,
    "--snapshot", "-s",
    help="Read accounts and transactions from an exported file instead of the API",
    exists=True,
    file_okay=True,
    dir_okay=False,
)
FormatOption = typer.Option(
    None,
    "--format", "-f",
    help="Snapshot format (json, excel). Guessed from the extension by default",
)
DateOption = typer.Option(
    None,
    "--date", "-d",
    help="Reference date (YYYY-MM-DD), defaults to today",
)
TokenOption = typer.Option(
    None,
    "--token",
    help="API bearer token, overrides FINANCE_DASHBOARD_TOKEN",
)

@app.command(name="dashboard")
def dashboard(
    snapshot: Optional[Path] = SnapshotOption,
    snapshot_format: Optional[str] = FormatOption,
    reference: Optional[str] = DateOption,
    token: Optional[str] = TokenOption,
):
    """
    Show balances, this month's flows and the last six months of cash flow.

    Examples:
        finance-dashboard dashboard
        finance-dashboard dashboard --snapshot export.json --date 2024-01-15
    """
    reference_date = _parse_reference_date(reference)
    try:
        summary = _load_summary(snapshot, snapshot_format, token, reference_date)
        month_name = reference_date.strftime("%B %Y")

        console.print(f"\n[bold cyan]Dashboard: {month_name}[/bold cyan]")

        # ═══════════════════════════════════════════════════════════
        # KPI PANEL - Balances and this month's flows
        # ═══════════════════════════════════════════════════════════

        liquidity = summary.liquidity
        kpi_text = (
            f"[bold]💰 Total balance:[/bold]  {_colored(summary.total_balance):>14}\n"
            f"[green]🏦 Liquidity:[/green]      {_money(liquidity.total_liquidity):>14}\n"
            f"[red]💳 Debt:[/red]           {_money(liquidity.total_debt):>14}\n"
            f"{'─' * 34}\n"
            f"[bold]📊 Net worth:[/bold]      {_colored(liquidity.net_worth):>14}\n\n"
            f"[green]📈 Income this month:[/green]  {_money(summary.current_month.income):>12}\n"
            f"[red]📉 Expenses this month:[/red] {_money(summary.current_month.expense):>12}"
        )
        if liquidity.has_unclassified:
            kpi_text += (
                f"\n\n[yellow]⚠ {len(liquidity.unclassified_ids)} unclassified account(s): "
                f"{_money(liquidity.unclassified_total)}[/yellow]"
            )

        console.print(Panel(
            kpi_text,
            title=f"[bold]Summary[/bold]",
            border_style="cyan",
            padding=(1, 2),
        ))

        # ═══════════════════════════════════════════════════════════
        # CASH FLOW - Last six months as a bar chart
        # ═══════════════════════════════════════════════════════════

        largest = max(
            [b.income for b in summary.series] + [b.expense for b in summary.series]
        )
        chart = Table(title="Last 6 months", show_header=True, box=None, padding=(0, 2))
        chart.add_column("Month", style="cyan", no_wrap=True)
        chart.add_column("Income", justify="right", style="green")
        chart.add_column("Expenses", justify="right", style="red")
        chart.add_column("", no_wrap=True)

        for bucket in summary.series:
            chart.add_row(
                bucket.start_date.strftime("%b %Y"),
                _money(bucket.income),
                _money(bucket.expense),
                f"[green]{_bar(bucket.income, largest, '█')}[/green]\n"
                f"[red]{_bar(bucket.expense, largest, '█')}[/red]",
            )

        console.print(chart)

        # ═══════════════════════════════════════════════════════════
        # ACCOUNTS
        # ═══════════════════════════════════════════════════════════

        if summary.accounts:
            accounts_table = Table(title="Accounts", show_header=True, padding=(0, 1))
            accounts_table.add_column("Account", style="white")
            accounts_table.add_column("Type", style="dim")
            accounts_table.add_column("Balance", justify="right")

            for account in summary.accounts:
                if account.type == AccountType.LIQUID:
                    kind = "Liquid"
                elif account.type == AccountType.CREDIT:
                    kind = "Credit card"
                else:
                    kind = f"[yellow]{account.raw_type or 'unknown'}[/yellow]"
                name = account.name or account.id
                if not account.is_active:
                    name += " [dim](inactive)[/dim]"
                accounts_table.add_row(name, kind, _colored(account.current_balance))

            console.print(accounts_table)

        # ═══════════════════════════════════════════════════════════
        # SPENDING BY CATEGORY
        # ═══════════════════════════════════════════════════════════

        if summary.expenses_by_category:
            console.print(f"\n[bold]Spending by Category[/bold]")

            category_table = Table(show_header=True, box=None, padding=(0, 2))
            category_table.add_column("Category", style="cyan", no_wrap=True)
            category_table.add_column("Amount", justify="right", style="red")
            category_table.add_column("% of Total", justify="right", style="dim")

            total_expense = summary.current_month.expense
            for category in summary.expenses_by_category[:10]:
                percentage = (category.total / total_expense * 100) if total_expense > 0 else 0
                category_table.add_row(category.name, _money(category.total), f"{percentage:.1f}%")

            console.print(category_table)

        # ═══════════════════════════════════════════════════════════
        # RECENT TRANSACTIONS
        # ═══════════════════════════════════════════════════════════

        if summary.recent_transactions:
            console.print(f"\n[bold]Recent Transactions[/bold]")

            txn_table = Table(show_header=True, padding=(0, 1))
            txn_table.add_column("Date", style="cyan", width=12)
            txn_table.add_column("Description", style="white", max_width=40)
            txn_table.add_column("Type", style="dim")
            txn_table.add_column("Amount", justify="right", width=14)

            for txn in summary.recent_transactions:
                desc = txn.description[:37] + "..." if len(txn.description) > 40 else txn.description
                if txn.type == TransactionType.EXPENSE:
                    amount_str = f"[red]-{_money(txn.magnitude)}[/red]"
                elif txn.type == TransactionType.INCOME:
                    amount_str = f"[green]+{_money(txn.amount)}[/green]"
                else:
                    amount_str = _money(txn.amount)
                txn_table.add_row(str(txn.date), desc, txn.type.value.title(), amount_str)

            console.print(txn_table)

        if summary.is_degraded:
            console.print(
                f"\n[yellow]⚠ Partial data: {summary.rejected_count} record(s) rejected "
                f"({summary.unparseable_count} with unreadable dates), "
                f"{summary.orphaned_count} orphaned transaction(s), "
                f"{len(summary.fetch_errors)} fetch error(s). "
                f"Run 'validate' for details.[/yellow]"
            )

        if state.verbose:
            console.print(f"\n[dim]→ Dashboard generated successfully[/dim]")

    except UnauthorizedError as e:
        console.print(f"[bold red]Unauthorized:[/bold red] {e}")
        console.print("[dim]Set FINANCE_DASHBOARD_TOKEN or pass --token[/dim]")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if state.verbose:
            console.print_exception()
        raise typer.Exit(code=1)


@app.command(name="validate")
def validate(
    snapshot: Optional[Path] = SnapshotOption,
    snapshot_format: Optional[str] = FormatOption,
    token: Optional[str] = TokenOption,
):
    """
    Report records that were rejected or don't line up with the data contract.

    Exits with code 2 when problems were found.

    Examples:
        finance-dashboard validate --snapshot export.json
    """
    try:
        summary = _load_summary(snapshot, snapshot_format, token, date.today())
        consistency = summary.consistency

        problems = Table(title="Data Quality", show_header=True, padding=(0, 1))
        problems.add_column("Check", style="cyan")
        problems.add_column("Count", justify="right")
        problems.add_column("Details", style="dim", max_width=60)

        def add(check: str, items) -> None:
            items = list(items)
            color = "green" if not items else "yellow"
            problems.add_row(check, f"[{color}]{len(items)}[/{color}]", ", ".join(items[:10]))

        add("Fetch errors", summary.fetch_errors)
        add("Rejected records", [
            f"{r.kind} #{r.index} ({r.reason.value})" for r in summary.rejected
        ])
        add("Unclassified accounts", summary.liquidity.unclassified_ids)
        add("Duplicate account ids", consistency.duplicate_account_ids)
        add("Orphaned transactions", consistency.orphaned_transaction_ids)
        add("Credit sign anomalies", consistency.credit_sign_anomalies)

        console.print(problems)

        if state.verbose and summary.rejected:
            for record in summary.rejected:
                console.print(f"  [dim]{record.kind} #{record.index} id={record.record_id}: {record.detail}[/dim]")

        if summary.is_degraded or summary.liquidity.has_unclassified:
            console.print("[yellow]⚠ Problems found[/yellow]")
            raise typer.Exit(code=2)

        console.print("[bold green]✓ Snapshot is consistent[/bold green]")

    except typer.Exit:
        raise
    except UnauthorizedError as e:
        console.print(f"[bold red]Unauthorized:[/bold red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if state.verbose:
            console.print_exception()
        raise typer.Exit(code=1)


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
