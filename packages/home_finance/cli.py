"""CLI for the ``home_finance`` package.

A Typer console interface over the rule engines. The root callback loads
``.env`` from the working directory (without overriding variables that are
already set), configures logging, and records ``--database-url`` for the
subcommands. Every subcommand runs inside one :func:`db.client.session_scope`.

Single entities are printed as camelCase JSON; lists and reports as Rich
tables. Rule violations print ``Error: <message>`` to stderr and exit with
status 1.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from db.client import create_schema, session_scope
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from . import categories, people, reports, transactions
from .errors import HomeFinanceError
from .logging_setup import configure_logging, get_logger
from .models import (
    CategoryOut,
    PersonOut,
    PersonUpdate,
    TransactionOut,
    TransactionType,
    TransactionUpdate,
)

logger = get_logger("home_finance.cli")
console = Console()


# ---- Small module-level helpers used by CLI commands -------------------------


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn rule and store failures into ``Error: ...`` plus exit status 1."""

    try:
        yield
    except HomeFinanceError as e:
        logger.info("command rejected: %s", e.message)
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from None
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        typer.echo(f"Error: {first.get('msg', 'invalid input')}", err=True)
        raise typer.Exit(1) from None
    except SQLAlchemyError:
        logger.exception("database failure")
        typer.echo("Error: database failure; see the log for details", err=True)
        raise typer.Exit(1) from None
    except RuntimeError as e:
        # e.g. DATABASE_URL missing
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _session(ctx: typer.Context):
    obj = ctx.obj or {}
    return session_scope(database_url=obj.get("database_url"))


def _emit(model: BaseModel) -> None:
    typer.echo(model.model_dump_json(by_alias=True, indent=2))


def _money(value: Any) -> str:
    return f"{value:.2f}"


def _people_table(rows: Sequence[PersonOut]) -> Table:
    table = Table(title="People")
    table.add_column("Id", justify="right")
    table.add_column("Name")
    table.add_column("Age", justify="right")
    table.add_column("Minor")
    for p in rows:
        table.add_row(str(p.id), p.name, str(p.age), "yes" if p.is_minor else "no")
    return table


def _categories_table(rows: Sequence[CategoryOut]) -> Table:
    table = Table(title="Categories")
    table.add_column("Id", justify="right")
    table.add_column("Description")
    table.add_column("Purpose")
    for c in rows:
        table.add_row(str(c.id), c.description, c.purpose_description)
    return table


def _transactions_table(rows: Sequence[TransactionOut]) -> Table:
    table = Table(title="Transactions")
    table.add_column("Id", justify="right")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("Person")
    table.add_column("Category")
    for t in rows:
        table.add_row(
            str(t.id),
            t.date.isoformat(),
            t.description,
            t.type.label,
            _money(t.amount),
            t.person_name,
            t.category_description,
        )
    return table


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Track household expenses and income per person and category. "
        "Loads DATABASE_URL from a local .env before running."
    ),
)
people_app = typer.Typer(no_args_is_help=True, help="Register and manage people.")
categories_app = typer.Typer(no_args_is_help=True, help="Create and browse categories.")
transactions_app = typer.Typer(no_args_is_help=True, help="Record and edit transactions.")
reports_app = typer.Typer(no_args_is_help=True, help="Income/expense totals.")

app.add_typer(people_app, name="people")
app.add_typer(categories_app, name="categories")
app.add_typer(transactions_app, name="transactions")
app.add_typer(reports_app, name="reports")


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create the tables from the ORM metadata (Alembic owns real migrations)."""

    with _cli_errors():
        create_schema(database_url=(ctx.obj or {}).get("database_url"))
    typer.echo("Schema created.")


@app.command("seed")
def seed_cmd(
    ctx: typer.Context,
    reset: bool = typer.Option(False, "--reset", help="Clear all data before seeding."),
) -> None:
    """Insert the demo data set (skipped when data already exists)."""

    from .seed import reseed_demo_data

    with _cli_errors(), _session(ctx) as session:
        counts = reseed_demo_data(session, reset=reset)
    if counts is None:
        typer.echo("Database already has data; nothing seeded (use --reset).")
        return
    typer.echo(
        f"Seeded {counts['categories']} categories, {counts['people']} people, "
        f"{counts['transactions']} transactions."
    )


# ---- people ------------------------------------------------------------------


@people_app.command("create")
def people_create_cmd(
    ctx: typer.Context,
    name: str = typer.Option(..., help="Person's name (normalized before storage)."),
    age: int = typer.Option(..., help="Age in whole years (1-150)."),
) -> None:
    with _cli_errors(), _session(ctx) as session:
        out = people.create_person(session, name=name, age=age)
    _emit(out)


@people_app.command("update")
def people_update_cmd(
    ctx: typer.Context,
    person_id: int = typer.Argument(..., help="Id of the person to update."),
    name: str | None = typer.Option(None, help="New name."),
    age: int | None = typer.Option(None, help="New age."),
) -> None:
    """Update only the options that were given."""

    data: dict[str, Any] = {}
    if name is not None:
        data["name"] = name
    if age is not None:
        data["age"] = age
    with _cli_errors(), _session(ctx) as session:
        out = people.update_person(session, person_id, PersonUpdate.model_validate(data))
    _emit(out)


@people_app.command("delete")
def people_delete_cmd(ctx: typer.Context, person_id: int = typer.Argument(...)) -> None:
    """Delete a person together with all of their transactions."""

    with _cli_errors(), _session(ctx) as session:
        people.delete_person(session, person_id)
    typer.echo(f"Deleted person {person_id}.")


@people_app.command("list")
def people_list_cmd(
    ctx: typer.Context,
    minors: bool = typer.Option(False, "--minors", help="Only people under 18."),
    adults: bool = typer.Option(False, "--adults", help="Only people aged 18 or more."),
) -> None:
    if minors and adults:
        typer.echo("Error: --minors and --adults are mutually exclusive", err=True)
        raise typer.Exit(1)
    op = people.list_minors if minors else people.list_adults if adults else people.list_people
    with _cli_errors(), _session(ctx) as session:
        rows = op(session)
    console.print(_people_table(rows))


@people_app.command("show")
def people_show_cmd(
    ctx: typer.Context,
    person_id: int = typer.Argument(...),
    detail: bool = typer.Option(False, "--detail", help="Include the person's transactions."),
) -> None:
    with _cli_errors(), _session(ctx) as session:
        out: BaseModel
        if detail:
            out = people.get_person_detail(session, person_id)
        else:
            out = people.get_person(session, person_id)
    _emit(out)


# ---- categories --------------------------------------------------------------


@categories_app.command("create")
def categories_create_cmd(
    ctx: typer.Context,
    description: str = typer.Option(..., help="Category description (unique)."),
    purpose: str = typer.Option(..., help="Expense, Income or Both (or 0/1/2)."),
) -> None:
    with _cli_errors(), _session(ctx) as session:
        out = categories.create_category(session, description=description, purpose=purpose)
    _emit(out)


@categories_app.command("list")
def categories_list_cmd(
    ctx: typer.Context,
    purpose: str | None = typer.Option(None, help="Only categories with exactly this purpose."),
) -> None:
    with _cli_errors(), _session(ctx) as session:
        if purpose is None:
            rows = categories.list_categories(session)
        else:
            rows = categories.list_categories_by_purpose(session, purpose)
    console.print(_categories_table(rows))


@categories_app.command("show")
def categories_show_cmd(ctx: typer.Context, category_id: int = typer.Argument(...)) -> None:
    with _cli_errors(), _session(ctx) as session:
        out = categories.get_category(session, category_id)
    _emit(out)


# ---- transactions ------------------------------------------------------------


@transactions_app.command("create")
def transactions_create_cmd(
    ctx: typer.Context,
    description: str = typer.Option(...),
    amount: str = typer.Option(..., help="Positive amount, e.g. 80.50."),
    date: str = typer.Option(..., help="Calendar date, YYYY-MM-DD."),
    type_: str = typer.Option(..., "--type", help="Expense or Income (or 0/1)."),
    category_id: int = typer.Option(..., "--category-id"),
    person_id: int = typer.Option(..., "--person-id"),
) -> None:
    with _cli_errors(), _session(ctx) as session:
        out = transactions.create_transaction(
            session,
            description=description,
            amount=amount,
            transaction_date=date,
            transaction_type=type_,
            category_id=category_id,
            person_id=person_id,
        )
    _emit(out)


@transactions_app.command("update")
def transactions_update_cmd(
    ctx: typer.Context,
    transaction_id: int = typer.Argument(...),
    description: str | None = typer.Option(None),
    amount: str | None = typer.Option(None),
    date: str | None = typer.Option(None, help="Calendar date, YYYY-MM-DD."),
    type_: str | None = typer.Option(None, "--type", help="Expense or Income (or 0/1)."),
    category_id: int | None = typer.Option(None, "--category-id"),
) -> None:
    """Update only the options that were given; both rules are re-checked."""

    with _cli_errors():
        data: dict[str, Any] = {}
        if description is not None:
            data["description"] = description
        if amount is not None:
            data["amount"] = transactions.to_amount(amount)
        if date is not None:
            data["date"] = date
        if type_ is not None:
            data["type"] = TransactionType.parse(type_)
        if category_id is not None:
            data["category_id"] = category_id
        changes = TransactionUpdate.model_validate(data)
        with _session(ctx) as session:
            out = transactions.update_transaction(session, transaction_id, changes)
    _emit(out)


@transactions_app.command("delete")
def transactions_delete_cmd(ctx: typer.Context, transaction_id: int = typer.Argument(...)) -> None:
    with _cli_errors(), _session(ctx) as session:
        transactions.delete_transaction(session, transaction_id)
    typer.echo(f"Deleted transaction {transaction_id}.")


@transactions_app.command("list")
def transactions_list_cmd(ctx: typer.Context) -> None:
    with _cli_errors(), _session(ctx) as session:
        rows = transactions.list_transactions(session)
    console.print(_transactions_table(rows))


@transactions_app.command("show")
def transactions_show_cmd(ctx: typer.Context, transaction_id: int = typer.Argument(...)) -> None:
    with _cli_errors(), _session(ctx) as session:
        out = transactions.get_transaction(session, transaction_id)
    _emit(out)


# ---- reports -----------------------------------------------------------------


@reports_app.command("people")
def reports_people_cmd(ctx: typer.Context) -> None:
    """Income, expense and balance per person, with grand totals."""

    with _cli_errors(), _session(ctx) as session:
        report = reports.person_totals_report(session)

    table = Table(title="Totals by person", show_footer=True)
    table.add_column("Person", footer="Total")
    table.add_column("Age", justify="right")
    table.add_column("Income", justify="right", footer=_money(report.grand_total_income))
    table.add_column("Expense", justify="right", footer=_money(report.grand_total_expense))
    table.add_column("Balance", justify="right", footer=_money(report.grand_balance))
    for row in report.people:
        table.add_row(
            row.person_name,
            str(row.age),
            _money(row.total_income),
            _money(row.total_expense),
            _money(row.balance),
        )
    console.print(table)


@reports_app.command("categories")
def reports_categories_cmd(ctx: typer.Context) -> None:
    """Income, expense and balance per category, with grand totals."""

    with _cli_errors(), _session(ctx) as session:
        report = reports.category_totals_report(session)

    table = Table(title="Totals by category", show_footer=True)
    table.add_column("Category", footer="Total")
    table.add_column("Purpose")
    table.add_column("Income", justify="right", footer=_money(report.grand_total_income))
    table.add_column("Expense", justify="right", footer=_money(report.grand_total_expense))
    table.add_column("Balance", justify="right", footer=_money(report.grand_balance))
    for row in report.categories:
        table.add_row(
            row.category_name,
            row.purpose,
            _money(row.total_income),
            _money(row.total_expense),
            _money(row.balance),
        )
    console.print(table)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()
    ctx.obj = {"database_url": database_url}

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m home_finance.cli`
    app()
