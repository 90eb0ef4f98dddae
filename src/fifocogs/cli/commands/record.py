"""Record commands: purchases, sales, costs and credit notes."""

from datetime import date
from decimal import Decimal

import click

from fifocogs.cli.account_resolution import resolve_account_or_exit
from fifocogs.cli.error_handling import handle_domain_error
from fifocogs.domain.entities import Record
from fifocogs.domain.errors import DomainError
from fifocogs.domain.ledger import AccountService, BookService
from fifocogs.domain.records import RecordService
from fifocogs.utils.amount_parser import parse_amount
from fifocogs.utils.date_parser import format_book_date, parse_book_date


def _parse_date_or_exit(ctx: click.Context, book_id: int, value: str | None) -> date:
    """Read a date with the book's date pattern, defaulting to today."""
    if value is None:
        return date.today()
    try:
        book = BookService(ctx.obj["store"]).get_book(book_id)
        return parse_book_date(value, book.date_pattern)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def _parse_amount_or_exit(ctx: click.Context, value: str, label: str) -> Decimal:
    try:
        return parse_amount(value, allow_negative=False)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _format_record(record: Record, date_pattern: str) -> str:
    line = (
        f"ID: {record.id:4d} | {format_book_date(record.date, date_pattern)} | "
        f"{record.credit_account.name} >> {record.debit_account.name} | {record.amount}"
    )
    if record.purchase is not None:
        line += f" | cost {record.purchase.total_cost}"
        if record.purchase.parent_id is not None:
            line += f" | split from {record.purchase.parent_id}"
    elif record.sale is not None and record.sale.total_cost is not None:
        line += f" | cost {record.sale.total_cost}"
    elif record.cost_of_sale is not None:
        line += f" | sold {record.cost_of_sale.quantity_sold}"
    if record.checked:
        line += " | checked"
    if record.description:
        line += f" | {record.description}"
    return line


@click.group()
def record_group():
    """Record goods movements and their costs."""
    pass


@record_group.command("purchase")
@click.argument("book_id", type=int)
@click.argument("good")
@click.option("--quantity", required=True, help="Purchased quantity")
@click.option("--cost", required=True, help="Purchase cost")
@click.option("--date", "record_date", help="Purchase date (book date pattern, defaults to today)")
@click.option("--code", "purchase_code", help="Purchase code linking additional costs and credit notes")
@click.option("--invoice", "purchase_invoice", help="Purchase invoice")
@click.option("--order", type=int, help="Ordering hint among records of the same day")
@click.option("--description", default="", help="Description")
@click.pass_context
def record_purchase(
    ctx,
    book_id: int,
    good: str,
    quantity: str,
    cost: str,
    record_date: str | None,
    purchase_code: str | None,
    purchase_invoice: str | None,
    order: int | None,
    description: str,
):
    """Record a purchase in the inventory book.

    Examples:
        fifocogs record purchase 1 Widget --quantity 10 --cost 20.00 --code PO-1
    """
    service = RecordService(ctx.obj["store"])
    purchase_date = _parse_date_or_exit(ctx, book_id, record_date)
    try:
        record = service.record_purchase(
            book_id,
            good,
            quantity=_parse_amount_or_exit(ctx, quantity, "quantity"),
            cost=_parse_amount_or_exit(ctx, cost, "cost"),
            record_date=purchase_date,
            purchase_code=purchase_code,
            purchase_invoice=purchase_invoice,
            description=description,
            order=order,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded purchase {record.id}: {record.amount} {good}")


@record_group.command("sale")
@click.argument("book_id", type=int)
@click.argument("good")
@click.option("--quantity", required=True, help="Sold quantity")
@click.option("--date", "record_date", help="Sale date (book date pattern, defaults to today)")
@click.option("--invoice", "sale_invoice", help="Sale invoice")
@click.option("--amount", "sale_amount", help="Sale price")
@click.option("--order", type=int, help="Ordering hint among records of the same day")
@click.option("--description", default="", help="Description")
@click.pass_context
def record_sale(
    ctx,
    book_id: int,
    good: str,
    quantity: str,
    record_date: str | None,
    sale_invoice: str | None,
    sale_amount: str | None,
    order: int | None,
    description: str,
):
    """Record a sale in the inventory book.

    Examples:
        fifocogs record sale 1 Widget --quantity 4 --invoice INV-7
    """
    service = RecordService(ctx.obj["store"])
    sale_date = _parse_date_or_exit(ctx, book_id, record_date)
    try:
        record = service.record_sale(
            book_id,
            good,
            quantity=_parse_amount_or_exit(ctx, quantity, "quantity"),
            record_date=sale_date,
            sale_invoice=sale_invoice,
            sale_amount=_parse_amount_or_exit(ctx, sale_amount, "amount") if sale_amount else None,
            description=description,
            order=order,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded sale {record.id}: {record.amount} {good}")


@record_group.command("additional-cost")
@click.argument("book_id", type=int)
@click.argument("good")
@click.option("--supplier", required=True, help="Supplier account")
@click.option("--amount", required=True, help="Cost amount")
@click.option("--code", "purchase_code", required=True, help="Purchase code of the costed purchase")
@click.option("--invoice", "purchase_invoice", help="Invoice of the cost")
@click.option("--date", "record_date", help="Cost date (book date pattern, defaults to today)")
@click.option("--description", default="", help="Description")
@click.pass_context
def record_additional_cost(
    ctx,
    book_id: int,
    good: str,
    supplier: str,
    amount: str,
    purchase_code: str,
    purchase_invoice: str | None,
    record_date: str | None,
    description: str,
):
    """Record an additional cost of a purchase in a financial book.

    Examples:
        fifocogs record additional-cost 2 Widget --supplier Freight --amount 5 --code PO-1
    """
    service = RecordService(ctx.obj["store"])
    cost_date = _parse_date_or_exit(ctx, book_id, record_date)
    try:
        record = service.record_additional_cost(
            book_id,
            good,
            supplier,
            amount=_parse_amount_or_exit(ctx, amount, "amount"),
            record_date=cost_date,
            purchase_code=purchase_code,
            purchase_invoice=purchase_invoice,
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded additional cost {record.id}: {record.amount} on {purchase_code}")


@record_group.command("credit-note")
@click.argument("book_id", type=int)
@click.argument("good")
@click.option("--supplier", required=True, help="Supplier account")
@click.option("--amount", required=True, help="Credited amount")
@click.option("--code", "purchase_code", required=True, help="Purchase code of the credited purchase")
@click.option("--quantity", help="Returned quantity")
@click.option("--date", "record_date", help="Credit note date (book date pattern, defaults to today)")
@click.option("--description", default="", help="Description")
@click.pass_context
def record_credit_note(
    ctx,
    book_id: int,
    good: str,
    supplier: str,
    amount: str,
    purchase_code: str,
    quantity: str | None,
    record_date: str | None,
    description: str,
):
    """Record a credit note on a purchase in a financial book.

    Examples:
        fifocogs record credit-note 2 Widget --supplier Acme --amount 4 --quantity 2 --code PO-1
    """
    service = RecordService(ctx.obj["store"])
    credit_date = _parse_date_or_exit(ctx, book_id, record_date)
    try:
        record = service.record_credit_note(
            book_id,
            good,
            supplier,
            amount=_parse_amount_or_exit(ctx, amount, "amount"),
            record_date=credit_date,
            purchase_code=purchase_code,
            quantity=_parse_amount_or_exit(ctx, quantity, "quantity") if quantity else None,
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded credit note {record.id}: {record.amount} on {purchase_code}")


@record_group.command("list")
@click.argument("book_id", type=int)
@click.argument("account")
@click.option("--after", help="First date (inclusive)")
@click.option("--before", help="Last date (exclusive)")
@click.pass_context
def list_records(ctx, book_id: int, account: str, after: str | None, before: str | None):
    """List the records of an account, oldest first.

    ACCOUNT can be an account name or ID.
    """
    store = ctx.obj["store"]
    account_obj = resolve_account_or_exit(ctx, AccountService(store), book_id, account)
    start = _parse_date_or_exit(ctx, book_id, after) if after else None
    end = _parse_date_or_exit(ctx, book_id, before) if before else None
    try:
        book = BookService(store).get_book(book_id)
        records = RecordService(store).list_records(book_id, account_obj.name, after=start, before=end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not records:
        click.echo("No records found.")
        return

    click.echo(f"\nRecords of {account_obj.name}:")
    click.echo("-" * 80)
    for rec in records:
        click.echo(_format_record(rec, book.date_pattern))


@record_group.command("delete")
@click.argument("book_id", type=int)
@click.argument("record_id", type=int)
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_record(ctx, book_id: int, record_id: int, force: bool):
    """Delete a record and the records derived from it.

    Deleting a purchase deletes its split records and flags the good for
    rebuild; deleting a sale deletes its cost of sale.
    """
    if not force:
        click.confirm(f"Delete record {record_id}?", abort=True)

    service = RecordService(ctx.obj["store"])
    try:
        trashed = service.delete_record(book_id, record_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted {len(trashed)} record{'s' if len(trashed) != 1 else ''}")


def register_commands(cli):
    """Register record commands with main CLI."""
    cli.add_command(record_group, name="record")
