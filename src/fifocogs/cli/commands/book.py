"""Book management commands."""

import click

from fifocogs.cli.error_handling import handle_domain_error
from fifocogs.domain.errors import DomainError
from fifocogs.domain.ledger import BookService
from fifocogs.utils.date_parser import DATE_PATTERNS


@click.group()
def book_group():
    """Manage books."""
    pass


@book_group.command("create")
@click.argument("name", metavar="BOOK_NAME")
@click.option("--collection", help="Collection connecting inventory and financial books")
@click.option("--inventory", is_flag=True, help="Create the inventory book of the collection")
@click.option("--exc-code", help="Exchange code of a financial book (e.g. USD)")
@click.option("--fraction-digits", type=int, default=2, show_default=True, help="Decimal precision")
@click.option(
    "--date-pattern",
    type=click.Choice(list(DATE_PATTERNS)),
    default="yyyy-MM-dd",
    show_default=True,
    help="Date pattern of the book",
)
@click.pass_context
def create_book(
    ctx,
    name: str,
    collection: str | None,
    inventory: bool,
    exc_code: str | None,
    fraction_digits: int,
    date_pattern: str,
):
    """Create a new book.

    Examples:
        fifocogs book create "Inventory" --collection shop --inventory
        fifocogs book create "Shop USD" --collection shop --exc-code USD
    """
    service = BookService(ctx.obj["store"])
    try:
        book_id = service.create_book(
            name=name,
            collection=collection,
            inventory=inventory,
            exc_code=exc_code,
            fraction_digits=fraction_digits,
            date_pattern=date_pattern,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created book '{name}' (ID: {book_id})")


@book_group.command("list")
@click.option("--collection", help="Only list books of this collection")
@click.pass_context
def list_books(ctx, collection: str | None):
    """List books."""
    service = BookService(ctx.obj["store"])

    books = service.list_books(collection)
    if not books:
        click.echo("No books found.")
        return

    click.echo("\nBooks:")
    click.echo("-" * 70)
    for book in books:
        kind = "inventory" if book.is_inventory else (book.exc_code or "-")
        click.echo(
            f"ID: {book.id:3d} | {book.name:20s} | Collection: {book.collection or '-':12s} | {kind}"
        )


def register_commands(cli):
    """Register book commands with main CLI."""
    cli.add_command(book_group, name="book")
