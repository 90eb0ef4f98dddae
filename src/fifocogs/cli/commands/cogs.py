"""Cost of sales commands."""

import json

import click

from fifocogs.cli.account_resolution import resolve_account_or_exit
from fifocogs.cli.error_handling import handle_domain_error
from fifocogs.domain.cost_of_sales import CostOfSalesService
from fifocogs.domain.errors import DomainError, RemoteError
from fifocogs.domain.ledger import AccountService
from fifocogs.domain.rebuild import LocalRebuildQueue, RebuildService
from fifocogs.domain.summary import Summary


def _echo_summary(summary: Summary, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(summary.as_dict(), indent=2))
        return
    click.echo(f"{summary.account_name or summary.account_id}: {summary.message}")
    if summary.sales_processed:
        click.echo(
            f"  {summary.sales_processed} sales, {summary.purchases_consumed} purchases consumed, "
            f"{summary.purchases_split} split, total cost {summary.total_cost}"
        )


@click.group()
def cogs_group():
    """Calculate cost of sales."""
    pass


@cogs_group.command("validate")
@click.argument("book_id", type=int)
@click.pass_context
def validate(ctx, book_id: int):
    """Check that a calculation may start for a book."""
    service = CostOfSalesService(ctx.obj["store"])
    try:
        service.validate(book_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Ready")


@cogs_group.command("calculate")
@click.argument("book_id", type=int)
@click.argument("account")
@click.option("--to-date", help="Last sale date included (book date pattern, defaults to today)")
@click.option("--no-rebuild", is_flag=True, help="Leave rebuilds of flagged accounts queued")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def calculate(ctx, book_id: int, account: str, to_date: str | None, no_rebuild: bool, as_json: bool):
    """Calculate cost of sales for a good account.

    ACCOUNT can be an account name or ID. A flagged account is rebuilt from
    scratch right after the run reports it.

    Examples:
        fifocogs cogs calculate 1 Widget
        fifocogs cogs calculate 1 Widget --to-date 2024-03-31 --json
    """
    store = ctx.obj["store"]
    queue = LocalRebuildQueue()
    service = CostOfSalesService(store, rebuild_queue=queue)
    try:
        service.validate(book_id)
        inventory_book = service.get_inventory_book(book_id)
        good_account = resolve_account_or_exit(ctx, AccountService(store), inventory_book.id, account)
        summary = service.calculate_cost_of_sales(inventory_book.id, good_account.id, to_date=to_date)
        _echo_summary(summary, as_json)

        if not no_rebuild and len(queue) > 0:
            for rebuilt in queue.run_pending(RebuildService(store, service)):
                _echo_summary(rebuilt, as_json)
                summary = rebuilt
    except (DomainError, RemoteError) as e:
        handle_domain_error(ctx, e)

    if summary.outcome.is_error:
        ctx.exit(1)


@cogs_group.command("rebuild")
@click.argument("book_id", type=int)
@click.argument("account")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def rebuild(ctx, book_id: int, account: str, as_json: bool):
    """Reset a good account's cost of sales and recalculate it from scratch.

    ACCOUNT can be an account name or ID.
    """
    store = ctx.obj["store"]
    service = CostOfSalesService(store)
    try:
        service.validate(book_id)
        inventory_book = service.get_inventory_book(book_id)
        good_account = resolve_account_or_exit(ctx, AccountService(store), inventory_book.id, account)
        summary = RebuildService(store, service).rebuild_account(inventory_book.id, good_account.id)
    except (DomainError, RemoteError) as e:
        handle_domain_error(ctx, e)

    _echo_summary(summary, as_json)
    if summary.outcome.is_error:
        ctx.exit(1)


def register_commands(cli):
    """Register cost of sales commands with main CLI."""
    cli.add_command(cogs_group, name="cogs")
