"""Account and group management commands."""

import click

from fifocogs.cli.error_handling import handle_domain_error
from fifocogs.domain.entities import AccountType
from fifocogs.domain.errors import DomainError
from fifocogs.domain.ledger import AccountService
from fifocogs.domain.rebuild import RebuildState, calculation_date, rebuild_state


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("book_id", type=int)
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    default=AccountType.ASSET.value,
    show_default=True,
    help="Account type",
)
@click.option("--group", "groups", multiple=True, help="Group name (repeatable)")
@click.pass_context
def create_account(ctx, book_id: int, name: str, account_type: str, groups: tuple[str, ...]):
    """Create a new account.

    Goods are ASSET accounts; the exchange code of their group selects the
    financial book receiving their cost of sales.

    Examples:
        fifocogs account create 1 "Widget" --group "Goods USD"
        fifocogs account create 2 "Supplier" --type LIABILITY
    """
    service = AccountService(ctx.obj["store"])
    try:
        account_id = service.create_account(
            book_id, name, AccountType(account_type.upper()), groups=groups
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{name}' (ID: {account_id})")


@account_group.command("list")
@click.argument("book_id", type=int)
@click.pass_context
def list_accounts(ctx, book_id: int):
    """List all accounts of a book."""
    service = AccountService(ctx.obj["store"])
    try:
        accounts = service.list_accounts(book_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        line = f"ID: {acc.id:3d} | {acc.name:20s} | {acc.type.value:9s}"
        if acc.groups:
            line += f" | Groups: {', '.join(group.name for group in acc.groups)}"
        last_date = calculation_date(acc)
        if last_date is not None:
            line += f" | Calculated to {last_date.isoformat()}"
        if rebuild_state(acc) is RebuildState.FLAGGED:
            line += " | needs rebuild"
        click.echo(line)


@click.group()
def group_group():
    """Manage account groups."""
    pass


@group_group.command("create")
@click.argument("book_id", type=int)
@click.argument("name", metavar="GROUP_NAME")
@click.option("--exc-code", help="Exchange code of the goods in this group")
@click.option("--parent", help="Parent group name")
@click.pass_context
def create_group(ctx, book_id: int, name: str, exc_code: str | None, parent: str | None):
    """Create a new account group.

    Examples:
        fifocogs group create 1 "Goods USD" --exc-code USD
    """
    service = AccountService(ctx.obj["store"])
    try:
        group_id = service.create_group(book_id, name, exc_code=exc_code, parent=parent)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created group '{name}' (ID: {group_id})")


def register_commands(cli):
    """Register account and group commands with main CLI."""
    cli.add_command(account_group, name="account")
    cli.add_command(group_group, name="group")
