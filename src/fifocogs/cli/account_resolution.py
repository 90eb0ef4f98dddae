"""CLI helpers for account resolution and error handling."""

from __future__ import annotations

import click

from fifocogs.domain.entities import Account
from fifocogs.domain.ledger import AccountService
from fifocogs.utils.account_resolver import parse_account_reference


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, book_id: int, account: str | int
) -> Account:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return account_service.get_account(book_id, parse_account_reference(account))
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
