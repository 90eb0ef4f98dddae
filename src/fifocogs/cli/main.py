"""Main CLI entry point."""

import logging

import click

from fifocogs.config import API_KEY_ENV, DB_PATH_ENV
from fifocogs.database.factories import create_sqlite_store

# Import and register all commands at module level
from fifocogs.cli.commands import (
    account,
    book,
    cogs,
    record,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--api-key",
    help=f"Ledger store credential (overrides {API_KEY_ENV} environment variable)",
    envvar=API_KEY_ENV,
)
@click.option("-v", "--verbose", is_flag=True, help="Log engine progress to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, api_key: str | None, verbose: bool):
    """fifocogs - FIFO cost of goods sold.

    Record purchases and sales of goods in an inventory book and post their
    cost of sales to the financial book of the same collection.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize store connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        store = create_sqlite_store(database_path=db_path, api_key=api_key)
        store.connect()
        store.initialize_schema()
        ctx.obj["store"] = store
        ctx.call_on_close(store.disconnect)


# Register all commands
book.register_commands(cli)
account.register_commands(cli)
record.register_commands(cli)
cogs.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
