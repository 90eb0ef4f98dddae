"""CLI error handling helpers."""

import click

from fifocogs.domain.errors import DomainError, RemoteError


def handle_domain_error(ctx: click.Context, error: DomainError | RemoteError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
