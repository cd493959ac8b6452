"""CLI error handling helpers."""

import click

from subtrack.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if hasattr(error, "messages") and len(error.messages) > 1:
        click.echo("Error:", err=True)
        for message in error.messages:
            click.echo(f"  - {message}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
