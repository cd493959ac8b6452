"""Category commands."""

import click

from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain.errors import DomainError


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List categories with their monthly spend."""
    services = ctx.obj["services"]
    categories = services.categories.list_categories()
    if not categories:
        click.echo("No categories found. Run 'subtrack category init' to create the defaults.")
        return

    spending = services.subscriptions.get_spending_by_category()
    click.echo("\nCategories:")
    click.echo("-" * 60)
    for cat in categories:
        monthly = spending.get(cat.name)
        suffix = f" | {monthly:.2f}/month" if monthly else ""
        click.echo(f"{cat.icon} {cat.name:20s} | {cat.color}{suffix}")


@category_group.command("create")
@click.argument("name")
@click.option("--color", help="Hex colour, e.g. '#EF4444' (a palette colour is used if omitted)")
@click.option("--icon", help="Icon shown next to the name")
@click.pass_context
def create_category(ctx, name: str, color: str | None, icon: str | None):
    """Create a new category.

    Examples:
        subtrack category create "Gaming"
        subtrack category create "Podcasts" --color "#22C55E" --icon "🎙️"
    """
    service = ctx.obj["services"].categories
    try:
        category = service.create_category(name=name, color=color, icon=icon)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created category '{category.name}' ({category.color})")


@category_group.command("init")
@click.pass_context
def init_categories(ctx):
    """Create the default categories if none exist yet."""
    created = ctx.obj["services"].categories.initialize_defaults()
    if created == 0:
        click.echo("Categories already exist.")
    else:
        click.echo(f"Successfully created {created} categories.")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
