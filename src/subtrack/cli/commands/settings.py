"""Settings commands."""

import click

from subtrack.cli.error_handling import handle_domain_error
from subtrack.domain.errors import DomainError, ValidationError
from subtrack.utils.formatters import format_timestamp_or_never

BOOLEAN_VALUES = {"true": True, "yes": True, "on": True, "1": True,
                  "false": False, "no": False, "off": False, "0": False}


def _parse_bool(value: str) -> bool:
    try:
        return BOOLEAN_VALUES[value.strip().lower()]
    except KeyError:
        raise ValidationError([f"Expected true or false, got '{value}'"])


def _parse_days(value: str) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        raise ValidationError([f"Expected comma-separated days, got '{value}'"])


# setting name -> (field, parser); notification fields are nested
SETTINGS_KEYS = {
    "default-currency": ("default_currency", str),
    "theme": ("theme", str),
    "start-on-login": ("start_on_login", _parse_bool),
    "minimize-to-tray": ("minimize_to_tray", _parse_bool),
    "notifications": ("notifications.enabled", _parse_bool),
    "sound": ("notifications.sound", _parse_bool),
    "show-in-tray": ("notifications.show_in_tray", _parse_bool),
    "reminder-days": ("notifications.default_reminder_days", _parse_days),
}


@click.group()
def settings_group():
    """View and change settings."""
    pass


@settings_group.command("show")
@click.pass_context
def show_settings(ctx):
    """Show current settings."""
    settings = ctx.obj["services"].settings.get()
    notifications = settings.notifications

    click.echo(f"Default currency:  {settings.default_currency}")
    click.echo(f"Currencies:        {', '.join(settings.currencies)}")
    click.echo(f"Theme:             {settings.theme.value if hasattr(settings.theme, 'value') else settings.theme}")
    click.echo(f"Start on login:    {settings.start_on_login}")
    click.echo(f"Minimize to tray:  {settings.minimize_to_tray}")
    click.echo(f"Notifications:     {notifications.enabled}")
    click.echo(f"Reminder days:     {', '.join(str(d) for d in notifications.default_reminder_days)}")
    click.echo(f"Sound:             {notifications.sound}")
    click.echo(f"Show in tray:      {notifications.show_in_tray}")
    click.echo(f"Rates updated:     {format_timestamp_or_never(settings.last_rates_update)}")
    for base, targets in sorted(settings.exchange_rates.items()):
        shown = ", ".join(f"{code}={rate}" for code, rate in sorted(targets.items())[:8])
        more = f" (+{len(targets) - 8} more)" if len(targets) > 8 else ""
        click.echo(f"  1 {base}: {shown}{more}")


@settings_group.command("set")
@click.argument("key", type=click.Choice(sorted(SETTINGS_KEYS)))
@click.argument("value")
@click.pass_context
def set_setting(ctx, key: str, value: str):
    """Change one setting.

    Examples:
        subtrack settings set default-currency EUR
        subtrack settings set theme dark
        subtrack settings set reminder-days 7,3,1
    """
    service = ctx.obj["services"].settings
    field, parse = SETTINGS_KEYS[key]
    try:
        parsed = parse(value)
        if field.startswith("notifications."):
            service.set_notifications(**{field.split(".", 1)[1]: parsed})
        else:
            service.update(**{field: parsed})
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Set {key} to {value}")


@settings_group.command("add-currency")
@click.argument("currency")
@click.pass_context
def add_currency(ctx, currency: str):
    """Enable a currency."""
    try:
        added = ctx.obj["services"].settings.add_currency(currency)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Enabled {currency.upper()}" if added else f"{currency.upper()} is already enabled")


@settings_group.command("remove-currency")
@click.argument("currency")
@click.pass_context
def remove_currency(ctx, currency: str):
    """Disable a currency. The default currency cannot be removed."""
    try:
        removed = ctx.obj["services"].settings.remove_currency(currency)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Disabled {currency.upper()}" if removed else f"{currency.upper()} is not enabled")


@settings_group.command("set-rate")
@click.argument("from_currency", metavar="FROM")
@click.argument("to_currency", metavar="TO")
@click.argument("rate")
@click.pass_context
def set_rate(ctx, from_currency: str, to_currency: str, rate: str):
    """Set a manual exchange rate: 1 FROM = RATE TO."""
    services = ctx.obj["services"]
    try:
        services.settings.set_exchange_rate(from_currency, to_currency, rate)
    except DomainError as e:
        handle_domain_error(ctx, e)

    services.currency.load_from_settings(services.settings.get())
    click.echo(f"Set 1 {from_currency.upper()} = {rate} {to_currency.upper()}")


def register_commands(cli):
    """Register settings commands with main CLI."""
    cli.add_command(settings_group, name="settings")
