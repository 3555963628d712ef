"""
Paywall Command Module

View and edit the paywall permissions stored in app_settings.
"""
import json

import typer
from rich.console import Console
from rich.table import Table

from agapefy_api.core.paywall import (
    PaywallPermissions,
    UserType,
    parse_paywall_permissions,
)

app = typer.Typer(help="Paywall permissions")
console = Console()

SETTINGS_TABLE = "app_settings"
PERMISSIONS_KEY = "paywall_permissions"

LIMITED_TYPES = (UserType.ANONYMOUS, UserType.NO_SUBSCRIPTION)
FULL_ACCESS_TYPES = (UserType.TRIAL, UserType.ACTIVE_SUBSCRIPTION)


def load_permissions(client) -> PaywallPermissions:
    result = client.table(SETTINGS_TABLE).select('value').eq('key', PERMISSIONS_KEY).limit(1).execute()
    raw = result.data[0].get('value') if result.data else None
    return parse_paywall_permissions(raw)


def save_permissions(client, permissions: PaywallPermissions) -> None:
    client.table(SETTINGS_TABLE).upsert({
        'key': PERMISSIONS_KEY,
        'value': json.dumps(permissions.model_dump()),
        'type': 'text',
    }, on_conflict='key').execute()


def render_permissions(permissions: PaywallPermissions) -> Table:
    table = Table(title="Paywall permissions")
    table.add_column("User type", style="bold cyan")
    table.add_column("Access")
    table.add_column("Free plays / day", justify="right")

    for user_type in LIMITED_TYPES:
        config = getattr(permissions, user_type.value)
        access = "limited" if config.limit_enabled else "unlimited"
        table.add_row(user_type.value, access, str(config.max_free_audios_per_day))

    for user_type in FULL_ACCESS_TYPES:
        config = getattr(permissions, user_type.value)
        access = "full" if config.full_access_enabled else "no_subscription quota"
        table.add_row(user_type.value, access, "-")

    return table


@app.command("show")
def show_permissions():
    """Show the effective paywall permissions."""
    from ..config import get_supabase_client

    try:
        permissions = load_permissions(get_supabase_client())
    except Exception as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    console.print(render_permissions(permissions))


@app.command("set-limit")
def set_limit(
    user_type: UserType = typer.Argument(..., help="anonymous or no_subscription"),
    max_per_day: int = typer.Argument(..., min=0, help="Free plays per day"),
    disable: bool = typer.Option(False, "--disable", help="Turn the limit off (unlimited plays)")
):
    """Set the daily free-play quota of a limited user type."""
    from ..config import get_supabase_client

    if user_type not in LIMITED_TYPES:
        console.print(f"[bold red]❌ {user_type.value} has full access settings; use set-full-access[/bold red]")
        raise typer.Exit(1)

    try:
        client = get_supabase_client()
        permissions = load_permissions(client)
        config = getattr(permissions, user_type.value).model_copy(
            update={"limit_enabled": not disable, "max_free_audios_per_day": max_per_day}
        )
        permissions = permissions.model_copy(update={user_type.value: config})
        save_permissions(client, permissions)
    except Exception as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    console.print(f"[bold green]✅ Updated {user_type.value}[/bold green]")
    console.print(render_permissions(permissions))


@app.command("set-full-access")
def set_full_access(
    user_type: UserType = typer.Argument(..., help="trial or active_subscription"),
    revoke: bool = typer.Option(False, "--revoke", help="Fall back to the no_subscription quota")
):
    """Grant or revoke full access for a subscriber user type."""
    from ..config import get_supabase_client

    if user_type not in FULL_ACCESS_TYPES:
        console.print(f"[bold red]❌ {user_type.value} has quota settings; use set-limit[/bold red]")
        raise typer.Exit(1)

    try:
        client = get_supabase_client()
        permissions = load_permissions(client)
        config = getattr(permissions, user_type.value).model_copy(
            update={"full_access_enabled": not revoke}
        )
        permissions = permissions.model_copy(update={user_type.value: config})
        save_permissions(client, permissions)
    except Exception as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    console.print(f"[bold green]✅ Updated {user_type.value}[/bold green]")
    console.print(render_permissions(permissions))
