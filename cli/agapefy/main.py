#!/usr/bin/env python3
"""
Agapefy CLI - Main Entry Point

Usage:
    agapefy subscriptions show <email>
    agapefy paywall show
    agapefy paywall set-limit <user_type> <max> [--disable]
    agapefy paywall set-full-access <user_type> [--revoke]
    agapefy config
"""
import typer
from rich.console import Console

from . import __version__
from .commands import paywall, subscriptions

# Create main Typer app
app = typer.Typer(
    name="agapefy",
    help="Agapefy CLI - paywall and subscription back-office",
    add_completion=False
)

app.add_typer(subscriptions.app, name="subscriptions", help="Subscription lookups")
app.add_typer(paywall.app, name="paywall", help="Paywall permissions")

console = Console()


@app.command()
def version():
    """Show CLI version."""
    console.print(f"[bold blue]Agapefy CLI[/bold blue] v{__version__}")


@app.command("config")
def check_config():
    """Check CLI configuration."""
    from .config import get_config

    config = get_config()
    missing = config.validate()

    if missing:
        console.print("[bold red]❌ Missing Configuration:[/bold red]")
        for item in missing:
            console.print(f"   • {item}")
        console.print("\n[dim]Set these as environment variables or in ~/.agapefy/.env[/dim]")
        raise typer.Exit(1)

    console.print("[bold green]✅ Configuration Valid[/bold green]")
    console.print(f"   Supabase: {config.supabase.url[:40]}...")
    console.print(f"   Subscription rows per lookup: {config.subscription_lookup_limit}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
