"""
Subscriptions Command Module

Inspect the billing rows of a subscriber and how they classify.
"""
import typer
from rich.console import Console
from rich.table import Table

from agapefy_api.services.subscription_classifier import (
    classify_user_type_from_subscriptions,
    normalize_status,
)

app = typer.Typer(help="Subscription lookups")
console = Console()


@app.command("show")
def show_subscriptions(
    email: str = typer.Argument(..., help="Subscriber e-mail"),
    limit: int = typer.Option(None, "--limit", "-l", help="Rows to consider (default: SUBSCRIPTION_LOOKUP_LIMIT)")
):
    """Show recent subscription rows for an e-mail and the resulting user type."""
    from ..config import get_config, get_supabase_client

    try:
        client = get_supabase_client()
        result = client.table('assinaturas').select(
            'subscription_id, status, trial_days, trial_started_at, trial_finished_at, '
            'cancel_at_cycle_end, product_name, created_at'
        ).eq('subscriber_email', email).order(
            'created_at', desc=True
        ).limit(limit or get_config().subscription_lookup_limit).execute()
    except Exception as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    rows = result.data or []

    if rows:
        table = Table(title=f"Subscriptions for {email} ({len(rows)} shown)")
        table.add_column("Subscription", style="dim", max_width=14)
        table.add_column("Status", style="bold cyan")
        table.add_column("Product", max_width=30)
        table.add_column("Trial days", justify="right")
        table.add_column("Trial ends", style="green")
        table.add_column("Cancels", justify="center")
        table.add_column("Created", style="green")

        for row in rows:
            table.add_row(
                str(row.get('subscription_id') or '')[:14],
                normalize_status(row.get('status')) or '-',
                row.get('product_name') or '',
                str(row.get('trial_days') or 0),
                (row.get('trial_finished_at') or '')[:10],
                "✅" if row.get('cancel_at_cycle_end') else "",
                (row.get('created_at') or '')[:10],
            )
        console.print(table)
    else:
        console.print(f"[yellow]No subscriptions found for {email}.[/yellow]")

    classification = classify_user_type_from_subscriptions(rows)
    console.print(f"\n[bold]User type:[/bold] {classification.user_type.value}")
    console.print(f"   Active subscription: {'✅' if classification.has_active_subscription else '❌'}")
    console.print(f"   Active trial: {'✅' if classification.has_active_trial else '❌'}")
