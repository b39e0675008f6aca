"""
"Doctor" command: configuration and session diagnostics.

Runs a series of checks and prints a concise, friendly report:
 - Config summary and problems
 - Session storage availability
 - Persisted session contents (never the tokens themselves)
"""

from __future__ import annotations

import click

from brewconsole.core.config import get_settings, print_configuration_summary, validate_required_settings
from brewconsole.data.storage import JsonFileStorage
from brewconsole.services.session_store import SessionStore


@click.command()
@click.pass_context
def doctor(ctx):
    """Run BrewConsole diagnostics and print a summary report."""
    click.echo("BrewConsole Doctor")
    click.echo("=" * 40)

    print_configuration_summary()

    cfg = get_settings()
    storage = (ctx.obj or {}).get("storage") or JsonFileStorage(cfg.session.storage_path)

    if storage.is_available():
        click.echo(f"\n✓ Session storage writable: {cfg.session.storage_path}")
    else:
        click.echo(f"\n✗ Session storage unavailable: {cfg.session.storage_path}")

    session = SessionStore(storage).hydrate()
    if session.is_authenticated and session.current_user:
        user = session.current_user
        click.echo(f"✓ Stored session for {user.email} ({user.role.label})")
    elif session.access_token:
        click.echo("- Stored token without a user; it will be validated on next start")
    else:
        click.echo("- No stored session")

    problems = validate_required_settings(cfg)
    click.echo("\nDone.")
    if problems:
        ctx.exit(1)
