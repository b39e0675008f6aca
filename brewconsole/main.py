"""
Main application entry point for BrewConsole.

Provides an operator CLI over the console data layer: sign in and out,
inspect the current identity and list the resources the role may see.
"""

import asyncio
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from brewconsole.cli_commands.doctor import doctor
from brewconsole.context import ConsoleContext
from brewconsole.core.config import get_settings
from brewconsole.core.exceptions import AccessDeniedError, ApiError, BrewConsoleError, FormValidationError
from brewconsole.core.logging import set_correlation_id, setup_logging
from brewconsole.forms.validation import SignInForm
from brewconsole.services.access import navigation_for
from brewconsole.services.auth_lifecycle import AuthPhase

console = Console()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--correlation-id", help="Set correlation ID for request tracing")
@click.pass_context
def main(ctx, debug: bool, correlation_id: Optional[str]):
    """Coffee-chain admin console.

    Signs in against the management API and lists brands, locations, menus,
    templates and users for the signed-in role.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    settings = get_settings()
    setup_logging(debug=debug or settings.debug, rich_output=not settings.log_json)

    if correlation_id:
        set_correlation_id(correlation_id)

    ctx.obj["debug"] = debug
    ctx.obj["correlation_id"] = correlation_id


main.add_command(doctor)


def _open_context(ctx) -> ConsoleContext:
    return ConsoleContext(
        settings=get_settings(),
        storage=ctx.obj.get("storage"),
        transport=ctx.obj.get("transport"),
    )


def _run(ctx, action: Callable[[ConsoleContext], Any]) -> Any:
    """Run ``action`` inside a started console context, reporting failures."""

    async def runner():
        async with _open_context(ctx) as console_ctx:
            await console_ctx.start()
            return await action(console_ctx)

    try:
        return asyncio.run(runner())
    except FormValidationError as e:
        for field, message in e.errors.items():
            console.print(f"[red]{field}:[/red] {message}")
        sys.exit(1)
    except AccessDeniedError as e:
        console.print(f"[red]Access Denied:[/red] {e.message}")
        sys.exit(1)
    except ApiError as e:
        console.print(f"[red]API Error:[/red] {e.message}")
        sys.exit(1)
    except BrewConsoleError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected Error:[/red] {e}")
        if ctx.obj.get("debug"):
            import traceback

            console.print(traceback.format_exc())
        sys.exit(1)


@main.command()
@click.option("--email", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
def login(ctx, email: str, password: str):
    """Sign in and remember the session."""

    async def action(console_ctx: ConsoleContext):
        form = SignInForm.check(email=email, password=password)
        return await console_ctx.lifecycle.sign_in(form.to_credentials())

    user = _run(ctx, action)
    console.print(f"[green]✅ Signed in as {user.display_name}[/green] ({user.role.label})")


@main.command()
@click.pass_context
def logout(ctx):
    """Sign out and forget the stored session."""

    async def action(console_ctx: ConsoleContext):
        await console_ctx.sign_out()

    _run(ctx, action)
    console.print("[green]Signed out[/green]")


@main.command()
@click.pass_context
def whoami(ctx):
    """Show the signed-in user and the views available to their role."""

    async def action(console_ctx: ConsoleContext):
        if console_ctx.lifecycle.phase != AuthPhase.AUTHENTICATED:
            return None
        return console_ctx.session.current_user

    user = _run(ctx, action)
    if user is None:
        console.print("[yellow]Not signed in[/yellow]")
        sys.exit(1)

    table = Table(title="Current User")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("ID", str(user.id))
    table.add_row("Name", user.display_name)
    table.add_row("Email", user.email)
    table.add_row("Role", user.role.label)
    table.add_row("Views", ", ".join(item.url for item in navigation_for(user.role)) or "-")
    console.print(table)


def _text(value: Any) -> str:
    return "-" if value is None or value == "" else str(value)


# resource -> (view path, columns, fetch, row)
RESOURCES: Dict[str, Tuple[str, List[str], Callable, Callable]] = {
    "brands": (
        "/brand",
        ["ID", "Name", "Owner"],
        lambda c: c.brands.get_brands(),
        lambda b: [str(b.id), b.name, _text(b.owner.display_name if b.owner else b.owner_id)],
    ),
    "locations": (
        "/locations",
        ["ID", "Name", "City", "Brand"],
        lambda c: c.locations.get_locations(),
        lambda loc: [str(loc.id), _text(loc.name), _text(loc.city), _text(loc.brand_id)],
    ),
    "menus": (
        "/menu",
        ["ID", "Location", "Template"],
        lambda c: c.menus.get_menus(),
        lambda m: [str(m.id), str(m.location_id), m.template.name if m.template else str(m.template_id)],
    ),
    "templates": (
        "/menu/templates",
        ["ID", "Name", "Brand"],
        lambda c: c.menus.get_menu_templates(),
        lambda t: [str(t.id), t.name, str(t.brand_id)],
    ),
    "users": (
        "/users",
        ["ID", "Name", "Email", "Role"],
        lambda c: c.users.get_users(),
        lambda u: [str(u.id), u.display_name, u.email, u.role.label],
    ),
}


@main.command(name="list")
@click.argument("resource", type=click.Choice(sorted(RESOURCES)))
@click.pass_context
def list_resources(ctx, resource: str):
    """List a resource the signed-in role may view."""
    path, columns, fetch, row = RESOURCES[resource]

    async def action(console_ctx: ConsoleContext):
        console_ctx.guard.require(path)
        return await fetch(console_ctx)

    records = _run(ctx, action)

    table = Table(title=resource.title())
    for column in columns:
        table.add_column(column, style="cyan" if column == "ID" else "white")
    for record in records:
        table.add_row(*row(record))
    console.print(table)
    console.print(f"[dim]{len(records)} {resource}[/dim]")


if __name__ == "__main__":
    main()
