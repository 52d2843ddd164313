import json
from functools import partial
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.theme import Theme

from .api import MastodonAPI
from .auth import AuthorizationFlow
from .credentials import CredentialStore
from .errors import (
    CredentialsCorruptError,
    CredentialsNotFoundError,
    MastodonTimelineError,
)
from .logging_setup import configure_logging
from .models.status import Status
from .session import Session, bootstrap, verify
from .timeline import Direction, TimelineCursor

# Custom Rich Theme
timeline_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "toot": "bold magenta",
    }
)

console = Console(theme=timeline_theme)
app = typer.Typer(
    help="Mastodon timeline CLI - log in once, then page through your home timeline",
    rich_markup_mode="rich",
    no_args_is_help=True,
)
store = CredentialStore()


def version_callback(value: bool):
    if value:
        try:
            pkg_version = version("mastodon-timeline-cli")
            console.print(f"mastodon-timeline-cli: [toot]{pkg_version}[/toot]")
        except PackageNotFoundError:
            console.print("mastodon-timeline-cli: [warning]unknown[/warning]")
        raise typer.Exit()


def print_json(data: Any):
    """Print JSON with syntax highlighting."""
    json_str = json.dumps(data, indent=2, ensure_ascii=False)
    syntax = Syntax(json_str, "json", theme="monokai", background_color="default")
    console.print(syntax)


def fail(e: Exception):
    console.print(f"[error]Error:[/error] {escape(str(e))}")
    if isinstance(e, CredentialsCorruptError):
        console.print("[info]Hint:[/info] run `mastodon-timeline login --force` to replace the stored credentials")
    elif isinstance(e, CredentialsNotFoundError):
        console.print("[info]Hint:[/info] run `mastodon-timeline login` first")
    raise typer.Exit(1)


def server_name_provider(server: str | None):
    def provide() -> str:
        if server:
            return server
        return Prompt.ask("Enter server name", console=console)

    return provide


def start_session(server: str | None, force: bool = False) -> Session:
    flow = AuthorizationFlow(console)
    session = bootstrap(store, flow, server_name_provider(server), force=force)
    if session.registered:
        console.print(f"[success]✓ Credentials saved to {store.path}[/success]")
    return session


def show_items(label: str, items: list[Status], cursor: TimelineCursor[Status], as_json: bool):
    if as_json:
        print_json([status.model_dump(mode="json") for status in items])
        return
    console.print(f"[toot]{label}[/toot] ({len(items)} items, {cursor.position} of timeline)")
    for status in items:
        author = f"@{status.account.acct} " if status.account else ""
        console.print(f"  {author}{status.uri}", markup=False, highlight=False)


def step(cursor: TimelineCursor[Status], direction: Direction, as_json: bool):
    items = cursor.advance(direction)
    if items is None:
        console.print(f"[warning]No {direction} page, staying on the current page[/warning]")
        return
    show_items(f"{direction} items", items, cursor, as_json)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    log_file: Path | None = typer.Option(None, help="Also write a plain-text log to this file"),
    json_log_file: Path | None = typer.Option(None, help="Also write a JSON-lines log to this file"),
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    Mastodon timeline CLI - log in once, then page through your home timeline
    """
    configure_logging(console, verbose, log_file, json_log_file)


# --- CLI Commands ---


@app.command()
def login(
    server: str | None = typer.Option(None, envvar="MASTODON_SERVER", help="Server name, e.g. mastodon.social"),
    force: bool = typer.Option(False, "--force", help="Register again even if credentials are stored"),
):
    """Register this app with a server and store the access token."""
    try:
        session = start_session(server, force=force)
        account = verify(session)
    except MastodonTimelineError as e:
        fail(e)
    console.print(f"[success]✓ Logged in to {session.credential.server_base_url} as @{account.acct}[/success]")


@app.command()
def whoami():
    """Verify the stored credentials and show the account."""
    try:
        credential = store.load()
        account = verify(Session(MastodonAPI.from_credential(credential), credential))
    except MastodonTimelineError as e:
        fail(e)
    print_json(account.model_dump(mode="json"))


@app.command()
def timeline(
    server: str | None = typer.Option(None, envvar="MASTODON_SERVER", help="Server name, used on first run"),
    limit: int | None = typer.Option(None, min=1, max=40, help="Statuses per page"),
    steps: list[Direction] = typer.Option([], "--step", "-s", help="Page to move to after the first one (repeatable)"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Interactive mode"),
    as_json: bool = typer.Option(False, "--json", help="Print statuses as JSON"),
):
    """Show the home timeline, then move between pages."""
    try:
        session = start_session(server)
        verify(session)
        cursor = TimelineCursor.fetch_initial(partial(session.api.get_home_timeline, limit=limit))
        show_items("initial items", cursor.items, cursor, as_json)

        if interactive:
            while True:
                choice = Prompt.ask("Next, prev or quit", choices=["n", "p", "q"], default="n", console=console)
                if choice == "q":
                    break
                step(cursor, Direction.next if choice == "n" else Direction.prev, as_json)
        else:
            for direction in steps:
                step(cursor, direction, as_json)
    except MastodonTimelineError as e:
        fail(e)


if __name__ == "__main__":
    app()
